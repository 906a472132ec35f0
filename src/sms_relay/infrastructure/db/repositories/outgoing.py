from __future__ import annotations

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sms_relay.application.exceptions import StoreWriteError
from sms_relay.domain.entities.sms import OutgoingRecord
from sms_relay.infrastructure.db.mappers import sms as mapper
from sms_relay.infrastructure.db.models.outgoing import OutgoingRecordModel


class OutgoingWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def record(self, record: OutgoingRecord) -> bool:
        """Insert-once keyed by message id; False when a record already exists."""
        stmt = (
            pg_insert(OutgoingRecordModel)
            .values(**mapper.outgoing_to_values(record))
            .on_conflict_do_nothing(constraint="uq_sms_outgoing_message")
            .returning(OutgoingRecordModel.id)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreWriteError(str(exc)) from exc
        return result.scalar_one_or_none() is not None
