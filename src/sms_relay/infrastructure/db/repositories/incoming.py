from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sms_relay.application.exceptions import StoreWriteError
from sms_relay.domain.entities.sms import StoredMessage
from sms_relay.infrastructure.db.mappers import sms as mapper
from sms_relay.infrastructure.db.models.incoming import IncomingMessageModel


class IncomingReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, message_id: UUID) -> StoredMessage | None:
        stmt = select(IncomingMessageModel).where(IncomingMessageModel.id == message_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.incoming_to_entity(model) if model else None


class IncomingWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def insert(self, document: dict[str, Any]) -> StoredMessage:
        stmt = (
            pg_insert(IncomingMessageModel)
            .values(document=document)
            .returning(IncomingMessageModel)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreWriteError(str(exc)) from exc
        return mapper.incoming_to_entity(result.scalar_one())
