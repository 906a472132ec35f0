from __future__ import annotations

from types import TracebackType
from typing import Self

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sms_relay.application.exceptions import StoreWriteError
from sms_relay.infrastructure.db.repositories.incoming import (
    IncomingReaderRepo,
    IncomingWriterRepo,
)
from sms_relay.infrastructure.db.repositories.outgoing import OutgoingWriterRepo


class SqlAlchemyUoW:
    """Concrete Unit-of-Work backed by a single AsyncSession."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self.incoming = IncomingReaderRepo(session)
        self.incoming_w = IncomingWriterRepo(session)
        self.outgoing = OutgoingWriterRepo(session)

    async def commit(self) -> None:
        try:
            await self._session.commit()
        except SQLAlchemyError as exc:
            raise StoreWriteError(str(exc)) from exc

    async def rollback(self) -> None:
        await self._session.rollback()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            await self.rollback()
