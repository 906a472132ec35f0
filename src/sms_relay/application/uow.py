from __future__ import annotations

from typing import Protocol

from sms_relay.application.repositories.sms import (
    IncomingReader,
    IncomingWriter,
    OutgoingWriter,
)


class UnitOfWork(Protocol):
    incoming: IncomingReader
    incoming_w: IncomingWriter
    outgoing: OutgoingWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
