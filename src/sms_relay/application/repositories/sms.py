from __future__ import annotations

from typing import Any, Protocol
from uuid import UUID

from sms_relay.domain.entities.sms import OutgoingRecord, StoredMessage


class IncomingReader(Protocol):
    async def get_by_id(self, message_id: UUID) -> StoredMessage | None: ...


class IncomingWriter(Protocol):
    async def insert(self, document: dict[str, Any]) -> StoredMessage: ...


class OutgoingWriter(Protocol):
    async def record(self, record: OutgoingRecord) -> bool:
        """Insert the audit record; False if one already exists for the message."""
        ...
