from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from sms_relay.domain.value_objects.enums import ForwardStatus


@dataclass(frozen=True, slots=True)
class StoredMessage:
    id: UUID
    document: dict[str, Any]
    created_at: datetime


@dataclass(frozen=True, slots=True)
class OutgoingRecord:
    message_id: UUID
    status: ForwardStatus
    payload: dict[str, Any]
    attempts: int
    recorded_at: datetime
    error: str | None = None
