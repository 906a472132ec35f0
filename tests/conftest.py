"""Shared test fixtures."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import pytest

from sms_relay.application.exceptions import (
    BrokerSendError,
    ForwardTransientError,
    StoreWriteError,
)
from sms_relay.domain.entities.sms import OutgoingRecord, StoredMessage

EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = EPOCH) -> None:
        self._now = start

    def now(self) -> datetime:
        return self._now

    def advance(self, **delta: float) -> None:
        self._now += timedelta(**delta)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def valid_payload() -> dict[str, Any]:
    return {
        "event_type": "message",
        "number": "+421900000001",
        "from": "+421900123456",
        "text": "Hello there",
        "ts": "2024-01-01T00:00:00Z",
    }


def make_stored_message(
    *,
    message_id: UUID | None = None,
    document: dict[str, Any] | None = None,
) -> StoredMessage:
    return StoredMessage(
        id=message_id or uuid.uuid4(),
        document=document if document is not None else {
            "event_type": "message",
            "number": "+421900000001",
            "from": "+421900123456",
            "text": "Hello there",
            "ts": "2024-01-01T00:00:00Z",
        },
        created_at=EPOCH,
    )


@dataclass
class FakePublisher:
    sent: list[dict[str, Any]] = field(default_factory=list)
    fail: bool = False

    async def enqueue(self, payload: dict[str, Any]) -> None:
        if self.fail:
            raise BrokerSendError("connection reset by peer")
        self.sent.append(payload)


@dataclass
class FakeIncomingRepo:
    _messages: dict[UUID, StoredMessage] = field(default_factory=dict)
    fail_writes: bool = False

    async def get_by_id(self, message_id: UUID) -> StoredMessage | None:
        return self._messages.get(message_id)

    async def insert(self, document: dict[str, Any]) -> StoredMessage:
        if self.fail_writes:
            raise StoreWriteError("duplicate key value violates unique constraint")
        stored = make_stored_message(document=document)
        self._messages[stored.id] = stored
        return stored


@dataclass
class FakeOutgoingRepo:
    _records: dict[UUID, OutgoingRecord] = field(default_factory=dict)
    calls: int = 0

    async def record(self, record: OutgoingRecord) -> bool:
        self.calls += 1
        if record.message_id in self._records:
            return False
        self._records[record.message_id] = record
        return True


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    incoming: FakeIncomingRepo = field(default_factory=FakeIncomingRepo)
    incoming_w: FakeIncomingRepo | None = None
    outgoing: FakeOutgoingRepo = field(default_factory=FakeOutgoingRepo)
    _committed: bool = False
    _rolled_back: bool = False

    def __post_init__(self) -> None:
        if self.incoming_w is None:
            self.incoming_w = self.incoming

    async def commit(self) -> None:
        self._committed = True

    async def rollback(self) -> None:
        self._rolled_back = True


@dataclass
class ScriptedForwardClient:
    """Answers each POST with the next scripted status code or exception.

    The last entry repeats once the script runs out.
    """
    script: list[int | Exception] = field(default_factory=lambda: [200])
    calls: list[dict[str, Any]] = field(default_factory=list)

    async def post(self, payload: dict[str, Any]) -> int:
        self.calls.append(payload)
        index = min(len(self.calls), len(self.script)) - 1
        outcome = self.script[index]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@dataclass
class RecordingSleep:
    delays: list[float] = field(default_factory=list)

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def transport_error(detail: str = "ConnectError: connection refused") -> ForwardTransientError:
    return ForwardTransientError(detail)
