from __future__ import annotations

import json

import pytest

from sms_relay.application.exceptions import StoreWriteError
from sms_relay.infrastructure.bus.serializer import serialize_message
from sms_relay.services import persistence_service
from tests.conftest import FakeIncomingRepo, FakeUoW


@pytest.mark.asyncio
async def test_entry_is_stored_and_committed(valid_payload):
    uow = FakeUoW()

    stored = await persistence_service.consume_entry(
        "1700000000000-0", serialize_message(valid_payload), uow,
    )

    assert stored is not None
    assert stored.document == valid_payload
    assert uow.incoming._messages[stored.id] is stored
    assert uow._committed is True


@pytest.mark.parametrize(
    "fields",
    [
        {"event_type": "sms.inbound", "data": "{not json"},
        {"event_type": "sms.inbound", "data": json.dumps(["a", "b"])},
        {"event_type": "sms.inbound"},
        {},
    ],
    ids=["malformed-json", "non-object", "missing-data", "empty-entry"],
)
@pytest.mark.asyncio
async def test_poison_entry_is_dropped(fields):
    uow = FakeUoW()

    stored = await persistence_service.consume_entry("1-0", fields, uow)

    assert stored is None
    assert uow.incoming._messages == {}
    assert uow._committed is False


@pytest.mark.asyncio
async def test_store_failure_is_dropped_and_rolled_back(valid_payload):
    uow = FakeUoW(incoming=FakeIncomingRepo(fail_writes=True))

    stored = await persistence_service.consume_entry("1-0", serialize_message(valid_payload), uow)

    assert stored is None
    assert uow._rolled_back is True
    assert uow._committed is False


@pytest.mark.asyncio
async def test_persist_message_propagates_store_errors(valid_payload):
    uow = FakeUoW(incoming=FakeIncomingRepo(fail_writes=True))

    with pytest.raises(StoreWriteError):
        await persistence_service.persist_message(valid_payload, uow)
