from __future__ import annotations

import random

import pytest

from sms_relay.domain.value_objects.enums import ForwardStatus
from sms_relay.services import forward_service
from sms_relay.services.forward_service import ForwardPolicy, to_epoch_seconds, transform
from tests.conftest import (
    FakeClock,
    FakeUoW,
    RecordingSleep,
    ScriptedForwardClient,
    make_stored_message,
    transport_error,
)


@pytest.mark.parametrize(
    "ts, expected",
    [
        ("2024-01-01T00:00:00Z", 1704067200),
        ("2024-01-01T00:00:00.999+00:00", 1704067200),
        ("2024-01-01T01:00:00+01:00", 1704067200),
        ("2024-01-01T00:00:00", 1704067200),
        (1704067200, 1704067200),
        (1704067200.5, 1704067200.5),
        (None, None),
        ("yesterday", None),
    ],
)
def test_to_epoch_seconds(ts, expected):
    assert to_epoch_seconds(ts) == expected


def test_transform_maps_downstream_fields():
    stored = make_stored_message()

    assert transform(stored) == {
        "cli": "+421900123456",
        "ddi": "+421900000001",
        "content": "Hello there",
        "timestamp": 1704067200,
    }


def test_pacing_delay_stays_within_bounds():
    policy = ForwardPolicy()
    rng = random.Random(1234)

    delays = {policy.pacing_delay(rng) for _ in range(2000)}

    assert min(delays) == 5
    assert max(delays) == 30
    assert all(isinstance(d, int) for d in delays)


def test_policy_rejects_inverted_pacing_range():
    with pytest.raises(ValueError):
        ForwardPolicy(pacing_min=10, pacing_max=5)


async def _forward(client, uow=None, sleep=None, **kwargs):
    stored = make_stored_message()
    uow = uow or FakeUoW()
    sleep = sleep or RecordingSleep()
    record = await forward_service.forward_message(
        stored,
        client,
        uow,
        clock=FakeClock(),
        sleep=sleep,
        rng=random.Random(7),
        **kwargs,
    )
    return stored, record, uow, sleep


@pytest.mark.asyncio
async def test_success_on_first_attempt():
    client = ScriptedForwardClient([200])

    stored, record, uow, sleep = await _forward(client)

    assert record.status is ForwardStatus.SUCCESS
    assert record.attempts == 1
    assert record.error is None
    assert record.payload == transform(stored)
    assert client.calls == [transform(stored)]
    assert len(sleep.delays) == 1
    assert 5 <= sleep.delays[0] <= 30
    assert uow.outgoing._records == {stored.id: record}
    assert uow._committed is True


@pytest.mark.asyncio
async def test_success_after_one_failure():
    client = ScriptedForwardClient([500, 200])

    stored, record, uow, sleep = await _forward(client)

    assert record.status is ForwardStatus.SUCCESS
    assert record.attempts == 2
    assert sleep.delays[1:] == [1.0]
    assert uow.outgoing.calls == 1


@pytest.mark.asyncio
async def test_failure_after_all_attempts():
    client = ScriptedForwardClient([500])

    stored, record, uow, sleep = await _forward(client)

    assert record.status is ForwardStatus.FAIL
    assert record.attempts == 3
    assert record.error == "Unexpected status 500"
    assert len(client.calls) == 3
    # no wait after the final attempt
    assert sleep.delays[1:] == [1.0, 1.0]
    assert uow.outgoing._records[stored.id] is record
    assert uow.outgoing.calls == 1


@pytest.mark.asyncio
async def test_only_200_counts_as_success():
    client = ScriptedForwardClient([201, 204, 302])

    _stored, record, _uow, _sleep = await _forward(client)

    assert record.status is ForwardStatus.FAIL
    assert record.error == "Unexpected status 302"


@pytest.mark.asyncio
async def test_transport_errors_are_retried():
    client = ScriptedForwardClient([transport_error(), transport_error("ReadTimeout: timed out"), 200])

    _stored, record, _uow, _sleep = await _forward(client)

    assert record.status is ForwardStatus.SUCCESS
    assert record.attempts == 3


@pytest.mark.asyncio
async def test_last_transport_error_is_recorded():
    client = ScriptedForwardClient([500, transport_error("ReadTimeout: timed out")])

    _stored, record, _uow, _sleep = await _forward(client)

    assert record.status is ForwardStatus.FAIL
    assert record.attempts == 3
    assert record.error == "ReadTimeout: timed out"


@pytest.mark.asyncio
async def test_unexpected_client_error_still_writes_fail_record():
    client = ScriptedForwardClient([RuntimeError("client exploded")])

    stored, record, uow, _sleep = await _forward(client)

    assert record.status is ForwardStatus.FAIL
    assert record.attempts == 3
    assert record.error == "RuntimeError: client exploded"
    assert len(client.calls) == 3
    assert uow.outgoing._records[stored.id] is record
    assert uow.outgoing.calls == 1


@pytest.mark.asyncio
async def test_attempt_budget_is_configurable():
    client = ScriptedForwardClient([500])
    policy = ForwardPolicy(max_attempts=5, retry_delay=0.5, pacing_min=0, pacing_max=0)

    _stored, record, _uow, sleep = await _forward(client, policy=policy)

    assert record.attempts == 5
    assert len(client.calls) == 5
    assert sleep.delays == [0, 0.5, 0.5, 0.5, 0.5]


@pytest.mark.asyncio
async def test_existing_audit_record_is_kept():
    stored = make_stored_message()
    uow = FakeUoW()
    sleep = RecordingSleep()

    first = await forward_service.forward_message(
        stored, ScriptedForwardClient([500]), uow, sleep=sleep,
    )
    await forward_service.forward_message(
        stored, ScriptedForwardClient([200]), uow, sleep=sleep,
    )

    assert uow.outgoing._records == {stored.id: first}
    assert first.status is ForwardStatus.FAIL
