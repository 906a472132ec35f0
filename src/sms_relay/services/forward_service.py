"""Forward a stored SMS downstream with pacing, bounded retries and one audit record."""
from __future__ import annotations

import asyncio
import logging
import math
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sms_relay.application.exceptions import ForwardTransientError
from sms_relay.application.policies.retry import RetryPolicy, Sleep
from sms_relay.application.ports.clock import Clock, SystemClock
from sms_relay.application.ports.forward import ForwardClient
from sms_relay.application.uow import UnitOfWork
from sms_relay.domain.entities.sms import OutgoingRecord, StoredMessage
from sms_relay.domain.value_objects.enums import ForwardStatus

logger = logging.getLogger(__name__)

SUCCESS_STATUS = 200


@dataclass(frozen=True, slots=True)
class ForwardPolicy:
    max_attempts: int = 3
    retry_delay: float = 1.0
    pacing_min: int = 5
    pacing_max: int = 30

    def __post_init__(self) -> None:
        if self.pacing_min > self.pacing_max:
            raise ValueError("pacing_min must not exceed pacing_max")

    @property
    def retry(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.max_attempts, delay=self.retry_delay)

    def pacing_delay(self, rng: random.Random) -> int:
        """Whole seconds in [pacing_min, pacing_max], both ends included."""
        return rng.randint(self.pacing_min, self.pacing_max)


def to_epoch_seconds(ts: Any) -> Any:
    """Floor of a string timestamp's epoch seconds; non-strings pass through.

    Naive timestamps are read as UTC. Unparseable strings become None.
    """
    if not isinstance(ts, str):
        return ts
    try:
        parsed = datetime.fromisoformat(ts)
    except ValueError:
        logger.warning("Unparseable ts %r, forwarding null timestamp", ts)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return math.floor(parsed.timestamp())


def transform(stored: StoredMessage) -> dict[str, Any]:
    doc = stored.document
    return {
        "cli": doc.get("from"),
        "ddi": doc.get("number"),
        "content": doc.get("text"),
        "timestamp": to_epoch_seconds(doc.get("ts")),
    }


async def forward_message(
    stored: StoredMessage,
    client: ForwardClient,
    uow: UnitOfWork,
    *,
    policy: ForwardPolicy = ForwardPolicy(),
    clock: Clock | None = None,
    sleep: Sleep = asyncio.sleep,
    rng: random.Random | None = None,
) -> OutgoingRecord:
    """Deliver ``stored`` and write exactly one terminal audit record.

    Stored -> Forwarding(1..max_attempts) -> success | fail. Only an HTTP 200
    counts as delivered.
    """
    clock = clock or SystemClock()
    rng = rng or random.Random()
    retry = policy.retry

    payload = transform(stored)
    logger.info("Transformed message %s: %s", stored.id, payload)

    pacing = policy.pacing_delay(rng)
    logger.info("Waiting %ds before forwarding message %s", pacing, stored.id)
    await sleep(pacing)

    last_error: str | None = None
    for attempt in range(1, retry.max_attempts + 1):
        logger.info("Attempt %d/%d for message %s", attempt, retry.max_attempts, stored.id)
        try:
            status_code = await client.post(payload)
        except ForwardTransientError as exc:
            last_error = exc.detail
        except Exception as exc:
            logger.exception("Unexpected error forwarding message %s", stored.id)
            last_error = f"{type(exc).__name__}: {exc}"
        else:
            if status_code == SUCCESS_STATUS:
                record = OutgoingRecord(
                    message_id=stored.id,
                    status=ForwardStatus.SUCCESS,
                    payload=payload,
                    attempts=attempt,
                    recorded_at=clock.now(),
                )
                break
            last_error = f"Unexpected status {status_code}"

        logger.warning(
            "Attempt %d for message %s failed: %s", attempt, stored.id, last_error,
        )
        if attempt < retry.max_attempts:
            await sleep(retry.delay_for(attempt))
    else:
        record = OutgoingRecord(
            message_id=stored.id,
            status=ForwardStatus.FAIL,
            payload=payload,
            attempts=retry.max_attempts,
            recorded_at=clock.now(),
            error=last_error,
        )

    await _write_audit(record, uow)
    return record


async def _write_audit(record: OutgoingRecord, uow: UnitOfWork) -> None:
    created = await uow.outgoing.record(record)
    await uow.commit()
    if not created:
        logger.warning("Audit record for message %s already exists, kept the first", record.message_id)
    elif record.status is ForwardStatus.SUCCESS:
        logger.info(
            "Message %s forwarded after %d attempt(s)", record.message_id, record.attempts,
        )
    else:
        logger.error(
            "Message %s failed to forward after %d attempts: %s",
            record.message_id, record.attempts, record.error,
        )
