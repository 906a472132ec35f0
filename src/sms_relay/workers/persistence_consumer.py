"""Persistence consumer: moves queued SMS events from Redis Streams into Postgres."""
from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any

from sms_relay.application.exceptions import BrokerConnectError
from sms_relay.application.policies.retry import RetryPolicy
from sms_relay.config import settings
from sms_relay.infrastructure.bus.redis_streams import RedisStreamConsumer, connect_with_retry
from sms_relay.infrastructure.db.session import AsyncSessionLocal, engine
from sms_relay.infrastructure.db.uow import SqlAlchemyUoW
from sms_relay.services import persistence_service

logger = logging.getLogger(__name__)


async def _handle_entry(entry_id: str, fields: dict[str, Any]) -> None:
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        await persistence_service.consume_entry(entry_id, fields, uow)


async def run_consumer() -> None:
    if settings.CONSUMER_STARTUP_DELAY_SECONDS > 0:
        logger.info(
            "Waiting %.0fs before the first broker connection attempt",
            settings.CONSUMER_STARTUP_DELAY_SECONDS,
        )
        await asyncio.sleep(settings.CONSUMER_STARTUP_DELAY_SECONDS)

    redis = await connect_with_retry(
        settings.BROKER_URL,
        RetryPolicy(
            max_attempts=settings.CONSUMER_BROKER_CONNECT_ATTEMPTS,
            delay=settings.CONSUMER_BROKER_CONNECT_DELAY_SECONDS,
        ),
    )

    consumer = RedisStreamConsumer(
        redis=redis,
        stream=settings.SMS_STREAM,
        group=settings.SMS_CONSUMER_GROUP,
        consumer=settings.SMS_CONSUMER_NAME,
        callback=_handle_entry,
    )
    await consumer.start()
    logger.info("Persistence consumer connected to Redis and Postgres")

    try:
        await consumer.wait()
    except asyncio.CancelledError:
        pass
    finally:
        await consumer.stop()
        await redis.aclose()
        await engine.dispose()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        asyncio.run(run_consumer())
    except BrokerConnectError as exc:
        logger.critical("Persistence consumer failed: %s", exc.detail)
        sys.exit(1)


if __name__ == "__main__":
    main()
