"""One-time script: create the persistence consumer group on the SMS stream."""
from __future__ import annotations

import asyncio
import logging

import redis.asyncio as aioredis

from sms_relay.config import settings
from sms_relay.infrastructure.bus.redis_streams import ensure_group

logger = logging.getLogger(__name__)


async def create_group() -> None:
    r = aioredis.from_url(settings.BROKER_URL, decode_responses=True)
    try:
        await ensure_group(r, settings.SMS_STREAM, settings.SMS_CONSUMER_GROUP)
        logger.info(
            "Consumer group '%s' ready on stream '%s'",
            settings.SMS_CONSUMER_GROUP,
            settings.SMS_STREAM,
        )
    finally:
        await r.aclose()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(create_group())


if __name__ == "__main__":
    main()
