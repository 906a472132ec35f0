from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator

from fastapi import FastAPI

from sms_relay.api.middleware.correlation_id import CorrelationIdMiddleware
from sms_relay.api.v1.routers import health, sms
from sms_relay.application.policies.retry import RetryPolicy
from sms_relay.config import settings
from sms_relay.infrastructure.bus.redis_streams import RedisStreamPublisher, connect_with_retry
from sms_relay.infrastructure.cache.dedup import DedupCache, DedupSweeper

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle.

    BrokerConnectError escapes startup, so the server exits instead of
    serving without a queue.
    """
    if settings.INGRESS_STARTUP_DELAY_SECONDS > 0:
        logger.info(
            "Waiting %.0fs for the broker to initialize",
            settings.INGRESS_STARTUP_DELAY_SECONDS,
        )
        await asyncio.sleep(settings.INGRESS_STARTUP_DELAY_SECONDS)

    app.state.redis = await connect_with_retry(
        settings.BROKER_URL,
        RetryPolicy(
            max_attempts=settings.INGRESS_BROKER_CONNECT_ATTEMPTS,
            delay=settings.INGRESS_BROKER_CONNECT_DELAY_SECONDS,
        ),
    )
    app.state.publisher = RedisStreamPublisher(app.state.redis, settings.SMS_STREAM)

    cache = DedupCache(ttl=timedelta(seconds=settings.DEDUP_TTL_SECONDS))
    sweeper = DedupSweeper(cache, interval=settings.DEDUP_SWEEP_SECONDS)
    await sweeper.start()
    app.state.dedup_cache = cache
    app.state.dedup_sweeper = sweeper

    yield

    await sweeper.stop()
    await app.state.redis.aclose()
    logger.info("Redis connection closed")


def create_app() -> FastAPI:
    app = FastAPI(
        title="SMS Relay",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(health.router)
    app.include_router(sms.router)

    return app
