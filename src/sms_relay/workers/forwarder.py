"""Forwarder: watches sms_incoming inserts and delivers each message downstream."""
from __future__ import annotations

import asyncio
import logging
import sys
from uuid import UUID

from sms_relay.application.exceptions import ChangeFeedError
from sms_relay.application.ports.forward import ForwardClient
from sms_relay.config import settings
from sms_relay.infrastructure.db.change_feed import PostgresChangeFeed
from sms_relay.infrastructure.db.session import AsyncSessionLocal, engine
from sms_relay.infrastructure.db.uow import SqlAlchemyUoW
from sms_relay.infrastructure.http.forward_client import HttpxForwardClient
from sms_relay.services import forward_service
from sms_relay.services.change_watcher import ChangeWatcher, TaskSupervisor
from sms_relay.services.forward_service import ForwardPolicy

logger = logging.getLogger(__name__)


def _policy_from_settings() -> ForwardPolicy:
    return ForwardPolicy(
        max_attempts=settings.FORWARD_MAX_ATTEMPTS,
        retry_delay=settings.FORWARD_RETRY_DELAY_SECONDS,
        pacing_min=settings.FORWARD_PACING_MIN_SECONDS,
        pacing_max=settings.FORWARD_PACING_MAX_SECONDS,
    )


async def forward_task(message_id: UUID, client: ForwardClient, policy: ForwardPolicy) -> None:
    """Body of one forward task.

    The load and the audit write use separate sessions so no pooled
    connection is held across the pacing and retry sleeps.
    """
    async with AsyncSessionLocal() as session:
        stored = await SqlAlchemyUoW(session).incoming.get_by_id(message_id)
    if stored is None:
        logger.warning("Message %s vanished before it could be forwarded", message_id)
        return

    async with AsyncSessionLocal() as session:
        await forward_service.forward_message(
            stored, client, SqlAlchemyUoW(session), policy=policy,
        )


async def run_forwarder() -> None:
    client = HttpxForwardClient(
        settings.CLIENT_ENDPOINT, timeout=settings.FORWARD_TIMEOUT_SECONDS,
    )
    policy = _policy_from_settings()
    supervisor = TaskSupervisor(settings.FORWARD_MAX_CONCURRENCY)

    async def _on_insert(message_id: UUID) -> None:
        await forward_task(message_id, client, policy)

    watcher = ChangeWatcher(PostgresChangeFeed(settings.listen_dsn), supervisor, _on_insert)
    logger.info(
        "Forwarder started (endpoint=%s, attempts=%d, pacing=%d-%ds, timeout=%.0fs)",
        settings.CLIENT_ENDPOINT,
        policy.max_attempts,
        policy.pacing_min,
        policy.pacing_max,
        settings.FORWARD_TIMEOUT_SECONDS,
    )

    try:
        await watcher.run()
    except asyncio.CancelledError:
        pass
    finally:
        await supervisor.drain(settings.FORWARD_DRAIN_TIMEOUT_SECONDS)
        await client.aclose()
        await engine.dispose()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        asyncio.run(run_forwarder())
    except ChangeFeedError as exc:
        logger.critical("Change feed error: %s", exc.detail)
        sys.exit(1)


if __name__ == "__main__":
    main()
