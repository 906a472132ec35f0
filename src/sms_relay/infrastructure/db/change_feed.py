"""Insert notifications for sms_incoming over Postgres LISTEN/NOTIFY."""
from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator
from uuid import UUID

import asyncpg

from sms_relay.application.exceptions import ChangeFeedError
from sms_relay.infrastructure.db.models.incoming import INSERT_CHANNEL

logger = logging.getLogger(__name__)


class PostgresChangeFeed:
    """Implements application.ports.change_feed.ChangeFeed.

    Uses a dedicated asyncpg connection outside the SQLAlchemy pool. Only
    inserts made while listening are seen; there is no resume position.
    """

    def __init__(self, dsn: str, channel: str = INSERT_CHANNEL) -> None:
        self._dsn = dsn
        self._channel = channel

    async def inserts(self) -> AsyncIterator[UUID]:
        queue: asyncio.Queue[UUID | ChangeFeedError] = asyncio.Queue()

        def _on_notify(_conn: object, _pid: int, _channel: str, payload: str) -> None:
            try:
                queue.put_nowait(UUID(payload))
            except ValueError:
                logger.warning("Ignoring malformed notification payload %r", payload)

        def _on_terminate(_conn: object) -> None:
            queue.put_nowait(ChangeFeedError("listen connection terminated"))

        try:
            conn = await asyncpg.connect(self._dsn)
            conn.add_termination_listener(_on_terminate)
            await conn.add_listener(self._channel, _on_notify)
        except (OSError, asyncpg.PostgresError) as exc:
            raise ChangeFeedError(f"cannot subscribe to {self._channel}: {exc}") from exc

        logger.info("Listening for inserts on channel %s", self._channel)
        try:
            while True:
                item = await queue.get()
                if isinstance(item, ChangeFeedError):
                    raise item
                yield item
        finally:
            if not conn.is_closed():
                await conn.close()
