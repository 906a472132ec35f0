"""Redis Streams as the durable queue between ingress and persistence."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

import redis.asyncio as aioredis

from sms_relay.application.exceptions import BrokerConnectError, BrokerSendError
from sms_relay.application.policies.retry import RetryPolicy, Sleep, retry_async
from sms_relay.infrastructure.bus.serializer import serialize_message

logger = logging.getLogger(__name__)

OnStreamEntryCallback = Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]]


async def connect_with_retry(
    url: str,
    policy: RetryPolicy,
    *,
    sleep: Sleep = asyncio.sleep,
) -> aioredis.Redis:
    """Open a client and ping until the broker answers or the policy runs out."""
    redis = aioredis.from_url(url, decode_responses=True)
    try:
        await retry_async(
            redis.ping,
            policy,
            retry_on=(aioredis.RedisError, OSError),
            sleep=sleep,
            label="Redis connect",
        )
    except (aioredis.RedisError, OSError) as exc:
        await redis.aclose()
        raise BrokerConnectError(
            f"broker unreachable after {policy.max_attempts} attempts: {exc}"
        ) from exc
    logger.info("Redis connected")
    return redis


async def ensure_group(redis: aioredis.Redis, stream: str, group: str) -> None:
    try:
        await redis.xgroup_create(stream, group, id="0", mkstream=True)
        logger.info("Created consumer group %s on %s", group, stream)
    except aioredis.ResponseError as e:
        if "BUSYGROUP" in str(e):
            logger.debug("Consumer group %s already exists", group)
        else:
            raise


class RedisStreamPublisher:
    """Implements application.ports.bus.MessagePublisher."""

    def __init__(self, redis: aioredis.Redis, stream: str) -> None:
        self._redis = redis
        self._stream = stream

    async def enqueue(self, payload: dict[str, Any]) -> None:
        try:
            entry_id = await self._redis.xadd(self._stream, serialize_message(payload))
        except (aioredis.RedisError, OSError) as exc:
            raise BrokerSendError(str(exc)) from exc
        logger.debug("XADD %s -> %s", self._stream, entry_id)


class RedisStreamConsumer:
    """XREADGROUP consumer handling one entry at a time.

    Every entry is acknowledged and deleted once the callback returns or
    raises, so a failing entry is dropped instead of redelivered and the
    stream only holds unfinished work. This group must be the stream's only
    reader. Entries left pending by a previous run of the same consumer name
    (crash or shutdown mid-entry) or by a lost connection are replayed
    before new ones.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        stream: str,
        group: str,
        consumer: str,
        callback: OnStreamEntryCallback,
        *,
        block_ms: int = 5000,
        reconnect_delay: float = 5.0,
    ) -> None:
        self._redis = redis
        self._stream = stream
        self._group = group
        self._consumer = consumer
        self._callback = callback
        self._block_ms = block_ms
        self._reconnect_delay = reconnect_delay
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        await ensure_group(self._redis, self._stream, self._group)
        self._task = asyncio.create_task(self._consume(), name="redis-stream-consumer")
        logger.info(
            "Stream consumer started: stream=%s group=%s consumer=%s",
            self._stream, self._group, self._consumer,
        )

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            logger.info("Stream consumer stopped")

    async def wait(self) -> None:
        """Block until the consume loop ends; re-raises its error."""
        if self._task:
            await self._task

    async def _consume(self) -> None:
        # pending entries are replayed at startup and after every reconnect
        replay = True
        while True:
            try:
                if replay:
                    await self._drain_pending()
                    replay = False
                await self._read_once(">")
            except asyncio.CancelledError:
                raise
            except (aioredis.ConnectionError, aioredis.TimeoutError):
                logger.exception(
                    "Stream consumer lost the broker, retrying in %ss", self._reconnect_delay,
                )
                replay = True
                await asyncio.sleep(self._reconnect_delay)

    async def _drain_pending(self) -> None:
        while await self._read_once("0"):
            pass

    async def _read_once(self, cursor: str) -> bool:
        entries = await self._redis.xreadgroup(
            groupname=self._group,
            consumername=self._consumer,
            streams={self._stream: cursor},
            count=1,
            block=None if cursor == "0" else self._block_ms,
        )
        handled = False
        for _stream_name, messages in entries or []:
            for entry_id, fields in messages:
                handled = True
                await self.handle_entry(entry_id, fields)
        return handled

    async def handle_entry(self, entry_id: str, fields: dict[str, Any] | None) -> None:
        try:
            await self._callback(entry_id, fields or {})
        except Exception:
            logger.exception("Dropping stream entry %s", entry_id)
        # not reached on cancellation, so an interrupted entry stays pending
        await self._redis.xack(self._stream, self._group, entry_id)
        await self._redis.xdel(self._stream, entry_id)
