"""Launch one forward task per insert seen on the change feed."""
from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, Callable, Coroutine
from uuid import UUID

from sms_relay.application.ports.change_feed import ChangeFeed

logger = logging.getLogger(__name__)

TaskFactory = Callable[[], Coroutine[Any, Any, Any]]
OnInsertCallback = Callable[[UUID], Coroutine[Any, Any, Any]]


class TaskSupervisor:
    """Tracks fire-and-forget tasks so they can be bounded and drained.

    Failures are logged and never propagate to whoever spawned the task.
    """

    def __init__(self, max_concurrency: int | None = None) -> None:
        self._tasks: set[asyncio.Task[None]] = set()
        self._semaphore = (
            asyncio.Semaphore(max_concurrency) if max_concurrency else None
        )

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, factory: TaskFactory, *, name: str | None = None) -> asyncio.Task[None]:
        task = asyncio.create_task(self._run(factory, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for in-flight tasks; cancel whatever is left after ``timeout``."""
        if not self._tasks:
            return
        logger.info("Draining %d in-flight task(s)", len(self._tasks))
        _done, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        if pending:
            logger.warning("Cancelling %d task(s) still running after drain timeout", len(pending))
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

    async def _run(self, factory: TaskFactory, name: str | None) -> None:
        try:
            if self._semaphore is None:
                await factory()
            else:
                async with self._semaphore:
                    await factory()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Task %s failed", name or "<unnamed>")


class ChangeWatcher:
    def __init__(
        self,
        feed: ChangeFeed,
        supervisor: TaskSupervisor,
        on_insert: OnInsertCallback,
    ) -> None:
        self._feed = feed
        self._supervisor = supervisor
        self._on_insert = on_insert

    async def run(self) -> None:
        """Consume the feed until it ends; ChangeFeedError propagates."""
        async for message_id in self._feed.inserts():
            logger.info("New SMS inserted: %s", message_id)
            self._supervisor.spawn(
                functools.partial(self._on_insert, message_id),
                name=f"forward-{message_id}",
            )
