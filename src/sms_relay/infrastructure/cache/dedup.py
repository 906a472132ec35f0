"""Process-local fingerprint cache with TTL eviction and a periodic sweeper."""
from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime, timedelta

from sms_relay.application.ports.clock import Clock, SystemClock

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(minutes=5)
DEFAULT_SWEEP_INTERVAL = 60.0


class DedupCache:
    """Fingerprint -> first-seen timestamp.

    Entries older than ``ttl`` count as absent even before ``sweep`` drops
    them. State is lost on restart.
    """

    def __init__(self, ttl: timedelta = DEFAULT_TTL, clock: Clock | None = None) -> None:
        self._ttl = ttl
        self._clock = clock or SystemClock()
        self._entries: dict[str, datetime] = {}
        self._lock = threading.Lock()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def is_duplicate(self, fingerprint: str) -> bool:
        with self._lock:
            return self._is_live(fingerprint, self._clock.now())

    def record(self, fingerprint: str) -> None:
        with self._lock:
            self._entries[fingerprint] = self._clock.now()

    def claim(self, fingerprint: str) -> bool:
        """Record ``fingerprint`` unless it is live; True if this call recorded it."""
        with self._lock:
            now = self._clock.now()
            if self._is_live(fingerprint, now):
                return False
            self._entries[fingerprint] = now
            return True

    def sweep(self) -> int:
        with self._lock:
            now = self._clock.now()
            expired = [
                key for key, seen_at in self._entries.items()
                if now - seen_at > self._ttl
            ]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def _is_live(self, fingerprint: str, now: datetime) -> bool:
        seen_at = self._entries.get(fingerprint)
        return seen_at is not None and now - seen_at < self._ttl


class DedupSweeper:
    """Background task that sweeps a DedupCache on a fixed period."""

    def __init__(self, cache: DedupCache, interval: float = DEFAULT_SWEEP_INTERVAL) -> None:
        self._cache = cache
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        self._task = asyncio.create_task(self._run(), name="dedup-sweeper")
        logger.info("Dedup sweeper started (interval=%.0fs)", self._interval)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Dedup sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            removed = self._cache.sweep()
            if removed:
                logger.debug("Swept %d expired fingerprints", removed)
