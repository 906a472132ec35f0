"""Retry and backoff helpers shared by the broker connect and forward loops."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """``max_attempts`` total tries; ``delay`` grows by ``factor`` up to ``max_delay``.

    ``factor=1`` gives the fixed delay used everywhere by default.
    """

    max_attempts: int
    delay: float
    factor: float = 1.0
    max_delay: float | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.delay < 0:
            raise ValueError("delay must be >= 0")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the failed ``attempt`` (1-based)."""
        delay = self.delay * (self.factor ** (attempt - 1))
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Sleep = asyncio.sleep,
    label: str = "operation",
) -> T:
    """Run ``operation`` until it succeeds or the policy is exhausted.

    The last error is re-raised once ``policy.max_attempts`` tries have failed.
    """
    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await operation()
        except retry_on as exc:
            if attempt >= policy.max_attempts:
                logger.error(
                    "%s failed after %d attempts: %s", label, attempt, exc,
                )
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                "%s failed (%d/%d): %s; retrying in %.1fs",
                label, attempt, policy.max_attempts, exc, delay,
            )
            await sleep(delay)
    raise AssertionError("unreachable")
