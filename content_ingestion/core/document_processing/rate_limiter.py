"""
Token-bucket rate limiter for external provider calls.

One limiter is shared by every ingestion in the process, so all embedding
calls together stay under the provider's request ceiling. Waiting is an
asyncio sleep: other coroutines keep running while a caller waits.

Dependencies: asyncio
System role: Inter-batch pacing policy for the embedding stage
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class TokenBucketRateLimiter:
    """Token bucket with injectable clock and sleep.

    The bucket starts full, so the first ``capacity`` calls proceed
    immediately. Afterwards one token is added every ``interval_seconds``.
    Waiters are served in arrival order.
    """

    def __init__(
        self,
        interval_seconds: float = 31.0,
        capacity: int = 1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize a full bucket.

        Args:
            interval_seconds: Seconds needed to earn one token
            capacity: Maximum tokens held (burst size)
            clock: Monotonic clock returning seconds
            sleep: Coroutine function used to wait

        Raises:
            ValueError: When interval_seconds is negative or capacity < 1
        """
        if interval_seconds < 0:
            raise ValueError("interval_seconds cannot be negative")
        if capacity < 1:
            raise ValueError("capacity must be at least 1")

        self._interval = interval_seconds
        self._capacity = capacity
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._updated_at = clock()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(now - self._updated_at, 0.0)
        self._updated_at = now
        if self._interval == 0:
            self._tokens = float(self._capacity)
        else:
            self._tokens = min(self._capacity, self._tokens + elapsed / self._interval)

    async def acquire(self) -> float:
        """
        Take one token, waiting until one is available.

        Returns:
            float: Seconds spent waiting
        """
        waited = 0.0
        async with self._lock:
            while True:
                self._refill()
                if self._tokens >= 1:
                    self._tokens -= 1
                    return waited
                delay = (1 - self._tokens) * self._interval
                logger.info(
                    f"{__name__}:acquire - Rate limit reached, waiting {delay:.1f}s",
                    extra={"delay_seconds": round(delay, 2)},
                )
                await self._sleep(delay)
                waited += delay
