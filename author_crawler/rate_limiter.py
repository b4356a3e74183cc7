from __future__ import annotations

import asyncio
import random
import time
from typing import Awaitable, Callable, Tuple


class RateLimiter:
    """Token-bucket rate limiter based on requests per second (QPS).

    The bucket holds up to ``max(qps, 1)`` tokens and refills continuously at
    ``qps`` tokens per second. acquire() takes one token, awaiting refill when
    the bucket is empty, then adds a random jitter pause so grants do not land
    on a fixed interval. Intended for a single asyncio worker; no locking."""

    def __init__(
        self,
        qps: float,
        jitter: Tuple[float, float] = (0.0, 0.0),
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._rate = float(qps) if qps > 0 else 0.0
        self._capacity = max(self._rate, 1.0)
        self._tokens = self._capacity
        self._jitter = jitter
        self._clock = clock
        self._sleep = sleep
        self._last_refill = clock()

    @property
    def capacity(self) -> float:
        return self._capacity

    @property
    def tokens(self) -> float:
        self._refill()
        return self._tokens

    async def acquire(self) -> None:
        """Wait until a request is permitted under the QPS limit."""
        if self._rate <= 0:
            return
        self._refill()
        while self._tokens < 1.0:
            await self._sleep((1.0 - self._tokens) / self._rate)
            self._refill()
        self._tokens -= 1.0

        low, high = self._jitter
        if high > 0:
            await self._sleep(random.uniform(low, high))

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(now - self._last_refill, 0.0)
        self._last_refill = now
        self._tokens = min(self._capacity, self._tokens + elapsed * self._rate)
