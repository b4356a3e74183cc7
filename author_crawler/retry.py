from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from .backoff import BackoffStrategy

logger = logging.getLogger("author_crawler")

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 10.0
    retry_on: Tuple[Type[BaseException], ...] = (Exception,)

    def backoff(self) -> BackoffStrategy:
        return BackoffStrategy(initial_seconds=self.initial_delay, max_seconds=self.max_delay)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    on_retry: Optional[Callable[[int, BaseException], Awaitable[None]]] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await ``operation`` until it succeeds or the policy's attempts run out.

    ``on_retry(attempt, exc)`` is awaited after each failed attempt that will
    be retried. When the last attempt fails its exception is re-raised.
    """
    backoff = policy.backoff()
    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except policy.retry_on as exc:
            if attempt >= policy.max_attempts:
                raise
            delay = backoff.get_sleep(attempt)
            logger.warning(
                "Attempt %d/%d failed (%s: %s); retrying in %.2fs",
                attempt,
                policy.max_attempts,
                type(exc).__name__,
                exc,
                delay,
            )
            if on_retry is not None:
                await on_retry(attempt, exc)
            await sleep(delay)
