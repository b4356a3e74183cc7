from __future__ import annotations

import random


class BackoffStrategy:
    """Exponential backoff with multiplicative jitter for retry delays.

    The delay after failure ``n`` is ``min(initial * 2^n, max)`` scaled by a
    random factor in [0.5, 1.5], then clamped to ``max``."""

    def __init__(self, initial_seconds: float = 1.0, max_seconds: float = 10.0) -> None:
        self._initial = initial_seconds
        self._max = max_seconds

    @property
    def max_seconds(self) -> float:
        return self._max

    def base_delay(self, attempt: int) -> float:
        """Un-jittered delay for a given failed attempt (1-based)."""
        return min(self._max, self._initial * (2 ** min(max(attempt, 0), 32)))

    def get_sleep(self, attempt: int) -> float:
        """Calculate the backoff sleep duration in seconds for a given retry attempt."""
        jitter = random.uniform(0.5, 1.5)
        return min(self._max, self.base_delay(attempt) * jitter)
