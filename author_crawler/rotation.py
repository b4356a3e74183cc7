from __future__ import annotations

import json
import logging
from itertools import cycle
from typing import List, Optional, Sequence, Set

from .models import Identity

logger = logging.getLogger("author_crawler")

DEFAULT_USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Safari/605.1.15",
)


def build_pool(proxies: Sequence[str] = (), user_agents: Sequence[str] = DEFAULT_USER_AGENTS) -> List[Identity]:
    """Pair each proxy with a user agent; without proxies, one direct identity per agent."""
    agents = list(user_agents) or list(DEFAULT_USER_AGENTS)
    if not proxies:
        return [Identity(proxy_endpoint=None, user_agent=ua) for ua in agents]
    return [Identity(proxy_endpoint=proxy, user_agent=ua) for proxy, ua in zip(proxies, cycle(agents))]


class RotationManager:
    """Cadence-based rotation over a fixed identity pool.

    next() walks forward from the current position skipping unhealthy
    identities. When every identity is unhealthy the unhealthy set is
    cleared and rotation restarts at the first identity.
    """

    def __init__(self, pool: Sequence[Identity], rotation_interval: int = 5) -> None:
        if not pool:
            raise ValueError("identity pool must not be empty")
        self._pool = list(pool)
        self._interval = max(int(rotation_interval), 1)
        self._index = -1
        self._unhealthy: Set[str] = set()

    @property
    def current(self) -> Optional[Identity]:
        return self._pool[self._index] if self._index >= 0 else None

    def next(self) -> Identity:
        size = len(self._pool)
        for step in range(1, size + 1):
            index = (self._index + step) % size
            candidate = self._pool[index]
            if candidate.key not in self._unhealthy:
                self._index = index
                return candidate

        logger.warning(json.dumps({"event": "identity_pool_reset", "size": size}, ensure_ascii=False))
        self._unhealthy.clear()
        for identity in self._pool:
            identity.healthy = True
        self._index = 0
        return self._pool[0]

    def mark_success(self, identity: Identity) -> None:
        if identity.key in self._unhealthy:
            self._unhealthy.discard(identity.key)
            logger.info(json.dumps({"event": "identity_recovered", "identity": identity.key}, ensure_ascii=False))
        identity.healthy = True

    def mark_failure(self, identity: Identity) -> None:
        self._unhealthy.add(identity.key)
        identity.healthy = False
        logger.warning(json.dumps({"event": "identity_failed", "identity": identity.key}, ensure_ascii=False))

    def should_rotate(self, article_count: int) -> bool:
        """True on every ``rotation_interval``-th article."""
        return article_count > 0 and article_count % self._interval == 0
