from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Optional, Sequence, Tuple

from bs4 import BeautifulSoup
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .config import CrawlOptions, CrawlSettings
from .dom import parse_html
from .processing import to_iso

logger = logging.getLogger("author_crawler")


class BaseExtractor(ABC):
    """Abstract base class shared by the page extractors.

    - Waiting for page signals is tolerant: a timeout is logged and the
      extractor continues with whatever has rendered.
    - Parsing works on an HTML snapshot of the page, so every field lookup
      after the snapshot is synchronous and side-effect free.
    - Randomised pauses go through the page clock (``wait_for_timeout``).
    """

    kind: str = ""

    def __init__(self, settings: Optional[CrawlSettings] = None, rng: Optional[random.Random] = None) -> None:
        self.settings = settings or CrawlSettings()
        self._rng = rng or random.Random()

    @abstractmethod
    async def extract(self, page: Any, options: CrawlOptions, **kwargs: Any) -> Any:
        ...

    async def wait_for_any(self, page: Any, selectors: Sequence[str], timeout: Optional[float] = None) -> bool:
        """Wait until any candidate is visible. Returns False on timeout."""
        seconds = self.settings.selector_timeout if timeout is None else timeout
        try:
            await page.wait_for_selector(", ".join(selectors), timeout=seconds * 1000, state="visible")
            return True
        except PlaywrightTimeoutError:
            logger.warning("Timed out waiting for %s on %s; continuing with partial page", self.kind, page.url)
            return False

    async def snapshot(self, page: Any) -> BeautifulSoup:
        return parse_html(await page.content())

    async def pause(self, page: Any, bounds: Tuple[float, float]) -> None:
        low, high = bounds
        await page.wait_for_timeout(self._rng.uniform(low, high) * 1000)

    @staticmethod
    def now_iso() -> str:
        return to_iso(datetime.now(timezone.utc))
