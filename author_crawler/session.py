from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from .config import CrawlSettings
from .errors import IdentityError, NavigationError
from .models import Identity
from .selectors import STEALTH_INIT_JS

logger = logging.getLogger("author_crawler")

# Network errors that point at the egress path rather than the page.
IDENTITY_ERROR_MARKERS = (
    "net::ERR_PROXY",
    "net::ERR_TUNNEL_CONNECTION_FAILED",
    "net::ERR_CONNECTION_REFUSED",
    "net::ERR_CONNECTION_RESET",
    "net::ERR_SOCKS_CONNECTION_FAILED",
)
IDENTITY_STATUS_CODES = (403, 407, 429)


class BrowserSession:
    """One Chromium instance; one context and page per applied identity.

    Switching identity closes the current context, so cookies and storage
    never leak from one identity to the next.
    """

    def __init__(self, settings: Optional[CrawlSettings] = None) -> None:
        self._settings = settings or CrawlSettings()
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None
        self._identity_key: Optional[str] = None

    @property
    def page(self) -> Any:
        if self._page is None:
            raise RuntimeError("no identity applied to the browser session")
        return self._page

    async def start(self) -> None:
        if self._browser is not None:
            return
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self._settings.headless,
            args=["--disable-blink-features=AutomationControlled", "--disable-dev-shm-usage"],
        )
        logger.info("Browser started (headless=%s)", self._settings.headless)

    async def apply_identity(self, identity: Identity) -> None:
        """Open a fresh context for ``identity`` unless it is already active."""
        if self._page is not None and identity.key == self._identity_key:
            return
        await self.start()
        await self._close_context()

        width, height = self._settings.viewport
        ctx_kwargs: Dict[str, Any] = dict(
            user_agent=identity.user_agent,
            viewport={"width": width, "height": height},
            locale="en-US",
            timezone_id="America/New_York",
        )
        if identity.proxy_endpoint:
            ctx_kwargs["proxy"] = {"server": identity.proxy_endpoint}

        self._context = await self._browser.new_context(**ctx_kwargs)
        await self._context.add_init_script(STEALTH_INIT_JS)
        self._page = await self._context.new_page()
        self._page.set_default_navigation_timeout(self._settings.navigation_timeout * 1000)
        self._page.set_default_timeout(self._settings.page_timeout * 1000)
        self._identity_key = identity.key
        logger.debug("Applied identity %s", identity.key)

    async def navigate(self, url: str) -> Any:
        """Load ``url`` and return the page.

        Raises IdentityError for proxy/network rejections and 403/407/429,
        NavigationError for timeouts and other failed loads.
        """
        page = self.page
        try:
            response = await page.goto(url, wait_until="domcontentloaded")
        except PlaywrightTimeoutError as exc:
            raise NavigationError(url, "navigation timed out") from exc
        except PlaywrightError as exc:
            message = str(exc)
            if any(marker in message for marker in IDENTITY_ERROR_MARKERS):
                raise IdentityError(url, message.splitlines()[0]) from exc
            raise NavigationError(url, message.splitlines()[0] if message else type(exc).__name__) from exc

        if response is None:
            raise NavigationError(url, "no response")
        status = response.status
        if status in IDENTITY_STATUS_CODES:
            raise IdentityError(url, f"HTTP {status}", status=status)
        if status >= 400:
            raise NavigationError(url, f"HTTP {status}", status=status)
        return page

    async def close(self) -> None:
        await self._close_context()
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
        logger.info("Browser closed")

    async def _close_context(self) -> None:
        if self._context is not None:
            try:
                await self._context.close()
            except PlaywrightError as exc:
                logger.debug("Ignoring error while closing context: %s", exc)
        self._context = None
        self._page = None
        self._identity_key = None
