from __future__ import annotations

from typing import List, Optional


class CrawlerError(Exception):
    """Base class for every error raised by the crawler."""


class ConfigError(CrawlerError):
    """Run options failed validation; carries every problem found."""

    def __init__(self, errors: List[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "invalid configuration")


class NavigationError(CrawlerError):
    """A navigation did not produce a usable page."""

    def __init__(self, url: str, reason: str, status: Optional[int] = None) -> None:
        self.url = url
        self.reason = reason
        self.status = status
        super().__init__(f"{reason}: {url}")


class IdentityError(NavigationError):
    """The target or the network rejected the current egress identity."""


class StateParseError(CrawlerError):
    """The embedded client state was present but could not be decoded."""


class ExtractionError(CrawlerError):
    """Neither extraction strategy produced anything usable."""


class UnknownPageError(CrawlerError):
    """The page classifier could not assign a page type."""
