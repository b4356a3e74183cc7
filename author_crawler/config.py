"""Run options and crawler tunables."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .errors import ConfigError
from .processing import to_datetime

BASE_URL = "https://medium.com"
IMAGE_CDN = "https://miro.medium.com"

SORT_LATEST = "latest"
SORT_POPULAR = "popular"
SORT_OLDEST = "oldest"
SORT_CHOICES = (SORT_LATEST, SORT_POPULAR, SORT_OLDEST)

DEFAULT_MAX_POSTS = 50
MAX_POSTS_LIMIT = 1000
DEFAULT_REQUESTS_PER_SECOND = 1.0
MIN_REQUESTS_PER_SECOND = 0.1
MAX_REQUESTS_PER_SECOND = 5.0


@dataclass(frozen=True)
class DateRange:
    start: Optional[datetime] = None
    end: Optional[datetime] = None


@dataclass(frozen=True)
class CrawlOptions:
    """User-facing options for a single crawl run."""

    author_url: str
    max_posts: int = DEFAULT_MAX_POSTS
    include_content: bool = True
    include_comments: bool = False
    include_publication: bool = True
    tags: Tuple[str, ...] = ()
    requests_per_second: float = DEFAULT_REQUESTS_PER_SECOND
    use_proxy: bool = False
    premium_content: bool = False
    date_range: Optional[DateRange] = None
    sort_by: str = SORT_LATEST

    @classmethod
    def from_input(cls, data: Optional[Dict[str, Any]]) -> "CrawlOptions":
        """Validate and sanitise a raw input mapping (camelCase keys).

        Every problem is collected before raising so the caller sees the
        complete list in one ConfigError.
        """
        if not data:
            raise ConfigError(["input is required"])

        errors: List[str] = []

        author_url = data.get("authorUrl")
        if not isinstance(author_url, str) or not author_url.strip():
            errors.append("authorUrl is required and must be a string")
            author_url = ""
        else:
            author_url = author_url.strip()
            if not author_url.startswith(("http://", "https://")):
                errors.append("authorUrl must be an http(s) URL")

        max_posts = data.get("maxPosts", DEFAULT_MAX_POSTS)
        if isinstance(max_posts, bool) or not isinstance(max_posts, int) or not 1 <= max_posts <= MAX_POSTS_LIMIT:
            errors.append(f"maxPosts must be an integer between 1 and {MAX_POSTS_LIMIT}")

        rps = data.get("requestsPerSecond", DEFAULT_REQUESTS_PER_SECOND)
        if isinstance(rps, bool) or not isinstance(rps, (int, float)) or not (
            MIN_REQUESTS_PER_SECOND <= rps <= MAX_REQUESTS_PER_SECOND
        ):
            errors.append(
                f"requestsPerSecond must be a number between {MIN_REQUESTS_PER_SECOND} and {MAX_REQUESTS_PER_SECOND}"
            )

        sort_by = data.get("sortBy", SORT_LATEST)
        if sort_by not in SORT_CHOICES:
            errors.append(f"sortBy must be one of: {', '.join(SORT_CHOICES)}")

        flags: Dict[str, bool] = {}
        for key, default in (
            ("includeContent", True),
            ("includeComments", False),
            ("includePublication", True),
            ("useProxy", False),
            ("premiumContent", False),
        ):
            value = data.get(key, default)
            if not isinstance(value, bool):
                errors.append(f"{key} must be a boolean value")
                value = default
            flags[key] = value

        raw_tags = data.get("tags") or []
        tags: List[str] = []
        if not isinstance(raw_tags, list):
            errors.append("tags must be a list")
        else:
            for tag in raw_tags:
                if not isinstance(tag, str) or not tag.strip():
                    errors.append("all tags must be non-empty strings")
                    break
                tags.append(tag.strip().lower())

        date_range = None
        raw_range = data.get("dateRange")
        if raw_range is not None:
            if not isinstance(raw_range, dict):
                errors.append("dateRange must be an object")
            else:
                start = _parse_bound(raw_range.get("start"), "dateRange.start", errors)
                end = _parse_bound(raw_range.get("end"), "dateRange.end", errors)
                if start and end and start > end:
                    errors.append("dateRange.start must be before dateRange.end")
                if start or end:
                    date_range = DateRange(start=start, end=end)

        if errors:
            raise ConfigError(errors)

        return cls(
            author_url=author_url,
            max_posts=max_posts,
            include_content=flags["includeContent"],
            include_comments=flags["includeComments"],
            include_publication=flags["includePublication"],
            tags=tuple(tags),
            requests_per_second=float(rps),
            use_proxy=flags["useProxy"],
            premium_content=flags["premiumContent"],
            date_range=date_range,
            sort_by=sort_by,
        )


def _parse_bound(value: Any, name: str, errors: List[str]) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        errors.append(f"{name} must be a date string")
        return None
    parsed = to_datetime(value)
    if parsed is None:
        errors.append(f"{name} must be a valid date string")
    return parsed


@dataclass(frozen=True)
class CrawlSettings:
    """Tunables that are not exposed as run options.

    Times are in seconds unless the name says otherwise.
    """

    navigation_timeout: float = 60.0
    page_timeout: float = 30.0
    selector_timeout: float = 10.0

    max_attempts: int = 3
    retry_initial_delay: float = 1.0
    retry_max_delay: float = 10.0

    rate_jitter: Tuple[float, float] = (0.2, 1.0)
    settle_delay: Tuple[float, float] = (1.0, 2.0)
    scroll_delay: Tuple[float, float] = (1.0, 3.0)
    reading_pause: Tuple[float, float] = (1.0, 3.0)

    max_scrolls: int = 10
    stall_limit: int = 3

    words_per_minute: int = 200
    truncation_threshold: int = 500
    rotation_interval: int = 5

    viewport: Tuple[int, int] = (1920, 1080)
    headless: bool = True
