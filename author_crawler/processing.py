"""Text, counter and date normalisation shared by both extraction paths."""

from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Tuple

from dateutil import parser as dateparser
from dateutil.relativedelta import relativedelta

_WS_RE = re.compile(r"\s+")
_ZERO_WIDTH_RE = re.compile("[\u200b\u200c\u200d\ufeff]")
_COUNT_RE = re.compile(r"(\d[\d,]*(?:\.\d+)?)\s*([KkMmBb])?")
_READ_TIME_RE = re.compile(r"(\d+)\s*(min|minute|hr|hour)", re.IGNORECASE)

_ISO_RE = re.compile(r"\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?")
_MONTH_DAY_YEAR_RE = re.compile(r"([A-Za-z]{3,9})\.?\s+(\d{1,2}),?\s+(\d{4})")
_DAY_MONTH_YEAR_RE = re.compile(r"(\d{1,2})\s+([A-Za-z]{3,9})\.?,?\s+(\d{4})")
_SLASH_RE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")
_DASH_RE = re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})")
_MONTH_DAY_RE = re.compile(r"\b([A-Za-z]{3,9})\.?\s+(\d{1,2})\b")
_RELATIVE_RE = re.compile(
    r"\b(\d+|an?)\s+(second|minute|hour|day|week|month|year)s?\s+ago\b", re.IGNORECASE
)

_MULTIPLIERS = {"k": 1_000, "m": 1_000_000, "b": 1_000_000_000}


def clean_text(text: Any) -> str:
    """Collapse whitespace and strip zero-width characters."""
    if not text or not isinstance(text, str):
        return ""
    text = _ZERO_WIDTH_RE.sub("", text.replace("\u00a0", " "))
    return _WS_RE.sub(" ", text).strip()


def word_count(text: str) -> int:
    return len([w for w in _WS_RE.split(text) if w])


def parse_count(value: Any) -> int:
    """Turn engagement counters such as ``"1.2K"`` or ``"1,024"`` into ints."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return max(int(value), 0)
    if not value or not isinstance(value, str):
        return 0
    match = _COUNT_RE.search(value)
    if not match:
        return 0
    number = float(match.group(1).replace(",", ""))
    suffix = (match.group(2) or "").lower()
    return int(round(number * _MULTIPLIERS.get(suffix, 1)))


def extract_reading_time(value: Any) -> int:
    """Minutes from ``"5 min read"``, ``"1 hr"`` or a numeric minute value."""
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, (int, float)):
        return int(math.ceil(value)) if value > 0 else 0
    if not isinstance(value, str):
        return 0
    match = _READ_TIME_RE.search(value)
    if not match:
        return 0
    minutes = int(match.group(1))
    if match.group(2).lower() in ("hr", "hour"):
        minutes *= 60
    return minutes


def calculate_read_time(words: int, words_per_minute: int = 200) -> int:
    if words <= 0:
        return 0
    return int(math.ceil(words / words_per_minute))


def to_iso(value: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_date(text: Any, now: Optional[datetime] = None) -> Optional[str]:
    """Normalise a free-form date string to ISO-8601, or None."""
    parsed = to_datetime(text, now=now)
    return to_iso(parsed) if parsed is not None else None


def to_datetime(text: Any, now: Optional[datetime] = None) -> Optional[datetime]:
    """Cascade: absolute formats, then ``N units ago``, then a generic parse.

    Returns an aware UTC datetime, or None when every stage fails.
    """
    if isinstance(text, datetime):
        return _as_utc(text)
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        # Epoch milliseconds, as the embedded state stores timestamps.
        try:
            return datetime.fromtimestamp(text / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not text or not isinstance(text, str):
        return None
    text = clean_text(text)
    if now is None:
        now = datetime.now(timezone.utc)
    now = _as_utc(now)

    parsed = _parse_absolute(text, now)
    if parsed is not None:
        return parsed

    parsed = _parse_relative(text, now)
    if parsed is not None:
        return parsed

    # a bare number is a count, not a date
    if text.isdigit():
        return None
    default = now.replace(hour=0, minute=0, second=0, microsecond=0, tzinfo=None)
    try:
        return _as_utc(dateparser.parse(text, default=default))
    except (ValueError, OverflowError, TypeError):
        return None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_absolute(text: str, now: datetime) -> Optional[datetime]:
    match = _ISO_RE.search(text)
    if match:
        candidate = match.group(0).replace("Z", "+00:00")
        try:
            return _as_utc(datetime.fromisoformat(candidate))
        except ValueError:
            pass

    match = _MONTH_DAY_YEAR_RE.search(text)
    if match:
        parsed = _strptime(f"{match.group(1)} {match.group(2)} {match.group(3)}", ("%B %d %Y", "%b %d %Y"))
        if parsed is not None:
            return parsed

    match = _DAY_MONTH_YEAR_RE.search(text)
    if match:
        parsed = _strptime(f"{match.group(1)} {match.group(2)} {match.group(3)}", ("%d %B %Y", "%d %b %Y"))
        if parsed is not None:
            return parsed

    match = _SLASH_RE.search(text)
    if match:
        parsed = _strptime(match.group(0), ("%m/%d/%Y", "%d/%m/%Y"))
        if parsed is not None:
            return parsed

    match = _DASH_RE.search(text)
    if match:
        try:
            year, month, day = (int(g) for g in match.groups())
            return datetime(year, month, day, tzinfo=timezone.utc)
        except ValueError:
            pass

    # "Jan 5" on a listing means the current year, or last year if that
    # would land in the future.
    match = _MONTH_DAY_RE.search(text)
    if match:
        parsed = _strptime(f"{match.group(1)} {match.group(2)} {now.year}", ("%B %d %Y", "%b %d %Y"))
        if parsed is not None:
            if parsed > now:
                parsed = parsed - relativedelta(years=1)
            return parsed
    return None


def _strptime(value: str, formats: Tuple[str, ...]) -> Optional[datetime]:
    for fmt in formats:
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def _parse_relative(text: str, now: datetime) -> Optional[datetime]:
    match = _RELATIVE_RE.search(text)
    if not match:
        return None
    raw_amount, unit = match.group(1).lower(), match.group(2).lower()
    amount = 1 if raw_amount in ("a", "an") else int(raw_amount)
    if unit == "second":
        return now - timedelta(seconds=amount)
    if unit == "minute":
        return now - timedelta(minutes=amount)
    if unit == "hour":
        return now - timedelta(hours=amount)
    if unit == "day":
        return now - timedelta(days=amount)
    if unit == "week":
        return now - timedelta(weeks=amount)
    if unit == "month":
        return now - relativedelta(months=amount)
    return now - relativedelta(years=amount)
