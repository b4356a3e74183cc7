"""URL-only page classification.

Article URLs carry a short opaque hex post id, either as the tail of a slug
(``/@user/some-title-1a2b3c4d5e6f``), as a bare segment, or under ``/p/<id>``.
Author URLs carry an ``@handle`` first segment or a ``<handle>.medium.com``
host. Anything else is ``unknown``.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit, urlunsplit

from .models import ARTICLE, AUTHOR, UNKNOWN

_POST_ID_RE = re.compile(r"(?:^|-)([0-9a-f]{8,12})$")
_HANDLE_RE = re.compile(r"^@[A-Za-z0-9_.\-]+$")
_RESERVED_SUBDOMAINS = {"www", "medium", "help", "policy", "blog", "cdn-images-1", "miro"}
_PROFILE_TABS = {"", "latest", "about", "lists", "followers", "following", "has-recommended"}
_LIST_SEGMENTS = {"list", "lists"}


def classify(url: str) -> str:
    """Return ``author``, ``article`` or ``unknown`` for a URL."""
    if not url or not isinstance(url, str):
        return UNKNOWN
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return UNKNOWN
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return UNKNOWN

    segments = [s for s in parts.path.split("/") if s]
    if _is_article(segments):
        return ARTICLE

    host = parts.hostname or ""
    if segments and _HANDLE_RE.match(segments[0]) and _tail_is_profile(segments[1:]):
        return AUTHOR
    if _custom_subdomain(host) and _tail_is_profile(segments):
        return AUTHOR
    return UNKNOWN


def _is_article(segments) -> bool:
    if len(segments) >= 2 and segments[0] == "p" and _POST_ID_RE.search(segments[1]):
        return True
    for i, segment in enumerate(segments):
        if segment.startswith("@") or segment in _LIST_SEGMENTS:
            continue
        if _POST_ID_RE.search(segment.lower()):
            # reading lists carry the same id shape
            return i == 0 or segments[i - 1] not in _LIST_SEGMENTS
    return False


def _tail_is_profile(rest) -> bool:
    return len(rest) <= 1 and (not rest or rest[0] in _PROFILE_TABS)


def _custom_subdomain(host: str) -> bool:
    if not host.endswith(".medium.com"):
        return False
    sub = host[: -len(".medium.com")]
    return bool(sub) and "." not in sub and sub not in _RESERVED_SUBDOMAINS


def normalize_url(url: str) -> str:
    """De-duplication key: no query, no fragment, no trailing slash, lowercase host."""
    parts = urlsplit(url.strip())
    path = parts.path.rstrip("/") or "/"
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, "", ""))
