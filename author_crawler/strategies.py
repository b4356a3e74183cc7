from __future__ import annotations

from typing import Any, Callable, Generic, Iterable, List, Optional, Sequence, TypeVar, Union

from bs4 import BeautifulSoup, Tag

from .processing import clean_text

Root = Union[BeautifulSoup, Tag]

T = TypeVar("T")

Attempt = Callable[[], Optional[T]]


class FieldStrategy(Generic[T]):
    """An ordered list of independent attempts for one field.

    Attempts are tried in priority order; the first non-empty result wins.
    An attempt that raises LookupError/ValueError/TypeError/AttributeError is
    treated as empty, so a broken candidate never hides the ones after it."""

    def __init__(self, name: str, attempts: Iterable[Attempt], default: T) -> None:
        self.name = name
        self._attempts: List[Attempt] = list(attempts)
        self._default = default

    def resolve(self) -> T:
        for attempt in self._attempts:
            try:
                value = attempt()
            except (LookupError, ValueError, TypeError, AttributeError):
                continue
            if _present(value):
                return value
        return self._default


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict, set)):
        return bool(value)
    return True


def select_first(root: Root, selectors: Sequence[str]) -> Optional[Tag]:
    """First element matching any selector, tried in priority order."""
    for selector in selectors:
        element = root.select_one(selector)
        if element is not None:
            return element
    return None


def select_all(root: Root, selectors: Sequence[str]) -> List[Tag]:
    """All elements for the first selector that matches anything."""
    for selector in selectors:
        elements = root.select(selector)
        if elements:
            return elements
    return []


def text_of(root: Root, selectors: Sequence[str]) -> str:
    """Cleaned text of the first candidate that has any; ``<meta>`` yields its content."""
    for selector in selectors:
        element = root.select_one(selector)
        if element is None:
            continue
        if element.name == "meta":
            value = clean_text(str(element.get("content") or ""))
        else:
            value = clean_text(element.get_text(" ", strip=True))
        if value:
            return value
    return ""


def attr_of(root: Root, selectors: Sequence[str], attr: str) -> str:
    """Attribute value from the first candidate that carries it."""
    for selector in selectors:
        for element in root.select(selector):
            value = element.get(attr)
            if isinstance(value, list):
                value = " ".join(value)
            if value:
                return str(value).strip()
    return ""
