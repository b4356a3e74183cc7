"""DOM fallback: article metadata and content blocks from rendered HTML."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from . import selectors as sel
from .models import Code, ContentBlock, Heading, Image, Link, ListBlock, Paragraph, Quote
from .processing import clean_text
from .strategies import FieldStrategy, Root, attr_of, select_all, select_first, text_of

_LANGUAGE_RE = re.compile(r"language-([\w+#-]+)")
_BLOCK_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6", "p", "blockquote", "pre", "figure", "img", "ul", "ol")


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def article_fields(soup: BeautifulSoup, page_url: str) -> Dict[str, Any]:
    """Same field set as the state path, each with its own fallback chain."""
    author_link = select_first(soup, sel.ARTICLE_AUTHOR)
    publication_link = select_first(soup, sel.ARTICLE_PUBLICATION)

    series = None
    series_name = text_of(soup, sel.ARTICLE_SERIES_NAME)
    if series_name:
        series = {
            "name": series_name,
            "url": _absolute(page_url, attr_of(soup, sel.ARTICLE_SERIES_NAME, "href")),
            "part": text_of(soup, sel.ARTICLE_SERIES_PART),
        }

    publication = None
    if publication_link is not None:
        publication = {
            "name": clean_text(publication_link.get_text(" ", strip=True)),
            "url": _absolute(page_url, str(publication_link.get("href") or "")),
            "logo": _absolute(page_url, attr_of(soup, sel.PUBLICATION_LOGO, "src")),
            "description": text_of(soup, sel.PUBLICATION_DESCRIPTION),
            "followers": text_of(soup, sel.PUBLICATION_FOLLOWERS),
        }

    date = FieldStrategy(
        "date",
        [
            lambda: attr_of(soup, sel.ARTICLE_DATE, "datetime"),
            lambda: text_of(soup, sel.ARTICLE_DATE),
        ],
        default="",
    ).resolve()

    main_image = FieldStrategy(
        "main_image",
        [
            lambda: attr_of(soup, sel.ARTICLE_MAIN_IMAGE, "src"),
            lambda: attr_of(soup, sel.ARTICLE_MAIN_IMAGE, "content"),
        ],
        default="",
    ).resolve()

    author_url = ""
    if author_link is not None:
        author_url = str(author_link.get("href") or author_link.get("content") or "")

    return {
        "title": clean_text(text_of(soup, sel.ARTICLE_TITLE)),
        "subtitle": clean_text(text_of(soup, sel.ARTICLE_SUBTITLE)),
        "author": clean_text(text_of(soup, sel.ARTICLE_AUTHOR)),
        "author_url": _absolute(page_url, author_url) if author_url.startswith(("/", "http")) else "",
        "date": date,
        "read_time": text_of(soup, sel.ARTICLE_READ_TIME),
        "claps": text_of(soup, sel.ARTICLE_CLAPS),
        "responses": text_of(soup, sel.ARTICLE_RESPONSES),
        "tags": _unique(clean_text(a.get_text(" ", strip=True)) for a in select_all(soup, sel.ARTICLE_TAGS)),
        "main_image": _absolute(page_url, main_image),
        "is_premium": select_first(soup, sel.PREMIUM_BADGE) is not None,
        "series": series,
        "publication": publication,
    }


def content_blocks(soup: Root, page_url: str = "") -> List[ContentBlock]:
    """Ordered blocks from the article body, one pass in document order."""
    body = select_first(soup, sel.ARTICLE_BODY)
    if body is None:
        return []

    blocks: List[ContentBlock] = []
    for element in body.find_all(_BLOCK_TAGS):
        if _nested_in_block(element, body):
            continue
        block = _element_block(element, page_url)
        if block is not None:
            blocks.append(block)
        blocks.extend(_element_links(element, page_url))
    return blocks


def _nested_in_block(element: Tag, body: Tag) -> bool:
    """True when an ancestor below ``body`` is itself emitted as a block."""
    for parent in element.parents:
        if parent is body:
            return False
        if parent.name in _BLOCK_TAGS:
            return True
    return False


def _element_block(element: Tag, page_url: str) -> Optional[ContentBlock]:
    name = element.name
    if name in ("h1", "h2", "h3", "h4", "h5", "h6"):
        text = clean_text(element.get_text(" ", strip=True))
        return Heading(level=min(int(name[1]), 4), text=text) if text else None
    if name == "p":
        text = clean_text(element.get_text(" ", strip=True))
        return Paragraph(text=text) if text else None
    if name == "blockquote":
        cite = element.find("cite")
        author = clean_text(cite.get_text(" ", strip=True)) if cite else ""
        if cite:
            cite.extract()
        text = clean_text(element.get_text(" ", strip=True))
        return Quote(text=text, author=author) if text else None
    if name == "pre":
        code = element.find("code") or element
        classes = " ".join(code.get("class") or []) + " " + " ".join(element.get("class") or [])
        match = _LANGUAGE_RE.search(classes)
        return Code(language=match.group(1) if match else "unknown", text=element.get_text().strip("\n"))
    if name in ("figure", "img"):
        img = element if name == "img" else element.find("img")
        if img is None:
            return None
        caption_el = element.find("figcaption") if name == "figure" else None
        caption = clean_text(caption_el.get_text(" ", strip=True)) if caption_el else str(img.get("data-caption") or "")
        return Image(src=_absolute(page_url, str(img.get("src") or "")), alt=str(img.get("alt") or ""), caption=caption)
    if name in ("ul", "ol"):
        items = tuple(
            clean_text(li.get_text(" ", strip=True)) for li in element.find_all("li") if li.get_text(strip=True)
        )
        return ListBlock(list_type=name, items=items) if items else None
    return None


def _element_links(element: Tag, page_url: str) -> List[Link]:
    if element.name in ("pre", "img"):
        return []
    links = []
    for anchor in element.find_all("a", href=True):
        links.append(
            Link(
                text=clean_text(anchor.get_text(" ", strip=True)),
                url=_absolute(page_url, str(anchor["href"])),
                title=str(anchor.get("title") or ""),
            )
        )
    return links


def _absolute(page_url: str, href: str) -> str:
    if not href:
        return ""
    return urljoin(page_url, href) if page_url else href


def _unique(values) -> List[str]:
    seen = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen
