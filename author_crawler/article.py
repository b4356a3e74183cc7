from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError

from . import selectors as sel
from .base import BaseExtractor
from .config import CrawlOptions
from .dom import article_fields, content_blocks, parse_html
from .errors import ExtractionError, StateParseError
from .models import (
    ARTICLE,
    ArticleContent,
    ArticleRecord,
    Comment,
    ContentBlock,
    Publication,
    PublicationDetails,
    Series,
    block_text,
)
from .processing import calculate_read_time, clean_text, extract_reading_time, parse_count, parse_date, word_count
from .state_graph import StateGraph, paragraph_blocks, post_fields
from .strategies import attr_of, select_all, text_of

logger = logging.getLogger("author_crawler")

METHOD_STATE = "state"
METHOD_DOM = "dom"


def build_content(blocks: List[ContentBlock]) -> ArticleContent:
    """Flatten blocks into one text body with a whitespace word count."""
    text = clean_text(" ".join(t for t in (block_text(b) for b in blocks) if t))
    return ArticleContent(blocks=tuple(blocks), text_content=text, word_count=word_count(text))


class ArticleExtractor(BaseExtractor):
    """Structured state first, DOM second.

    The state blob gives exact metadata and paragraph types when present.
    If it is missing, malformed, or does not point at a post, the same
    fields are read from the rendered HTML instead.
    """

    kind = ARTICLE

    async def extract(
        self,
        page: Any,
        options: CrawlOptions,
        paywall_info: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> ArticleRecord:
        await self.wait_for_any(page, sel.ARTICLE_READY, timeout=self.settings.page_timeout)
        await self.pause(page, self.settings.settle_delay)
        if options.include_content:
            await self.simulate_reading(page)

        url = page.url
        html = await page.content()
        soup = parse_html(html)
        fields, blocks, method = self.read_fields(html, soup, url)

        if not fields["title"] and not blocks:
            raise ExtractionError(f"No title or content found on {url}")

        content = build_content(blocks)
        read_time = extract_reading_time(fields["read_time"]) or calculate_read_time(
            content.word_count, self.settings.words_per_minute
        )

        comments = None
        if options.include_comments:
            comments = tuple(await self.extract_comments(page))

        details = None
        publication = fields.get("publication") or {}
        if options.include_publication and publication.get("name"):
            details = PublicationDetails(
                name=publication["name"],
                url=publication.get("url") or "",
                logo=publication.get("logo") or "",
                description=publication.get("description") or "",
                followers=parse_count(publication.get("followers")),
            )

        series = fields.get("series")
        logger.info("Extracted %s via %s path (%d words)", url, method, content.word_count)

        return ArticleRecord(
            url=url,
            title=fields["title"],
            subtitle=fields["subtitle"],
            author=fields["author"],
            author_url=fields["author_url"],
            publish_date=parse_date(fields["date"]),
            read_time_minutes=read_time,
            claps=parse_count(fields["claps"]),
            responses=parse_count(fields["responses"]),
            tags=tuple(fields["tags"]),
            publication=Publication(name=publication.get("name") or "", url=publication.get("url") or ""),
            main_image=fields["main_image"],
            is_premium=bool(fields["is_premium"]) or _gated(paywall_info),
            series=Series(**series) if series else None,
            content=content if options.include_content else None,
            comments=comments,
            publication_details=details,
            paywall_info=paywall_info,
            extraction_method=method,
            scraped_at=self.now_iso(),
        )

    def read_fields(
        self, html: str, soup: BeautifulSoup, url: str
    ) -> Tuple[Dict[str, Any], List[ContentBlock], str]:
        """Metadata and blocks from the best available source.

        Fields the state leaves empty are filled from the DOM, so a sparse
        blob never loses data the page itself shows.
        """
        dom = article_fields(soup, url)
        try:
            graph = StateGraph.from_html(html)
        except StateParseError as exc:
            logger.debug("Falling back to DOM on %s: %s", url, exc)
            graph = None

        post = graph.root_post() if graph is not None else None
        if graph is None or post is None:
            return dom, content_blocks(soup, url), METHOD_DOM

        state = post_fields(graph, post)
        merged = {key: state.get(key) or dom.get(key) for key in dom}
        merged["is_premium"] = bool(state["is_premium"] or dom["is_premium"])
        blocks = paragraph_blocks(graph, graph.paragraphs(post)) or content_blocks(soup, url)
        return merged, blocks, METHOD_STATE

    async def simulate_reading(self, page: Any) -> None:
        """Scroll through the page in viewport steps with pauses, then return to top."""
        try:
            height = await page.evaluate(sel.SCROLL_HEIGHT_JS) or 0
            viewport = await page.evaluate(sel.VIEWPORT_HEIGHT_JS) or self.settings.viewport[1]
            steps = max(1, math.ceil(height / viewport))
            for step in range(steps):
                await page.evaluate(sel.SCROLL_TO_JS, step * viewport)
                await self.pause(page, self.settings.reading_pause)
                await page.mouse.move(
                    self._rng.uniform(100, 900),
                    self._rng.uniform(100, 700),
                    steps=self._rng.randint(5, 14),
                )
            await page.evaluate(sel.SCROLL_TO_JS, 0)
        except PlaywrightError as exc:
            logger.warning("Reading simulation failed on %s: %s", page.url, exc)

    async def extract_comments(self, page: Any) -> List[Comment]:
        section = None
        for selector in sel.COMMENTS_SECTION:
            section = await page.query_selector(selector)
            if section is not None:
                break
        if section is None:
            return []

        try:
            await section.scroll_into_view_if_needed()
            await page.wait_for_timeout(2000)
        except PlaywrightError as exc:
            logger.warning("Could not scroll to comments on %s: %s", page.url, exc)

        comments = parse_comments(await self.snapshot(page), page.url)
        logger.info("Extracted %d comments from %s", len(comments), page.url)
        return comments


def parse_comments(soup: BeautifulSoup, page_url: str) -> List[Comment]:
    comments: List[Comment] = []
    for element in select_all(soup, sel.COMMENT):
        content = clean_text(text_of(element, sel.COMMENT_CONTENT))
        if not content:
            continue
        author_href = attr_of(element, sel.COMMENT_AUTHOR, "href")
        comments.append(
            Comment(
                author=clean_text(text_of(element, sel.COMMENT_AUTHOR)),
                author_url=_absolute(page_url, author_href),
                content=content,
                date=parse_date(attr_of(element, sel.COMMENT_DATE, "datetime") or text_of(element, sel.COMMENT_DATE)),
                claps=parse_count(text_of(element, sel.COMMENT_CLAPS)),
                index=len(comments),
            )
        )
    return comments


def _absolute(page_url: str, href: str) -> str:
    return urljoin(page_url, href) if href else ""


def _gated(paywall_info: Optional[Dict[str, Any]]) -> bool:
    if not paywall_info:
        return False
    detection = paywall_info.get("detection") or {}
    return detection.get("type") in ("premium", "member_only")
