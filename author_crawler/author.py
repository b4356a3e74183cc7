from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Tag

from . import selectors as sel
from .base import BaseExtractor
from .classifier import classify, normalize_url
from .config import SORT_OLDEST, SORT_POPULAR, CrawlOptions
from .models import ARTICLE, AUTHOR, ArticleSummary, AuthorRecord
from .processing import clean_text, extract_reading_time, parse_count, parse_date, to_datetime
from .strategies import FieldStrategy, attr_of, select_all, select_first, text_of

logger = logging.getLogger("author_crawler")


class AuthorExtractor(BaseExtractor):
    """Profile fields plus the author's article list.

    The list is paginated by clicking a load-more control or scrolling to the
    bottom. The loop ends on the first of: ``max_posts`` summaries collected,
    ``stall_limit`` consecutive iterations without page growth, or
    ``max_scrolls`` iterations.
    """

    kind = AUTHOR

    async def extract(self, page: Any, options: CrawlOptions, **kwargs: Any) -> AuthorRecord:
        await self.wait_for_any(page, sel.AUTHOR_READY)
        await self.wait_for_any(page, sel.ARTICLE_LIST_READY)
        await self.pause(page, self.settings.settle_delay)

        url = page.url
        profile = parse_profile(await self.snapshot(page), url)
        summaries = await self.collect_summaries(page, options.max_posts)
        filtered = filter_articles(summaries, options)
        logger.info("Filtered %d articles to %d for %s", len(summaries), len(filtered), url)

        return AuthorRecord(
            name=profile["name"],
            bio=profile["bio"],
            username=profile["username"],
            url=url,
            avatar=profile["avatar"],
            followers=profile["followers"],
            following=profile["following"],
            social_links=tuple(profile["social_links"]),
            publications=tuple(profile["publications"]),
            article_refs=tuple(filtered),
            total_discovered=len(summaries),
            scraped_at=self.now_iso(),
        )

    async def collect_summaries(self, page: Any, max_posts: int) -> List[ArticleSummary]:
        collected: Dict[str, ArticleSummary] = {}
        stalls = 0

        for iteration in range(self.settings.max_scrolls):
            visible = parse_summaries(await self.snapshot(page), page.url)
            before = len(collected)
            for summary in visible:
                key = normalize_url(summary.url)
                if key not in collected:
                    collected[key] = replace(summary, index=len(collected))
            logger.debug(
                "Scroll %d: %d visible, %d new, %d total",
                iteration + 1,
                len(visible),
                len(collected) - before,
                len(collected),
            )

            if len(collected) >= max_posts:
                break

            height_before = await page.evaluate(sel.SCROLL_HEIGHT_JS)
            await self.load_more(page)
            await self.pause(page, self.settings.scroll_delay)
            height_after = await page.evaluate(sel.SCROLL_HEIGHT_JS)

            if height_after > height_before:
                stalls = 0
            else:
                stalls += 1
                if stalls >= self.settings.stall_limit:
                    logger.info("Page height unchanged for %d scrolls; assuming end of list", stalls)
                    break

        return list(collected.values())

    async def load_more(self, page: Any) -> None:
        """Click an enabled load-more control, or scroll to the bottom."""
        for selector in sel.LOAD_MORE:
            button = await page.query_selector(selector)
            if button is not None and await button.is_enabled():
                await button.click()
                return
        await page.evaluate(sel.SCROLL_TO_BOTTOM_JS)


def parse_profile(soup: BeautifulSoup, page_url: str) -> Dict[str, Any]:
    name = FieldStrategy(
        "name",
        [
            lambda: text_of(soup, sel.AUTHOR_NAME),
            lambda: attr_of(soup, ('meta[property="og:title"]',), "content").split(" – ")[0],
        ],
        default="",
    ).resolve()

    username = FieldStrategy(
        "username",
        [
            lambda: _handle_from_url(page_url),
            lambda: attr_of(soup, ('meta[property="profile:username"]',), "content"),
        ],
        default="",
    ).resolve()

    social_links = []
    for link in select_all(soup, sel.AUTHOR_SOCIAL_LINKS):
        href = str(link.get("href") or "")
        if href:
            platform = link.get("aria-label") or clean_text(link.get_text(" ", strip=True)) or "unknown"
            social_links.append({"platform": str(platform), "url": urljoin(page_url, href)})

    publications = []
    for link in select_all(soup, sel.AUTHOR_PUBLICATIONS):
        href = str(link.get("href") or "")
        publications.append(
            {
                "name": clean_text(link.get_text(" ", strip=True)),
                "url": urljoin(page_url, href) if href else "",
                "role": text_of(link, sel.PUBLICATION_ROLE) or "writer",
            }
        )

    return {
        "name": clean_text(name),
        "bio": clean_text(text_of(soup, sel.AUTHOR_BIO)),
        "username": username.lstrip("@"),
        "avatar": attr_of(soup, sel.AUTHOR_AVATAR, "src"),
        "followers": parse_count(text_of(soup, sel.AUTHOR_FOLLOWERS)),
        "following": parse_count(text_of(soup, sel.AUTHOR_FOLLOWING)),
        "social_links": social_links,
        "publications": publications,
    }


def _handle_from_url(url: str) -> str:
    parts = urlsplit(url)
    segments = [s for s in parts.path.split("/") if s]
    if segments and segments[0].startswith("@"):
        return segments[0][1:]
    host = parts.hostname or ""
    if host.endswith(".medium.com"):
        return host[: -len(".medium.com")]
    return ""


def parse_summaries(soup: BeautifulSoup, page_url: str) -> List[ArticleSummary]:
    """Article cards currently rendered on the profile page, in page order.

    Falls back to bare article links when no card container matches.
    """
    summaries: List[ArticleSummary] = []
    seen = set()
    cards = select_all(soup, sel.ARTICLE_CARDS)

    if cards:
        for card in cards:
            summary = _card_summary(card, page_url)
            if summary is None:
                continue
            key = normalize_url(summary.url)
            if key not in seen:
                seen.add(key)
                summaries.append(replace(summary, index=len(summaries)))
        return summaries

    handle = _handle_from_url(page_url).lower()
    for anchor in soup.find_all("a", href=True):
        url = urljoin(page_url, str(anchor["href"]))
        title = clean_text(anchor.get_text(" ", strip=True))
        if not title or classify(url) != ARTICLE or not _owned_by(url, handle):
            continue
        key = normalize_url(url)
        if key not in seen:
            seen.add(key)
            summaries.append(ArticleSummary(url=normalize_url(url), title=title, index=len(summaries)))
    return summaries


def _owned_by(url: str, handle: str) -> bool:
    """Bare links count only when they sit under the profile's handle, or are /p/<id> links."""
    if not handle:
        return True
    path = urlsplit(url).path
    if path.startswith("/p/"):
        return True
    return _handle_from_url(url).lower() == handle


def _card_summary(card: Tag, page_url: str) -> Optional[ArticleSummary]:
    url = ""
    link_text = ""
    for anchor in card.find_all("a", href=True):
        candidate = urljoin(page_url, str(anchor["href"]))
        if classify(candidate) == ARTICLE:
            url = normalize_url(candidate)
            link_text = clean_text(anchor.get_text(" ", strip=True))
            break
    if not url:
        return None

    title = clean_text(text_of(card, sel.SUMMARY_TITLE)) or link_text
    if not title:
        return None

    date_el = select_first(card, sel.SUMMARY_DATE)
    raw_date = ""
    published_at = None
    if date_el is not None:
        raw_date = clean_text(date_el.get_text(" ", strip=True))
        published_at = parse_date(str(date_el.get("datetime") or "")) or parse_date(raw_date)

    subtitle = clean_text(text_of(card, sel.SUMMARY_SUBTITLE))
    if subtitle == title:
        subtitle = ""

    return ArticleSummary(
        url=url,
        title=title,
        subtitle=subtitle,
        date=raw_date,
        published_at=published_at,
        read_time=extract_reading_time(text_of(card, sel.SUMMARY_READ_TIME)),
        claps=parse_count(text_of(card, sel.SUMMARY_CLAPS)),
        responses=parse_count(text_of(card, sel.SUMMARY_RESPONSES)),
        tags=tuple(_tag_names(select_all(card, sel.SUMMARY_TAGS))),
        is_premium=select_first(card, sel.PREMIUM_BADGE) is not None,
    )


def _tag_names(anchors: Iterable[Tag]) -> List[str]:
    names: List[str] = []
    for anchor in anchors:
        name = clean_text(anchor.get_text(" ", strip=True))
        if name and name not in names:
            names.append(name)
    return names


def filter_articles(summaries: Sequence[ArticleSummary], options: CrawlOptions) -> List[ArticleSummary]:
    """Apply tag, date-range and premium filters, sort, then cap at ``max_posts``.

    - Tags match case-insensitively when either side contains the other.
      With a tag filter set, untagged articles are dropped.
    - Articles whose date cannot be parsed pass the date-range filter.
    - Sorting is stable; dateless articles sort after dated ones.
    """
    result = list(summaries)

    if options.tags:
        wanted = [t.lower() for t in options.tags]
        result = [s for s in result if _tags_match(s.tags, wanted)]

    if options.date_range is not None:
        start, end = options.date_range.start, options.date_range.end
        kept = []
        for summary in result:
            published = _published(summary)
            if published is not None:
                if start is not None and published < start:
                    continue
                if end is not None and published > end:
                    continue
            kept.append(summary)
        result = kept

    if not options.premium_content:
        result = [s for s in result if not s.is_premium]

    if options.sort_by == SORT_POPULAR:
        result.sort(key=lambda s: s.claps + s.responses, reverse=True)
    else:
        dated: List[Tuple[datetime, ArticleSummary]] = []
        undated: List[ArticleSummary] = []
        for summary in result:
            published = _published(summary)
            if published is None:
                undated.append(summary)
            else:
                dated.append((published, summary))
        dated.sort(key=lambda pair: pair[0], reverse=options.sort_by != SORT_OLDEST)
        result = [summary for _, summary in dated] + undated

    return result[: options.max_posts]


def _tags_match(article_tags: Iterable[str], wanted: Sequence[str]) -> bool:
    tags = [t.lower() for t in article_tags if t]
    return any(w in t or t in w for w in wanted for t in tags)


def _published(summary: ArticleSummary) -> Optional[datetime]:
    return to_datetime(summary.published_at) if summary.published_at else to_datetime(summary.date)
