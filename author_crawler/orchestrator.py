"""Crawl orchestration: one queue, one worker, one navigation in flight.

For every task the orchestrator takes a rate-limit token, applies the
current identity, navigates, classifies the landed URL and hands the page to
the matching extractor. That whole sequence is the unit the retry policy
repeats. The orchestrator is the only writer of RunStats.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import random
import time
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Dict, Optional, Sequence, Set, Tuple

from playwright.async_api import Error as PlaywrightError

from .classifier import classify, normalize_url
from .config import CrawlOptions, CrawlSettings
from .errors import CrawlerError, ExtractionError, IdentityError, NavigationError, UnknownPageError
from .factory import ExtractorFactory
from .metrics import RunStats
from .models import (
    ARTICLE,
    AUTHOR,
    PAYWALL_MEMBER_ONLY,
    PAYWALL_PREMIUM,
    UNKNOWN,
    ArticleRecord,
    AuthorRecord,
    CrawlResult,
    CrawlTask,
    Identity,
    PaywallResult,
)
from .paywall import PaywallDetector
from .rate_limiter import RateLimiter
from .retry import RetryPolicy, with_retry
from .rotation import RotationManager, build_pool
from .storage import ResultStore

logger = logging.getLogger("author_crawler")

ProgressCallback = Callable[[str, Dict[str, Any]], Any]
ArticleCallback = Callable[[ArticleRecord], Any]

RETRYABLE = (NavigationError, ExtractionError, PlaywrightError, asyncio.TimeoutError)


class CrawlCancelled(CrawlerError):
    """Raised inside an attempt that starts after cancel() was requested."""


class _Skipped:
    """Marker result for a gated article the run is not allowed to keep."""

    def __init__(self, detection: PaywallResult) -> None:
        self.detection = detection


class CrawlOrchestrator:
    """Runs one author crawl against a browser session.

    The session must provide ``start()``, ``apply_identity(identity)``,
    ``navigate(url) -> page`` and ``close()``. Rate limiter, rotation pool,
    retry policy and stats are built fresh for each run().
    """

    def __init__(
        self,
        session: Any,
        settings: Optional[CrawlSettings] = None,
        identities: Optional[Sequence[Identity]] = None,
        factory: Optional[ExtractorFactory] = None,
        paywall: Optional[PaywallDetector] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_article: Optional[ArticleCallback] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._session = session
        self._settings = settings or CrawlSettings()
        self._identities = list(identities) if identities else build_pool()
        self._factory = factory or ExtractorFactory(settings=self._settings, rng=rng)
        self._paywall = paywall or PaywallDetector(truncation_threshold=self._settings.truncation_threshold)
        self._on_progress = on_progress
        self._on_article = on_article
        self._sleep = sleep
        self._clock = clock
        self._monotonic = monotonic
        self._cancelled = asyncio.Event()

        self.stats = RunStats(start_time=clock())
        self.rotation = RotationManager(self._identities, self._settings.rotation_interval)
        self._identity: Optional[Identity] = None

    def cancel(self) -> None:
        """Stop dequeuing; the attempt in flight finishes, then the session closes."""
        if not self._cancelled.is_set():
            logger.info("Cancellation requested")
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    async def run(self, seed_url: str, options: CrawlOptions) -> CrawlResult:
        self.stats = RunStats(start_time=self._clock())
        self.rotation = RotationManager(self._identities, self._settings.rotation_interval)
        self._identity = self.rotation.next()

        limiter = RateLimiter(
            options.requests_per_second,
            jitter=self._settings.rate_jitter,
            clock=self._monotonic,
            sleep=self._sleep,
        )
        policy = RetryPolicy(
            max_attempts=self._settings.max_attempts,
            initial_delay=self._settings.retry_initial_delay,
            max_delay=self._settings.retry_max_delay,
            retry_on=RETRYABLE,
        )
        store = ResultStore()
        queue: Deque[CrawlTask] = deque([CrawlTask(url=seed_url, kind=classify(seed_url))])
        enqueued: Set[str] = {normalize_url(seed_url)}
        author: Optional[AuthorRecord] = None
        processed_articles = 0

        if options.use_proxy and all(i.proxy_endpoint is None for i in self._identities):
            logger.warning("Proxy use requested but no proxy endpoints configured; using direct connection")

        try:
            await self._session.start()
            while queue and not self.cancelled:
                if self.stats.successful_extractions >= options.max_posts:
                    logger.info("Reached maxPosts=%d", options.max_posts)
                    break
                task = queue.popleft()

                try:
                    kind, outcome = await with_retry(
                        lambda: self._attempt(task, options, limiter),
                        policy,
                        on_retry=self._on_retry,
                        sleep=self._sleep,
                    )
                except CrawlCancelled:
                    break
                except UnknownPageError as exc:
                    logger.warning("Skipping unknown page %s: %s", task.url, exc)
                    continue
                except Exception as exc:  # noqa: BLE001
                    self.stats.record_error()
                    self.rotation.mark_failure(self._identity)
                    logger.error(
                        "Giving up on %s after %d attempt(s): %s: %s",
                        task.url,
                        task.attempts,
                        type(exc).__name__,
                        exc,
                    )
                    if task.kind == ARTICLE:
                        processed_articles += 1
                    self._rotate("exhausted")
                    continue

                if self.cancelled:
                    break

                if kind == AUTHOR:
                    author = outcome
                    added = self._enqueue_articles(author, queue, enqueued, options.max_posts)
                    logger.info("Author %r: %d articles queued", author.name, added)
                    self.rotation.mark_success(self._identity)
                    await self._progress("author")
                    continue

                processed_articles += 1
                if isinstance(outcome, _Skipped):
                    self.stats.record_paywall()
                    self.stats.record_skip()
                    logger.info("Skipping %s article %s", outcome.detection.type, task.url)
                else:
                    record, detection = outcome
                    if detection.has_paywall:
                        self.stats.record_paywall()
                    if store.append(record):
                        self.stats.record_article()
                        await self._emit_article(record)
                    else:
                        logger.info("Duplicate article %s ignored", record.url)
                self.rotation.mark_success(self._identity)
                await self._progress("article")
                self._maybe_rotate(processed_articles)
        finally:
            await self._session.close()

        snapshot = self.stats.snapshot(now=self._clock())
        await self._progress("done", snapshot)
        return CrawlResult(author=author, articles=store.records(), stats=snapshot)

    async def _attempt(self, task: CrawlTask, options: CrawlOptions, limiter: RateLimiter) -> Tuple[str, Any]:
        if self.cancelled:
            raise CrawlCancelled(task.url)
        task.attempts += 1
        await limiter.acquire()
        await self._session.apply_identity(self._identity)
        page = await self._session.navigate(task.url)

        kind = classify(page.url)
        if kind == AUTHOR and task.kind == ARTICLE:
            # removed posts redirect to the profile; only the seed may yield the author
            raise ExtractionError(f"Article {task.url} landed on profile page {page.url}")
        if kind == UNKNOWN:
            kind = task.kind
        if kind == UNKNOWN:
            raise UnknownPageError(page.url)

        extractor = self._factory.create_extractor(kind)
        if kind == AUTHOR:
            return kind, await extractor.extract(page, options)

        detection = await self._paywall.detect(page)
        handling = await self._paywall.handle(page, detection) if detection.has_paywall else None
        if detection.type in (PAYWALL_PREMIUM, PAYWALL_MEMBER_ONLY) and not options.premium_content:
            return kind, _Skipped(detection)

        paywall_info = {
            "detection": detection.to_dict(),
            "handling": handling.to_dict() if handling is not None else None,
        }
        record = await extractor.extract(page, options, paywall_info=paywall_info)
        return kind, (record, detection)

    async def _on_retry(self, attempt: int, exc: BaseException) -> None:
        if isinstance(exc, IdentityError):
            self.rotation.mark_failure(self._identity)
            self._rotate("identity_error")

    def _maybe_rotate(self, processed_articles: int) -> None:
        if self.rotation.should_rotate(processed_articles):
            self._rotate("cadence")

    def _rotate(self, reason: str) -> None:
        previous = self._identity
        self._identity = self.rotation.next()
        self.stats.record_rotation()
        logger.info(
            json.dumps(
                {
                    "event": "rotate_identity",
                    "reason": reason,
                    "from": previous.key if previous else None,
                    "to": self._identity.key,
                },
                ensure_ascii=False,
            )
        )

    def _enqueue_articles(
        self, author: AuthorRecord, queue: Deque[CrawlTask], enqueued: Set[str], max_posts: int
    ) -> int:
        added = 0
        for ref in author.article_refs:
            if added >= max_posts:
                break
            key = normalize_url(ref.url)
            if key in enqueued:
                continue
            enqueued.add(key)
            queue.append(CrawlTask(url=ref.url, kind=ARTICLE))
            added += 1
        return added

    async def _emit_article(self, record: ArticleRecord) -> None:
        if self._on_article is None:
            return
        result = self._on_article(record)
        if inspect.isawaitable(result):
            await result

    async def _progress(self, stage: str, snapshot: Optional[Dict[str, Any]] = None) -> None:
        snapshot = snapshot if snapshot is not None else self.stats.snapshot(now=self._clock())
        if self._on_progress is None:
            logger.info(json.dumps({"event": "progress", "stage": stage, **snapshot}, ensure_ascii=False))
            return
        result = self._on_progress(stage, snapshot)
        if inspect.isawaitable(result):
            await result
