"""Tests for the CrawlOrchestrator run loop."""

import unittest

from author_crawler.config import CrawlOptions, CrawlSettings
from author_crawler.errors import IdentityError, NavigationError
from author_crawler.orchestrator import CrawlOrchestrator
from author_crawler.rotation import build_pool
from fakes import (
    AUTHOR_URL,
    FakeClock,
    FakeElement,
    FakePage,
    FakeSession,
    article_url,
    author_page_html,
    dom_article_html,
)

PREMIUM = 'div[data-testid="premiumBadge"]'


def _site(count, premium=()):
    pages = {AUTHOR_URL: FakePage(AUTHOR_URL, snapshots=[author_page_html(count)])}
    for i in range(count):
        elements = {PREMIUM: FakeElement("Premium")} if i in premium else {}
        pages[article_url(i)] = FakePage(
            article_url(i), snapshots=[dom_article_html(title=f"Article {i}")], elements=elements
        )
    return pages


def _options(**overrides):
    values = dict(author_url=AUTHOR_URL, max_posts=50)
    values.update(overrides)
    return CrawlOptions(**values)


class OrchestratorTestCase(unittest.IsolatedAsyncioTestCase):
    """Shared wiring: fake clock, three direct identities, recorded progress."""

    def setUp(self):
        """Reset the clock, identity pool and progress log."""
        self.clock = FakeClock()
        self.identities = build_pool(user_agents=["ua-1", "ua-2", "ua-3"])
        self.progress = []
        self.emitted = []

    def orchestrator(self, session, **kwargs):
        kwargs.setdefault("on_progress", lambda stage, snapshot: self.progress.append((stage, snapshot)))
        kwargs.setdefault("on_article", self.emitted.append)
        return CrawlOrchestrator(
            session,
            settings=CrawlSettings(rate_jitter=(0.0, 0.0)),
            identities=self.identities,
            sleep=self.clock.sleep,
            clock=self.clock,
            monotonic=self.clock,
            **kwargs,
        )

    def stages(self):
        return [stage for stage, _ in self.progress]


class TestRun(OrchestratorTestCase):
    """Verify the main crawl flow."""

    async def test_crawls_author_then_articles_in_order(self):
        """The author page is read first, then each article in discovery order."""
        session = FakeSession(_site(3))
        result = await self.orchestrator(session).run(AUTHOR_URL, _options())
        self.assertEqual(result.author.name, "Alice Writer")
        self.assertEqual([a.title for a in result.articles], ["Article 0", "Article 1", "Article 2"])
        self.assertEqual(session.navigations, [AUTHOR_URL] + [article_url(i) for i in range(3)])
        self.assertEqual(result.stats["successfulExtractions"], 3)
        self.assertEqual(result.stats["totalArticles"], 3)
        self.assertEqual(result.stats["errors"], 0)
        self.assertEqual(self.emitted, result.articles)
        self.assertTrue(session.started)
        self.assertTrue(session.closed)

    async def test_progress_stages(self):
        """Progress fires after the author, after each article and once at the end."""
        session = FakeSession(_site(2))
        result = await self.orchestrator(session).run(AUTHOR_URL, _options())
        self.assertEqual(self.stages(), ["author", "article", "article", "done"])
        self.assertEqual(self.progress[-1][1], result.stats)

    async def test_async_progress_callback(self):
        """Coroutine callbacks are awaited."""
        seen = []

        async def on_progress(stage, snapshot):
            seen.append(stage)

        await self.orchestrator(FakeSession(_site(1)), on_progress=on_progress).run(AUTHOR_URL, _options())
        self.assertEqual(seen, ["author", "article", "done"])

    async def test_progress_logged_without_callback(self):
        """Without a callback progress goes to the log as JSON."""
        orchestrator = CrawlOrchestrator(
            FakeSession(_site(1)), identities=self.identities, sleep=self.clock.sleep, clock=self.clock, monotonic=self.clock
        )
        with self.assertLogs("author_crawler", level="INFO") as logs:
            await orchestrator.run(AUTHOR_URL, _options())
        self.assertTrue(any('"event": "progress"' in line and '"stage": "done"' in line for line in logs.output))

    async def test_navigations_are_rate_limited(self):
        """At one request per second every navigation after the first waits a second."""
        session = FakeSession(_site(3))
        await self.orchestrator(session).run(AUTHOR_URL, _options(requests_per_second=1.0))
        self.assertEqual(self.clock.sleeps, [1.0, 1.0, 1.0])

    async def test_max_posts_caps_articles(self):
        """No more than maxPosts articles are visited."""
        session = FakeSession(_site(10))
        result = await self.orchestrator(session).run(AUTHOR_URL, _options(max_posts=3))
        self.assertEqual(len(result.articles), 3)
        self.assertEqual(len(session.navigations), 4)
        self.assertEqual(result.author.to_dict()["filteredCount"], 3)

    async def test_duplicate_landing_url_stored_once(self):
        """Two links that land on the same article keep a single record."""
        pages = _site(2)
        pages[article_url(1)].url = article_url(0)
        result = await self.orchestrator(FakeSession(pages)).run(AUTHOR_URL, _options())
        self.assertEqual(len(result.articles), 1)
        self.assertEqual(result.stats["successfulExtractions"], 1)

    async def test_unknown_seed_is_skipped(self):
        """An unclassifiable page is logged and skipped without counting an error."""
        seed = "https://medium.com/tag/python"
        session = FakeSession({seed: FakePage(seed)})
        result = await self.orchestrator(session).run(seed, _options(author_url=seed))
        self.assertIsNone(result.author)
        self.assertEqual(result.articles, [])
        self.assertEqual(result.stats["errors"], 0)
        self.assertEqual(session.navigations, [seed])
        self.assertTrue(session.closed)


class TestFailures(OrchestratorTestCase):
    """Verify retry, error counting and identity handling."""

    async def test_failed_article_does_not_stop_the_run(self):
        """Exhausted retries count one error and the crawl continues."""
        url = article_url(1)
        session = FakeSession(_site(3), errors={url: [NavigationError(url, "timed out")] * 3})
        result = await self.orchestrator(session).run(AUTHOR_URL, _options())
        self.assertEqual([a.title for a in result.articles], ["Article 0", "Article 2"])
        self.assertEqual(result.stats["errors"], 1)
        self.assertEqual(session.navigations.count(url), 3)

    async def test_transient_failure_is_retried(self):
        """A single failure is absorbed by the retry policy."""
        url = article_url(0)
        session = FakeSession(_site(1), errors={url: [NavigationError(url, "HTTP 502", status=502)]})
        result = await self.orchestrator(session).run(AUTHOR_URL, _options())
        self.assertEqual(len(result.articles), 1)
        self.assertEqual(result.stats["errors"], 0)
        self.assertEqual(session.navigations.count(url), 2)

    async def test_empty_article_counts_as_error(self):
        """Extraction failures are retried, then counted."""
        pages = _site(2)
        pages[article_url(0)].snapshots = ["<html><body></body></html>"]
        session = FakeSession(pages)
        result = await self.orchestrator(session).run(AUTHOR_URL, _options())
        self.assertEqual(result.stats["errors"], 1)
        self.assertEqual(len(result.articles), 1)
        self.assertEqual(session.navigations.count(article_url(0)), 3)

    async def test_exhausted_retries_mark_identity_failed(self):
        """The identity in use when a task is dropped is marked unhealthy."""
        url = article_url(0)
        session = FakeSession(_site(1), errors={url: [NavigationError(url, "timed out")] * 3})
        await self.orchestrator(session).run(AUTHOR_URL, _options())
        self.assertFalse(self.identities[0].healthy)

    async def test_exhausted_retries_rotate_identity(self):
        """The task after a dropped one runs under the next identity."""
        url = article_url(0)
        session = FakeSession(_site(2), errors={url: [NavigationError(url, "timed out")] * 3})
        result = await self.orchestrator(session).run(AUTHOR_URL, _options())
        self.assertEqual(result.stats["identityRotations"], 1)
        self.assertEqual([i.user_agent for i in session.identities], ["ua-1", "ua-1", "ua-1", "ua-1", "ua-2"])
        self.assertEqual([a.title for a in result.articles], ["Article 1"])

    async def test_article_redirected_to_profile_keeps_seed_author(self):
        """An article that lands on a profile is an error and never replaces the author."""
        pages = _site(2)
        pages[article_url(0)] = FakePage(AUTHOR_URL, snapshots=[author_page_html(0, name="Someone Else")])
        session = FakeSession(pages)
        result = await self.orchestrator(session).run(AUTHOR_URL, _options())
        self.assertEqual(result.author.name, "Alice Writer")
        self.assertEqual([a.title for a in result.articles], ["Article 1"])
        self.assertEqual(result.stats["errors"], 1)
        self.assertEqual(session.navigations.count(article_url(0)), 3)
        self.assertEqual(self.stages(), ["author", "article", "done"])

    async def test_identity_error_rotates_identity(self):
        """A 403 marks the identity unhealthy and the retry uses the next one."""
        url = article_url(0)
        session = FakeSession(_site(2), errors={url: [IdentityError(url, "HTTP 403", status=403)]})
        result = await self.orchestrator(session).run(AUTHOR_URL, _options())
        self.assertEqual(len(result.articles), 2)
        self.assertEqual(result.stats["identityRotations"], 1)
        self.assertEqual([i.user_agent for i in session.identities[:3]], ["ua-1", "ua-1", "ua-2"])
        self.assertFalse(self.identities[0].healthy)

    async def test_cadence_rotation(self):
        """The identity changes after every fifth article."""
        session = FakeSession(_site(6))
        result = await self.orchestrator(session).run(AUTHOR_URL, _options())
        self.assertEqual(result.stats["identityRotations"], 1)
        self.assertEqual(session.identities[-2].user_agent, "ua-1")
        self.assertEqual(session.identities[-1].user_agent, "ua-2")


class TestPaywalls(OrchestratorTestCase):
    """Verify the premium keep/skip decision."""

    async def test_premium_article_skipped_by_default(self):
        """Gated articles count as paywall hits and skips, and are not stored."""
        session = FakeSession(_site(3, premium={1}))
        result = await self.orchestrator(session).run(AUTHOR_URL, _options())
        self.assertEqual([a.title for a in result.articles], ["Article 0", "Article 2"])
        self.assertEqual(result.stats["skippedPremium"], 1)
        self.assertEqual(result.stats["paywallHits"], 1)
        self.assertEqual(result.stats["errors"], 0)

    async def test_premium_article_kept_when_requested(self):
        """With premiumContent the article is stored with its paywall info."""
        session = FakeSession(_site(2, premium={1}))
        result = await self.orchestrator(session).run(AUTHOR_URL, _options(premium_content=True))
        self.assertEqual(len(result.articles), 2)
        gated = result.articles[1]
        self.assertTrue(gated.is_premium)
        self.assertEqual(gated.paywall_info["detection"]["type"], "premium")
        self.assertFalse(gated.paywall_info["handling"]["success"])
        self.assertEqual(result.stats["paywallHits"], 1)
        self.assertEqual(result.stats["skippedPremium"], 0)
        self.assertIsNone(result.articles[0].paywall_info["handling"])


class TestCancellation(OrchestratorTestCase):
    """Verify the stop signal."""

    async def test_cancel_stops_dequeuing(self):
        """After cancel() no new navigation starts and the session is released."""
        session = FakeSession(_site(3))
        orchestrator = self.orchestrator(session, on_article=lambda record: orchestrator.cancel())
        result = await orchestrator.run(AUTHOR_URL, _options())
        self.assertEqual(len(result.articles), 1)
        self.assertEqual(session.navigations, [AUTHOR_URL, article_url(0)])
        self.assertTrue(session.closed)
        self.assertEqual(self.stages()[-1], "done")

    async def test_in_flight_work_is_discarded(self):
        """An article whose navigation was under way at cancel time is not stored."""
        session = FakeSession(_site(3))
        orchestrator = self.orchestrator(session)
        session.on_navigate = lambda url: orchestrator.cancel() if url == article_url(1) else None
        result = await orchestrator.run(AUTHOR_URL, _options())
        self.assertEqual([a.title for a in result.articles], ["Article 0"])
        self.assertEqual(session.navigations[-1], article_url(1))
        self.assertTrue(orchestrator.cancelled)

    async def test_cancel_before_run(self):
        """A run cancelled up front navigates nowhere but still closes the session."""
        session = FakeSession(_site(1))
        orchestrator = self.orchestrator(session)
        orchestrator.cancel()
        result = await orchestrator.run(AUTHOR_URL, _options())
        self.assertEqual(session.navigations, [])
        self.assertIsNone(result.author)
        self.assertTrue(session.closed)


if __name__ == "__main__":
    unittest.main()
