"""Tests for run option validation."""

import unittest
from datetime import datetime, timezone

from author_crawler.config import DEFAULT_MAX_POSTS, SORT_LATEST, SORT_POPULAR, CrawlOptions, CrawlSettings
from author_crawler.errors import ConfigError


class TestCrawlOptions(unittest.TestCase):
    """Verify CrawlOptions.from_input defaults and error collection."""

    def test_defaults(self):
        """Only authorUrl is required; everything else has a default."""
        options = CrawlOptions.from_input({"authorUrl": " https://medium.com/@alice "})
        self.assertEqual(options.author_url, "https://medium.com/@alice")
        self.assertEqual(options.max_posts, DEFAULT_MAX_POSTS)
        self.assertTrue(options.include_content)
        self.assertFalse(options.include_comments)
        self.assertTrue(options.include_publication)
        self.assertFalse(options.premium_content)
        self.assertEqual(options.sort_by, SORT_LATEST)
        self.assertIsNone(options.date_range)

    def test_full_input(self):
        """camelCase keys map onto the option fields; tags are lowercased."""
        options = CrawlOptions.from_input(
            {
                "authorUrl": "https://medium.com/@alice",
                "maxPosts": 5,
                "requestsPerSecond": 2,
                "sortBy": SORT_POPULAR,
                "tags": [" Python ", "AI"],
                "includeComments": True,
                "premiumContent": True,
                "dateRange": {"start": "2024-01-01", "end": "2024-02-01"},
            }
        )
        self.assertEqual(options.max_posts, 5)
        self.assertEqual(options.requests_per_second, 2.0)
        self.assertEqual(options.tags, ("python", "ai"))
        self.assertTrue(options.include_comments)
        self.assertEqual(options.date_range.start, datetime(2024, 1, 1, tzinfo=timezone.utc))
        self.assertEqual(options.date_range.end, datetime(2024, 2, 1, tzinfo=timezone.utc))

    def test_missing_input(self):
        """Empty input is rejected."""
        with self.assertRaises(ConfigError):
            CrawlOptions.from_input({})

    def test_collects_every_problem(self):
        """All invalid fields are reported in one ConfigError."""
        with self.assertRaises(ConfigError) as ctx:
            CrawlOptions.from_input(
                {
                    "authorUrl": "medium.com/@alice",
                    "maxPosts": 0,
                    "requestsPerSecond": 50,
                    "sortBy": "random",
                    "includeContent": "yes",
                    "tags": ["", "x"],
                }
            )
        errors = ctx.exception.errors
        self.assertEqual(len(errors), 6)
        self.assertTrue(any("authorUrl" in e for e in errors))
        self.assertTrue(any("maxPosts" in e for e in errors))
        self.assertTrue(any("requestsPerSecond" in e for e in errors))
        self.assertTrue(any("sortBy" in e for e in errors))
        self.assertTrue(any("includeContent" in e for e in errors))
        self.assertTrue(any("tags" in e for e in errors))

    def test_boolean_max_posts_rejected(self):
        """True is not accepted as an integer count."""
        with self.assertRaises(ConfigError):
            CrawlOptions.from_input({"authorUrl": "https://medium.com/@alice", "maxPosts": True})

    def test_inverted_date_range(self):
        """A start after the end is an error."""
        with self.assertRaises(ConfigError) as ctx:
            CrawlOptions.from_input(
                {"authorUrl": "https://medium.com/@alice", "dateRange": {"start": "2024-05-01", "end": "2024-01-01"}}
            )
        self.assertIn("dateRange.start", str(ctx.exception))

    def test_unparsable_date_bound(self):
        """A date bound that cannot be parsed is an error."""
        with self.assertRaises(ConfigError):
            CrawlOptions.from_input({"authorUrl": "https://medium.com/@alice", "dateRange": {"start": "whenever"}})


class TestCrawlSettings(unittest.TestCase):
    """Verify the tunable defaults the crawler depends on."""

    def test_defaults(self):
        """Retry, pagination and rotation defaults."""
        settings = CrawlSettings()
        self.assertEqual(settings.max_attempts, 3)
        self.assertEqual(settings.stall_limit, 3)
        self.assertEqual(settings.rotation_interval, 5)
        self.assertEqual(settings.truncation_threshold, 500)


if __name__ == "__main__":
    unittest.main()
