"""Tests for the ExtractorFactory class."""

import unittest

from author_crawler.article import ArticleExtractor
from author_crawler.author import AuthorExtractor
from author_crawler.config import CrawlSettings
from author_crawler.factory import ExtractorFactory
from author_crawler.models import ARTICLE, AUTHOR, UNKNOWN


class TestExtractorFactory(unittest.TestCase):
    """Verify that the factory creates the correct extractor type."""

    def setUp(self):
        """Set up shared factory instance."""
        self.settings = CrawlSettings(max_scrolls=4)
        self.factory = ExtractorFactory(settings=self.settings)

    def test_creates_author_extractor(self):
        """Kind 'author' should produce an AuthorExtractor instance."""
        extractor = self.factory.create_extractor(AUTHOR)
        self.assertIsInstance(extractor, AuthorExtractor)
        self.assertIs(extractor.settings, self.settings)

    def test_creates_article_extractor(self):
        """Kind 'article' should produce an ArticleExtractor instance."""
        self.assertIsInstance(self.factory.create_extractor(ARTICLE), ArticleExtractor)

    def test_extractors_are_cached_per_kind(self):
        """Repeated requests for one kind return the same instance."""
        self.assertIs(self.factory.create_extractor(ARTICLE), self.factory.create_extractor(ARTICLE))

    def test_unknown_kind_raises_error(self):
        """An unrecognized page kind should raise ValueError."""
        with self.assertRaises(ValueError) as ctx:
            self.factory.create_extractor(UNKNOWN)
        self.assertIn("unknown", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
