"""Tests for DOM fallback parsing."""

import unittest

from author_crawler.dom import article_fields, content_blocks, parse_html
from author_crawler.models import Code, Heading, Image, Link, ListBlock, Paragraph, Quote
from fakes import article_url, dom_article_html

PAGE_URL = article_url(1)


class TestArticleFields(unittest.TestCase):
    """Verify metadata read from rendered markup."""

    def setUp(self):
        """Parse the sample article."""
        self.fields = article_fields(parse_html(dom_article_html()), PAGE_URL)

    def test_text_fields(self):
        """Title, subtitle, author and date come from their selectors."""
        self.assertEqual(self.fields["title"], "Understanding Async Python")
        self.assertEqual(self.fields["subtitle"], "A practical guide")
        self.assertEqual(self.fields["author"], "Alice Writer")
        self.assertEqual(self.fields["author_url"], "https://medium.com/@alice")
        self.assertEqual(self.fields["date"], "January 5, 2024")

    def test_raw_counters(self):
        """Counters are returned as displayed; parsing happens later."""
        self.assertEqual(self.fields["read_time"], "7 min read")
        self.assertEqual(self.fields["claps"], "1.5K")
        self.assertEqual(self.fields["responses"], "23")

    def test_tags_image_and_publication(self):
        """Tags are de-duplicated; publication and main image are absolute."""
        self.assertEqual(self.fields["tags"], ["Python", "Asyncio"])
        self.assertEqual(self.fields["main_image"], "https://miro.medium.com/img1.png")
        self.assertEqual(self.fields["publication"]["name"], "Better Programming")
        self.assertEqual(self.fields["publication"]["url"], "https://medium.com/better-programming")
        self.assertFalse(self.fields["is_premium"])
        self.assertIsNone(self.fields["series"])

    def test_datetime_attribute_preferred(self):
        """A machine-readable datetime attribute beats the display text."""
        html = '<article><h1>T</h1><time datetime="2024-02-02T10:00:00Z">Feb 2</time></article>'
        self.assertEqual(article_fields(parse_html(html), PAGE_URL)["date"], "2024-02-02T10:00:00Z")

    def test_title_falls_back_to_meta(self):
        """Without a heading the og:title meta tag is used."""
        html = '<html><head><meta property="og:title" content="Meta Only"></head><body></body></html>'
        self.assertEqual(article_fields(parse_html(html), PAGE_URL)["title"], "Meta Only")

    def test_series_and_premium_badge(self):
        """Series markers and member-only badges are detected."""
        html = (
            "<article><h1>T</h1>"
            '<a data-testid="seriesName" href="/sequence/async">Async Basics</a>'
            '<span data-testid="seriesPart">Part 2</span>'
            '<span data-testid="memberOnlyBadge">Member-only story</span>'
            "</article>"
        )
        fields = article_fields(parse_html(html), PAGE_URL)
        self.assertEqual(
            fields["series"], {"name": "Async Basics", "url": "https://medium.com/sequence/async", "part": "Part 2"}
        )
        self.assertTrue(fields["is_premium"])


class TestContentBlocks(unittest.TestCase):
    """Verify ordered block extraction from the article body."""

    def test_sample_body(self):
        """Blocks come out in document order with links after their element."""
        blocks = content_blocks(parse_html(dom_article_html()), PAGE_URL)
        self.assertEqual(
            [type(b) for b in blocks],
            [Heading, Paragraph, Link, Quote, Code, Image, ListBlock, Paragraph],
        )
        self.assertEqual(blocks[0], Heading(level=2, text="Intro"))
        self.assertEqual(blocks[2].url, "https://docs.python.org/3/")
        self.assertEqual(blocks[3], Quote(text="Simple is better than complex.", author="Tim Peters"))
        self.assertEqual(blocks[4], Code(language="python", text='print("hi")'))
        self.assertEqual(blocks[5], Image(src="https://miro.medium.com/img1.png", alt="diagram", caption="The event loop"))
        self.assertEqual(blocks[6], ListBlock(list_type="ul", items=("one", "two")))
        self.assertEqual(blocks[7], Paragraph(text="Closing words."))

    def test_no_body(self):
        """A page with no body container yields no blocks."""
        self.assertEqual(content_blocks(parse_html("<div><p>stray</p></div>"), PAGE_URL), [])

    def test_nested_elements_emitted_once(self):
        """A paragraph inside a blockquote is part of the quote, not its own block."""
        html = '<div data-testid="articleBody"><blockquote><p>inner</p></blockquote><h6>Deep</h6></div>'
        blocks = content_blocks(parse_html(html), PAGE_URL)
        self.assertEqual(blocks, [Quote(text="inner"), Heading(level=4, text="Deep")])

    def test_relative_image_resolved(self):
        """Relative image sources are made absolute against the page URL."""
        html = '<div data-testid="articleBody"><img src="/img/a.png" alt="a"></div>'
        blocks = content_blocks(parse_html(html), PAGE_URL)
        self.assertEqual(blocks, [Image(src="https://medium.com/img/a.png", alt="a")])


if __name__ == "__main__":
    unittest.main()
