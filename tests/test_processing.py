"""Tests for text, counter and date normalisation."""

import unittest
from datetime import datetime, timedelta, timezone

from author_crawler.processing import (
    calculate_read_time,
    clean_text,
    extract_reading_time,
    parse_count,
    parse_date,
    to_datetime,
    to_iso,
    word_count,
)

NOW = datetime(2024, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


class TestParseDate(unittest.TestCase):
    """Verify the date cascade and its ISO output."""

    def test_relative_days(self):
        """'2 days ago' resolves to exactly 48 hours before now."""
        self.assertEqual(parse_date("2 days ago", now=NOW), to_iso(NOW - timedelta(hours=48)))

    def test_relative_singular(self):
        """'an hour ago' counts as one hour."""
        self.assertEqual(to_datetime("an hour ago", now=NOW), NOW - timedelta(hours=1))

    def test_month_day_year(self):
        """A full month name with day and year parses to UTC midnight."""
        self.assertEqual(parse_date("January 5, 2024"), "2024-01-05T00:00:00.000Z")

    def test_abbreviated_month(self):
        """Abbreviated month names are accepted too."""
        self.assertEqual(parse_date("Jan 5, 2024"), "2024-01-05T00:00:00.000Z")

    def test_day_month_year(self):
        """Day-first order is recognised."""
        self.assertEqual(parse_date("5 March 2023"), "2023-03-05T00:00:00.000Z")

    def test_iso_timestamp(self):
        """ISO timestamps keep their time and convert to UTC."""
        self.assertEqual(parse_date("2024-02-01T10:30:00+02:00"), "2024-02-01T08:30:00.000Z")

    def test_month_day_without_year_uses_current_year(self):
        """'Feb 3' read on March 10 belongs to the same year."""
        self.assertEqual(parse_date("Feb 3", now=NOW), "2024-02-03T00:00:00.000Z")

    def test_month_day_in_future_rolls_back_a_year(self):
        """'Dec 24' read on March 10 belongs to the previous year."""
        self.assertEqual(parse_date("Dec 24", now=NOW), "2023-12-24T00:00:00.000Z")

    def test_epoch_milliseconds(self):
        """Numeric input is read as epoch milliseconds."""
        self.assertEqual(parse_date(1704412800000), "2024-01-05T00:00:00.000Z")

    def test_partial_dates_fill_from_reference(self):
        """Missing parts of a loose date come from the reference day, not the wall clock."""
        self.assertEqual(parse_date("May", now=NOW), "2024-05-10T00:00:00.000Z")
        self.assertEqual(parse_date("May 2022", now=NOW), "2022-05-10T00:00:00.000Z")

    def test_bare_number_is_not_a_date(self):
        """A lone number such as a day or a count is rejected."""
        self.assertIsNone(parse_date("10", now=NOW))

    def test_unparsable_returns_none(self):
        """Garbage and empty input yield None rather than raising."""
        self.assertIsNone(parse_date("not a date at all"))
        self.assertIsNone(parse_date(""))
        self.assertIsNone(parse_date(None))


class TestCounters(unittest.TestCase):
    """Verify engagement counter and reading time parsing."""

    def test_parse_count_suffixes(self):
        """K and M suffixes scale the number."""
        self.assertEqual(parse_count("1.2K"), 1200)
        self.assertEqual(parse_count("3M"), 3_000_000)

    def test_parse_count_separators_and_words(self):
        """Thousands separators and trailing words are ignored."""
        self.assertEqual(parse_count("1,024 Followers"), 1024)

    def test_parse_count_defaults_to_zero(self):
        """Missing or non-numeric counters are zero."""
        self.assertEqual(parse_count(""), 0)
        self.assertEqual(parse_count(None), 0)
        self.assertEqual(parse_count("Follow"), 0)
        self.assertEqual(parse_count(True), 0)

    def test_reading_time(self):
        """Minutes and hours are read from the label."""
        self.assertEqual(extract_reading_time("7 min read"), 7)
        self.assertEqual(extract_reading_time("1 hr"), 60)
        self.assertEqual(extract_reading_time(4.2), 5)
        self.assertEqual(extract_reading_time("soon"), 0)

    def test_calculate_read_time(self):
        """Word count is divided by words per minute and rounded up."""
        self.assertEqual(calculate_read_time(401, 200), 3)
        self.assertEqual(calculate_read_time(0, 200), 0)


class TestText(unittest.TestCase):
    """Verify whitespace handling."""

    def test_clean_text(self):
        """Runs of whitespace, nbsp and zero-width characters collapse."""
        self.assertEqual(clean_text("  a\u00a0 b\u200b\n\tc  "), "a b c")
        self.assertEqual(clean_text(None), "")

    def test_word_count(self):
        """Words are whitespace-delimited."""
        self.assertEqual(word_count("one two  three"), 3)
        self.assertEqual(word_count(""), 0)


if __name__ == "__main__":
    unittest.main()
