"""Tests for shared utilities."""

from datetime import date, time
from zoneinfo import ZoneInfo

import pytest

from tablebook.utils import combine_local, format_date, format_time, normalize_text, parse_clock_time


class TestNormalizeText:
    def test_lowercases_and_collapses_whitespace(self):
        assert normalize_text("  Actually,   CHANGE the date ") == "actually, change the date"

    def test_empty_string(self):
        assert normalize_text("   ") == ""


class TestParseClockTime:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("19:00", time(19, 0)),
            ("7pm", time(19, 0)),
            ("7:30 pm", time(19, 30)),
            ("7:30 p.m.", time(19, 30)),
            ("12pm", time(12, 0)),
            ("12am", time(0, 0)),
            ("9 AM", time(9, 0)),
        ],
    )
    def test_valid_times(self, raw, expected):
        assert parse_clock_time(raw) == expected

    @pytest.mark.parametrize("raw", ["25:00", "13pm", "seven", "7:75", ""])
    def test_invalid_times(self, raw):
        assert parse_clock_time(raw) is None


class TestFormatting:
    def test_format_date(self):
        assert format_date(date(2026, 10, 21)) == "2026-10-21"

    def test_format_time(self):
        assert format_time(time(7, 5)) == "07:05"

    def test_combine_local_is_aware(self):
        tz = ZoneInfo("Asia/Kolkata")
        combined = combine_local(date(2026, 10, 21), time(19, 0), tz)
        assert combined.tzinfo is tz
        assert combined.utcoffset().total_seconds() == 5.5 * 3600
