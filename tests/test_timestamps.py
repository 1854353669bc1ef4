"""Tests for runtelemetry/timestamps.py"""

from datetime import datetime, timedelta, timezone

import pytest

from runtelemetry.timestamps import (
    format_instant,
    format_suite_timestamp,
    parse_instant,
    truncate_ms,
)


class TestParseInstant:
    def test_z_suffix(self):
        assert parse_instant("2024-01-15T10:00:01.250Z") == datetime(
            2024, 1, 15, 10, 0, 1, 250000, tzinfo=timezone.utc)

    def test_offset_converted_to_utc(self):
        parsed = parse_instant("2024-01-15T12:00:00.000+02:00")
        assert parsed == datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(0)

    def test_naive_is_utc(self):
        assert parse_instant("2024-01-15T10:00:00") == datetime(
            2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)

    def test_sub_millisecond_digits_dropped(self):
        parsed = parse_instant("2024-01-15T10:00:00.123456Z")
        assert parsed.microsecond == 123000

    def test_garbage_raises(self):
        with pytest.raises(ValueError):
            parse_instant("yesterday")

    def test_non_string_raises(self):
        with pytest.raises(ValueError):
            parse_instant(1705312800000)


class TestFormatting:
    def test_format_instant_milliseconds(self):
        moment = datetime(2024, 1, 15, 10, 0, 1, 5000, tzinfo=timezone.utc)
        assert format_instant(moment) == "2024-01-15T10:00:01.005Z"

    def test_format_instant_converts_offset(self):
        moment = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_instant(moment) == "2024-01-15T10:00:00.000Z"

    def test_suite_timestamp_has_no_fraction(self):
        moment = datetime(2024, 1, 15, 10, 0, 1, 999000, tzinfo=timezone.utc)
        assert format_suite_timestamp(moment) == "2024-01-15T10:00:01"

    def test_format_parse_agree(self):
        moment = datetime(2024, 1, 15, 10, 0, 1, 42000, tzinfo=timezone.utc)
        assert parse_instant(format_instant(moment)) == moment

    def test_truncate_ms(self):
        moment = datetime(2024, 1, 15, 10, 0, 1, 42999, tzinfo=timezone.utc)
        assert truncate_ms(moment).microsecond == 42000
