"""Tests for timestamp parsing and month arithmetic."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from sponsorwall.utils.time_utils import (
    first_day_of_month,
    month_difference,
    parse_timestamp,
    same_month,
    utcnow,
)


class TestParseTimestamp:
    def test_zulu_suffix(self):
        assert parse_timestamp("2024-03-05T10:00:00Z") == datetime(2024, 3, 5, 10, tzinfo=timezone.utc)

    def test_offset_converted_to_utc(self):
        parsed = parse_timestamp("2024-03-05T10:00:00+02:00")
        assert parsed == datetime(2024, 3, 5, 8, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(0)

    def test_naive_assumed_utc(self):
        assert parse_timestamp("2024-03-05T10:00:00").tzinfo == timezone.utc

    def test_unix_seconds(self):
        assert parse_timestamp(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty(self, value):
        assert parse_timestamp(value) is None

    def test_garbage(self):
        with pytest.raises(ValueError):
            parse_timestamp("last tuesday")


class TestMonths:
    def test_month_difference_ignores_day(self):
        jan31 = datetime(2024, 1, 31, tzinfo=timezone.utc)
        feb1 = datetime(2024, 2, 1, tzinfo=timezone.utc)
        assert month_difference(jan31, feb1) == 1
        assert month_difference(feb1, datetime(2024, 2, 29, tzinfo=timezone.utc)) == 0

    def test_month_difference_across_years(self):
        start = datetime(2023, 11, 15, tzinfo=timezone.utc)
        assert month_difference(start, datetime(2024, 2, 1, tzinfo=timezone.utc)) == 3

    def test_first_day_of_month(self):
        moment = datetime(2024, 7, 19, 13, 45, tzinfo=timezone.utc)
        assert first_day_of_month(moment) == datetime(2024, 7, 1, tzinfo=timezone.utc)

    def test_same_month(self):
        a = datetime(2024, 7, 1, tzinfo=timezone.utc)
        assert same_month(a, datetime(2024, 7, 31, 23, tzinfo=timezone.utc))
        assert not same_month(a, datetime(2023, 7, 1, tzinfo=timezone.utc))

    def test_utcnow_is_aware(self):
        assert utcnow().tzinfo is not None
