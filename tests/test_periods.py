"""Tests for periods.py - bucket rounding and timestamp parsing."""

import pytest
from datetime import datetime, timedelta, timezone

from feedvol.enums import Granularity
from feedvol.periods import (
    ensure_utc,
    from_epoch_ms,
    parse_granularity,
    parse_utc_timestamp,
    period_delta,
    round_to_period,
)

TS = datetime(2024, 10, 1, 13, 47, 29, 123456, tzinfo=timezone.utc)


class TestRoundToPeriod:
    """Tests for round_to_period."""

    def test_second(self):
        assert round_to_period(TS, "second") == datetime(2024, 10, 1, 13, 47, 29, tzinfo=timezone.utc)

    def test_minute(self):
        assert round_to_period(TS, "minute") == datetime(2024, 10, 1, 13, 47, tzinfo=timezone.utc)

    def test_hour(self):
        assert round_to_period(TS, Granularity.HOUR) == datetime(2024, 10, 1, 13, tzinfo=timezone.utc)

    def test_day(self):
        assert round_to_period(TS, "day") == datetime(2024, 10, 1, tzinfo=timezone.utc)

    def test_unknown_granularity_rounds_to_hour(self):
        """Test unrecognised granularity falls back to hour."""
        assert round_to_period(TS, "fortnight") == round_to_period(TS, "hour")
        assert round_to_period(TS, None) == round_to_period(TS, "hour")

    @pytest.mark.parametrize("granularity", ["second", "minute", "hour", "day", "bogus"])
    def test_idempotent(self, granularity):
        """Test rounding an already rounded timestamp is a no-op."""
        for offset in range(0, 200_000, 7_919):
            ts = TS + timedelta(seconds=offset, microseconds=offset)
            once = round_to_period(ts, granularity)
            assert round_to_period(once, granularity) == once

    def test_preserves_timezone(self):
        assert round_to_period(TS, "minute").tzinfo == timezone.utc


class TestGranularityHelpers:
    """Tests for parse_granularity and period_delta."""

    def test_parse_known(self):
        assert parse_granularity("Minute") == Granularity.MINUTE
        assert parse_granularity(" day ") == Granularity.DAY
        assert parse_granularity(Granularity.SECOND) == Granularity.SECOND

    def test_parse_unknown(self):
        assert parse_granularity("week") is None
        assert parse_granularity(None) is None

    def test_period_delta(self):
        assert period_delta("second") == timedelta(seconds=1)
        assert period_delta("minute") == timedelta(minutes=1)
        assert period_delta("hour") == timedelta(hours=1)
        assert period_delta("day") == timedelta(days=1)
        assert period_delta("nope") == timedelta(hours=1)


class TestTimestampParsing:
    """Tests for feed timestamp parsing."""

    def test_dune_format(self):
        ts = parse_utc_timestamp("2024-10-01 13:00:00.000 UTC")
        assert ts == datetime(2024, 10, 1, 13, tzinfo=timezone.utc)

    def test_coinapi_seven_fraction_digits(self):
        ts = parse_utc_timestamp("2024-10-01T13:05:00.1234567Z")
        assert ts == datetime(2024, 10, 1, 13, 5, 0, 123456, tzinfo=timezone.utc)

    def test_no_fraction(self):
        ts = parse_utc_timestamp("2024-10-01T13:05:00Z")
        assert ts == datetime(2024, 10, 1, 13, 5, tzinfo=timezone.utc)

    def test_garbage(self):
        assert parse_utc_timestamp("yesterday") is None
        assert parse_utc_timestamp("2024-13-45 99:00:00") is None

    def test_epoch_ms(self):
        assert from_epoch_ms(1727787600000) == datetime(2024, 10, 1, 13, tzinfo=timezone.utc)

    def test_ensure_utc(self):
        naive = datetime(2024, 10, 1, 13)
        assert ensure_utc(naive) == datetime(2024, 10, 1, 13, tzinfo=timezone.utc)
        cest = timezone(timedelta(hours=2))
        assert ensure_utc(datetime(2024, 10, 1, 15, tzinfo=cest)) == datetime(2024, 10, 1, 13, tzinfo=timezone.utc)
