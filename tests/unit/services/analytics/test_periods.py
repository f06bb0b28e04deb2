"""Unit tests for analysis period resolution."""

from datetime import datetime, timedelta, timezone

import pytest

from tradelens.services.analytics.periods import EPOCH, AnalysisPeriod, resolve_date_range, subtract_months

NOW = datetime(2025, 3, 31, 12, 0, tzinfo=timezone.utc)


class TestAnalysisPeriod:
    """Test period parsing."""

    @pytest.mark.parametrize("raw", ["7d", "30d", "90d", "1y", "all"])
    def test_parse_known_periods(self, raw):
        """Test every supported period string parses."""
        assert AnalysisPeriod.parse(raw).value == raw

    def test_parse_is_case_insensitive(self):
        """Test upper-case input is accepted."""
        assert AnalysisPeriod.parse("30D") is AnalysisPeriod.DAYS_30

    def test_parse_passes_enum_through(self):
        """Test an enum member is returned unchanged."""
        assert AnalysisPeriod.parse(AnalysisPeriod.ALL) is AnalysisPeriod.ALL

    @pytest.mark.parametrize("raw", ["14d", "", "forever"])
    def test_unknown_period_raises(self, raw):
        """Test unknown strings raise ValueError naming the valid choices."""
        with pytest.raises(ValueError, match="Unknown analysis period"):
            AnalysisPeriod.parse(raw)


class TestResolveDateRange:
    """Test trailing window resolution."""

    @pytest.mark.parametrize("period,days", [("7d", 7), ("30d", 30), ("90d", 90)])
    def test_day_windows(self, period, days):
        """Test day-based windows end at now."""
        start, end = resolve_date_range(period, NOW)

        assert end == NOW
        assert start == NOW - timedelta(days=days)

    def test_one_year_is_calendar_year(self):
        """Test 1y subtracts twelve calendar months."""
        start, _ = resolve_date_range("1y", NOW)

        assert start == datetime(2024, 3, 31, 12, 0, tzinfo=timezone.utc)

    def test_all_starts_at_epoch(self):
        """Test 'all' covers every trade."""
        start, end = resolve_date_range("all", NOW)

        assert start == EPOCH
        assert end == NOW

    def test_all_with_naive_now(self):
        """Test 'all' start matches naive now."""
        start, _ = resolve_date_range("all", datetime(2025, 1, 1))

        assert start.tzinfo is None

    def test_unknown_period_raises(self):
        """Test resolution rejects unknown periods."""
        with pytest.raises(ValueError):
            resolve_date_range("2w", NOW)


class TestSubtractMonths:
    """Test calendar month arithmetic."""

    def test_clamps_day_to_month_end(self):
        """Test March 31 minus one month is February 28."""
        assert subtract_months(datetime(2025, 3, 31), 1) == datetime(2025, 2, 28)

    def test_crosses_year_boundary(self):
        """Test January minus two months is November of the previous year."""
        assert subtract_months(datetime(2025, 1, 15), 2) == datetime(2024, 11, 15)

    def test_leap_day(self):
        """Test Feb 29 minus twelve months clamps to Feb 28."""
        assert subtract_months(datetime(2024, 2, 29), 12) == datetime(2023, 2, 28)
