"""Unit tests for CachedAnalyticsService."""

from unittest.mock import Mock

import pytest

from tradelens.libraries.performance.models import MetricsSnapshot
from tradelens.services.analytics.cache import CachedAnalyticsService
from tradelens.services.analytics.interface import StartingEquityError
from tradelens.system.config import AnalyticsConfig


class FakeTimer:
    """Manually advanced clock for TTL expiry."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def inner():
    """Mock analytics service returning a fresh snapshot per call."""
    service = Mock()
    service.compute_metrics.side_effect = lambda period: MetricsSnapshot.empty(period)
    service.compute_equity_curve.return_value = []
    return service


@pytest.fixture
def timer():
    return FakeTimer()


@pytest.fixture
def cached(inner, timer):
    return CachedAnalyticsService(inner, ttl_seconds=300, max_size=8, timer=timer)


class TestCachedMetrics:
    """Test memoization of compute_metrics."""

    def test_second_call_served_from_cache(self, cached, inner):
        """Test the wrapped service is called once per period."""
        # Act
        first = cached.compute_metrics("30d")
        second = cached.compute_metrics("30d")

        # Assert
        assert first is second
        inner.compute_metrics.assert_called_once_with("30d")
        assert cached.hits == 1
        assert cached.misses == 1

    def test_periods_cached_separately(self, cached, inner):
        """Test each period has its own entry."""
        cached.compute_metrics("7d")
        cached.compute_metrics("30d")

        assert inner.compute_metrics.call_count == 2

    def test_period_key_is_normalized(self, cached, inner):
        """Test '30D' and '30d' share an entry."""
        cached.compute_metrics("30D")
        cached.compute_metrics("30d")

        inner.compute_metrics.assert_called_once_with("30d")

    def test_entry_expires_after_ttl(self, cached, inner, timer):
        """Test entries are recomputed once the TTL elapses."""
        cached.compute_metrics("30d")

        timer.now += 301
        cached.compute_metrics("30d")

        assert inner.compute_metrics.call_count == 2

    def test_failures_not_cached(self, cached, inner):
        """Test an exception is re-raised and the next call retries."""
        # Arrange
        inner.compute_metrics.side_effect = [StartingEquityError("down"), MetricsSnapshot.empty("30d")]

        # Act & Assert
        with pytest.raises(StartingEquityError):
            cached.compute_metrics("30d")
        assert cached.compute_metrics("30d").period == "30d"
        assert inner.compute_metrics.call_count == 2

    def test_unknown_period_rejected_before_service(self, cached, inner):
        """Test invalid periods raise ValueError without reaching the service."""
        with pytest.raises(ValueError):
            cached.compute_metrics("5y")

        inner.compute_metrics.assert_not_called()


class TestCachedEquityCurve:
    """Test memoization of compute_equity_curve."""

    def test_curve_cached_separately_from_metrics(self, cached, inner):
        """Test operations do not share entries."""
        cached.compute_metrics("30d")
        cached.compute_equity_curve("30d")
        cached.compute_equity_curve("30d")

        inner.compute_equity_curve.assert_called_once_with("30d")
        inner.compute_metrics.assert_called_once_with("30d")


class TestInvalidate:
    """Test cache invalidation."""

    def test_invalidate_all(self, cached, inner):
        """Test invalidate() drops every entry."""
        cached.compute_metrics("7d")
        cached.compute_equity_curve("30d")

        removed = cached.invalidate()
        cached.compute_metrics("7d")

        assert removed == 2
        assert inner.compute_metrics.call_count == 2

    def test_invalidate_single_period(self, cached, inner):
        """Test invalidate(period) keeps other periods."""
        cached.compute_metrics("7d")
        cached.compute_metrics("30d")

        removed = cached.invalidate("7d")
        cached.compute_metrics("30d")

        assert removed == 1
        assert inner.compute_metrics.call_count == 2


class TestPassThrough:
    """Test uncached breakdown accessors."""

    def test_breakdowns_delegate(self, cached, inner):
        """Test breakdowns always reach the wrapped service."""
        cached.monthly_performance()
        cached.monthly_performance()
        cached.weekday_performance("7d")
        cached.distribution_profile("7d")

        assert inner.monthly_performance.call_count == 2
        inner.weekday_performance.assert_called_once_with("7d")
        inner.distribution_profile.assert_called_once_with("7d")

    def test_analytics_extras_delegate(self, cached, inner):
        """Test yearly, consistency, Monte Carlo and quality reach the wrapped service."""
        cached.yearly_performance()
        cached.consistency_score("90d")
        cached.monte_carlo_simulation("all", 50, 20, seed=3)
        cached.monte_carlo_simulation("all", 50, 20, seed=3)
        cached.trade_quality("30d")

        inner.yearly_performance.assert_called_once_with()
        inner.consistency_score.assert_called_once_with("90d")
        assert inner.monte_carlo_simulation.call_count == 2
        inner.monte_carlo_simulation.assert_called_with("all", 50, 20, 3)
        inner.trade_quality.assert_called_once_with("30d")


class TestFromConfig:
    """Test building the wrapper from analytics config."""

    def test_uses_configured_ttl(self, inner, timer):
        """Test cache_ttl_seconds sets the entry lifetime."""
        # Arrange
        cached = CachedAnalyticsService.from_config(inner, AnalyticsConfig(cache_ttl_seconds=10), timer=timer)
        cached.compute_metrics("30d")

        # Act
        timer.now += 9
        cached.compute_metrics("30d")
        timer.now += 2
        cached.compute_metrics("30d")

        # Assert
        assert inner.compute_metrics.call_count == 2
        assert cached.hits == 1

    def test_uses_configured_max_size(self, inner, timer):
        """Test cache_max_size bounds the number of entries."""
        # Arrange
        cached = CachedAnalyticsService.from_config(inner, AnalyticsConfig(cache_max_size=1), timer=timer)

        # Act
        cached.compute_metrics("7d")
        cached.compute_metrics("30d")
        cached.compute_metrics("7d")

        # Assert
        assert inner.compute_metrics.call_count == 3
        assert cached.hits == 0
