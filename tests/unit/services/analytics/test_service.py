"""Unit tests for AnalyticsService."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import Mock

import pytest

from tests.factories import WORKED_EXAMPLE_PNLS, make_daily_trades, make_trade
from tradelens.libraries.performance.models import MetricsSnapshot, StreakType
from tradelens.services.analytics.equity import StartingEquityResolver
from tradelens.services.analytics.interface import BalanceQueryError, StartingEquityError
from tradelens.services.analytics.service import AnalyticsService
from tradelens.services.analytics.stores import InMemoryTradeStore, StaticBalanceSource
from tradelens.system.config import AnalyticsConfig

NOW = datetime(2025, 1, 20, 12, 0, tzinfo=timezone.utc)


def _clock():
    return NOW


@pytest.fixture
def recent_trades():
    """Worked example closing on the five days before NOW."""
    return make_daily_trades(WORKED_EXAMPLE_PNLS, start=NOW - timedelta(days=5))


@pytest.fixture
def service(recent_trades):
    """Service over the worked example with balance 1370."""
    return AnalyticsService(InMemoryTradeStore(recent_trades), StaticBalanceSource(Decimal("1370")), clock=_clock)


class TestComputeMetrics:
    """Test snapshot assembly."""

    def test_worked_example_snapshot(self, service):
        """Test every group is computed from the same trades."""
        # Act
        snapshot = service.compute_metrics("30d")

        # Assert
        assert snapshot.period == "30d"
        assert snapshot.trade_count == 5
        assert snapshot.starting_equity == Decimal("1000")
        assert snapshot.computed_at == NOW
        assert snapshot.basic.profit_factor == Decimal("5.625")
        assert snapshot.basic.win_rate == Decimal("60")
        assert snapshot.risk.max_drawdown == Decimal("50") / Decimal("1100") * Decimal("100")
        assert snapshot.risk.var_95 == Decimal("-50")
        assert snapshot.distribution.std_dev > 0
        assert snapshot.quality.win_streak == 1

    def test_fetches_trades_once_for_period(self):
        """Test the trade store is queried once with the resolved range."""
        # Arrange
        store = Mock()
        store.fetch_closed_trades.return_value = []
        service = AnalyticsService(store, Mock(), clock=_clock)

        # Act
        service.compute_metrics("7d")

        # Assert
        store.fetch_closed_trades.assert_called_once_with(NOW - timedelta(days=7), NOW)

    def test_empty_period_returns_zero_snapshot_without_balance_query(self):
        """Test no trades: zero snapshot and the balance source untouched."""
        # Arrange
        balance_source = Mock()
        service = AnalyticsService(InMemoryTradeStore(), balance_source, clock=_clock)

        # Act
        snapshot = service.compute_metrics("30d")

        # Assert
        assert snapshot == MetricsSnapshot.empty("30d", computed_at=NOW)
        assert snapshot.is_empty
        balance_source.get_account_balance.assert_not_called()

    def test_period_filters_trades(self, recent_trades):
        """Test only trades inside the window are analyzed."""
        old = make_trade("-999", NOW - timedelta(days=60))
        service = AnalyticsService(
            InMemoryTradeStore([old, *recent_trades]), StaticBalanceSource(Decimal("1370")), clock=_clock
        )

        assert service.compute_metrics("30d").trade_count == 5
        assert service.compute_metrics("all").trade_count == 6

    def test_unknown_period_raises(self, service):
        """Test unknown periods raise ValueError."""
        with pytest.raises(ValueError):
            service.compute_metrics("3w")

    def test_balance_failure_uses_margin_fallback(self, recent_trades):
        """Test fallback starting equity = oldest margin * leverage."""
        service = AnalyticsService(InMemoryTradeStore(recent_trades), StaticBalanceSource(None), clock=_clock)

        snapshot = service.compute_metrics("30d")

        # Factory margin is 100
        assert snapshot.starting_equity == Decimal("1000")

    def test_config_drives_resolver(self, recent_trades):
        """Test asset, minimum and leverage come from AnalyticsConfig."""
        # Arrange
        balance_source = Mock()
        balance_source.get_account_balance.side_effect = BalanceQueryError("down")
        config = AnalyticsConfig(balance_asset="USDC", fallback_leverage=3, minimum_starting_equity=Decimal("50"))
        service = AnalyticsService(InMemoryTradeStore(recent_trades), balance_source, config=config, clock=_clock)

        # Act
        snapshot = service.compute_metrics("30d")

        # Assert
        assert snapshot.starting_equity == Decimal("300")
        balance_source.get_account_balance.assert_called_once_with("USDC")

    def test_repeated_computation_is_idempotent(self, service):
        """Test recomputing the same period gives an equal snapshot."""
        assert service.compute_metrics("30d") == service.compute_metrics("30d")


class TestComputeEquityCurve:
    """Test equity curve reconstruction."""

    def test_worked_example_curve(self, service):
        """Test curve walks forward from the inferred starting equity."""
        curve = service.compute_equity_curve("30d")

        assert [p.equity for p in curve] == [Decimal(v) for v in ("1100", "1050", "1250", "1220", "1370")]

    def test_empty_period(self):
        """Test no trades with a known balance gives an empty curve."""
        balance_source = Mock()
        balance_source.get_account_balance.return_value = Decimal("1000")
        service = AnalyticsService(InMemoryTradeStore(), balance_source, clock=_clock)

        assert service.compute_equity_curve("7d") == []
        balance_source.get_account_balance.assert_called_once_with("USDT")

    def test_empty_period_with_failed_balance_raises(self):
        """Test no trades and no balance is an error, not an empty curve."""
        service = AnalyticsService(InMemoryTradeStore(), StaticBalanceSource(None), clock=_clock)

        with pytest.raises(StartingEquityError, match="no trades"):
            service.compute_equity_curve("7d")

    def test_empty_period_metrics_still_skip_balance(self):
        """Test the zero snapshot does not depend on the balance source."""
        service = AnalyticsService(InMemoryTradeStore(), StaticBalanceSource(None), clock=_clock)

        assert service.compute_metrics("7d").is_empty

    def test_unresolvable_starting_equity_propagates(self, service, monkeypatch):
        """Test StartingEquityError surfaces to the caller unchanged."""
        # Arrange
        def fail(self, trades):
            raise StartingEquityError("no baseline")

        monkeypatch.setattr(StartingEquityResolver, "resolve", fail)

        # Act & Assert
        with pytest.raises(StartingEquityError, match="no baseline"):
            service.compute_equity_curve("30d")
        with pytest.raises(StartingEquityError):
            service.compute_metrics("30d")


class TestBreakdowns:
    """Test grouped breakdown accessors."""

    def test_monthly_uses_twelve_month_window(self):
        """Test monthly breakdown queries the trailing twelve months."""
        store = Mock()
        store.fetch_closed_trades.return_value = []
        service = AnalyticsService(store, Mock(), clock=_clock)

        service.monthly_performance()

        store.fetch_closed_trades.assert_called_once_with(datetime(2024, 1, 20, 12, 0, tzinfo=timezone.utc), NOW)

    @pytest.mark.parametrize("accessor", ["hourly_performance", "symbol_performance"])
    def test_hourly_and_symbol_use_thirty_day_window(self, accessor):
        """Test hourly and symbol breakdowns query the trailing 30 days."""
        store = Mock()
        store.fetch_closed_trades.return_value = []
        service = AnalyticsService(store, Mock(), clock=_clock)

        getattr(service, accessor)()

        store.fetch_closed_trades.assert_called_once_with(NOW - timedelta(days=30), NOW)

    def test_window_sizes_from_config(self):
        """Test breakdown windows are configurable."""
        store = Mock()
        store.fetch_closed_trades.return_value = []
        service = AnalyticsService(store, Mock(), config=AnalyticsConfig(hourly_window_days=7), clock=_clock)

        service.hourly_performance()

        store.fetch_closed_trades.assert_called_once_with(NOW - timedelta(days=7), NOW)

    def test_breakdown_results(self, service):
        """Test breakdowns are computed over the fetched trades."""
        assert sum(m.total_pnl for m in service.monthly_performance()) == Decimal("370")
        assert service.symbol_performance()[0].symbol == "BTCUSDT"
        assert [h.hour for h in service.hourly_performance()] == [12]
        assert len(service.weekday_performance("30d")) == 7

    def test_streak_analysis(self, service):
        """Test streak history for the worked example (W L W L W)."""
        summary = service.streak_analysis("30d")

        assert len(summary.streaks) == 5
        assert summary.current_streak is not None
        assert summary.current_streak.type is StreakType.WIN

    def test_distribution_profile(self, service):
        """Test distribution profile for a period."""
        profile = service.distribution_profile("30d")

        assert profile is not None
        assert profile.median == Decimal("100")

    def test_distribution_profile_empty(self):
        """Test no trades gives None."""
        service = AnalyticsService(InMemoryTradeStore(), Mock(), clock=_clock)

        assert service.distribution_profile("7d") is None


class TestAnalyticsExtras:
    """Test yearly grouping, consistency, Monte Carlo and trade quality."""

    def test_yearly_performance_covers_all_history(self):
        """Test years are grouped over the whole history, oldest first."""
        # Arrange
        trades = [
            make_trade("40", datetime(2023, 6, 1, 10, 0, tzinfo=timezone.utc)),
            make_trade("-10", datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)),
            make_trade("30", datetime(2024, 9, 1, 10, 0, tzinfo=timezone.utc)),
            make_trade("5", NOW - timedelta(days=1)),
        ]
        service = AnalyticsService(InMemoryTradeStore(trades), Mock(), clock=_clock)

        # Act
        years = service.yearly_performance()

        # Assert
        assert [y.year for y in years] == ["2023", "2024", "2025"]
        assert years[1].total_pnl == Decimal("20")
        assert years[1].trade_count == 2
        assert years[1].avg_pnl == Decimal("10")

    def test_consistency_score_even_chunks(self):
        """Test identical chunk sums score 100."""
        trades = make_daily_trades(["10"] * 20, start=NOW - timedelta(days=25))
        service = AnalyticsService(InMemoryTradeStore(trades), Mock(), clock=_clock)

        assert service.consistency_score("30d") == Decimal("100")

    def test_consistency_score_needs_a_full_chunk(self, service):
        """Test fewer than ten trades scores 0."""
        assert service.consistency_score("30d") == Decimal("0")

    def test_monte_carlo_starts_from_resolved_equity(self, service):
        """Test simulations start at balance minus analyzed pnl."""
        result = service.monte_carlo_simulation("30d", simulations=20, trades_per_simulation=5, seed=1)

        assert result is not None
        assert result.initial_balance == Decimal("1000")
        assert result.simulations == 20
        assert result.trades_per_simulation == 5

    def test_monte_carlo_seed_is_repeatable(self, service):
        """Test the same seed gives the same result."""
        first = service.monte_carlo_simulation("30d", simulations=30, trades_per_simulation=10, seed=42)
        second = service.monte_carlo_simulation("30d", simulations=30, trades_per_simulation=10, seed=42)

        assert first == second

    def test_monte_carlo_counts_from_config(self, recent_trades):
        """Test simulation counts default to the configured values."""
        # Arrange
        config = AnalyticsConfig(monte_carlo_simulations=25, monte_carlo_trades=4)
        service = AnalyticsService(
            InMemoryTradeStore(recent_trades), StaticBalanceSource(Decimal("1370")), config=config, clock=_clock
        )

        # Act
        result = service.monte_carlo_simulation("30d", seed=5)

        # Assert
        assert result is not None
        assert result.simulations == 25
        assert result.trades_per_simulation == 4

    def test_monte_carlo_without_trades(self):
        """Test no trades gives None without querying the balance."""
        balance_source = Mock()
        service = AnalyticsService(InMemoryTradeStore(), balance_source, clock=_clock)

        assert service.monte_carlo_simulation("7d") is None
        balance_source.get_account_balance.assert_not_called()

    def test_trade_quality(self, service):
        """Test worked example scores: winners 40 points, losers 10."""
        # Act
        report = service.trade_quality("30d")

        # Assert
        assert [s.total_score for s in report.scores] == [40, 40, 40, 10, 10]
        assert report.avg_quality == Decimal("28")
        assert report.best_trades[0].pnl == Decimal("100")
        assert report.worst_trades[0].pnl == Decimal("-30")
        assert {s.grade for s in report.scores} == {"F"}
