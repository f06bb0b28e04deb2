"""Unit tests for performance data models."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from tests.factories import BASE_TIME, make_trade
from tradelens.libraries.performance.models import (
    BasicMetrics,
    ClosedTrade,
    HourlyPerformance,
    MetricsSnapshot,
    QualityMetrics,
    RiskMetrics,
    Streak,
    StreakType,
    TradeSide,
)


def _trade_kwargs(**overrides):
    kwargs = {
        "symbol": "ETHUSDT",
        "side": "LONG",
        "entry_price": Decimal("3000"),
        "exit_price": Decimal("3100"),
        "quantity": Decimal("1"),
        "margin": Decimal("300"),
        "pnl": Decimal("100"),
        "opened_at": BASE_TIME,
        "closed_at": BASE_TIME + timedelta(minutes=90),
    }
    kwargs.update(overrides)
    return kwargs


class TestTradeSide:
    """Test TradeSide parsing."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("long", TradeSide.LONG),
            ("LONG", TradeSide.LONG),
            ("BUY", TradeSide.LONG),
            ("buy", TradeSide.LONG),
            ("short", TradeSide.SHORT),
            ("SELL", TradeSide.SHORT),
            (" Sell ", TradeSide.SHORT),
        ],
    )
    def test_accepts_exchange_aliases(self, raw, expected):
        """Test BUY/SELL/LONG/SHORT in any case map to a side."""
        assert TradeSide(raw) is expected

    def test_rejects_unknown_side(self):
        """Test unknown side string raises ValueError."""
        with pytest.raises(ValueError):
            TradeSide("flat")


class TestClosedTrade:
    """Test ClosedTrade validation and derived properties."""

    def test_create_valid_trade(self):
        """Test creating a trade from exchange-style values."""
        # Arrange & Act
        trade = ClosedTrade(**_trade_kwargs(side="buy"))

        # Assert
        assert trade.side is TradeSide.LONG
        assert trade.pnl == Decimal("100")
        assert trade.stop_loss is None
        assert trade.trade_id is None

    def test_trade_is_frozen(self):
        """Test trades cannot be mutated."""
        trade = ClosedTrade(**_trade_kwargs())

        with pytest.raises(ValidationError):
            trade.pnl = Decimal("0")  # type: ignore[misc]

    def test_closed_before_opened_rejected(self):
        """Test closed_at earlier than opened_at raises ValidationError."""
        with pytest.raises(ValidationError, match="before opened_at"):
            ClosedTrade(**_trade_kwargs(closed_at=BASE_TIME - timedelta(seconds=1)))

    def test_closed_equal_to_opened_allowed(self):
        """Test zero-duration trade is valid."""
        trade = ClosedTrade(**_trade_kwargs(closed_at=BASE_TIME))

        assert trade.duration_minutes == Decimal("0")

    @pytest.mark.parametrize("field", ["quantity", "entry_price", "exit_price"])
    @pytest.mark.parametrize("value", ["0", "-1"])
    def test_non_positive_quantity_and_prices_rejected(self, field, value):
        """Test quantity and prices must be strictly positive."""
        with pytest.raises(ValidationError):
            ClosedTrade(**_trade_kwargs(**{field: Decimal(value)}))

    def test_negative_margin_rejected(self):
        """Test margin cannot be negative."""
        with pytest.raises(ValidationError):
            ClosedTrade(**_trade_kwargs(margin=Decimal("-1")))

    def test_zero_margin_allowed(self):
        """Test zero margin is valid (spot trades)."""
        trade = ClosedTrade(**_trade_kwargs(margin=Decimal("0")))

        assert trade.margin == Decimal("0")

    @pytest.mark.parametrize(
        "pnl,winner,loser",
        [("10", True, False), ("-10", False, True), ("0", False, False)],
    )
    def test_winner_loser_classification(self, pnl, winner, loser):
        """Test break-even trades are neither winners nor losers."""
        trade = make_trade(pnl)

        assert trade.is_winner is winner
        assert trade.is_loser is loser

    def test_duration_minutes_is_exact(self):
        """Test duration keeps fractional minutes."""
        trade = ClosedTrade(**_trade_kwargs(closed_at=BASE_TIME + timedelta(minutes=90, seconds=30)))

        assert trade.duration_minutes == Decimal("90.5")


class TestStreak:
    """Test Streak model."""

    def test_length_must_be_positive(self):
        """Test a streak has at least one trade."""
        with pytest.raises(ValidationError):
            Streak(type=StreakType.WIN, length=0)


class TestMetricGroups:
    """Test zero-filled metric records."""

    def test_basic_metrics_empty_is_all_zero(self):
        """Test BasicMetrics.empty() zero-fills every field."""
        metrics = BasicMetrics.empty()

        assert all(value == 0 for value in metrics.as_dict().values())

    def test_risk_metrics_empty_is_all_zero(self):
        """Test RiskMetrics.empty() zero-fills every field."""
        metrics = RiskMetrics.empty()

        assert metrics.max_drawdown_duration == 0
        assert all(value == 0 for value in metrics.as_dict().values())

    def test_quality_metrics_mae_mfe_default_zero(self):
        """Test MAE/MFE are reported as zero."""
        metrics = QualityMetrics(avg_duration=Decimal("12"))

        assert metrics.avg_mae == Decimal("0")
        assert metrics.avg_mfe == Decimal("0")

    def test_as_dict_contains_field_names(self):
        """Test as_dict exposes the flat field mapping."""
        metrics = BasicMetrics(total_trades=3)

        result = metrics.as_dict()

        assert result["total_trades"] == 3
        assert "profit_factor" in result


class TestMetricsSnapshot:
    """Test MetricsSnapshot."""

    def test_empty_snapshot(self):
        """Test empty snapshot reports no data and zero groups."""
        # Arrange
        now = datetime(2025, 2, 1, tzinfo=timezone.utc)

        # Act
        snapshot = MetricsSnapshot.empty("30d", computed_at=now)

        # Assert
        assert snapshot.is_empty
        assert snapshot.period == "30d"
        assert snapshot.computed_at == now
        assert snapshot.starting_equity is None
        assert snapshot.basic == BasicMetrics.empty()
        assert snapshot.risk == RiskMetrics.empty()

    def test_snapshot_is_frozen(self):
        """Test snapshots are immutable."""
        snapshot = MetricsSnapshot.empty("7d")

        with pytest.raises(ValidationError):
            snapshot.trade_count = 3  # type: ignore[misc]

    def test_snapshot_json_dump(self):
        """Test snapshot serializes to JSON-compatible values."""
        snapshot = MetricsSnapshot(period="all", trade_count=1, basic=BasicMetrics(total_pnl=Decimal("1.5")))

        data = snapshot.model_dump(mode="json")

        assert data["period"] == "all"
        assert data["basic"]["total_pnl"] == "1.5"


class TestHourlyPerformance:
    """Test breakdown record validation."""

    def test_hour_out_of_range_rejected(self):
        """Test hour must be 0-23."""
        with pytest.raises(ValidationError):
            HourlyPerformance(hour=24, total_pnl=Decimal("0"), trade_count=0, avg_pnl=Decimal("0"))
