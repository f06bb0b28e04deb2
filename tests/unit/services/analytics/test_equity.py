"""Unit tests for StartingEquityResolver."""

from decimal import Decimal
from unittest.mock import Mock

import pytest

from tests.factories import make_daily_trades
from tradelens.services.analytics.equity import StartingEquityResolver
from tradelens.services.analytics.interface import BalanceQueryError, StartingEquityError


@pytest.fixture
def balance_source():
    """Mock balance source."""
    return Mock()


class TestPrimaryPath:
    """Test balance minus realized pnl."""

    def test_balance_minus_pnl(self, balance_source, worked_example_trades):
        """Test balance 1370 with trades summing to 370 gives 1000."""
        # Arrange
        balance_source.get_account_balance.return_value = Decimal("1370")
        resolver = StartingEquityResolver(balance_source)

        # Act
        result = resolver.resolve(worked_example_trades)

        # Assert
        assert result == Decimal("1000")
        balance_source.get_account_balance.assert_called_once_with("USDT")

    def test_floor_applied(self, balance_source):
        """Test derived equity below the minimum is clamped."""
        balance_source.get_account_balance.return_value = Decimal("150")
        resolver = StartingEquityResolver(balance_source)

        result = resolver.resolve(make_daily_trades(["100"]))

        assert result == Decimal("100")

    def test_custom_asset_and_minimum(self, balance_source):
        """Test asset and floor come from constructor arguments."""
        balance_source.get_account_balance.return_value = Decimal("400")
        resolver = StartingEquityResolver(balance_source, asset="USDC", minimum=Decimal("500"))

        result = resolver.resolve(make_daily_trades(["-50"]))

        assert result == Decimal("500")
        balance_source.get_account_balance.assert_called_once_with("USDC")

    def test_losses_raise_starting_equity(self, balance_source):
        """Test losing trades mean the account started higher."""
        balance_source.get_account_balance.return_value = Decimal("900")
        resolver = StartingEquityResolver(balance_source)

        assert resolver.resolve(make_daily_trades(["-100"])) == Decimal("1000")

    def test_no_trades_returns_balance(self, balance_source):
        """Test an empty trade set starts at the current balance."""
        balance_source.get_account_balance.return_value = Decimal("2500")
        resolver = StartingEquityResolver(balance_source)

        assert resolver.resolve([]) == Decimal("2500")


class TestFallbackPath:
    """Test margin-based estimate when the balance query fails."""

    @pytest.mark.parametrize(
        "error",
        [
            BalanceQueryError("auth failed"),
            ConnectionError("unreachable"),
            TimeoutError("timed out"),
            PermissionError("401 invalid API key"),
            RuntimeError("exchange client error"),
        ],
    )
    def test_oldest_margin_times_leverage(self, balance_source, error):
        """Test fallback = oldest margin * 10."""
        # Arrange
        balance_source.get_account_balance.side_effect = error
        trades = make_daily_trades(["10", "20"], margin="50")
        resolver = StartingEquityResolver(balance_source)

        # Act
        result = resolver.resolve(trades)

        # Assert
        assert result == Decimal("500")

    def test_fallback_floor_applied(self, balance_source):
        """Test small margins are clamped to the minimum."""
        balance_source.get_account_balance.side_effect = BalanceQueryError("down")
        resolver = StartingEquityResolver(balance_source)

        assert resolver.resolve(make_daily_trades(["10"], margin="5")) == Decimal("100")

    def test_custom_leverage_estimate(self, balance_source):
        """Test leverage estimate is configurable."""
        balance_source.get_account_balance.side_effect = TimeoutError()
        resolver = StartingEquityResolver(balance_source, leverage_estimate=20)

        assert resolver.resolve(make_daily_trades(["10"], margin="50")) == Decimal("1000")

    def test_auth_failure_uses_margin_fallback(self, balance_source):
        """Test an exchange auth error falls back to the margin estimate."""
        # Arrange
        balance_source.get_account_balance.side_effect = PermissionError("401 invalid API key")
        resolver = StartingEquityResolver(balance_source)

        # Act
        result = resolver.resolve(make_daily_trades(["10"], margin="50"))

        # Assert
        assert result == Decimal("500")

    def test_any_failure_without_trades_is_fatal(self, balance_source):
        """Test non-balance exceptions are chained into StartingEquityError."""
        cause = PermissionError("401 invalid API key")
        balance_source.get_account_balance.side_effect = cause
        resolver = StartingEquityResolver(balance_source)

        with pytest.raises(StartingEquityError) as exc_info:
            resolver.resolve([])

        assert exc_info.value.__cause__ is cause

    def test_balance_queried_once(self, balance_source):
        """Test no retry is attempted."""
        balance_source.get_account_balance.side_effect = ConnectionError()
        resolver = StartingEquityResolver(balance_source)

        resolver.resolve(make_daily_trades(["10"]))

        assert balance_source.get_account_balance.call_count == 1


class TestFatalPath:
    """Test failure when no baseline can be derived."""

    def test_failed_balance_and_no_trades_raises(self, balance_source):
        """Test StartingEquityError chained to the balance failure."""
        # Arrange
        cause = BalanceQueryError("exchange unreachable")
        balance_source.get_account_balance.side_effect = cause
        resolver = StartingEquityResolver(balance_source)

        # Act & Assert
        with pytest.raises(StartingEquityError) as exc_info:
            resolver.resolve([])

        assert exc_info.value.__cause__ is cause
