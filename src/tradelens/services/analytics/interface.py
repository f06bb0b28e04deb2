"""Analytics service interfaces (Protocol).

Defines the collaborator contracts the analytics engine consumes (trade store,
balance source) and the contract it exposes to the presentation layer.
"""

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from tradelens.libraries.performance.models import (
    ClosedTrade,
    DistributionProfile,
    EquityPoint,
    HourlyPerformance,
    MetricsSnapshot,
    MonteCarloResult,
    MonthlyPerformance,
    StreakSummary,
    SymbolPerformance,
    TradeQualityReport,
    WeekdayPerformance,
    YearlyPerformance,
)


class BalanceQueryError(Exception):
    """Balance source could not return the current balance (unreachable, auth, timeout)."""

    pass


class StartingEquityError(Exception):
    """No starting equity can be derived: balance query failed and there are no trades."""

    pass


class ITradeStore(Protocol):
    """
    Source of closed trades.

    Implementations return trades whose ``closed_at`` falls inside
    ``[period_start, period_end]``, ordered ascending by ``closed_at``.
    """

    def fetch_closed_trades(self, period_start: datetime, period_end: datetime) -> Sequence[ClosedTrade]:
        """
        Fetch closed trades for a date range.

        Args:
            period_start: Inclusive lower bound on close time
            period_end: Inclusive upper bound on close time

        Returns:
            Trades ordered oldest to newest
        """
        ...


class IBalanceSource(Protocol):
    """
    Current account balance provider (typically an exchange client).

    A single bounded request: retries, if any, belong to the implementation.
    """

    def get_account_balance(self, asset: str) -> Decimal:
        """
        Get current total balance for an asset.

        Raises:
            BalanceQueryError: Balance could not be retrieved
            ConnectionError: Transport failure
            TimeoutError: Request timed out
        """
        ...


class IAnalyticsService(Protocol):
    """
    Analytics engine exposed to the presentation layer.

    Every call recomputes from the trade store; no results are retained
    between calls. Memoization is the job of a wrapper such as
    CachedAnalyticsService.

    Example:
        >>> service: IAnalyticsService = AnalyticsService(store, balance_source)
        >>> snapshot = service.compute_metrics("30d")
        >>> print(f"Win rate: {snapshot.basic.win_rate}%")
    """

    def compute_metrics(self, period: str) -> MetricsSnapshot:
        """
        Compute the full metrics snapshot for a period.

        Raises:
            ValueError: Unknown period
            StartingEquityError: Starting equity cannot be resolved
        """
        ...

    def compute_equity_curve(self, period: str) -> list[EquityPoint]:
        """Reconstruct the equity curve for a period (empty list without trades)."""
        ...

    def monthly_performance(self) -> list[MonthlyPerformance]:
        """Per-month breakdown over the trailing monthly window."""
        ...

    def hourly_performance(self) -> list[HourlyPerformance]:
        """Per-hour-of-day breakdown over the trailing hourly window."""
        ...

    def symbol_performance(self) -> list[SymbolPerformance]:
        """Per-symbol breakdown over the trailing symbol window."""
        ...

    def weekday_performance(self, period: str) -> list[WeekdayPerformance]:
        """Per-weekday breakdown for a period."""
        ...

    def streak_analysis(self, period: str) -> StreakSummary:
        """Win/loss streak history for a period."""
        ...

    def distribution_profile(self, period: str) -> DistributionProfile | None:
        """Descriptive pnl distribution for a period (None without trades)."""
        ...

    def yearly_performance(self) -> list[YearlyPerformance]:
        """Per-calendar-year breakdown over all history."""
        ...

    def consistency_score(self, period: str) -> Decimal:
        """Chunked pnl consistency score (0-100) for a period."""
        ...

    def monte_carlo_simulation(
        self,
        period: str,
        simulations: int | None = None,
        trades_per_simulation: int | None = None,
        seed: int | None = None,
    ) -> MonteCarloResult | None:
        """Bootstrap balance simulation from a period's pnl (None without trades)."""
        ...

    def trade_quality(self, period: str) -> TradeQualityReport:
        """Per-trade quality scores and grades for a period."""
        ...
