"""Analytics service implementation.

Turns closed trades from a trade store into metrics snapshots, equity curves
and presentation breakdowns.
"""

import random
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from tradelens.libraries.performance.calculators import PeriodAggregationCalculator, analyze_streaks, build_equity_curve
from tradelens.libraries.performance.metrics import (
    calculate_basic_metrics,
    calculate_consistency_score,
    calculate_distribution_metrics,
    calculate_distribution_profile,
    calculate_quality_metrics,
    calculate_risk_metrics,
    calculate_trade_quality_report,
    run_monte_carlo,
)
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
from tradelens.services.analytics.equity import StartingEquityResolver
from tradelens.services.analytics.interface import IBalanceSource, ITradeStore
from tradelens.services.analytics.periods import AnalysisPeriod, resolve_date_range, subtract_months
from tradelens.system import LoggerFactory
from tradelens.system.config import AnalyticsConfig

logger = LoggerFactory.get_logger()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AnalyticsService:
    """
    Stateless metrics engine over an external trade store.

    Every call fetches the trades for its window once and recomputes from
    scratch; nothing is retained between calls, so the service is safe to
    call concurrently for different periods and idempotent for the same one.
    Starting equity is inferred per computation through StartingEquityResolver
    (the only step doing blocking I/O).

    Attributes:
        config: Analytics configuration (windows, equity floor, fallback leverage)

    Example:
        >>> service = AnalyticsService(CSVTradeStore("trades.csv"), StaticBalanceSource(Decimal("1370")))
        >>> snapshot = service.compute_metrics("30d")
        >>> print(f"Sharpe: {snapshot.risk.sharpe_ratio}")
        >>>
        >>> for point in service.compute_equity_curve("30d"):
        ...     print(point.timestamp, point.equity)
    """

    def __init__(
        self,
        trade_store: ITradeStore,
        balance_source: IBalanceSource,
        config: AnalyticsConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize analytics service.

        Args:
            trade_store: Source of closed trades
            balance_source: Current balance provider for starting equity
            config: Analytics configuration (defaults if None)
            clock: Returns "now" for period resolution (UTC wall clock if None)
        """
        self.config = config or AnalyticsConfig()
        self._trade_store = trade_store
        self._clock = clock or _utc_now
        self._equity_resolver = StartingEquityResolver(
            balance_source,
            asset=self.config.balance_asset,
            minimum=self.config.minimum_starting_equity,
            leverage_estimate=self.config.fallback_leverage,
        )

    # ==================== Snapshot ====================

    def compute_metrics(self, period: str) -> MetricsSnapshot:
        """
        Compute the full metrics snapshot for a period.

        Trades are fetched once and fed to every metric group. Without
        trades the zero snapshot is returned and the balance source is not
        queried.

        Args:
            period: One of 7d, 30d, 90d, 1y, all

        Returns:
            Fresh MetricsSnapshot

        Raises:
            ValueError: Unknown period or trades out of closing order
            StartingEquityError: Balance query failed and no fallback possible
        """
        parsed = AnalysisPeriod.parse(period)
        now = self._clock()
        trades = self._fetch(*resolve_date_range(parsed, now))

        if not trades:
            logger.info("analytics.metrics.empty", period=parsed.value)
            return MetricsSnapshot.empty(parsed.value, computed_at=now)

        starting_equity = self._equity_resolver.resolve(trades)
        curve = build_equity_curve(starting_equity, trades)
        pnls = [t.pnl for t in trades]

        snapshot = MetricsSnapshot(
            period=parsed.value,
            trade_count=len(trades),
            starting_equity=starting_equity,
            computed_at=now,
            basic=calculate_basic_metrics(trades),
            risk=calculate_risk_metrics(pnls, curve, starting_equity),
            distribution=calculate_distribution_metrics(pnls),
            quality=calculate_quality_metrics(trades),
        )

        logger.info(
            "analytics.metrics.computed",
            period=parsed.value,
            trade_count=len(trades),
            starting_equity=str(starting_equity),
            total_pnl=str(snapshot.basic.total_pnl),
        )
        return snapshot

    def compute_equity_curve(self, period: str) -> list[EquityPoint]:
        """
        Reconstruct the equity curve for a period.

        Unlike compute_metrics, the starting equity is resolved even when the
        period has no trades, so a failed balance query with nothing to fall
        back on raises instead of yielding an empty curve.

        Returns:
            One EquityPoint per trade, oldest first; empty without trades

        Raises:
            ValueError: Unknown period or trades out of closing order
            StartingEquityError: Balance query failed and there are no trades
        """
        parsed = AnalysisPeriod.parse(period)
        trades = self._fetch(*resolve_date_range(parsed, self._clock()))
        starting_equity = self._equity_resolver.resolve(trades)
        if not trades:
            return []

        curve = build_equity_curve(starting_equity, trades)

        logger.info(
            "analytics.equity_curve.built",
            period=parsed.value,
            points=len(curve),
            starting_equity=str(starting_equity),
            final_equity=str(curve[-1].equity),
        )
        return curve

    # ==================== Breakdowns ====================

    def monthly_performance(self) -> list[MonthlyPerformance]:
        """Per-month breakdown over the trailing ``monthly_window_months``."""
        now = self._clock()
        trades = self._fetch(subtract_months(now, self.config.monthly_window_months), now)
        return PeriodAggregationCalculator(trades).by_month()

    def hourly_performance(self) -> list[HourlyPerformance]:
        """Per-hour-of-day breakdown over the trailing ``hourly_window_days``."""
        return PeriodAggregationCalculator(self._fetch_trailing_days(self.config.hourly_window_days)).by_hour()

    def symbol_performance(self) -> list[SymbolPerformance]:
        """Per-symbol breakdown over the trailing ``symbol_window_days``, best first."""
        return PeriodAggregationCalculator(self._fetch_trailing_days(self.config.symbol_window_days)).by_symbol()

    def weekday_performance(self, period: str) -> list[WeekdayPerformance]:
        """Per-weekday breakdown for a period (all seven days)."""
        return PeriodAggregationCalculator(self._fetch_period(period)).by_weekday()

    def streak_analysis(self, period: str) -> StreakSummary:
        """Win/loss streak history for a period."""
        return analyze_streaks(self._fetch_period(period))

    def distribution_profile(self, period: str) -> DistributionProfile | None:
        """Descriptive pnl distribution for a period, None without trades."""
        trades = self._fetch_period(period)
        return calculate_distribution_profile([t.pnl for t in trades])

    def yearly_performance(self) -> list[YearlyPerformance]:
        """Per-calendar-year breakdown over all history."""
        return PeriodAggregationCalculator(self._fetch_period(AnalysisPeriod.ALL)).by_year()

    def consistency_score(self, period: str) -> Decimal:
        """Chunked pnl consistency score (0-100) for a period."""
        return calculate_consistency_score([t.pnl for t in self._fetch_period(period)])

    def monte_carlo_simulation(
        self,
        period: str = "all",
        simulations: int | None = None,
        trades_per_simulation: int | None = None,
        seed: int | None = None,
    ) -> MonteCarloResult | None:
        """
        Bootstrap future balances from a period's trade pnl.

        Simulations start from the period's resolved starting equity.
        Counts default to ``monte_carlo_simulations`` and
        ``monte_carlo_trades`` from the config; a seed makes the run
        repeatable.

        Returns:
            MonteCarloResult, or None without trades (no balance query)

        Raises:
            ValueError: Unknown period or non-positive counts
            StartingEquityError: Starting equity cannot be resolved
        """
        trades = self._fetch_period(period)
        if not trades:
            return None

        initial_balance = self._equity_resolver.resolve(trades)
        result = run_monte_carlo(
            [t.pnl for t in trades],
            initial_balance,
            simulations=self.config.monte_carlo_simulations if simulations is None else simulations,
            trades_per_simulation=(
                self.config.monte_carlo_trades if trades_per_simulation is None else trades_per_simulation
            ),
            rng=random.Random(seed),
        )

        logger.info(
            "analytics.monte_carlo.completed",
            period=AnalysisPeriod.parse(period).value,
            simulations=result.simulations,
            probability_of_profit=str(result.probability_of_profit),
            probability_of_ruin=str(result.probability_of_ruin),
        )
        return result

    def trade_quality(self, period: str) -> TradeQualityReport:
        """Per-trade quality scores and grades for a period, best first."""
        return calculate_trade_quality_report(self._fetch_period(period))

    # ==================== Helpers ====================

    def _fetch_period(self, period: str) -> Sequence[ClosedTrade]:
        return self._fetch(*resolve_date_range(period, self._clock()))

    def _fetch_trailing_days(self, days: int) -> Sequence[ClosedTrade]:
        now = self._clock()
        return self._fetch(now - timedelta(days=days), now)

    def _fetch(self, start: datetime, end: datetime) -> Sequence[ClosedTrade]:
        trades = list(self._trade_store.fetch_closed_trades(start, end))
        logger.debug(
            "analytics.trades.fetched",
            start=start.isoformat(),
            end=end.isoformat(),
            count=len(trades),
        )
        return trades
