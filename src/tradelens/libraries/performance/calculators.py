"""Stateful performance calculators for incremental updates.

Calculators maintain state and update as trades are fed to them in
chronological order. AnalyticsService creates a fresh calculator for every
computation, so no state survives between calls.

Philosophy:
- Stateful: Maintain internal state between updates
- Incremental: One pass over the trade sequence
- Composable: Calculators can be combined for complex metrics
- Testable: Clear state transitions and observable outputs

Usage:
    >>> from tradelens.libraries.performance.calculators import EquityCurveCalculator
    >>> from decimal import Decimal
    >>>
    >>> calc = EquityCurveCalculator(Decimal("1000"))
    >>> calc.add_trade(trade)  # pnl = 100
    >>> calc.current_equity
    Decimal('1100')
"""

from collections.abc import Iterable, Sequence
from decimal import Decimal

from tradelens.libraries.performance.models import (
    ClosedTrade,
    EquityPoint,
    HourlyPerformance,
    MonthlyPerformance,
    Streak,
    StreakSummary,
    StreakType,
    SymbolPerformance,
    WeekdayPerformance,
    YearlyPerformance,
)

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class EquityCurveCalculator:
    """
    Reconstructs the equity curve by walking trades forward from a baseline.

    equity_0 = starting_equity, equity_i = equity_{i-1} + pnl_i, one
    EquityPoint per trade stamped with the trade's close time.
    """

    def __init__(self, starting_equity: Decimal):
        """
        Initialize equity curve calculator.

        Args:
            starting_equity: Equity before the first trade
        """
        self._starting_equity = starting_equity
        self._equity = starting_equity
        self._points: list[EquityPoint] = []

    def add_trade(self, trade: ClosedTrade) -> EquityPoint:
        """
        Apply a closed trade to the running equity.

        Args:
            trade: Next trade in closing order

        Returns:
            The emitted EquityPoint

        Raises:
            ValueError: If the trade closed before the previous one
        """
        if self._points and trade.closed_at < self._points[-1].timestamp:
            raise ValueError(
                f"Trades must be in closing order: {trade.closed_at} is before {self._points[-1].timestamp}"
            )

        self._equity += trade.pnl
        point = EquityPoint(timestamp=trade.closed_at, equity=self._equity, pnl=trade.pnl)
        self._points.append(point)
        return point

    @property
    def starting_equity(self) -> Decimal:
        """Baseline the walk started from."""
        return self._starting_equity

    @property
    def current_equity(self) -> Decimal:
        """Equity after the last applied trade."""
        return self._equity

    @property
    def points(self) -> list[EquityPoint]:
        """All emitted points."""
        return self._points.copy()

    def __len__(self) -> int:
        """Number of points in curve."""
        return len(self._points)


def build_equity_curve(starting_equity: Decimal, trades: Iterable[ClosedTrade]) -> list[EquityPoint]:
    """Walk ``trades`` (closing order) from ``starting_equity``."""
    calc = EquityCurveCalculator(starting_equity)
    for trade in trades:
        calc.add_trade(trade)
    return calc.points


class StreakCalculator:
    """
    Tracks win/loss runs incrementally.

    A trade with pnl > 0 is a win; everything else (including break-even) is
    a loss. A change of outcome closes the current run and opens a new one
    of length 1.
    """

    def __init__(self) -> None:
        """Initialize streak calculator."""
        self._closed: list[Streak] = []
        self._current_type: StreakType | None = None
        self._current_length = 0

    def add_trade(self, trade: ClosedTrade) -> None:
        """
        Add the next trade in chronological order.

        Args:
            trade: Closed trade
        """
        outcome = StreakType.WIN if trade.is_winner else StreakType.LOSS

        if outcome == self._current_type:
            self._current_length += 1
            return

        if self._current_type is not None:
            self._closed.append(Streak(type=self._current_type, length=self._current_length))

        self._current_type = outcome
        self._current_length = 1

    @property
    def current_streak(self) -> Streak | None:
        """Open run at the end of the sequence (None before any trade)."""
        if self._current_type is None:
            return None
        return Streak(type=self._current_type, length=self._current_length)

    @property
    def streaks(self) -> list[Streak]:
        """Complete run history, open run included as the last element."""
        current = self.current_streak
        return self._closed + [current] if current else self._closed.copy()

    def max_streak(self, streak_type: StreakType) -> int:
        """Longest run of the given type (0 if none)."""
        return max((s.length for s in self.streaks if s.type == streak_type), default=0)

    def summary(self) -> StreakSummary:
        """Aggregate the run history."""
        history = self.streaks
        wins = [s.length for s in history if s.type == StreakType.WIN]
        losses = [s.length for s in history if s.type == StreakType.LOSS]

        return StreakSummary(
            streaks=history,
            max_win_streak=max(wins, default=0),
            max_loss_streak=max(losses, default=0),
            avg_win_streak=Decimal(sum(wins)) / Decimal(len(wins)) if wins else Decimal("0"),
            avg_loss_streak=Decimal(sum(losses)) / Decimal(len(losses)) if losses else Decimal("0"),
            current_streak=self.current_streak,
        )


def analyze_streaks(trades: Iterable[ClosedTrade]) -> StreakSummary:
    """Streak history and aggregates for trades in chronological order."""
    calc = StreakCalculator()
    for trade in trades:
        calc.add_trade(trade)
    return calc.summary()


class PeriodAggregationCalculator:
    """
    Groups trades into presentation buckets (month, year, hour, symbol, weekday).

    Every grouping is independent and order-insensitive, keyed on the close
    time. The group totals of any grouping sum to the ungrouped total pnl.
    """

    def __init__(self, trades: Sequence[ClosedTrade] = ()) -> None:
        """
        Initialize period aggregation calculator.

        Args:
            trades: Initial trades (more can be added with add_trade)
        """
        self._trades: list[ClosedTrade] = list(trades)

    def add_trade(self, trade: ClosedTrade) -> None:
        """
        Add completed trade to period tracking.

        Args:
            trade: ClosedTrade object
        """
        self._trades.append(trade)

    @property
    def total_pnl(self) -> Decimal:
        """Ungrouped total pnl."""
        return sum((t.pnl for t in self._trades), Decimal("0"))

    def _group(self, key) -> dict:
        groups: dict = {}
        for trade in self._trades:
            groups.setdefault(key(trade), []).append(trade)
        return groups

    def by_month(self) -> list[MonthlyPerformance]:
        """
        Monthly buckets in chronological order.

        Returns:
            One MonthlyPerformance per ``YYYY-MM`` that has trades
        """
        groups = self._group(lambda t: t.closed_at.strftime("%Y-%m"))

        return [
            MonthlyPerformance(
                month=month,
                total_pnl=sum((t.pnl for t in trades), Decimal("0")),
                trade_count=len(trades),
                winning_trades=sum(1 for t in trades if t.is_winner),
            )
            for month, trades in sorted(groups.items())
        ]

    def by_year(self) -> list[YearlyPerformance]:
        """Calendar-year buckets (only years with trades), chronological."""
        groups = self._group(lambda t: t.closed_at.strftime("%Y"))

        results: list[YearlyPerformance] = []
        for year, trades in sorted(groups.items()):
            total = sum((t.pnl for t in trades), Decimal("0"))
            results.append(
                YearlyPerformance(
                    year=year,
                    total_pnl=total,
                    trade_count=len(trades),
                    avg_pnl=total / Decimal(len(trades)),
                )
            )
        return results

    def by_hour(self) -> list[HourlyPerformance]:
        """Hour-of-day buckets (only hours with trades), ascending."""
        groups = self._group(lambda t: t.closed_at.hour)

        results: list[HourlyPerformance] = []
        for hour, trades in sorted(groups.items()):
            total = sum((t.pnl for t in trades), Decimal("0"))
            results.append(
                HourlyPerformance(
                    hour=hour,
                    total_pnl=total,
                    trade_count=len(trades),
                    avg_pnl=total / Decimal(len(trades)),
                )
            )
        return results

    def by_symbol(self) -> list[SymbolPerformance]:
        """Per-instrument buckets, best total pnl first."""
        groups = self._group(lambda t: t.symbol)

        results: list[SymbolPerformance] = []
        for symbol, trades in groups.items():
            total = sum((t.pnl for t in trades), Decimal("0"))
            results.append(
                SymbolPerformance(
                    symbol=symbol,
                    total_pnl=total,
                    trade_count=len(trades),
                    winning_trades=sum(1 for t in trades if t.is_winner),
                    avg_pnl=total / Decimal(len(trades)),
                )
            )

        results.sort(key=lambda r: (-r.total_pnl, r.symbol))
        return results

    def by_weekday(self) -> list[WeekdayPerformance]:
        """All seven weekdays, Monday first; empty days report zeros."""
        groups = self._group(lambda t: t.closed_at.weekday())

        results: list[WeekdayPerformance] = []
        for index, day in enumerate(WEEKDAYS):
            trades = groups.get(index, [])
            total = sum((t.pnl for t in trades), Decimal("0"))
            results.append(
                WeekdayPerformance(
                    day=day,
                    total_pnl=total,
                    trade_count=len(trades),
                    avg_pnl=total / Decimal(len(trades)) if trades else Decimal("0"),
                )
            )
        return results
