"""Rich console formatters for analytics reports.

Terminal display of a MetricsSnapshot, its breakdowns and the equity curve,
with tables and color coding using the Rich library.
"""

from collections.abc import Sequence
from decimal import Decimal
from typing import Literal

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tradelens.libraries.performance.models import (
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


def _format_pct(value: Decimal, precision: int = 2) -> str:
    return f"{float(value):.{precision}f}%"


def _format_currency(value: Decimal, precision: int = 2) -> str:
    """Format currency value (sign before the symbol)."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(float(value)):,.{precision}f}"


def _format_number(value: int | float | Decimal, precision: int = 2) -> str:
    if isinstance(value, int):
        return f"{value:,}"
    return f"{float(value):,.{precision}f}"


def _get_color(value: Decimal) -> str:
    """Get color based on positive/negative value."""
    if value > 0:
        return "green"
    elif value < 0:
        return "red"
    return "white"


def _ratio_color(value: Decimal, good: Decimal = Decimal("1.0")) -> str:
    return "green" if value > good else "yellow" if value > Decimal("0") else "red"


def _colored(text: str, color: str) -> str:
    return f"[{color}]{text}[/{color}]"


def _metric_table(title: str) -> Table:
    table = Table(title=title, show_header=False, box=None, padding=(0, 2))
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    return table


def _create_summary_table(snapshot: MetricsSnapshot) -> Table:
    """Period, trade count and P&L headline."""
    table = _metric_table("📊 Performance Summary")
    basic = snapshot.basic

    table.add_row("Period", snapshot.period)
    if snapshot.computed_at is not None:
        table.add_row("Computed At", snapshot.computed_at.strftime("%Y-%m-%d %H:%M:%S %Z").strip())
    table.add_row("Trades", _format_number(snapshot.trade_count))
    if snapshot.starting_equity is not None:
        table.add_row("Starting Equity", _format_currency(snapshot.starting_equity))
    table.add_row("", "")  # Spacer

    table.add_row("Total P&L", _colored(_format_currency(basic.total_pnl), _get_color(basic.total_pnl)))
    table.add_row("Expectancy", _colored(_format_currency(basic.expectancy), _get_color(basic.expectancy)))

    return table


def _create_trade_stats_table(snapshot: MetricsSnapshot) -> Table:
    """Win/loss statistics."""
    table = _metric_table("💼 Trade Statistics")
    basic = snapshot.basic

    table.add_row("Winning Trades", _colored(_format_number(basic.winning_trades), "green"))
    table.add_row("Losing Trades", _colored(_format_number(basic.losing_trades), "red"))

    win_rate_color = "green" if basic.win_rate > Decimal("50") else "yellow" if basic.win_rate > Decimal("40") else "red"
    table.add_row("Win Rate", _colored(_format_pct(basic.win_rate), win_rate_color))

    if basic.gross_loss > 0:
        table.add_row("Profit Factor", _colored(_format_number(basic.profit_factor), _ratio_color(basic.profit_factor)))
    else:
        table.add_row("Profit Factor", "[dim]N/A (no losses)[/dim]")

    table.add_row("", "")  # Spacer
    table.add_row("Gross Profit", _colored(_format_currency(basic.gross_profit), "green"))
    table.add_row("Gross Loss", _colored(_format_currency(basic.gross_loss), "red"))
    table.add_row("Avg Win", _colored(_format_currency(basic.avg_win), "green"))
    table.add_row("Avg Loss", _colored(_format_currency(basic.avg_loss), "red"))
    table.add_row("Largest Win", _colored(_format_currency(basic.largest_win), "green"))
    table.add_row("Largest Loss", _colored(_format_currency(basic.largest_loss), "red"))

    return table


def _create_risk_table(snapshot: MetricsSnapshot) -> Table:
    """Risk-adjusted ratios, drawdown and tail risk."""
    table = _metric_table("⚠️  Risk Metrics")
    risk = snapshot.risk

    table.add_row("Sharpe Ratio", _colored(_format_number(risk.sharpe_ratio), _ratio_color(risk.sharpe_ratio)))
    table.add_row("Sortino Ratio", _colored(_format_number(risk.sortino_ratio), _ratio_color(risk.sortino_ratio)))
    table.add_row("Calmar Ratio", _colored(_format_number(risk.calmar_ratio), _ratio_color(risk.calmar_ratio)))
    table.add_row("Recovery Factor", _format_number(risk.recovery_factor))
    table.add_row("", "")  # Spacer
    table.add_row("Max Drawdown", _colored(_format_pct(risk.max_drawdown), "red"))
    table.add_row("Max DD Duration", f"{risk.max_drawdown_duration} days")
    table.add_row("VaR (95%)", _colored(_format_currency(risk.var_95), _get_color(risk.var_95)))
    table.add_row("CVaR (95%)", _colored(_format_currency(risk.cvar_95), _get_color(risk.cvar_95)))

    return table


def _create_distribution_table(snapshot: MetricsSnapshot) -> Table:
    table = _metric_table("📐 Distribution")
    dist = snapshot.distribution

    table.add_row("Std Dev", _format_number(dist.std_dev))
    table.add_row("Variance", _format_number(dist.variance))
    table.add_row("Skewness", _format_number(dist.skewness, 3))
    table.add_row("Excess Kurtosis", _format_number(dist.kurtosis, 3))

    return table


def _create_quality_table(snapshot: MetricsSnapshot) -> Table:
    table = _metric_table("🎯 Trade Quality")
    quality = snapshot.quality

    table.add_row("Avg Duration", f"{float(quality.avg_duration):,.1f} min")
    table.add_row("Avg Reward/Risk", _format_number(quality.avg_rrr))
    table.add_row("Max Consecutive Wins", _format_number(quality.win_streak))
    table.add_row("Max Consecutive Losses", _format_number(quality.loss_streak))

    return table


def _create_monthly_table(months: Sequence[MonthlyPerformance]) -> Table | None:
    if not months:
        return None

    table = Table(title="📅 Monthly Performance", box=None, padding=(0, 1))
    table.add_column("Month", style="cyan")
    table.add_column("P&L", justify="right")
    table.add_column("Trades", justify="right")
    table.add_column("Win Rate", justify="right")

    for month in months:
        win_rate = Decimal(month.winning_trades) / Decimal(month.trade_count) * 100 if month.trade_count else Decimal(0)
        table.add_row(
            month.month,
            _colored(_format_currency(month.total_pnl), _get_color(month.total_pnl)),
            _format_number(month.trade_count),
            _format_pct(win_rate, 1),
        )

    return table


def _create_hourly_table(hours: Sequence[HourlyPerformance]) -> Table | None:
    if not hours:
        return None

    table = Table(title="🕐 Hourly Performance", box=None, padding=(0, 1))
    table.add_column("Hour", style="cyan")
    table.add_column("P&L", justify="right")
    table.add_column("Trades", justify="right")
    table.add_column("Avg P&L", justify="right")

    for hour in hours:
        table.add_row(
            f"{hour.hour:02d}:00",
            _colored(_format_currency(hour.total_pnl), _get_color(hour.total_pnl)),
            _format_number(hour.trade_count),
            _format_currency(hour.avg_pnl),
        )

    return table


def _create_symbol_table(symbols: Sequence[SymbolPerformance]) -> Table | None:
    if not symbols:
        return None

    table = Table(title="🪙 Symbol Performance", box=None, padding=(0, 1))
    table.add_column("Symbol", style="cyan")
    table.add_column("P&L", justify="right")
    table.add_column("Trades", justify="right")
    table.add_column("Wins", justify="right", style="green")
    table.add_column("Avg P&L", justify="right")

    for symbol in symbols:
        table.add_row(
            symbol.symbol,
            _colored(_format_currency(symbol.total_pnl), _get_color(symbol.total_pnl)),
            _format_number(symbol.trade_count),
            _format_number(symbol.winning_trades),
            _format_currency(symbol.avg_pnl),
        )

    return table


def _create_weekday_table(days: Sequence[WeekdayPerformance]) -> Table | None:
    if not days or all(day.trade_count == 0 for day in days):
        return None

    table = Table(title="📆 Weekday Performance", box=None, padding=(0, 1))
    table.add_column("Day", style="cyan")
    table.add_column("P&L", justify="right")
    table.add_column("Trades", justify="right")
    table.add_column("Avg P&L", justify="right")

    for day in days:
        table.add_row(
            day.day,
            _colored(_format_currency(day.total_pnl), _get_color(day.total_pnl)),
            _format_number(day.trade_count),
            _format_currency(day.avg_pnl) if day.trade_count else "—",
        )

    return table


def _create_streak_table(streaks: StreakSummary) -> Table | None:
    if not streaks.streaks:
        return None

    table = _metric_table("🔥 Streaks")
    table.add_row("Max Win Streak", _colored(_format_number(streaks.max_win_streak), "green"))
    table.add_row("Max Loss Streak", _colored(_format_number(streaks.max_loss_streak), "red"))
    table.add_row("Avg Win Streak", _format_number(streaks.avg_win_streak))
    table.add_row("Avg Loss Streak", _format_number(streaks.avg_loss_streak))
    if streaks.current_streak is not None:
        color = "green" if streaks.current_streak.type.value == "win" else "red"
        table.add_row(
            "Current Streak",
            _colored(f"{streaks.current_streak.length} {streaks.current_streak.type.value}", color),
        )

    return table


def _create_profile_table(profile: DistributionProfile | None) -> Table | None:
    if profile is None:
        return None

    table = _metric_table("📊 P&L Distribution")
    table.add_row("Mean", _format_currency(profile.mean))
    table.add_row("Median", _format_currency(profile.median))
    table.add_row("Mode", _format_currency(profile.mode, 0))
    table.add_row("Range", _format_currency(profile.range))
    table.add_row("IQR", _format_currency(profile.iqr))
    for pct, value in sorted(profile.percentiles.items()):
        table.add_row(f"P{pct}", _format_currency(value))
    table.add_row("Shape", profile.interpretation)

    return table


def _create_yearly_table(years: Sequence[YearlyPerformance]) -> Table | None:
    if not years:
        return None

    table = Table(title="🗓️ Yearly Performance", box=None, padding=(0, 1))
    table.add_column("Year", style="cyan")
    table.add_column("P&L", justify="right")
    table.add_column("Trades", justify="right")
    table.add_column("Avg P&L", justify="right")

    for year in years:
        table.add_row(
            year.year,
            _colored(_format_currency(year.total_pnl), _get_color(year.total_pnl)),
            _format_number(year.trade_count),
            _format_currency(year.avg_pnl),
        )

    return table


def _create_monte_carlo_table(result: MonteCarloResult | None, consistency: Decimal | None) -> Table | None:
    """Simulated balance outlook plus the consistency score."""
    if result is None and consistency is None:
        return None

    table = _metric_table("🎲 Outlook")
    if consistency is not None:
        table.add_row("Consistency Score", _format_number(consistency, 1))
    if result is not None:
        table.add_row(
            "Simulations",
            f"{_format_number(result.simulations)} x {_format_number(result.trades_per_simulation)} trades",
        )
        table.add_row("Initial Balance", _format_currency(result.initial_balance))
        table.add_row("Median Final Balance", _format_currency(result.median_final_balance))
        table.add_row("5th Percentile", _format_currency(result.percentile_5))
        table.add_row("95th Percentile", _format_currency(result.percentile_95))
        table.add_row("Probability of Profit", _colored(_format_pct(result.probability_of_profit, 1), "green"))
        table.add_row("Probability of Ruin", _colored(_format_pct(result.probability_of_ruin, 1), "red"))

    return table


def _create_trade_quality_table(report: TradeQualityReport | None) -> Table | None:
    if report is None or not report.scores:
        return None

    table = Table(
        title=f"🏅 Trade Grades (avg {_format_number(report.avg_quality, 1)})",
        box=None,
        padding=(0, 1),
    )
    table.add_column("Symbol", style="cyan")
    table.add_column("Closed", style="dim")
    table.add_column("P&L", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Grade", justify="center")

    for score in report.best_trades:
        table.add_row(
            score.symbol,
            score.closed_at.strftime("%Y-%m-%d %H:%M"),
            _colored(_format_currency(score.pnl), _get_color(score.pnl)),
            _format_number(score.total_score),
            score.grade,
        )

    return table


def display_metrics_report(
    snapshot: MetricsSnapshot,
    detail_level: Literal["summary", "standard", "full"] = "standard",
    console: Console | None = None,
    monthly: Sequence[MonthlyPerformance] = (),
    hourly: Sequence[HourlyPerformance] = (),
    symbols: Sequence[SymbolPerformance] = (),
    weekdays: Sequence[WeekdayPerformance] = (),
    streaks: StreakSummary | None = None,
    profile: DistributionProfile | None = None,
    yearly: Sequence[YearlyPerformance] = (),
    consistency: Decimal | None = None,
    monte_carlo: MonteCarloResult | None = None,
    quality: TradeQualityReport | None = None,
) -> None:
    """
    Display a metrics snapshot in Rich-formatted console output.

    Args:
        snapshot: Metrics snapshot to display
        detail_level: Level of detail to display:
            - "summary": Headline P&L and trade counts only
            - "standard": Summary + trade stats + risk + distribution + quality
            - "full": Everything including the breakdown tables passed in
        console: Rich Console instance (creates new if None)
        monthly, hourly, symbols, weekdays, streaks, profile, yearly,
        consistency, monte_carlo, quality: Optional breakdowns shown at the
            "full" level

    Example:
        >>> snapshot = service.compute_metrics("30d")
        >>> display_metrics_report(snapshot, detail_level="standard")
    """
    if console is None:
        console = Console()

    console.print()

    if snapshot.is_empty:
        console.print(
            Panel(
                f"No closed trades in period [bold]{snapshot.period}[/bold]",
                title="📊 Performance Summary",
                border_style="yellow",
            )
        )
        console.print()
        return

    console.print(_create_summary_table(snapshot))
    console.print()

    if detail_level in ["standard", "full"]:
        for table in (
            _create_trade_stats_table(snapshot),
            _create_risk_table(snapshot),
            _create_distribution_table(snapshot),
            _create_quality_table(snapshot),
        ):
            console.print(table)
            console.print()

    if detail_level == "full":
        breakdowns = (
            _create_monthly_table(monthly),
            _create_hourly_table(hourly),
            _create_symbol_table(symbols),
            _create_weekday_table(weekdays),
            _create_streak_table(streaks) if streaks is not None else None,
            _create_profile_table(profile),
            _create_yearly_table(yearly),
            _create_monte_carlo_table(monte_carlo, consistency),
            _create_trade_quality_table(quality),
        )
        for breakdown in breakdowns:
            if breakdown is not None:
                console.print(breakdown)
                console.print()

    total_pnl = snapshot.basic.total_pnl
    summary_text = Text()
    summary_text.append(f"🏁 {snapshot.period}: ", style="bold")
    summary_text.append(f"{snapshot.trade_count} trades, ", style="bold cyan")
    summary_text.append(_format_currency(total_pnl), style=f"bold {_get_color(total_pnl)}")
    summary_text.append(f" (max DD {_format_pct(snapshot.risk.max_drawdown)})", style="bold")

    console.print(Panel(summary_text, border_style="green" if total_pnl > 0 else "red"))
    console.print()


def display_equity_curve(curve: Sequence[EquityPoint], period: str, console: Console | None = None) -> None:
    """
    Display the reconstructed equity curve as a table.

    Args:
        curve: Equity points, oldest first
        period: Period label for the title
        console: Rich Console instance (creates new if None)
    """
    if console is None:
        console = Console()

    if not curve:
        console.print(f"[yellow]No closed trades in period {period}[/yellow]")
        return

    table = Table(title=f"📈 Equity Curve ({period})", box=None, padding=(0, 1))
    table.add_column("Closed At", style="cyan")
    table.add_column("P&L", justify="right")
    table.add_column("Equity", justify="right")

    for point in curve:
        table.add_row(
            point.timestamp.strftime("%Y-%m-%d %H:%M"),
            _colored(_format_currency(point.pnl), _get_color(point.pnl)),
            _format_currency(point.equity),
        )

    console.print(table)
