"""Performance metrics calculation functions.

Pure functions for calculating performance statistics from a chronological
sequence of closed trades, their pnl values and the reconstructed equity
curve. All functions are stateless and testable.

Philosophy:
- Pure functions: same inputs always produce same outputs
- No side effects: don't modify inputs or global state
- Explicit edge cases: empty input, too few samples and zero variance
  return zeros instead of raising
- Decimal throughout: square roots use ``Decimal.sqrt`` so money values
  never round-trip through float

Usage:
    >>> from tradelens.libraries.performance import metrics
    >>> from decimal import Decimal
    >>>
    >>> pnls = [Decimal("100"), Decimal("-50"), Decimal("200")]
    >>> metrics.calculate_std_dev(pnls)
    Decimal('125.8305739211791...')
    >>> metrics.calculate_value_at_risk(pnls)
    (Decimal('-50'), Decimal('-50'))
"""

import random
from collections import Counter
from collections.abc import Sequence
from datetime import timedelta
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal

from tradelens.libraries.performance.calculators import StreakCalculator
from tradelens.libraries.performance.models import (
    BasicMetrics,
    ClosedTrade,
    DistributionMetrics,
    DistributionProfile,
    EquityPoint,
    HistogramBucket,
    MonteCarloResult,
    QualityMetrics,
    RiskMetrics,
    StreakType,
    TradeQualityReport,
    TradeQualityScore,
    TradeSide,
)

# Annualization constant (trading periods per year). Applied to per-trade
# statistics regardless of the analyzed period's granularity.
TRADING_PERIODS_PER_YEAR = 252

# Tail probability for historical VaR / CVaR (95% confidence)
VAR_TAIL = Decimal("0.05")

MIN_SAMPLES_FOR_STD_DEV = 2
MIN_SAMPLES_FOR_MOMENTS = 3

DEFAULT_PERCENTILES = (5, 10, 25, 50, 75, 90, 95)

# Trades per chunk for the consistency score
CONSISTENCY_CHUNK_SIZE = 10

# Monte Carlo: a final balance at or below this share of the initial balance is ruin
RUIN_FRACTION = Decimal("0.5")

# Minimum total quality score per grade, best first
QUALITY_GRADES = ((90, "A+"), (80, "A"), (70, "B"), (60, "C"), (50, "D"))
QUALITY_REPORT_SIZE = 10

_ZERO = Decimal("0")


def calculate_mean(values: Sequence[Decimal]) -> Decimal:
    """Arithmetic mean, 0 for an empty sequence."""
    if not values:
        return _ZERO
    return sum(values, _ZERO) / Decimal(len(values))


def calculate_std_dev(values: Sequence[Decimal]) -> Decimal:
    """
    Calculate sample standard deviation (divides by n - 1).

    Args:
        values: Sequence of values (e.g. per-trade pnl)

    Returns:
        Sample standard deviation, or 0 when fewer than two values

    Example:
        >>> calculate_std_dev([Decimal("1"), Decimal("3")])
        Decimal('1.414213562373095048801688724')
    """
    if len(values) < MIN_SAMPLES_FOR_STD_DEV:
        return _ZERO

    mean = calculate_mean(values)
    variance = sum(((v - mean) ** 2 for v in values), _ZERO) / Decimal(len(values) - 1)

    return variance.sqrt()


def calculate_basic_metrics(trades: Sequence[ClosedTrade]) -> BasicMetrics:
    """
    Calculate basic P&L statistics.

    Trades with pnl > 0 are winners, pnl < 0 losers; break-even trades count
    toward the total only.

    Args:
        trades: Closed trades (order does not matter)

    Returns:
        BasicMetrics; all zeros for empty input

    Example:
        >>> m = calculate_basic_metrics(trades)  # pnl 100, -50, 200, -30, 150
        >>> m.win_rate, m.profit_factor, m.expectancy
        (Decimal('60.0'), Decimal('5.625'), Decimal('74'))
    """
    if not trades:
        return BasicMetrics.empty()

    total = len(trades)
    wins = [t.pnl for t in trades if t.is_winner]
    losses = [t.pnl for t in trades if t.is_loser]

    total_pnl = sum((t.pnl for t in trades), _ZERO)
    gross_profit = sum(wins, _ZERO)
    gross_loss = abs(sum(losses, _ZERO))

    return BasicMetrics(
        total_trades=total,
        winning_trades=len(wins),
        losing_trades=len(losses),
        win_rate=Decimal(len(wins)) / Decimal(total) * Decimal("100"),
        total_pnl=total_pnl,
        gross_profit=gross_profit,
        gross_loss=gross_loss,
        avg_win=gross_profit / Decimal(len(wins)) if wins else _ZERO,
        avg_loss=gross_loss / Decimal(len(losses)) if losses else _ZERO,
        largest_win=max(wins) if wins else _ZERO,
        largest_loss=min(losses) if losses else _ZERO,
        profit_factor=gross_profit / gross_loss if gross_loss > _ZERO else _ZERO,
        expectancy=total_pnl / Decimal(total),
    )


def calculate_sharpe_ratio(pnls: Sequence[Decimal], annualization_factor: int = TRADING_PERIODS_PER_YEAR) -> Decimal:
    """
    Calculate annualized Sharpe ratio of per-trade pnl (risk-free rate 0).

    Sharpe = mean / stddev * sqrt(annualization_factor)

    Returns:
        Sharpe ratio, or 0 when stddev is 0 (fewer than two trades or
        identical outcomes)
    """
    std_dev = calculate_std_dev(pnls)
    if std_dev == _ZERO:
        return _ZERO

    return calculate_mean(pnls) / std_dev * Decimal(annualization_factor).sqrt()


def calculate_sortino_ratio(pnls: Sequence[Decimal], annualization_factor: int = TRADING_PERIODS_PER_YEAR) -> Decimal:
    """
    Calculate annualized Sortino ratio of per-trade pnl.

    Like Sharpe, but the denominator is the sample stddev of the losing
    trades only. Falls back to the overall stddev when there are no losing
    trades.

    Note:
        A single losing trade has a downside deviation of 0, which yields 0
        here (no fallback): the fallback only applies when the losing subset
        is empty.
    """
    downside = [p for p in pnls if p < _ZERO]
    deviation = calculate_std_dev(downside) if downside else calculate_std_dev(pnls)

    if deviation == _ZERO:
        return _ZERO

    return calculate_mean(pnls) / deviation * Decimal(annualization_factor).sqrt()


def calculate_max_drawdown(starting_equity: Decimal, equity_curve: Sequence[EquityPoint]) -> tuple[Decimal, int]:
    """
    Walk the equity curve tracking the running peak.

    The peak starts at ``starting_equity``. A point strictly above the peak
    becomes the new peak and closes any drawdown episode; any other point is
    in drawdown (0% when equal to the peak). The first such point opens an
    episode; later points in the same episode extend its duration.

    Args:
        starting_equity: Equity before the first trade
        equity_curve: Chronological equity points

    Returns:
        (max_drawdown_pct, max_drawdown_duration_days), drawdown as a
        positive percentage; (0, 0) if equity never fell below a peak

    Example:
        >>> # 1000 -> 1100 -> 1050 -> 1250 -> 1220 -> 1370
        >>> calculate_max_drawdown(Decimal("1000"), curve)[0]
        Decimal('4.545454545454545454545454545')
    """
    peak = starting_equity
    max_drawdown = _ZERO
    max_duration = 0
    episode_start = None

    for point in equity_curve:
        if point.equity > peak:
            peak = point.equity
            episode_start = None
            continue

        if peak > _ZERO:
            drawdown = (peak - point.equity) / peak * Decimal("100")
            if drawdown > max_drawdown:
                max_drawdown = drawdown

        if episode_start is None:
            episode_start = point.timestamp
        else:
            max_duration = max(max_duration, (point.timestamp - episode_start).days)

    return max_drawdown, max_duration


def calculate_calmar_ratio(
    mean_pnl: Decimal, max_drawdown_pct: Decimal, annualization_factor: int = TRADING_PERIODS_PER_YEAR
) -> Decimal:
    """
    Calculate Calmar ratio: |annualized mean pnl / max drawdown|.

    Returns 0 when there was no drawdown.
    """
    if max_drawdown_pct <= _ZERO:
        return _ZERO

    return abs(mean_pnl * Decimal(annualization_factor) / max_drawdown_pct)


def calculate_recovery_factor(total_pnl: Decimal, max_drawdown_pct: Decimal) -> Decimal:
    """Calculate recovery factor: |total pnl / max drawdown|, 0 without drawdown."""
    if max_drawdown_pct <= _ZERO:
        return _ZERO

    return abs(total_pnl / max_drawdown_pct)


def calculate_value_at_risk(pnls: Sequence[Decimal]) -> tuple[Decimal, Decimal]:
    """
    Historical VaR and CVaR at 95% confidence.

    Sorts pnl ascending and takes the value at index floor(n * 0.05) as VaR;
    CVaR is the mean of all values up to and including that index.

    Returns:
        (var_95, cvar_95); (0, 0) for an empty sequence. CVaR <= VaR always.

    Example:
        >>> calculate_value_at_risk([Decimal("100"), Decimal("-50"), Decimal("200")])
        (Decimal('-50'), Decimal('-50'))
    """
    if not pnls:
        return _ZERO, _ZERO

    ordered = sorted(pnls)
    index = int((Decimal(len(ordered)) * VAR_TAIL).to_integral_value(rounding=ROUND_FLOOR))
    tail = ordered[: index + 1]

    return ordered[index], calculate_mean(tail)


def calculate_risk_metrics(
    pnls: Sequence[Decimal],
    equity_curve: Sequence[EquityPoint],
    starting_equity: Decimal,
) -> RiskMetrics:
    """
    Calculate every risk figure for one trade set.

    Args:
        pnls: Chronological per-trade pnl
        equity_curve: Equity walk built from the same trades
        starting_equity: Origin of the equity walk

    Returns:
        RiskMetrics; all zeros for empty input
    """
    if not pnls:
        return RiskMetrics.empty()

    mean_pnl = calculate_mean(pnls)
    max_drawdown, duration_days = calculate_max_drawdown(starting_equity, equity_curve)
    var_95, cvar_95 = calculate_value_at_risk(pnls)

    return RiskMetrics(
        sharpe_ratio=calculate_sharpe_ratio(pnls),
        sortino_ratio=calculate_sortino_ratio(pnls),
        calmar_ratio=calculate_calmar_ratio(mean_pnl, max_drawdown),
        max_drawdown=max_drawdown,
        max_drawdown_duration=duration_days,
        recovery_factor=calculate_recovery_factor(sum(pnls, _ZERO), max_drawdown),
        var_95=var_95,
        cvar_95=cvar_95,
    )


def _standardized_moments(values: Sequence[Decimal], mean: Decimal, std_dev: Decimal) -> tuple[Decimal, Decimal]:
    """Third standardized moment and excess kurtosis."""
    count = Decimal(len(values))
    z_scores = [(v - mean) / std_dev for v in values]
    skewness = sum((z**3 for z in z_scores), _ZERO) / count
    kurtosis = sum((z**4 for z in z_scores), _ZERO) / count - Decimal("3")
    return skewness, kurtosis


def calculate_distribution_metrics(pnls: Sequence[Decimal]) -> DistributionMetrics:
    """
    Calculate variance, skewness and excess kurtosis of per-trade pnl.

    Uses the sample stddev for standardization. Fewer than three trades, or
    a zero stddev, yields an all-zero record.
    """
    if len(pnls) < MIN_SAMPLES_FOR_MOMENTS:
        return DistributionMetrics.empty()

    std_dev = calculate_std_dev(pnls)
    if std_dev == _ZERO:
        return DistributionMetrics.empty()

    skewness, kurtosis = _standardized_moments(pnls, calculate_mean(pnls), std_dev)

    return DistributionMetrics(
        skewness=skewness,
        kurtosis=kurtosis,
        std_dev=std_dev,
        variance=std_dev**2,
    )


def calculate_median(values: Sequence[Decimal]) -> Decimal:
    """Median, 0 for an empty sequence."""
    if not values:
        return _ZERO

    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / Decimal("2")
    return ordered[mid]


def calculate_percentiles(
    values: Sequence[Decimal], percentiles: Sequence[int] = DEFAULT_PERCENTILES
) -> dict[int, Decimal]:
    """
    Nearest-rank percentiles: index floor(p / 100 * n), clamped to the range.

    Returns an empty mapping for an empty sequence.
    """
    if not values:
        return {}

    ordered = sorted(values)
    result: dict[int, Decimal] = {}
    for p in percentiles:
        index = int(Decimal(p) / Decimal("100") * Decimal(len(ordered)))
        result[p] = ordered[max(0, min(index, len(ordered) - 1))]
    return result


def build_histogram(values: Sequence[Decimal], buckets: int = 20) -> list[HistogramBucket]:
    """
    Equal-width histogram over [min, max].

    A degenerate range (all values equal) produces a single bucket holding
    every value.
    """
    if not values:
        return []
    if buckets < 1:
        raise ValueError(f"buckets must be >= 1, got {buckets}")

    low = min(values)
    high = max(values)
    if high == low:
        return [HistogramBucket(lower=low, upper=high, count=len(values))]

    width = (high - low) / Decimal(buckets)
    counts = [0] * buckets
    for value in values:
        index = int((value - low) / width)
        counts[min(index, buckets - 1)] += 1

    return [
        HistogramBucket(lower=low + width * i, upper=low + width * (i + 1), count=count)
        for i, count in enumerate(counts)
    ]


def calculate_mode(values: Sequence[Decimal]) -> Decimal:
    """
    Most frequent value after rounding to whole units (half away from zero).

    Ties go to the value seen first. Returns 0 for an empty sequence.
    """
    if not values:
        return _ZERO
    counts = Counter(v.quantize(Decimal("1"), rounding=ROUND_HALF_UP) for v in values)
    return max(counts, key=counts.__getitem__)


def interpret_distribution_shape(skewness: Decimal, kurtosis: Decimal) -> str:
    """Human-readable description of skewness and excess kurtosis."""
    if abs(skewness) < Decimal("0.5"):
        parts = ["Symmetric distribution"]
    elif skewness > 0:
        parts = ["Right-skewed (more large wins)"]
    else:
        parts = ["Left-skewed (more large losses)"]

    if kurtosis > Decimal("1"):
        parts.append("Heavy tails (more extreme outcomes)")
    elif kurtosis < Decimal("-1"):
        parts.append("Light tails (fewer extreme outcomes)")
    else:
        parts.append("Normal tails")

    return ", ".join(parts)


def calculate_distribution_profile(pnls: Sequence[Decimal], buckets: int = 20) -> DistributionProfile | None:
    """
    Descriptive statistics of the pnl distribution for presentation.

    Args:
        pnls: Per-trade pnl (order does not matter)
        buckets: Histogram bucket count

    Returns:
        DistributionProfile, or None for an empty sequence
    """
    if not pnls:
        return None

    moments = calculate_distribution_metrics(pnls)
    percentiles = calculate_percentiles(pnls)

    return DistributionProfile(
        mean=calculate_mean(pnls),
        median=calculate_median(pnls),
        mode=calculate_mode(pnls),
        std_dev=calculate_std_dev(pnls),
        range=max(pnls) - min(pnls),
        iqr=percentiles[75] - percentiles[25],
        skewness=moments.skewness,
        kurtosis=moments.kurtosis,
        percentiles=percentiles,
        histogram=build_histogram(pnls, buckets),
        interpretation=interpret_distribution_shape(moments.skewness, moments.kurtosis),
    )


def calculate_average_duration(trades: Sequence[ClosedTrade]) -> Decimal:
    """Mean holding time in minutes, 0 for no trades."""
    if not trades:
        return _ZERO
    return sum((t.duration_minutes for t in trades), _ZERO) / Decimal(len(trades))


def calculate_average_rrr(trades: Sequence[ClosedTrade]) -> Decimal:
    """
    Average planned reward/risk ratio.

    Only trades with both stop loss and take profit set, and a non-zero
    planned risk, contribute:
        risk = |entry - stop_loss| * quantity
        reward = |take_profit - entry| * quantity

    Returns:
        Mean reward/risk, or 0 when no trade qualifies
    """
    ratios: list[Decimal] = []
    for trade in trades:
        if trade.stop_loss is None or trade.take_profit is None:
            continue
        risk = abs(trade.entry_price - trade.stop_loss) * trade.quantity
        reward = abs(trade.take_profit - trade.entry_price) * trade.quantity
        if risk > _ZERO:
            ratios.append(reward / risk)

    return calculate_mean(ratios)


def calculate_quality_metrics(trades: Sequence[ClosedTrade]) -> QualityMetrics:
    """
    Calculate trade quality figures.

    Args:
        trades: Closed trades in chronological order (streaks depend on order)

    Returns:
        QualityMetrics; avg_mae/avg_mfe are always 0 (no intrabar data)
    """
    if not trades:
        return QualityMetrics.empty()

    streaks = StreakCalculator()
    for trade in trades:
        streaks.add_trade(trade)

    return QualityMetrics(
        avg_duration=calculate_average_duration(trades),
        avg_rrr=calculate_average_rrr(trades),
        win_streak=streaks.max_streak(StreakType.WIN),
        loss_streak=streaks.max_streak(StreakType.LOSS),
    )


def calculate_consistency_score(pnls: Sequence[Decimal], chunk_size: int = CONSISTENCY_CHUNK_SIZE) -> Decimal:
    """
    Score (0-100) of how evenly profit is spread over consecutive trade chunks.

    Pnl is summed per chunk of ``chunk_size`` trades in order (the last chunk
    may be shorter). The score is ``100 - 50 * cv`` floored at 0, where cv is
    the coefficient of variation of the chunk sums (population std / |mean|).

    Returns:
        0 with fewer than ``chunk_size`` trades or a zero mean chunk sum

    Raises:
        ValueError: If chunk_size is less than 1
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")
    if len(pnls) < chunk_size:
        return _ZERO

    chunks = [sum(pnls[i : i + chunk_size], _ZERO) for i in range(0, len(pnls), chunk_size)]
    mean = calculate_mean(chunks)
    if mean == _ZERO:
        return _ZERO

    variance = sum(((c - mean) ** 2 for c in chunks), _ZERO) / Decimal(len(chunks))
    cv = variance.sqrt() / abs(mean)
    return max(_ZERO, Decimal("100") - cv * Decimal("50"))


def run_monte_carlo(
    pnls: Sequence[Decimal],
    initial_balance: Decimal,
    simulations: int = 1000,
    trades_per_simulation: int = 100,
    rng: random.Random | None = None,
) -> MonteCarloResult | None:
    """
    Bootstrap future balances by resampling historical pnl with replacement.

    Args:
        pnls: Historical per-trade pnl to draw from
        initial_balance: Balance every simulation starts from
        simulations: Number of simulated paths
        trades_per_simulation: Draws per path; a path stops once its balance
            reaches zero
        rng: Random source, pass a seeded ``random.Random`` for repeatable runs

    Returns:
        MonteCarloResult, or None for an empty pnl sequence

    Raises:
        ValueError: If simulations or trades_per_simulation is less than 1
    """
    if simulations < 1 or trades_per_simulation < 1:
        raise ValueError("simulations and trades_per_simulation must be at least 1")
    if not pnls:
        return None

    rng = rng or random.Random()
    finals: list[Decimal] = []
    for _ in range(simulations):
        balance = initial_balance
        for _ in range(trades_per_simulation):
            balance += rng.choice(pnls)
            if balance <= _ZERO:
                break
        finals.append(balance)

    finals.sort()
    count = len(finals)
    ruin_level = initial_balance * RUIN_FRACTION
    profitable = sum(1 for b in finals if b > initial_balance)
    ruined = sum(1 for b in finals if b <= ruin_level)

    return MonteCarloResult(
        simulations=simulations,
        trades_per_simulation=trades_per_simulation,
        initial_balance=initial_balance,
        mean_final_balance=calculate_mean(finals),
        median_final_balance=calculate_median(finals),
        min_final_balance=finals[0],
        max_final_balance=finals[-1],
        percentile_5=finals[count * 5 // 100],
        percentile_95=finals[min(count * 95 // 100, count - 1)],
        probability_of_profit=Decimal(profitable) / Decimal(count) * Decimal("100"),
        probability_of_ruin=Decimal(ruined) / Decimal(count) * Decimal("100"),
    )


def grade_for_score(score: int) -> str:
    """Letter grade for a total quality score."""
    for threshold, grade in QUALITY_GRADES:
        if score >= threshold:
            return grade
    return "F"


def _risk_reward_points(trade: ClosedTrade) -> int:
    if trade.stop_loss is None or trade.take_profit is None:
        return 0
    risk = abs(trade.entry_price - trade.stop_loss)
    if risk == _ZERO:
        return 0
    ratio = abs(trade.take_profit - trade.entry_price) / risk
    if ratio >= 3:
        return 20
    if ratio >= 2:
        return 15
    if ratio >= Decimal("1.5"):
        return 10
    return 0


def _execution_points(trade: ClosedTrade) -> int:
    if trade.is_winner and trade.take_profit is not None:
        # Within 5% of the target counts as reaching it
        if trade.side == TradeSide.LONG:
            reached = trade.exit_price >= trade.take_profit * Decimal("0.95")
        else:
            reached = trade.exit_price <= trade.take_profit * Decimal("1.05")
        return 15 if reached else 0
    if trade.is_loser and trade.stop_loss is not None and trade.stop_loss > _ZERO:
        # Closed near the planned stop rather than beyond it
        slippage = abs(trade.exit_price - trade.stop_loss) / trade.stop_loss
        return 10 if slippage < Decimal("0.05") else 0
    return 0


def _duration_points(trade: ClosedTrade) -> int:
    hours = (trade.closed_at - trade.opened_at) // timedelta(hours=1)
    if hours < 24:
        return 10
    if hours < 72:
        return 5
    return 0


def score_trade_quality(trade: ClosedTrade) -> TradeQualityScore:
    """
    Score one trade on planning, outcome, execution and holding time.

    Points:
        risk_reward: planned reward/risk >= 3 -> 20, >= 2 -> 15, >= 1.5 -> 10
        profitability: 30 for a winner
        execution: 15 for a winner closed at its take profit, 10 for a loser
            closed within 5% of its stop loss
        duration: under 24h -> 10, under 72h -> 5

    The maximum total is 75, so the best reachable grade is B.
    """
    risk_reward = _risk_reward_points(trade)
    profitability = 30 if trade.is_winner else 0
    execution = _execution_points(trade)
    duration = _duration_points(trade)
    total = risk_reward + profitability + execution + duration

    return TradeQualityScore(
        trade_id=trade.trade_id,
        symbol=trade.symbol,
        pnl=trade.pnl,
        closed_at=trade.closed_at,
        risk_reward=risk_reward,
        profitability=profitability,
        execution=execution,
        duration=duration,
        total_score=total,
        grade=grade_for_score(total),
    )


def calculate_trade_quality_report(
    trades: Sequence[ClosedTrade], top: int = QUALITY_REPORT_SIZE
) -> TradeQualityReport:
    """
    Score every trade and pick the best and worst.

    Scores are ordered best first; equal scores keep chronological order.
    ``worst_trades`` is lowest first.
    """
    if not trades:
        return TradeQualityReport()

    scores = sorted((score_trade_quality(t) for t in trades), key=lambda s: s.total_score, reverse=True)
    avg_quality = Decimal(sum(s.total_score for s in scores)) / Decimal(len(scores))

    return TradeQualityReport(
        scores=scores,
        avg_quality=avg_quality,
        best_trades=scores[:top],
        worst_trades=list(reversed(scores))[:top],
    )
