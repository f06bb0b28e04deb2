"""Performance metrics library for closed-trade analysis.

This library provides the computational core of tradelens:

1. **Models** (`models.py`): Pydantic data structures
   - ClosedTrade: Read-only trade input
   - EquityPoint, Streak: Sequential analysis records
   - BasicMetrics / RiskMetrics / DistributionMetrics / QualityMetrics
   - MetricsSnapshot: Immutable result of one computation
   - Monthly/Yearly/Hourly/Symbol/WeekdayPerformance: Presentation breakdowns
   - MonteCarloResult, TradeQualityScore / TradeQualityReport

2. **Metrics** (`metrics.py`): Pure calculation functions
   - Basic: win rate, profit factor, expectancy, extremes
   - Risk: Sharpe, Sortino, Calmar, recovery factor, drawdown, VaR/CVaR
   - Distribution: variance, skewness, excess kurtosis, percentiles
   - Quality: holding time, reward/risk, streaks, per-trade grades
   - Outlook: consistency score, Monte Carlo bootstrap

3. **Calculators** (`calculators.py`): Single-pass stateful helpers
   - EquityCurveCalculator: Forward equity walk from a baseline
   - StreakCalculator: Win/loss run tracking
   - PeriodAggregationCalculator: Month/year/hour/symbol/weekday grouping

Usage:
    >>> from tradelens.libraries.performance import build_equity_curve, calculate_risk_metrics
    >>> curve = build_equity_curve(Decimal("1000"), trades)
    >>> risk = calculate_risk_metrics([t.pnl for t in trades], curve, Decimal("1000"))
    >>> print(f"Max DD: {risk.max_drawdown}%")

Design Principles:
    - Decimal precision for financial calculations
    - Explicit edge case handling (zero trades, no losses, zero variance)
    - Immutable outputs
"""

# Stateful calculators
from tradelens.libraries.performance.calculators import (
    EquityCurveCalculator,
    PeriodAggregationCalculator,
    StreakCalculator,
    analyze_streaks,
    build_equity_curve,
)

# Pure calculation functions
from tradelens.libraries.performance.metrics import (
    TRADING_PERIODS_PER_YEAR,
    calculate_basic_metrics,
    calculate_calmar_ratio,
    calculate_consistency_score,
    calculate_distribution_metrics,
    calculate_distribution_profile,
    calculate_max_drawdown,
    calculate_mode,
    calculate_quality_metrics,
    calculate_recovery_factor,
    calculate_risk_metrics,
    calculate_sharpe_ratio,
    calculate_sortino_ratio,
    calculate_std_dev,
    calculate_trade_quality_report,
    calculate_value_at_risk,
    grade_for_score,
    run_monte_carlo,
    score_trade_quality,
)

# Models
from tradelens.libraries.performance.models import (
    BasicMetrics,
    ClosedTrade,
    DistributionMetrics,
    DistributionProfile,
    EquityPoint,
    HistogramBucket,
    HourlyPerformance,
    MetricsSnapshot,
    MonteCarloResult,
    MonthlyPerformance,
    QualityMetrics,
    RiskMetrics,
    Streak,
    StreakSummary,
    StreakType,
    SymbolPerformance,
    TradeQualityReport,
    TradeQualityScore,
    TradeSide,
    WeekdayPerformance,
    YearlyPerformance,
)

__all__ = [
    # Models
    "TradeSide",
    "ClosedTrade",
    "EquityPoint",
    "StreakType",
    "Streak",
    "StreakSummary",
    "BasicMetrics",
    "RiskMetrics",
    "DistributionMetrics",
    "QualityMetrics",
    "MetricsSnapshot",
    "MonthlyPerformance",
    "HourlyPerformance",
    "SymbolPerformance",
    "WeekdayPerformance",
    "YearlyPerformance",
    "HistogramBucket",
    "DistributionProfile",
    "MonteCarloResult",
    "TradeQualityScore",
    "TradeQualityReport",
    # Metrics (pure functions)
    "TRADING_PERIODS_PER_YEAR",
    "calculate_std_dev",
    "calculate_basic_metrics",
    "calculate_sharpe_ratio",
    "calculate_sortino_ratio",
    "calculate_max_drawdown",
    "calculate_calmar_ratio",
    "calculate_recovery_factor",
    "calculate_value_at_risk",
    "calculate_risk_metrics",
    "calculate_distribution_metrics",
    "calculate_distribution_profile",
    "calculate_quality_metrics",
    "calculate_mode",
    "calculate_consistency_score",
    "run_monte_carlo",
    "grade_for_score",
    "score_trade_quality",
    "calculate_trade_quality_report",
    # Calculators (stateful)
    "EquityCurveCalculator",
    "StreakCalculator",
    "PeriodAggregationCalculator",
    "build_equity_curve",
    "analyze_streaks",
]
