"""Performance metrics data models.

Pydantic models for closed-trade input and structured analytics output.
These models are consumed by AnalyticsService, the reporting formatters
and the CLI.

All output records are frozen: a refresh computes a new snapshot instead of
mutating the previous one.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TradeSide(str, Enum):
    """Direction of a closed trade."""

    LONG = "long"
    SHORT = "short"

    @classmethod
    def _missing_(cls, value: object) -> "TradeSide | None":
        # Exchange records use BUY/SELL as well as LONG/SHORT, in any case
        if isinstance(value, str):
            normalized = value.strip().lower()
            aliases = {"buy": cls.LONG, "long": cls.LONG, "sell": cls.SHORT, "short": cls.SHORT}
            return aliases.get(normalized)
        return None


class StreakType(str, Enum):
    """Outcome classification used by streak analysis (break-even counts as loss)."""

    WIN = "win"
    LOSS = "loss"


class ClosedTrade(BaseModel):
    """
    Record of a completed trade, as produced by the execution subsystem.

    Read-only input to the analytics engine. The ``pnl`` is realized and
    signed; fees are assumed to be already netted into it.

    Example:
        >>> trade = ClosedTrade(
        ...     symbol="BTCUSDT",
        ...     side=TradeSide.LONG,
        ...     entry_price=Decimal("60000"),
        ...     exit_price=Decimal("61000"),
        ...     quantity=Decimal("0.1"),
        ...     margin=Decimal("600"),
        ...     pnl=Decimal("100"),
        ...     opened_at=datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc),
        ...     closed_at=datetime(2025, 1, 1, 13, 0, tzinfo=timezone.utc),
        ... )
        >>> trade.is_winner
        True
    """

    symbol: str
    side: TradeSide
    entry_price: Decimal
    exit_price: Decimal
    quantity: Decimal
    stop_loss: Decimal | None = None
    take_profit: Decimal | None = None
    margin: Decimal = Decimal("0")
    pnl: Decimal
    opened_at: datetime
    closed_at: datetime
    trade_id: str | None = None
    leverage: int | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("side", mode="before")
    @classmethod
    def normalize_side(cls, v: Any) -> TradeSide:
        """Accept BUY/SELL/LONG/SHORT in any case."""
        if isinstance(v, TradeSide):
            return v
        side = TradeSide(v)
        return side

    @field_validator("entry_price", "exit_price")
    @classmethod
    def validate_price(cls, v: Decimal) -> Decimal:
        """Validate prices are positive."""
        if v <= 0:
            raise ValueError(f"Price must be positive, got {v}")
        return v

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v: Decimal) -> Decimal:
        """Validate quantity is positive (direction lives in ``side``)."""
        if v <= 0:
            raise ValueError(f"Quantity must be positive, got {v}")
        return v

    @field_validator("margin")
    @classmethod
    def validate_margin(cls, v: Decimal) -> Decimal:
        """Validate margin is non-negative."""
        if v < 0:
            raise ValueError(f"Margin cannot be negative, got {v}")
        return v

    @model_validator(mode="after")
    def validate_timestamps(self) -> "ClosedTrade":
        """A trade cannot close before it opened."""
        if self.closed_at < self.opened_at:
            raise ValueError(f"closed_at ({self.closed_at}) is before opened_at ({self.opened_at})")
        return self

    @property
    def is_winner(self) -> bool:
        """Trade was profitable."""
        return self.pnl > Decimal("0")

    @property
    def is_loser(self) -> bool:
        """Trade lost money (break-even is neither winner nor loser)."""
        return self.pnl < Decimal("0")

    @property
    def duration_minutes(self) -> Decimal:
        """Holding time in minutes."""
        return Decimal(str((self.closed_at - self.opened_at).total_seconds())) / Decimal("60")


class EquityPoint(BaseModel):
    """
    Single point on the reconstructed equity curve.

    One point per closed trade: ``equity`` is the running balance right after
    the trade closed, ``pnl`` the trade's contribution.
    """

    timestamp: datetime
    equity: Decimal
    pnl: Decimal

    model_config = ConfigDict(frozen=True)


class Streak(BaseModel):
    """Maximal run of consecutive same-outcome trades."""

    type: StreakType
    length: int = Field(ge=1)

    model_config = ConfigDict(frozen=True)


class _MetricGroup(BaseModel):
    """Flat mapping of named numeric fields with a zero-filled constructor."""

    model_config = ConfigDict(frozen=True)

    @classmethod
    def empty(cls):
        """Zero-filled record (every field has a zero default)."""
        return cls()

    def as_dict(self) -> dict[str, Any]:
        """Field name to value mapping."""
        return self.model_dump()


class BasicMetrics(_MetricGroup):
    """P&L statistics (win rate, profit factor, expectancy, extremes)."""

    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: Decimal = Decimal("0")  # Percentage 0-100
    total_pnl: Decimal = Decimal("0")
    gross_profit: Decimal = Decimal("0")
    gross_loss: Decimal = Decimal("0")  # Magnitude, never negative
    avg_win: Decimal = Decimal("0")
    avg_loss: Decimal = Decimal("0")  # Magnitude, never negative
    largest_win: Decimal = Decimal("0")
    largest_loss: Decimal = Decimal("0")  # Signed (most negative pnl)
    profit_factor: Decimal = Decimal("0")
    expectancy: Decimal = Decimal("0")


class RiskMetrics(_MetricGroup):
    """Volatility-adjusted ratios, drawdown and tail-risk figures."""

    sharpe_ratio: Decimal = Decimal("0")
    sortino_ratio: Decimal = Decimal("0")
    calmar_ratio: Decimal = Decimal("0")
    max_drawdown: Decimal = Decimal("0")  # Positive percentage
    max_drawdown_duration: int = 0  # Days
    recovery_factor: Decimal = Decimal("0")
    var_95: Decimal = Decimal("0")
    cvar_95: Decimal = Decimal("0")


class DistributionMetrics(_MetricGroup):
    """Shape of the per-trade pnl distribution."""

    skewness: Decimal = Decimal("0")
    kurtosis: Decimal = Decimal("0")  # Excess kurtosis (normal = 0)
    std_dev: Decimal = Decimal("0")
    variance: Decimal = Decimal("0")


class QualityMetrics(_MetricGroup):
    """Trade quality: holding time, planned risk/reward and streaks."""

    avg_duration: Decimal = Decimal("0")  # Minutes
    avg_rrr: Decimal = Decimal("0")
    win_streak: int = 0
    loss_streak: int = 0
    avg_mae: Decimal = Decimal("0")  # Needs intrabar data, always 0
    avg_mfe: Decimal = Decimal("0")  # Needs intrabar data, always 0


class MetricsSnapshot(BaseModel):
    """
    Complete metrics result for one (period, trade set) computation.

    Produced fresh on every computation. The presentation layer keeps the
    last snapshot around; the engine never does.
    """

    period: str
    trade_count: int = 0
    starting_equity: Decimal | None = None  # None when no trades were analyzed
    computed_at: datetime | None = None
    basic: BasicMetrics = Field(default_factory=BasicMetrics)
    risk: RiskMetrics = Field(default_factory=RiskMetrics)
    distribution: DistributionMetrics = Field(default_factory=DistributionMetrics)
    quality: QualityMetrics = Field(default_factory=QualityMetrics)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def empty(cls, period: str, computed_at: datetime | None = None) -> "MetricsSnapshot":
        """All-zero snapshot for a period without trades."""
        return cls(period=period, computed_at=computed_at)

    @property
    def is_empty(self) -> bool:
        """True when no trades were analyzed ("no data" state)."""
        return self.trade_count == 0


class MonthlyPerformance(BaseModel):
    """Calendar-month bucket keyed by ``YYYY-MM`` of the close time."""

    month: str
    total_pnl: Decimal
    trade_count: int
    winning_trades: int

    model_config = ConfigDict(frozen=True)


class HourlyPerformance(BaseModel):
    """Hour-of-day bucket (0-23) of the close time."""

    hour: int = Field(ge=0, le=23)
    total_pnl: Decimal
    trade_count: int
    avg_pnl: Decimal

    model_config = ConfigDict(frozen=True)


class SymbolPerformance(BaseModel):
    """Per-instrument bucket."""

    symbol: str
    total_pnl: Decimal
    trade_count: int
    winning_trades: int
    avg_pnl: Decimal

    model_config = ConfigDict(frozen=True)


class WeekdayPerformance(BaseModel):
    """Day-of-week bucket (Monday first)."""

    day: str
    total_pnl: Decimal
    trade_count: int
    avg_pnl: Decimal

    model_config = ConfigDict(frozen=True)


class YearlyPerformance(BaseModel):
    """Calendar-year bucket keyed by ``YYYY`` of the close time."""

    year: str
    total_pnl: Decimal
    trade_count: int
    avg_pnl: Decimal

    model_config = ConfigDict(frozen=True)


class StreakSummary(BaseModel):
    """Full streak history plus aggregate figures."""

    streaks: list[Streak] = Field(default_factory=list)
    max_win_streak: int = 0
    max_loss_streak: int = 0
    avg_win_streak: Decimal = Decimal("0")
    avg_loss_streak: Decimal = Decimal("0")
    current_streak: Streak | None = None  # Last (possibly still open) run

    model_config = ConfigDict(frozen=True)


class HistogramBucket(BaseModel):
    """Equal-width pnl histogram bucket, ``[lower, upper)`` (last bucket closed)."""

    lower: Decimal
    upper: Decimal
    count: int

    model_config = ConfigDict(frozen=True)


class DistributionProfile(BaseModel):
    """Descriptive statistics of the pnl distribution for presentation."""

    mean: Decimal
    median: Decimal
    mode: Decimal  # Most frequent pnl rounded to whole units
    std_dev: Decimal
    range: Decimal
    iqr: Decimal
    skewness: Decimal
    kurtosis: Decimal
    percentiles: dict[int, Decimal]
    histogram: list[HistogramBucket]
    interpretation: str

    model_config = ConfigDict(frozen=True)


class MonteCarloResult(BaseModel):
    """
    Bootstrap simulation of future balances from historical trade pnl.

    Each simulation draws ``trades_per_simulation`` pnl values with
    replacement and stops early once the balance reaches zero (bust).
    Probabilities are percentages (0-100).
    """

    simulations: int
    trades_per_simulation: int
    initial_balance: Decimal
    mean_final_balance: Decimal
    median_final_balance: Decimal
    min_final_balance: Decimal
    max_final_balance: Decimal
    percentile_5: Decimal
    percentile_95: Decimal
    probability_of_profit: Decimal  # Final balance above the initial balance
    probability_of_ruin: Decimal  # Final balance at or below half the initial balance

    model_config = ConfigDict(frozen=True)


class TradeQualityScore(BaseModel):
    """Per-trade quality points and letter grade."""

    trade_id: str | None
    symbol: str
    pnl: Decimal
    closed_at: datetime
    risk_reward: int = 0  # 0, 10, 15 or 20
    profitability: int = 0  # 0 or 30
    execution: int = 0  # 0, 10 or 15
    duration: int = 0  # 0, 5 or 10
    total_score: int = 0
    grade: str = "F"

    model_config = ConfigDict(frozen=True)


class TradeQualityReport(BaseModel):
    """Quality scores for a trade set, best first."""

    scores: list[TradeQualityScore] = Field(default_factory=list)
    avg_quality: Decimal = Decimal("0")
    best_trades: list[TradeQualityScore] = Field(default_factory=list)
    worst_trades: list[TradeQualityScore] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)
