"""
Short-TTL memoization around the analytics service.

Dashboards refresh the same period repeatedly; this wrapper keeps the last
snapshot and equity curve per period for a few minutes so the trade store and
balance source are not hit on every refresh. The wrapped service stays
stateless.
"""

import threading
import time
from collections.abc import Callable
from decimal import Decimal
from typing import Any

from cachetools import TTLCache

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
from tradelens.services.analytics.interface import IAnalyticsService
from tradelens.services.analytics.periods import AnalysisPeriod
from tradelens.system import LoggerFactory
from tradelens.system.config import AnalyticsConfig

logger = LoggerFactory.get_logger()

DEFAULT_TTL_SECONDS = 300
DEFAULT_MAX_SIZE = 32


class CachedAnalyticsService:
    """
    TTL cache in front of an IAnalyticsService.

    Cache Keys:
    - ("metrics", period): compute_metrics results
    - ("equity_curve", period): compute_equity_curve results

    Breakdown accessors are passed through uncached. Exceptions are never
    cached: a failed computation is retried on the next call.

    Example:
        >>> cached = CachedAnalyticsService(AnalyticsService(store, balances), ttl_seconds=60)
        >>> cached.compute_metrics("30d")  # computes
        >>> cached.compute_metrics("30d")  # served from cache
        >>> cached.invalidate()  # e.g. after a trade closed
    """

    def __init__(
        self,
        service: IAnalyticsService,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_size: int = DEFAULT_MAX_SIZE,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize cache wrapper.

        Args:
            service: Service to memoize
            ttl_seconds: Entry lifetime
            max_size: Maximum entries before LRU eviction
            timer: Clock used for expiry
        """
        self._service = service
        self._cache: TTLCache = TTLCache(maxsize=max_size, ttl=ttl_seconds, timer=timer)
        self._lock = threading.Lock()

        self._hits = 0
        self._misses = 0

        logger.debug("cache.initialized", max_size=max_size, ttl_seconds=ttl_seconds)

    @classmethod
    def from_config(
        cls,
        service: IAnalyticsService,
        config: AnalyticsConfig,
        timer: Callable[[], float] = time.monotonic,
    ) -> "CachedAnalyticsService":
        """Wrap ``service`` using ``cache_ttl_seconds`` and ``cache_max_size`` from config."""
        return cls(service, ttl_seconds=config.cache_ttl_seconds, max_size=config.cache_max_size, timer=timer)

    def compute_metrics(self, period: str) -> MetricsSnapshot:
        """Cached IAnalyticsService.compute_metrics."""
        return self._get_or_compute("metrics", period, self._service.compute_metrics)

    def compute_equity_curve(self, period: str) -> list[EquityPoint]:
        """Cached IAnalyticsService.compute_equity_curve."""
        return list(self._get_or_compute("equity_curve", period, self._service.compute_equity_curve))

    def monthly_performance(self) -> list[MonthlyPerformance]:
        return self._service.monthly_performance()

    def hourly_performance(self) -> list[HourlyPerformance]:
        return self._service.hourly_performance()

    def symbol_performance(self) -> list[SymbolPerformance]:
        return self._service.symbol_performance()

    def weekday_performance(self, period: str) -> list[WeekdayPerformance]:
        return self._service.weekday_performance(period)

    def streak_analysis(self, period: str) -> StreakSummary:
        return self._service.streak_analysis(period)

    def distribution_profile(self, period: str) -> DistributionProfile | None:
        return self._service.distribution_profile(period)

    def yearly_performance(self) -> list[YearlyPerformance]:
        return self._service.yearly_performance()

    def consistency_score(self, period: str) -> Decimal:
        return self._service.consistency_score(period)

    def monte_carlo_simulation(
        self,
        period: str = "all",
        simulations: int | None = None,
        trades_per_simulation: int | None = None,
        seed: int | None = None,
    ) -> MonteCarloResult | None:
        return self._service.monte_carlo_simulation(period, simulations, trades_per_simulation, seed)

    def trade_quality(self, period: str) -> TradeQualityReport:
        return self._service.trade_quality(period)

    def invalidate(self, period: str | None = None) -> int:
        """
        Drop cached entries.

        Args:
            period: Only drop entries for this period (all entries if None)

        Returns:
            Number of entries removed
        """
        with self._lock:
            if period is None:
                removed = len(self._cache)
                self._cache.clear()
            else:
                key_period = AnalysisPeriod.parse(period).value
                keys = [k for k in list(self._cache.keys()) if k[1] == key_period]
                for key in keys:
                    del self._cache[key]
                removed = len(keys)

        logger.info("cache.invalidated", period=period or "all", entries_removed=removed)
        return removed

    @property
    def hits(self) -> int:
        """Calls served from cache."""
        return self._hits

    @property
    def misses(self) -> int:
        """Calls that reached the wrapped service."""
        return self._misses

    def _get_or_compute(self, operation: str, period: str, compute: Callable[[str], Any]) -> Any:
        key = (operation, AnalysisPeriod.parse(period).value)

        with self._lock:
            try:
                value = self._cache[key]
            except KeyError:
                self._misses += 1
            else:
                self._hits += 1
                logger.debug("cache.hit", operation=operation, period=key[1])
                return value

        value = compute(key[1])

        with self._lock:
            self._cache[key] = value
        logger.debug("cache.stored", operation=operation, period=key[1], size=len(self._cache))
        return value
