"""Analytics service: metrics snapshots and equity curves over closed trades.

Public API:
    - IAnalyticsService: Protocol exposed to the presentation layer
    - ITradeStore / IBalanceSource: Consumed collaborator protocols
    - AnalyticsService: Main implementation
    - CachedAnalyticsService: TTL memoization wrapper
    - StartingEquityResolver: Baseline inference for the equity walk
    - AnalysisPeriod / resolve_date_range: Period selection
    - InMemoryTradeStore / CSVTradeStore / StaticBalanceSource: Simple collaborators
    - BalanceQueryError / StartingEquityError: Failure types
"""

from tradelens.services.analytics.cache import CachedAnalyticsService
from tradelens.services.analytics.equity import StartingEquityResolver
from tradelens.services.analytics.interface import (
    BalanceQueryError,
    IAnalyticsService,
    IBalanceSource,
    ITradeStore,
    StartingEquityError,
)
from tradelens.services.analytics.periods import AnalysisPeriod, resolve_date_range
from tradelens.services.analytics.service import AnalyticsService
from tradelens.services.analytics.stores import CSVTradeStore, InMemoryTradeStore, StaticBalanceSource

__all__ = [
    "AnalysisPeriod",
    "AnalyticsService",
    "BalanceQueryError",
    "CSVTradeStore",
    "CachedAnalyticsService",
    "IAnalyticsService",
    "IBalanceSource",
    "ITradeStore",
    "InMemoryTradeStore",
    "StartingEquityError",
    "StartingEquityResolver",
    "StaticBalanceSource",
    "resolve_date_range",
]
