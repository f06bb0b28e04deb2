"""tradelens services package.

Each service is independently testable and talks to its collaborators via
Protocol interfaces using dependency injection.
"""

from tradelens.services.analytics import AnalyticsService, CachedAnalyticsService, IAnalyticsService

__all__: list[str] = [
    "AnalyticsService",
    "CachedAnalyticsService",
    "IAnalyticsService",
]
