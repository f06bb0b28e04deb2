"""Analysis periods and date-range resolution."""

import calendar
from datetime import datetime, timedelta, timezone
from enum import Enum

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class AnalysisPeriod(str, Enum):
    """Trailing windows selectable for metrics computation."""

    DAYS_7 = "7d"
    DAYS_30 = "30d"
    DAYS_90 = "90d"
    YEAR_1 = "1y"
    ALL = "all"

    @classmethod
    def parse(cls, value: "str | AnalysisPeriod") -> "AnalysisPeriod":
        """
        Parse a period string.

        Raises:
            ValueError: Unknown period
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown analysis period '{value}' (expected one of: {valid})") from None


def subtract_months(moment: datetime, months: int) -> datetime:
    """Calendar month subtraction, clamping the day to the target month's length."""
    total = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def resolve_date_range(period: "str | AnalysisPeriod", now: datetime) -> tuple[datetime, datetime]:
    """
    Resolve a period into an inclusive ``(start, end)`` range ending at ``now``.

    ``all`` starts at the Unix epoch (in ``now``'s timezone awareness).

    Raises:
        ValueError: Unknown period
    """
    parsed = AnalysisPeriod.parse(period)

    if parsed == AnalysisPeriod.DAYS_7:
        start = now - timedelta(days=7)
    elif parsed == AnalysisPeriod.DAYS_30:
        start = now - timedelta(days=30)
    elif parsed == AnalysisPeriod.DAYS_90:
        start = now - timedelta(days=90)
    elif parsed == AnalysisPeriod.YEAR_1:
        start = subtract_months(now, 12)
    else:
        start = EPOCH if now.tzinfo is not None else EPOCH.replace(tzinfo=None)

    return start, now
