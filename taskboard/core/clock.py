"""Time helpers shared by the store and the analytics layer.

Timestamps are timezone-aware UTC everywhere. "Local" time (day buckets,
hour buckets, the ``day`` range) is the zone named by ``settings.TIMEZONE``.
"""
import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from .config import settings

TIME_RANGES = ("day", "week", "month", "year")
DEFAULT_TIME_RANGE = "week"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def local_zone() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def to_local(value: datetime) -> datetime:
    """Convert a UTC datetime to the configured local zone.

    Naive values are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(local_zone())


def to_utc(value: datetime) -> datetime:
    """Normalize an incoming datetime to aware UTC for storage and comparisons.

    Naive values are taken to be local time.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=local_zone())
    return value.astimezone(timezone.utc)


def parse_datetime(raw: str) -> datetime:
    """Parse an ISO-8601 date or datetime string into aware UTC.

    Raises ValueError on malformed input.
    """
    raw = raw.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    return to_utc(datetime.fromisoformat(raw))


def local_date(value: datetime) -> date:
    return to_local(value).date()


def isoformat_utc(value: datetime) -> str:
    """ISO-8601 in UTC with a ``Z`` suffix. Naive values are taken to be UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _minus_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 - months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def resolve_time_range(time_range: Optional[str], now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Return the aware UTC (start, end) window for a dashboard time range.

    Unknown or missing values fall back to ``week``.
    """
    end = now or utcnow()
    local_end = to_local(end)

    if time_range == "day":
        local_start = local_end.replace(hour=0, minute=0, second=0, microsecond=0)
    elif time_range == "month":
        local_start = _minus_months(local_end, 1)
    elif time_range == "year":
        local_start = _minus_months(local_end, 12)
    else:
        local_start = local_end - timedelta(days=7)

    return to_utc(local_start), local_end.astimezone(timezone.utc)
