"""
Calendar-day helpers for the one-ticket-per-day rule.

A "day" is always computed in an explicit IANA zone (UTC unless
DAY_BOUNDARY_TZ says otherwise). Stored timestamps are UTC.
"""

from datetime import datetime, time, timedelta, timezone
from typing import Tuple
from zoneinfo import ZoneInfo


def resolve_zone(name: str) -> ZoneInfo:
    """Return the ZoneInfo for name; raises ZoneInfoNotFoundError if unknown."""
    return ZoneInfo(name or "UTC")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def day_bounds(moment: datetime, tz: ZoneInfo) -> Tuple[datetime, datetime]:
    """Return [local midnight, next local midnight) around moment, in UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    local_day = moment.astimezone(tz).date()
    start = datetime.combine(local_day, time.min, tzinfo=tz)
    end = datetime.combine(local_day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def day_key(moment: datetime, tz: ZoneInfo) -> str:
    """Calendar day of moment in tz as YYYY-MM-DD."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz).date().isoformat()


def to_iso(moment: datetime) -> str:
    """Serialize an aware datetime as a sortable UTC ISO-8601 string."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")
