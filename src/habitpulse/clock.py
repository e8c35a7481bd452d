"""Time helpers.

Stored datetimes are naive UTC. Calendar questions ("is it today for this
user?") are answered in the owner's IANA timezone.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger("habitpulse.clock")


def utcnow() -> datetime:
    """Current time as naive UTC, matching what the store holds."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    """Normalize an aware or naive-UTC datetime to naive UTC."""

    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


@lru_cache(maxsize=256)
def get_zone(tz_name: str | None) -> ZoneInfo:
    """Resolve ``tz_name``; unknown or empty names fall back to UTC."""

    if not tz_name:
        return ZoneInfo("UTC")
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to UTC", tz_name)
        return ZoneInfo("UTC")


def to_local(now: datetime, tz_name: str | None) -> datetime:
    return as_naive_utc(now).replace(tzinfo=timezone.utc).astimezone(get_zone(tz_name))


def local_date(now: datetime, tz_name: str | None) -> date:
    """Calendar date of ``now`` as seen by a user in ``tz_name``."""

    return to_local(now, tz_name).date()


def local_time(now: datetime, tz_name: str | None) -> time:
    return to_local(now, tz_name).time().replace(tzinfo=None)


def local_to_utc(day: date, at: time, tz_name: str | None) -> datetime:
    """Convert a local wall-clock ``day``/``at`` pair to naive UTC."""

    local = datetime.combine(day, at).replace(tzinfo=get_zone(tz_name))
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def local_day_bounds(day: date, tz_name: str | None) -> tuple[datetime, datetime]:
    """Return the naive-UTC ``[start, end)`` range covering local ``day``."""

    start = local_to_utc(day, time.min, tz_name)
    end = local_to_utc(date.fromordinal(day.toordinal() + 1), time.min, tz_name)
    return start, end


__all__ = [
    "as_naive_utc",
    "get_zone",
    "local_date",
    "local_day_bounds",
    "local_time",
    "local_to_utc",
    "to_local",
    "utcnow",
]
