"""Recurrence evaluation: is a habit due on a given calendar day?"""

from __future__ import annotations

from datetime import date, datetime

from ..clock import local_time
from ..models.enums import FrequencyType
from ..models.habit import Habit
from ..models.user import User

WEEKDAYS = frozenset({1, 2, 3, 4, 5})
WEEKEND = frozenset({6, 7})


def is_active_on(habit: Habit, day: date) -> bool:
    """True when the habit is active and ``day`` lies in [start_date, end_date]."""

    if not habit.is_active:
        return False
    if habit.start_date is not None and day < habit.start_date:
        return False
    if habit.end_date is not None and day > habit.end_date:
        return False
    return True


def is_scheduled(habit: Habit, day: date) -> bool:
    """Return True if ``habit`` expects a completion on owner-local ``day``.

    X_TIMES_WEEK and X_TIMES_MONTH habits are eligible on every day of their
    active window; which days actually count toward the period quota is not
    decided here.
    """

    if not is_active_on(habit, day):
        return False

    frequency = habit.frequency_type
    weekday = day.isoweekday()

    if frequency == FrequencyType.DAILY:
        return True
    if frequency == FrequencyType.WEEKDAYS:
        return weekday in WEEKDAYS
    if frequency == FrequencyType.WEEKENDS:
        return weekday in WEEKEND
    if frequency == FrequencyType.SPECIFIC_DAYS:
        return weekday in set(habit.specific_days or ())
    if frequency == FrequencyType.INTERVAL:
        interval = max(habit.frequency_interval or 1, 1)
        return (day - habit.start_date).days % interval == 0
    if frequency in (FrequencyType.X_TIMES_WEEK, FrequencyType.X_TIMES_MONTH):
        return True

    raise ValueError(f"Unknown frequency type: {frequency!r}")


def in_quiet_hours(user: User, now: datetime) -> bool:
    """Whether ``now`` falls inside the user's local quiet-hours window.

    A window whose end is earlier than its start wraps past midnight.
    """

    start, end = user.quiet_hours_start, user.quiet_hours_end
    if start is None or end is None or start == end:
        return False

    current = local_time(now, user.timezone)
    if start < end:
        return start <= current < end
    return current >= start or current < end


__all__ = ["in_quiet_hours", "is_active_on", "is_scheduled"]
