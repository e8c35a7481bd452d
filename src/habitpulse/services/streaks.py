"""Streak engine: settle one calendar day against a habit's streak state.

The engine is deterministic. "Today", the settlement time and the completion
timestamp all come in through arguments; nothing here reads the clock.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from typing import Optional

from ..exceptions import StreakInvariantError
from ..models.enums import ResetReason, StreakEvent
from ..models.habit import Habit
from ..models.streak import HabitStreak

MILESTONES = frozenset({7, 14, 21, 30, 60, 90, 100, 180, 365})


@dataclass(frozen=True)
class StreakState:
    """Value copy of the mutable fields of a ``HabitStreak`` row."""

    current_streak: int = 0
    longest_streak: int = 0
    last_completed: Optional[datetime] = None
    missed_days_count: int = 0
    grace_period_used: bool = False
    last_reset_reason: Optional[str] = None
    last_settled_on: Optional[date] = None
    milestone_notified: int = 0

    @classmethod
    def from_row(cls, row: HabitStreak) -> "StreakState":
        return cls(
            current_streak=row.current_streak,
            longest_streak=row.longest_streak,
            last_completed=row.last_completed,
            missed_days_count=row.missed_days_count,
            grace_period_used=row.grace_period_used,
            last_reset_reason=row.last_reset_reason,
            last_settled_on=row.last_settled_on,
            milestone_notified=row.milestone_notified,
        )

    def apply_to(self, row: HabitStreak) -> HabitStreak:
        """Copy this state onto ``row`` and return it."""
        row.current_streak = self.current_streak
        row.longest_streak = self.longest_streak
        row.last_completed = self.last_completed
        row.missed_days_count = self.missed_days_count
        row.grace_period_used = self.grace_period_used
        row.last_reset_reason = self.last_reset_reason
        row.last_settled_on = self.last_settled_on
        row.milestone_notified = self.milestone_notified
        return row


@dataclass(frozen=True)
class DayFacts:
    """What happened for one habit on one owner-local day."""

    day: date
    was_scheduled: bool
    was_completed: bool = False
    was_skipped: bool = False
    user_on_vacation: bool = False
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class SettleResult:
    streak: StreakState
    event: Optional[StreakEvent] = None
    previous_streak: int = 0


def check_invariant(state: StreakState) -> None:
    if state.current_streak < 0 or state.longest_streak < state.current_streak:
        raise StreakInvariantError(
            f"Invalid streak state: current={state.current_streak} "
            f"longest={state.longest_streak}"
        )


def grace_deadline(state: StreakState, habit: Habit) -> Optional[datetime]:
    """End of the grace window opened by the last completion, if any."""

    if not habit.grace_period_enabled or state.last_completed is None:
        return None
    return state.last_completed + timedelta(hours=habit.grace_period_hours)


def settle_day(
    streak: StreakState, habit: Habit, facts: DayFacts, *, now: datetime
) -> SettleResult:
    """Apply one day's facts to ``streak``; the first matching rule wins.

    1. not scheduled                      -> unchanged
    2. on vacation and skip_on_vacation   -> unchanged
    3. completed                          -> +1, MILESTONE on exact milestone
    4. explicitly skipped                 -> unchanged, day left open
    5. inside an unused grace window      -> GRACE_PERIOD_USED
    6. otherwise                          -> reset, STREAK_RESET if it was > 0

    ``now`` is the instant checked against the grace window (naive UTC).
    A skipped day does not advance ``last_settled_on``, so a completion logged
    later that day can still settle it.
    """

    check_invariant(streak)
    settled = replace(streak, last_settled_on=facts.day)

    if not facts.was_scheduled:
        return SettleResult(settled)

    if facts.user_on_vacation and habit.skip_on_vacation:
        return SettleResult(settled)

    if facts.was_completed:
        current = streak.current_streak + 1
        result = replace(
            settled,
            current_streak=current,
            longest_streak=max(streak.longest_streak, current),
            last_completed=facts.completed_at or datetime.combine(facts.day, time.min),
            grace_period_used=False,
        )
        event = StreakEvent.MILESTONE if current in MILESTONES else None
        return SettleResult(result, event)

    if facts.was_skipped:
        return SettleResult(streak)

    deadline = grace_deadline(streak, habit)
    if deadline is not None and now < deadline and not streak.grace_period_used:
        return SettleResult(
            replace(settled, grace_period_used=True), StreakEvent.GRACE_PERIOD_USED
        )

    previous = streak.current_streak
    result = replace(
        settled,
        current_streak=0,
        missed_days_count=streak.missed_days_count + 1,
        last_reset_reason=ResetReason.MISSED_COMPLETION.value,
        grace_period_used=False,
        milestone_notified=0,
    )
    event = StreakEvent.STREAK_RESET if previous > 0 else None
    return SettleResult(result, event, previous_streak=previous)


def reset_streak(streak: StreakState, reason: ResetReason) -> SettleResult:
    """Explicit reset (user request, vacation recompute, habit edit, system)."""

    check_invariant(streak)
    previous = streak.current_streak
    result = replace(
        streak,
        current_streak=0,
        last_reset_reason=reason.value,
        grace_period_used=False,
        milestone_notified=0,
    )
    event = StreakEvent.STREAK_RESET if previous > 0 else None
    return SettleResult(result, event, previous_streak=previous)


__all__ = [
    "DayFacts",
    "MILESTONES",
    "SettleResult",
    "StreakState",
    "check_invariant",
    "grace_deadline",
    "reset_streak",
    "settle_day",
]
