"""Habit repository protocol."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Protocol

from ...models.habit import Habit, HabitLog
from ...models.streak import HabitReset, HabitStreak
from ...models.user import User


@dataclass(frozen=True)
class HabitSnapshot:
    """A habit joined with its streak row and owner preferences."""

    habit: Habit
    streak: Optional[HabitStreak]
    owner: User


@dataclass(frozen=True)
class HabitCompletionCount:
    habit_id: int
    name: str
    count: int


class HabitRepository(Protocol):
    """Repository for habits, their streak rows and the completion ledger."""

    def list_active_with_context(self) -> list[HabitSnapshot]:
        """All active habits with streak row and owner, in primary-key order."""
        ...

    def get_snapshot(self, habit_id: int) -> Optional[HabitSnapshot]:
        """A single habit with streak row and owner."""
        ...

    def get_or_create_streak(self, habit: Habit) -> HabitStreak:
        """Return the habit's streak row, creating an empty one if missing."""
        ...

    def save_streak(self, streak: HabitStreak) -> HabitStreak:
        """Persist streak fields."""
        ...

    def set_milestone_notified(self, habit_id: int, value: int) -> None:
        """Record which milestone was last announced for the current run."""
        ...

    def record_reset(self, reset: HabitReset) -> HabitReset:
        """Append a reset audit row."""
        ...

    def add_log(self, log: HabitLog) -> HabitLog:
        """Append a completion/skip fact."""
        ...

    def logs_for_day(self, habit_id: int, day: date) -> list[HabitLog]:
        """Logs for one habit on an owner-local day, oldest first."""
        ...

    def is_completed_on(self, habit_id: int, user_id: int, day: date) -> bool:
        """Whether a completed log exists for the owner-local day."""
        ...

    def completion_counts(
        self, user_id: int, start: date, end: date
    ) -> list[HabitCompletionCount]:
        """Completions per habit for ``start <= log_date < end``."""
        ...

    def count_completions(self, user_id: int, start: date, end: date) -> int:
        """Total completions for ``start <= log_date < end``."""
        ...
