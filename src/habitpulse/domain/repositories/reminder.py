"""Scheduled reminder repository protocol."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Protocol

from ...models.habit import Habit
from ...models.reminder import ScheduledReminder
from ...models.user import User


@dataclass(frozen=True)
class DueReminder:
    """A due reminder joined with its habit (if still present) and owner."""

    reminder: ScheduledReminder
    habit: Optional[Habit]
    owner: User


class ReminderRepository(Protocol):
    """Repository for planned reminder instances."""

    def create(self, reminder: ScheduledReminder) -> ScheduledReminder:
        ...

    def get(self, reminder_id: int) -> Optional[ScheduledReminder]:
        ...

    def exists_for_day(
        self, habit_id: int, user_id: int, reminder_type: str, day: date
    ) -> bool:
        """Whether a reminder with this dedup key is already persisted."""
        ...

    def find_recent(
        self, habit_id: int, user_id: int, reminder_type: str, since: datetime
    ) -> Optional[ScheduledReminder]:
        """A reminder of this type scheduled after ``since``, if any."""
        ...

    def list_due(self, now: datetime) -> list[DueReminder]:
        """Prepared, unsent reminders with ``scheduled_time <= now``."""
        ...

    def transition(
        self,
        reminder_id: int,
        status: str,
        *,
        now: datetime,
        reason: Optional[str] = None,
        notification_id: Optional[int] = None,
    ) -> bool:
        """Move a PREPARED reminder to a terminal status.

        Returns False when the row was no longer PREPARED.
        """
        ...
