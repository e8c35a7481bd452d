"""Reminder scheduling: prepare, at-risk scans and dispatch.

Every call re-derives its dedup decisions from persisted rows; no reminder
state is cached between invocations.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, time, timedelta
from typing import Optional

from ..clock import as_naive_utc, local_date, local_to_utc, utcnow
from ..config import BaseConfig
from ..domain.repositories.habit import HabitRepository, HabitSnapshot
from ..domain.repositories.reminder import DueReminder, ReminderRepository
from ..models.enums import NotificationType, ReminderType, SendStatus
from ..models.reminder import ScheduledReminder
from ..models.streak import HabitStreak
from . import messages
from .notifications import NotificationService
from .schedule import in_quiet_hours, is_scheduled

logger = logging.getLogger("habitpulse.reminders")

SKIP_USER_STATUS = "User preferences or status"
SKIP_ALREADY_COMPLETED = "Already completed"

# Preservation rows are sent by their own job; the dispatcher only picks one up
# after this lead, when that job died before settling it.
PRESERVATION_DISPATCH_LEAD = timedelta(minutes=15)

_PRIORITY = {
    ReminderType.STANDARD: "normal",
    ReminderType.STREAK_WARNING: "high",
    ReminderType.STREAK_PRESERVATION: "urgent",
}


@dataclass
class DispatchResult:
    processed: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


class ReminderScheduler:
    """Creates reminder instances and delivers the due ones."""

    def __init__(
        self,
        habits: HabitRepository,
        reminders: ReminderRepository,
        config: BaseConfig,
    ):
        self.habits = habits
        self.reminders = reminders
        self.config = config

    # ------------------------------------------------------------------
    # Contract A: next-day preparation
    # ------------------------------------------------------------------
    def prepare_next_day(self, now: Optional[datetime] = None) -> list[ScheduledReminder]:
        """Create tomorrow's STANDARD reminders, at most one per habit and day."""

        now = as_naive_utc(now or utcnow())
        created: list[ScheduledReminder] = []

        for snapshot in self.habits.list_active_with_context():
            habit, owner = snapshot.habit, snapshot.owner
            if not owner.prefers_notifications or not habit.reminders_enabled:
                continue
            try:
                tomorrow = local_date(now, owner.timezone) + timedelta(days=1)
                if not is_scheduled(habit, tomorrow):
                    continue
                reminder_type = ReminderType.STANDARD.value
                if self.reminders.exists_for_day(habit.id, owner.id, reminder_type, tomorrow):
                    continue

                at = habit.reminder_time or self.config.DEFAULT_REMINDER_TIME
                created.append(
                    self.reminders.create(
                        ScheduledReminder(
                            habit_id=habit.id,
                            user_id=owner.id,
                            scheduled_time=local_to_utc(tomorrow, at, owner.timezone),
                            scheduled_for=tomorrow,
                            reminder_type=reminder_type,
                            message=messages.standard_reminder_text(habit.name),
                            is_prepared=True,
                            is_sent=False,
                            details={
                                "priority": _PRIORITY[ReminderType.STANDARD],
                                "habitName": habit.name,
                            },
                        )
                    )
                )
            except Exception:
                logger.exception("Failed to prepare reminder for habit %s", habit.id)

        return created

    # ------------------------------------------------------------------
    # Contract B: at-risk scans
    # ------------------------------------------------------------------
    def scan_at_risk(
        self,
        now: Optional[datetime] = None,
        *,
        threshold: int,
        reminder_type: ReminderType = ReminderType.STREAK_WARNING,
    ) -> list[ScheduledReminder]:
        """Create warning/preservation reminders for streaks above ``threshold``."""

        now = as_naive_utc(now or utcnow())
        created: list[ScheduledReminder] = []

        for snapshot in self.habits.list_active_with_context():
            streak = snapshot.streak
            if streak is None or streak.current_streak <= threshold:
                continue
            try:
                reminder = self._at_risk_reminder(snapshot, streak, now, reminder_type)
            except Exception:
                logger.exception(
                    "At-risk scan failed for habit %s", snapshot.habit.id
                )
                continue
            if reminder is not None:
                created.append(reminder)

        return created

    def _at_risk_reminder(
        self,
        snapshot: HabitSnapshot,
        streak: HabitStreak,
        now: datetime,
        reminder_type: ReminderType,
    ) -> Optional[ScheduledReminder]:
        habit, owner = snapshot.habit, snapshot.owner
        today = local_date(now, owner.timezone)

        if not owner.prefers_notifications or owner.is_on_vacation(today):
            return None
        if not is_scheduled(habit, today):
            return None
        if self.habits.is_completed_on(habit.id, owner.id, today):
            return None
        if in_quiet_hours(owner, now):
            return None

        if reminder_type == ReminderType.STREAK_PRESERVATION:
            window = timedelta(minutes=self.config.PRESERVATION_WINDOW_MINUTES)
            recent = self.reminders.find_recent(
                habit.id, owner.id, reminder_type.value, now - window
            )
            if recent is not None:
                return None
            scheduled_time = now + PRESERVATION_DISPATCH_LEAD
            text = messages.preservation_text(habit.name, streak.current_streak)
        else:
            if self.reminders.exists_for_day(habit.id, owner.id, reminder_type.value, today):
                return None
            evening = local_to_utc(
                today, time(self.config.STREAK_WARNING_HOUR), owner.timezone
            )
            scheduled_time = evening if now < evening else now
            text = messages.streak_warning_reminder_text(habit.name, streak.current_streak)

        return self.reminders.create(
            ScheduledReminder(
                habit_id=habit.id,
                user_id=owner.id,
                scheduled_time=scheduled_time,
                scheduled_for=today,
                reminder_type=reminder_type.value,
                message=text,
                is_prepared=True,
                is_sent=False,
                details={
                    "priority": _PRIORITY[reminder_type],
                    "streakLength": streak.current_streak,
                    "habitName": habit.name,
                },
            )
        )

    # ------------------------------------------------------------------
    # Contract C: dispatch
    # ------------------------------------------------------------------
    def dispatch(
        self, notifier: NotificationService, now: Optional[datetime] = None
    ) -> DispatchResult:
        """Deliver due reminders; every row ends SENT, SKIPPED or FAILED."""

        now = as_naive_utc(now or utcnow())
        due = self.reminders.list_due(now)
        result = DispatchResult(processed=len(due))

        for item in due:
            reminder_id = item.reminder.id
            try:
                status = self._dispatch_one(item, notifier, now)
            except Exception as exc:
                logger.error("Error processing reminder %s: %s", reminder_id, exc, exc_info=True)
                try:
                    self.reminders.transition(
                        reminder_id, SendStatus.FAILED.value, now=now, reason=str(exc)[:500]
                    )
                except Exception:
                    logger.exception("Could not mark reminder %s as failed", reminder_id)
                result.failed += 1
                continue

            if status == SendStatus.SENT:
                result.sent += 1
            elif status == SendStatus.SKIPPED:
                result.skipped += 1

        return result

    def _dispatch_one(
        self, item: DueReminder, notifier: NotificationService, now: datetime
    ) -> Optional[SendStatus]:
        reminder, owner, habit = item.reminder, item.owner, item.habit
        today = local_date(now, owner.timezone)

        if not owner.prefers_notifications or owner.is_on_vacation(today):
            return self._skip(reminder, now, SKIP_USER_STATUS)

        if self.habits.is_completed_on(reminder.habit_id, reminder.user_id, today):
            return self._skip(reminder, now, SKIP_ALREADY_COMPLETED)

        notification = notifier.notify(
            reminder.user_id,
            messages.reminder_title(habit.name if habit else None),
            reminder.message,
            NotificationType.REMINDER.value,
            related_id=reminder.habit_id,
            action_url=messages.habit_url(reminder.habit_id),
        )
        if not self.reminders.transition(
            reminder.id, SendStatus.SENT.value, now=now, notification_id=notification.id
        ):
            logger.warning("Reminder %s was settled concurrently", reminder.id)
            return None
        return SendStatus.SENT

    def _skip(self, reminder: ScheduledReminder, now: datetime, reason: str) -> Optional[SendStatus]:
        if not self.reminders.transition(
            reminder.id, SendStatus.SKIPPED.value, now=now, reason=reason
        ):
            logger.warning("Reminder %s was settled concurrently", reminder.id)
            return None
        return SendStatus.SKIPPED


__all__ = [
    "DispatchResult",
    "PRESERVATION_DISPATCH_LEAD",
    "ReminderScheduler",
    "SKIP_ALREADY_COMPLETED",
    "SKIP_USER_STATUS",
]
