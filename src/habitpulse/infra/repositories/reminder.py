"""SQLModel implementation of the scheduled reminder repository."""

from __future__ import annotations

from datetime import date, datetime
from typing import Callable, Optional

from sqlalchemy import update
from sqlmodel import Session, select

from ...domain.repositories.reminder import DueReminder
from ...models.enums import SendStatus
from ...models.habit import Habit
from ...models.reminder import ScheduledReminder
from ...models.user import User


class SQLModelReminderRepository:
    """SQLModel-based reminder repository."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def create(self, reminder: ScheduledReminder) -> ScheduledReminder:
        with self.session_factory() as session:
            session.add(reminder)
            session.commit()
            session.refresh(reminder)
            session.expunge(reminder)
            return reminder

    def get(self, reminder_id: int) -> Optional[ScheduledReminder]:
        with self.session_factory() as session:
            obj = session.get(ScheduledReminder, reminder_id)
            if obj:
                session.expunge(obj)
            return obj

    def list_for_habit(self, habit_id: int) -> list[ScheduledReminder]:
        with self.session_factory() as session:
            statement = (
                select(ScheduledReminder)
                .where(ScheduledReminder.habit_id == habit_id)
                .order_by(ScheduledReminder.id)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def exists_for_day(
        self, habit_id: int, user_id: int, reminder_type: str, day: date
    ) -> bool:
        with self.session_factory() as session:
            statement = (
                select(ScheduledReminder.id)
                .where(ScheduledReminder.habit_id == habit_id)
                .where(ScheduledReminder.user_id == user_id)
                .where(ScheduledReminder.reminder_type == reminder_type)
                .where(ScheduledReminder.scheduled_for == day)
                .limit(1)
            )
            return session.exec(statement).first() is not None

    def find_recent(
        self, habit_id: int, user_id: int, reminder_type: str, since: datetime
    ) -> Optional[ScheduledReminder]:
        with self.session_factory() as session:
            statement = (
                select(ScheduledReminder)
                .where(ScheduledReminder.habit_id == habit_id)
                .where(ScheduledReminder.user_id == user_id)
                .where(ScheduledReminder.reminder_type == reminder_type)
                .where(ScheduledReminder.scheduled_time >= since)
                .order_by(ScheduledReminder.scheduled_time.desc())  # type: ignore
            )
            obj = session.exec(statement).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_due(self, now: datetime) -> list[DueReminder]:
        with self.session_factory() as session:
            statement = (
                select(ScheduledReminder, Habit, User)
                .join(User, User.id == ScheduledReminder.user_id)
                .outerjoin(Habit, Habit.id == ScheduledReminder.habit_id)
                .where(ScheduledReminder.scheduled_time <= now)
                .where(ScheduledReminder.is_sent == False)  # noqa: E712
                .where(ScheduledReminder.is_prepared == True)  # noqa: E712
                .where(ScheduledReminder.send_status == SendStatus.PREPARED.value)
                .order_by(ScheduledReminder.id)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return [DueReminder(reminder=r, habit=h, owner=u) for r, h, u in rows]

    def transition(
        self,
        reminder_id: int,
        status: str,
        *,
        now: datetime,
        reason: Optional[str] = None,
        notification_id: Optional[int] = None,
    ) -> bool:
        """Compare-and-swap a PREPARED reminder into ``status``."""
        if status == SendStatus.PREPARED.value:
            raise ValueError("Reminders cannot be moved back to PREPARED")

        values = {
            "send_status": status,
            "failure_reason": reason,
            "notification_id": notification_id,
        }
        # FAILED rows keep is_sent=False but are terminal through send_status.
        if status != SendStatus.FAILED.value:
            values["is_sent"] = True
            values["actual_send_time"] = now

        with self.session_factory() as session:
            result = session.connection().execute(
                update(ScheduledReminder)
                .where(ScheduledReminder.id == reminder_id)
                .where(ScheduledReminder.send_status == SendStatus.PREPARED.value)
                .values(**values)
            )
            session.commit()
            return result.rowcount == 1
