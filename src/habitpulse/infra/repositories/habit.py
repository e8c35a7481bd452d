"""SQLModel implementation of Habit repository."""

from __future__ import annotations

from datetime import date
from typing import Callable, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from ...domain.repositories.habit import HabitCompletionCount, HabitSnapshot
from ...models.habit import Habit, HabitLog
from ...models.streak import HabitReset, HabitStreak
from ...models.user import User


class SQLModelHabitRepository:
    """SQLModel-based habit repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def _snapshot_statement(self):
        return (
            select(Habit, HabitStreak, User)
            .join(User, User.id == Habit.user_id)
            .outerjoin(HabitStreak, HabitStreak.habit_id == Habit.id)
        )

    def list_active_with_context(self) -> list[HabitSnapshot]:
        """All active habits with streak row and owner, in primary-key order."""
        with self.session_factory() as session:
            statement = (
                self._snapshot_statement()
                .where(Habit.is_active == True)  # noqa: E712
                .order_by(Habit.id)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return [HabitSnapshot(habit=h, streak=s, owner=u) for h, s, u in rows]

    def get_snapshot(self, habit_id: int) -> Optional[HabitSnapshot]:
        with self.session_factory() as session:
            row = session.exec(self._snapshot_statement().where(Habit.id == habit_id)).first()
            if row is None:
                return None
            session.expunge_all()
            habit, streak, owner = row
            return HabitSnapshot(habit=habit, streak=streak, owner=owner)

    def get_or_create_streak(self, habit: Habit) -> HabitStreak:
        with self.session_factory() as session:
            streak = session.exec(
                select(HabitStreak).where(HabitStreak.habit_id == habit.id)
            ).first()
            if streak is None:
                streak = HabitStreak(habit_id=habit.id, user_id=habit.user_id)
                session.add(streak)
                session.commit()
                session.refresh(streak)
            session.expunge(streak)
            return streak

    def save_streak(self, streak: HabitStreak) -> HabitStreak:
        """Persist streak fields."""
        with self.session_factory() as session:
            merged = session.merge(streak)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def set_milestone_notified(self, habit_id: int, value: int) -> None:
        with self.session_factory() as session:
            streak = session.exec(
                select(HabitStreak).where(HabitStreak.habit_id == habit_id)
            ).first()
            if streak is None:
                return
            streak.milestone_notified = value
            session.add(streak)
            session.commit()

    def record_reset(self, reset: HabitReset) -> HabitReset:
        with self.session_factory() as session:
            session.add(reset)
            session.commit()
            session.refresh(reset)
            session.expunge(reset)
            return reset

    def add_log(self, log: HabitLog) -> HabitLog:
        with self.session_factory() as session:
            session.add(log)
            session.commit()
            session.refresh(log)
            session.expunge(log)
            return log

    def logs_for_day(self, habit_id: int, day: date) -> list[HabitLog]:
        with self.session_factory() as session:
            statement = (
                select(HabitLog)
                .where(HabitLog.habit_id == habit_id)
                .where(HabitLog.log_date == day)
                .order_by(HabitLog.logged_at, HabitLog.id)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def is_completed_on(self, habit_id: int, user_id: int, day: date) -> bool:
        with self.session_factory() as session:
            statement = (
                select(HabitLog.id)
                .where(HabitLog.habit_id == habit_id)
                .where(HabitLog.user_id == user_id)
                .where(HabitLog.log_date == day)
                .where(HabitLog.completed == True)  # noqa: E712
                .limit(1)
            )
            return session.exec(statement).first() is not None

    def completion_counts(
        self, user_id: int, start: date, end: date
    ) -> list[HabitCompletionCount]:
        """Completions per habit, highest count first."""
        with self.session_factory() as session:
            count = func.count(HabitLog.id).label("completions")
            statement = (
                select(Habit.id, Habit.name, count)
                .join(HabitLog, HabitLog.habit_id == Habit.id)
                .where(HabitLog.user_id == user_id)
                .where(HabitLog.completed == True)  # noqa: E712
                .where(HabitLog.log_date >= start)
                .where(HabitLog.log_date < end)
                .group_by(Habit.id, Habit.name)
                .order_by(count.desc(), Habit.id)
            )
            return [
                HabitCompletionCount(habit_id=habit_id, name=name, count=total)
                for habit_id, name, total in session.exec(statement).all()
            ]

    def count_completions(self, user_id: int, start: date, end: date) -> int:
        with self.session_factory() as session:
            statement = (
                select(func.count(HabitLog.id))
                .where(HabitLog.user_id == user_id)
                .where(HabitLog.completed == True)  # noqa: E712
                .where(HabitLog.log_date >= start)
                .where(HabitLog.log_date < end)
            )
            return int(session.exec(statement).one())
