"""Pytest configuration and shared fixtures for HabitPulse tests.

This module provides database fixtures, test data factories, a recording
notification sink and a fully wired worker context, so jobs and services can
be exercised against a throwaway SQLite database.
"""

from __future__ import annotations

import logging
import tempfile
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

import pytest
from sqlmodel import Session, SQLModel, create_engine, select

# Import all models to ensure they're registered with SQLModel metadata
from habitpulse.models import (
    Habit,
    HabitLog,
    HabitStreak,
    Notification,
    ScheduledReminder,
    User,
)
from habitpulse.config import TestConfig
from habitpulse.context import create_app_context
from habitpulse.services.notifications import DeliveryOutcome

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(
        f"sqlite:///{db_path}", echo=False, connect_args={"check_same_thread": False}
    )
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Session for arranging and inspecting rows directly."""
    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching the ``Callable[[], Session]`` repositories expect."""

    def factory() -> Session:
        return Session(db_engine, expire_on_commit=False)

    return factory


# =============================================================================
# Worker Context
# =============================================================================


class RecordingSink:
    """Notification sink that remembers every push; can be told to fail."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.fail_with: str | None = None
        self.raise_error: Exception | None = None

    def send(self, user_id: int, title: str, body: str, metadata: dict[str, Any]) -> DeliveryOutcome:
        if self.raise_error is not None:
            raise self.raise_error
        self.sent.append({"user_id": user_id, "title": title, "body": body, **metadata})
        if self.fail_with is not None:
            return DeliveryOutcome(success=False, error=self.fail_with)
        return DeliveryOutcome(success=True)

    def titles(self) -> list[str]:
        return [push["title"] for push in self.sent]


@pytest.fixture
def config(tmp_path, monkeypatch):
    monkeypatch.setenv("HABITPULSE_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("HABITPULSE_DATABASE_URL", raising=False)
    return TestConfig()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def ctx(config, sink, session_factory):
    """Worker context wired to the test database and the recording sink."""
    return create_app_context(config, sink=sink, session_factory=session_factory)


@pytest.fixture
def reset_habitpulse_logger():
    """Drop handlers installed by ``setup_logging`` after the test."""
    yield
    logger = logging.getLogger("habitpulse")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def user_factory(db_session):
    """Factory for creating users with notification preferences."""
    counter = {"n": 0}

    def _create_user(username: str | None = None, **overrides: Any) -> User:
        counter["n"] += 1
        values: dict[str, Any] = {
            "username": username or f"user{counter['n']}",
            "timezone": "UTC",
            "registered_at": datetime(2024, 1, 1),
        }
        values.update(overrides)
        user = User(**values)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _create_user


@pytest.fixture
def user(user_factory) -> User:
    return user_factory("tester")


@pytest.fixture
def habit_factory(db_session, user):
    """Factory for creating habits; defaults to a daily habit owned by ``user``."""

    def _create_habit(name: str = "Exercise", owner: User | None = None, **overrides: Any) -> Habit:
        values: dict[str, Any] = {
            "user_id": (owner or user).id,
            "name": name,
            "start_date": date(2024, 1, 1),
        }
        values.update(overrides)
        habit = Habit(**values)
        db_session.add(habit)
        db_session.commit()
        db_session.refresh(habit)
        return habit

    return _create_habit


@pytest.fixture
def streak_factory(db_session):
    """Factory for the streak row of a habit."""

    def _create_streak(habit: Habit, current: int = 0, longest: int | None = None, **overrides: Any) -> HabitStreak:
        streak = HabitStreak(
            habit_id=habit.id,
            user_id=habit.user_id,
            current_streak=current,
            longest_streak=current if longest is None else longest,
            **overrides,
        )
        db_session.add(streak)
        db_session.commit()
        db_session.refresh(streak)
        return streak

    return _create_streak


@pytest.fixture
def log_factory(db_session):
    """Factory for completion/skip ledger rows."""

    def _create_log(
        habit: Habit,
        day: date,
        *,
        completed: bool = True,
        skipped: bool = False,
        logged_at: datetime | None = None,
    ) -> HabitLog:
        log = HabitLog(
            habit_id=habit.id,
            user_id=habit.user_id,
            log_date=day,
            logged_at=logged_at or datetime.combine(day, time(8, 0)),
            completed=completed,
            skipped=skipped,
        )
        db_session.add(log)
        db_session.commit()
        db_session.refresh(log)
        return log

    return _create_log


@pytest.fixture
def reminder_factory(db_session):
    """Factory for prepared reminders."""

    def _create_reminder(habit: Habit, scheduled_time: datetime, **overrides: Any) -> ScheduledReminder:
        values: dict[str, Any] = {
            "habit_id": habit.id,
            "user_id": habit.user_id,
            "scheduled_time": scheduled_time,
            "scheduled_for": scheduled_time.date(),
            "message": f"Time to work on your habit: {habit.name}!",
        }
        values.update(overrides)
        reminder = ScheduledReminder(**values)
        db_session.add(reminder)
        db_session.commit()
        db_session.refresh(reminder)
        return reminder

    return _create_reminder


# =============================================================================
# Inspection helpers
# =============================================================================


@pytest.fixture
def fetch(db_engine):
    """Read fresh rows from the database, bypassing any cached instances."""

    def _fetch(model, *conditions):
        with Session(db_engine) as session:
            statement = select(model)
            for condition in conditions:
                statement = statement.where(condition)
            rows = list(session.exec(statement.order_by(model.id)).all())
            session.expunge_all()
            return rows

    return _fetch


@pytest.fixture
def notifications(fetch):
    def _notifications(user_id: int | None = None) -> list[Notification]:
        if user_id is None:
            return fetch(Notification)
        return fetch(Notification, Notification.user_id == user_id)

    return _notifications
