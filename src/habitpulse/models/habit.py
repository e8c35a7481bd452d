"""Habits tracking data structures."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import ClassVar, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from ..clock import utcnow
from .enums import FrequencyType


class Habit(SQLModel, table=True):
    """A user-defined habit with its recurrence rule and streak policy."""

    __tablename__: ClassVar[str] = "habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=80, index=True)
    description: str = Field(default="", max_length=255)
    is_active: bool = Field(default=True, nullable=False, index=True)

    frequency_type: str = Field(default=FrequencyType.DAILY.value, max_length=32)
    # ISO weekday numbers, Monday=1 .. Sunday=7
    specific_days: list[int] = Field(default_factory=list, sa_column=Column(JSON))
    frequency_interval: int = Field(default=1, nullable=False)
    frequency_value: int = Field(default=1, nullable=False)
    start_date: date = Field(default_factory=date.today, nullable=False)
    end_date: Optional[date] = Field(default=None)

    grace_period_enabled: bool = Field(default=True, nullable=False)
    grace_period_hours: int = Field(default=24, nullable=False)
    skip_on_vacation: bool = Field(default=False, nullable=False)

    reminders_enabled: bool = Field(default=True, nullable=False)
    reminder_time: Optional[time] = Field(default=None)

    created_at: datetime = Field(default_factory=utcnow, nullable=False)


class HabitLog(SQLModel, table=True):
    """Append-only completion or skip fact for a habit on a calendar day."""

    __tablename__: ClassVar[str] = "habit_log"

    id: Optional[int] = Field(default=None, primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", nullable=False, index=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    # Owner-local calendar day the fact belongs to
    log_date: date = Field(nullable=False, index=True)
    logged_at: datetime = Field(default_factory=utcnow, nullable=False)
    completed: bool = Field(default=True, nullable=False)
    skipped: bool = Field(default=False, nullable=False)
    skip_reason: Optional[str] = Field(default=None, max_length=255)
