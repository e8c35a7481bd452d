"""Streak bookkeeping tables."""

from __future__ import annotations

from datetime import date, datetime
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from ..clock import utcnow


class HabitStreak(SQLModel, table=True):
    """Current/longest streak for one habit. Written only via the streak engine."""

    __tablename__: ClassVar[str] = "habit_streak"

    id: Optional[int] = Field(default=None, primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", nullable=False, unique=True, index=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    current_streak: int = Field(default=0, nullable=False, ge=0)
    longest_streak: int = Field(default=0, nullable=False, ge=0)
    last_completed: Optional[datetime] = Field(default=None)
    missed_days_count: int = Field(default=0, nullable=False)
    grace_period_used: bool = Field(default=False, nullable=False)
    last_reset_reason: Optional[str] = Field(default=None, max_length=32)
    last_settled_on: Optional[date] = Field(default=None)
    milestone_notified: int = Field(default=0, nullable=False)


class HabitReset(SQLModel, table=True):
    """Audit row written every time a streak drops to zero."""

    __tablename__: ClassVar[str] = "habit_reset"

    id: Optional[int] = Field(default=None, primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", nullable=False, index=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    reset_date: datetime = Field(default_factory=utcnow, nullable=False)
    previous_streak: int = Field(nullable=False)
    reason: str = Field(nullable=False, max_length=32)
    user_initiated: bool = Field(default=False, nullable=False)
    notes: Optional[str] = Field(default=None, max_length=255)
