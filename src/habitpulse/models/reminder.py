"""Planned reminder instances."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, ClassVar, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from ..clock import utcnow
from .enums import ReminderType, SendStatus


class ScheduledReminder(SQLModel, table=True):
    """A time-stamped reminder for a habit.

    ``send_status`` moves PREPARED -> SENT | SKIPPED | FAILED exactly once.
    """

    __tablename__: ClassVar[str] = "scheduled_reminder"

    id: Optional[int] = Field(default=None, primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", nullable=False, index=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    scheduled_time: datetime = Field(nullable=False, index=True)
    scheduled_for: date = Field(nullable=False, index=True)
    reminder_type: str = Field(default=ReminderType.STANDARD.value, max_length=32, index=True)
    message: str = Field(nullable=False, max_length=500)

    is_prepared: bool = Field(default=True, nullable=False)
    is_sent: bool = Field(default=False, nullable=False)
    send_status: str = Field(default=SendStatus.PREPARED.value, max_length=16, index=True)
    actual_send_time: Optional[datetime] = Field(default=None)
    failure_reason: Optional[str] = Field(default=None, max_length=500)
    notification_id: Optional[int] = Field(default=None, foreign_key="notification.id")

    # priority, streakLength, habitName (attribute name "metadata" is reserved)
    details: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
