"""User model with the notification and vacation preferences the worker reads."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from ..clock import utcnow


class User(SQLModel, table=True):
    """Application user; only the fields that gate background processing."""

    __tablename__: ClassVar[str] = "user"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(nullable=False, unique=True, index=True, max_length=64)
    timezone: str = Field(default="UTC", nullable=False, max_length=64)
    prefers_notifications: bool = Field(default=True, nullable=False)

    on_vacation: bool = Field(default=False, nullable=False)
    vacation_start: Optional[date] = Field(default=None)
    vacation_end: Optional[date] = Field(default=None)

    daily_goal: int = Field(default=3, nullable=False)
    weekly_goal: int = Field(default=15, nullable=False)
    monthly_goal: int = Field(default=60, nullable=False)

    # Local wall-clock times; the window may wrap past midnight.
    quiet_hours_start: Optional[time] = Field(default=None)
    quiet_hours_end: Optional[time] = Field(default=None)

    registered_at: datetime = Field(default_factory=utcnow, nullable=False)

    def is_on_vacation(self, day: date | None = None) -> bool:
        """Return True when the vacation flag is set or ``day`` falls in the window."""

        if self.on_vacation:
            return True
        if day is None or self.vacation_start is None:
            return False
        if day < self.vacation_start:
            return False
        return self.vacation_end is None or day <= self.vacation_end
