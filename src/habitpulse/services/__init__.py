"""Service module exports."""

from . import (
    habits,
    jobs,
    messages,
    notifications,
    reminders,
    schedule,
    streaks,
)

__all__ = [
    "habits",
    "jobs",
    "messages",
    "notifications",
    "reminders",
    "schedule",
    "streaks",
]
