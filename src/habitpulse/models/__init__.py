"""SQLModel table exports."""

from .enums import (
    DeliveryStatus,
    FrequencyType,
    NotificationType,
    ReminderType,
    ResetReason,
    SendStatus,
    StreakEvent,
)
from .habit import Habit, HabitLog
from .notification import Notification
from .reminder import ScheduledReminder
from .streak import HabitReset, HabitStreak
from .user import User

__all__ = [
    "DeliveryStatus",
    "FrequencyType",
    "Habit",
    "HabitLog",
    "HabitReset",
    "HabitStreak",
    "Notification",
    "NotificationType",
    "ReminderType",
    "ResetReason",
    "ScheduledReminder",
    "SendStatus",
    "StreakEvent",
    "User",
]
