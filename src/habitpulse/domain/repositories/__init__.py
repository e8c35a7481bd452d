"""Repository protocol definitions for domain layer."""

from .habit import HabitCompletionCount, HabitRepository, HabitSnapshot
from .notification import NotificationRepository
from .reminder import DueReminder, ReminderRepository
from .user import UserRepository

__all__ = [
    "DueReminder",
    "HabitCompletionCount",
    "HabitRepository",
    "HabitSnapshot",
    "NotificationRepository",
    "ReminderRepository",
    "UserRepository",
]
