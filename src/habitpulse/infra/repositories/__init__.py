"""Concrete repository implementations using SQLModel."""

from .habit import SQLModelHabitRepository
from .notification import SQLModelNotificationRepository
from .reminder import SQLModelReminderRepository
from .user import SQLModelUserRepository

__all__ = [
    "SQLModelHabitRepository",
    "SQLModelNotificationRepository",
    "SQLModelReminderRepository",
    "SQLModelUserRepository",
]
