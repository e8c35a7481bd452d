"""Enumerations shared by the tables and the worker services.

Columns store the plain string values; the enums are for comparisons and
for writing (always assign ``.value``).
"""

from __future__ import annotations

from enum import Enum


class FrequencyType(str, Enum):
    DAILY = "DAILY"
    WEEKDAYS = "WEEKDAYS"
    WEEKENDS = "WEEKENDS"
    SPECIFIC_DAYS = "SPECIFIC_DAYS"
    INTERVAL = "INTERVAL"
    X_TIMES_WEEK = "X_TIMES_WEEK"
    X_TIMES_MONTH = "X_TIMES_MONTH"


class ResetReason(str, Enum):
    MISSED_COMPLETION = "MISSED_COMPLETION"
    VACATION_ENDED = "VACATION_ENDED"
    HABIT_MODIFIED = "HABIT_MODIFIED"
    USER_RESET = "USER_RESET"
    SYSTEM_RESET = "SYSTEM_RESET"


class StreakEvent(str, Enum):
    MILESTONE = "MILESTONE"
    GRACE_PERIOD_USED = "GRACE_PERIOD_USED"
    STREAK_RESET = "STREAK_RESET"


class ReminderType(str, Enum):
    STANDARD = "STANDARD"
    STREAK_WARNING = "STREAK_WARNING"
    STREAK_PRESERVATION = "STREAK_PRESERVATION"


class SendStatus(str, Enum):
    PREPARED = "PREPARED"
    SENT = "SENT"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


class NotificationType(str, Enum):
    STREAK_MILESTONE = "STREAK_MILESTONE"
    ACHIEVEMENT_UNLOCKED = "ACHIEVEMENT_UNLOCKED"
    REMINDER = "REMINDER"
    SYSTEM_MESSAGE = "SYSTEM_MESSAGE"


class DeliveryStatus(str, Enum):
    PENDING = "PENDING"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"


__all__ = [
    "DeliveryStatus",
    "FrequencyType",
    "NotificationType",
    "ReminderType",
    "ResetReason",
    "SendStatus",
    "StreakEvent",
]
