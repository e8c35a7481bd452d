"""Exception types raised by the worker core."""

from __future__ import annotations


class HabitPulseError(Exception):
    """Base class for worker errors."""


class StreakInvariantError(HabitPulseError):
    """A streak row violates ``longest_streak >= current_streak``.

    Signals a bug upstream; never caught inside the streak engine.
    """


class HabitNotFoundError(HabitPulseError):
    """Raised by manual habit actions for an unknown or inactive habit."""

    def __init__(self, habit_id: int):
        super().__init__(f"Habit with ID {habit_id} not found")
        self.habit_id = habit_id


__all__ = ["HabitNotFoundError", "HabitPulseError", "StreakInvariantError"]
