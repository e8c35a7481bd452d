"""Notification and reminder message templates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ..domain.repositories.habit import HabitCompletionCount
from ..models.enums import NotificationType


@dataclass(frozen=True)
class Message:
    title: str
    content: str
    type: NotificationType
    action_url: Optional[str] = None


def habit_url(habit_id: int) -> str:
    return f"/habits/{habit_id}"


def standard_reminder_text(habit_name: str) -> str:
    return f"Time to work on your habit: {habit_name}!"


def reminder_title(habit_name: Optional[str]) -> str:
    return f"Reminder: {habit_name}" if habit_name else "Habit Reminder"


def milestone(habit_id: int, habit_name: str, days: int) -> Message:
    return Message(
        title=f"{days}-Day Streak! 🔥",
        content=(
            f'Amazing! You\'ve maintained your "{habit_name}" habit for {days} days '
            "in a row! Keep going!"
        ),
        type=NotificationType.STREAK_MILESTONE,
        action_url=habit_url(habit_id),
    )


def streak_warning(habit_id: int, habit_name: str, streak: int) -> Message:
    return Message(
        title="Streak at Risk!",
        content=(
            f'Your {streak}-day streak for "{habit_name}" will be reset if you '
            "don't complete it today!"
        ),
        type=NotificationType.STREAK_MILESTONE,
        action_url=habit_url(habit_id),
    )


def streak_warning_reminder_text(habit_name: str, streak: int) -> str:
    return (
        f'⚠️ STREAK ALERT: Your {streak}-day streak for "{habit_name}" will be reset '
        "tonight if not completed!"
    )


def preservation_text(habit_name: str, streak: int) -> str:
    return f'🔥 Don\'t lose your {streak}-day streak for "{habit_name}"! Complete it now!'


def preservation(habit_id: int, habit_name: str, streak: int) -> Message:
    return Message(
        title="Urgent Habit Reminder",
        content=preservation_text(habit_name, streak),
        type=NotificationType.REMINDER,
        action_url=habit_url(habit_id),
    )


def grace_period_used(habit_id: int, habit_name: str, streak: int) -> Message:
    return Message(
        title="Grace Period Used",
        content=(
            f'You missed "{habit_name}" yesterday. Your streak is safe for now, but you '
            f"need to complete it today to keep your {streak} day streak!"
        ),
        type=NotificationType.SYSTEM_MESSAGE,
        action_url=habit_url(habit_id),
    )


def streak_reset(habit_id: int, habit_name: str, streak_broken: int) -> Message:
    return Message(
        title="Streak Reset",
        content=(
            f'Your {streak_broken} day streak for "{habit_name}" has been reset because '
            "you didn't complete it yesterday."
        ),
        type=NotificationType.SYSTEM_MESSAGE,
        action_url=habit_url(habit_id),
    )


# (upper bound exclusive, emoji, encouragement); the last tier is open-ended
_WEEKLY_TIERS = (
    (1, "🌱", "Let's set some goals for next week!"),
    (5, "👍", "You're making progress!"),
    (15, "🎯", "Great consistency!"),
    (30, "🔥", "You're on fire!"),
)


def weekly_summary(completed: int, top_habits: Sequence[HabitCompletionCount]) -> Message:
    if top_habits:
        listed = ", ".join(f"{h.name} ({h.count} times)" for h in top_habits[:3])
        top_text = f"Top habits: {listed}"
    else:
        top_text = "No habits completed this week."

    emoji, encouragement = "🏆", "Incredible dedication!"
    for upper, tier_emoji, tier_text in _WEEKLY_TIERS:
        if completed < upper:
            emoji, encouragement = tier_emoji, tier_text
            break

    return Message(
        title=f"Weekly Summary {emoji}",
        content=f"You completed {completed} habits this week! {top_text} {encouragement}",
        type=NotificationType.SYSTEM_MESSAGE,
        action_url="/stats",
    )


def daily_goal(completed: int, goal: int) -> Message:
    return Message(
        title="Daily Goal Achieved! 🎯",
        content=(
            f"Congratulations! You've completed {completed}/{goal} habits today. "
            "Keep up the great work!"
        ),
        type=NotificationType.ACHIEVEMENT_UNLOCKED,
        action_url="/stats",
    )


WELCOME_TITLE = "Welcome to HabitPulse! 👋"


def welcome() -> Message:
    return Message(
        title=WELCOME_TITLE,
        content=(
            "Start tracking your habits and build positive routines. "
            "We're excited to have you here!"
        ),
        type=NotificationType.SYSTEM_MESSAGE,
        action_url="/dashboard",
    )
