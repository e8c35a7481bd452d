"""Scheduled batch jobs.

Each job is a plain ``job(ctx, now=None) -> dict`` function so the CLI and the
tests can call it directly; :func:`run_job` adds the lifecycle logging used by
the scheduler.
"""

from __future__ import annotations

import logging
import time
import traceback
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Callable, Optional

from ..clock import as_naive_utc, local_date, local_day_bounds, utcnow
from ..logging_config import log_job_status
from ..models.enums import NotificationType, ReminderType, SendStatus
from . import messages
from .habits import settle_habit_day
from .streaks import MILESTONES

if TYPE_CHECKING:
    from ..context import WorkerContext

logger = logging.getLogger("habitpulse.jobs")

JobFunc = Callable[..., dict[str, Any]]


def _now(now: Optional[datetime]) -> datetime:
    return as_naive_utc(now or utcnow())


def daily_streak_update(ctx: WorkerContext, now: Optional[datetime] = None) -> dict[str, Any]:
    """Settle yesterday (owner-local) for every active habit."""

    now = _now(now)
    summary = {"habits": 0, "settled": 0, "already_settled": 0, "resets": 0, "errors": 0}

    for snapshot in ctx.habit_repo.list_active_with_context():
        summary["habits"] += 1
        try:
            yesterday = local_date(now, snapshot.owner.timezone) - timedelta(days=1)
            result = settle_habit_day(ctx, snapshot, yesterday, now=now)
        except Exception:
            logger.exception("Error updating streak for habit %s", snapshot.habit.id)
            summary["errors"] += 1
            continue
        if result is None:
            summary["already_settled"] += 1
            continue
        summary["settled"] += 1
        if result.streak.current_streak == 0 and result.previous_streak > 0:
            summary["resets"] += 1

    return summary


def streak_milestone_check(ctx: WorkerContext, now: Optional[datetime] = None) -> dict[str, Any]:
    """Announce each milestone once per streak run."""

    summary = {"checked": 0, "notified": 0, "errors": 0}

    for snapshot in ctx.habit_repo.list_active_with_context():
        habit, owner, streak = snapshot.habit, snapshot.owner, snapshot.streak
        if streak is None:
            continue
        summary["checked"] += 1
        current = streak.current_streak
        if current not in MILESTONES or streak.milestone_notified == current:
            continue
        if not owner.prefers_notifications:
            continue
        try:
            ctx.notifier.notify_message(
                owner.id, messages.milestone(habit.id, habit.name, current), related_id=habit.id
            )
            ctx.habit_repo.set_milestone_notified(habit.id, current)
            summary["notified"] += 1
        except Exception:
            logger.exception("Error sending milestone notification for habit %s", habit.id)
            summary["errors"] += 1

    return summary


def streak_warning_check(ctx: WorkerContext, now: Optional[datetime] = None) -> dict[str, Any]:
    """Warn owners about streaks that will break tonight."""

    now = _now(now)
    created = ctx.reminder_scheduler.scan_at_risk(
        now,
        threshold=ctx.config.WARNING_STREAK_THRESHOLD,
        reminder_type=ReminderType.STREAK_WARNING,
    )
    notified = 0
    for reminder in created:
        streak = reminder.details.get("streakLength", 0)
        name = reminder.details.get("habitName", "")
        try:
            ctx.notifier.notify_message(
                reminder.user_id,
                messages.streak_warning(reminder.habit_id, name, streak),
                related_id=reminder.habit_id,
            )
            notified += 1
        except Exception:
            logger.exception("Error sending streak warning for habit %s", reminder.habit_id)
    return {"reminders_created": len(created), "notified": notified}


def process_reminders(ctx: WorkerContext, now: Optional[datetime] = None) -> dict[str, Any]:
    """Deliver every due reminder."""

    return ctx.reminder_scheduler.dispatch(ctx.notifier, _now(now)).to_dict()


def streak_preservation_reminder(
    ctx: WorkerContext, now: Optional[datetime] = None
) -> dict[str, Any]:
    """Urgent same-day nudges for long streaks that are still open."""

    now = _now(now)
    created = ctx.reminder_scheduler.scan_at_risk(
        now,
        threshold=ctx.config.PRESERVATION_STREAK_THRESHOLD,
        reminder_type=ReminderType.STREAK_PRESERVATION,
    )
    sent = failed = 0
    for reminder in created:
        streak = reminder.details.get("streakLength", 0)
        name = reminder.details.get("habitName", "")
        try:
            notification = ctx.notifier.notify_message(
                reminder.user_id,
                messages.preservation(reminder.habit_id, name, streak),
                related_id=reminder.habit_id,
            )
            ctx.reminder_repo.transition(
                reminder.id,
                SendStatus.SENT.value,
                now=now,
                notification_id=notification.id,
            )
            sent += 1
        except Exception as exc:
            logger.exception("Error sending preservation reminder %s", reminder.id)
            ctx.reminder_repo.transition(
                reminder.id, SendStatus.FAILED.value, now=now, reason=str(exc)[:500]
            )
            failed += 1
    return {"reminders_created": len(created), "sent": sent, "failed": failed}


def prepare_next_day_reminders(
    ctx: WorkerContext, now: Optional[datetime] = None
) -> dict[str, Any]:
    created = ctx.reminder_scheduler.prepare_next_day(_now(now))
    return {"reminders_created": len(created)}


def weekly_habit_review(ctx: WorkerContext, now: Optional[datetime] = None) -> dict[str, Any]:
    """Send each opted-in user a summary of the trailing seven local days."""

    now = _now(now)
    summary = {"users": 0, "sent": 0, "errors": 0}

    for user in ctx.user_repo.list_notifiable():
        summary["users"] += 1
        try:
            today = local_date(now, user.timezone)
            if user.is_on_vacation(today):
                continue
            start, end = today - timedelta(days=6), today + timedelta(days=1)
            counts = ctx.habit_repo.completion_counts(user.id, start, end)
            total = sum(item.count for item in counts)
            ctx.notifier.notify_message(user.id, messages.weekly_summary(total, counts[:3]))
            summary["sent"] += 1
        except Exception:
            logger.exception("Error generating weekly summary for user %s", user.id)
            summary["errors"] += 1

    return summary


def daily_goal_check(ctx: WorkerContext, now: Optional[datetime] = None) -> dict[str, Any]:
    """Congratulate users who reached their daily goal, once per local day."""

    now = _now(now)
    summary = {"users": 0, "achieved": 0, "already_notified": 0, "errors": 0}
    achievement = NotificationType.ACHIEVEMENT_UNLOCKED.value

    for user in ctx.user_repo.list_with_daily_goal():
        summary["users"] += 1
        try:
            today = local_date(now, user.timezone)
            if user.is_on_vacation(today):
                continue
            completed = ctx.habit_repo.count_completions(
                user.id, today, today + timedelta(days=1)
            )
            if completed < user.daily_goal:
                continue
            day_start, _ = local_day_bounds(today, user.timezone)
            if ctx.notification_repo.exists_since(
                user.id, achievement, day_start, title_contains="Daily Goal"
            ):
                summary["already_notified"] += 1
                continue
            ctx.notifier.notify_message(user.id, messages.daily_goal(completed, user.daily_goal))
            summary["achieved"] += 1
        except Exception:
            logger.exception("Error checking daily goal for user %s", user.id)
            summary["errors"] += 1

    return summary


def new_user_welcome(ctx: WorkerContext, now: Optional[datetime] = None) -> dict[str, Any]:
    """Welcome users who registered inside the recent window."""

    now = _now(now)
    since = now - timedelta(minutes=ctx.config.WELCOME_WINDOW_MINUTES)
    summary = {"new_users": 0, "welcomed": 0, "errors": 0}

    for user in ctx.user_repo.list_registered_since(since):
        summary["new_users"] += 1
        try:
            if ctx.notification_repo.exists_since(
                user.id,
                NotificationType.SYSTEM_MESSAGE.value,
                user.registered_at,
                title_contains=messages.WELCOME_TITLE,
            ):
                continue
            ctx.notifier.notify_message(user.id, messages.welcome())
            summary["welcomed"] += 1
        except Exception:
            logger.exception("Error sending welcome notification to user %s", user.id)
            summary["errors"] += 1

    return summary


@dataclass(frozen=True)
class JobDefinition:
    """A named job and the cron fields it runs on."""

    name: str
    func: JobFunc
    cron: dict[str, str]
    description: str = ""


JOBS: tuple[JobDefinition, ...] = (
    JobDefinition(
        "daily-streak-update",
        daily_streak_update,
        {"minute": "0", "hour": "0"},
        "Settle yesterday for every active habit",
    ),
    JobDefinition(
        "streak-milestone-check",
        streak_milestone_check,
        {"minute": "5", "hour": "0"},
        "Announce streak milestones",
    ),
    JobDefinition(
        "streak-warning-check",
        streak_warning_check,
        {"minute": "0", "hour": "9"},
        "Warn about streaks at risk",
    ),
    JobDefinition(
        "process-reminders",
        process_reminders,
        {"minute": "*/15"},
        "Deliver due reminders",
    ),
    JobDefinition(
        "streak-preservation-reminder",
        streak_preservation_reminder,
        {"minute": "0", "hour": "10,12,14,16,18,20"},
        "Urgent reminders for long streaks",
    ),
    JobDefinition(
        "prepare-next-day-reminders",
        prepare_next_day_reminders,
        {"minute": "0", "hour": "23"},
        "Create tomorrow's standard reminders",
    ),
    JobDefinition(
        "weekly-habit-review",
        weekly_habit_review,
        {"minute": "0", "hour": "9", "day_of_week": "sun"},
        "Weekly completion summary",
    ),
    JobDefinition(
        "daily-goal-check",
        daily_goal_check,
        {"minute": "0", "hour": "22"},
        "Daily goal achievements",
    ),
    JobDefinition(
        "new-user-welcome",
        new_user_welcome,
        {"minute": "*/30"},
        "Welcome recently registered users",
    ),
)


def get_job(name: str) -> JobDefinition:
    for job in JOBS:
        if job.name == name:
            return job
    raise KeyError(f"Unknown job: {name}")


def run_job(
    name: str,
    func: JobFunc,
    ctx: WorkerContext,
    now: Optional[datetime] = None,
) -> Optional[dict[str, Any]]:
    """Run one job with lifecycle logging; failures are logged, never raised."""

    log_job_status(name, "started")
    started = time.perf_counter()
    try:
        summary = func(ctx, now)
    except Exception as exc:
        log_job_status(
            name,
            "failed",
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
            error=str(exc),
            stack=traceback.format_exc(),
        )
        return None

    log_job_status(
        name,
        "completed",
        duration_ms=round((time.perf_counter() - started) * 1000, 1),
        summary=summary,
    )
    return summary


__all__ = [
    "JOBS",
    "JobDefinition",
    "daily_goal_check",
    "daily_streak_update",
    "get_job",
    "new_user_welcome",
    "prepare_next_day_reminders",
    "process_reminders",
    "run_job",
    "streak_milestone_check",
    "streak_preservation_reminder",
    "streak_warning_check",
    "weekly_habit_review",
]
