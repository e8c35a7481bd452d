"""Day settlement and manual habit actions that move a streak immediately."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Optional

from ..clock import as_naive_utc, local_date, local_day_bounds, utcnow
from ..exceptions import HabitNotFoundError
from ..domain.repositories.habit import HabitSnapshot
from ..models.enums import ResetReason, StreakEvent
from ..models.habit import HabitLog
from ..models.streak import HabitReset
from . import messages
from .schedule import is_scheduled
from .streaks import DayFacts, SettleResult, StreakState, reset_streak, settle_day

if TYPE_CHECKING:
    from ..context import WorkerContext

logger = logging.getLogger("habitpulse.habits")


def collect_day_facts(ctx: WorkerContext, snapshot: HabitSnapshot, day: date) -> DayFacts:
    """Read the ledger for ``day`` and fold it into ``DayFacts``."""

    habit, owner = snapshot.habit, snapshot.owner
    logs = ctx.habit_repo.logs_for_day(habit.id, day)
    completions = [log for log in logs if log.completed]
    return DayFacts(
        day=day,
        was_scheduled=is_scheduled(habit, day),
        was_completed=bool(completions),
        was_skipped=any(log.skipped for log in logs),
        user_on_vacation=owner.is_on_vacation(day),
        completed_at=completions[-1].logged_at if completions else None,
    )


def settle_habit_day(
    ctx: WorkerContext,
    snapshot: HabitSnapshot,
    day: date,
    *,
    now: datetime,
    notify: bool = True,
) -> Optional[SettleResult]:
    """Settle ``day`` for one habit and persist the outcome.

    Returns None when the streak row has already settled ``day`` (or a later
    day), which keeps re-runs of the rollover from counting a day twice.
    ``now`` stamps the reset audit row.
    """

    habit, owner = snapshot.habit, snapshot.owner
    row = snapshot.streak or ctx.habit_repo.get_or_create_streak(habit)
    if row.last_settled_on is not None and row.last_settled_on >= day:
        return None

    facts = collect_day_facts(ctx, snapshot, day)
    # Grace is checked at the start of the missed day: a completion on the
    # previous day keeps a 24h window open into it.
    day_start, _ = local_day_bounds(day, owner.timezone)
    result = settle_day(StreakState.from_row(row), habit, facts, now=day_start)
    ctx.habit_repo.save_streak(result.streak.apply_to(row))

    if result.event == StreakEvent.STREAK_RESET:
        ctx.habit_repo.record_reset(
            HabitReset(
                habit_id=habit.id,
                user_id=owner.id,
                reset_date=now,
                previous_streak=result.previous_streak,
                reason=ResetReason.MISSED_COMPLETION.value,
            )
        )

    if notify and owner.prefers_notifications and not owner.is_on_vacation(day):
        if result.event == StreakEvent.GRACE_PERIOD_USED:
            message = messages.grace_period_used(habit.id, habit.name, result.streak.current_streak)
            ctx.notifier.notify_message(owner.id, message, related_id=habit.id)
        elif result.event == StreakEvent.STREAK_RESET:
            message = messages.streak_reset(habit.id, habit.name, result.previous_streak)
            ctx.notifier.notify_message(owner.id, message, related_id=habit.id)

    return result


def _require_snapshot(ctx: WorkerContext, habit_id: int) -> HabitSnapshot:
    snapshot = ctx.habit_repo.get_snapshot(habit_id)
    if snapshot is None or not snapshot.habit.is_active:
        raise HabitNotFoundError(habit_id)
    return snapshot


def _settle_after_log(ctx: WorkerContext, habit_id: int, today: date, now: datetime):
    # A completion can arrive before the rollover has settled yesterday in the
    # owner's timezone; settle yesterday first so it is not skipped.
    snapshot = _require_snapshot(ctx, habit_id)
    settle_habit_day(ctx, snapshot, today - timedelta(days=1), now=now, notify=False)
    return settle_habit_day(ctx, _require_snapshot(ctx, habit_id), today, now=now, notify=False)


def record_completion(
    ctx: WorkerContext, habit_id: int, *, now: Optional[datetime] = None
) -> Optional[SettleResult]:
    """Log a completion for the owner's current day and settle it immediately."""

    now = as_naive_utc(now or utcnow())
    snapshot = _require_snapshot(ctx, habit_id)
    today = local_date(now, snapshot.owner.timezone)
    ctx.habit_repo.add_log(
        HabitLog(
            habit_id=habit_id,
            user_id=snapshot.owner.id,
            log_date=today,
            logged_at=now,
            completed=True,
        )
    )
    result = _settle_after_log(ctx, habit_id, today, now)
    if result is not None and result.event == StreakEvent.MILESTONE:
        logger.info(
            "Habit %s reached a %s-day streak", habit_id, result.streak.current_streak
        )
    return result


def record_skip(
    ctx: WorkerContext,
    habit_id: int,
    *,
    now: Optional[datetime] = None,
    reason: Optional[str] = None,
) -> Optional[SettleResult]:
    """Log an explicit skip for the owner's current day and settle it."""

    now = as_naive_utc(now or utcnow())
    snapshot = _require_snapshot(ctx, habit_id)
    today = local_date(now, snapshot.owner.timezone)
    ctx.habit_repo.add_log(
        HabitLog(
            habit_id=habit_id,
            user_id=snapshot.owner.id,
            log_date=today,
            logged_at=now,
            completed=False,
            skipped=True,
            skip_reason=reason,
        )
    )
    return _settle_after_log(ctx, habit_id, today, now)


def reset_habit_streak(
    ctx: WorkerContext,
    habit_id: int,
    *,
    reason: ResetReason = ResetReason.USER_RESET,
    now: Optional[datetime] = None,
    notes: Optional[str] = None,
) -> SettleResult:
    """Explicitly zero a habit's streak and write the audit row."""

    now = as_naive_utc(now or utcnow())
    snapshot = _require_snapshot(ctx, habit_id)
    row = snapshot.streak or ctx.habit_repo.get_or_create_streak(snapshot.habit)
    result = reset_streak(StreakState.from_row(row), reason)
    ctx.habit_repo.save_streak(result.streak.apply_to(row))
    ctx.habit_repo.record_reset(
        HabitReset(
            habit_id=habit_id,
            user_id=snapshot.owner.id,
            reset_date=now,
            previous_streak=result.previous_streak,
            reason=reason.value,
            user_initiated=reason == ResetReason.USER_RESET,
            notes=notes,
        )
    )
    return result


__all__ = [
    "collect_day_facts",
    "record_completion",
    "record_skip",
    "reset_habit_streak",
    "settle_habit_day",
]
