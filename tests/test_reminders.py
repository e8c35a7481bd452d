"""Tests for reminder preparation, at-risk scans and dispatch."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

import pytest

from habitpulse.infra.repositories import SQLModelReminderRepository
from habitpulse.models import Notification, ScheduledReminder
from habitpulse.models.enums import (
    DeliveryStatus,
    FrequencyType,
    NotificationType,
    ReminderType,
    SendStatus,
)
from habitpulse.services.reminders import (
    PRESERVATION_DISPATCH_LEAD,
    SKIP_ALREADY_COMPLETED,
    SKIP_USER_STATUS,
)

NOW = datetime(2025, 3, 12, 12, 0)  # Wednesday
TODAY = NOW.date()
TOMORROW = TODAY + timedelta(days=1)


def reminders_for(fetch, habit_id):
    return fetch(ScheduledReminder, ScheduledReminder.habit_id == habit_id)


class TestPrepareNextDay:
    def test_creates_standard_reminder_at_habit_time(self, ctx, habit_factory, fetch):
        habit = habit_factory("Read", reminder_time=time(7, 30))

        created = ctx.reminder_scheduler.prepare_next_day(NOW)

        assert len(created) == 1
        [row] = reminders_for(fetch, habit.id)
        assert row.reminder_type == ReminderType.STANDARD.value
        assert row.scheduled_for == TOMORROW
        assert row.scheduled_time == datetime(2025, 3, 13, 7, 30)
        assert row.is_prepared is True
        assert row.is_sent is False
        assert row.send_status == SendStatus.PREPARED.value
        assert row.message == "Time to work on your habit: Read!"
        assert row.details == {"priority": "normal", "habitName": "Read"}

    def test_default_time_converted_from_owner_timezone(self, ctx, user_factory, habit_factory, fetch):
        owner = user_factory(timezone="America/New_York")
        habit = habit_factory("Stretch", owner=owner)

        ctx.reminder_scheduler.prepare_next_day(NOW)

        [row] = reminders_for(fetch, habit.id)
        # 09:00 EDT is 13:00 UTC
        assert row.scheduled_time == datetime(2025, 3, 13, 13, 0)
        assert row.scheduled_for == TOMORROW

    def test_running_twice_creates_no_duplicates(self, ctx, habit_factory, fetch):
        habit = habit_factory()

        first = ctx.reminder_scheduler.prepare_next_day(NOW)
        second = ctx.reminder_scheduler.prepare_next_day(NOW + timedelta(minutes=5))

        assert len(first) == 1
        assert second == []
        assert len(reminders_for(fetch, habit.id)) == 1

    def test_skips_habits_that_should_not_be_reminded(
        self, ctx, user_factory, habit_factory, fetch
    ):
        quiet_owner = user_factory(prefers_notifications=False)
        muted = habit_factory("Muted", reminders_enabled=False)
        opted_out = habit_factory("Opted out", owner=quiet_owner)
        weekend = habit_factory("Weekend", frequency_type=FrequencyType.WEEKENDS.value)
        inactive = habit_factory("Inactive", is_active=False)

        created = ctx.reminder_scheduler.prepare_next_day(NOW)

        assert created == []
        for habit in (muted, opted_out, weekend, inactive):
            assert reminders_for(fetch, habit.id) == []


class TestScanAtRisk:
    def test_warning_scheduled_for_evening(self, ctx, habit_factory, streak_factory, fetch):
        habit = habit_factory("Meditate")
        streak_factory(habit, current=3)

        created = ctx.reminder_scheduler.scan_at_risk(
            NOW, threshold=2, reminder_type=ReminderType.STREAK_WARNING
        )

        assert len(created) == 1
        [row] = reminders_for(fetch, habit.id)
        assert row.reminder_type == ReminderType.STREAK_WARNING.value
        assert row.scheduled_time == datetime(2025, 3, 12, 20, 0)
        assert row.scheduled_for == TODAY
        assert row.details == {"priority": "high", "streakLength": 3, "habitName": "Meditate"}

    def test_warning_after_evening_is_due_now(self, ctx, habit_factory, streak_factory):
        habit = habit_factory()
        streak_factory(habit, current=3)
        late = datetime(2025, 3, 12, 21, 0)

        [row] = ctx.reminder_scheduler.scan_at_risk(late, threshold=2)

        assert row.scheduled_time == late

    def test_warning_is_created_once_per_day(self, ctx, habit_factory, streak_factory):
        habit = habit_factory()
        streak_factory(habit, current=3)

        assert len(ctx.reminder_scheduler.scan_at_risk(NOW, threshold=2)) == 1
        assert ctx.reminder_scheduler.scan_at_risk(NOW + timedelta(hours=1), threshold=2) == []

    def test_threshold_is_exclusive(self, ctx, habit_factory, streak_factory):
        habit = habit_factory()
        streak_factory(habit, current=2)

        assert ctx.reminder_scheduler.scan_at_risk(NOW, threshold=2) == []

    def test_habits_without_streak_row_are_passed_over(self, ctx, habit_factory, streak_factory):
        habit_factory("New")
        tracked = habit_factory("Tracked")
        streak_factory(tracked, current=5)

        [reminder] = ctx.reminder_scheduler.scan_at_risk(NOW, threshold=2)

        assert reminder.habit_id == tracked.id
        assert reminder.details["streakLength"] == 5

    def test_completed_today_is_not_at_risk(self, ctx, habit_factory, streak_factory, log_factory):
        habit = habit_factory()
        streak_factory(habit, current=5)
        log_factory(habit, TODAY)

        assert ctx.reminder_scheduler.scan_at_risk(NOW, threshold=2) == []

    def test_owner_state_blocks_scan(self, ctx, user_factory, habit_factory, streak_factory):
        vacationer = user_factory(on_vacation=True)
        sleeper = user_factory(quiet_hours_start=time(11, 0), quiet_hours_end=time(13, 0))
        opted_out = user_factory(prefers_notifications=False)
        for owner in (vacationer, sleeper, opted_out):
            streak_factory(habit_factory(owner=owner), current=10)

        assert ctx.reminder_scheduler.scan_at_risk(NOW, threshold=2) == []

    def test_unscheduled_today_is_not_at_risk(self, ctx, habit_factory, streak_factory):
        habit = habit_factory(frequency_type=FrequencyType.WEEKENDS.value)
        streak_factory(habit, current=10)

        assert ctx.reminder_scheduler.scan_at_risk(NOW, threshold=2) == []

    def test_preservation_is_rate_limited(self, ctx, habit_factory, streak_factory, fetch):
        habit = habit_factory("Run")
        streak_factory(habit, current=10)
        scan = ctx.reminder_scheduler.scan_at_risk
        ten = datetime(2025, 3, 12, 10, 0)

        first = scan(ten, threshold=7, reminder_type=ReminderType.STREAK_PRESERVATION)
        within_window = scan(
            ten + timedelta(minutes=90), threshold=7, reminder_type=ReminderType.STREAK_PRESERVATION
        )
        after_window = scan(
            ten + timedelta(minutes=150), threshold=7, reminder_type=ReminderType.STREAK_PRESERVATION
        )

        assert len(first) == 1
        assert first[0].scheduled_time == ten + PRESERVATION_DISPATCH_LEAD
        assert first[0].details["priority"] == "urgent"
        assert within_window == []
        assert len(after_window) == 1
        assert len(reminders_for(fetch, habit.id)) == 2


class TestDispatch:
    def test_due_reminder_is_sent(self, ctx, sink, habit_factory, reminder_factory, fetch):
        habit = habit_factory("Read")
        reminder = reminder_factory(habit, datetime(2025, 3, 12, 9, 0))

        result = ctx.reminder_scheduler.dispatch(ctx.notifier, NOW)

        assert result.to_dict() == {"processed": 1, "sent": 1, "skipped": 0, "failed": 0}
        [row] = fetch(ScheduledReminder, ScheduledReminder.id == reminder.id)
        assert row.send_status == SendStatus.SENT.value
        assert row.is_sent is True
        assert row.actual_send_time == NOW
        [notification] = fetch(Notification)
        assert row.notification_id == notification.id
        assert notification.type == NotificationType.REMINDER.value
        assert notification.title == "Reminder: Read"
        assert notification.delivery_status == DeliveryStatus.DELIVERED.value
        assert sink.titles() == ["Reminder: Read"]

    def test_future_reminders_are_left_alone(self, ctx, habit_factory, reminder_factory):
        habit = habit_factory()
        reminder_factory(habit, NOW + timedelta(minutes=1))

        result = ctx.reminder_scheduler.dispatch(ctx.notifier, NOW)

        assert result.processed == 0

    def test_completed_habit_is_skipped(
        self, ctx, sink, habit_factory, reminder_factory, log_factory, fetch
    ):
        habit = habit_factory()
        reminder = reminder_factory(habit, datetime(2025, 3, 12, 9, 0))
        log_factory(habit, TODAY)

        result = ctx.reminder_scheduler.dispatch(ctx.notifier, NOW)

        assert result.skipped == 1
        [row] = fetch(ScheduledReminder, ScheduledReminder.id == reminder.id)
        assert row.send_status == SendStatus.SKIPPED.value
        assert row.failure_reason == SKIP_ALREADY_COMPLETED
        assert row.is_sent is True
        assert sink.sent == []

    @pytest.mark.parametrize(
        "overrides",
        [
            {"prefers_notifications": False},
            {"on_vacation": True},
            {"vacation_start": date(2025, 3, 10), "vacation_end": date(2025, 3, 14)},
        ],
    )
    def test_owner_status_skips(
        self, ctx, sink, user_factory, habit_factory, reminder_factory, fetch, overrides
    ):
        owner = user_factory(**overrides)
        habit = habit_factory(owner=owner)
        reminder = reminder_factory(habit, datetime(2025, 3, 12, 9, 0))

        result = ctx.reminder_scheduler.dispatch(ctx.notifier, NOW)

        assert result.skipped == 1
        [row] = fetch(ScheduledReminder, ScheduledReminder.id == reminder.id)
        assert row.failure_reason == SKIP_USER_STATUS
        assert sink.sent == []

    def test_each_reminder_is_processed_once(self, ctx, sink, habit_factory, reminder_factory):
        habit = habit_factory()
        reminder_factory(habit, datetime(2025, 3, 12, 9, 0))

        first = ctx.reminder_scheduler.dispatch(ctx.notifier, NOW)
        second = ctx.reminder_scheduler.dispatch(ctx.notifier, NOW + timedelta(minutes=15))

        assert first.sent == 1
        assert second.processed == 0
        assert len(sink.sent) == 1

    def test_error_marks_reminder_failed_and_continues(
        self, ctx, habit_factory, reminder_factory, fetch, monkeypatch
    ):
        broken = habit_factory("Broken")
        healthy = habit_factory("Healthy")
        bad = reminder_factory(broken, datetime(2025, 3, 12, 9, 0))
        good = reminder_factory(healthy, datetime(2025, 3, 12, 9, 0))
        original = ctx.notifier.notify

        def flaky_notify(user_id, title, *args, **kwargs):
            if title == "Reminder: Broken":
                raise RuntimeError("store unavailable")
            return original(user_id, title, *args, **kwargs)

        monkeypatch.setattr(ctx.notifier, "notify", flaky_notify)

        result = ctx.reminder_scheduler.dispatch(ctx.notifier, NOW)

        assert result.to_dict() == {"processed": 2, "sent": 1, "skipped": 0, "failed": 1}
        [bad_row] = fetch(ScheduledReminder, ScheduledReminder.id == bad.id)
        [good_row] = fetch(ScheduledReminder, ScheduledReminder.id == good.id)
        assert bad_row.send_status == SendStatus.FAILED.value
        assert bad_row.failure_reason == "store unavailable"
        assert bad_row.is_sent is False
        assert good_row.send_status == SendStatus.SENT.value

        # Failed rows are terminal and never retried.
        assert ctx.reminder_scheduler.dispatch(ctx.notifier, NOW).processed == 0

    def test_push_failure_is_recorded_on_notification(
        self, ctx, sink, habit_factory, reminder_factory, fetch
    ):
        habit = habit_factory()
        reminder = reminder_factory(habit, datetime(2025, 3, 12, 9, 0))
        sink.fail_with = "device token expired"

        result = ctx.reminder_scheduler.dispatch(ctx.notifier, NOW)

        assert result.sent == 1
        [notification] = fetch(Notification)
        assert notification.delivery_status == DeliveryStatus.FAILED.value
        assert notification.delivery_error == "device token expired"
        [row] = fetch(ScheduledReminder, ScheduledReminder.id == reminder.id)
        assert row.send_status == SendStatus.SENT.value


class TestTransition:
    def test_transition_is_compare_and_swap(self, session_factory, habit_factory, reminder_factory, fetch):
        repo = SQLModelReminderRepository(session_factory)
        reminder = reminder_factory(habit_factory(), NOW)

        assert repo.transition(reminder.id, SendStatus.SKIPPED.value, now=NOW, reason="first")
        assert not repo.transition(reminder.id, SendStatus.SENT.value, now=NOW)

        [row] = fetch(ScheduledReminder, ScheduledReminder.id == reminder.id)
        assert row.send_status == SendStatus.SKIPPED.value
        assert row.failure_reason == "first"

    def test_cannot_move_back_to_prepared(self, session_factory, habit_factory, reminder_factory):
        repo = SQLModelReminderRepository(session_factory)
        reminder = reminder_factory(habit_factory(), NOW)

        with pytest.raises(ValueError):
            repo.transition(reminder.id, SendStatus.PREPARED.value, now=NOW)
