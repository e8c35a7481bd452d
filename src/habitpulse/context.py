"""Worker context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from sqlmodel import Session

from .config import BaseConfig
from .domain.repositories import (
    HabitRepository,
    NotificationRepository,
    ReminderRepository,
    UserRepository,
)
from .infra.database import bootstrap_database
from .infra.repositories import (
    SQLModelHabitRepository,
    SQLModelNotificationRepository,
    SQLModelReminderRepository,
    SQLModelUserRepository,
)
from .services.notifications import LoggingPushSink, NotificationService, NotificationSink
from .services.reminders import ReminderScheduler


@dataclass
class WorkerContext:
    """Everything a job needs; passed explicitly into every job function."""

    config: BaseConfig

    # Repositories
    habit_repo: HabitRepository
    reminder_repo: ReminderRepository
    notification_repo: NotificationRepository
    user_repo: UserRepository

    # Services
    notifier: NotificationService
    reminder_scheduler: ReminderScheduler

    session_factory: Optional[Callable[[], Session]] = None


def build_context(
    config: BaseConfig,
    *,
    habit_repo: HabitRepository,
    reminder_repo: ReminderRepository,
    notification_repo: NotificationRepository,
    user_repo: UserRepository,
    sink: Optional[NotificationSink] = None,
    session_factory: Optional[Callable[[], Session]] = None,
) -> WorkerContext:
    """Wire services on top of already constructed repositories."""

    return WorkerContext(
        config=config,
        habit_repo=habit_repo,
        reminder_repo=reminder_repo,
        notification_repo=notification_repo,
        user_repo=user_repo,
        notifier=NotificationService(notification_repo, sink or LoggingPushSink()),
        reminder_scheduler=ReminderScheduler(habit_repo, reminder_repo, config),
        session_factory=session_factory,
    )


def create_app_context(
    config: Optional[BaseConfig] = None,
    *,
    sink: Optional[NotificationSink] = None,
    session_factory: Optional[Callable[[], Session]] = None,
) -> WorkerContext:
    """Create and initialize the worker context backed by SQLModel repositories."""

    if config is None:
        config = BaseConfig()

    if session_factory is None:
        _, session_factory = bootstrap_database(config)

    return build_context(
        config,
        habit_repo=SQLModelHabitRepository(session_factory),
        reminder_repo=SQLModelReminderRepository(session_factory),
        notification_repo=SQLModelNotificationRepository(session_factory),
        user_repo=SQLModelUserRepository(session_factory),
        sink=sink,
        session_factory=session_factory,
    )


__all__ = ["WorkerContext", "build_context", "create_app_context"]
