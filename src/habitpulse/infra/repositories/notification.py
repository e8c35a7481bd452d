"""SQLModel implementation of the notification repository."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.notification import Notification


class SQLModelNotificationRepository:
    """SQLModel-based notification repository."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def create(self, notification: Notification) -> Notification:
        with self.session_factory() as session:
            session.add(notification)
            session.commit()
            session.refresh(notification)
            session.expunge(notification)
            return notification

    def update_delivery(
        self, notification_id: int, status: str, error: Optional[str] = None
    ) -> None:
        with self.session_factory() as session:
            notification = session.get(Notification, notification_id)
            if notification is None:
                return
            notification.delivery_status = status
            notification.delivery_error = error
            session.add(notification)
            session.commit()

    def exists_since(
        self,
        user_id: int,
        notification_type: str,
        since: datetime,
        *,
        title_contains: Optional[str] = None,
    ) -> bool:
        with self.session_factory() as session:
            statement = (
                select(Notification.id)
                .where(Notification.user_id == user_id)
                .where(Notification.type == notification_type)
                .where(Notification.created_at >= since)
            )
            if title_contains:
                statement = statement.where(Notification.title.contains(title_contains))  # type: ignore[attr-defined]
            return session.exec(statement.limit(1)).first() is not None

    def list_for_user(self, user_id: int) -> list[Notification]:
        with self.session_factory() as session:
            statement = (
                select(Notification)
                .where(Notification.user_id == user_id)
                .order_by(Notification.id)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows
