"""Notification repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.notification import Notification


class NotificationRepository(Protocol):
    """Repository for user-visible notifications."""

    def create(self, notification: Notification) -> Notification:
        ...

    def update_delivery(
        self, notification_id: int, status: str, error: Optional[str] = None
    ) -> None:
        """Persist the push delivery outcome."""
        ...

    def exists_since(
        self,
        user_id: int,
        notification_type: str,
        since: datetime,
        *,
        title_contains: Optional[str] = None,
    ) -> bool:
        """Whether the user already received such a notification after ``since``."""
        ...

    def list_for_user(self, user_id: int) -> list[Notification]:
        ...
