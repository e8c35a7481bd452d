"""Notification creation and push fan-out.

The push transport is an external collaborator behind ``NotificationSink``.
A failed push never fails the caller: the Notification row is the durable
record and carries the delivery outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from ..domain.repositories.notification import NotificationRepository
from ..models.enums import DeliveryStatus
from ..models.notification import Notification
from .messages import Message

logger = logging.getLogger("habitpulse.notifications")


@dataclass(frozen=True)
class DeliveryOutcome:
    success: bool
    error: Optional[str] = None


class NotificationSink(Protocol):
    """Push delivery port."""

    def send(
        self, user_id: int, title: str, body: str, metadata: dict[str, Any]
    ) -> DeliveryOutcome:
        ...


class LoggingPushSink:
    """Default sink: records the push in the log and reports success."""

    def send(
        self, user_id: int, title: str, body: str, metadata: dict[str, Any]
    ) -> DeliveryOutcome:
        logger.info(
            "Push to user %s: %s",
            user_id,
            title,
            extra={"push": {"user_id": user_id, "body": body, **metadata}},
        )
        return DeliveryOutcome(success=True)


class NotificationService:
    """Persist a Notification row, push it, and persist the delivery outcome."""

    def __init__(self, repo: NotificationRepository, sink: NotificationSink):
        self.repo = repo
        self.sink = sink

    def notify(
        self,
        user_id: int,
        title: str,
        content: str,
        notification_type: str,
        *,
        related_id: Optional[int] = None,
        action_url: Optional[str] = None,
    ) -> Notification:
        """Create the notification and attempt delivery.

        Errors while persisting the row propagate; push errors are logged
        and recorded on the row.
        """
        notification = self.repo.create(
            Notification(
                user_id=user_id,
                title=title,
                content=content,
                type=notification_type,
                related_id=related_id,
                action_url=action_url,
            )
        )

        metadata = {
            "type": notification.type,
            "relatedId": related_id,
            "actionUrl": action_url,
            "notificationId": notification.id,
        }
        try:
            outcome = self.sink.send(user_id, title, content, metadata)
        except Exception as exc:
            logger.warning(
                "Push delivery raised for notification %s: %s", notification.id, exc,
                exc_info=True,
            )
            outcome = DeliveryOutcome(success=False, error=str(exc))

        if outcome.success:
            status = DeliveryStatus.DELIVERED.value
        else:
            status = DeliveryStatus.FAILED.value
            logger.warning(
                "Push delivery failed for notification %s: %s", notification.id, outcome.error
            )
        self.repo.update_delivery(notification.id, status, outcome.error)
        notification.delivery_status = status
        notification.delivery_error = outcome.error
        return notification

    def notify_message(
        self, user_id: int, message: Message, *, related_id: Optional[int] = None
    ) -> Notification:
        return self.notify(
            user_id,
            message.title,
            message.content,
            message.type.value,
            related_id=related_id,
            action_url=message.action_url,
        )


__all__ = [
    "DeliveryOutcome",
    "LoggingPushSink",
    "NotificationService",
    "NotificationSink",
]
