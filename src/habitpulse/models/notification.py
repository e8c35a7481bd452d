"""User-visible notification records."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from ..clock import utcnow
from .enums import DeliveryStatus


class Notification(SQLModel, table=True):
    """Durable counterpart of a delivered reminder or event, paired with a push."""

    __tablename__: ClassVar[str] = "notification"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    title: str = Field(nullable=False, max_length=255)
    content: str = Field(nullable=False, max_length=1000)
    type: str = Field(nullable=False, max_length=32, index=True)
    related_id: Optional[int] = Field(default=None)
    action_url: Optional[str] = Field(default=None, max_length=255)
    is_read: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(default_factory=utcnow, nullable=False, index=True)

    delivery_status: str = Field(default=DeliveryStatus.PENDING.value, max_length=16)
    delivery_error: Optional[str] = Field(default=None, max_length=500)
