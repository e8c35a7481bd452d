"""User repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.user import User


class UserRepository(Protocol):
    """Read access to the user fields that gate background processing."""

    def get(self, user_id: int) -> Optional[User]:
        ...

    def list_notifiable(self) -> list[User]:
        """Users who opted into notifications and are not flagged on vacation."""
        ...

    def list_with_daily_goal(self) -> list[User]:
        """Notifiable users with ``daily_goal > 0``."""
        ...

    def list_registered_since(self, since: datetime) -> list[User]:
        ...
