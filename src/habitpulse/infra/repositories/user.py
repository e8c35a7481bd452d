"""SQLModel implementation of the user repository."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.user import User


class SQLModelUserRepository:
    """SQLModel-based user repository."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get(self, user_id: int) -> Optional[User]:
        with self.session_factory() as session:
            obj = session.get(User, user_id)
            if obj:
                session.expunge(obj)
            return obj

    def _list(self, statement) -> list[User]:
        with self.session_factory() as session:
            rows = list(session.exec(statement.order_by(User.id)).all())  # type: ignore
            session.expunge_all()
            return rows

    def list_notifiable(self) -> list[User]:
        return self._list(
            select(User)
            .where(User.prefers_notifications == True)  # noqa: E712
            .where(User.on_vacation == False)  # noqa: E712
        )

    def list_with_daily_goal(self) -> list[User]:
        return self._list(
            select(User)
            .where(User.prefers_notifications == True)  # noqa: E712
            .where(User.on_vacation == False)  # noqa: E712
            .where(User.daily_goal > 0)
        )

    def list_registered_since(self, since: datetime) -> list[User]:
        return self._list(select(User).where(User.registered_at >= since))
