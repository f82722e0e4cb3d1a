"""SQLModel implementation of Notification repository."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import func
from sqlmodel import select

from ...models.notification import Notification
from ..database import SessionFactory


class SQLModelNotificationRepository:
    """SQLModel-based notification repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def create(self, notification: Notification, *, user_id: int) -> Notification:
        with self.session_factory() as session:
            notification.user_id = user_id
            session.add(notification)
            session.commit()
            session.refresh(notification)
            session.expunge(notification)
            return notification

    def get_by_id(self, notification_id: int, *, user_id: int) -> Optional[Notification]:
        with self.session_factory() as session:
            obj = session.exec(
                select(Notification).where(
                    Notification.id == notification_id, Notification.user_id == user_id
                )
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_for_user(self, *, user_id: int) -> list[Notification]:
        """Return the user's notifications, newest first."""
        with self.session_factory() as session:
            statement = (
                select(Notification)
                .where(Notification.user_id == user_id)
                .order_by(Notification.created_at.desc(), Notification.id.desc())  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def mark_as_read(self, notification_id: int, *, user_id: int) -> Optional[Notification]:
        with self.session_factory() as session:
            obj = session.exec(
                select(Notification).where(
                    Notification.id == notification_id, Notification.user_id == user_id
                )
            ).first()
            if obj is None:
                return None
            obj.is_read = True
            session.add(obj)
            session.commit()
            session.refresh(obj)
            session.expunge(obj)
            return obj

    def mark_all_as_read(self, *, user_id: int) -> int:
        """Mark every unread notification read and return how many changed."""
        with self.session_factory() as session:
            rows = session.exec(
                select(Notification)
                .where(Notification.user_id == user_id)
                .where(Notification.is_read == False)  # noqa: E712
            ).all()
            for row in rows:
                row.is_read = True
                session.add(row)
            session.commit()
            return len(rows)

    def delete(self, notification_id: int, *, user_id: int) -> None:
        with self.session_factory() as session:
            obj = session.exec(
                select(Notification).where(
                    Notification.id == notification_id, Notification.user_id == user_id
                )
            ).first()
            if obj:
                session.delete(obj)
                session.commit()

    def unread_count(self, *, user_id: int) -> int:
        with self.session_factory() as session:
            count = session.exec(
                select(func.count())
                .select_from(Notification)
                .where(Notification.user_id == user_id)
                .where(Notification.is_read == False)  # noqa: E712
            ).one()
            return int(count)
