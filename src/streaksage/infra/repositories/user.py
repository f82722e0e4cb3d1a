"""SQLModel implementation of User repository."""

from __future__ import annotations

from typing import Optional

from sqlmodel import select

from ...models.user import User
from ..database import SessionFactory


class SQLModelUserRepository:
    """Look up or register the local owner of habits and notifications."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_by_username(self, username: str) -> Optional[User]:
        with self.session_factory() as session:
            obj = session.exec(select(User).where(User.username == username)).first()
            if obj:
                session.expunge(obj)
            return obj

    def get_or_create(self, username: str, *, display_name: str = "") -> User:
        existing = self.get_by_username(username)
        if existing is not None:
            return existing
        with self.session_factory() as session:
            user = User(username=username, display_name=display_name or username)
            session.add(user)
            session.commit()
            session.refresh(user)
            session.expunge(user)
            return user
