"""Shared fixtures: a throwaway SQLite file per test plus small row builders."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlmodel import Session, SQLModel, create_engine

from streaksage.models import Habit, HabitEntry, Notification, User

CONFIG_VARS = (
    "STREAKSAGE_DATABASE_URL",
    "STREAKSAGE_TIMEZONE",
    "STREAKSAGE_WINDOW_DAYS",
    "STREAKSAGE_USER",
    "STREAKSAGE_DEV_MODE",
)


def trailing_days(end: date, count: int) -> set[date]:
    """``count`` consecutive days ending at ``end``."""
    return {end - timedelta(days=i) for i in range(count)}


def utc(*parts: int) -> datetime:
    return datetime(*parts, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Point config at the test's tmp dir and ignore any developer overrides."""
    monkeypatch.setenv("STREAKSAGE_DATA_DIR", str(tmp_path / "instance"))
    for name in CONFIG_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def db_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'streaksage-test.db'}")
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Session the factories below write through; tests read via repositories."""
    with Session(db_engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def session_factory(db_engine):
    """Same contract as the app's factory: commit on success, roll back on error."""

    @contextmanager
    def open_session():
        with Session(db_engine, expire_on_commit=False) as session:
            try:
                yield session
            except Exception:
                session.rollback()
                raise
            session.commit()

    return open_session


def _persist(session: Session, row):
    session.add(row)
    session.commit()
    session.refresh(row)
    return row


@pytest.fixture
def user(db_session) -> User:
    return _persist(db_session, User(username="tester", display_name="Tester"))


@pytest.fixture
def other_user(db_session) -> User:
    return _persist(db_session, User(username="someone-else"))


@pytest.fixture
def habit_factory(db_session, user):
    """Build and store a habit owned by ``user`` unless ``owner`` says otherwise."""

    def make(name: str = "Test Habit", *, owner: User | None = None, **fields) -> Habit:
        fields.setdefault("category", "health")
        return _persist(db_session, Habit(user_id=(owner or user).id, name=name, **fields))

    return make


@pytest.fixture
def mark_done(db_session):
    """Store entries for ``habit`` on each of ``days``."""

    def mark(habit: Habit, *days: date, value: int = 1) -> None:
        db_session.add_all(
            HabitEntry(habit_id=habit.id, occurred_on=day, user_id=habit.user_id, value=value)
            for day in days
        )
        db_session.commit()

    return mark


@pytest.fixture
def notification_factory(db_session, user):
    """Store a notification; ``created_at`` defaults to 2025-03-16 09:00 UTC."""

    def make(
        message: str = "Test notification",
        *,
        type: str = "system",
        created_at: datetime | None = None,
        is_read: bool = False,
        owner: User | None = None,
    ) -> Notification:
        return _persist(
            db_session,
            Notification(
                user_id=(owner or user).id,
                message=message,
                type=type,
                is_read=is_read,
                created_at=created_at or utc(2025, 3, 16, 9, 0),
            ),
        )

    return make
