"""Engine construction and the session factory the repositories share."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig

SessionFactory = Callable[[], ContextManager[Session]]

IN_MEMORY_URL = "sqlite://"


def create_db_engine(config: BaseConfig) -> Engine:
    options = config.sqlalchemy_engine_options()
    if config.DATABASE_URL == IN_MEMORY_URL:
        # every session must reuse the one connection holding the schema
        options["poolclass"] = StaticPool
    return create_engine(config.DATABASE_URL, **options)


def init_database(engine: Engine) -> None:
    """Create any missing tables; safe to call on every start."""
    from .. import models  # noqa: F401  (registers the tables)

    SQLModel.metadata.create_all(engine)


def create_session_factory(engine: Engine) -> SessionFactory:
    """Return a factory of sessions that commit on success and roll back on error."""

    @contextmanager
    def open_session() -> Iterator[Session]:
        with Session(engine, expire_on_commit=False) as session:
            try:
                yield session
            except Exception:
                session.rollback()
                raise
            session.commit()

    return open_session


def bootstrap_database(config: BaseConfig) -> tuple[Engine, SessionFactory]:
    """Build the engine, make sure the schema exists and hand back a session factory."""

    engine = create_db_engine(config)
    init_database(engine)
    return engine, create_session_factory(engine)
