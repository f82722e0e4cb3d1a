"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from sqlmodel import Session

from .config import BaseConfig
from .infra.database import bootstrap_database
from .infra.repositories import (
    SQLModelHabitRepository,
    SQLModelNotificationRepository,
    SQLModelUserRepository,
)
from .models.user import User
from .services.habits import HabitService
from .services.notifications import NotificationRelay, NotificationService, ToastSink
from .services.stats import local_today


@dataclass
class AppContext:
    """Centralized application context with repositories and services."""

    config: BaseConfig
    session_factory: Callable[[], Session]

    habit_repo: SQLModelHabitRepository
    notification_repo: SQLModelNotificationRepository
    user_repo: SQLModelUserRepository

    relay: NotificationRelay
    notifications: NotificationService
    habits: HabitService

    current_user: Optional[User] = None

    def require_user_id(self) -> int:
        """Return the current user id or raise if not set."""

        if self.current_user is None or self.current_user.id is None:
            raise RuntimeError("No current user")
        return self.current_user.id

    def today(self) -> date:
        """Today's date in the configured time zone."""
        return local_today(self.config.TIMEZONE)


def create_app_context(
    config: Optional[BaseConfig] = None,
    *,
    toast_sink: Optional[ToastSink] = None,
) -> AppContext:
    """Create the engine, schema, repositories and services for one process."""

    if config is None:
        config = BaseConfig()

    _engine, session_factory = bootstrap_database(config)

    habit_repo = SQLModelHabitRepository(session_factory)
    notification_repo = SQLModelNotificationRepository(session_factory)
    user_repo = SQLModelUserRepository(session_factory)

    relay = NotificationRelay()
    notifications = NotificationService(notification_repo, relay, toast_sink)
    habits = HabitService(habit_repo, notifications, window_days=config.WINDOW_DAYS)

    return AppContext(
        config=config,
        session_factory=session_factory,
        habit_repo=habit_repo,
        notification_repo=notification_repo,
        user_repo=user_repo,
        relay=relay,
        notifications=notifications,
        habits=habits,
        current_user=user_repo.get_or_create(config.USERNAME),
    )
