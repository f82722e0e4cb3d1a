"""Repository protocol definitions for domain layer."""

from .habit import HabitRepository
from .notification import NotificationRepository

__all__ = [
    "HabitRepository",
    "NotificationRepository",
]
