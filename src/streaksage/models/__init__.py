"""SQLModel table exports."""

from .habit import Habit, HabitEntry
from .notification import Notification
from .user import User

__all__ = [
    "Habit",
    "HabitEntry",
    "Notification",
    "User",
]
