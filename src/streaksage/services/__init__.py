"""Service layer for StreakSage."""

from .stats import (
    HabitStats,
    InvalidArgument,
    compute_current_streak,
    compute_habit_stats,
    compute_longest_streak,
    compute_rolling_progress,
)

__all__ = [
    "HabitStats",
    "InvalidArgument",
    "compute_current_streak",
    "compute_habit_stats",
    "compute_longest_streak",
    "compute_rolling_progress",
]
