"""Habit service: completion toggling, per-habit stats and dashboard views."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from ..domain.repositories.habit import HabitRepository
from ..models.habit import FREQUENCIES, Habit
from .notifications import NotificationService
from .stats import (
    DEFAULT_WINDOW_DAYS,
    HabitStats,
    compute_habit_stats,
    in_current_streak,
    round_percent,
)

logger = logging.getLogger("streaksage.habits")

HABIT_TABS = ("all", "today", "favorites", "completed")


class HabitNotFound(LookupError):
    """Raised when a habit id does not exist for the user."""


@dataclass(frozen=True)
class HabitSummary:
    """One dashboard row: the habit, its derived stats and today's state."""

    habit: Habit
    stats: HabitStats
    done_today: bool


def is_due_on(habit: Habit, day: date) -> bool:
    """Return whether ``habit`` is scheduled on ``day`` given its frequency."""

    weekday = day.weekday()  # Monday == 0
    if habit.frequency == "weekdays":
        return weekday < 5
    if habit.frequency == "weekends":
        return weekday >= 5
    return True


def today_completion_rate(summaries: Iterable[HabitSummary]) -> int:
    """Percent of habits already done today (0 when there are none)."""

    rows = list(summaries)
    if not rows:
        return 0
    return round_percent(sum(1 for s in rows if s.done_today), len(rows))


def filter_habits(summaries: Iterable[HabitSummary], tab: str, today: date) -> list[HabitSummary]:
    """Return the dashboard rows shown under ``tab``."""

    rows = list(summaries)
    if tab == "all":
        return rows
    if tab == "today":
        return [s for s in rows if is_due_on(s.habit, today)]
    if tab == "favorites":
        return [s for s in rows if s.habit.is_favorite]
    if tab == "completed":
        return [s for s in rows if s.done_today]
    raise ValueError(f"Unknown habit tab {tab!r}; expected one of {HABIT_TABS}")


class HabitService:
    """Coordinates the habit store, the stats engine and streak notifications."""

    def __init__(
        self,
        repo: HabitRepository,
        notifications: Optional[NotificationService] = None,
        *,
        window_days: int = DEFAULT_WINDOW_DAYS,
    ):
        self.repo = repo
        self.notifications = notifications
        self.window_days = window_days

    def add_habit(
        self,
        name: str,
        *,
        user_id: int,
        description: str = "",
        category: str = "other",
        frequency: str = "daily",
        reminder_time: str | None = None,
        is_favorite: bool = False,
    ) -> Habit:
        name = name.strip()
        if not name:
            raise ValueError("Habit name must not be empty")
        if frequency not in FREQUENCIES:
            raise ValueError(f"Unknown frequency {frequency!r}; expected one of {FREQUENCIES}")
        if reminder_time is not None:
            _validate_reminder_time(reminder_time)
        if self.repo.get_by_name(name, user_id=user_id) is not None:
            raise ValueError(f"A habit named {name!r} already exists")

        habit = self.repo.create(
            Habit(
                user_id=user_id,
                name=name,
                description=description,
                category=category,
                frequency=frequency,
                reminder_time=reminder_time,
                is_favorite=is_favorite,
            ),
            user_id=user_id,
        )
        logger.info("Habit created", extra={"habit_id": habit.id, "user_id": user_id})
        return habit

    def get_habit(self, habit_id: int, *, user_id: int) -> Habit:
        habit = self.repo.get_by_id(habit_id, user_id=user_id)
        if habit is None:
            raise HabitNotFound(habit_id)
        return habit

    def toggle_favorite(self, habit_id: int, *, user_id: int) -> Habit:
        habit = self.get_habit(habit_id, user_id=user_id)
        habit.is_favorite = not habit.is_favorite
        return self.repo.update(habit, user_id=user_id)

    def delete_habit(self, habit_id: int, *, user_id: int) -> None:
        self.get_habit(habit_id, user_id=user_id)
        self.repo.delete(habit_id, user_id=user_id)
        logger.info("Habit deleted", extra={"habit_id": habit_id, "user_id": user_id})

    def toggle_completion(self, habit_id: int, day: date, *, user_id: int, today: date) -> HabitStats:
        """Mark ``day`` done if it is not, otherwise undo it; return stats as of ``today``.

        A streak notification is only sent when the newly marked day is part of
        the streak counted from ``today``, so back-filling old days stays quiet.
        """
        habit = self.get_habit(habit_id, user_id=user_id)

        marked = self.repo.get_entry(habit_id, day, user_id=user_id) is None
        if marked:
            self.repo.add_entry(habit_id, day, user_id=user_id)
        else:
            self.repo.delete_entry(habit_id, day, user_id=user_id)

        dates = self.repo.get_completed_dates(habit_id, user_id=user_id)
        stats = compute_habit_stats(dates, today, self.window_days)
        logger.info(
            "Habit completion toggled",
            extra={
                "habit_id": habit_id,
                "day": day.isoformat(),
                "done": marked,
                "current_streak": stats.current_streak,
            },
        )

        if marked and self.notifications is not None and in_current_streak(day, dates, today):
            self.notifications.create_streak_notification(
                user_id=user_id, habit=habit, streak=stats.current_streak
            )
        return stats

    def stats_for(self, habit_id: int, today: date, *, user_id: int) -> HabitStats:
        dates = self.repo.get_completed_dates(habit_id, user_id=user_id)
        return compute_habit_stats(dates, today, self.window_days)

    def completion_records(self, *, user_id: int) -> list[tuple[Habit, set[date]]]:
        """Active habits paired with their completion dates."""
        return [
            (habit, self.repo.get_completed_dates(habit.id, user_id=user_id))
            for habit in self.repo.list_active(user_id=user_id)
        ]

    def dashboard(self, today: date, *, user_id: int) -> list[HabitSummary]:
        """Per-habit summaries for every active habit; each computed independently."""
        return [
            HabitSummary(
                habit=habit,
                stats=compute_habit_stats(dates, today, self.window_days),
                done_today=today in dates,
            )
            for habit, dates in self.completion_records(user_id=user_id)
        ]


def _validate_reminder_time(value: str) -> None:
    try:
        hour_text, minute_text = value.split(":")
        hour, minute = int(hour_text), int(minute_text)
    except ValueError as exc:
        raise ValueError(f"Reminder time must look like HH:MM, got {value!r}") from exc
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Reminder time out of range: {value!r}")


def parse_reminder_time(value: str) -> tuple[int, int]:
    """Split a validated ``HH:MM`` string into (hour, minute)."""
    _validate_reminder_time(value)
    hour_text, minute_text = value.split(":")
    return int(hour_text), int(minute_text)


__all__ = [
    "HABIT_TABS",
    "HabitNotFound",
    "HabitService",
    "HabitSummary",
    "filter_habits",
    "is_due_on",
    "parse_reminder_time",
    "today_completion_rate",
]
