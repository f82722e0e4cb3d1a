"""Streak and rolling-progress computation over a habit's completion dates.

Everything here is pure: callers pass the completion dates (already
normalized to one time zone) and the reference ``today`` explicitly, so the
results are deterministic and nothing is cached or persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable
from zoneinfo import ZoneInfo

from ..models.habit import HabitEntry

DEFAULT_WINDOW_DAYS = 30
ONE_DAY = timedelta(days=1)


class InvalidArgument(ValueError):
    """Raised when a caller breaks an engine contract (e.g. a non-positive window)."""


@dataclass(frozen=True)
class HabitStats:
    """Derived view of a habit's record; recomputed on every read."""

    current_streak: int
    rolling_progress_percent: int
    longest_streak: int = 0


def completion_dates(entries: Iterable[HabitEntry]) -> set[date]:
    """Return the set of days with a positive entry value."""

    return {e.occurred_on for e in entries if e.value > 0}


def local_today(tz_name: str = "UTC", *, now: datetime | None = None) -> date:
    """Return the calendar date in ``tz_name``.

    Callers that own time-zone normalization use this to pick ``today``; the
    engine functions below never call it.
    """

    tz = ZoneInfo(tz_name)
    moment = now.astimezone(tz) if now is not None else datetime.now(tz)
    return moment.date()


def compute_current_streak(completed_dates: Iterable[date], today: date) -> int:
    """Count consecutive completed days ending at ``today`` or the day before.

    An unfinished ``today`` does not break the streak (the day is not over),
    but a missing yesterday does when today is also missing.
    """

    done = set(completed_dates)
    anchor = today if today in done else today - ONE_DAY
    if anchor not in done:
        return 0

    streak = 1
    cursor = anchor - ONE_DAY
    while cursor in done:
        streak += 1
        cursor -= ONE_DAY
    return streak


def in_current_streak(day: date, completed_dates: Iterable[date], today: date) -> bool:
    """Return whether ``day`` is one of the days counted by the current streak."""

    done = set(completed_dates)
    streak = compute_current_streak(done, today)
    if streak == 0:
        return False
    end = today if today in done else today - ONE_DAY
    return end - timedelta(days=streak - 1) <= day <= end


def compute_longest_streak(completed_dates: Iterable[date]) -> int:
    """Return the longest run of consecutive days anywhere in the record."""

    longest = 0
    run = 0
    last_day: date | None = None
    for d in sorted(set(completed_dates)):
        if last_day is not None and d == last_day + ONE_DAY:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        last_day = d
    return longest


def round_percent(part: int, whole: int) -> int:
    """Return ``round(100 * part / whole)`` rounding halves up."""

    # Integer form of floor(100 * part / whole + 0.5); avoids banker's rounding.
    return (200 * part + whole) // (2 * whole)


def _check_window(window_days: int) -> None:
    if isinstance(window_days, bool) or not isinstance(window_days, int) or window_days <= 0:
        raise InvalidArgument(f"window_days must be a positive integer, got {window_days!r}")


def compute_rolling_progress(
    completed_dates: Iterable[date],
    today: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> int:
    """Percentage of days in ``[today - (window_days - 1), today]`` that were completed."""

    _check_window(window_days)
    start = today - timedelta(days=window_days - 1)
    hits = sum(1 for d in set(completed_dates) if start <= d <= today)
    return round_percent(hits, window_days)


def compute_habit_stats(
    completed_dates: Iterable[date],
    today: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> HabitStats:
    """Compute all derived metrics for one habit."""

    _check_window(window_days)
    done = set(completed_dates)
    return HabitStats(
        current_streak=compute_current_streak(done, today),
        rolling_progress_percent=compute_rolling_progress(done, today, window_days),
        longest_streak=compute_longest_streak(done),
    )


def streak_milestone_message(habit_name: str, streak: int) -> str | None:
    """Return the celebration text for a milestone streak, or ``None``."""

    if streak <= 0:
        return None
    if streak == 7:
        return f'You reached a 7-day streak for "{habit_name}"! Keep it up!'
    if streak == 30:
        return f'Amazing! 30-day streak for "{habit_name}"! You\'re on fire!'
    if streak == 100:
        return f'Incredible! 100-day streak for "{habit_name}"! You\'re a habit master!'
    if streak % 10 == 0:
        return f'You reached a {streak}-day streak for "{habit_name}"!'
    return None


__all__ = [
    "DEFAULT_WINDOW_DAYS",
    "HabitStats",
    "InvalidArgument",
    "completion_dates",
    "compute_current_streak",
    "compute_habit_stats",
    "compute_longest_streak",
    "compute_rolling_progress",
    "in_current_streak",
    "local_today",
    "round_percent",
    "streak_milestone_message",
]
