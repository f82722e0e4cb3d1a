"""Year-level progress summaries: heatmap grid, streak overview, categories."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Optional, TypedDict

from ..models.habit import Habit
from .habits import HabitSummary
from .stats import round_percent

COMPLETED_LEVEL = 4
TOP_HABIT_LIMIT = 5
NAME_LIMIT = 15
DAYS_PER_YEAR = 365  # denominator for category completion, leap years included

CATEGORY_NAMES = {
    "health": "Health & Fitness",
    "learning": "Learning",
    "productivity": "Productivity",
    "mindfulness": "Mindfulness",
    "finance": "Finance",
    "creativity": "Creativity",
    "social": "Social",
}

HeatmapCell = tuple[date, int]


class TopHabit(TypedDict):
    name: str
    value: int


class StreakOverview(TypedDict):
    active: int
    longest: int
    top: list[TopHabit]


class CategoryRow(TypedDict):
    name: str
    value: int
    count: int


def category_display_name(category: str) -> str:
    return CATEGORY_NAMES.get(category, "Other")


def available_years(date_sets: Iterable[Iterable[date]], current_year: int) -> list[int]:
    """Years with at least one completion, newest first; ``[current_year]`` if none."""

    years = {d.year for dates in date_sets for d in dates}
    return sorted(years, reverse=True) or [current_year]


def heatmap_cells(completed_dates: Iterable[date], year: int) -> list[HeatmapCell]:
    """One ``(day, level)`` cell per calendar day of ``year``."""

    done = {d for d in completed_dates if d.year == year}
    cells: list[HeatmapCell] = []
    day = date(year, 1, 1)
    while day.year == year:
        cells.append((day, COMPLETED_LEVEL if day in done else 0))
        day += timedelta(days=1)
    return cells


def heatmap_weeks(year: int, cells: list[HeatmapCell]) -> list[list[Optional[HeatmapCell]]]:
    """Lay the year's cells out in Sunday-first weeks padded with ``None``."""

    # date.weekday() is Monday == 0; shift so Sunday starts the row
    lead = (date(year, 1, 1).weekday() + 1) % 7
    padded: list[Optional[HeatmapCell]] = [None] * lead + list(cells)
    while len(padded) % 7:
        padded.append(None)
    return [padded[i : i + 7] for i in range(0, len(padded), 7)]


def _short_name(name: str) -> str:
    return name[:NAME_LIMIT] + "..." if len(name) > NAME_LIMIT else name


def streak_overview(summaries: Iterable[HabitSummary]) -> StreakOverview:
    """Count habits with a live streak, the best current streak and the top five."""

    rows = list(summaries)
    if not rows:
        return {"active": 0, "longest": 0, "top": []}

    ranked = sorted(rows, key=lambda s: s.stats.current_streak, reverse=True)
    return {
        "active": sum(1 for s in rows if s.stats.current_streak > 0),
        "longest": ranked[0].stats.current_streak,
        "top": [
            {"name": _short_name(s.habit.name), "value": s.stats.current_streak}
            for s in ranked[:TOP_HABIT_LIMIT]
        ],
    }


def category_breakdown(
    records: Iterable[tuple[Habit, Iterable[date]]], year: int
) -> list[CategoryRow]:
    """Completion percent per category for ``year``, highest first."""

    totals: dict[str, dict[str, int]] = {}
    for habit, dates in records:
        name = category_display_name(habit.category)
        entry = totals.setdefault(name, {"count": 0, "completed": 0})
        entry["count"] += 1
        entry["completed"] += sum(1 for d in set(dates) if d.year == year)

    rows: list[CategoryRow] = [
        {
            "name": name,
            "value": round_percent(data["completed"], data["count"] * DAYS_PER_YEAR),
            "count": data["count"],
        }
        for name, data in totals.items()
    ]
    return sorted(rows, key=lambda row: row["value"], reverse=True)


__all__ = [
    "CATEGORY_NAMES",
    "available_years",
    "category_breakdown",
    "category_display_name",
    "heatmap_cells",
    "heatmap_weeks",
    "streak_overview",
]
