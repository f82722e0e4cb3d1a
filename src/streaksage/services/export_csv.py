"""CSV export helpers for StreakSage."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable

from .habits import HabitSummary

HEADERS = [
    "id",
    "name",
    "category",
    "current_streak",
    "longest_streak",
    "rolling_progress_percent",
    "done_today",
]


def export_stats_csv(*, summaries: Iterable[HabitSummary], output_path: Path) -> Path:
    """Write one row of derived stats per habit to ``output_path``.

    Columns are deterministic (see ``HEADERS``). Returns the path written.
    """

    output_path.parent.mkdir(parents=True, exist_ok=True)

    # Use newline='' for csv on Windows
    with output_path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=HEADERS, quoting=csv.QUOTE_MINIMAL)
        writer.writeheader()
        for summary in summaries:
            writer.writerow(
                {
                    "id": summary.habit.id,
                    "name": summary.habit.name,
                    "category": summary.habit.category,
                    "current_streak": summary.stats.current_streak,
                    "longest_streak": summary.stats.longest_streak,
                    "rolling_progress_percent": summary.stats.rolling_progress_percent,
                    "done_today": "yes" if summary.done_today else "no",
                }
            )

    return output_path
