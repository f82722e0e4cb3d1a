"""Chart helpers rendering progress views to PNG files."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Iterable

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap
from matplotlib.figure import Figure

from .progress import COMPLETED_LEVEL, StreakOverview, heatmap_cells, heatmap_weeks

_MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
_DAY_LABELS = ["Sun", "", "Tue", "", "Thu", "", "Sat"]


def _save(fig: Figure, output_path: Path | None) -> Path:
    if output_path is None:
        with NamedTemporaryFile(delete=False, suffix=".png") as tmp:
            output_path = Path(tmp.name)
    else:
        output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, bbox_inches="tight", dpi=100)
    plt.close(fig)
    return output_path


def _placeholder(text: str, output_path: Path | None) -> Path:
    fig, ax = plt.subplots(figsize=(8, 3))
    ax.text(0.5, 0.5, text, ha="center", va="center", fontsize=12, color="#999")
    ax.axis("off")
    return _save(fig, output_path)


def heatmap_png(
    completed_dates: Iterable[date], year: int, *, output_path: Path | None = None
) -> Path:
    """Render a GitHub-style year heatmap of completions."""

    cells = heatmap_cells(completed_dates, year)
    if not any(level for _, level in cells):
        return _placeholder(f"No completions in {year} yet", output_path)

    weeks = heatmap_weeks(year, cells)
    # rows = weekdays, columns = weeks; -1 marks padding outside the year
    grid = [
        [week[row][1] if week[row] is not None else -1 for week in weeks]
        for row in range(7)
    ]

    fig, ax = plt.subplots(figsize=(14, 2.8))
    cmap = ListedColormap(["#FFFFFF", "#EBEDF0", "#22C55E"])
    normalized = [[0 if v < 0 else (2 if v >= COMPLETED_LEVEL else 1) for v in row] for row in grid]
    ax.imshow(normalized, cmap=cmap, aspect="equal", vmin=0, vmax=2)

    month_ticks = []
    for col, week in enumerate(weeks):
        first = next((cell for cell in week if cell is not None), None)
        if first is not None and first[0].day <= 7 and (not month_ticks or month_ticks[-1][1] != first[0].month):
            month_ticks.append((col, first[0].month))
    ax.set_xticks([col for col, _ in month_ticks])
    ax.set_xticklabels([_MONTH_LABELS[m - 1] for _, m in month_ticks], fontsize=8)
    ax.set_yticks(range(7))
    ax.set_yticklabels(_DAY_LABELS, fontsize=8)
    ax.tick_params(length=0)
    for spine in ax.spines.values():
        spine.set_visible(False)

    total = sum(1 for _, level in cells if level)
    ax.set_title(f"{total} completions in {year}", fontsize=12, fontweight="bold", pad=10)
    return _save(fig, output_path)


def streak_bar_png(overview: StreakOverview, *, output_path: Path | None = None) -> Path:
    """Render a horizontal bar chart of the top current streaks."""

    top = overview["top"]
    if not top:
        return _placeholder("No habits yet\nAdd a habit to start a streak", output_path)

    names = [row["name"] for row in reversed(top)]
    values = [row["value"] for row in reversed(top)]

    fig, ax = plt.subplots(figsize=(8, 0.6 * len(top) + 1.5))
    bars = ax.barh(names, values, color="#8B5CF6")
    for bar, value in zip(bars, values):
        ax.annotate(
            f"{value} day" if value == 1 else f"{value} days",
            (bar.get_width(), bar.get_y() + bar.get_height() / 2),
            textcoords="offset points",
            xytext=(4, 0),
            va="center",
            fontsize=9,
        )

    ax.grid(True, axis="x", linestyle="--", alpha=0.3)
    ax.set_axisbelow(True)
    ax.set_xlim(0, max(max(values), 1) * 1.2)
    ax.set_xlabel("Current streak (days)", fontsize=10)
    ax.set_title("Top Streaks", fontsize=14, fontweight="bold", pad=12)
    plt.tight_layout()
    return _save(fig, output_path)
