"""Storage contract the habit service depends on."""

from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from ...models.habit import Habit, HabitEntry


class HabitRepository(Protocol):
    """Habits and their per-day entries, always scoped to one owner."""

    def get_by_id(self, habit_id: int, *, user_id: int) -> Optional[Habit]: ...

    def get_by_name(self, name: str, *, user_id: int) -> Optional[Habit]: ...

    def list_active(self, *, user_id: int) -> list[Habit]: ...

    def create(self, habit: Habit, *, user_id: int) -> Habit: ...

    def update(self, habit: Habit, *, user_id: int) -> Habit: ...

    def delete(self, habit_id: int, *, user_id: int) -> None:
        """Remove the habit together with its entries."""
        ...

    def get_entry(self, habit_id: int, occurred_on: date, *, user_id: int) -> Optional[HabitEntry]: ...

    def add_entry(self, habit_id: int, occurred_on: date, *, user_id: int) -> HabitEntry: ...

    def delete_entry(self, habit_id: int, occurred_on: date, *, user_id: int) -> None: ...

    def get_completed_dates(self, habit_id: int, *, user_id: int) -> set[date]:
        """Days with a positive entry value."""
        ...
