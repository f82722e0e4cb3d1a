"""Habit and completion-entry storage on SQLModel."""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlmodel import select

from ...models.habit import Habit, HabitEntry
from ...services.stats import completion_dates
from ..database import SessionFactory


class SQLModelHabitRepository:
    """Every query is scoped to ``user_id``; returned rows are detached."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    @staticmethod
    def _owned(habit_id: int, user_id: int):
        return select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)

    @staticmethod
    def _entry(habit_id: int, occurred_on: date, user_id: int):
        return select(HabitEntry).where(
            HabitEntry.habit_id == habit_id,
            HabitEntry.occurred_on == occurred_on,
            HabitEntry.user_id == user_id,
        )

    def get_by_id(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        with self.session_factory() as session:
            habit = session.exec(self._owned(habit_id, user_id)).first()
            if habit is not None:
                session.expunge(habit)
            return habit

    def get_by_name(self, name: str, *, user_id: int) -> Optional[Habit]:
        with self.session_factory() as session:
            habit = session.exec(
                select(Habit).where(Habit.user_id == user_id, Habit.name == name)
            ).first()
            if habit is not None:
                session.expunge(habit)
            return habit

    def list_active(self, *, user_id: int) -> list[Habit]:
        """Active habits ordered by name."""
        with self.session_factory() as session:
            habits = session.exec(
                select(Habit)
                .where(Habit.user_id == user_id, Habit.is_active == True)  # noqa: E712
                .order_by(Habit.name)  # type: ignore[arg-type]
            ).all()
            session.expunge_all()
            return list(habits)

    def create(self, habit: Habit, *, user_id: int) -> Habit:
        habit.user_id = user_id
        with self.session_factory() as session:
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
        return habit

    def update(self, habit: Habit, *, user_id: int) -> Habit:
        """Write back a detached habit's edited fields."""
        habit.user_id = user_id
        with self.session_factory() as session:
            stored = session.merge(habit)
            session.commit()
            session.refresh(stored)
            session.expunge(stored)
        return stored

    def delete(self, habit_id: int, *, user_id: int) -> None:
        with self.session_factory() as session:
            habit = session.exec(self._owned(habit_id, user_id)).first()
            if habit is None:
                return
            session.delete(habit)  # entries cascade
            session.commit()

    def get_entry(self, habit_id: int, occurred_on: date, *, user_id: int) -> Optional[HabitEntry]:
        with self.session_factory() as session:
            entry = session.exec(self._entry(habit_id, occurred_on, user_id)).first()
            if entry is not None:
                session.expunge(entry)
            return entry

    def add_entry(self, habit_id: int, occurred_on: date, *, user_id: int) -> HabitEntry:
        """Record ``occurred_on`` as done for the habit."""
        entry = HabitEntry(habit_id=habit_id, occurred_on=occurred_on, user_id=user_id, value=1)
        with self.session_factory() as session:
            session.add(entry)
            session.commit()
            session.refresh(entry)
            session.expunge(entry)
        return entry

    def delete_entry(self, habit_id: int, occurred_on: date, *, user_id: int) -> None:
        """Remove the day's entry; a missing entry is a no-op."""
        with self.session_factory() as session:
            entry = session.exec(self._entry(habit_id, occurred_on, user_id)).first()
            if entry is None:
                return
            session.delete(entry)
            session.commit()

    def get_completed_dates(self, habit_id: int, *, user_id: int) -> set[date]:
        with self.session_factory() as session:
            entries = session.exec(
                select(HabitEntry).where(
                    HabitEntry.habit_id == habit_id,
                    HabitEntry.user_id == user_id,
                )
            ).all()
            return completion_dates(entries)
