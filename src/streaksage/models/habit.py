"""Habits tracking data structures."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover
    from .user import User

FREQUENCIES = ("daily", "weekdays", "weekends", "weekly")


class Habit(SQLModel, table=True):
    """A user-defined habit the app tracks daily."""

    __tablename__: ClassVar[str] = "habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=80, index=True)
    description: str = Field(default="", max_length=255)
    category: str = Field(default="other", max_length=32, index=True)
    frequency: str = Field(default="daily", max_length=16)
    is_favorite: bool = Field(default=False, nullable=False)
    is_active: bool = Field(default=True, nullable=False)
    reminder_time: Optional[str] = Field(default=None, max_length=5)  # "HH:MM"
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    entries: list["HabitEntry"] = Relationship(
        back_populates="habit",
        sa_relationship=relationship(
            "HabitEntry", back_populates="habit", cascade="all, delete-orphan"
        ),
    )

    user: "User" = Relationship(sa_relationship=relationship("User", back_populates="habits"))


class HabitEntry(SQLModel, table=True):
    """Completion record for a habit on a calendar day.

    ``occurred_on`` is a date already normalized to the user's time zone; the
    composite key keeps one row per habit per day.
    """

    __tablename__: ClassVar[str] = "habit_entry"

    habit_id: int = Field(foreign_key="habit.id", primary_key=True)
    occurred_on: date = Field(primary_key=True, index=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    value: int = Field(default=1, nullable=False)

    habit: "Habit" = Relationship(
        back_populates="entries",
        sa_relationship=relationship("Habit", back_populates="entries"),
    )
