"""Notification rows delivered to users."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, ClassVar, Optional

from sqlalchemy import Column, DateTime
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover
    from .user import User

NOTIFICATION_TYPES = ("reminder", "achievement", "social", "streak", "system", "friend")


class Notification(SQLModel, table=True):
    """A message for one user, optionally tied to a habit or other record."""

    __tablename__: ClassVar[str] = "notification"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    message: str = Field(nullable=False, max_length=500)
    type: str = Field(default="system", max_length=16, index=True)
    related_id: Optional[str] = Field(default=None, max_length=64)
    is_read: bool = Field(default=False, nullable=False, index=True)
    metadata_json: Optional[str] = Field(default=None)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )

    user: "User" = Relationship(
        sa_relationship=relationship("User", back_populates="notifications")
    )

    @property
    def metadata_dict(self) -> dict[str, Any] | None:
        if not self.metadata_json:
            return None
        return json.loads(self.metadata_json)
