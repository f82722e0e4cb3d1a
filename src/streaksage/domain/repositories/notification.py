"""Notification repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.notification import Notification


class NotificationRepository(Protocol):
    """Repository for a user's notifications."""

    def create(self, notification: Notification, *, user_id: int) -> Notification:
        ...

    def get_by_id(self, notification_id: int, *, user_id: int) -> Optional[Notification]:
        ...

    def list_for_user(self, *, user_id: int) -> list[Notification]:
        """Newest first."""
        ...

    def mark_as_read(self, notification_id: int, *, user_id: int) -> Optional[Notification]:
        ...

    def mark_all_as_read(self, *, user_id: int) -> int:
        """Return how many rows changed."""
        ...

    def delete(self, notification_id: int, *, user_id: int) -> None:
        ...

    def unread_count(self, *, user_id: int) -> int:
        ...
