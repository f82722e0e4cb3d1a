"""Notification creation, real-time fan-out and inbox grouping."""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Optional
from zoneinfo import ZoneInfo

from ..domain.repositories.notification import NotificationRepository
from ..models.habit import Habit
from ..models.notification import NOTIFICATION_TYPES, Notification
from .stats import streak_milestone_message

logger = logging.getLogger("streaksage.notifications")

Listener = Callable[[dict[str, Any]], None]

NOTIFICATION_TABS = ("all", "unread", "reminders", "social")
DATE_BUCKETS = ("Today", "Yesterday", "This Week", "Earlier")

_ICONS = {
    "reminder": "⏰",
    "achievement": "\U0001f3c6",
    "social": "\U0001f465",
    "streak": "\U0001f525",
    "system": "\U0001f4ac",
    "friend": "\U0001f44b",
}
_DEFAULT_ICON = "\U0001f4e3"


class NotificationNotFound(LookupError):
    """Raised when a notification id does not exist for the user."""


@dataclass(frozen=True)
class Toast:
    """Transient popup shown alongside a freshly delivered notification."""

    message: str
    icon: str
    action_url: str
    duration_ms: int = 5000
    position: str = "top-right"


ToastSink = Callable[[Toast], None]


def notification_icon(kind: str) -> str:
    return _ICONS.get(kind, _DEFAULT_ICON)


def build_toast(notification: Notification) -> Toast:
    """Build the toast for ``notification``; reminders link to their habit."""

    if notification.type == "reminder" and notification.related_id:
        action_url = f"/habits/{notification.related_id}"
    else:
        action_url = "/notifications"
    return Toast(
        message=notification.message,
        icon=notification_icon(notification.type),
        action_url=action_url,
    )


def as_utc(moment: datetime) -> datetime:
    """SQLite hands timestamps back without a zone; they were written in UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def to_client_payload(notification: Notification) -> dict[str, Any]:
    """Serialize a notification the way listeners receive it."""

    created_at = as_utc(notification.created_at).isoformat() if notification.created_at else None
    return {
        "id": notification.id,
        "userId": notification.user_id,
        "message": notification.message,
        "type": notification.type,
        "relatedId": notification.related_id,
        "isRead": notification.is_read,
        "metadata": notification.metadata_dict,
        "createdAt": created_at,
    }


def filter_notifications(notifications: Iterable[Notification], tab: str = "all") -> list[Notification]:
    """Return the notifications shown under an inbox tab."""

    items = list(notifications)
    if tab == "all":
        return items
    if tab == "unread":
        return [n for n in items if not n.is_read]
    if tab == "reminders":
        return [n for n in items if n.type == "reminder"]
    if tab == "social":
        return [n for n in items if n.type in ("social", "friend")]
    raise ValueError(f"Unknown notification tab {tab!r}; expected one of {NOTIFICATION_TABS}")


def group_by_date(
    notifications: Iterable[Notification], today: date, tz_name: str = "UTC"
) -> list[tuple[str, list[Notification]]]:
    """Bucket notifications into Today / Yesterday / This Week / Earlier.

    ``today`` is a calendar date in ``tz_name``; each ``created_at`` is moved
    into that zone before its date is compared. Empty buckets are dropped and
    input order is kept inside each bucket.
    """

    zone = ZoneInfo(tz_name)
    yesterday = today - timedelta(days=1)
    week_ago = today - timedelta(days=7)
    groups: dict[str, list[Notification]] = {name: [] for name in DATE_BUCKETS}

    for notification in notifications:
        created_on = as_utc(notification.created_at).astimezone(zone).date()
        if created_on == today:
            groups["Today"].append(notification)
        elif created_on == yesterday:
            groups["Yesterday"].append(notification)
        elif created_on >= week_ago:
            groups["This Week"].append(notification)
        else:
            groups["Earlier"].append(notification)

    return [(name, items) for name, items in groups.items() if items]


class NotificationRelay:
    """In-process pub/sub that pushes notification payloads to connected users."""

    def __init__(self) -> None:
        self._listeners: dict[int, list[Listener]] = defaultdict(list)

    def connect(self, user_id: int, listener: Listener) -> None:
        self._listeners[user_id].append(listener)
        logger.info("User connected to relay", extra={"user_id": user_id})

    def disconnect(self, user_id: int, listener: Optional[Listener] = None) -> None:
        """Drop one listener, or every listener for the user when none is given."""
        if listener is None:
            self._listeners.pop(user_id, None)
            return
        remaining = [cb for cb in self._listeners.get(user_id, []) if cb != listener]
        if remaining:
            self._listeners[user_id] = remaining
        else:
            self._listeners.pop(user_id, None)

    def is_online(self, user_id: int) -> bool:
        return bool(self._listeners.get(user_id))

    def online_status(self, user_ids: Iterable[int]) -> dict[int, bool]:
        return {uid: self.is_online(uid) for uid in user_ids}

    def emit_to_user(self, user_id: int, payload: dict[str, Any]) -> bool:
        """Deliver ``payload`` to every listener of ``user_id``.

        Returns False when the user has no listener. A failing listener is
        logged and does not stop delivery to the others.
        """
        listeners = list(self._listeners.get(user_id, []))
        if not listeners:
            logger.info("User %s is not connected, notification not delivered", user_id)
            return False
        for listener in listeners:
            try:
                listener(payload)
            except Exception:
                logger.exception("Notification listener failed", extra={"user_id": user_id})
        logger.info("Notification sent to user %s", user_id)
        return True

    def broadcast(self, user_ids: Iterable[int], payload: dict[str, Any]) -> bool:
        targets = list(user_ids)
        if not targets:
            return False
        for uid in targets:
            self.emit_to_user(uid, payload)
        return True


def log_toast(toast: Toast) -> None:
    """Default toast sink: headless environments just log the popup."""
    logger.info("%s %s", toast.icon, toast.message, extra={"action_url": toast.action_url})


class NotificationService:
    """Persist notifications and fan each new one out to the relay and a toast."""

    def __init__(
        self,
        repo: NotificationRepository,
        relay: NotificationRelay | None = None,
        toast_sink: ToastSink | None = None,
    ):
        self.repo = repo
        self.relay = relay or NotificationRelay()
        self.toast_sink = toast_sink or log_toast

    def create(
        self,
        *,
        user_id: int,
        message: str,
        type: str = "system",
        related_id: str | int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Notification:
        if type not in NOTIFICATION_TYPES:
            raise ValueError(f"Unknown notification type {type!r}")
        if not message:
            raise ValueError("Notification message must not be empty")

        notification = self.repo.create(
            Notification(
                user_id=user_id,
                message=message,
                type=type,
                related_id=str(related_id) if related_id is not None else None,
                metadata_json=json.dumps(metadata) if metadata is not None else None,
            ),
            user_id=user_id,
        )
        logger.info(
            "Notification created",
            extra={"notification_id": notification.id, "type": type, "user_id": user_id},
        )

        self.relay.emit_to_user(user_id, to_client_payload(notification))
        self.toast_sink(build_toast(notification))
        return notification

    def create_habit_reminder(self, *, user_id: int, habit: Habit) -> Notification:
        return self.create(
            user_id=user_id,
            message=f"Time to track your habit: {habit.name}",
            type="reminder",
            related_id=habit.id,
            metadata={"name": "Habit Reminder"},
        )

    def create_streak_notification(
        self, *, user_id: int, habit: Habit, streak: int
    ) -> Notification | None:
        """Create a streak achievement, or return None when ``streak`` is no milestone."""
        message = streak_milestone_message(habit.name, streak)
        if message is None:
            return None
        return self.create(
            user_id=user_id,
            message=message,
            type="streak",
            related_id=habit.id,
            metadata={"name": "Streak Achievement", "streakCount": streak},
        )

    def list_for_user(self, *, user_id: int, tab: str = "all") -> list[Notification]:
        return filter_notifications(self.repo.list_for_user(user_id=user_id), tab)

    def grouped(
        self, *, user_id: int, today: date, tab: str = "all", tz_name: str = "UTC"
    ) -> list[tuple[str, list[Notification]]]:
        return group_by_date(self.list_for_user(user_id=user_id, tab=tab), today, tz_name)

    def mark_as_read(self, notification_id: int, *, user_id: int) -> Notification:
        updated = self.repo.mark_as_read(notification_id, user_id=user_id)
        if updated is None:
            raise NotificationNotFound(notification_id)
        return updated

    def mark_all_as_read(self, *, user_id: int) -> int:
        return self.repo.mark_all_as_read(user_id=user_id)

    def delete(self, notification_id: int, *, user_id: int) -> None:
        if self.repo.get_by_id(notification_id, user_id=user_id) is None:
            raise NotificationNotFound(notification_id)
        self.repo.delete(notification_id, user_id=user_id)

    def unread_count(self, *, user_id: int) -> int:
        return self.repo.unread_count(user_id=user_id)


__all__ = [
    "DATE_BUCKETS",
    "NOTIFICATION_TABS",
    "NotificationNotFound",
    "NotificationRelay",
    "NotificationService",
    "Toast",
    "as_utc",
    "build_toast",
    "filter_notifications",
    "group_by_date",
    "log_toast",
    "notification_icon",
    "to_client_payload",
]
