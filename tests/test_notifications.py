"""Tests for notification fan-out, inbox filtering and date grouping."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from streaksage.infra.repositories.notification import SQLModelNotificationRepository
from streaksage.models.habit import Habit
from streaksage.models.notification import Notification
from streaksage.services.notifications import (
    NotificationNotFound,
    NotificationRelay,
    NotificationService,
    Toast,
    as_utc,
    build_toast,
    filter_notifications,
    group_by_date,
    notification_icon,
    to_client_payload,
)
from tests.conftest import utc

TODAY = date(2025, 3, 16)


def note(message: str, created_at: datetime, type: str = "system", is_read: bool = False) -> Notification:
    return Notification(user_id=1, message=message, type=type, created_at=created_at, is_read=is_read)


class TestGroupByDate:
    """Relative-date buckets for the inbox."""

    def test_buckets_in_fixed_order_and_empty_ones_dropped(self):
        items = [
            note("today", utc(2025, 3, 16, 7, 0)),
            note("last week", utc(2025, 3, 10, 12, 0)),
            note("ancient", utc(2024, 12, 1, 12, 0)),
        ]

        groups = group_by_date(items, TODAY)

        assert [label for label, _ in groups] == ["Today", "This Week", "Earlier"]
        assert [[n.message for n in bucket] for _, bucket in groups] == [
            ["today"],
            ["last week"],
            ["ancient"],
        ]

    def test_yesterday_bucket(self):
        groups = group_by_date([note("y", utc(2025, 3, 15, 23, 59))], TODAY)
        assert groups[0][0] == "Yesterday"

    def test_week_boundary_is_inclusive(self):
        groups = group_by_date(
            [note("edge", utc(2025, 3, 9, 0, 0)), note("past", utc(2025, 3, 8, 23, 0))],
            TODAY,
        )
        assert [(label, [n.message for n in items]) for label, items in groups] == [
            ("This Week", ["edge"]),
            ("Earlier", ["past"]),
        ]

    def test_order_inside_bucket_is_preserved(self):
        items = [note("b", utc(2025, 3, 16, 9)), note("a", utc(2025, 3, 16, 8))]
        assert [n.message for n in group_by_date(items, TODAY)[0][1]] == ["b", "a"]

    def test_empty_input(self):
        assert group_by_date([], TODAY) == []

    def test_buckets_by_local_calendar_day(self):
        """03:00 UTC on the 16th is still the 15th in Pago Pago (UTC-11)."""
        groups = group_by_date(
            [note("late", utc(2025, 3, 16, 3, 0))], date(2025, 3, 15), "Pacific/Pago_Pago"
        )
        assert groups[0][0] == "Today"

        assert group_by_date([note("late", utc(2025, 3, 16, 3, 0))], TODAY)[0][0] == "Today"
        assert (
            group_by_date([note("late", utc(2025, 3, 16, 3, 0))], TODAY, "Pacific/Pago_Pago")[0][0]
            == "Yesterday"
        )

    def test_naive_timestamps_are_read_as_utc(self):
        naive = note("from sqlite", datetime(2025, 3, 16, 3, 0))
        assert group_by_date([naive], date(2025, 3, 15), "Pacific/Pago_Pago")[0][0] == "Today"


class TestAsUtc:
    def test_naive_gets_utc_attached(self):
        assert as_utc(datetime(2025, 3, 16, 8, 30)) == utc(2025, 3, 16, 8, 30)

    def test_aware_is_converted(self):
        plus_two = datetime(2025, 3, 16, 10, 30, tzinfo=timezone(timedelta(hours=2)))
        converted = as_utc(plus_two)
        assert converted.tzinfo is timezone.utc
        assert converted.hour == 8


class TestFilterNotifications:
    def setup_method(self):
        when = utc(2025, 3, 16, 8)
        self.items = [
            note("r", when, type="reminder"),
            note("s", when, type="social", is_read=True),
            note("f", when, type="friend"),
            note("k", when, type="streak", is_read=True),
        ]

    def test_tabs(self):
        assert [n.message for n in filter_notifications(self.items, "all")] == ["r", "s", "f", "k"]
        assert [n.message for n in filter_notifications(self.items, "unread")] == ["r", "f"]
        assert [n.message for n in filter_notifications(self.items, "reminders")] == ["r"]
        assert [n.message for n in filter_notifications(self.items, "social")] == ["s", "f"]

    def test_unknown_tab(self):
        with pytest.raises(ValueError):
            filter_notifications(self.items, "archived")


class TestToastsAndPayloads:
    def test_icons(self):
        assert notification_icon("reminder") == "⏰"
        assert notification_icon("streak") == "\U0001f525"
        assert notification_icon("mystery") == "\U0001f4e3"

    def test_reminder_toast_links_to_habit(self):
        reminder = Notification(user_id=1, message="Go", type="reminder", related_id="42")
        assert build_toast(reminder) == Toast(message="Go", icon="⏰", action_url="/habits/42")

    def test_other_toasts_link_to_inbox(self):
        streak = Notification(user_id=1, message="7 days", type="streak", related_id="42")
        toast = build_toast(streak)
        assert toast.action_url == "/notifications"
        assert toast.duration_ms == 5000
        assert toast.position == "top-right"

    def test_client_payload_shape(self):
        n = Notification(
            id=5,
            user_id=1,
            message="Hi",
            type="system",
            related_id=None,
            metadata_json='{"name": "System"}',
            created_at=utc(2025, 3, 16, 8, 30),
        )
        assert to_client_payload(n) == {
            "id": 5,
            "userId": 1,
            "message": "Hi",
            "type": "system",
            "relatedId": None,
            "isRead": False,
            "metadata": {"name": "System"},
            "createdAt": "2025-03-16T08:30:00+00:00",
        }


class TestNotificationRelay:
    """In-process pub/sub delivery."""

    def test_emit_to_connected_user(self):
        relay = NotificationRelay()
        received = []
        relay.connect(1, received.append)

        assert relay.emit_to_user(1, {"message": "hi"}) is True
        assert received == [{"message": "hi"}]

    def test_emit_to_offline_user_returns_false(self):
        assert NotificationRelay().emit_to_user(7, {"message": "hi"}) is False

    def test_failing_listener_does_not_block_others(self):
        relay = NotificationRelay()
        received = []

        def broken(_payload):
            raise RuntimeError("socket closed")

        relay.connect(1, broken)
        relay.connect(1, received.append)

        assert relay.emit_to_user(1, {"message": "hi"}) is True
        assert received == [{"message": "hi"}]

    def test_disconnect_and_online_status(self):
        relay = NotificationRelay()
        first, second = [], []
        relay.connect(1, first.append)
        relay.connect(1, second.append)
        relay.connect(2, first.append)

        relay.disconnect(1, first.append)
        assert relay.is_online(1) is True
        relay.disconnect(1)
        assert relay.online_status([1, 2, 3]) == {1: False, 2: True, 3: False}

    def test_disconnect_last_listener_goes_offline(self):
        relay = NotificationRelay()
        listener = [].append
        relay.connect(1, listener)
        relay.disconnect(1, listener)
        assert relay.is_online(1) is False

    def test_broadcast(self):
        relay = NotificationRelay()
        a, b = [], []
        relay.connect(1, a.append)
        relay.connect(2, b.append)

        assert relay.broadcast([], {"m": 1}) is False
        assert relay.broadcast([1, 2, 3], {"m": 1}) is True
        assert a == b == [{"m": 1}]


@pytest.fixture
def toasts():
    return []


@pytest.fixture
def relay():
    return NotificationRelay()


@pytest.fixture
def service(session_factory, relay, toasts):
    return NotificationService(SQLModelNotificationRepository(session_factory), relay, toasts.append)


class TestNotificationService:
    """Persist-then-fan-out behaviour and inbox operations."""

    def test_create_persists_then_fans_out(self, service, relay, toasts, user):
        delivered = []
        relay.connect(user.id, delivered.append)

        created = service.create(
            user_id=user.id, message="Welcome!", type="system", metadata={"name": "System"}
        )

        assert created.id is not None
        assert delivered[0]["id"] == created.id
        assert delivered[0]["metadata"] == {"name": "System"}
        assert delivered[0]["isRead"] is False
        assert toasts == [Toast(message="Welcome!", icon="\U0001f4ac", action_url="/notifications")]

    def test_create_for_offline_user_still_stores_and_toasts(self, service, toasts, user):
        service.create(user_id=user.id, message="Later", type="achievement")

        assert service.unread_count(user_id=user.id) == 1
        assert len(toasts) == 1

    def test_create_rejects_bad_input(self, service, user):
        with pytest.raises(ValueError):
            service.create(user_id=user.id, message="x", type="carrier-pigeon")
        with pytest.raises(ValueError):
            service.create(user_id=user.id, message="", type="system")

    def test_habit_reminder(self, service, toasts, user):
        habit = Habit(id=3, user_id=user.id, name="Floss")

        created = service.create_habit_reminder(user_id=user.id, habit=habit)

        assert created.message == "Time to track your habit: Floss"
        assert created.type == "reminder"
        assert created.related_id == "3"
        assert created.metadata_dict == {"name": "Habit Reminder"}
        assert toasts[0].action_url == "/habits/3"

    def test_streak_notification_only_for_milestones(self, service, user):
        habit = Habit(id=3, user_id=user.id, name="Floss")

        assert service.create_streak_notification(user_id=user.id, habit=habit, streak=8) is None
        created = service.create_streak_notification(user_id=user.id, habit=habit, streak=30)

        assert created.message == 'Amazing! 30-day streak for "Floss"! You\'re on fire!'
        assert created.metadata_dict == {"name": "Streak Achievement", "streakCount": 30}

    def test_mark_and_delete(self, service, notification_factory, user):
        first = notification_factory(message="one")
        notification_factory(message="two")

        assert service.mark_as_read(first.id, user_id=user.id).is_read is True
        assert service.unread_count(user_id=user.id) == 1
        assert service.mark_all_as_read(user_id=user.id) == 1

        service.delete(first.id, user_id=user.id)
        assert [n.message for n in service.list_for_user(user_id=user.id)] == ["two"]

    def test_missing_ids_raise(self, service, user):
        with pytest.raises(NotificationNotFound):
            service.mark_as_read(99, user_id=user.id)
        with pytest.raises(NotificationNotFound):
            service.delete(99, user_id=user.id)

    def test_grouped_applies_tab_then_buckets(self, service, notification_factory, user):
        notification_factory(message="r today", type="reminder", created_at=utc(2025, 3, 16, 9))
        notification_factory(message="s today", type="system", created_at=utc(2025, 3, 16, 8))
        notification_factory(message="r old", type="reminder", created_at=utc(2025, 1, 2, 9))

        groups = service.grouped(user_id=user.id, today=TODAY, tab="reminders")

        assert [(label, [n.message for n in items]) for label, items in groups] == [
            ("Today", ["r today"]),
            ("Earlier", ["r old"]),
        ]

    def test_grouped_uses_the_inbox_timezone(self, service, notification_factory, user):
        notification_factory(message="late", created_at=utc(2025, 3, 16, 3, 0))

        groups = service.grouped(
            user_id=user.id, today=date(2025, 3, 15), tz_name="Pacific/Pago_Pago"
        )

        assert [(label, [n.message for n in items]) for label, items in groups] == [
            ("Today", ["late"]),
        ]

    def test_stored_timestamp_round_trips_as_utc(self, service, user):
        created = service.create(user_id=user.id, message="Hi", type="system")

        stored = service.list_for_user(user_id=user.id)[0]

        assert as_utc(stored.created_at) == as_utc(created.created_at)
        assert to_client_payload(stored)["createdAt"].endswith("+00:00")
