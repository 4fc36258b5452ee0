from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from app.models import (
    InvalidStatusTransition,
    Notification,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
)
from app.services.notifications import NotificationStore, PersistenceError

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class UnreachableCollection:
    async def insert_one(self, document):
        raise ServerSelectionTimeoutError("No servers available")

    async def find_one(self, *args, **kwargs):
        raise ServerSelectionTimeoutError("No servers available")


def _notification(user_id: str = "farmer-1", **overrides) -> Notification:
    values = {
        "user_id": user_id,
        "type": NotificationType.WEATHER_ALERT,
        "title": "Heavy rain expected",
        "message": "Secure your seedlings before Thursday",
        "created_at": NOW,
    }
    values.update(overrides)
    return Notification(**values)


@pytest.mark.anyio("asyncio")
async def test_create_then_get_scoped_to_owner(store) -> None:
    created = await store.create(_notification())

    fetched = await store.get(created.notification_id, user_id="farmer-1")

    assert fetched is not None
    assert fetched.title == "Heavy rain expected"
    assert fetched.status == NotificationStatus.PENDING
    assert await store.get(created.notification_id, user_id="farmer-2") is None


@pytest.mark.anyio("asyncio")
async def test_list_is_newest_first_paginated_and_hides_expired(store) -> None:
    for offset in range(5):
        await store.create(_notification(title=f"Alert {offset}", created_at=NOW + timedelta(minutes=offset)))
    await store.create(_notification(title="Stale", expires_at=NOW - timedelta(days=1)))
    await store.create(_notification(user_id="farmer-2", title="Someone else"))

    first = await store.list_for_user("farmer-1", page=1, limit=2, now=NOW)
    last = await store.list_for_user("farmer-1", page=3, limit=2, now=NOW)

    assert [item.title for item in first.items] == ["Alert 4", "Alert 3"]
    assert first.total == 5
    assert first.pages == 3
    assert [item.title for item in last.items] == ["Alert 0"]


@pytest.mark.anyio("asyncio")
async def test_list_filters_by_status_type_and_priority(store) -> None:
    await store.create(_notification(priority="high"))
    await store.create(_notification(type=NotificationType.MARKET_PRICE, title="Maize up 4%"))
    read = await store.create(_notification(title="Old news"))
    await store.mark_read(read.notification_id, user_id="farmer-1")

    by_type = await store.list_for_user("farmer-1", notification_type=NotificationType.MARKET_PRICE)
    by_status = await store.list_for_user("farmer-1", status=NotificationStatus.READ)
    by_priority = await store.list_for_user("farmer-1", priority=NotificationPriority.HIGH)

    assert [item.title for item in by_type.items] == ["Maize up 4%"]
    assert [item.title for item in by_status.items] == ["Old news"]
    assert by_priority.total == 1


@pytest.mark.anyio("asyncio")
async def test_unread_count_tracks_read_state(store) -> None:
    first = await store.create(_notification())
    await store.create(_notification())
    await store.create(_notification(expires_at=datetime.now(timezone.utc) - timedelta(hours=1)))

    assert await store.count_unread("farmer-1") == 2

    await store.mark_read(first.notification_id, user_id="farmer-1")
    assert await store.count_unread("farmer-1") == 1

    assert await store.mark_all_read("farmer-1") == 2
    assert await store.count_unread("farmer-1") == 0


@pytest.mark.anyio("asyncio")
async def test_transition_moves_forward_and_stamps_time(store) -> None:
    created = await store.create(_notification())

    delivered = await store.mark_delivered(created.notification_id, user_id="farmer-1")
    again = await store.mark_delivered(created.notification_id, user_id="farmer-1")

    assert delivered.status == NotificationStatus.DELIVERED
    assert delivered.delivered_at is not None
    assert again.status == NotificationStatus.DELIVERED

    with pytest.raises(InvalidStatusTransition):
        await store.transition(created.notification_id, NotificationStatus.SENT, user_id="farmer-1")


@pytest.mark.anyio("asyncio")
async def test_failed_notifications_stay_failed(store) -> None:
    created = await store.create(_notification())
    await store.transition(created.notification_id, NotificationStatus.FAILED)

    with pytest.raises(InvalidStatusTransition):
        await store.mark_read(created.notification_id, user_id="farmer-1")


@pytest.mark.anyio("asyncio")
async def test_transition_of_unknown_notification_returns_none(store) -> None:
    assert await store.mark_read("ntf_missing", user_id="farmer-1") is None


@pytest.mark.anyio("asyncio")
async def test_delete_only_removes_own_notification(store) -> None:
    created = await store.create(_notification())

    assert await store.delete(created.notification_id, user_id="farmer-2") is False
    assert await store.delete(created.notification_id, user_id="farmer-1") is True
    assert await store.get(created.notification_id) is None


@pytest.mark.anyio("asyncio")
async def test_delete_expired_purges_only_expired(store) -> None:
    await store.create(_notification(expires_at=NOW - timedelta(minutes=1)))
    kept = await store.create(_notification(expires_at=NOW + timedelta(days=1)))
    forever = await store.create(_notification())

    assert await store.delete_expired(NOW) == 1
    assert await store.get(kept.notification_id) is not None
    assert await store.get(forever.notification_id) is not None


@pytest.mark.anyio("asyncio")
async def test_due_scheduled_returns_pending_in_schedule_order(store) -> None:
    later = await store.create(_notification(title="Later", scheduled_for=NOW - timedelta(minutes=1)))
    sooner = await store.create(_notification(title="Sooner", scheduled_for=NOW - timedelta(minutes=10)))
    await store.create(_notification(title="Future", scheduled_for=NOW + timedelta(hours=1)))
    await store.create(_notification(title="Immediate"))

    due = await store.due_scheduled(NOW)

    assert [item.notification_id for item in due] == [sooner.notification_id, later.notification_id]


@pytest.mark.anyio("asyncio")
async def test_stats_groups_by_type(store) -> None:
    await store.create(_notification())
    read = await store.create(_notification())
    await store.create(_notification(type=NotificationType.ACHIEVEMENT, title="First harvest logged"))
    await store.mark_read(read.notification_id, user_id="farmer-1")

    summary = await store.stats("farmer-1")

    assert summary["totalNotifications"] == 3
    assert summary["unreadNotifications"] == 2
    assert summary["stats"] == [
        {"type": "achievement", "count": 1, "unread": 1},
        {"type": "weather_alert", "count": 2, "unread": 1},
    ]


@pytest.mark.anyio("asyncio")
async def test_unreachable_database_raises_persistence_error() -> None:
    store = NotificationStore(UnreachableCollection())

    with pytest.raises(PersistenceError):
        await store.create(_notification())
    with pytest.raises(PersistenceError):
        await store.get("ntf_anything")
