from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pymongo.errors import AutoReconnect

from agropal.realtime.bridge import NotificationBridge
from app.models import NotificationStatus, NotificationType, WeatherAlertPayload
from app.monitoring.metrics import notifications_persisted_total
from app.services.notifications import NotificationStore, PersistenceError


class ReadOnlyCollection:
    async def insert_one(self, document):
        raise AutoReconnect("primary stepped down")


@pytest.mark.anyio("asyncio")
async def test_notify_online_user_persists_then_pushes(hub, connect_user, store) -> None:
    connection = connect_user("farmer-1")
    before = notifications_persisted_total.value("weather_alert")

    notification = await hub.delivery.notify(
        "farmer-1",
        "weather_alert",
        "Heavy rain expected",
        "Secure your seedlings",
        {"location": "Kano", "alert_type": "rain", "severity": "high"},
        priority="high",
    )

    stored = await store.get(notification.notification_id)
    assert stored is not None
    assert stored.status == NotificationStatus.PENDING
    assert isinstance(stored.data, WeatherAlertPayload)
    assert notifications_persisted_total.value("weather_alert") == before + 1

    [message] = connection.websocket.sent
    assert message["type"] == "notification_received"
    assert message["data"]["notification_id"] == notification.notification_id
    assert message["data"]["priority"] == "high"
    assert message["data"]["data"]["kind"] == "weather_alert"


@pytest.mark.anyio("asyncio")
async def test_notify_offline_user_is_still_stored(hub, store) -> None:
    notification = await hub.delivery.notify(
        "farmer-2",
        NotificationType.MARKET_PRICE,
        "Maize price update",
        "Maize is up 4% at Dawanau market",
        {"commodity": "maize", "price": 52000, "market": "Dawanau"},
    )

    page = await store.list_for_user("farmer-2")
    assert [item.notification_id for item in page.items] == [notification.notification_id]


@pytest.mark.anyio("asyncio")
async def test_notify_defers_push_for_future_schedule(hub, connect_user, store) -> None:
    connection = connect_user("farmer-1")

    notification = await hub.delivery.notify(
        "farmer-1",
        NotificationType.CROP_CALENDAR,
        "Top dressing due",
        "Apply urea to the maize plot",
        scheduled_for=datetime.now(timezone.utc) + timedelta(days=2),
    )

    assert connection.websocket.sent == []
    assert await store.get(notification.notification_id) is not None


@pytest.mark.anyio("asyncio")
async def test_notify_failure_raises_and_pushes_nothing(hub, connect_user) -> None:
    connection = connect_user("farmer-1")
    bridge = NotificationBridge(NotificationStore(ReadOnlyCollection()), hub.router)

    with pytest.raises(PersistenceError):
        await bridge.notify("farmer-1", "achievement", "Badge earned", "You logged 10 harvests")

    assert connection.websocket.sent == []


@pytest.mark.anyio("asyncio")
@pytest.mark.parametrize(
    ("method", "event"),
    [
        ("send_notification_to_user", "notification_received"),
        ("send_crop_diagnosis_result", "crop_diagnosis_result"),
        ("send_weather_alert", "weather_alert"),
        ("send_market_price_update", "market_price_update"),
        ("send_calendar_reminder", "calendar_reminder"),
        ("send_learning_progress", "learning_progress"),
    ],
)
async def test_typed_wrappers_push_named_event(hub, connect_user, store, method, event) -> None:
    connection = connect_user("farmer-1")

    delivered = await getattr(hub.delivery, method)("farmer-1", {"ref": "abc"})
    missed = await getattr(hub.delivery, method)("farmer-2", {"ref": "abc"})

    assert delivered is True
    assert missed is False
    assert connection.websocket.sent == [{"type": event, "data": {"ref": "abc"}}]
    assert (await store.list_for_user("farmer-2")).total == 0


@pytest.mark.anyio("asyncio")
async def test_community_and_system_broadcasts(hub, connect_user) -> None:
    member, other = connect_user("farmer-1"), connect_user("farmer-2")
    hub.rooms.join(member, "community_42")

    community = await hub.delivery.send_notification_to_community(42, {"title": "Field day"})
    system = await hub.delivery.broadcast_system_notification({"title": "Maintenance at 02:00"})

    assert community == 1
    assert system == 2
    assert member.websocket.events() == ["community_notification", "system_notification"]
    assert other.websocket.events() == ["system_notification"]


@pytest.mark.anyio("asyncio")
@pytest.mark.parametrize("community_id", ["", None, True, {"id": 42}])
async def test_community_notification_with_bad_id_reaches_nobody(hub, connect_user, community_id) -> None:
    member = connect_user("farmer-1")
    hub.rooms.join(member, "community_42")

    delivered = await hub.delivery.send_notification_to_community(community_id, {"title": "Nowhere"})

    assert delivered == 0
    assert member.websocket.sent == []


@pytest.mark.anyio("asyncio")
async def test_notify_accepts_non_object_data(hub, connect_user, store) -> None:
    connection = connect_user("farmer-2")

    notification = await hub.delivery.notify(
        "farmer-2",
        "achievement",
        "Badge",
        "You earned it",
        ["first_harvest"],
    )

    stored = await store.get(notification.notification_id)
    assert stored.data.body == ["first_harvest"]
    [message] = connection.websocket.sent
    assert message["data"]["data"] == {"kind": "opaque", "body": ["first_harvest"]}


def test_presence_queries(hub, connect_user) -> None:
    connect_user("farmer-2")
    connect_user("farmer-1")
    connect_user("farmer-1")

    assert hub.delivery.is_user_online("farmer-1")
    assert not hub.delivery.is_user_online("farmer-3")
    assert hub.delivery.get_connected_users() == ["farmer-1", "farmer-2"]
    assert hub.delivery.get_connected_users_count() == 2
