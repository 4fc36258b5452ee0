"""Public delivery surface used by the rest of the backend."""

from __future__ import annotations

import logging
from typing import Any

from app.models import Notification

from . import events
from .bridge import NotificationBridge
from .presence import PresenceRegistry
from .rooms import room_for_community
from .router import EventRouter

logger = logging.getLogger(__name__)


class NotificationDelivery:
    """Typed wrappers over the router plus the durable ``notify`` entry point.

    The ``send_*`` helpers are fire-and-forget pushes: they return whether a
    live connection accepted the event and never persist anything.
    """

    def __init__(self, router: EventRouter, presence: PresenceRegistry, bridge: NotificationBridge) -> None:
        self._router = router
        self._presence = presence
        self._bridge = bridge

    async def send_notification_to_user(self, user_id: str, notification: Any) -> bool:
        return await self._router.emit_direct(user_id, events.NOTIFICATION_RECEIVED, notification)

    async def send_crop_diagnosis_result(self, user_id: str, result: Any) -> bool:
        return await self._router.emit_direct(user_id, events.CROP_DIAGNOSIS_RESULT, result)

    async def send_weather_alert(self, user_id: str, alert: Any) -> bool:
        return await self._router.emit_direct(user_id, events.WEATHER_ALERT, alert)

    async def send_market_price_update(self, user_id: str, update: Any) -> bool:
        return await self._router.emit_direct(user_id, events.MARKET_PRICE_UPDATE, update)

    async def send_calendar_reminder(self, user_id: str, reminder: Any) -> bool:
        return await self._router.emit_direct(user_id, events.CALENDAR_REMINDER, reminder)

    async def send_learning_progress(self, user_id: str, progress: Any) -> bool:
        return await self._router.emit_direct(user_id, events.LEARNING_PROGRESS, progress)

    async def send_notification_to_community(self, community_id: Any, notification: Any) -> int:
        room_id = room_for_community(community_id)
        if room_id is None:
            logger.warning("Dropping community notification for invalid community id %r", community_id)
            return 0
        return await self._router.emit_room(room_id, events.COMMUNITY_NOTIFICATION, notification)

    async def broadcast_system_notification(self, notification: Any) -> int:
        return await self._router.emit_global(events.SYSTEM_NOTIFICATION, notification)

    async def notify(
        self,
        user_id: str,
        notification_type: str,
        title: str,
        message: str,
        data: Any = None,
        **options: Any,
    ) -> Notification:
        return await self._bridge.notify(user_id, notification_type, title, message, data, **options)

    def is_user_online(self, user_id: str) -> bool:
        return self._presence.is_online(user_id)

    def get_connected_users(self) -> list[str]:
        return sorted(self._presence.list_online())

    def get_connected_users_count(self) -> int:
        return len(self._presence)
