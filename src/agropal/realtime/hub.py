"""Wires presence, rooms, routing and notification delivery together."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from app.config import Settings, get_settings
from app.models import InvalidStatusTransition, NotificationStatus, NotificationType
from app.monitoring.metrics import realtime_connections
from app.services.notifications import NotificationStore
from app.services.users import UserStore

from . import events
from .bridge import NotificationBridge
from .connection import Connection
from .delivery import NotificationDelivery
from .identity import Identity, IdentityVerifier
from .presence import PresenceRegistry
from .rooms import RoomMembership, is_community_room, room_for_community
from .router import EventRouter

logger = logging.getLogger(__name__)

_ACK_TARGETS = {
    NotificationStatus.DELIVERED.value: NotificationStatus.DELIVERED,
    NotificationStatus.READ.value: NotificationStatus.READ,
}
_PREVIEW_LENGTH = 120


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class RealtimeHub:
    """Owns the live connection state for one process."""

    def __init__(self, verifier: IdentityVerifier, store: NotificationStore) -> None:
        self.verifier = verifier
        self.store = store
        self.presence = PresenceRegistry()
        self.rooms = RoomMembership()
        self.router = EventRouter(self.presence, self.rooms)
        self.bridge = NotificationBridge(store, self.router)
        self.delivery = NotificationDelivery(self.router, self.presence, self.bridge)

        self.router.on(events.JOIN_COMMUNITY, self._on_join_community)
        self.router.on(events.LEAVE_COMMUNITY, self._on_leave_community)
        self.router.on(events.NEW_COMMUNITY_POST, self._on_new_community_post)
        self.router.on(events.PRIVATE_MESSAGE, self._on_private_message)
        self.router.on(events.TYPING_START, self._on_typing_start)
        self.router.on(events.TYPING_STOP, self._on_typing_stop)
        self.router.on(events.NOTIFICATION_ACK, self._on_notification_ack)

    async def authenticate(self, token: str | None) -> Identity:
        return await self.verifier.verify(token)

    def connect(self, websocket, identity: Identity) -> Connection:
        connection = Connection(websocket=websocket, user_id=identity.user_id, email=identity.email)
        self.presence.register_connection(identity.user_id, connection)
        self.router.attach(connection)
        realtime_connections.labels("websocket").inc()
        logger.info("User connected: %s", connection.label)
        return connection

    async def disconnect(self, connection: Connection) -> None:
        if connection.closed:
            return
        connection.closed = True

        # State is cleared before any await so concurrent sends see the user offline.
        rooms = self.rooms.leave_all(connection)
        self.presence.unregister_connection(connection.user_id, connection)
        self.router.detach(connection)
        realtime_connections.labels("websocket").dec()
        logger.info("User disconnected: %s", connection.label)

        notice = {"userId": connection.user_id, "userEmail": connection.email}
        for room_id in sorted(rooms):
            if is_community_room(room_id):
                await self.router.emit_room(room_id, events.USER_OFFLINE, notice)

    async def handle(self, connection: Connection, event: str, data: Any) -> bool:
        return await self.router.dispatch(connection, event, data)

    # -- inbound handlers ---------------------------------------------------

    async def _on_join_community(self, connection: Connection, data: Any) -> None:
        room_id = room_for_community(_community_id(data))
        if room_id is None:
            return
        if not self.rooms.join(connection, room_id):
            return
        logger.info("User %s joined %s", connection.label, room_id)
        await self.router.emit_room(
            room_id,
            events.USER_ONLINE,
            {"userId": connection.user_id, "userEmail": connection.email},
            exclude=connection,
        )

    async def _on_leave_community(self, connection: Connection, data: Any) -> None:
        room_id = room_for_community(_community_id(data))
        if room_id is None:
            return
        if self.rooms.leave(connection, room_id):
            logger.info("User %s left %s", connection.label, room_id)

    async def _on_new_community_post(self, connection: Connection, data: Any) -> None:
        if not isinstance(data, dict):
            return
        room_id = room_for_community(data.get("communityId"))
        if room_id is None:
            return
        await self.router.emit_room(room_id, events.COMMUNITY_POST_CREATED, data, exclude=connection)

    async def _on_private_message(self, connection: Connection, data: Any) -> None:
        if not isinstance(data, dict):
            return
        recipient_id = data.get("recipientId")
        message = data.get("message")
        if recipient_id is None or not str(recipient_id).strip() or message is None:
            return
        recipient_id = str(recipient_id).strip()

        delivered = await self.router.emit_direct(
            recipient_id,
            events.PRIVATE_MESSAGE_RECEIVED,
            {
                "senderId": connection.user_id,
                "senderEmail": connection.email,
                "message": message,
                "timestamp": _utcnow_iso(),
            },
        )
        if delivered:
            return

        preview = message if isinstance(message, str) else str(message)
        await self.bridge.notify(
            recipient_id,
            NotificationType.MESSAGE,
            "New Message",
            f"You have a new message from {connection.label}",
            {
                "kind": "message",
                "sender_id": connection.user_id,
                "sender_email": connection.email,
                "preview": preview[:_PREVIEW_LENGTH],
            },
        )

    async def _on_typing_start(self, connection: Connection, data: Any) -> None:
        room_id = _room_id(data)
        if room_id is None:
            return
        await self.router.emit_room(
            room_id,
            events.USER_TYPING,
            {"userId": connection.user_id, "userEmail": connection.email},
            exclude=connection,
        )

    async def _on_typing_stop(self, connection: Connection, data: Any) -> None:
        room_id = _room_id(data)
        if room_id is None:
            return
        await self.router.emit_room(
            room_id,
            events.USER_STOPPED_TYPING,
            {"userId": connection.user_id},
            exclude=connection,
        )

    async def _on_notification_ack(self, connection: Connection, data: Any) -> None:
        if not isinstance(data, dict):
            return
        notification_id = data.get("notificationId")
        status = data.get("status") or NotificationStatus.DELIVERED.value
        target = _ACK_TARGETS.get(status) if isinstance(status, str) else None
        if not isinstance(notification_id, str) or target is None:
            await connection.send(events.ERROR, {"detail": "Invalid acknowledgement"})
            return
        try:
            await self.store.transition(notification_id, target, user_id=connection.user_id)
        except InvalidStatusTransition as exc:
            await connection.send(events.ERROR, {"detail": str(exc)})


def _community_id(data: Any) -> Any:
    # Clients send either the bare id or {"communityId": ...}.
    if isinstance(data, dict):
        return data.get("communityId")
    return data


def _room_id(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    room_id = data.get("roomId")
    if not isinstance(room_id, str) or not room_id:
        return None
    return room_id


def build_realtime(database, settings: Settings | None = None) -> RealtimeHub:
    settings = settings or get_settings()
    verifier = IdentityVerifier(
        UserStore(database["users"]),
        secret=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        timeout_seconds=settings.realtime_auth_timeout_seconds,
    )
    return RealtimeHub(verifier, NotificationStore(database["notifications"]))
