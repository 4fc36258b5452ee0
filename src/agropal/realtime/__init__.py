"""Realtime presence, rooms and notification delivery over websockets."""

from .connection import Connection, envelope, safe_send_json  # noqa: F401
from .delivery import NotificationDelivery  # noqa: F401
from .errors import AuthenticationError  # noqa: F401
from .hub import RealtimeHub, build_realtime  # noqa: F401
from .identity import Identity, IdentityVerifier  # noqa: F401
from .presence import PresenceRegistry  # noqa: F401
from .rooms import RoomMembership, room_for_community  # noqa: F401
from .router import EventRouter  # noqa: F401

__all__ = [
    "build_realtime",
    "envelope",
    "room_for_community",
    "safe_send_json",
    "AuthenticationError",
    "Connection",
    "EventRouter",
    "Identity",
    "IdentityVerifier",
    "NotificationDelivery",
    "PresenceRegistry",
    "RealtimeHub",
    "RoomMembership",
]
