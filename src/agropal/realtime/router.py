"""Addressing strategies for outbound events and inbound event dispatch."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from app.monitoring.metrics import (
    realtime_delivery_misses_total,
    realtime_events_total,
    realtime_stale_sends_total,
)

from .connection import Connection, envelope
from .presence import PresenceRegistry
from .rooms import RoomMembership

logger = logging.getLogger(__name__)

Handler = Callable[[Connection, Any], Awaitable[None]]


class EventRouter:
    """Sends events to one user, a room, or every connection.

    Sends never raise: a socket that turns out to be closed is counted as a
    miss and its presence entry is dropped.
    """

    def __init__(self, presence: PresenceRegistry, rooms: RoomMembership) -> None:
        self._presence = presence
        self._rooms = rooms
        self._connections: dict[str, Connection] = {}
        self._handlers: dict[str, Handler] = {}

    # -- connection bookkeeping -------------------------------------------

    def attach(self, connection: Connection) -> None:
        self._connections[connection.id] = connection

    def detach(self, connection: Connection) -> None:
        self._connections.pop(connection.id, None)

    @property
    def connections(self) -> list[Connection]:
        return list(self._connections.values())

    # -- inbound ------------------------------------------------------------

    def on(self, event: str, handler: Handler) -> None:
        self._handlers[event] = handler

    async def dispatch(self, connection: Connection, event: str, data: Any) -> bool:
        """Run the handler registered for *event*. Returns False if there is none."""

        handler = self._handlers.get(event)
        if handler is None:
            return False
        realtime_events_total.labels("inbound", "in", event).inc()
        await handler(connection, data)
        return True

    # -- outbound -----------------------------------------------------------

    async def emit_direct(self, user_id: str, event: str, data: Any = None) -> bool:
        connection = self._presence.lookup(str(user_id))
        if connection is None:
            realtime_delivery_misses_total.labels(event).inc()
            logger.debug("User %s is offline, %s not pushed", user_id, event)
            return False
        delivered = await self._send(connection, envelope(event, data), "direct")
        if delivered:
            realtime_events_total.labels("direct", "out", event).inc()
        else:
            realtime_delivery_misses_total.labels(event).inc()
        return delivered

    async def emit_room(
        self,
        room_id: str,
        event: str,
        data: Any = None,
        *,
        exclude: Connection | None = None,
    ) -> int:
        targets = [member for member in self._rooms.members(room_id) if member is not exclude]
        delivered = await self._fan_out(targets, envelope(event, data), "room")
        if delivered:
            realtime_events_total.labels("room", "out", event).inc(delivered)
        return delivered

    async def emit_global(self, event: str, data: Any = None) -> int:
        delivered = await self._fan_out(self.connections, envelope(event, data), "global")
        if delivered:
            realtime_events_total.labels("global", "out", event).inc(delivered)
        return delivered

    async def _fan_out(self, targets: list[Connection], frame: dict[str, Any], strategy: str) -> int:
        if not targets:
            return 0
        results = await asyncio.gather(*(self._send(target, frame, strategy) for target in targets))
        return sum(1 for result in results if result)

    async def _send(self, connection: Connection, frame: dict[str, Any], strategy: str) -> bool:
        delivered = await connection.send_frame(frame)
        if not delivered:
            realtime_stale_sends_total.labels(strategy).inc()
            if self._presence.unregister_connection(connection.user_id, connection):
                logger.info("Dropped stale connection %s for user %s", connection.id, connection.user_id)
        return delivered
