"""Connection handles for authenticated websocket clients."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.websockets import WebSocket, WebSocketDisconnect, WebSocketState

logger = logging.getLogger(__name__)


async def safe_send_json(websocket: WebSocket, data: dict[str, Any]) -> bool:
    """Safely send JSON data through websocket, handling disconnections gracefully.

    Returns True if message was sent successfully, False otherwise.
    """
    if websocket.application_state != WebSocketState.CONNECTED:
        return False
    try:
        await websocket.send_json(data)
        return True
    except (WebSocketDisconnect, RuntimeError, OSError) as e:
        logger.debug("Failed to send websocket message: %s", e)
        return False


def envelope(event: str, data: Any = None) -> dict[str, Any]:
    """Wrap *data* in the ``{"type", "data"}`` frame used on the socket."""

    message: dict[str, Any] = {"type": event}
    if data is not None:
        message["data"] = jsonable_encoder(data)
    return message


@dataclass(eq=False)
class Connection:
    """One authenticated socket. Hashes by identity so it can live in sets."""

    websocket: WebSocket
    user_id: str
    email: str | None = None
    transport: str = "websocket"
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    closed: bool = False

    @property
    def label(self) -> str:
        return self.email or self.user_id

    async def send(self, event: str, data: Any = None) -> bool:
        return await self.send_frame(envelope(event, data))

    async def send_frame(self, frame: dict[str, Any]) -> bool:
        if self.closed:
            return False
        return await safe_send_json(self.websocket, frame)
