"""WebSocket endpoint for realtime notifications and community events."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Dict, TypeVar

from fastapi import APIRouter, WebSocket, status
from fastapi.websockets import WebSocketDisconnect, WebSocketState

from agropal.realtime import AuthenticationError, IdentityVerifier, RealtimeHub, safe_send_json
from agropal.realtime.connection import Connection
from app.config import get_settings
from app.services.notifications import PersistenceError

router = APIRouter(tags=["ws"])

settings = get_settings()

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def iter_keepalive_messages(
    websocket: WebSocket,
    receiver: Callable[[], Awaitable[T]],
    *,
    timeout_seconds: float | int | None,
    ping_interval_seconds: float | int | None,
    ping_payload: Dict[str, Any] | None = None,
    max_missed_pings: int | None = None,
) -> AsyncIterator[T]:
    """Yield messages from *receiver* while sending keepalive pings when idle.

    Any inbound frame counts as an answer. Once *max_missed_pings* pings in a
    row go unanswered the socket is closed with 1001 and iteration stops.
    """

    ping_payload = ping_payload or {"type": "ping"}
    timeout = float(timeout_seconds) if timeout_seconds else 0.0
    interval = float(ping_interval_seconds) if ping_interval_seconds else 0.0
    max_missed = max_missed_pings or 0
    last_activity = time.monotonic()
    last_ping_sent: float | None = None
    missed_pings = 0

    while True:
        try:
            if timeout > 0:
                message = await asyncio.wait_for(receiver(), timeout=timeout)
            else:
                message = await receiver()
        except asyncio.TimeoutError:
            if websocket.application_state != WebSocketState.CONNECTED:
                break

            now = time.monotonic()
            reference = last_activity if last_ping_sent is None else last_ping_sent
            if interval > 0 and now - reference < interval:
                continue
            if max_missed and missed_pings >= max_missed:
                logger.info("Closing websocket after %s unanswered keepalive pings", missed_pings)
                await _close_unresponsive(websocket)
                break
            if not await safe_send_json(websocket, ping_payload):
                break
            last_ping_sent = now
            missed_pings += 1
            continue
        except asyncio.CancelledError:  # pragma: no cover - cooperative cancellation
            raise
        except (RuntimeError, WebSocketDisconnect):
            break
        else:
            last_activity = time.monotonic()
            last_ping_sent = None
            missed_pings = 0
            yield message


async def _close_unresponsive(websocket: WebSocket) -> None:
    try:
        await websocket.close(code=status.WS_1001_GOING_AWAY, reason="Keepalive timeout")
    except (RuntimeError, WebSocketDisconnect, OSError):
        logger.debug("Socket went away before the keepalive close was sent")


async def _send_error(connection: Connection, detail: str) -> None:
    await connection.send("error", {"detail": detail})


@router.websocket("/ws")
async def websocket_realtime(websocket: WebSocket) -> None:
    """Authenticated realtime channel for notifications, rooms and direct messages."""

    hub: RealtimeHub = websocket.app.state.realtime
    token = IdentityVerifier.extract_token(websocket.query_params, websocket.headers)
    try:
        identity = await hub.authenticate(token)
    except AuthenticationError as exc:
        logger.info("Rejected websocket handshake: %s", exc.reason)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Authentication error")
        return

    await websocket.accept()
    connection = hub.connect(websocket, identity)

    try:
        async for raw_message in iter_keepalive_messages(
            websocket,
            websocket.receive_text,
            timeout_seconds=settings.websocket_keepalive_timeout_seconds,
            ping_interval_seconds=settings.websocket_keepalive_ping_interval_seconds,
            max_missed_pings=settings.websocket_keepalive_max_missed_pings,
        ):
            if not raw_message:
                continue
            if raw_message.strip().lower() == "ping":
                await connection.send("pong")
                continue
            try:
                payload = json.loads(raw_message)
            except json.JSONDecodeError:
                await _send_error(connection, "Invalid payload")
                continue
            if not isinstance(payload, dict):
                await _send_error(connection, "Invalid payload")
                continue

            event = payload.get("type")
            if event == "ping":
                await connection.send("pong")
                continue
            if event == "pong":
                continue
            if not isinstance(event, str) or not event:
                await _send_error(connection, "Missing event type")
                continue

            try:
                handled = await hub.handle(connection, event, payload.get("data"))
            except PersistenceError:
                logger.exception("Failed to store notification for event %s", event)
                await _send_error(connection, "Notification could not be stored")
                continue
            if not handled:
                await _send_error(connection, f"Unknown event: {event}")
    finally:
        await hub.disconnect(connection)
