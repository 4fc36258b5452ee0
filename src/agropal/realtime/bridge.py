"""Durable notifications with a best-effort live push."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from app.models import (
    DeliveryChannels,
    Notification,
    NotificationCategory,
    NotificationPriority,
    NotificationType,
    RelatedEntity,
    build_payload,
)

from . import events
from .router import EventRouter

logger = logging.getLogger(__name__)


class NotificationBridge:
    """Persists a notification, then pushes it if the recipient is online.

    A failed write raises before anything is pushed. A failed or skipped push
    is not an error: the stored copy is what clients fetch later. Anything
    with a ``scheduled_for`` time is left for the scheduled dispatcher, which
    is the only place that pushes it.
    """

    def __init__(self, store, router: EventRouter) -> None:
        self._store = store
        self._router = router

    async def notify(
        self,
        user_id: str,
        notification_type: NotificationType | str,
        title: str,
        message: str,
        data: Any = None,
        *,
        priority: NotificationPriority | str | None = None,
        category: NotificationCategory | str | None = None,
        channels: DeliveryChannels | dict[str, bool] | None = None,
        scheduled_for: datetime | None = None,
        expires_at: datetime | None = None,
        action_url: str | None = None,
        action_text: str | None = None,
        image_url: str | None = None,
        related_entity: RelatedEntity | dict[str, str] | None = None,
    ) -> Notification:
        kind = NotificationType(notification_type)
        options: dict[str, Any] = {
            "priority": priority,
            "category": category,
            "channels": channels,
            "scheduled_for": scheduled_for,
            "expires_at": expires_at,
            "action_url": action_url,
            "action_text": action_text,
            "image_url": image_url,
            "related_entity": related_entity,
        }
        notification = Notification(
            user_id=str(user_id),
            type=kind,
            title=title,
            message=message,
            data=build_payload(kind, data),
            **{key: value for key, value in options.items() if value is not None},
        )

        stored = await self._store.create(notification)

        # Scheduled notifications are released by the dispatcher, even when already due.
        if stored.scheduled_for is not None:
            logger.debug(
                "Notification %s scheduled for %s, push deferred to the dispatcher",
                stored.notification_id,
                stored.scheduled_for,
            )
            return stored

        pushed = await self._router.emit_direct(stored.user_id, events.NOTIFICATION_RECEIVED, stored.to_event())
        logger.debug(
            "Notification %s for user %s stored (pushed=%s)",
            stored.notification_id,
            stored.user_id,
            pushed,
        )
        return stored
