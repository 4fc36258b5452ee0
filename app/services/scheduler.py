"""Background release of scheduled notifications."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime

from agropal.realtime import NotificationDelivery
from app.models import InvalidStatusTransition, NotificationStatus
from app.services.notifications import NotificationStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DispatchResult:
    pushed: int = 0
    offline: int = 0


async def dispatch_scheduled_notifications(
    store: NotificationStore,
    delivery: NotificationDelivery,
    *,
    now: datetime | None = None,
    limit: int = 100,
) -> DispatchResult:
    """Push pending notifications whose scheduled time has passed.

    A pushed notification moves to ``sent`` so the next run skips it. One
    whose recipient is offline stays ``pending`` and is retried.
    """

    result = DispatchResult()
    for notification in await store.due_scheduled(now, limit=limit):
        pushed = await delivery.send_notification_to_user(notification.user_id, notification.to_event())
        if not pushed:
            result.offline += 1
            continue
        try:
            await store.transition(
                notification.notification_id,
                NotificationStatus.SENT,
                user_id=notification.user_id,
            )
        except InvalidStatusTransition:
            # The client acknowledged it before we got here.
            pass
        result.pushed += 1
    return result


async def run_notification_scheduler(
    store: NotificationStore,
    delivery: NotificationDelivery,
    interval_seconds: float,
) -> None:
    """Release due notifications and purge expired ones every *interval_seconds*."""

    while True:
        await asyncio.sleep(interval_seconds)
        try:
            result = await dispatch_scheduled_notifications(store, delivery)
            if result.pushed:
                logger.info("Released %s scheduled notification(s)", result.pushed)
            await store.delete_expired()
        except Exception:
            logger.exception("Scheduled notification dispatch failed")
