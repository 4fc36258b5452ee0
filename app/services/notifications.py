"""MongoDB persistence for user notifications."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from app.models import (
    UNREAD_STATUSES,
    InvalidStatusTransition,
    Notification,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
    can_transition,
)
from app.monitoring.metrics import notifications_persisted_total

logger = logging.getLogger(__name__)

_STATUS_TIMESTAMPS = {
    NotificationStatus.SENT: "sent_at",
    NotificationStatus.DELIVERED: "delivered_at",
    NotificationStatus.READ: "read_at",
}


class PersistenceError(RuntimeError):
    """Raised when the notification store cannot be reached or rejects a write."""


@dataclass(slots=True)
class NotificationPage:
    items: list[Notification]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 0
        return -(-self.total // self.limit)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _not_expired(now: datetime) -> dict[str, Any]:
    return {"$or": [{"expires_at": None}, {"expires_at": {"$gt": now}}]}


class NotificationStore:
    """Reads and writes notification documents in one collection."""

    def __init__(self, collection) -> None:
        self._collection = collection

    async def create(self, notification: Notification) -> Notification:
        try:
            await self._collection.insert_one(notification.to_document())
        except PyMongoError as exc:
            logger.error(
                "Failed to persist %s notification for user %s",
                notification.type.value,
                notification.user_id,
            )
            raise PersistenceError("Notification store unavailable") from exc
        notifications_persisted_total.labels(notification.type.value).inc()
        return notification

    async def get(self, notification_id: str, *, user_id: str | None = None) -> Notification | None:
        query: dict[str, Any] = {"notification_id": notification_id}
        if user_id is not None:
            query["user_id"] = user_id
        document = await self._guarded(self._collection.find_one(query, {"_id": 0}))
        return Notification.from_document(document) if document else None

    async def list_for_user(
        self,
        user_id: str,
        *,
        page: int = 1,
        limit: int = 20,
        status: NotificationStatus | None = None,
        notification_type: NotificationType | None = None,
        priority: NotificationPriority | None = None,
        now: datetime | None = None,
    ) -> NotificationPage:
        """Return the user's live notifications, newest first."""

        page = max(page, 1)
        limit = max(limit, 1)
        query: dict[str, Any] = {"user_id": user_id, **_not_expired(now or _now())}
        if status is not None:
            query["status"] = status.value
        if notification_type is not None:
            query["type"] = notification_type.value
        if priority is not None:
            query["priority"] = priority.value

        cursor = (
            self._collection.find(query, {"_id": 0})
            .sort("created_at", DESCENDING)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        documents = await self._guarded(cursor.to_list(length=limit))
        total = await self._guarded(self._collection.count_documents(query))
        return NotificationPage(
            items=[Notification.from_document(doc) for doc in documents],
            total=total,
            page=page,
            limit=limit,
        )

    async def count_unread(self, user_id: str, *, now: datetime | None = None) -> int:
        query = {
            "user_id": user_id,
            "status": {"$in": [status.value for status in UNREAD_STATUSES]},
            **_not_expired(now or _now()),
        }
        return await self._guarded(self._collection.count_documents(query))

    async def transition(
        self,
        notification_id: str,
        target: NotificationStatus,
        *,
        user_id: str | None = None,
    ) -> Notification | None:
        """Move a notification forward in its lifecycle.

        Returns None when the notification does not exist. Re-applying the
        current status leaves the record untouched.
        """

        notification = await self.get(notification_id, user_id=user_id)
        if notification is None:
            return None
        if notification.status == target:
            return notification
        if not can_transition(notification.status, target):
            raise InvalidStatusTransition(notification.status, target)

        now = _now()
        changes: dict[str, Any] = {"status": target.value, "updated_at": now}
        timestamp_field = _STATUS_TIMESTAMPS.get(target)
        if timestamp_field is not None:
            changes[timestamp_field] = now
        # Guard on the status we read so a concurrent change is not overwritten.
        result = await self._guarded(
            self._collection.update_one(
                {"notification_id": notification_id, "status": notification.status.value},
                {"$set": changes},
            )
        )
        if result.matched_count == 0:
            return await self.get(notification_id, user_id=user_id)
        return notification.model_copy(update={**changes, "status": target})

    async def mark_read(self, notification_id: str, *, user_id: str) -> Notification | None:
        return await self.transition(notification_id, NotificationStatus.READ, user_id=user_id)

    async def mark_delivered(self, notification_id: str, *, user_id: str) -> Notification | None:
        return await self.transition(notification_id, NotificationStatus.DELIVERED, user_id=user_id)

    async def mark_all_read(self, user_id: str) -> int:
        now = _now()
        result = await self._guarded(
            self._collection.update_many(
                {
                    "user_id": user_id,
                    "status": {"$in": [status.value for status in UNREAD_STATUSES]},
                },
                {"$set": {"status": NotificationStatus.READ.value, "read_at": now, "updated_at": now}},
            )
        )
        return result.modified_count

    async def delete(self, notification_id: str, *, user_id: str) -> bool:
        result = await self._guarded(
            self._collection.delete_one({"notification_id": notification_id, "user_id": user_id})
        )
        return result.deleted_count > 0

    async def delete_expired(self, now: datetime | None = None) -> int:
        """Remove expired documents for deployments without the TTL index."""

        result = await self._guarded(
            self._collection.delete_many({"expires_at": {"$ne": None, "$lte": now or _now()}})
        )
        if result.deleted_count:
            logger.info("Removed %s expired notification(s)", result.deleted_count)
        return result.deleted_count

    async def due_scheduled(self, now: datetime | None = None, *, limit: int = 100) -> list[Notification]:
        """Pending notifications whose scheduled time has arrived."""

        now = now or _now()
        query = {
            "status": NotificationStatus.PENDING.value,
            "scheduled_for": {"$ne": None, "$lte": now},
            **_not_expired(now),
        }
        cursor = self._collection.find(query, {"_id": 0}).sort("scheduled_for", ASCENDING).limit(limit)
        documents = await self._guarded(cursor.to_list(length=limit))
        return [Notification.from_document(doc) for doc in documents]

    async def stats(self, user_id: str) -> dict[str, Any]:
        cursor = self._collection.find({"user_id": user_id}, {"_id": 0, "type": 1, "status": 1})
        documents = await self._guarded(cursor.to_list(length=None))
        totals: Counter[str] = Counter()
        unread: Counter[str] = Counter()
        unread_values = {status.value for status in UNREAD_STATUSES}
        for document in documents:
            totals[document["type"]] += 1
            if document["status"] in unread_values:
                unread[document["type"]] += 1
        return {
            "stats": [
                {"type": kind, "count": count, "unread": unread.get(kind, 0)}
                for kind, count in sorted(totals.items())
            ],
            "totalNotifications": sum(totals.values()),
            "unreadNotifications": sum(unread.values()),
        }

    @staticmethod
    async def _guarded(awaitable):
        try:
            return await awaitable
        except PyMongoError as exc:
            raise PersistenceError("Notification store unavailable") from exc
