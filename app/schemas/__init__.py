"""Pydantic schemas for API payloads."""

from .notifications import (
    MarkAllReadResult,
    NotificationList,
    NotificationStats,
    NotificationTypeStats,
    Pagination,
    RealtimeStatus,
)

__all__ = [
    "MarkAllReadResult",
    "NotificationList",
    "NotificationStats",
    "NotificationTypeStats",
    "Pagination",
    "RealtimeStatus",
]
