"""Schemas for the notification endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.models import Notification


class Pagination(BaseModel):
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    pages: int = Field(..., ge=0)


class NotificationList(BaseModel):
    """One page of the caller's notifications, newest first."""

    notifications: list[Notification]
    pagination: Pagination
    unread_count: int = Field(..., ge=0, serialization_alias="unreadCount")


class NotificationTypeStats(BaseModel):
    type: str
    count: int
    unread: int


class NotificationStats(BaseModel):
    stats: list[NotificationTypeStats]
    total_notifications: int = Field(..., serialization_alias="totalNotifications")
    unread_notifications: int = Field(..., serialization_alias="unreadNotifications")


class MarkAllReadResult(BaseModel):
    updated: int = Field(..., ge=0, description="Number of notifications marked as read")


class RealtimeStatus(BaseModel):
    online: bool = Field(..., description="Whether the caller currently holds a live connection")
    connected_users: int = Field(..., ge=0, serialization_alias="connectedUsers")
