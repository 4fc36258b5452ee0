from __future__ import annotations

from enum import Enum


class NotificationType(str, Enum):
    """Kinds of notification a farmer can receive."""

    WEATHER_ALERT = "weather_alert"
    CROP_DIAGNOSIS = "crop_diagnosis"
    COMMUNITY_MENTION = "community_mention"
    COMMUNITY_REPLY = "community_reply"
    LEARNING_REMINDER = "learning_reminder"
    ACHIEVEMENT = "achievement"
    SYSTEM_UPDATE = "system_update"
    CROP_CALENDAR = "crop_calendar"
    MARKET_PRICE = "market_price"
    PEST_OUTBREAK = "pest_outbreak"
    SEASONAL_ADVICE = "seasonal_advice"
    MESSAGE = "message"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class NotificationCategory(str, Enum):
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"
    ERROR = "error"


class NotificationStatus(str, Enum):
    """Lifecycle states of a persisted notification."""

    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    FAILED = "failed"


# pending -> sent -> delivered -> read; failed sits outside the ladder.
STATUS_ORDER: dict[NotificationStatus, int] = {
    NotificationStatus.PENDING: 0,
    NotificationStatus.SENT: 1,
    NotificationStatus.DELIVERED: 2,
    NotificationStatus.READ: 3,
}

UNREAD_STATUSES: tuple[NotificationStatus, ...] = (
    NotificationStatus.PENDING,
    NotificationStatus.SENT,
    NotificationStatus.DELIVERED,
)
