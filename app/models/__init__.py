"""Document models package."""

from .enums import (
    UNREAD_STATUSES,
    NotificationCategory,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
)
from .notification import (
    DeliveryChannels,
    DiagnosisResultPayload,
    InvalidStatusTransition,
    MarketUpdatePayload,
    MessagePayload,
    Notification,
    OpaquePayload,
    RelatedEntity,
    ReminderPayload,
    WeatherAlertPayload,
    build_payload,
    can_transition,
    new_notification_id,
)

__all__ = [
    "UNREAD_STATUSES",
    "NotificationCategory",
    "NotificationPriority",
    "NotificationStatus",
    "NotificationType",
    "DeliveryChannels",
    "DiagnosisResultPayload",
    "InvalidStatusTransition",
    "MarketUpdatePayload",
    "MessagePayload",
    "Notification",
    "OpaquePayload",
    "RelatedEntity",
    "ReminderPayload",
    "WeatherAlertPayload",
    "build_payload",
    "can_transition",
    "new_notification_id",
]
