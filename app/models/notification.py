"""Document models for persisted notifications."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .enums import (
    STATUS_ORDER,
    NotificationCategory,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_notification_id() -> str:
    return f"ntf_{uuid.uuid4().hex[:12]}"


class InvalidStatusTransition(ValueError):
    """Raised when a status change would move a notification backwards."""

    def __init__(self, current: NotificationStatus, target: NotificationStatus) -> None:
        super().__init__(f"Cannot move notification from {current.value} to {target.value}")
        self.current = current
        self.target = target


def can_transition(current: NotificationStatus, target: NotificationStatus) -> bool:
    """Return True when *target* is a legal next status for *current*."""

    if current == NotificationStatus.FAILED:
        return False
    if target == NotificationStatus.FAILED:
        return True
    return STATUS_ORDER[target] > STATUS_ORDER[current]


# ---------------------------------------------------------------------------
# Payload variants
# ---------------------------------------------------------------------------


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class DiagnosisResultPayload(_Payload):
    kind: Literal["diagnosis_result"] = "diagnosis_result"
    diagnosis_id: str | None = None
    crop: str
    disease: str | None = None
    confidence: float | None = Field(default=None, ge=0, le=1)
    severity: str | None = None
    recommendations: list[str] = Field(default_factory=list)


class WeatherAlertPayload(_Payload):
    kind: Literal["weather_alert"] = "weather_alert"
    location: str
    alert_type: str
    severity: str | None = None
    valid_until: datetime | None = None
    details: str | None = None


class MarketUpdatePayload(_Payload):
    kind: Literal["market_update"] = "market_update"
    commodity: str
    market: str | None = None
    price: float
    currency: str = "NGN"
    change_percent: float | None = None


class ReminderPayload(_Payload):
    kind: Literal["reminder"] = "reminder"
    reference_id: str | None = None
    due_at: datetime | None = None
    details: str | None = None


class MessagePayload(_Payload):
    kind: Literal["message"] = "message"
    sender_id: str
    sender_email: str | None = None
    preview: str | None = None


class OpaquePayload(_Payload):
    kind: Literal["opaque"] = "opaque"
    body: Any = Field(default_factory=dict)


NotificationPayload = Annotated[
    Union[
        DiagnosisResultPayload,
        WeatherAlertPayload,
        MarketUpdatePayload,
        ReminderPayload,
        MessagePayload,
        OpaquePayload,
    ],
    Field(discriminator="kind"),
]

_payload_adapter: TypeAdapter[Any] = TypeAdapter(NotificationPayload)

PAYLOAD_BY_TYPE: dict[NotificationType, type[_Payload]] = {
    NotificationType.CROP_DIAGNOSIS: DiagnosisResultPayload,
    NotificationType.WEATHER_ALERT: WeatherAlertPayload,
    NotificationType.PEST_OUTBREAK: WeatherAlertPayload,
    NotificationType.MARKET_PRICE: MarketUpdatePayload,
    NotificationType.CROP_CALENDAR: ReminderPayload,
    NotificationType.LEARNING_REMINDER: ReminderPayload,
    NotificationType.MESSAGE: MessagePayload,
}


def build_payload(
    notification_type: NotificationType,
    data: Any,
) -> _Payload | None:
    """Pick the payload variant for *notification_type*.

    Data that does not fit the known shape is kept verbatim as an opaque body,
    lists and scalars included.
    """

    if data is None:
        return None
    if isinstance(data, _Payload):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    if not isinstance(data, Mapping):
        return OpaquePayload(body=data)
    if "kind" in data:
        try:
            return _payload_adapter.validate_python(data)
        except ValidationError:
            pass
    variant = PAYLOAD_BY_TYPE.get(notification_type)
    if variant is not None:
        try:
            return variant.model_validate(data)
        except ValidationError:
            pass
    return OpaquePayload(body=dict(data))


# ---------------------------------------------------------------------------
# Notification document
# ---------------------------------------------------------------------------


class DeliveryChannels(BaseModel):
    push: bool = True
    email: bool = False
    sms: bool = False
    in_app: bool = True


class RelatedEntity(BaseModel):
    entity_type: str
    entity_id: str


class Notification(BaseModel):
    """A durable notification addressed to one user."""

    notification_id: str = Field(default_factory=new_notification_id)
    user_id: str
    type: NotificationType
    title: str = Field(min_length=1)
    message: str = Field(min_length=1)
    priority: NotificationPriority = NotificationPriority.MEDIUM
    category: NotificationCategory = NotificationCategory.INFO
    channels: DeliveryChannels = Field(default_factory=DeliveryChannels)
    status: NotificationStatus = NotificationStatus.PENDING
    data: NotificationPayload | None = None

    scheduled_for: datetime | None = None
    expires_at: datetime | None = None
    sent_at: datetime | None = None
    delivered_at: datetime | None = None
    read_at: datetime | None = None

    action_url: str | None = None
    action_text: str | None = None
    image_url: str | None = None
    related_entity: RelatedEntity | None = None

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return _as_utc(self.expires_at) <= (now or _utcnow())

    def is_due(self, now: datetime | None = None) -> bool:
        if self.scheduled_for is None:
            return True
        return _as_utc(self.scheduled_for) <= (now or _utcnow())

    def to_document(self) -> dict[str, Any]:
        """Serialize for MongoDB, keeping datetimes as BSON dates."""

        document = self.model_dump(mode="python")
        for key in ("type", "priority", "category", "status"):
            document[key] = getattr(self, key).value
        return document

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Notification":
        document = {key: value for key, value in document.items() if key != "_id"}
        return cls.model_validate(document)

    def to_event(self) -> dict[str, Any]:
        """Payload pushed to clients with the ``notification_received`` event."""

        return self.model_dump(mode="json")


def _as_utc(value: datetime) -> datetime:
    # MongoDB hands back naive UTC datetimes.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
