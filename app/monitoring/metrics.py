"""Metric definitions for the realtime layer and notification store."""

from __future__ import annotations

from .registry import registry


realtime_connections = registry.gauge(
    "realtime_active_connections",
    "Number of authenticated websocket connections handled by this process.",
    label_names=("scope",),
)

realtime_handshake_rejections_total = registry.counter(
    "realtime_handshake_rejections_total",
    "Websocket handshakes refused during credential verification.",
    label_names=("reason",),
)

realtime_events_total = registry.counter(
    "realtime_events_total",
    "Count of realtime messages processed by the event router.",
    label_names=("strategy", "direction", "event"),
)

realtime_stale_sends_total = registry.counter(
    "realtime_stale_sends_total",
    "Sends attempted against a websocket that had already closed.",
    label_names=("strategy",),
)

realtime_delivery_misses_total = registry.counter(
    "realtime_delivery_misses_total",
    "Direct deliveries skipped because the recipient was offline.",
    label_names=("event",),
)

notifications_persisted_total = registry.counter(
    "notifications_persisted_total",
    "Notifications written to the durable store.",
    label_names=("type",),
)
