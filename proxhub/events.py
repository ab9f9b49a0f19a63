"""Message types exchanged with viewers on the real-time channel."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class Topic(str, Enum):
    """Outbound events, server to viewer."""

    INITIAL_STATE = "initial-state"
    DEVICE_SNAPSHOT = "device-snapshot-update"
    PRIORITY_UPDATE = "priority-update"
    NOTIFICATION_CREATED = "notification-created"
    NOTIFICATIONS_CLEARED = "notifications-cleared"
    NOTIFICATIONS_SNAPSHOT = "notifications-update"
    SYSTEM_STATS = "system-stats-update"
    SYSTEM_ALERT = "system-alert"
    ERROR = "error"


class SubscriberCommand(str, Enum):
    """Inbound requests, viewer to server."""

    REQUEST_DEVICES = "request-devices"
    REQUEST_NOTIFICATIONS = "request-notifications"
    REQUEST_SYSTEM_STATS = "request-system-stats"

    @classmethod
    def parse(cls, raw: Any) -> "SubscriberCommand":
        """Accept either ``"request-devices"`` or ``{"event": "request-devices"}``."""
        name = raw.get("event") if isinstance(raw, dict) else raw
        try:
            return cls(name)
        except ValueError:
            raise ValueError(f"unknown subscriber command: {name!r}") from None


@dataclass(frozen=True)
class BroadcastMessage:
    topic: Topic
    data: Dict[str, Any] = field(default_factory=dict)

    def to_wire(self) -> Dict[str, Any]:
        return {"event": self.topic.value, "data": self.data}


__all__ = ["BroadcastMessage", "SubscriberCommand", "Topic"]
