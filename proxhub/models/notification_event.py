from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict
import uuid

from proxhub.clock import epoch_millis, isoformat

DISCONNECTION = "disconnection"


class NotificationOrigin(str, Enum):
    PRODUCER_REPORTED = "producer-reported"
    SYSTEM_TIMEOUT = "system-timeout"


def new_event_id(now: datetime) -> str:
    """Millisecond prefix plus a random suffix, unique within one millisecond."""
    return f"{epoch_millis(now)}-{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class NotificationEvent:
    """A proximity event recorded in the notification log."""
    id: str
    device_address: str
    device_name: str
    event_type: str
    occurred_at: datetime
    received_at: datetime
    origin: NotificationOrigin

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "deviceAddress": self.device_address,
            "deviceName": self.device_name,
            "eventType": self.event_type,
            "timestamp": isoformat(self.occurred_at),
            "received": isoformat(self.received_at),
            "origin": self.origin.value,
        }
