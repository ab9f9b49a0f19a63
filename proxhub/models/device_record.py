from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from proxhub.clock import isoformat

UNKNOWN_DISTANCE = -1.0


@dataclass
class DeviceRecord:
    """Last known state of a device seen by a producer.

    Priority is deliberately absent: it is looked up in the priority
    index whenever the record is serialised.
    """
    address: str
    distance: float
    last_updated: datetime
    source: str
    was_in_range: bool
    name: Optional[str] = None
    rssi: Optional[int] = None

    @property
    def display_name(self) -> str:
        return self.name or self.address

    def is_stale(self, now: datetime, threshold_seconds: float) -> bool:
        return (now - self.last_updated).total_seconds() > threshold_seconds

    def to_dict(self, *, is_priority: bool) -> Dict[str, Any]:
        return {
            "address": self.address,
            "name": self.name,
            "rssi": self.rssi,
            "distance": self.distance,
            "isPriority": is_priority,
            "lastUpdated": isoformat(self.last_updated),
            "source": self.source,
            "wasInRange": self.was_in_range,
        }
