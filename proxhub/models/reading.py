from __future__ import annotations
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class Reading:
    """One producer observation of a nearby device."""
    address: str
    name: Optional[str] = None
    rssi: Optional[int] = None
    distance: Optional[float] = None
