"""Request bodies accepted at the HTTP boundary."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from proxhub.models.address import normalize_address
from proxhub.models.device_record import UNKNOWN_DISTANCE
from proxhub.models.reading import Reading


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class DeviceReadingIn(_Body):
    address: str
    name: Optional[str] = None
    rssi: Optional[int] = Field(default=None, ge=-127, le=20)
    distance: Optional[float] = Field(default=None, allow_inf_nan=False)

    @field_validator("address")
    @classmethod
    def _address(cls, value: str) -> str:
        return normalize_address(value)

    @field_validator("distance")
    @classmethod
    def _distance(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value < 0 and value != UNKNOWN_DISTANCE:
            raise ValueError("distance must be non-negative or -1.0 for unknown")
        return value

    def to_reading(self) -> Reading:
        return Reading(address=self.address, name=self.name, rssi=self.rssi, distance=self.distance)


class DeviceBatchIn(_Body):
    devices: List[DeviceReadingIn]

    def to_readings(self) -> List[Reading]:
        return [item.to_reading() for item in self.devices]


class SetPriorityIn(_Body):
    device_address: str = Field(alias="deviceAddress")
    is_priority: bool = Field(alias="isPriority")

    @field_validator("device_address")
    @classmethod
    def _address(cls, value: str) -> str:
        return normalize_address(value)


class NotificationIn(_Body):
    device_address: str = Field(alias="deviceAddress")
    event_type: str = Field(alias="eventType", min_length=1)
    device_name: Optional[str] = Field(default=None, alias="deviceName")
    timestamp: Optional[datetime] = None

    @field_validator("device_address")
    @classmethod
    def _address(cls, value: str) -> str:
        return normalize_address(value)


__all__ = ["DeviceBatchIn", "DeviceReadingIn", "NotificationIn", "SetPriorityIn"]
