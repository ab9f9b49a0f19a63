"""Value types shared by the proxhub core."""
from .address import ADDRESS_PATTERN, normalize_address
from .device_record import UNKNOWN_DISTANCE, DeviceRecord
from .notification_event import DISCONNECTION, NotificationEvent, NotificationOrigin, new_event_id
from .producer import ProducerRole
from .reading import Reading

__all__ = [
    "ADDRESS_PATTERN",
    "DISCONNECTION",
    "UNKNOWN_DISTANCE",
    "DeviceRecord",
    "NotificationEvent",
    "NotificationOrigin",
    "ProducerRole",
    "Reading",
    "new_event_id",
    "normalize_address",
]
