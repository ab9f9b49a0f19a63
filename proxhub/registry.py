"""Registry of devices currently reported by the scanners."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from proxhub.broadcast import Broadcaster
from proxhub.clock import Clock, isoformat, utc_now
from proxhub.distance import (
    DEFAULT_DISTANCE,
    DEFAULT_REFERENCE_POWER,
    NEAR_THRESHOLD,
    is_in_range,
    resolve_distance,
)
from proxhub.events import Topic
from proxhub.health import HealthMonitor
from proxhub.models.address import normalize_address
from proxhub.models.device_record import DeviceRecord
from proxhub.models.notification_event import DISCONNECTION, NotificationOrigin
from proxhub.models.producer import ProducerRole
from proxhub.models.reading import Reading
from proxhub.notifications import NotificationLog
from proxhub.priority import PriorityIndex

logger = logging.getLogger(__name__)

INLINE_EVICTION_SECONDS = 120.0
SWEEP_EVICTION_SECONDS = 300.0


class DeviceRegistry:
    """Keyed store of last-known device state with staleness eviction.

    Two eviction paths exist. ``evict_stale`` runs at the end of every
    submission with the short threshold. ``evict_stale_sweep`` runs from a
    timer with the longer threshold and catches devices whose scanner went
    quiet altogether. Both synthesise a ``disconnection`` notification for
    priority devices before dropping the record.
    """

    def __init__(
        self,
        priority: PriorityIndex,
        notifications: NotificationLog,
        health: HealthMonitor,
        broadcaster: Optional[Broadcaster] = None,
        *,
        clock: Clock = utc_now,
        reference_power: int = DEFAULT_REFERENCE_POWER,
        default_distance: float = DEFAULT_DISTANCE,
        near_threshold: float = NEAR_THRESHOLD,
        inline_eviction_seconds: float = INLINE_EVICTION_SECONDS,
    ) -> None:
        self._records: Dict[str, DeviceRecord] = {}
        self.priority = priority
        self.notifications = notifications
        self.health = health
        self._broadcaster = broadcaster
        self._clock = clock
        self.reference_power = reference_power
        self.default_distance = default_distance
        self.near_threshold = near_threshold
        self.inline_eviction_seconds = inline_eviction_seconds

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and address.strip().upper() in self._records

    def get(self, address: str) -> Optional[DeviceRecord]:
        return self._records.get(address.strip().upper())

    def records(self) -> List[DeviceRecord]:
        return list(self._records.values())

    def snapshot(self) -> List[Dict[str, Any]]:
        return [
            record.to_dict(is_priority=record.address in self.priority)
            for record in self._records.values()
        ]

    def upsert(self, readings: Iterable[Reading], producer: ProducerRole = ProducerRole.SCANNER) -> int:
        # Validate and resolve the whole batch before touching any record.
        batch = [
            (
                normalize_address(reading.address),
                reading,
                resolve_distance(
                    reading.distance,
                    reading.rssi,
                    reference_power=self.reference_power,
                    default=self.default_distance,
                ),
            )
            for reading in readings
        ]
        now = self._clock()

        for address, reading, distance in batch:
            existing = self._records.get(address)
            if existing is None:
                was_in_range = is_in_range(distance, self.near_threshold)
            else:
                was_in_range = existing.was_in_range
            self._records[address] = DeviceRecord(
                address=address,
                name=reading.name,
                rssi=reading.rssi,
                distance=distance,
                last_updated=now,
                source=producer.value,
                was_in_range=was_in_range,
            )

        self.health.record_contact(producer, now)
        self.evict_stale(now, self.inline_eviction_seconds)
        self._publish_snapshot(now, source=producer.value)
        logger.info("Received %d devices from %s", len(batch), producer.value)
        return len(batch)

    def evict_stale(self, now: datetime, threshold_seconds: float) -> List[str]:
        stale = [
            address
            for address, record in self._records.items()
            if record.is_stale(now, threshold_seconds)
        ]
        for address in stale:
            record = self._records[address]
            if address in self.priority:
                self.notifications.create(
                    address,
                    DISCONNECTION,
                    device_name=record.display_name,
                    origin=NotificationOrigin.SYSTEM_TIMEOUT,
                )
                logger.info("Auto-notification: %s disconnected by timeout", record.display_name)
            del self._records[address]
        return stale

    def evict_stale_sweep(self, now: datetime, threshold_seconds: float = SWEEP_EVICTION_SECONDS) -> List[str]:
        evicted = self.evict_stale(now, threshold_seconds)
        for address in evicted:
            logger.info("Device %s removed after prolonged inactivity", address)
        if evicted:
            self._publish_snapshot(now, source="sweep")
        return evicted

    def _publish_snapshot(self, now: datetime, *, source: str) -> None:
        if self._broadcaster is None:
            return
        self._broadcaster.publish(
            Topic.DEVICE_SNAPSHOT,
            {"devices": self.snapshot(), "timestamp": isoformat(now), "source": source},
        )


__all__ = ["DeviceRegistry", "INLINE_EVICTION_SECONDS", "SWEEP_EVICTION_SECONDS"]
