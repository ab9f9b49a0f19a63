"""Capped, newest-first history of proximity events."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from proxhub.broadcast import Broadcaster
from proxhub.clock import Clock, isoformat, utc_now
from proxhub.events import Topic
from proxhub.models.notification_event import NotificationEvent, NotificationOrigin, new_event_id

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100
DEFAULT_SNAPSHOT_SIZE = 20


class NotificationLog:
    def __init__(
        self,
        broadcaster: Optional[Broadcaster] = None,
        *,
        capacity: int = DEFAULT_CAPACITY,
        snapshot_size: int = DEFAULT_SNAPSHOT_SIZE,
        clock: Clock = utc_now,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.snapshot_size = snapshot_size
        self._events: List[NotificationEvent] = []
        self._broadcaster = broadcaster
        self._clock = clock

    def __len__(self) -> int:
        return len(self._events)

    def recent(self, limit: Optional[int] = None) -> List[NotificationEvent]:
        if limit is None:
            return list(self._events)
        return self._events[: max(0, limit)]

    def snapshot(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        size = self.snapshot_size if limit is None else limit
        return [event.to_dict() for event in self.recent(size)]

    def append(self, event: NotificationEvent) -> NotificationEvent:
        self._events.insert(0, event)
        if len(self._events) > self.capacity:
            del self._events[self.capacity:]
        if self._broadcaster is not None:
            self._broadcaster.publish(Topic.NOTIFICATION_CREATED, event.to_dict())
        return event

    def create(
        self,
        device_address: str,
        event_type: str,
        *,
        device_name: Optional[str] = None,
        occurred_at: Optional[datetime] = None,
        origin: NotificationOrigin = NotificationOrigin.PRODUCER_REPORTED,
    ) -> NotificationEvent:
        now = self._clock()
        event = NotificationEvent(
            id=new_event_id(now),
            device_address=device_address,
            device_name=device_name or device_address,
            event_type=event_type,
            occurred_at=occurred_at or now,
            received_at=now,
            origin=origin,
        )
        return self.append(event)

    def clear(self) -> int:
        removed = len(self._events)
        self._events = []
        if self._broadcaster is not None:
            self._broadcaster.publish(
                Topic.NOTIFICATIONS_CLEARED, {"removed": removed, "timestamp": isoformat(self._clock())}
            )
        logger.info("Notification log cleared (%d entries)", removed)
        return removed

    def purge_older_than(self, now: datetime, window_seconds: float) -> int:
        cutoff = now - timedelta(seconds=window_seconds)
        expired = {event.id for event in self._events if event.received_at < cutoff}
        if not expired:
            return 0
        self._events = [event for event in self._events if event.id not in expired]
        logger.info("Purged %d expired notifications", len(expired))
        if self._broadcaster is not None:
            self._broadcaster.publish(
                Topic.NOTIFICATIONS_SNAPSHOT,
                {"notifications": self.snapshot(), "timestamp": isoformat(now)},
            )
        return len(expired)

    def count_since(self, now: datetime, window_seconds: float) -> int:
        cutoff = now - timedelta(seconds=window_seconds)
        return sum(1 for event in self._events if event.received_at > cutoff)


__all__ = ["NotificationLog", "DEFAULT_CAPACITY", "DEFAULT_SNAPSHOT_SIZE"]
