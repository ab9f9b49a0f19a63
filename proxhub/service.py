"""Service context that owns all monitoring state.

One ``MonitorService`` is built per process and handed to the HTTP and
WebSocket handlers. Everything here is synchronous and runs on the event
loop thread, so the registry, priority index and notification log are
never mutated concurrently.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import psutil

from proxhub import __version__
from proxhub.broadcast import Broadcaster
from proxhub.clock import Clock, isoformat, utc_now
from proxhub.config import MonitorConfig
from proxhub.distance import distance_bucket, is_in_range
from proxhub.events import BroadcastMessage, SubscriberCommand, Topic
from proxhub.health import HealthMonitor
from proxhub.models.address import normalize_address
from proxhub.models.notification_event import NotificationEvent, NotificationOrigin
from proxhub.models.producer import ProducerRole
from proxhub.models.reading import Reading
from proxhub.notifications import NotificationLog
from proxhub.priority import PriorityIndex
from proxhub.registry import DeviceRegistry
from proxhub.scheduler import PeriodicTask

logger = logging.getLogger(__name__)


def _memory_usage() -> Dict[str, Optional[int]]:
    """Resident size of this process against total system memory, in bytes."""
    try:
        return {
            "used": psutil.Process().memory_info().rss,
            "total": psutil.virtual_memory().total,
        }
    except (psutil.Error, OSError):
        logger.warning("Memory figures unavailable", exc_info=True)
        return {"used": None, "total": None}


class MonitorService:
    def __init__(
        self,
        config: Optional[MonitorConfig] = None,
        *,
        clock: Clock = utc_now,
        broadcaster: Optional[Broadcaster] = None,
    ) -> None:
        self.config = config or MonitorConfig()
        self.clock = clock
        self.broadcaster = broadcaster or Broadcaster()

        cfg = self.config
        self.priority = PriorityIndex(self.broadcaster, clock=clock)
        self.notifications = NotificationLog(
            self.broadcaster,
            capacity=cfg.notification_capacity,
            snapshot_size=cfg.snapshot_notifications,
            clock=clock,
        )
        self.health = HealthMonitor(
            clock(),
            active_window=cfg.active_window_seconds,
            healthy_window=cfg.healthy_window_seconds,
        )
        self.registry = DeviceRegistry(
            self.priority,
            self.notifications,
            self.health,
            self.broadcaster,
            clock=clock,
            reference_power=cfg.reference_power,
            default_distance=cfg.default_distance,
            near_threshold=cfg.near_threshold,
            inline_eviction_seconds=cfg.inline_eviction_seconds,
        )

        self.sweep_task = PeriodicTask("sweep", cfg.sweep_interval_seconds, self.run_sweep)
        self.health_task = PeriodicTask("health", cfg.health_interval_seconds, self.run_health_check)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        self.sweep_task.start()
        self.health_task.start()
        logger.info("Monitor service started")

    async def shutdown(self) -> None:
        await asyncio.gather(self.sweep_task.stop(), self.health_task.stop())
        self.broadcaster.close()
        logger.info("Monitor service stopped")

    # ------------------------------------------------------------------
    # Producer submissions
    # ------------------------------------------------------------------
    def ingest_readings(self, readings: Iterable[Reading]) -> Dict[str, Any]:
        received = self.registry.upsert(readings, ProducerRole.SCANNER)
        return {
            "success": True,
            "received": received,
            "totalDevices": len(self.registry),
            "timestamp": isoformat(self.clock()),
        }

    def submit_notification(
        self,
        device_address: str,
        event_type: str,
        *,
        device_name: Optional[str] = None,
        occurred_at: Optional[datetime] = None,
    ) -> NotificationEvent:
        address = normalize_address(device_address)
        self.health.record_contact(ProducerRole.NOTIFIER, self.clock())
        event = self.notifications.create(
            address,
            event_type,
            device_name=device_name,
            occurred_at=occurred_at,
            origin=NotificationOrigin.PRODUCER_REPORTED,
        )
        logger.info("Notifier event: %s - %s", event.event_type, event.device_name)
        return event

    # ------------------------------------------------------------------
    # Viewer operations
    # ------------------------------------------------------------------
    def set_priority(self, address: str, flag: bool) -> Dict[str, Any]:
        key = normalize_address(address)
        self.priority.set_priority(key, flag)
        return {
            "success": True,
            "deviceAddress": key,
            "isPriority": bool(flag),
            "totalPriorityDevices": len(self.priority),
        }

    def clear_notifications(self) -> Dict[str, Any]:
        removed = self.notifications.clear()
        return {"success": True, "message": "Notifications cleared", "removed": removed}

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def devices_view(self) -> Dict[str, Any]:
        now = self.clock()
        devices = self.registry.snapshot()
        return {
            "devices": devices,
            "count": len(devices),
            "timestamp": isoformat(now),
            "systemStatus": self.health.flags(now),
        }

    def priority_view(self) -> Dict[str, Any]:
        return {
            "priorityDevices": self.priority.addresses(),
            "count": len(self.priority),
            "timestamp": isoformat(self.clock()),
        }

    def notifications_view(self, limit: Optional[int] = None) -> Dict[str, Any]:
        size = self.config.default_notification_limit if limit is None else limit
        return {
            "notifications": [event.to_dict() for event in self.notifications.recent(size)],
            "total": len(self.notifications),
            "timestamp": isoformat(self.clock()),
        }

    def distance_histogram(self) -> Dict[str, int]:
        histogram = {"close": 0, "medium": 0, "far": 0}
        for record in self.registry.records():
            bucket = distance_bucket(
                record.distance, self.config.near_threshold, self.config.medium_threshold
            )
            histogram[bucket] += 1
        return histogram

    def system_stats(self) -> Dict[str, Any]:
        now = self.clock()
        cfg = self.config
        uptime = self.health.uptime(now)
        total_scans = self.health.total_scans
        priority_in_range = sum(
            1
            for record in self.registry.records()
            if record.address in self.priority and is_in_range(record.distance, cfg.near_threshold)
        )
        return {
            "totalDevices": len(self.registry),
            "priorityDevices": len(self.priority),
            "recentNotifications": self.notifications.count_since(
                now, cfg.recent_notification_window_seconds
            ),
            "devicesByDistance": self.distance_histogram(),
            "priorityDevicesInRange": priority_in_range,
            "systemHealth": self.health.report(now),
            "performance": {
                "totalScans": total_scans,
                "uptime": uptime,
                "avgScansPerMinute": total_scans / (uptime / 60.0) if uptime > 0 else 0.0,
            },
            "timestamp": isoformat(now),
        }

    def stats_update(self) -> Dict[str, Any]:
        now = self.clock()
        return {
            **self.health.flags(now),
            "totalDevices": len(self.registry),
            "priorityDevices": len(self.priority),
            "timestamp": isoformat(now),
        }

    def status(self) -> Dict[str, Any]:
        now = self.clock()
        return {
            "status": "running",
            "version": __version__,
            "devices": len(self.registry),
            "priorityDevices": len(self.priority),
            "notifications": len(self.notifications),
            "systemHealth": self.health.report(now),
            "uptime": self.health.uptime(now),
            "timestamp": isoformat(now),
        }

    def health_report(self) -> Dict[str, Any]:
        now = self.clock()
        components = {}
        for role in ProducerRole:
            if self.health.is_active(role, now):
                components[role.value] = "active"
            elif self.health.state(role).last_seen is None:
                components[role.value] = "inactive"
            else:
                components[role.value] = "stale"
        return {
            "status": "healthy",
            "timestamp": isoformat(now),
            "uptime": self.health.uptime(now),
            "connections": {
                "devices": len(self.registry),
                "priority": len(self.priority),
                "websockets": self.broadcaster.subscriber_count,
            },
            "systemHealth": self.health.report(now),
            "systemComponents": components,
            "memory": _memory_usage(),
        }

    def initial_state(self) -> Dict[str, Any]:
        return {
            "devices": self.registry.snapshot(),
            "priorityDevices": self.priority.addresses(),
            "notifications": self.notifications.snapshot(),
            "systemStats": self.health.flags(self.clock()),
        }

    def handle_command(self, command: SubscriberCommand) -> BroadcastMessage:
        now = isoformat(self.clock())
        if command is SubscriberCommand.REQUEST_DEVICES:
            return BroadcastMessage(
                Topic.DEVICE_SNAPSHOT, {"devices": self.registry.snapshot(), "timestamp": now}
            )
        if command is SubscriberCommand.REQUEST_NOTIFICATIONS:
            return BroadcastMessage(
                Topic.NOTIFICATIONS_SNAPSHOT,
                {"notifications": self.notifications.snapshot(), "timestamp": now},
            )
        if command is SubscriberCommand.REQUEST_SYSTEM_STATS:
            return BroadcastMessage(Topic.SYSTEM_STATS, self.stats_update())
        raise ValueError(f"unhandled subscriber command: {command!r}")

    # ------------------------------------------------------------------
    # Periodic ticks
    # ------------------------------------------------------------------
    def run_sweep(self) -> List[str]:
        now = self.clock()
        cfg = self.config
        evicted = self.registry.evict_stale_sweep(now, cfg.sweep_eviction_seconds)
        self.notifications.purge_older_than(now, cfg.notification_retention_seconds)
        self.broadcaster.publish(Topic.SYSTEM_STATS, self.stats_update())
        return evicted

    def run_health_check(self) -> Optional[Dict[str, Any]]:
        alert = self.health.evaluate(self.clock())
        if alert is not None:
            self.broadcaster.publish(Topic.SYSTEM_ALERT, alert)
        return alert


__all__ = ["MonitorService"]
