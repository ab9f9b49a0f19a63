"""Producer liveness tracking and health alerts."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from proxhub.clock import isoformat
from proxhub.models.producer import ProducerRole

logger = logging.getLogger(__name__)

ACTIVE_WINDOW_SECONDS = 60.0
HEALTHY_WINDOW_SECONDS = 120.0

_LABELS = {
    ProducerRole.SCANNER: "Scanner",
    ProducerRole.NOTIFIER: "Notifier",
}


@dataclass
class ProducerState:
    last_seen: Optional[datetime] = None
    submissions: int = 0


class HealthMonitor:
    """Derives ``active`` and ``healthy`` flags from last-contact times.

    ``active`` uses the tighter window and feeds the reporting endpoints.
    ``healthy`` is looser so that alerts do not flap on minor jitter.
    Alerting is level-triggered: ``evaluate`` returns an alert on every
    call for as long as a producer stays unhealthy.
    """

    def __init__(
        self,
        started_at: datetime,
        *,
        active_window: float = ACTIVE_WINDOW_SECONDS,
        healthy_window: float = HEALTHY_WINDOW_SECONDS,
    ) -> None:
        self.started_at = started_at
        self.active_window = active_window
        self.healthy_window = healthy_window
        self.total_scans = 0
        self._producers: Dict[ProducerRole, ProducerState] = {role: ProducerState() for role in ProducerRole}

    def state(self, role: ProducerRole) -> ProducerState:
        return self._producers[role]

    def record_contact(self, role: ProducerRole, now: datetime) -> None:
        state = self._producers[role]
        state.last_seen = now
        state.submissions += 1
        if role is ProducerRole.SCANNER:
            self.total_scans += 1

    def _age(self, role: ProducerRole, now: datetime) -> Optional[float]:
        last_seen = self._producers[role].last_seen
        if last_seen is None:
            return None
        return (now - last_seen).total_seconds()

    def is_active(self, role: ProducerRole, now: datetime) -> bool:
        age = self._age(role, now)
        return age is not None and age < self.active_window

    def is_healthy(self, role: ProducerRole, now: datetime) -> bool:
        age = self._age(role, now)
        return age is not None and age < self.healthy_window

    def uptime(self, now: datetime) -> float:
        return max(0.0, (now - self.started_at).total_seconds())

    def flags(self, now: datetime) -> Dict[str, bool]:
        return {
            "scannerActive": self.is_active(ProducerRole.SCANNER, now),
            "notifierActive": self.is_active(ProducerRole.NOTIFIER, now),
        }

    def report(self, now: datetime) -> Dict[str, Any]:
        report: Dict[str, Any] = {}
        for role in ProducerRole:
            key = role.value
            report[f"{key}Active"] = self.is_active(role, now)
            report[f"{key}Healthy"] = self.is_healthy(role, now)
            report[f"{key}LastSeen"] = isoformat(self._producers[role].last_seen)
        return report

    def offline(self, now: datetime) -> List[ProducerRole]:
        return [role for role in ProducerRole if not self.is_healthy(role, now)]

    def evaluate(self, now: datetime) -> Optional[Dict[str, Any]]:
        offline = self.offline(now)
        for role in offline:
            logger.warning(
                "%s has not reported for more than %d seconds", _LABELS[role], int(self.healthy_window)
            )
        if not offline:
            return None
        summary = ", ".join(
            f"{_LABELS[role]}: {'OFFLINE' if role in offline else 'OK'}" for role in ProducerRole
        )
        return {
            "type": "health_warning",
            "message": f"System unhealthy - {summary}",
            "offline": [role.value for role in offline],
            "timestamp": isoformat(now),
        }


__all__ = ["HealthMonitor", "ProducerState", "ACTIVE_WINDOW_SECONDS", "HEALTHY_WINDOW_SECONDS"]
