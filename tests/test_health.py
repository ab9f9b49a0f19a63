"""Tests for producer health tracking."""
from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from proxhub.health import HealthMonitor
from proxhub.models import ProducerRole

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


class HealthMonitorTest(unittest.TestCase):
    def setUp(self) -> None:
        self.health = HealthMonitor(T0)
        self.health.record_contact(ProducerRole.SCANNER, T0)

    def test_active_boundary_at_sixty_seconds(self) -> None:
        self.assertTrue(self.health.is_active(ProducerRole.SCANNER, T0 + timedelta(seconds=59)))
        self.assertFalse(self.health.is_active(ProducerRole.SCANNER, T0 + timedelta(seconds=61)))

    def test_healthy_boundary_at_two_minutes(self) -> None:
        self.assertTrue(self.health.is_healthy(ProducerRole.SCANNER, T0 + timedelta(seconds=119)))
        self.assertFalse(self.health.is_healthy(ProducerRole.SCANNER, T0 + timedelta(seconds=121)))

    def test_never_seen_producer_is_down(self) -> None:
        self.assertFalse(self.health.is_active(ProducerRole.NOTIFIER, T0))
        self.assertFalse(self.health.is_healthy(ProducerRole.NOTIFIER, T0))
        self.assertIsNone(self.health.report(T0)["notifierLastSeen"])

    def test_alerts_repeat_while_unhealthy(self) -> None:
        now = T0 + timedelta(seconds=30)
        first = self.health.evaluate(now)
        second = self.health.evaluate(now + timedelta(minutes=2))
        self.assertIsNotNone(first)
        self.assertIsNotNone(second)
        self.assertEqual(first["offline"], ["notifier"])
        self.assertIn("Notifier: OFFLINE", first["message"])
        self.assertIn("Scanner: OK", first["message"])
        self.assertEqual(second["offline"], ["scanner", "notifier"])

    def test_no_alert_when_all_healthy(self) -> None:
        self.health.record_contact(ProducerRole.NOTIFIER, T0)
        self.assertIsNone(self.health.evaluate(T0 + timedelta(seconds=90)))

    def test_counters(self) -> None:
        self.health.record_contact(ProducerRole.SCANNER, T0)
        self.health.record_contact(ProducerRole.NOTIFIER, T0)
        self.assertEqual(self.health.total_scans, 2)
        self.assertEqual(self.health.state(ProducerRole.NOTIFIER).submissions, 1)
        self.assertEqual(self.health.uptime(T0 + timedelta(seconds=90)), 90.0)


if __name__ == "__main__":
    unittest.main()
