"""Simulation tests for the device registry and its eviction paths."""
from __future__ import annotations

import unittest
from datetime import datetime, timezone

from proxhub.clock import ManualClock
from proxhub.events import Topic
from proxhub.models import NotificationOrigin, ProducerRole, Reading
from proxhub.service import MonitorService

ADDR_A = "AA:BB:CC:DD:EE:01"
ADDR_B = "AA:BB:CC:DD:EE:02"


class DeviceRegistryTest(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = ManualClock(datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))
        self.service = MonitorService(clock=self.clock)
        self.registry = self.service.registry
        self.viewer = self.service.broadcaster.connect({})
        self.viewer.drain()

    def test_repeat_upsert_keeps_was_in_range(self) -> None:
        self.registry.upsert([Reading(ADDR_A, rssi=-59)])
        first = self.registry.get(ADDR_A)
        self.assertTrue(first.was_in_range)

        self.clock.advance(10)
        self.registry.upsert([Reading(ADDR_A, rssi=-95)])
        second = self.registry.get(ADDR_A)
        self.assertTrue(second.was_in_range)
        self.assertGreater(second.last_updated, first.last_updated)
        self.assertGreater(second.distance, 2.0)
        self.assertEqual(len(self.registry), 1)

    def test_first_sighting_out_of_range(self) -> None:
        self.registry.upsert([Reading(ADDR_A, distance=3.0)])
        self.assertFalse(self.registry.get(ADDR_A).was_in_range)

    def test_unknown_distance_counts_as_in_range(self) -> None:
        self.registry.upsert([Reading(ADDR_B, rssi=0)])
        record = self.registry.get(ADDR_B)
        self.assertEqual(record.distance, -1.0)
        self.assertTrue(record.was_in_range)

    def test_unresolvable_reading_leaves_registry_untouched(self) -> None:
        with self.assertRaises(ValueError):
            self.registry.upsert([Reading(ADDR_A, rssi=-59), Reading(ADDR_B, rssi=-10000)])
        self.assertEqual(len(self.registry), 0)
        self.assertEqual(self.service.health.total_scans, 0)
        self.assertEqual(self.viewer.drain(), [])

    def test_addresses_are_case_insensitive(self) -> None:
        self.registry.upsert([Reading(ADDR_A.lower(), name="tag")])
        self.registry.upsert([Reading(ADDR_A, name="tag")])
        self.assertEqual(len(self.registry), 1)
        self.assertIn(ADDR_A.lower(), self.registry)

    def test_malformed_address_rejects_whole_batch(self) -> None:
        with self.assertRaises(ValueError):
            self.registry.upsert([Reading(ADDR_A), Reading("not-an-address")])
        self.assertEqual(len(self.registry), 0)
        self.assertEqual(self.service.health.total_scans, 0)

    def test_priority_is_read_live(self) -> None:
        self.service.priority.set_priority(ADDR_A, True)
        self.registry.upsert([Reading(ADDR_A, rssi=-59)])
        self.assertTrue(self.registry.snapshot()[0]["isPriority"])
        self.service.priority.set_priority(ADDR_A, False)
        self.assertFalse(self.registry.snapshot()[0]["isPriority"])

    def test_upsert_records_scanner_contact(self) -> None:
        self.registry.upsert([Reading(ADDR_A)])
        state = self.service.health.state(ProducerRole.SCANNER)
        self.assertEqual(state.last_seen, self.clock())
        self.assertEqual(state.submissions, 1)
        self.assertEqual(self.service.health.total_scans, 1)

    def test_upsert_publishes_snapshot(self) -> None:
        self.registry.upsert([Reading(ADDR_A, rssi=-59)])
        messages = self.viewer.drain()
        self.assertEqual([m.topic for m in messages], [Topic.DEVICE_SNAPSHOT])
        self.assertEqual(messages[0].data["devices"][0]["address"], ADDR_A)
        self.assertEqual(messages[0].data["source"], "scanner")

    def test_inline_eviction_notifies_for_priority_device(self) -> None:
        self.registry.upsert([Reading(ADDR_A, rssi=-59)])
        self.service.priority.set_priority(ADDR_A, True)

        self.clock.advance(121)
        self.viewer.drain()
        self.registry.upsert([Reading(ADDR_B, rssi=-70)])

        self.assertNotIn(ADDR_A, self.registry)
        self.assertIn(ADDR_B, self.registry)
        events = self.service.notifications.recent()
        self.assertEqual(len(events), 1)
        head = events[0]
        self.assertEqual(head.event_type, "disconnection")
        self.assertEqual(head.origin, NotificationOrigin.SYSTEM_TIMEOUT)
        self.assertEqual(head.device_name, ADDR_A)
        topics = [m.topic for m in self.viewer.drain()]
        self.assertEqual(topics, [Topic.NOTIFICATION_CREATED, Topic.DEVICE_SNAPSHOT])
        # the priority flag outlives the record
        self.assertIn(ADDR_A, self.service.priority)

    def test_inline_eviction_boundary(self) -> None:
        self.registry.upsert([Reading(ADDR_A)])
        self.clock.advance(120)
        self.registry.upsert([Reading(ADDR_B)])
        self.assertIn(ADDR_A, self.registry)

    def test_non_priority_eviction_is_silent(self) -> None:
        self.registry.upsert([Reading(ADDR_A, name="Tag")])
        self.clock.advance(200)
        self.registry.upsert([Reading(ADDR_B)])
        self.assertNotIn(ADDR_A, self.registry)
        self.assertEqual(len(self.service.notifications), 0)

    def test_sweep_uses_longer_threshold(self) -> None:
        self.registry.upsert([Reading(ADDR_A, name="Keys")])
        self.service.priority.set_priority(ADDR_A, True)

        self.clock.advance(200)
        self.assertEqual(self.registry.evict_stale_sweep(self.clock(), 300), [])
        self.assertIn(ADDR_A, self.registry)

        self.clock.advance(101)
        self.viewer.drain()
        self.assertEqual(self.registry.evict_stale_sweep(self.clock(), 300), [ADDR_A])
        self.assertEqual(len(self.registry), 0)
        head = self.service.notifications.recent(1)[0]
        self.assertEqual(head.device_name, "Keys")
        self.assertEqual(head.origin, NotificationOrigin.SYSTEM_TIMEOUT)
        self.assertIn(Topic.DEVICE_SNAPSHOT, [m.topic for m in self.viewer.drain()])


if __name__ == "__main__":
    unittest.main()
