"""Tests for viewer fan-out."""
from __future__ import annotations

import unittest

from proxhub.broadcast import Broadcaster
from proxhub.events import BroadcastMessage, SubscriberCommand, Topic


class BroadcasterTest(unittest.TestCase):
    def setUp(self) -> None:
        self.broadcaster = Broadcaster()

    def test_connect_sends_exactly_one_initial_state(self) -> None:
        viewer = self.broadcaster.connect({"devices": []})
        messages = viewer.drain()
        self.assertEqual(len(messages), 1)
        self.assertEqual(messages[0].topic, Topic.INITIAL_STATE)
        self.assertEqual(messages[0].to_wire(), {"event": "initial-state", "data": {"devices": []}})

    def test_publish_reaches_every_subscriber(self) -> None:
        first = self.broadcaster.connect({})
        second = self.broadcaster.connect({})
        self.broadcaster.publish(Topic.SYSTEM_ALERT, {"type": "health_warning"})
        for viewer in (first, second):
            self.assertEqual(viewer.drain()[-1].topic, Topic.SYSTEM_ALERT)
        self.assertEqual(self.broadcaster.subscriber_count, 2)

    def test_reconnect_gets_no_replay(self) -> None:
        viewer = self.broadcaster.connect({"n": 1})
        self.broadcaster.disconnect(viewer)
        self.broadcaster.publish(Topic.NOTIFICATIONS_CLEARED)
        self.assertEqual(self.broadcaster.subscriber_count, 0)

        again = self.broadcaster.connect({"n": 2})
        messages = again.drain()
        self.assertEqual([m.topic for m in messages], [Topic.INITIAL_STATE])
        self.assertEqual(messages[0].data, {"n": 2})

    def test_disconnected_subscriber_receives_nothing(self) -> None:
        viewer = self.broadcaster.connect({})
        viewer.drain()
        self.broadcaster.disconnect(viewer)
        self.broadcaster.send(viewer, BroadcastMessage(Topic.SYSTEM_STATS))
        self.assertEqual(viewer.pending, 0)

    def test_slow_subscriber_buffers_without_bound(self) -> None:
        # Known resource risk: publish never drops or waits for a viewer
        # that is not reading.
        idle = self.broadcaster.connect({})
        for i in range(5000):
            self.broadcaster.publish(Topic.DEVICE_SNAPSHOT, {"seq": i})
        self.assertEqual(idle.pending, 5001)

    def test_close_disconnects_everyone(self) -> None:
        self.broadcaster.connect({})
        self.broadcaster.connect({})
        self.broadcaster.close()
        self.assertEqual(self.broadcaster.subscriber_count, 0)


class SubscriberCommandTest(unittest.TestCase):
    def test_parse_accepts_string_and_envelope(self) -> None:
        self.assertIs(SubscriberCommand.parse("request-devices"), SubscriberCommand.REQUEST_DEVICES)
        self.assertIs(
            SubscriberCommand.parse({"event": "request-system-stats"}),
            SubscriberCommand.REQUEST_SYSTEM_STATS,
        )

    def test_parse_rejects_unknown(self) -> None:
        with self.assertRaises(ValueError):
            SubscriberCommand.parse({"event": "requestDevices"})
        with self.assertRaises(ValueError):
            SubscriberCommand.parse(["request-devices"])


if __name__ == "__main__":
    unittest.main()
