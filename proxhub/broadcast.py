"""In-process fan-out of state changes to connected viewers.

Every subscriber owns an unbounded queue and ``publish`` writes to all of
them without waiting. There is no backpressure: a viewer that stops
reading keeps accumulating messages until it disconnects. A reconnecting
viewer gets a fresh ``initial-state`` and nothing it missed.
"""
from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Any, Dict, List, Optional

from proxhub.events import BroadcastMessage, Topic

logger = logging.getLogger(__name__)


class Subscriber:
    """A connected viewer and its outbound queue."""

    def __init__(self, client_id: Optional[str] = None) -> None:
        self.client_id = client_id or uuid.uuid4().hex[:12]
        self.queue: asyncio.Queue[BroadcastMessage] = asyncio.Queue()
        self.connected = True
        self.connected_at = time.time()

    def deliver(self, message: BroadcastMessage) -> None:
        if self.connected:
            self.queue.put_nowait(message)

    @property
    def pending(self) -> int:
        return self.queue.qsize()

    def drain(self) -> List[BroadcastMessage]:
        """Pop everything queued so far without waiting."""
        messages: List[BroadcastMessage] = []
        while not self.queue.empty():
            messages.append(self.queue.get_nowait())
        return messages


class Broadcaster:
    def __init__(self) -> None:
        self._subscribers: Dict[str, Subscriber] = {}

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribers(self) -> List[Subscriber]:
        return list(self._subscribers.values())

    def connect(self, initial_state: Dict[str, Any], client_id: Optional[str] = None) -> Subscriber:
        subscriber = Subscriber(client_id)
        self._subscribers[subscriber.client_id] = subscriber
        subscriber.deliver(BroadcastMessage(Topic.INITIAL_STATE, initial_state))
        logger.info("Viewer connected: %s (%d total)", subscriber.client_id, self.subscriber_count)
        return subscriber

    def disconnect(self, subscriber: Subscriber) -> None:
        subscriber.connected = False
        if self._subscribers.pop(subscriber.client_id, None) is not None:
            logger.info("Viewer disconnected: %s", subscriber.client_id)

    def publish(self, topic: Topic, data: Optional[Dict[str, Any]] = None) -> BroadcastMessage:
        message = BroadcastMessage(topic, data or {})
        for subscriber in list(self._subscribers.values()):
            subscriber.deliver(message)
        logger.debug("Published %s to %d viewers", topic.value, self.subscriber_count)
        return message

    def send(self, subscriber: Subscriber, message: BroadcastMessage) -> None:
        subscriber.deliver(message)

    def close(self) -> None:
        for subscriber in list(self._subscribers.values()):
            self.disconnect(subscriber)


__all__ = ["Broadcaster", "Subscriber"]
