"""Set of addresses flagged for heightened attention."""
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Set

from proxhub.broadcast import Broadcaster
from proxhub.clock import Clock, isoformat, utc_now
from proxhub.events import Topic
from proxhub.models.address import normalize_address

logger = logging.getLogger(__name__)


class PriorityIndex:
    """Priority membership, independent of whether the device is in range.

    An address can be flagged before it has ever been seen and stays
    flagged after its device record is evicted. No size cap is applied
    here even though the scanner firmware only keeps a handful locally.
    """

    def __init__(self, broadcaster: Optional[Broadcaster] = None, clock: Clock = utc_now) -> None:
        self._addresses: Set[str] = set()
        self._broadcaster = broadcaster
        self._clock = clock

    def __contains__(self, address: object) -> bool:
        if not isinstance(address, str):
            return False
        return address.strip().upper() in self._addresses

    def __len__(self) -> int:
        return len(self._addresses)

    def addresses(self) -> List[str]:
        return sorted(self._addresses)

    def set_priority(self, address: str, flag: bool) -> bool:
        """Add or remove ``address``; returns whether membership changed."""
        key = normalize_address(address)
        if flag:
            changed = key not in self._addresses
            self._addresses.add(key)
            logger.info("Device %s marked as priority", key)
        else:
            changed = key in self._addresses
            self._addresses.discard(key)
            logger.info("Device %s removed from priority", key)

        if self._broadcaster is not None:
            self._broadcaster.publish(
                Topic.PRIORITY_UPDATE,
                {
                    "deviceAddress": key,
                    "isPriority": bool(flag),
                    "priorityDevices": self.addresses(),
                    "timestamp": isoformat(self._clock()),
                },
            )
        return changed


__all__ = ["PriorityIndex"]
