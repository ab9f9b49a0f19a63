"""Time helpers shared by the registry, log, health monitor and scheduler."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def isoformat(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return ensure_utc(dt).isoformat(timespec="milliseconds")


def epoch_millis(dt: datetime) -> int:
    return int(ensure_utc(dt).timestamp() * 1000)


class ManualClock:
    """Clock that only moves when told to.

    Handy for driving eviction, retention and health windows in tests
    without waiting on the wall clock.
    """

    def __init__(self, start: Optional[datetime] = None) -> None:
        self._now = ensure_utc(start) if start else utc_now()

    def __call__(self) -> datetime:
        return self._now

    def advance(self, seconds: float = 0.0, **kwargs: float) -> datetime:
        self._now = self._now + timedelta(seconds=seconds, **kwargs)
        return self._now

    def set(self, value: datetime) -> None:
        self._now = ensure_utc(value)


__all__ = ["Clock", "ManualClock", "utc_now", "ensure_utc", "isoformat", "epoch_millis"]
