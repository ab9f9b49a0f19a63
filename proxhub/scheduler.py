"""Recurring background work for the monitoring service."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Run ``callback`` every ``interval`` seconds until stopped.

    A failing tick is logged and abandons only that tick's remaining
    work; the next tick still fires. ``run_once`` executes a single tick
    synchronously so callers can drive the schedule by hand. ``sleep``
    replaces the wait between ticks; by default the task waits on its stop
    event so a stop request wakes it early.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        callback: Callable[[], object],
        *,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.name = name
        self.interval = interval
        self._callback = callback
        self._sleep = sleep
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> bool:
        try:
            self._callback()
        except Exception:
            self.failures += 1
            logger.exception("Periodic task %s failed", self.name)
            return False
        return True

    async def run(self) -> None:
        stop_event = asyncio.Event()
        self._stop_event = stop_event
        logger.debug("Periodic task %s started (every %.1fs)", self.name, self.interval)
        try:
            while not stop_event.is_set():
                if self._sleep is not None:
                    await self._sleep(self.interval)
                else:
                    await self._sleep_with_stop(self.interval, stop_event)
                if stop_event.is_set():
                    break
                self.run_once()
        finally:
            stop_event.set()
            logger.debug("Periodic task %s stopped", self.name)

    def start(self) -> asyncio.Task:
        """Schedule ``run`` on the running event loop."""
        if self.running:
            assert self._task is not None
            return self._task
        self._task = asyncio.get_running_loop().create_task(self.run(), name=f"periodic:{self.name}")
        return self._task

    def request_stop(self) -> None:
        if self._stop_event:
            self._stop_event.set()

    async def stop(self) -> None:
        self.request_stop()
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _sleep_with_stop(self, duration: float, stop_event: asyncio.Event) -> None:
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=duration)
        except asyncio.TimeoutError:
            pass


__all__ = ["PeriodicTask"]
