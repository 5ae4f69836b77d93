"""Ordered, fire-and-forget event channel between the tab boundary and the sidebar."""

from __future__ import annotations

import asyncio
from typing import Callable

from loguru import logger

from tab_grouper.bus.events import SidebarEvent

EventHandler = Callable[[SidebarEvent], None]


class EventRelay:
    """
    Unbounded FIFO of sidebar events with a single consumer.

    Publishers never wait. One consumer applies events one at a time, so
    events for the same tab arrive in the order they were published.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[SidebarEvent] = asyncio.Queue()
        self._running = False
        self.published = 0
        self.delivered = 0

    def publish(self, event: SidebarEvent) -> None:
        """Queue an event without blocking the caller."""
        self._queue.put_nowait(event)
        self.published += 1
        logger.debug("Relay queued {} (key={})", type(event).__name__, event.key)

    async def run(self, handler: EventHandler) -> None:
        """Deliver events to ``handler`` until :meth:`stop` is called."""
        self._running = True
        logger.info("Event relay started")
        while self._running:
            try:
                event = await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            self._deliver(event, handler)
        logger.info("Event relay stopped")

    def drain(self, handler: EventHandler) -> int:
        """Deliver every event queued right now; returns how many were handled."""
        count = 0
        while True:
            try:
                event = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return count
            self._deliver(event, handler)
            count += 1

    def stop(self) -> None:
        self._running = False

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def _deliver(self, event: SidebarEvent, handler: EventHandler) -> None:
        try:
            handler(event)
        except Exception:
            logger.exception(f"Event handler failed for {type(event).__name__}")
        finally:
            self.delivered += 1
            self._queue.task_done()
