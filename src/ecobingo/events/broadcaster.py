"""Fire-and-forget event publication.

Mutating operations hand their events to ``EventBroadcaster.emit``, which
serializes them immediately and queues them without awaiting anything. A
single background worker drains the queue into the bus in FIFO order, so the
order of events produced by one operation is the order subscribers see.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any

import structlog

from ecobingo.bingo.schemas import event_payload
from ecobingo.bingo.types import BingoEvent
from ecobingo.events.bus import EventBus

logger = structlog.get_logger()


class EventBroadcaster:
    def __init__(self, bus: EventBus, maxsize: int = 10_000) -> None:
        self.bus = bus
        self._queue: asyncio.Queue[tuple[str, dict[str, Any]]] = asyncio.Queue(maxsize=maxsize)
        self._worker: asyncio.Task[None] | None = None
        self.published = 0
        self.dropped = 0

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def emit(self, events: Iterable[BingoEvent]) -> None:
        """Queue events for publication. Never blocks and never raises."""
        for event in events:
            try:
                self._queue.put_nowait((event.topic.value, event_payload(event)))
            except asyncio.QueueFull:
                self.dropped += 1
                logger.warning("event_dropped_queue_full", topic=event.topic.value, user_id=event.user_id)

    async def start(self) -> None:
        if self._worker is None:
            self._worker = asyncio.create_task(self._run())

    async def stop(self, timeout: float = 5.0) -> None:
        """Flush what is queued (bounded by ``timeout``), then stop the worker."""
        if self._worker is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("event_flush_timeout", pending=self.pending)
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def join(self) -> None:
        """Wait until everything queued so far has been handed to the bus."""
        await self._queue.join()

    async def _run(self) -> None:
        while True:
            topic, payload = await self._queue.get()
            try:
                await self.bus.publish(topic, payload)
                self.published += 1
            except Exception:
                logger.warning("event_publish_failed", topic=topic, exc_info=True)
            finally:
                self._queue.task_done()
