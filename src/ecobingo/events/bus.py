"""Event bus implementations.

``InMemoryEventBus`` fans out inside the process. ``RedisEventBus`` publishes
to Redis pub/sub so every API replica's WebSocket clients see the event, and
runs a listener loop that hands received messages to local subscribers.
Delivery is best-effort in both: a subscriber that is not listening misses
the event.
"""

from __future__ import annotations

import asyncio
import json
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

from ecobingo.bingo.types import Topic

logger = structlog.get_logger()

Handler = Callable[[str, dict[str, Any]], Awaitable[Any]]

CHANNEL_PREFIX = "pubsub:"


class EventBus(Protocol):
    async def publish(self, topic: str, payload: dict[str, Any]) -> None: ...

    def subscribe(self, topic: str, handler: Handler) -> None: ...

    async def start(self) -> None: ...

    async def stop(self) -> None: ...


async def _dispatch(handlers: list[Handler], topic: str, payload: dict[str, Any]) -> int:
    delivered = 0
    for handler in handlers:
        try:
            await handler(topic, payload)
            delivered += 1
        except Exception:
            logger.warning("event_handler_failed", topic=topic, exc_info=True)
    return delivered


class InMemoryEventBus:
    """Single-process bus. Publishing awaits every subscriber in turn."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Handler) -> None:
        self._handlers[topic].append(handler)

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        await _dispatch(list(self._handlers.get(topic, [])), topic, payload)

    async def start(self) -> None:
        return None

    async def stop(self) -> None:
        return None


class RedisEventBus:
    """Redis pub/sub bus. Topic ``t`` travels on channel ``pubsub:t``.

    The listener survives connection loss: it logs the failure, waits and
    subscribes again, doubling the wait up to ``max_reconnect_delay``.
    Events published while it is disconnected are missed.
    """

    def __init__(
        self,
        redis_client: aioredis.Redis,
        topics: tuple[str, ...] | None = None,
        reconnect_delay: float = 1.0,
        max_reconnect_delay: float = 30.0,
    ) -> None:
        self.redis = redis_client
        self.topics = topics or tuple(t.value for t in Topic)
        self.reconnect_delay = reconnect_delay
        self.max_reconnect_delay = max_reconnect_delay
        self.reconnects = 0
        self._subscribed = False
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._running = False
        self._task: asyncio.Task[None] | None = None

    def subscribe(self, topic: str, handler: Handler) -> None:
        self._handlers[topic].append(handler)

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        await self.redis.publish(f"{CHANNEL_PREFIX}{topic}", json.dumps(payload))

    async def start(self) -> None:
        """Spawn the listener loop in the background."""
        if self._task is None:
            self._running = True
            self._task = asyncio.create_task(self.listen())

    async def stop(self) -> None:
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def listen(self) -> None:
        """Forward Redis pub/sub messages to local subscribers until stopped."""
        self._running = True
        delay = self.reconnect_delay
        while self._running:
            try:
                await self._consume()
            except (RedisError, OSError) as exc:
                if not self._running:
                    break
                if self._subscribed:
                    delay = self.reconnect_delay
                self.reconnects += 1
                logger.warning("event_bus_connection_lost", error=str(exc), retry_in=delay)
                await asyncio.sleep(delay)
                delay = min(delay * 2, self.max_reconnect_delay)
        logger.info("event_bus_stopped")

    async def _consume(self) -> None:
        self._subscribed = False
        pubsub = self.redis.pubsub()
        channels = [f"{CHANNEL_PREFIX}{t}" for t in self.topics]
        try:
            await pubsub.subscribe(*channels)
            self._subscribed = True
            logger.info("event_bus_listening", channels=channels)
            while self._running:
                message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                if message is not None:
                    await self._forward(message)
        finally:
            try:
                await pubsub.unsubscribe()
                await pubsub.aclose()
            except (RedisError, OSError):
                logger.debug("event_bus_close_failed", exc_info=True)

    async def _forward(self, message: dict[str, Any]) -> None:
        channel = message.get("channel", "")
        if isinstance(channel, bytes):
            channel = channel.decode()
        topic = channel.removeprefix(CHANNEL_PREFIX)

        try:
            data = message.get("data", b"")
            if isinstance(data, bytes):
                data = data.decode()
            payload = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("event_bus_invalid_message", channel=channel)
            return

        handlers = list(self._handlers.get(topic, []))
        if handlers:
            await _dispatch(handlers, topic, payload)
