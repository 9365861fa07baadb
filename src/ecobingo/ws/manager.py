"""Live WebSocket clients and their bingo topic subscriptions.

One ``ConnectionManager`` lives on ``app.state.connections``. It is also a
subscriber of the event bus: ``deliver`` pushes each bingo event to every
client subscribed to that topic.
"""

from __future__ import annotations

import json
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

import structlog
from fastapi import WebSocket

from ecobingo.bingo.types import Topic

logger = structlog.get_logger()

VALID_CHANNELS = frozenset(t.value for t in Topic)


@dataclass
class Client:
    websocket: WebSocket
    user_id: str
    topics: set[str] = field(default_factory=set)
    connected_at: float = field(default_factory=time.time)
    messages_sent: int = 0

    async def send(self, text: str) -> bool:
        try:
            await self.websocket.send_text(text)
        except Exception:
            return False
        self.messages_sent += 1
        return True


class ConnectionManager:
    """Registry of open sockets, indexed by connection id, topic and user."""

    def __init__(self, max_connections_per_user: int = 5) -> None:
        self.max_connections_per_user = max_connections_per_user
        self._clients: dict[str, Client] = {}
        self._by_topic: dict[str, set[str]] = defaultdict(set)
        self._by_user: dict[str, set[str]] = defaultdict(set)

    @property
    def connection_count(self) -> int:
        return len(self._clients)

    def can_accept(self, user_id: str) -> bool:
        """False once ``user_id`` already holds the maximum number of sockets."""
        return len(self._by_user.get(user_id, ())) < self.max_connections_per_user

    async def connect(self, websocket: WebSocket, conn_id: str, user_id: str) -> None:
        await websocket.accept()
        self._clients[conn_id] = Client(websocket=websocket, user_id=user_id)
        self._by_user[user_id].add(conn_id)
        logger.info("ws_connected", conn_id=conn_id, user_id=user_id)

    async def disconnect(self, conn_id: str) -> None:
        client = self._clients.pop(conn_id, None)
        if client is None:
            return
        for topic in client.topics:
            self._forget(self._by_topic, topic, conn_id)
        self._forget(self._by_user, client.user_id, conn_id)
        logger.info(
            "ws_disconnected",
            conn_id=conn_id,
            user_id=client.user_id,
            messages_sent=client.messages_sent,
        )

    async def subscribe(self, conn_id: str, channel: str) -> bool:
        """Subscribe to a bingo topic. Unknown topics and connections return False."""
        client = self._clients.get(conn_id)
        if client is None or channel not in VALID_CHANNELS:
            return False
        client.topics.add(channel)
        self._by_topic[channel].add(conn_id)
        logger.debug("ws_subscribed", conn_id=conn_id, channel=channel)
        return True

    async def unsubscribe(self, conn_id: str, channel: str) -> bool:
        client = self._clients.get(conn_id)
        if client is None:
            return False
        client.topics.discard(channel)
        self._forget(self._by_topic, channel, conn_id)
        return True

    async def broadcast_to_channel(self, channel: str, message: dict[str, Any]) -> int:
        """Push ``message`` to the topic's subscribers and return how many got it.

        A client whose send fails is disconnected and misses later events.
        """
        text = json.dumps({"channel": channel, "data": message})
        sent = 0
        for conn_id in list(self._by_topic.get(channel, ())):
            client = self._clients.get(conn_id)
            if client is not None and await client.send(text):
                sent += 1
            else:
                await self.disconnect(conn_id)
                self._forget(self._by_topic, channel, conn_id)
        return sent

    async def deliver(self, topic: str, payload: dict[str, Any]) -> None:
        sent = await self.broadcast_to_channel(topic, payload)
        if sent:
            logger.debug("ws_broadcast", channel=topic, recipients=sent)

    def get_stats(self) -> dict[str, Any]:
        return {
            "total_connections": len(self._clients),
            "unique_users": len(self._by_user),
            "channels": {topic: len(ids) for topic, ids in self._by_topic.items()},
        }

    @staticmethod
    def _forget(index: dict[str, set[str]], key: str, conn_id: str) -> None:
        ids = index.get(key)
        if ids is None:
            return
        ids.discard(conn_id)
        if not ids:
            del index[key]
