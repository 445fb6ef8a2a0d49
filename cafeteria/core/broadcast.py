"""
Cafeteria — Notification fanout

Two message kinds are broadcast to every connected viewer (kitchen board,
admin dashboard):
  - new_order             full order payload, published after commit
  - order_status_updated  {id, status}

Delivery is best-effort and at-most-once: a subscriber only sees messages
published while it is connected, there is no replay and no ack. A viewer
that reconnects re-fetches GET /api/orders to resynchronise.

Backends:
  - memory  one bounded asyncio.Queue per subscriber, single process
  - redis   Redis pub/sub channel, one pub/sub connection per subscriber
"""
import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from cafeteria.core.config import get_settings
from cafeteria.core.redis_client import get_redis

settings = get_settings()
logger = logging.getLogger(__name__)

NEW_ORDER = "new_order"
ORDER_STATUS_UPDATED = "order_status_updated"


class QueueSubscription:
    def __init__(self, queue: asyncio.Queue):
        self._queue = queue

    async def next_event(self, timeout: float) -> dict[str, Any] | None:
        """Wait up to `timeout` seconds for the next message."""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None


class MemoryBroadcaster:
    """In-process hub. A full subscriber queue drops the message for that subscriber only."""

    def __init__(self, queue_size: int = 100):
        self._queue_size = queue_size
        self._subscribers: set[asyncio.Queue] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, event: str, data: dict[str, Any]) -> int:
        message = {"event": event, "data": data}
        delivered = 0
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(message)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning("Subscriber queue full, dropping %s event", event)
        return delivered

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[QueueSubscription]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.add(queue)
        try:
            yield QueueSubscription(queue)
        finally:
            self._subscribers.discard(queue)

    async def ping(self) -> bool:
        return True

    async def close(self):
        self._subscribers.clear()


class PubSubSubscription:
    def __init__(self, pubsub):
        self._pubsub = pubsub

    async def next_event(self, timeout: float) -> dict[str, Any] | None:
        message = await self._pubsub.get_message(ignore_subscribe_messages=True, timeout=timeout)
        if not message or message["type"] != "message":
            return None
        try:
            return json.loads(message["data"])
        except ValueError:
            logger.warning("Discarding malformed broadcast payload: %.100s", message["data"])
            return None


class RedisBroadcaster:
    """Redis pub/sub fanout. Lets several API workers share one event stream."""

    def __init__(self, channel: str):
        self.channel = channel

    async def publish(self, event: str, data: dict[str, Any]) -> int:
        redis = get_redis()
        return await redis.publish(self.channel, json.dumps({"event": event, "data": data}))

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[PubSubSubscription]:
        pubsub = get_redis().pubsub()
        await pubsub.subscribe(self.channel)
        try:
            yield PubSubSubscription(pubsub)
        finally:
            await pubsub.unsubscribe(self.channel)
            await pubsub.aclose()

    async def ping(self) -> bool:
        return await get_redis().ping()

    async def close(self):
        pass


_broadcaster: MemoryBroadcaster | RedisBroadcaster | None = None


def get_broadcaster() -> MemoryBroadcaster | RedisBroadcaster:
    global _broadcaster
    if _broadcaster is None:
        if settings.BROADCAST_BACKEND == "redis":
            _broadcaster = RedisBroadcaster(settings.BROADCAST_CHANNEL)
        elif settings.BROADCAST_BACKEND == "memory":
            _broadcaster = MemoryBroadcaster(settings.BROADCAST_QUEUE_SIZE)
        else:
            raise ValueError(f"Unknown BROADCAST_BACKEND '{settings.BROADCAST_BACKEND}'")
    return _broadcaster


async def close_broadcaster():
    global _broadcaster
    if _broadcaster:
        await _broadcaster.close()
        _broadcaster = None
