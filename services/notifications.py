"""
Live order notifications for connected sellers.

The order services only ever call ``emit(event)``. Delivery is at-most-once
and best-effort: a seller with no open socket simply misses the event, and a
failed hand-off is logged and dropped without touching the order.

Two backends:
    memory  the event is scheduled straight onto the loop that owns the
            sockets of this process
    redis   the event is published to a Redis channel and every API process
            runs ``relay_redis_events`` to forward it to its own sockets
"""
import asyncio
import json
import logging
from typing import Any, Callable, Dict, Optional, Protocol, Set

import redis
import redis.asyncio as aioredis

from core.config import settings
from schemas.events import OrderEvent

logger = logging.getLogger(__name__)

RELAY_RETRY_SECONDS = 2.0


class EventSocket(Protocol):
    async def send_json(self, data: Any) -> None: ...


class SellerChannelRegistry:
    """Open sockets keyed by seller id."""

    def __init__(self) -> None:
        self._channels: Dict[int, set] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        # Strong references to in-flight broadcasts; the loop only keeps weak ones
        self._pending: Set[asyncio.Task] = set()

    def connect(self, seller_id: int, socket: EventSocket) -> None:
        # Must be called from the loop that serves the socket
        self._loop = asyncio.get_running_loop()
        self._channels.setdefault(seller_id, set()).add(socket)
        logger.info("Seller %s connected (%d open)", seller_id, len(self._channels[seller_id]))

    def disconnect(self, seller_id: int, socket: EventSocket) -> None:
        sockets = self._channels.get(seller_id)
        if not sockets:
            return
        sockets.discard(socket)
        if not sockets:
            del self._channels[seller_id]
        logger.info("Seller %s disconnected", seller_id)

    def connection_count(self, seller_id: int) -> int:
        return len(self._channels.get(seller_id, ()))

    async def broadcast(self, seller_id: int, message: dict) -> int:
        """Send to every socket of the seller; returns how many sends succeeded."""
        delivered = 0
        for socket in list(self._channels.get(seller_id, ())):
            try:
                await socket.send_json(message)
                delivered += 1
            except Exception:
                logger.warning("Dropping dead socket for seller %s", seller_id, exc_info=True)
                self.disconnect(seller_id, socket)
        return delivered

    def dispatch(self, seller_id: int, message: dict) -> None:
        """Schedule a broadcast without waiting for it. Safe to call from worker threads."""
        loop = self._loop
        if loop is None or loop.is_closed() or seller_id not in self._channels:
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            task = loop.create_task(self.broadcast(seller_id, message))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        else:
            asyncio.run_coroutine_threadsafe(self.broadcast(seller_id, message), loop)

    def clear(self) -> None:
        self._channels.clear()
        self._loop = None


registry = SellerChannelRegistry()


class MemoryPublisher:
    def __init__(self, channels: SellerChannelRegistry):
        self.channels = channels

    def publish(self, event: OrderEvent) -> None:
        self.channels.dispatch(event.seller_id, event.to_message())


class RedisPublisher:
    def __init__(self, client: redis.Redis, channel: str):
        self.client = client
        self.channel = channel

    def publish(self, event: OrderEvent) -> None:
        self.client.publish(self.channel, json.dumps(event.to_message()))


_publisher: MemoryPublisher | RedisPublisher | None = None


def get_publisher() -> MemoryPublisher | RedisPublisher:
    global _publisher
    if _publisher is None:
        if settings.NOTIFICATION_BACKEND == "redis":
            client = redis.from_url(settings.REDIS_URL, decode_responses=True)
            _publisher = RedisPublisher(client, settings.ORDER_EVENTS_CHANNEL)
        else:
            _publisher = MemoryPublisher(registry)
    return _publisher


def publish_event(event: OrderEvent) -> None:
    get_publisher().publish(event)


def emit(event: OrderEvent, publish: Optional[Callable[[OrderEvent], None]] = None) -> bool:
    """Hand an event to the fan-out. Never raises; returns False if the hand-off failed."""
    publish = publish or publish_event
    try:
        publish(event)
    except Exception:
        logger.warning(
            "Dropped %s event for order %s (seller %s)",
            event.event, event.order_number, event.seller_id, exc_info=True,
        )
        return False
    return True


async def relay_redis_events(
    channels: SellerChannelRegistry,
    redis_url: str,
    channel: str,
    shutdown_event: asyncio.Event,
    retry_delay: float = RELAY_RETRY_SECONDS,
) -> None:
    """Forward events from the Redis channel to this process's sockets until shutdown.

    A lost Redis connection is logged and the subscription is re-established
    after ``retry_delay`` seconds, so live notifications come back on their own.
    """
    while not shutdown_event.is_set():
        try:
            await _relay_once(channels, redis_url, channel, shutdown_event)
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError, OSError):
            logger.warning("Lost %s subscription, retrying in %ss", channel, retry_delay, exc_info=True)
            try:
                await asyncio.wait_for(shutdown_event.wait(), timeout=retry_delay)
            except asyncio.TimeoutError:
                pass


async def _relay_once(
    channels: SellerChannelRegistry,
    redis_url: str,
    channel: str,
    shutdown_event: asyncio.Event,
) -> None:
    redis_conn = aioredis.from_url(redis_url, decode_responses=True)
    pubsub = redis_conn.pubsub()
    try:
        await pubsub.subscribe(channel)
        logger.info("Subscribed to %s channel", channel)
        while not shutdown_event.is_set():
            message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
            if message and message["type"] == "message":
                try:
                    data = json.loads(message["data"])
                    await channels.broadcast(int(data["sellerId"]), data)
                except (ValueError, KeyError, TypeError):
                    logger.exception("Discarding malformed order event")
            else:
                await asyncio.sleep(0.1)
    finally:
        try:
            await pubsub.aclose()
            await redis_conn.aclose()
        except (redis.exceptions.ConnectionError, OSError):
            logger.debug("Error closing %s subscription", channel, exc_info=True)
