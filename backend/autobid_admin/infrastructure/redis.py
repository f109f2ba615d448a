"""Redis client used for table change notifications.

Mutations publish a small JSON event on a channel; live views subscribe to
it. Delivery is treated as at-least-once by consumers.
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from enum import Enum, auto
from typing import Any, AsyncIterator

from redis.asyncio import Redis as AsyncRedis, from_url as async_from_url
from redis.exceptions import RedisError

logger = logging.getLogger("autobid_admin.redis")


class _RedisLifecycleState(Enum):
    """Lifecycle states for the Redis singleton.

    - UNINITIALIZED -> INITIALIZED (via init_redis)
    - INITIALIZED -> CLOSED (via close_redis)
    - CLOSED -> INITIALIZED (via init_redis - allows restart)
    """
    UNINITIALIZED = auto()
    INITIALIZED = auto()
    CLOSED = auto()


class RedisClient:
    """Async Redis client for publishing and subscribing to change events."""

    def __init__(self, redis_url: str) -> None:
        self._redis_url = redis_url
        self._redis: AsyncRedis | None = None

    async def connect(self) -> None:
        """Establish Redis connection."""
        if self._redis is None:
            self._redis = async_from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info("Redis connection established")

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            logger.info("Redis connection closed")

    async def _ensure_connected(self) -> AsyncRedis:
        if self._redis is None:
            await self.connect()
        assert self._redis is not None
        return self._redis

    async def publish(self, channel: str, event: dict[str, Any]) -> int:
        """Publish a JSON event. Returns the number of receiving subscribers."""
        redis = await self._ensure_connected()
        return int(await redis.publish(channel, json.dumps(event, default=str)))

    @asynccontextmanager
    async def subscribe(self, channel: str) -> AsyncIterator[AsyncIterator[dict[str, Any]]]:
        """Subscribe to ``channel`` for the duration of the context.

        Yields an async iterator of decoded events. The subscription is
        always released on exit.
        """
        redis = await self._ensure_connected()
        pubsub = redis.pubsub()
        await pubsub.subscribe(channel)
        logger.debug("Subscribed to channel=%s", channel)
        try:
            yield self._iter_events(pubsub)
        finally:
            try:
                await pubsub.unsubscribe(channel)
            except RedisError as exc:
                logger.warning("Unsubscribe failed channel=%s error=%s", channel, exc)
            await pubsub.aclose()
            logger.debug("Unsubscribed from channel=%s", channel)

    @staticmethod
    async def _iter_events(pubsub: Any) -> AsyncIterator[dict[str, Any]]:
        async for message in pubsub.listen():
            if message.get("type") != "message":
                continue
            data = message.get("data")
            try:
                event = json.loads(data) if isinstance(data, str) else {}
            except json.JSONDecodeError:
                logger.warning("Discarding malformed change event: %r", data)
                continue
            yield event if isinstance(event, dict) else {}


_redis_client: RedisClient | None = None
_redis_state: _RedisLifecycleState = _RedisLifecycleState.UNINITIALIZED
_redis_lock: asyncio.Lock = asyncio.Lock()


async def init_redis(redis_url: str) -> RedisClient:
    """Initialize the global Redis client. Idempotent."""
    global _redis_client, _redis_state

    async with _redis_lock:
        if _redis_state == _RedisLifecycleState.INITIALIZED:
            assert _redis_client is not None
            logger.debug("Redis already initialized, returning existing client")
            return _redis_client

        logger.info("Initializing Redis client (current state: %s)", _redis_state.name)
        _redis_client = RedisClient(redis_url)
        await _redis_client.connect()
        _redis_state = _RedisLifecycleState.INITIALIZED
        return _redis_client


async def close_redis() -> None:
    """Close the global Redis client. Idempotent."""
    global _redis_client, _redis_state

    async with _redis_lock:
        if _redis_state != _RedisLifecycleState.INITIALIZED:
            logger.debug("Redis not initialized (state: %s), nothing to close", _redis_state.name)
            return

        if _redis_client is not None:
            await _redis_client.disconnect()
            _redis_client = None
        _redis_state = _RedisLifecycleState.CLOSED


def get_redis() -> RedisClient:
    """Get the global Redis client.

    Raises:
        RuntimeError: If the client is not initialized
    """
    if _redis_state != _RedisLifecycleState.INITIALIZED or _redis_client is None:
        raise RuntimeError("Redis client not initialized. Call init_redis() first.")
    return _redis_client


def _reset_for_testing() -> None:
    global _redis_client, _redis_state
    _redis_client = None
    _redis_state = _RedisLifecycleState.UNINITIALIZED
