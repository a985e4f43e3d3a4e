"""
app/redis_client.py

Process-wide Redis clients.

The upload pipeline runs in FastAPI's worker threads and uses the synchronous
client; the WebSocket progress stream subscribes with the asyncio client.
Both are created once at startup and closed on shutdown.
"""

from __future__ import annotations

import logging

from redis import Redis, RedisError
from redis.asyncio import Redis as AsyncRedis

from app.config import StagingSettings

logger = logging.getLogger(__name__)

_client: Redis | None = None
_async_client: AsyncRedis | None = None


def init_redis(settings: StagingSettings) -> Redis | None:
    """
    Create the sync client and verify connectivity.

    Returns None when no URL is configured or the ping fails, in which case
    callers fall back to the no-op staging store.
    """

    global _client, _async_client
    if not settings.redis_url:
        logger.info("REDIS_URL not configured; CSV upload staging is disabled")
        return None

    client = Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=settings.socket_timeout_seconds,
        socket_connect_timeout=settings.socket_timeout_seconds,
    )
    try:
        client.ping()
    except RedisError:
        logger.exception("Redis ping failed; CSV upload staging is disabled")
        client.close()
        return None

    _client = client
    _async_client = AsyncRedis.from_url(settings.redis_url, decode_responses=True)
    logger.info("Redis client initialized")
    return client


def get_redis() -> Redis | None:
    return _client


def get_async_redis() -> AsyncRedis | None:
    return _async_client


async def close_redis() -> None:
    """Close both clients."""
    global _client, _async_client
    if _async_client is not None:
        await _async_client.aclose()
    if _client is not None:
        _client.close()
        logger.info("Redis client closed")
    _client = None
    _async_client = None
