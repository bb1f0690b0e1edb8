"""
Redis caching service for dashboard statistics.

CACHING STRATEGY
================

What we cache:
  - The admin dashboard statistics payload (JSON-serialized)
  - Cache key: "dashboard:stats"

Why:
  - Dashboard stats aggregate over the whole bookings table
  - They are read far more often than bookings change state

Invalidation strategy:
  - Every booking transition deletes the key
  - TTL-based expiry as safety net (REDIS_CACHE_TTL)

When Redis is disabled or unreachable every call degrades to a no-op and
stats are computed from the database on each request.
"""

import json
from typing import Optional

import redis.asyncio as redis
from companion_booking.core.config import get_settings
from companion_booking.core.logging import get_logger
from companion_booking.core.metrics import record_cache_operation, redis_available, redis_connection_errors

logger = get_logger(__name__)
settings = get_settings()

DASHBOARD_STATS_KEY = "dashboard:stats"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            redis_available.set(1)
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            redis_connection_errors.inc()
            redis_available.set(0)
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.close()
        _redis_client = None


async def get_cached_dashboard_stats() -> Optional[dict]:
    client = await get_redis()
    if not client:
        return None

    try:
        data = await client.get(DASHBOARD_STATS_KEY)
        record_cache_operation("get", hit=bool(data))
        if data:
            return json.loads(data)
    except Exception as e:
        logger.error("cache_get_error", key=DASHBOARD_STATS_KEY, error=str(e))

    return None


async def set_cached_dashboard_stats(data: dict) -> None:
    """Cache dashboard stats with TTL."""
    client = await get_redis()
    if not client:
        return

    try:
        await client.setex(DASHBOARD_STATS_KEY, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=DASHBOARD_STATS_KEY, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=DASHBOARD_STATS_KEY, error=str(e))


async def invalidate_dashboard_cache() -> None:
    client = await get_redis()
    if not client:
        return

    try:
        await client.delete(DASHBOARD_STATS_KEY)
        logger.debug("cache_invalidated", key=DASHBOARD_STATS_KEY)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
