"""
Redis Cache for Google Books Responses

Searches and volume lookups are stored as JSON under keys built by
search_key() and volume_key(), so autocomplete keystrokes and repeated
imports reuse one Google response for settings.cache_ttl_external seconds.

With CACHE_ENABLED=false, or with Redis unreachable, reads always miss
and writes do nothing; callers never see a Redis error.
"""

import json
import logging
from typing import Any, Optional

import redis
from redis.exceptions import RedisError

from bookshelf.config import get_settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "bookshelf:google"

_redis_client: Optional[redis.Redis] = None


# =============================================================================
# Connection
# =============================================================================
def get_redis_client() -> Optional[redis.Redis]:
    """
    Shared Redis client, connected on first use.

    Returns None when caching is disabled or the ping fails; the next
    call tries again.
    """
    global _redis_client

    settings = get_settings()
    if not settings.cache_enabled:
        return None
    if _redis_client is not None:
        return _redis_client

    try:
        client = redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        client.ping()
    except RedisError as e:
        logger.warning(f"Redis unavailable at {settings.redis_url}: {e}")
        return None

    logger.info("Connected to Redis for Google Books caching")
    _redis_client = client
    return _redis_client


def close_redis_connection() -> None:
    global _redis_client
    if _redis_client is None:
        return
    _redis_client.close()
    _redis_client = None
    logger.info("Redis connection closed")


# =============================================================================
# Keys
# =============================================================================
def search_key(query: str, max_results: int) -> str:
    """
    Key for one Google search.

    The query is trimmed and lower-cased so "Dune" and " dune" share
    an entry:
        search_key("Dune ", 10) -> "bookshelf:google:search:10:dune"
    """
    return f"{KEY_PREFIX}:search:{max_results}:{query.strip().lower()}"


def volume_key(volume_id: str) -> str:
    """search_key()'s counterpart for a single volume id (case kept)."""
    return f"{KEY_PREFIX}:volume:{volume_id}"


# =============================================================================
# Reads and writes
# =============================================================================
def cache_get(key: str) -> Optional[Any]:
    """Decoded JSON stored under `key`, or None on a miss or any error."""
    client = get_redis_client()
    if client is None:
        return None

    try:
        raw = client.get(key)
    except RedisError as e:
        logger.warning(f"Cache read failed for {key}: {e}")
        return None

    if raw is None:
        logger.debug(f"Cache miss: {key}")
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Discarding unreadable cache entry {key}")
        return None
    logger.debug(f"Cache hit: {key}")
    return value


def cache_set(key: str, value: Any, ttl: Optional[int] = None) -> bool:
    """
    Store `value` as JSON under `key`.

    Args:
        key: Key from search_key() or volume_key()
        value: JSON-serializable data (dates become strings)
        ttl: Seconds to keep it, settings.cache_ttl when omitted

    Returns:
        Whether the value was written
    """
    client = get_redis_client()
    if client is None:
        return False

    expires = ttl if ttl is not None else get_settings().cache_ttl
    try:
        client.setex(key, expires, json.dumps(value, default=str))
    except (RedisError, TypeError, ValueError) as e:
        logger.warning(f"Cache write failed for {key}: {e}")
        return False
    return True


def get_cache_stats() -> dict:
    """Cache section of /health."""
    if not get_settings().cache_enabled:
        return {"status": "disabled"}

    client = get_redis_client()
    if client is None:
        return {"status": "disconnected"}

    try:
        stats = client.info("stats")
        return {
            "status": "connected",
            "hits": stats.get("keyspace_hits", 0),
            "misses": stats.get("keyspace_misses", 0),
            "keys": client.dbsize(),
        }
    except RedisError:
        return {"status": "error"}
