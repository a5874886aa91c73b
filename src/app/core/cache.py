"""HTTP response caching for Yahoo Finance price lookups (requests-cache + Redis).

yfinance talks to Yahoo through ``requests``; installing a requests-cache
session globally lets repeated fund price lookups within a short window be
served from Redis. Valuations need fresh prices, so the expirations are
short. When Redis is unreachable caching is skipped and lookups go straight
to Yahoo.
"""

import logging
from datetime import timedelta
from typing import Any

import requests_cache
from redis import Redis
from redis.exceptions import RedisError
from requests_cache.backends.redis import RedisCache

from app.core.config import settings

logger = logging.getLogger(__name__)

CACHE_NAMESPACE = "price_lookups"

# Expiration per Yahoo endpoint family
CACHE_EXPIRATION = {
    # Last daily close used for fund valuation
    "quote": timedelta(minutes=15),
    # Ticker metadata consulted by yfinance (currency, exchange)
    "metadata": timedelta(hours=6),
    "default": timedelta(hours=1),
}

URLS_EXPIRE_AFTER = {
    "*/v8/finance/chart/*": CACHE_EXPIRATION["quote"],
    "*/v7/finance/quote*": CACHE_EXPIRATION["quote"],
    "*/v10/finance/quoteSummary/*": CACHE_EXPIRATION["metadata"],
    "*/v1/finance/search*": CACHE_EXPIRATION["metadata"],
    "*finance.yahoo.com*": CACHE_EXPIRATION["default"],
}


def get_redis_connection() -> "Redis[Any] | None":
    """
    Connect to Redis for the HTTP cache.

    Returns:
        Redis client instance, or None if Redis cannot be reached
    """
    try:
        redis_client: Redis[Any] = Redis.from_url(
            settings.REDIS_URL,
            decode_responses=False,  # requests-cache stores pickled responses
            socket_connect_timeout=settings.REDIS_SOCKET_CONNECT_TIMEOUT,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        )
        redis_client.ping()
        logger.info(f"Connected to Redis at {settings.REDIS_URL}")
        return redis_client
    except RedisError as e:
        logger.warning(f"Failed to connect to Redis: {e}. Price lookup caching disabled.")
        return None


def configure_price_cache() -> bool:
    """
    Install the Redis-backed requests-cache used by yfinance price lookups.

    Called once from the application lifespan. Stale responses are served
    when Yahoo errors out.

    Returns:
        True if the cache was installed, False if caching stays disabled
    """
    redis_conn = get_redis_connection()
    if redis_conn is None:
        logger.warning("Skipping price cache configuration - Redis unavailable")
        return False

    try:
        backend = RedisCache(namespace=CACHE_NAMESPACE, connection=redis_conn)
        requests_cache.install_cache(
            backend=backend,
            urls_expire_after=URLS_EXPIRE_AFTER,
            allowable_methods=("GET",),
            stale_if_error=True,
        )
    except (RedisError, ValueError) as e:
        logger.error(f"Failed to configure price cache: {e}")
        return False

    logger.info(
        f"Configured price cache (quotes: {CACHE_EXPIRATION['quote']}, "
        f"metadata: {CACHE_EXPIRATION['metadata']})"
    )
    return True


def clear_price_cache() -> bool:
    """
    Remove every cached Yahoo response.

    Returns:
        True if a cache was cleared, False if no cache is installed
    """
    cache = requests_cache.get_cache()
    if cache is None:
        logger.warning("No active price cache to clear")
        return False
    try:
        cache.clear()
    except RedisError as e:
        logger.error(f"Failed to clear price cache: {e}")
        return False
    logger.info("Cleared price cache")
    return True


def get_cache_stats() -> dict[str, Any]:
    """
    Describe the installed price cache.

    Returns:
        Dictionary with:
        - enabled: Whether caching is active
        - backend: Backend class name (when enabled)
        - size: Number of cached responses, or "unavailable"
    """
    cache = requests_cache.get_cache()
    if cache is None:
        return {"enabled": False}

    stats: dict[str, Any] = {"enabled": True, "backend": type(cache).__name__}
    try:
        stats["size"] = len(cache.responses)
    except (RedisError, TypeError):
        stats["size"] = "unavailable"
    return stats
