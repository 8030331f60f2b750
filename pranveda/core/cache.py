# pranveda/core/cache.py
"""
Redis connection shared by the rate limiter.

Graceful degradation: when REDIS_URL is unset or the server cannot be
reached, get_redis_client() returns None and callers skip their Redis work.
A failed connection is retried at most every RECONNECT_INTERVAL seconds so
an outage does not add a connect timeout to every request.
"""
import logging
import time

import redis
from redis.exceptions import RedisError

from pranveda.core.config import get_settings

logger = logging.getLogger(__name__)

RECONNECT_INTERVAL = 30  # seconds

_redis_client: redis.Redis | None = None
_last_failure: float | None = None


def get_redis_client() -> redis.Redis | None:
    """Get the pooled Redis client, or None if Redis is unavailable."""
    global _redis_client, _last_failure

    if _redis_client is not None:
        return _redis_client

    url = get_settings().REDIS_URL
    if not url:
        return None
    if _last_failure is not None and time.monotonic() - _last_failure < RECONNECT_INTERVAL:
        return None

    try:
        client = redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
            health_check_interval=30,
        )
        client.ping()
    except RedisError as exc:
        logger.warning("Redis unavailable: %s. Rate limiting disabled.", exc)
        _last_failure = time.monotonic()
        return None

    logger.info("Redis connection established")
    _redis_client = client
    _last_failure = None
    return _redis_client

