"""Redis connection used by the user identity cache and health checks."""

import logging
from functools import lru_cache

import redis

from app.core.config import settings

logger = logging.getLogger(__name__)


@lru_cache
def get_redis() -> redis.Redis:
    """Return a shared client; connections are opened lazily by the pool."""
    return redis.Redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        socket_connect_timeout=2.0,
        socket_timeout=2.0,
    )


def check_redis_connected(client: redis.Redis) -> bool:
    """PING the server to verify redis is reachable."""
    try:
        return bool(client.ping())
    except redis.RedisError as e:
        logger.warning("Redis health check failed: %s", e)
        return False
