"""Redis connection management for the case store."""

import redis
from typing import Optional
import logging
from .settings import settings

logger = logging.getLogger(__name__)


class RedisConfig:
    """Redis configuration and connection management."""

    def __init__(self, redis_url: Optional[str] = None):
        self.redis_url = redis_url or settings.REDIS_URL
        self._client: Optional[redis.Redis] = None

    @property
    def client(self) -> redis.Redis:
        """Get Redis client connection."""
        if self._client is None:
            client = redis.from_url(
                self.redis_url,
                decode_responses=True,
                socket_connect_timeout=2,
                health_check_interval=30,
            )
            # Test connection
            try:
                client.ping()
                logger.info("Redis connection established")
            except redis.RedisError as e:
                logger.error(f"Redis connection failed: {e}")
                raise
            self._client = client
        return self._client


def get_redis_client(redis_url: Optional[str] = None) -> redis.Redis:
    """Open a verified Redis client for the given (or configured) URL."""
    return RedisConfig(redis_url).client
