"""
Factory for creating cache instances.
Simple, clean factory with singleton caching.
"""

import logging
from enum import Enum

import redis
import redis.asyncio as aioredis

from .strategies import CacheStrategy, RedisCache, InMemoryCache, NullCache
from shortlink_app.config import settings

logger = logging.getLogger(__name__)


class CacheBackend(Enum):
    """Available cache backends"""
    REDIS = "redis"
    MEMORY = "memory"
    NULL = "null"


class CacheFactory:
    """
    Simple factory for creating cache instances.

    Uses Singleton Pattern - creates instance once, reuses it.
    Gets configuration from settings (not passed as parameters).
    """

    _instance: CacheStrategy = None  # Single cached instance

    @classmethod
    def create(cls, backend: CacheBackend) -> CacheStrategy:
        """
        Create or return cached cache instance.

        Args:
            backend: Type of cache backend (from enum)

        Returns:
            Singleton cache instance
        """
        if cls._instance is not None:
            return cls._instance

        if backend == CacheBackend.REDIS:
            try:
                # Probe synchronously so an unreachable Redis is caught at start-up
                probe = redis.from_url(
                    settings.redis_url,
                    socket_connect_timeout=2,
                    socket_timeout=2,
                )
                probe.ping()
                probe.close()

                redis_client = aioredis.from_url(
                    settings.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_connect_timeout=2,
                    socket_timeout=2,
                )
                cls._instance = RedisCache(redis_client)
                logger.info("Redis cache initialized (%s)", settings.redis_url)

            except redis.RedisError as e:
                logger.warning("Redis connection failed: %s. Falling back to in-memory cache", e)
                cls._instance = InMemoryCache()

        elif backend == CacheBackend.MEMORY:
            cls._instance = InMemoryCache()
            logger.info("In-memory cache initialized")

        elif backend == CacheBackend.NULL:
            cls._instance = NullCache()
            logger.info("Null cache initialized")

        else:
            raise ValueError(f"Unknown cache backend: {backend}")

        return cls._instance

    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None
