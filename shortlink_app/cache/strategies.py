"""
Cache strategies using Strategy Pattern.
Allows switching between different cache backends (Redis, In-Memory, Null).

The cache is never the source of truth. Backends raise CacheUnavailable when
they cannot answer; the services catch it, log it and fall back to the
database.
"""

import time
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

import redis

from shortlink_app.exceptions import CacheUnavailable


class CacheStrategy(ABC):
    """
    Abstract base class for cache strategies.

    This is the Strategy Pattern interface - allows multiple cache implementations
    without changing the service layer code.

    All methods are async because cache operations involve I/O (network for Redis).
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        """
        Set value in cache with TTL (Time To Live).

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds (default: 1 hour)

        Returns:
            True if successful, False otherwise
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Delete key from cache.

        Returns:
            True if deleted, False if key didn't exist
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if key exists in cache."""
        pass

    @abstractmethod
    async def incr(self, key: str, amount: int = 1) -> int:
        """
        Increment an integer counter.

        Callers create counters with set() so the TTL is explicit; a missing
        key starts from zero the way Redis INCRBY does.

        Returns:
            The value after the increment
        """
        pass

    @abstractmethod
    async def clear(self) -> bool:
        """Clear all cache entries."""
        pass


class RedisCache(CacheStrategy):
    """
    Redis cache implementation with async operations.

    Production-ready cache with:
    - Distributed caching (multiple servers can share cache)
    - Atomic counters (INCRBY)
    - TTL support
    - Non-blocking I/O (redis.asyncio)

    Any redis.RedisError is re-raised as CacheUnavailable.
    """

    def __init__(self, redis_client):
        """
        Initialize Redis cache.

        Args:
            redis_client: redis.asyncio.Redis instance (decode_responses=True)
        """
        self.redis = redis_client

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.redis.get(key)
        except redis.RedisError as e:
            raise CacheUnavailable(f"Redis get error: {e}") from e

    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        try:
            return bool(await self.redis.set(key, value, ex=ttl))
        except redis.RedisError as e:
            raise CacheUnavailable(f"Redis set error: {e}") from e

    async def delete(self, key: str) -> bool:
        try:
            return bool(await self.redis.delete(key))
        except redis.RedisError as e:
            raise CacheUnavailable(f"Redis delete error: {e}") from e

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self.redis.exists(key))
        except redis.RedisError as e:
            raise CacheUnavailable(f"Redis exists error: {e}") from e

    async def incr(self, key: str, amount: int = 1) -> int:
        try:
            return int(await self.redis.incrby(key, amount))
        except redis.RedisError as e:
            raise CacheUnavailable(f"Redis incr error: {e}") from e

    async def clear(self) -> bool:
        """Clear all Redis keys (use with caution!)"""
        try:
            await self.redis.flushdb()
            return True
        except redis.RedisError as e:
            raise CacheUnavailable(f"Redis clear error: {e}") from e

    async def close(self) -> None:
        await self.redis.aclose()


class InMemoryCache(CacheStrategy):
    """
    In-memory cache implementation using Python dict.

    Entries carry a monotonic deadline and are dropped lazily on access, so
    TTLs behave like Redis for a single process.

    Used in development/testing environments.
    Note: Async for interface consistency, but operations are instant.
    """

    def __init__(self, clock=time.monotonic):
        self._cache: Dict[str, Tuple[str, Optional[float]]] = {}
        self._clock = clock

    def _live_entry(self, key: str) -> Optional[Tuple[str, Optional[float]]]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        _, deadline = entry
        if deadline is not None and deadline <= self._clock():
            del self._cache[key]
            return None
        return entry

    async def get(self, key: str) -> Optional[str]:
        entry = self._live_entry(key)
        return entry[0] if entry else None

    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        deadline = self._clock() + ttl if ttl and ttl > 0 else None
        self._cache[key] = (str(value), deadline)
        return True

    async def delete(self, key: str) -> bool:
        if self._live_entry(key) is not None:
            del self._cache[key]
            return True
        return False

    async def exists(self, key: str) -> bool:
        return self._live_entry(key) is not None

    async def incr(self, key: str, amount: int = 1) -> int:
        entry = self._live_entry(key)
        if entry is None:
            value, deadline = 0, None
        else:
            try:
                value, deadline = int(entry[0]), entry[1]
            except ValueError as e:
                # Same outcome as Redis INCR on a non-integer value
                raise CacheUnavailable(f"Value at {key} is not an integer") from e
        value += amount
        self._cache[key] = (str(value), deadline)
        return value

    async def clear(self) -> bool:
        self._cache.clear()
        return True


class NullCache(CacheStrategy):
    """
    Null Object Pattern - cache that does nothing.

    Every read is a miss, so every lookup goes to the database.
    """

    async def get(self, key: str) -> Optional[str]:
        return None

    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        return True

    async def delete(self, key: str) -> bool:
        return True

    async def exists(self, key: str) -> bool:
        return False

    async def incr(self, key: str, amount: int = 1) -> int:
        return amount

    async def clear(self) -> bool:
        return True
