"""
Best-effort wrapper around any CacheStrategy.

Services talk to the cache through this wrapper: a CacheUnavailable from the
backend is logged and turned into a miss (or a no-op for writes), so cache
trouble never fails an operation that the database can still answer.
"""

import logging
from typing import Optional

from shortlink_app.exceptions import CacheUnavailable
from .strategies import CacheStrategy, NullCache

logger = logging.getLogger(__name__)


class BestEffortCache:
    def __init__(self, cache: Optional[CacheStrategy] = None):
        self.backend = cache if cache is not None else NullCache()

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.backend.get(key)
        except CacheUnavailable as e:
            logger.warning("Cache get failed for %s, treating as miss: %s", key, e)
            return None

    async def set(self, key: str, value: str, ttl: int) -> bool:
        try:
            return await self.backend.set(key, value, ttl=ttl)
        except CacheUnavailable as e:
            logger.warning("Cache set failed for %s: %s", key, e)
            return False

    async def delete(self, key: str) -> bool:
        try:
            return await self.backend.delete(key)
        except CacheUnavailable as e:
            logger.warning("Cache delete failed for %s: %s", key, e)
            return False

    async def exists(self, key: str) -> bool:
        try:
            return await self.backend.exists(key)
        except CacheUnavailable as e:
            logger.warning("Cache exists failed for %s: %s", key, e)
            return False

    async def incr(self, key: str, amount: int = 1) -> Optional[int]:
        try:
            return await self.backend.incr(key, amount)
        except CacheUnavailable as e:
            logger.warning("Cache incr failed for %s: %s", key, e)
            return None
