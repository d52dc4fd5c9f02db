"""
Cache module for the short link engine.
Implements Strategy Pattern for flexible cache backends.
"""

from .strategies import CacheStrategy, RedisCache, InMemoryCache, NullCache
from .factory import CacheFactory, CacheBackend
from .keys import link_key, clicks_key
from .best_effort import BestEffortCache

__all__ = [
    "CacheStrategy",
    "RedisCache",
    "InMemoryCache",
    "NullCache",
    "BestEffortCache",
    "CacheFactory",
    "CacheBackend",
    "link_key",
    "clicks_key",
]
