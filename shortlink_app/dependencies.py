"""
Composition root for the short link engine.

Provides process-wide instances of the cache and the short code generator,
and builds a LinkService around a caller-owned database session.

Pattern: Dependency Injection
- Services never create their infrastructure
- Easy to test (inject fakes)
- Flexible (swap implementations via config)
"""

from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator

from sqlalchemy.orm import Session

from shortlink_app.cache.factory import CacheFactory, CacheBackend
from shortlink_app.cache.strategies import CacheStrategy
from shortlink_app.config import settings
from shortlink_app.database.connection import SessionLocal
from shortlink_app.services.link_service import LinkService
from shortlink_app.services.short_code_factory import ShortCodeFactory
from shortlink_app.services.short_code_strategies import ShortCodeStrategy


@lru_cache()
def get_cache() -> CacheStrategy:
    """
    Get cache instance (singleton).

    Factory gets config from settings internally.
    @lru_cache ensures this is called only once.
    """
    backend = CacheBackend(settings.cache_backend)
    return CacheFactory.create(backend)


@lru_cache()
def get_code_strategy() -> ShortCodeStrategy:
    """Get the configured short code generator (singleton)"""
    return ShortCodeFactory.create_strategy()


def get_link_service(db: Session) -> LinkService:
    """
    Get LinkService with all dependencies injected.

    The session belongs to the caller (one per request or task).
    """
    return LinkService(db=db, cache=get_cache(), code_strategy=get_code_strategy())


@contextmanager
def link_service_scope() -> Iterator[LinkService]:
    """Open a session, hand out a LinkService bound to it, close the session"""
    db = SessionLocal()
    try:
        yield get_link_service(db)
    finally:
        db.close()
