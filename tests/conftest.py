"""
Test configuration and fixtures for the short link engine.
This centralizes all test setup, making individual tests clean.
"""

import itertools
from datetime import timedelta

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shortlink_app.cache.strategies import CacheStrategy, InMemoryCache
from shortlink_app.clock import utcnow
from shortlink_app.database.connection import Base, make_engine
from shortlink_app.exceptions import CacheUnavailable
from shortlink_app.models import Link
from shortlink_app.services.link_service import LinkService
from shortlink_app.services.short_code_strategies import ShortCodeStrategy

# One in-memory database per test, shared by every session through StaticPool
engine = make_engine("sqlite://", poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class SequenceCodeStrategy(ShortCodeStrategy):
    """Hands out predefined codes, then repeats the last one"""

    def __init__(self, *codes: str):
        super().__init__(length=len(codes[0]))
        self.codes = list(codes)
        self.calls = 0

    def generate(self) -> str:
        self.calls += 1
        return self.codes[min(self.calls, len(self.codes)) - 1]


class BrokenCache(CacheStrategy):
    """Cache whose backend is down: every call raises CacheUnavailable"""

    def __init__(self):
        self.calls = itertools.count()

    async def _fail(self, *args, **kwargs):
        next(self.calls)
        raise CacheUnavailable("connection refused")

    get = set = delete = exists = incr = clear = _fail


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    This ensures tests are isolated and don't affect each other.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()

    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def cache():
    return InMemoryCache()


@pytest.fixture
def service(db_session, cache):
    """LinkService over the test database and an in-memory cache"""
    return LinkService(db_session, cache=cache)


@pytest.fixture
def expire_link(db_session):
    """Force a link's expires_at into the past, straight in the database"""
    def _expire(link_id: str, ago: timedelta = timedelta(days=1)):
        db_session.query(Link).filter(Link.id == link_id).update(
            {Link.expires_at: utcnow() - ago}
        )
        db_session.commit()
    return _expire
