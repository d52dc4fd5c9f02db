import logging
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shortlink_app.cache import BestEffortCache, CacheStrategy, link_key
from shortlink_app.config import settings
from shortlink_app.exceptions import NotFound, StoreUnavailable
from shortlink_app.models.link import Link
from shortlink_app.schemas.link import LinkRecord

logger = logging.getLogger(__name__)


class LinkResolver:
    """
    Read path for short codes using the Cache-Aside pattern.

    Flow:
    1. Check cache first (link:{code})
    2. If cache miss, query database
    3. Populate cache for next time
    4. Return the record

    Expiry is not checked here: an expired link resolves to its record and
    the caller decides what to do with it (see LinkRecord.is_expired).
    """

    def __init__(
        self,
        db: Session,
        cache: Optional[CacheStrategy] = None,
        cache_ttl: Optional[int] = None
    ):
        self.db = db
        self.cache = BestEffortCache(cache)
        self.cache_ttl = cache_ttl if cache_ttl is not None else settings.cache_ttl

    async def resolve(self, short_code: str) -> LinkRecord:
        """
        Raises:
            NotFound: no link holds ``short_code``
            StoreUnavailable: cache missed and the database failed
        """
        cache_key = link_key(short_code)

        cached = await self.cache.get(cache_key)
        if cached is not None:
            try:
                return LinkRecord.model_validate_json(cached)
            except ValidationError as e:
                logger.warning("Dropping undecodable cache entry %s: %s", cache_key, e)
                await self.cache.delete(cache_key)

        logger.debug("Cache miss for %s", cache_key)
        try:
            link = self.db.query(Link).filter(Link.short_code == short_code).first()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to resolve %s: %s", short_code, e)
            raise StoreUnavailable("Could not resolve short code") from e

        if link is None:
            raise NotFound(f"Short code {short_code!r} not found")

        record = LinkRecord.model_validate(link)
        await self.cache.set(cache_key, record.model_dump_json(), ttl=self.cache_ttl)
        return record
