import logging
from datetime import datetime, timedelta
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from shortlink_app.cache import BestEffortCache, CacheStrategy, link_key
from shortlink_app.clock import utcnow
from shortlink_app.config import settings
from shortlink_app.exceptions import (
    AllocationExhausted,
    CodeConflict,
    InvalidInput,
    InvalidShortCode,
    InvalidTtl,
    InvalidUrl,
    StoreUnavailable,
)
from shortlink_app.models.link import Link
from shortlink_app.schemas.link import LinkCreate, LinkRecord
from shortlink_app.services.short_code_factory import ShortCodeFactory
from shortlink_app.services.short_code_strategies import ShortCodeStrategy

logger = logging.getLogger(__name__)


class LinkAllocator:
    """
    Allocates short codes and writes link records.

    Flow for one candidate code:
    1. Look for any row holding the code (expired or not)
    2. Active holder: conflict (requested code) or retry (generated code)
    3. Expired holder: invalidate its cache entry, overwrite the row in place
    4. No holder: insert a new row
    5. Cache the result (best-effort)

    There is no application lock. The unique constraint on short_code decides
    races between writers; a violation at commit is handled exactly like a
    collision seen by the pre-check.
    """

    def __init__(
        self,
        db: Session,
        cache: Optional[CacheStrategy] = None,
        code_strategy: Optional[ShortCodeStrategy] = None,
        max_retries: Optional[int] = None,
        cache_ttl: Optional[int] = None
    ):
        self.db = db
        self.cache = BestEffortCache(cache)
        self.code_strategy = code_strategy or ShortCodeFactory.create_strategy()
        self.max_retries = max_retries if max_retries is not None else settings.max_retries
        self.cache_ttl = cache_ttl if cache_ttl is not None else settings.cache_ttl

    async def allocate(
        self,
        target_url: str,
        owner_id: Optional[str] = None,
        requested_code: Optional[str] = None,
        ttl_days: Optional[int] = None
    ) -> LinkRecord:
        """Create (or reuse an expired) short link for ``target_url``

        Raises:
            InvalidUrl / InvalidShortCode / InvalidTtl: bad caller input, nothing was stored
            CodeConflict: requested_code is held by an active link
            AllocationExhausted: every generated candidate collided
            StoreUnavailable: the database failed, nothing was stored
        """
        request = self._validate(target_url, owner_id, requested_code, ttl_days)

        now = utcnow()
        expires_at = None
        if request.ttl_days and request.ttl_days > 0:
            expires_at = now + timedelta(days=request.ttl_days)

        if request.requested_code is not None:
            link = await self._claim(request.requested_code, request, now, expires_at, requested=True)
        else:
            link = None
            for attempt in range(1, self.max_retries + 1):
                candidate = self.code_strategy.generate()
                link = await self._claim(candidate, request, now, expires_at, requested=False)
                if link is not None:
                    break
                logger.debug("Generated code %s collided (attempt %d/%d)", candidate, attempt, self.max_retries)
            if link is None:
                logger.error("Short code space exhausted after %d attempts", self.max_retries)
                raise AllocationExhausted(self.max_retries)

        record = LinkRecord.model_validate(link)
        await self.cache.set(link_key(record.short_code), record.model_dump_json(), ttl=self.cache_ttl)

        logger.info("Allocated %s -> %s", record.short_code, record.target_url)
        return record

    def _validate(self, target_url, owner_id, requested_code, ttl_days) -> LinkCreate:
        try:
            request = LinkCreate(
                target_url=target_url,
                owner_id=owner_id,
                requested_code=requested_code,
                ttl_days=ttl_days,
            )
        except ValidationError as e:
            field = e.errors()[0]["loc"][0] if e.errors() else None
            if field == "target_url":
                raise InvalidUrl(f"Invalid URL format: {target_url!r}") from e
            if field == "requested_code":
                raise InvalidShortCode(f"Invalid short code {requested_code!r}: {e.errors()[0]['msg']}") from e
            if field == "ttl_days":
                raise InvalidTtl(f"Invalid ttl_days {ttl_days!r}: {e.errors()[0]['msg']}") from e
            raise InvalidInput(str(e)) from e

        if request.requested_code is not None and not self.code_strategy.is_valid_code(request.requested_code):
            raise InvalidShortCode(f"Invalid short code {requested_code!r}: unsupported characters")
        return request

    async def _claim(
        self,
        code: str,
        request: LinkCreate,
        now: datetime,
        expires_at: Optional[datetime],
        requested: bool
    ) -> Optional[Link]:
        """
        Try to take ``code`` for this request.

        Returns the stored Link, or None when a generated code must be
        retried. Raises CodeConflict when a requested code is taken.
        """
        holder = self._find_holder(code)

        if holder is not None and not holder.is_expired(now):
            if requested:
                raise CodeConflict(code)
            return None

        if holder is not None:
            return await self._overwrite_expired(holder, request, now, expires_at, requested)

        link = Link(
            short_code=code,
            target_url=request.target_url,
            owner_id=request.owner_id,
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
        )
        try:
            self.db.add(link)
            self.db.commit()
        except IntegrityError:
            # Another writer inserted the same code after our pre-check
            self.db.rollback()
            if requested:
                raise CodeConflict(code)
            return None
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to insert link %s: %s", code, e)
            raise StoreUnavailable("Could not store link") from e

        self.db.refresh(link)
        return link

    async def _overwrite_expired(
        self,
        holder: Link,
        request: LinkCreate,
        now: datetime,
        expires_at: Optional[datetime],
        requested: bool
    ) -> Optional[Link]:
        code = holder.short_code

        # Drop the stale snapshot before the row changes underneath it
        await self.cache.delete(link_key(code))

        try:
            # Compare-and-swap on the values we read: a concurrent reuse of the
            # same expired row changes updated_at and makes this match nothing
            updated = (
                self.db.query(Link)
                .filter(
                    Link.id == holder.id,
                    Link.short_code == code,
                    Link.updated_at == holder.updated_at,
                )
                .update(
                    {
                        Link.target_url: request.target_url,
                        Link.owner_id: request.owner_id,
                        Link.expires_at: expires_at,
                        Link.created_at: now,
                        Link.updated_at: now,
                    },
                    synchronize_session=False,
                )
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to reuse expired link %s: %s", code, e)
            raise StoreUnavailable("Could not store link") from e

        if updated != 1:
            if requested:
                raise CodeConflict(code)
            return None

        self.db.refresh(holder)
        logger.info("Reused expired code %s (link %s)", code, holder.id)
        return holder

    def _find_holder(self, code: str) -> Optional[Link]:
        try:
            return self.db.query(Link).filter(Link.short_code == code).first()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to look up short code %s: %s", code, e)
            raise StoreUnavailable("Could not look up short code") from e
