import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shortlink_app.cache import BestEffortCache, CacheStrategy, clicks_key, link_key
from shortlink_app.config import settings
from shortlink_app.exceptions import LinkExpired, StoreUnavailable
from shortlink_app.models.link import Link
from shortlink_app.schemas.link import ClickRecord, DailyClicks, LinkRecord, LinkWithClicks
from shortlink_app.services.analytics import AnalyticsAggregator
from shortlink_app.services.click_accountant import ClickAccountant
from shortlink_app.services.link_allocator import LinkAllocator
from shortlink_app.services.link_resolver import LinkResolver
from shortlink_app.services.short_code_strategies import ShortCodeStrategy
from shortlink_app.storage.strategies import ClickStoreStrategy, SQLAlchemyClickStore

logger = logging.getLogger(__name__)


class LinkService:
    """
    Link service with dependency injection for cache and click storage.

    This is the surface collaborators call: create, resolve, visit, delete,
    list and analytics. It wires the allocator, resolver, click accountant
    and analytics aggregator over one database session and one cache.

    - Cache and storage strategies are injected (not created internally)
    - Easy to test (inject an in-memory or failing cache)
    """

    def __init__(
        self,
        db: Session,
        cache: Optional[CacheStrategy] = None,
        code_strategy: Optional[ShortCodeStrategy] = None,
        click_store: Optional[ClickStoreStrategy] = None
    ):
        """
        Initialize link service with dependencies.

        Args:
            db: Database session
            cache: Cache strategy (optional, for performance)
            code_strategy: Short code generator (defaults to settings)
            click_store: Click event storage (defaults to the database)
        """
        self.db = db
        self.cache = BestEffortCache(cache)
        self.click_store = click_store or SQLAlchemyClickStore(db)

        self.allocator = LinkAllocator(db, cache=cache, code_strategy=code_strategy)
        self.resolver = LinkResolver(db, cache=cache)
        self.accountant = ClickAccountant(self.click_store, cache=cache)
        self.analytics = AnalyticsAggregator(self.click_store)

    async def allocate(
        self,
        target_url: str,
        owner_id: Optional[str] = None,
        requested_code: Optional[str] = None,
        ttl_days: Optional[int] = None
    ) -> LinkRecord:
        """Create a short link. See LinkAllocator.allocate."""
        return await self.allocator.allocate(
            target_url,
            owner_id=owner_id,
            requested_code=requested_code,
            ttl_days=ttl_days,
        )

    async def resolve(self, short_code: str) -> LinkRecord:
        """Look up a short code, expired or not. See LinkResolver.resolve."""
        return await self.resolver.resolve(short_code)

    async def visit(
        self,
        short_code: str,
        user_agent: Optional[str] = None,
        address: Optional[str] = None
    ) -> LinkRecord:
        """
        Redirect path: resolve, refuse expired links, count the click.

        Raises:
            NotFound: unknown code
            LinkExpired: the link exists but has expired (Gone)
            StoreUnavailable: lookup or click recording failed
        """
        record = await self.resolver.resolve(short_code)

        if record.is_expired():
            raise LinkExpired(f"Short code {short_code!r} has expired")

        await self.accountant.record_click(record.id, user_agent=user_agent, address=address)
        return record

    async def record_click(
        self,
        link_id: str,
        user_agent: Optional[str] = None,
        address: Optional[str] = None
    ) -> ClickRecord:
        return await self.accountant.record_click(link_id, user_agent=user_agent, address=address)

    async def get_click_count(self, link_id: str) -> int:
        return await self.accountant.get_click_count(link_id)

    async def daily_clicks(self, link_id: str, days: int = 7) -> List[DailyClicks]:
        return await self.analytics.daily_clicks(link_id, days)

    async def recent_clicks(self, link_id: str, limit: Optional[int] = None) -> List[ClickRecord]:
        """Latest click events for a link, newest first"""
        return await self.click_store.recent(link_id, limit or settings.recent_clicks_limit)

    async def get_link(self, short_code: str) -> Optional[LinkRecord]:
        """Link metadata straight from the database (no click is counted)"""
        link = self._query(
            lambda: self.db.query(Link).filter(Link.short_code == short_code).first()
        )
        return LinkRecord.model_validate(link) if link else None

    async def list_links(self, owner_id: Optional[str] = None) -> List[LinkRecord]:
        """All links, or only ``owner_id``'s, newest first"""
        def load():
            query = self.db.query(Link)
            if owner_id is not None:
                query = query.filter(Link.owner_id == owner_id)
            return query.order_by(Link.created_at.desc()).all()

        return [LinkRecord.model_validate(link) for link in self._query(load)]

    async def list_links_with_clicks(self, owner_id: str) -> List[LinkWithClicks]:
        links = await self.list_links(owner_id)
        return [
            LinkWithClicks(link=link, clicks=await self.accountant.get_click_count(link.id))
            for link in links
        ]

    async def delete(self, link_id: str) -> bool:
        """
        Delete a link and (by cascade) all its click events.
        Also invalidates link:{code} and clicks:{id}.

        Returns:
            False if no link has this id
        """
        link = self._query(lambda: self.db.get(Link, link_id))
        if link is None:
            return False

        short_code = link.short_code
        try:
            self.db.delete(link)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to delete link %s: %s", link_id, e)
            raise StoreUnavailable("Could not delete link") from e

        await self.cache.delete(link_key(short_code))
        await self.cache.delete(clicks_key(link_id))

        logger.info("Deleted link %s (%s)", link_id, short_code)
        return True

    def _query(self, load):
        try:
            return load()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Database read failed: %s", e)
            raise StoreUnavailable("Could not read links") from e

