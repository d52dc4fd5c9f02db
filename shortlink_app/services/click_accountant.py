import logging
from typing import Optional

from shortlink_app.cache import BestEffortCache, CacheStrategy, NullCache, clicks_key
from shortlink_app.config import settings
from shortlink_app.exceptions import StoreUnavailable
from shortlink_app.schemas.link import ClickRecord
from shortlink_app.storage.strategies import ClickStoreStrategy

logger = logging.getLogger(__name__)


class ClickAccountant:
    """
    Write path for visits.

    Every click is appended to the durable click log (must succeed) and
    bumps the clicks:{link_id} counter in the cache (best-effort). The log
    is the real count; the counter only saves a COUNT(*) on reads and may
    drift until it expires or is rebuilt.
    """

    def __init__(
        self,
        click_store: ClickStoreStrategy,
        cache: Optional[CacheStrategy] = None,
        counter_ttl: Optional[int] = None
    ):
        self.click_store = click_store
        self.cache = BestEffortCache(cache)
        self.counter_ttl = counter_ttl if counter_ttl is not None else settings.click_counter_ttl

    async def record_click(
        self,
        link_id: str,
        user_agent: Optional[str] = None,
        address: Optional[str] = None
    ) -> ClickRecord:
        """
        Record one visit.

        Raises:
            StoreUnavailable: the click event could not be stored
            NotFound: the link no longer exists
        """
        event = await self.click_store.append(link_id, user_agent=user_agent, address=address)
        await self._bump_counter(link_id)
        return event

    async def get_click_count(self, link_id: str) -> int:
        """Counter from the cache, or COUNT(*) over the click log on a miss"""
        cache_key = clicks_key(link_id)

        cached = await self.cache.get(cache_key)
        if cached is not None:
            try:
                return int(cached)
            except ValueError:
                logger.warning("Dropping non-integer counter %s=%r", cache_key, cached)
                await self.cache.delete(cache_key)

        total = await self.click_store.count(link_id)
        await self.cache.set(cache_key, str(total), ttl=self.counter_ttl)
        return total

    async def _bump_counter(self, link_id: str) -> None:
        if isinstance(self.cache.backend, NullCache):
            return

        cache_key = clicks_key(link_id)

        if await self.cache.exists(cache_key):
            value = await self.cache.incr(cache_key)
            # 1 means the key vanished between EXISTS and INCR and was
            # recreated without a TTL: reseed it from the log below
            if value is None or value > 1:
                return

        try:
            total = await self.click_store.count(link_id)
        except StoreUnavailable as e:
            logger.warning("Skipping counter seed for %s: %s", cache_key, e)
            await self.cache.delete(cache_key)
            return
        await self.cache.set(cache_key, str(total), ttl=self.counter_ttl)
