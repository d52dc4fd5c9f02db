from datetime import date, timedelta
from typing import List, Optional

from shortlink_app.clock import utcnow
from shortlink_app.config import settings
from shortlink_app.exceptions import InvalidAnalyticsWindow
from shortlink_app.schemas.link import DailyClicks
from shortlink_app.storage.strategies import ClickStoreStrategy


class AnalyticsAggregator:
    """Daily click buckets computed from the click log"""

    def __init__(self, click_store: ClickStoreStrategy, max_days: Optional[int] = None):
        self.click_store = click_store
        self.max_days = max_days if max_days is not None else settings.analytics_max_days

    async def daily_clicks(
        self,
        link_id: str,
        days: int = 7,
        today: Optional[date] = None
    ) -> List[DailyClicks]:
        """
        Clicks per UTC day for the last ``days`` days, oldest first.

        Every day in [today - days + 1, today] is present; days without
        events have count 0.

        Raises:
            InvalidAnalyticsWindow: days is not an integer in [1, max_days]
        """
        if isinstance(days, bool) or not isinstance(days, int) or not 1 <= days <= self.max_days:
            raise InvalidAnalyticsWindow(
                f"days must be an integer between 1 and {self.max_days}, got {days!r}"
            )

        today = today or utcnow().date()
        start = today - timedelta(days=days - 1)

        counts = await self.click_store.counts_by_day(link_id, start, today)

        # Full date series, zero-filled, so empty days are never dropped
        series = (start + timedelta(days=offset) for offset in range(days))
        return [DailyClicks(day=day, count=counts.get(day, 0)) for day in series]
