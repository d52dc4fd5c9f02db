"""
Tests for daily click analytics.
"""
import asyncio
from datetime import date, datetime, timedelta

import pytest

from shortlink_app.exceptions import InvalidAnalyticsWindow
from shortlink_app.services.analytics import AnalyticsAggregator
from shortlink_app.services.link_allocator import LinkAllocator
from shortlink_app.storage.strategies import SQLAlchemyClickStore

TODAY = date(2026, 3, 10)


@pytest.fixture
def store(db_session):
    return SQLAlchemyClickStore(db_session)


@pytest.fixture
def link(db_session):
    return asyncio.run(LinkAllocator(db_session).allocate("https://example.com/stats"))


def click_at(store, link_id, when):
    asyncio.run(store.append(link_id, occurred_at=when))


class TestDailyClicks:
    def test_link_without_clicks_gets_zero_filled_week(self, store, link):
        aggregator = AnalyticsAggregator(store)

        series = asyncio.run(aggregator.daily_clicks(link.id, days=7, today=TODAY))

        assert len(series) == 7
        assert all(bucket.count == 0 for bucket in series)
        assert [bucket.day for bucket in series] == [TODAY - timedelta(days=n) for n in range(6, -1, -1)]

    def test_days_are_strictly_increasing_and_end_today(self, store, link):
        series = asyncio.run(AnalyticsAggregator(store).daily_clicks(link.id, days=30, today=TODAY))

        days = [bucket.day for bucket in series]
        assert days == sorted(set(days))
        assert days[-1] == TODAY
        assert days[0] == TODAY - timedelta(days=29)

    def test_clicks_are_bucketed_by_utc_day(self, store, link):
        click_at(store, link.id, datetime(2026, 3, 10, 0, 0, 1))
        click_at(store, link.id, datetime(2026, 3, 10, 23, 59, 59))
        click_at(store, link.id, datetime(2026, 3, 8, 12, 0))
        click_at(store, link.id, datetime(2026, 3, 4, 0, 0))

        series = asyncio.run(AnalyticsAggregator(store).daily_clicks(link.id, days=7, today=TODAY))
        counts = {bucket.day: bucket.count for bucket in series}

        assert counts[date(2026, 3, 10)] == 2
        assert counts[date(2026, 3, 9)] == 0
        assert counts[date(2026, 3, 8)] == 1
        assert counts[date(2026, 3, 4)] == 1
        assert sum(counts.values()) == 4

    def test_clicks_outside_window_are_ignored(self, store, link):
        click_at(store, link.id, datetime(2026, 3, 3, 23, 59, 59))
        click_at(store, link.id, datetime(2026, 3, 11, 0, 0))

        series = asyncio.run(AnalyticsAggregator(store).daily_clicks(link.id, days=7, today=TODAY))

        assert sum(bucket.count for bucket in series) == 0

    def test_other_links_do_not_leak_in(self, db_session, store, link):
        other = asyncio.run(LinkAllocator(db_session).allocate("https://example.com/other"))
        click_at(store, other.id, datetime(2026, 3, 10, 9, 0))

        series = asyncio.run(AnalyticsAggregator(store).daily_clicks(link.id, days=1, today=TODAY))

        assert [(b.day, b.count) for b in series] == [(TODAY, 0)]

    def test_unknown_link_gets_zero_series(self, store):
        series = asyncio.run(AnalyticsAggregator(store).daily_clicks("no-such-link", days=3, today=TODAY))
        assert [b.count for b in series] == [0, 0, 0]


class TestWindowValidation:
    @pytest.mark.parametrize("days", [0, -1, 31, 365])
    def test_out_of_range(self, store, days):
        with pytest.raises(InvalidAnalyticsWindow):
            asyncio.run(AnalyticsAggregator(store).daily_clicks("x", days=days))

    @pytest.mark.parametrize("days", [True, 7.0, "7", None])
    def test_non_integer(self, store, days):
        with pytest.raises(InvalidAnalyticsWindow):
            asyncio.run(AnalyticsAggregator(store).daily_clicks("x", days=days))

    def test_bounds_are_inclusive(self, store):
        aggregator = AnalyticsAggregator(store)
        assert len(asyncio.run(aggregator.daily_clicks("x", days=1, today=TODAY))) == 1
        assert len(asyncio.run(aggregator.daily_clicks("x", days=30, today=TODAY))) == 30

    def test_max_days_is_configurable(self, store):
        aggregator = AnalyticsAggregator(store, max_days=90)
        assert len(asyncio.run(aggregator.daily_clicks("x", days=90, today=TODAY))) == 90

    def test_window_error_is_a_value_error(self, store):
        with pytest.raises(ValueError):
            asyncio.run(AnalyticsAggregator(store).daily_clicks("x", days=0))
