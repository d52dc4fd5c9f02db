"""
Click event storage using Strategy Pattern.

The click log is the authoritative record of visits. It lives in the same
relational database as the links (foreign key with ON DELETE CASCADE), so the
default implementation works through the SQLAlchemy session.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from shortlink_app.clock import as_naive_utc, utcnow
from shortlink_app.exceptions import NotFound, StoreUnavailable
from shortlink_app.models.click_event import ClickEvent
from shortlink_app.schemas.link import ClickRecord

logger = logging.getLogger(__name__)


class ClickStoreStrategy(ABC):
    """
    Abstract base class for click event storage.

    Implementations must raise StoreUnavailable when the backing store fails;
    a count or a write is never silently dropped.
    """

    @abstractmethod
    async def append(
        self,
        link_id: str,
        user_agent: Optional[str] = None,
        address: Optional[str] = None,
        occurred_at: Optional[datetime] = None
    ) -> ClickRecord:
        """
        Append one immutable click event.

        Args:
            link_id: Id of the clicked link
            user_agent: Requester's User-Agent header
            address: Requester's network address
            occurred_at: Visit time (defaults to now, UTC)

        Returns:
            The stored event
        """
        pass

    @abstractmethod
    async def count(self, link_id: str) -> int:
        """Total number of click events for a link"""
        pass

    @abstractmethod
    async def counts_by_day(self, link_id: str, start: date, end: date) -> Dict[date, int]:
        """
        Click counts per UTC calendar day in [start, end].

        Days without events are simply absent from the mapping.
        """
        pass

    @abstractmethod
    async def recent(self, link_id: str, limit: int = 10) -> List[ClickRecord]:
        """Most recent click events, newest first"""
        pass


class SQLAlchemyClickStore(ClickStoreStrategy):
    """
    Click events in the main relational database.

    Works with any SQLAlchemy dialect; day bucketing uses DATE() which both
    SQLite and PostgreSQL understand.
    """

    def __init__(self, db: Session):
        self.db = db

    async def append(
        self,
        link_id: str,
        user_agent: Optional[str] = None,
        address: Optional[str] = None,
        occurred_at: Optional[datetime] = None
    ) -> ClickRecord:
        now = utcnow()
        event = ClickEvent(
            link_id=link_id,
            occurred_at=as_naive_utc(occurred_at) if occurred_at else now,
            user_agent=user_agent,
            address=address,
            created_at=now,
        )
        try:
            self.db.add(event)
            self.db.commit()
            self.db.refresh(event)
        except IntegrityError as e:
            self.db.rollback()
            raise NotFound(f"Link {link_id} does not exist") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to store click for link %s: %s", link_id, e)
            raise StoreUnavailable("Could not record click") from e

        return ClickRecord.model_validate(event)

    async def count(self, link_id: str) -> int:
        try:
            total = (
                self.db.query(func.count(ClickEvent.id))
                .filter(ClickEvent.link_id == link_id)
                .scalar()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to count clicks for link %s: %s", link_id, e)
            raise StoreUnavailable("Could not count clicks") from e
        return int(total or 0)

    async def counts_by_day(self, link_id: str, start: date, end: date) -> Dict[date, int]:
        window_start = datetime.combine(start, time.min)
        window_end = datetime.combine(end + timedelta(days=1), time.min)
        day = func.date(ClickEvent.occurred_at)

        try:
            rows = (
                self.db.query(day.label("day"), func.count(ClickEvent.id))
                .filter(
                    ClickEvent.link_id == link_id,
                    ClickEvent.occurred_at >= window_start,
                    ClickEvent.occurred_at < window_end,
                )
                .group_by(day)
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to aggregate clicks for link %s: %s", link_id, e)
            raise StoreUnavailable("Could not aggregate clicks") from e

        # SQLite hands back 'YYYY-MM-DD' strings, PostgreSQL hands back dates
        return {
            (date.fromisoformat(bucket) if isinstance(bucket, str) else bucket): int(total)
            for bucket, total in rows
        }

    async def recent(self, link_id: str, limit: int = 10) -> List[ClickRecord]:
        try:
            events = (
                self.db.query(ClickEvent)
                .filter(ClickEvent.link_id == link_id)
                .order_by(ClickEvent.occurred_at.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to load recent clicks for link %s: %s", link_id, e)
            raise StoreUnavailable("Could not load recent clicks") from e
        return [ClickRecord.model_validate(event) for event in events]
