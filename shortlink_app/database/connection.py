"""
Database engine and session management.

The relational database is the source of truth for links and click events.
Sessions are plain synchronous SQLAlchemy sessions; services receive one in
their constructor.
"""

import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from shortlink_app.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def make_engine(database_url: str, **kwargs) -> Engine:
    """
    Create an engine for ``database_url``.

    SQLite needs ``check_same_thread=False`` to share a connection with
    async code, and foreign keys switched on per connection so that
    click_events really cascade when a link is deleted.
    """
    if database_url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        new_engine = create_engine(database_url, connect_args=connect_args, **kwargs)
        event.listen(new_engine, "connect", _enable_sqlite_foreign_keys)
        return new_engine
    return create_engine(database_url, pool_pre_ping=True, **kwargs)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = make_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = None) -> None:
    """Create the links and click_events tables if they don't exist"""
    # Import models so they're registered with Base
    from shortlink_app import models  # noqa: F401

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    logger.info("Database tables ready (%s)", bind.url.get_backend_name())
