"""
Click event storage.

The click log is append-only and authoritative; cache counters are derived
from it.
"""

from .strategies import ClickStoreStrategy, SQLAlchemyClickStore

__all__ = [
    "ClickStoreStrategy",
    "SQLAlchemyClickStore",
]
