"""
Database models for the short link engine.

Links and their click events live in the same relational database so that
deleting a link cascades to its events.
"""

from .link import Link
from .click_event import ClickEvent

__all__ = ["Link", "ClickEvent"]
