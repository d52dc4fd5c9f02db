"""
Logging setup for the short link engine.

Every module logs through ``logging.getLogger(__name__)``; this only installs
the root handler once for processes that embed the engine.
"""

import logging

from shortlink_app.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = None) -> None:
    """Configure root logging at ``level`` (defaults to settings.log_level)."""
    level = (level or settings.log_level).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
