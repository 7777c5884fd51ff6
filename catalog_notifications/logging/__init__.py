"""Logging utilities for the notification client."""

from catalog_notifications.logging.config import setup_logging
from catalog_notifications.logging.context import (
    bind_session_context,
    clear_session_context,
    get_session_id,
)

__all__ = [
    "bind_session_context",
    "clear_session_context",
    "get_session_id",
    "setup_logging",
]
