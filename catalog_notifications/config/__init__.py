"""Configuration for the notification client."""

from catalog_notifications.config.settings import (
    Settings,
    get_settings,
    reset_settings_cache,
)

__all__ = ["Settings", "get_settings", "reset_settings_cache"]
