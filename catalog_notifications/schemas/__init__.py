"""Schemas for the notification client."""

from catalog_notifications.schemas.base_schema_model import BaseSchemaModel
from catalog_notifications.schemas.notification import (
    Notification,
    NotificationCount,
    NotificationListAdapter,
)
from catalog_notifications.schemas.user import CurrentUser

__all__ = [
    "BaseSchemaModel",
    "CurrentUser",
    "Notification",
    "NotificationCount",
    "NotificationListAdapter",
]
