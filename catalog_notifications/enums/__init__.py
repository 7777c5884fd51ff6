"""Enumerations for the notification client."""

from catalog_notifications.enums.connection_status import ConnectionStatus
from catalog_notifications.enums.notification import (
    NotificationFilter,
    NotificationType,
    SortOrder,
)

__all__ = ["ConnectionStatus", "NotificationFilter", "NotificationType", "SortOrder"]
