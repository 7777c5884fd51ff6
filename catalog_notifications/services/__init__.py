"""Services of the notification client."""

from catalog_notifications.services.connection_state import (
    ConnectionEvent,
    ConnectionState,
    Effect,
    transition,
)
from catalog_notifications.services.live_subscriber import LiveSubscriber
from catalog_notifications.services.mutation_gateway import MutationGateway
from catalog_notifications.services.notification_api_client import (
    NotificationApiClient,
)
from catalog_notifications.services.notification_query import filter_notifications
from catalog_notifications.services.notification_store import NotificationStore
from catalog_notifications.services.presentation import (
    DEFAULT_PRESENTATION,
    NotificationPresentation,
    presentation_for,
)
from catalog_notifications.services.session import NotificationSession
from catalog_notifications.services.session_token import SessionToken
from catalog_notifications.services.snapshot_loader import SnapshotLoader

__all__ = [
    "DEFAULT_PRESENTATION",
    "ConnectionEvent",
    "ConnectionState",
    "Effect",
    "LiveSubscriber",
    "MutationGateway",
    "NotificationApiClient",
    "NotificationPresentation",
    "NotificationSession",
    "NotificationStore",
    "SessionToken",
    "SnapshotLoader",
    "filter_notifications",
    "presentation_for",
    "transition",
]
