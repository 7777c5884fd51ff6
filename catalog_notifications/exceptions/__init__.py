"""Exception types for the notification client."""

from catalog_notifications.exceptions.client_exceptions import (
    ApiError,
    ApiUnavailableError,
    AuthError,
    NetworkError,
    NotificationClientError,
    NotificationNotFoundError,
    ProtocolError,
    SubscriptionError,
)

__all__ = [
    "ApiError",
    "ApiUnavailableError",
    "AuthError",
    "NetworkError",
    "NotificationClientError",
    "NotificationNotFoundError",
    "ProtocolError",
    "SubscriptionError",
]
