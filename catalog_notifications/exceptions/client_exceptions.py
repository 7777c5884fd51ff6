"""Custom exceptions raised by the notification client."""


class NotificationClientError(Exception):
    """Base exception for notification client errors."""

    def __init__(self, message: str, status_code: int | None = None):
        """Initialize notification client error.

        Args:
            message: Error message
            status_code: HTTP status code if applicable
        """
        self.status_code = status_code
        super().__init__(message)


class NetworkError(NotificationClientError):
    """Request could not complete (timeout, refused connection, DNS failure)."""


class AuthError(NotificationClientError):
    """Credential is missing, expired, or was rejected by the API (401)."""

    def __init__(
        self, message: str = "Authentication required", status_code: int | None = None
    ):
        """Initialize authentication error.

        Args:
            message: Error message
            status_code: HTTP status code, 401 when raised from a response
        """
        super().__init__(message=message, status_code=status_code)


class ApiError(NotificationClientError):
    """API answered with a non-success status other than 401."""


class ApiUnavailableError(ApiError):
    """API is unavailable (500/503 errors)."""

    def __init__(self, status_code: int, message: str | None = None):
        """Initialize API unavailable error.

        Args:
            status_code: HTTP status code (500, 503, etc.)
            message: Optional custom error message
        """
        default_message = f"Notification API is unavailable (status: {status_code})"
        super().__init__(message=message or default_message, status_code=status_code)


class NotificationNotFoundError(ApiError):
    """Notification not found on the server (404)."""

    def __init__(self, notification_id: int):
        """Initialize notification not found error.

        Args:
            notification_id: ID of the notification that was not found
        """
        self.notification_id = notification_id
        super().__init__(
            message=f"Notification with ID {notification_id} not found",
            status_code=404,
        )


class ProtocolError(NotificationClientError):
    """Malformed frame or payload received from the live stream."""


class SubscriptionError(NotificationClientError):
    """Live topic subscription could not be established or was rejected."""

    def __init__(self, message: str, destination: str | None = None):
        """Initialize subscription error.

        Args:
            message: Error message
            destination: Topic the subscription targeted, when known
        """
        self.destination = destination
        super().__init__(message=message)
