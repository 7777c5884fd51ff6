"""Client for the project catalog notification and identity endpoints."""

import requests
import structlog
from pydantic import TypeAdapter, ValidationError

from catalog_notifications.auth import CredentialProvider
from catalog_notifications.config import Settings, get_settings
from catalog_notifications.constants import API_SERVICE_NAME
from catalog_notifications.exceptions import ApiError, NotificationNotFoundError
from catalog_notifications.schemas import (
    CurrentUser,
    Notification,
    NotificationListAdapter,
)
from catalog_notifications.services.base_api_client import BaseApiClient

logger = structlog.get_logger(__name__)

_CURRENT_USER = TypeAdapter(CurrentUser)


class NotificationApiClient(BaseApiClient):
    """Client for communicating with the project catalog REST API."""

    def __init__(
        self,
        credentials: CredentialProvider,
        settings: Settings | None = None,
    ):
        """Initialize notification API client with service configuration.

        Args:
            credentials: Provider of the bearer token
            settings: Client settings; defaults to the environment settings
        """
        self.settings = settings or get_settings()
        super().__init__(
            service_name=API_SERVICE_NAME,
            base_url=self.settings.api_base_url,
            credentials=credentials,
            timeout=self.settings.request_timeout,
        )

    @property
    def notifications_url(self) -> str:
        """URL of the notifications collection."""
        return self.url_for(self.settings.notifications_path)

    async def list_notifications(self) -> list[Notification]:
        """Fetch the full notification snapshot for the authenticated user.

        Returns:
            Notifications in server order

        Raises:
            AuthError: If the credential is missing, expired or rejected
            ApiError: For other error responses
            NetworkError: If the request cannot complete
            ApiError: If the body is not a JSON notification list
        """
        response = await self._request("GET", self.notifications_url)

        if response.status_code == 404:
            logger.warning("Notifications endpoint returned 404", url=self.notifications_url)
            raise ApiError(
                message=f"Notifications not found at {self.notifications_url}",
                status_code=404,
            )

        notifications = _parse(NotificationListAdapter, response, "notifications")

        logger.info("Fetched notifications", count=len(notifications))
        return notifications

    async def mark_as_read(self, notification_id: int) -> None:
        """Mark one notification as read.

        Raises:
            NotificationNotFoundError: If the notification does not exist
        """
        url = f"{self.notifications_url}/{notification_id}/read"
        response = await self._request("PUT", url)
        if response.status_code == 404:
            logger.warning("Notification not found", notification_id=notification_id)
            raise NotificationNotFoundError(notification_id=notification_id)

    async def mark_all_as_read(self) -> None:
        """Mark every notification of the user as read."""
        await self._request("PUT", f"{self.notifications_url}/read-all")

    async def delete_notification(self, notification_id: int) -> None:
        """Delete one notification.

        Raises:
            NotificationNotFoundError: If the notification does not exist
        """
        url = f"{self.notifications_url}/{notification_id}"
        response = await self._request("DELETE", url)
        if response.status_code == 404:
            logger.warning("Notification not found", notification_id=notification_id)
            raise NotificationNotFoundError(notification_id=notification_id)

    async def clear_all_notifications(self) -> None:
        """Delete every notification of the user."""
        await self._request("DELETE", f"{self.notifications_url}/clear-all")

    async def get_current_user(self) -> CurrentUser:
        """Resolve the identity of the authenticated user.

        Returns:
            CurrentUser with the user ID that scopes the live topic

        Raises:
            AuthError: If the credential is missing, expired or rejected
            ApiError: For other error responses (a 404 included)
            NetworkError: If the request cannot complete
            ApiError: If the body is not JSON or has no usable ``id``
        """
        url = self.url_for(self.settings.current_user_path)
        response = await self._request("GET", url)

        if response.status_code == 404:
            logger.warning("Current user endpoint returned 404", url=url)
            raise ApiError(message=f"Current user not found at {url}", status_code=404)

        user = _parse(_CURRENT_USER, response, "current user")

        logger.info("Resolved current user", user_id=user.id)
        return user


def _parse(adapter: TypeAdapter, response: requests.Response, what: str):
    """Validate a JSON response body, raising ApiError for anything unusable."""
    try:
        return adapter.validate_python(response.json())
    except requests.JSONDecodeError as e:
        logger.error(
            "API response is not JSON",
            resource=what,
            status_code=response.status_code,
            response_text=response.text[:200],
        )
        raise ApiError(
            message=f"Invalid {what} response: body is not JSON",
            status_code=response.status_code,
        ) from e
    except ValidationError as e:
        logger.error(
            "Failed to validate API response",
            resource=what,
            validation_errors=e.errors(include_url=False),
        )
        raise ApiError(
            message=f"Invalid {what} response: {e.error_count()} validation errors",
            status_code=response.status_code,
        ) from e
