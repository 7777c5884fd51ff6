"""Loads the REST snapshot of a user's notifications into the session store."""

import structlog

from catalog_notifications.schemas import Notification
from catalog_notifications.services.notification_api_client import (
    NotificationApiClient,
)
from catalog_notifications.services.notification_store import NotificationStore
from catalog_notifications.services.session_token import SessionToken

logger = structlog.get_logger(__name__)


class SnapshotLoader:
    """Fetches the full notification list and replaces the store with it.

    Errors are not retried here; they are raised to the caller, which decides
    whether to try again.
    """

    def __init__(
        self,
        api_client: NotificationApiClient,
        store: NotificationStore,
        token: SessionToken,
    ):
        """Initialize snapshot loader.

        Args:
            api_client: REST client of the project catalog API
            store: Store of the session this loader belongs to
            token: Token of the session lifetime
        """
        self._api_client = api_client
        self._store = store
        self._token = token
        self._in_flight = 0
        self.last_error: str | None = None

    @property
    def is_loading(self) -> bool:
        """Whether a snapshot request is in flight."""
        return self._in_flight > 0

    async def fetch_all(self) -> list[Notification]:
        """Fetch the snapshot and replace the store content with it.

        Returns:
            The fetched notifications (also when the session was torn down
            meanwhile and the result was discarded)

        Raises:
            AuthError: If the credential is missing, expired or rejected
            ApiError: For other error responses
            NetworkError: If the request cannot complete
        """
        self._in_flight += 1
        self.last_error = None
        try:
            notifications = await self._api_client.list_notifications()
        except Exception as e:
            self.last_error = "Failed to fetch notifications"
            logger.error("Failed to fetch notifications snapshot", error=str(e))
            raise
        finally:
            self._in_flight -= 1

        if self._token.revoked:
            logger.info(
                "Discarding snapshot for closed session",
                generation=self._token.generation,
                count=len(notifications),
            )
            return notifications

        self._store.replace(notifications)
        logger.info(
            "Notification snapshot loaded",
            count=len(self._store),
            unread_count=self._store.unread_count,
        )
        return notifications
