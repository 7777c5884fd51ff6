"""User-initiated notification mutations.

Each operation calls the REST API first and only mirrors the change into the
session store once the server has confirmed it, so a failed call never needs
a local rollback.
"""

import structlog

from catalog_notifications.services.notification_api_client import (
    NotificationApiClient,
)
from catalog_notifications.services.notification_store import NotificationStore
from catalog_notifications.services.session_token import SessionToken

logger = structlog.get_logger(__name__)


class MutationGateway:
    """Executes read/delete mutations against the API and the session store."""

    def __init__(
        self,
        api_client: NotificationApiClient,
        store: NotificationStore,
        token: SessionToken,
    ):
        """Initialize mutation gateway.

        Args:
            api_client: REST client of the project catalog API
            store: Store of the session this gateway belongs to
            token: Token of the session lifetime
        """
        self._api_client = api_client
        self._store = store
        self._token = token

    def _is_stale(self, operation: str, **context) -> bool:
        if not self._token.revoked:
            return False
        logger.info(
            "Discarding mutation result for closed session",
            operation=operation,
            generation=self._token.generation,
            **context,
        )
        return True

    async def mark_as_read(self, notification_id: int) -> None:
        """Mark one notification as read.

        Unknown or already-read ids are a silent no-op.

        Raises:
            AuthError, ApiError, NetworkError: If the server call fails
        """
        notification = self._store.get(notification_id)
        if notification is None or notification.is_read:
            logger.debug(
                "Mark as read skipped",
                notification_id=notification_id,
                present=notification is not None,
            )
            return

        try:
            await self._api_client.mark_as_read(notification_id)
        except Exception as e:
            logger.error(
                "Failed to mark notification as read",
                notification_id=notification_id,
                error=str(e),
            )
            raise

        if self._is_stale("mark_as_read", notification_id=notification_id):
            return

        self._store.mark_read(notification_id)
        logger.info(
            "Notification marked as read",
            notification_id=notification_id,
            unread_count=self._store.unread_count,
        )

    async def mark_all_as_read(self) -> None:
        """Mark every notification as read.

        Raises:
            AuthError, ApiError, NetworkError: If the server call fails
        """
        try:
            await self._api_client.mark_all_as_read()
        except Exception as e:
            logger.error("Failed to mark all notifications as read", error=str(e))
            raise

        if self._is_stale("mark_all_as_read"):
            return

        changed = self._store.mark_all_read()
        logger.info("All notifications marked as read", count=changed)

    async def delete_notification(self, notification_id: int) -> None:
        """Delete one notification.

        Unknown ids are a silent no-op.

        Raises:
            AuthError, ApiError, NetworkError: If the server call fails
        """
        if notification_id not in self._store:
            logger.debug("Delete skipped for unknown notification", notification_id=notification_id)
            return

        try:
            await self._api_client.delete_notification(notification_id)
        except Exception as e:
            logger.error(
                "Failed to delete notification",
                notification_id=notification_id,
                error=str(e),
            )
            raise

        if self._is_stale("delete_notification", notification_id=notification_id):
            return

        removed = self._store.remove(notification_id)
        logger.info(
            "Notification deleted",
            notification_id=notification_id,
            was_unread=removed is not None and not removed.is_read,
            unread_count=self._store.unread_count,
        )

    async def clear_all_notifications(self) -> None:
        """Delete every notification.

        Raises:
            AuthError, ApiError, NetworkError: If the server call fails
        """
        try:
            await self._api_client.clear_all_notifications()
        except Exception as e:
            logger.error("Failed to clear all notifications", error=str(e))
            raise

        if self._is_stale("clear_all_notifications"):
            return

        self._store.clear()
        logger.info("All notifications cleared")
