"""Notification session: the explicit object owning one user's notification state.

A session ties the snapshot loader, the live subscriber and the mutation
gateway to one store and one session token. ``close()`` revokes the token, so
late completions of the torn-down lifetime are discarded instead of leaking
into the next login.
"""

import asyncio
from collections.abc import Callable

import structlog

from catalog_notifications.auth import has_valid_credential
from catalog_notifications.config import Settings
from catalog_notifications.enums import ConnectionStatus, NotificationFilter, SortOrder
from catalog_notifications.exceptions import AuthError
from catalog_notifications.logging import bind_session_context, clear_session_context
from catalog_notifications.schemas import Notification, NotificationCount
from catalog_notifications.services.live_subscriber import ConnectFactory, LiveSubscriber
from catalog_notifications.services.mutation_gateway import MutationGateway
from catalog_notifications.services.notification_api_client import (
    NotificationApiClient,
)
from catalog_notifications.services.notification_query import filter_notifications
from catalog_notifications.services.notification_store import NotificationStore
from catalog_notifications.services.session_token import SessionToken
from catalog_notifications.services.snapshot_loader import SnapshotLoader

logger = structlog.get_logger(__name__)

SessionListener = Callable[["NotificationSession"], None]
StatusListener = Callable[[ConnectionStatus], None]


class NotificationSession:
    """Notification state of one authenticated user.

    Usage::

        async with NotificationSession(api_client) as session:
            await session.mark_as_read(42)
            print(session.unread_count)
    """

    def __init__(
        self,
        api_client: NotificationApiClient,
        settings: Settings | None = None,
        connect: ConnectFactory | None = None,
    ):
        """Initialize notification session.

        Args:
            api_client: REST client of the project catalog API
            settings: Client settings; defaults to the API client's settings
            connect: WebSocket connect factory passed to the live subscriber
        """
        self._api_client = api_client
        self._settings = settings or api_client.settings
        self._connect = connect
        self._listeners: list[SessionListener] = []
        self._status_listeners: list[StatusListener] = []
        self._connect_task: asyncio.Task | None = None
        self._started = False
        self._reset()

    def _reset(self) -> None:
        self._token = SessionToken()
        self._store = NotificationStore()
        self._store.add_listener(self._store_changed)
        self._loader = SnapshotLoader(self._api_client, self._store, self._token)
        self._gateway = MutationGateway(self._api_client, self._store, self._token)
        self._subscriber = LiveSubscriber(
            self._api_client,
            on_notification=self._apply_live,
            on_first_connect=self._loader.fetch_all,
            settings=self._settings,
            on_status_change=self._status_changed,
            connect=self._connect,
        )

    @property
    def session_id(self) -> str:
        """Identifier of the current session lifetime."""
        return self._token.session_id

    @property
    def started(self) -> bool:
        """Whether the session is running."""
        return self._started

    @property
    def notifications(self) -> list[Notification]:
        """Notifications in display order."""
        return self._store.notifications

    @property
    def unread_count(self) -> int:
        """Number of unread notifications."""
        return self._store.unread_count

    @property
    def counts(self) -> NotificationCount:
        """Unread and total counts."""
        return self._store.count()

    @property
    def connection_status(self) -> ConnectionStatus:
        """Status of the live connection."""
        return self._subscriber.status

    @property
    def is_connected(self) -> bool:
        """Whether the live connection is up."""
        return self._subscriber.status is ConnectionStatus.CONNECTED

    @property
    def reconnect_attempts(self) -> int:
        """Failed live connections since the last successful one."""
        return self._subscriber.reconnect_attempts

    @property
    def is_loading(self) -> bool:
        """Whether a snapshot fetch is in flight."""
        return self._loader.is_loading

    @property
    def error(self) -> str | None:
        """Message of the last failed snapshot fetch."""
        return self._loader.last_error

    def add_listener(self, listener: SessionListener) -> Callable[[], None]:
        """Register a callback run after every change of the notification list.

        Returns:
            A function that removes the listener
        """
        return _register(self._listeners, listener)

    def add_status_listener(self, listener: StatusListener) -> Callable[[], None]:
        """Register a callback run on every connection status change.

        Returns:
            A function that removes the listener
        """
        return _register(self._status_listeners, listener)

    async def start(self) -> None:
        """Start the session for the authenticated user.

        The live subscriber connects in the background while the first
        snapshot is awaited. If the snapshot fails, the session stays started
        and the error is raised.

        Raises:
            AuthError: If there is no usable credential
            ApiError, NetworkError: If the first snapshot cannot be fetched
        """
        if self._started:
            logger.info("Notification session already started", session_id=self.session_id)
            return
        if not has_valid_credential(self._api_client.credentials):
            logger.warning("Cannot start notification session without a valid credential")
            raise AuthError("Authentication required to start notification session")

        self._reset()
        self._started = True
        bind_session_context(self.session_id)
        logger.info("Starting notification session", generation=self._token.generation)

        self._connect_task = asyncio.create_task(
            self._subscriber.connect(), name=f"notification-session-{self.session_id}"
        )
        await self._loader.fetch_all()

    async def close(self) -> None:
        """Tear the session down. Safe to call more than once."""
        if not self._started:
            return
        self._started = False
        self._token.revoke()
        logger.info("Closing notification session", generation=self._token.generation)

        if self._connect_task is not None and not self._connect_task.done():
            self._connect_task.cancel()
            try:
                await self._connect_task
            except asyncio.CancelledError:
                logger.debug("Live subscriber start cancelled")
        self._connect_task = None

        await self._subscriber.close()
        self._store.clear()
        logger.info("Notification session closed")
        clear_session_context()

    async def __aenter__(self) -> "NotificationSession":
        try:
            await self.start()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def fetch_all(self) -> list[Notification]:
        """Re-fetch the snapshot and replace the notification list."""
        return await self._loader.fetch_all()

    async def mark_as_read(self, notification_id: int) -> None:
        """Mark one notification as read."""
        await self._gateway.mark_as_read(notification_id)

    async def mark_all_as_read(self) -> None:
        """Mark every notification as read."""
        await self._gateway.mark_all_as_read()

    async def delete_notification(self, notification_id: int) -> None:
        """Delete one notification."""
        await self._gateway.delete_notification(notification_id)

    async def clear_all_notifications(self) -> None:
        """Delete every notification."""
        await self._gateway.clear_all_notifications()

    async def reconnect(self) -> None:
        """Reconnect the live subscription."""
        if not self._started:
            logger.warning("Cannot reconnect a session that is not started")
            return
        await self._subscriber.reconnect()

    def query(
        self,
        filter: NotificationFilter | str = NotificationFilter.ALL,
        search: str = "",
        sort: SortOrder | str = SortOrder.NEWEST,
    ) -> list[Notification]:
        """Filter, search and sort the current notifications."""
        return filter_notifications(self.notifications, filter=filter, search=search, sort=sort)

    def _apply_live(self, notification: Notification) -> None:
        if self._token.revoked:
            logger.debug("Dropping live notification for closed session")
            return
        self._store.apply(notification)

    def _store_changed(self, store: NotificationStore) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _status_changed(self, status: ConnectionStatus) -> None:
        for listener in list(self._status_listeners):
            try:
                listener(status)
            except Exception as e:
                logger.error("Connection status listener failed", error=str(e))


def _register(listeners: list, listener: Callable) -> Callable[[], None]:
    listeners.append(listener)

    def remove() -> None:
        if listener in listeners:
            listeners.remove(listener)

    return remove
