"""Session-scoped notification store and live event reconciliation.

The store is the single point of truth shared by the snapshot loader, the
live subscriber and the mutation gateway. Notifications are keyed by id, so
there is never more than one entry per notification, and the unread count is
always derived from the entries rather than tracked as a separate counter.
"""

from collections.abc import Callable, Iterable

import structlog

from catalog_notifications.schemas import Notification, NotificationCount

logger = structlog.get_logger(__name__)

StoreListener = Callable[["NotificationStore"], None]


class NotificationStore:
    """Id-keyed notification store with a separate display order."""

    def __init__(self) -> None:
        self._by_id: dict[int, Notification] = {}
        self._order: list[int] = []
        self._listeners: list[StoreListener] = []

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, notification_id: object) -> bool:
        return notification_id in self._by_id

    @property
    def notifications(self) -> list[Notification]:
        """Notifications in display order (newest push first)."""
        return [self._by_id[notification_id] for notification_id in self._order]

    @property
    def unread_count(self) -> int:
        """Number of entries not yet read."""
        return sum(1 for notification in self._by_id.values() if not notification.is_read)

    def count(self) -> NotificationCount:
        """Return unread and total counts."""
        return NotificationCount(unread_count=self.unread_count, total_count=len(self))

    def get(self, notification_id: int) -> Notification | None:
        """Return the entry for ``notification_id`` if present."""
        return self._by_id.get(notification_id)

    def add_listener(self, listener: StoreListener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def apply(self, incoming: Notification) -> bool:
        """Merge one live notification into the store.

        An id already present is dropped: the first-seen value wins because
        the snapshot is authoritative for everything but arrival order.

        Returns:
            True if the notification was added
        """
        if incoming.id in self._by_id:
            logger.warning(
                "Duplicate notification ID received, ignoring",
                notification_id=incoming.id,
            )
            return False

        self._by_id[incoming.id] = incoming
        self._order.insert(0, incoming.id)
        logger.debug(
            "Notification added",
            notification_id=incoming.id,
            is_read=incoming.is_read,
        )
        self._notify()
        return True

    def replace(self, notifications: Iterable[Notification]) -> None:
        """Replace the whole content with a snapshot.

        Duplicate ids inside the snapshot collapse to their first occurrence.
        """
        by_id: dict[int, Notification] = {}
        order: list[int] = []
        for notification in notifications:
            if notification.id in by_id:
                continue
            by_id[notification.id] = notification
            order.append(notification.id)

        self._by_id = by_id
        self._order = order
        self._notify()

    def mark_read(self, notification_id: int) -> bool:
        """Flag one entry as read.

        Returns:
            True if an unread entry changed
        """
        notification = self._by_id.get(notification_id)
        if notification is None or notification.is_read:
            return False
        self._by_id[notification_id] = notification.mark_read()
        self._notify()
        return True

    def mark_all_read(self) -> int:
        """Flag every entry as read.

        Returns:
            Number of entries that changed
        """
        changed = 0
        for notification_id, notification in self._by_id.items():
            if not notification.is_read:
                self._by_id[notification_id] = notification.mark_read()
                changed += 1
        if changed:
            self._notify()
        return changed

    def remove(self, notification_id: int) -> Notification | None:
        """Remove one entry.

        Returns:
            The removed notification, or None if it was not present
        """
        notification = self._by_id.pop(notification_id, None)
        if notification is None:
            return None
        self._order.remove(notification_id)
        self._notify()
        return notification

    def clear(self) -> None:
        """Remove every entry."""
        had_entries = bool(self._order)
        self._by_id = {}
        self._order = []
        if had_entries:
            self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error(
                    "Notification store listener failed",
                    listener=repr(listener),
                    error=str(e),
                )
