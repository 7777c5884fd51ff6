"""Filtering, search and sorting over a session's notifications."""

from collections.abc import Iterable
from datetime import datetime

from catalog_notifications.enums import NotificationFilter, NotificationType, SortOrder
from catalog_notifications.schemas import Notification

_TYPE_FILTERS = {
    NotificationFilter.COMMENTS: NotificationType.COMMENT,
    NotificationFilter.APPROVALS: NotificationType.APPROVAL,
    NotificationFilter.REJECTIONS: NotificationType.REJECTION,
    NotificationFilter.REACTIONS: NotificationType.REACTION,
    NotificationFilter.SUBMITS: NotificationType.SUBMIT,
}


def _matches_filter(notification: Notification, filter_: NotificationFilter) -> bool:
    if filter_ is NotificationFilter.ALL:
        return True
    if filter_ is NotificationFilter.UNREAD:
        return not notification.is_read
    return notification.kind is _TYPE_FILTERS[filter_]


def _matches_search(notification: Notification, needle: str) -> bool:
    fields = (notification.message, notification.project_title, notification.comment_text)
    return any(needle in field.lower() for field in fields if field)


def _timestamp(created_at: datetime | None) -> float | None:
    return created_at.timestamp() if created_at is not None else None


def filter_notifications(
    notifications: Iterable[Notification],
    filter: NotificationFilter | str = NotificationFilter.ALL,
    search: str = "",
    sort: SortOrder | str = SortOrder.NEWEST,
) -> list[Notification]:
    """Return the notifications matching ``filter`` and ``search``, sorted.

    Args:
        notifications: Notifications to query, typically ``session.notifications``
        filter: Read state or type filter
        search: Case-insensitive text matched against the message, project
            title and comment text
        sort: Creation time order; entries without a timestamp come last

    Returns:
        A new list; the input is left untouched
    """
    filter_ = NotificationFilter(filter)
    order = SortOrder(sort)
    needle = search.strip().lower()

    matches = [
        notification
        for notification in notifications
        if _matches_filter(notification, filter_)
        and (not needle or _matches_search(notification, needle))
    ]

    dated = [n for n in matches if n.created_at is not None]
    undated = [n for n in matches if n.created_at is None]
    dated.sort(key=lambda n: _timestamp(n.created_at), reverse=order is SortOrder.NEWEST)
    return dated + undated
