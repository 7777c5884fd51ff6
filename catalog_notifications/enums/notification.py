"""Notification-related enumerations.

This module contains the notification type tags sent by the project catalog
API, plus the filter and sort options used when querying a session's
notifications.
"""

from enum import Enum


class NotificationType(str, Enum):
    """Notification type tags.

    The set is closed on the server side, but clients must tolerate tags
    they do not know yet; see ``NotificationType.parse``.
    """

    COMMENT = "COMMENT"
    APPROVAL = "APPROVAL"
    REJECTION = "REJECTION"
    REACTION = "REACTION"
    SUBMIT = "SUBMIT"

    @classmethod
    def parse(cls, value: str | None) -> "NotificationType | None":
        """Return the member for ``value`` or None when the tag is unknown."""
        if not value:
            return None
        try:
            return cls(value.upper())
        except ValueError:
            return None


class NotificationFilter(str, Enum):
    """Filters offered by the notifications page."""

    ALL = "all"
    UNREAD = "unread"
    COMMENTS = "comments"
    APPROVALS = "approvals"
    REJECTIONS = "rejections"
    REACTIONS = "reactions"
    SUBMITS = "submits"


class SortOrder(str, Enum):
    """Sort order by creation time."""

    NEWEST = "newest"
    OLDEST = "oldest"
