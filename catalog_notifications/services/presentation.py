"""Display hints for notification types."""

from typing import NamedTuple

from catalog_notifications.enums import NotificationType
from catalog_notifications.schemas import Notification


class NotificationPresentation(NamedTuple):
    """Icon name, colour tone and label shown for a notification."""

    icon: str
    tone: str
    label: str


DEFAULT_PRESENTATION = NotificationPresentation("bell", "gray", "Notification")

_PRESENTATIONS = {
    NotificationType.COMMENT: NotificationPresentation("message-square", "blue", "Comment"),
    NotificationType.APPROVAL: NotificationPresentation("check-circle", "green", "Approval"),
    NotificationType.REJECTION: NotificationPresentation("x-circle", "red", "Rejection"),
    NotificationType.REACTION: NotificationPresentation("heart", "rose", "Reaction"),
}


def presentation_for(notification: Notification) -> NotificationPresentation:
    """Return the presentation for ``notification``.

    Types without a dedicated presentation, unknown tags included, get the
    generic bell.
    """
    kind = notification.kind
    if kind is None:
        return DEFAULT_PRESENTATION
    return _PRESENTATIONS.get(kind, DEFAULT_PRESENTATION)
