"""Schemas for notifications delivered by the project catalog API."""

from datetime import datetime

from pydantic import Field, TypeAdapter

from catalog_notifications.enums import NotificationType
from catalog_notifications.schemas.base_schema_model import BaseSchemaModel


class Notification(BaseSchemaModel):
    """One event visible to a user.

    The same shape is returned by the REST snapshot and pushed over the live
    topic. ``notification_type`` keeps the raw tag so that unknown types still
    parse; use ``kind`` for the typed value.
    """

    id: int = Field(..., description="Unique notification identifier")
    recipient_user_id: int | None = Field(
        None, description="ID of the user who received the notification"
    )
    message: str = Field("", description="Display text")
    notification_type: str | None = Field(
        None, description="Type tag (COMMENT, APPROVAL, REJECTION, REACTION, SUBMIT)"
    )
    project_id: int | None = Field(None, description="Referenced project, if any")
    comment_id: int | None = Field(None, description="Referenced comment, if any")
    is_read: bool = Field(False, description="Whether the notification has been read")
    created_at: datetime | None = Field(
        None, description="When the notification was created"
    )

    # Denormalized display fields, passed through untouched
    project_title: str | None = None
    comment_text: str | None = None
    commenter_name: str | None = None
    approver_name: str | None = None
    rejection_reason: str | None = None

    @property
    def kind(self) -> NotificationType | None:
        """Typed notification tag, or None for a tag this client doesn't know."""
        return NotificationType.parse(self.notification_type)

    def mark_read(self) -> "Notification":
        """Return a copy of this notification flagged as read."""
        if self.is_read:
            return self
        return self.model_copy(update={"is_read": True})


class NotificationCount(BaseSchemaModel):
    """Unread and total notification counts for a session."""

    unread_count: int = Field(..., ge=0, description="Number of unread notifications")
    total_count: int = Field(..., ge=0, description="Total number of notifications")


NotificationListAdapter = TypeAdapter(list[Notification])
