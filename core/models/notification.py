# =============================================================================
# core/models/notification.py - Notification Schemas
# =============================================================================
# Activity notifications are emailed to everyone on a project (owner and
# accepted collaborators) except the person who made the change.
# =============================================================================

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class NotificationType(str, Enum):
    MARK_ADDED = "mark_added"
    MARK_UPDATED = "mark_updated"
    MARK_DELETED = "mark_deleted"
    COMMENT_ADDED = "comment_added"
    COMMENT_UPDATED = "comment_updated"
    COMMENT_DELETED = "comment_deleted"

    @property
    def action_text(self) -> str:
        """Verb phrase used in subjects, e.g. "added a new mark"."""
        return _ACTION_TEXT[self]

    @property
    def is_mark(self) -> bool:
        return self.value.startswith("mark_")


_ACTION_TEXT = {
    NotificationType.MARK_ADDED: "added a new mark",
    NotificationType.MARK_UPDATED: "updated a mark",
    NotificationType.MARK_DELETED: "deleted a mark",
    NotificationType.COMMENT_ADDED: "added a new comment",
    NotificationType.COMMENT_UPDATED: "updated a comment",
    NotificationType.COMMENT_DELETED: "deleted a comment",
}


class Coordinates(BaseModel):
    x: float
    y: float


class ActivityNotification(BaseModel):
    """
    One change on an image that collaborators should hear about.

    Accepts camelCase keys (as posted to send-notifications) or snake_case.
    """
    model_config = ConfigDict(populate_by_name=True)

    type: NotificationType
    project_id: UUID = Field(..., alias="projectId")
    image_id: UUID = Field(..., alias="imageId")
    author_id: UUID = Field(..., alias="authorId")
    author_name: str = Field(..., alias="authorName")
    author_email: str | None = Field(default=None, alias="authorEmail")
    content: str | None = None
    mark_type: str | None = Field(default=None, alias="markType")
    mark_color: str | None = Field(default=None, alias="markColor")
    coordinates: Coordinates | None = None

    def to_task_payload(self) -> dict[str, Any]:
        """JSON-safe dict for the Celery queue."""
        return self.model_dump(mode="json")


class SendNotificationsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    notification_data: ActivityNotification = Field(..., alias="notificationData")


class ShareInvitation(BaseModel):
    """Body of the share-notification-email handler."""
    project_id: UUID
    shared_by: UUID
    shared_with_email: str = Field(..., min_length=3, max_length=320)


class NotificationResult(BaseModel):
    recipients: int = 0
    successful: int = 0
    failed: int = 0


class NotificationLog(BaseModel):
    id: UUID | None = None
    type: NotificationType
    project_id: UUID
    image_id: UUID
    author_id: UUID
    author_name: str
    content: str | None = None
    recipients_count: int = 0
    successful_count: int = 0
    failed_count: int = 0
    created_at: datetime | None = None


class NotificationStats(BaseModel):
    """Totals over a project's notification log."""
    total_notifications: int = 0
    total_recipients: int = 0
    total_successful: int = 0
    total_failed: int = 0
    by_type: dict[str, int] = Field(default_factory=dict)
