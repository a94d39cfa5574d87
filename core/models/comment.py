# =============================================================================
# core/models/comment.py - Image Comment Schemas
# =============================================================================
# Comments belong to an image. A comment may reply to another comment
# (is_reply_to) and may carry a time marker for video-style review.
# =============================================================================

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class CommentCreate(BaseModel):
    """
    Schema for posting a comment.

    Example:
        {"content": "Can we warm up the shadows?", "is_reply_to": null}
    """
    content: str = Field(..., min_length=1, max_length=5000)
    time_marker: str | None = Field(default=None, max_length=50)
    is_reply_to: UUID | None = None

    @field_validator("content")
    @classmethod
    def strip_content(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Comment content cannot be empty")
        return value


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)

    @field_validator("content")
    @classmethod
    def strip_content(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Comment content cannot be empty")
        return value


class CommentResponse(BaseModel):
    """A comment with its author's display name and avatar."""
    id: UUID
    image_id: UUID
    user_id: UUID
    content: str
    time_marker: str | None = None
    is_reply_to: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    author_name: str = "Anonymous"
    author_avatar: str | None = None
