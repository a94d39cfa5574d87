# =============================================================================
# core/models/project.py - Project Schemas
# =============================================================================
# A project is the top-level container a user creates. It holds a tree of
# folders and images and can be shared with other users by email.
#
# Visibility:
#   - private: only the owner and accepted collaborators can see it
#   - public: anyone with the link can view it
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class ProjectVisibility(str, Enum):
    """Who may view a project."""
    PUBLIC = "public"
    PRIVATE = "private"


class ProjectCreate(BaseModel):
    """
    Schema for creating a project.

    Example:
        {"name": "Spring Campaign Stills"}
    """
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        examples=["Spring Campaign Stills"],
        description="Display name of the project"
    )


class ProjectRename(BaseModel):
    """Schema for renaming a project."""
    name: str = Field(..., min_length=1, max_length=200)


class ProjectVisibilityUpdate(BaseModel):
    """Schema for switching a project between public and private."""
    visibility: ProjectVisibility


class ThumbnailUpdate(BaseModel):
    """Pick an image from the project as its cover."""
    image_id: UUID = Field(..., description="Image to use as the project thumbnail")


class ProjectResponse(BaseModel):
    """
    Project as returned to clients.

    `thumbnail_url` is a short-lived pre-signed URL and is only present when
    the project has a thumbnail.
    """
    id: UUID
    name: str
    user_id: UUID
    visibility: ProjectVisibility = ProjectVisibility.PRIVATE
    thumbnail_key: str | None = None
    thumbnail_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProjectLimits(BaseModel):
    """
    Current project count against the plan allowance.

    `allowed_projects` is None for unlimited plans, in which case
    `usage_percentage` is 0.
    """
    can_create_more: bool
    current_count: int = Field(..., ge=0)
    allowed_projects: int | None = None
    usage_percentage: float = Field(default=0.0, ge=0)
