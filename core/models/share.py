# =============================================================================
# core/models/share.py - Project Share Schemas
# =============================================================================
# A share invites someone, by email address, to collaborate on a project.
#
# Flow: pending -> accepted | rejected
# Only accepted shares grant access.
# =============================================================================

import re
from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ShareStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ShareCreate(BaseModel):
    """
    Invite a collaborator.

    Example:
        {"email": "colorist@example.com"}
    """
    email: str = Field(..., max_length=320, examples=["colorist@example.com"])

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not _EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email address")
        return value


class ShareDecision(BaseModel):
    """Recipient's answer to an invitation."""
    accept: bool


class ShareRequestView(BaseModel):
    """A pending invitation as shown to its recipient."""
    id: UUID
    project_id: UUID
    project_name: str = "Untitled Project"
    shared_by: UUID
    sender_name: str = "Unknown User"
    status: ShareStatus = ShareStatus.PENDING
    created_at: datetime | None = None


class ProjectShareView(BaseModel):
    """A share as listed to the project owner."""
    email: str
    status: ShareStatus
