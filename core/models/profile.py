# =============================================================================
# core/models/profile.py - User Profile Schemas
# =============================================================================
# Profiles hold display information and the running storage counter
# (total_size_mb) that quota checks compare against the plan limit.
# =============================================================================

import re
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

_USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]{3,30}$")


class ProfileResponse(BaseModel):
    id: UUID
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    avatar_url: str | None = None
    profile_page_text: str | None = None
    plan_id: UUID | None = None
    total_size_mb: float = 0.0


class PublicProfile(BaseModel):
    """Profile fields visible to other users."""
    id: UUID
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    avatar_url: str | None = None
    profile_page_text: str | None = None


class ProfileUpdate(BaseModel):
    """
    Partial profile update.

    Example:
        {"username": "ada_l", "profile_page_text": "Stills & colour."}
    """
    username: str | None = None
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    avatar_url: str | None = Field(default=None, max_length=2048)
    profile_page_text: str | None = Field(default=None, max_length=5000)

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip()
        if not _USERNAME_PATTERN.match(value):
            raise ValueError(
                "Username must be 3-30 characters: letters, digits, '_', '.' or '-'"
            )
        return value


class StorageUsage(BaseModel):
    """Storage used against the plan limit."""
    used_mb: float = Field(..., ge=0)
    used_bytes: int = Field(..., ge=0)
    limit_bytes: int = Field(..., ge=0)
    usage_percentage: float = Field(..., ge=0)
    plan_name: str | None = None
