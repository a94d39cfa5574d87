# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AuthUser(BaseModel):
    """
    Identity carried by a verified access token.

    The email (lowercased) is what share invitations are matched against;
    it can be missing for phone or anonymous sign-ins.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: Optional[str] = None


class UserResponse(BaseModel):
    """Signed-in user for GET /auth/me: token identity plus profile."""
    id: UUID
    email: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_url: Optional[str] = None
    plan_id: Optional[UUID] = None
    total_size_mb: float = 0.0
    has_profile: bool = False

    @classmethod
    def build(cls, user: AuthUser, profile: dict[str, Any] | None) -> "UserResponse":
        if not profile:
            return cls(id=user.id, email=user.email)
        return cls(
            id=user.id,
            email=user.email,
            username=profile.get("username"),
            first_name=profile.get("first_name"),
            last_name=profile.get("last_name"),
            avatar_url=profile.get("avatar_url"),
            plan_id=profile.get("plan_id"),
            total_size_mb=float(profile.get("total_size_mb") or 0),
            has_profile=True,
        )
