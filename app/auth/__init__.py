# =============================================================================
# app/auth/__init__.py - Supabase Token Authentication
# =============================================================================

from app.auth.dependencies import (
    TokenValidationError,
    decode_access_token,
    get_current_user,
    get_current_user_optional,
)
from app.auth.models import AuthUser, UserResponse

__all__ = [
    "AuthUser",
    "TokenValidationError",
    "UserResponse",
    "decode_access_token",
    "get_current_user",
    "get_current_user_optional",
]
