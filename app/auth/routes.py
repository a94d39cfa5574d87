# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# Sign-up and sign-in happen in the web client against Supabase Auth; the
# API only ever sees the resulting access token.
#
#   GET /auth/me      token identity plus profile (has_profile=false until
#                     the sign-up trigger has created the profile row)
#   GET /auth/verify  cheap token check
# =============================================================================

from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser, UserResponse
from core.services.profile_service import ProfileService

router = APIRouter(prefix="/auth")


@router.get("/me", response_model=UserResponse)
async def get_me(user: AuthUser = Depends(get_current_user)):
    return UserResponse.build(user, ProfileService.get_cached_profile(user.id))


@router.get("/verify")
async def verify_token(user: AuthUser = Depends(get_current_user)):
    return {"valid": True, "user_id": str(user.id), "email": user.email}
