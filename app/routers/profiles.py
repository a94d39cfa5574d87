# =============================================================================
# app/routers/profiles.py - Profile Endpoints
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query

from app.auth import AuthUser, get_current_user
from core.models.profile import ProfileResponse, ProfileUpdate, PublicProfile
from core.services.profile_service import ProfileService

router = APIRouter()


@router.get("/me")
async def get_my_profile(user: AuthUser = Depends(get_current_user)):
    profile = ProfileService.get_profile(user.id)
    return {"success": True, "profile": ProfileResponse(**profile).model_dump(mode="json")}


@router.patch("/me")
async def update_my_profile(
    request: ProfileUpdate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Update profile fields. A new username must not be taken.
    """
    profile = ProfileService.update_profile(user.id, request)
    return {"success": True, "profile": ProfileResponse(**profile).model_dump(mode="json")}


@router.get("/me/storage")
async def get_my_storage(user: AuthUser = Depends(get_current_user)):
    """
    Storage used against the plan limit.
    """
    usage = ProfileService.get_storage_usage(user.id)
    return {"success": True, **usage.model_dump()}


@router.get("/username-available")
async def username_available(
    username: Annotated[str, Query(min_length=3, max_length=30)],
    user: AuthUser = Depends(get_current_user),
):
    return {"success": True, "available": ProfileService.is_username_available(username)}


@router.get("/{username}")
async def get_public_profile(
    username: Annotated[str, Path(description="Username")],
):
    """
    Public profile page data. No sign-in required.
    """
    profile = ProfileService.get_profile_by_username(username)
    return {"success": True, "profile": PublicProfile(**profile).model_dump(mode="json")}
