# =============================================================================
# app/routers/votes.py - Image Vote Endpoints
# =============================================================================

from fastapi import APIRouter, Depends

from app.auth import AuthUser, get_current_user
from core.models.billing import VoteRequest
from core.services.vote_service import VoteService

router = APIRouter()


@router.get("")
async def get_vote_counts():
    """Vote totals per image. Public."""
    counts = VoteService.vote_counts()
    return {"success": True, "counts": [c.model_dump(mode="json") for c in counts]}


@router.get("/mine")
async def get_my_votes(user: AuthUser = Depends(get_current_user)):
    image_ids = VoteService.user_votes(user)
    return {"success": True, "image_ids": image_ids, "has_voted": bool(image_ids)}


@router.post("")
async def submit_votes(
    request: VoteRequest,
    user: AuthUser = Depends(get_current_user),
):
    voted = VoteService.submit_votes(user, request.image_ids)
    return {"success": True, "image_ids": voted}
