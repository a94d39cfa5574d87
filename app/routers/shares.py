# =============================================================================
# app/routers/shares.py - Share Invitation Endpoints
# =============================================================================
# Projects are shared through POST /projects/{id}/shares. These endpoints
# are for the recipient: list pending invitations and answer them.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from app.auth import AuthUser, get_current_user
from core.models.share import ShareDecision
from core.services.share_service import ShareService

router = APIRouter()


@router.get("/requests")
async def list_share_requests(user: AuthUser = Depends(get_current_user)):
    """
    Pending invitations addressed to the signed-in user's email.
    """
    requests = ShareService.list_share_requests(user)
    return {
        "success": True,
        "requests": [r.model_dump(mode="json") for r in requests],
        "total": len(requests),
    }


@router.post("/{share_id}/respond")
async def respond_to_share(
    share_id: Annotated[UUID, Path(description="Share UUID")],
    request: ShareDecision,
    user: AuthUser = Depends(get_current_user),
):
    share = ShareService.respond_to_share(user, share_id, request.accept)
    return {"success": True, "share": share}
