# =============================================================================
# app/routers/marks.py - Mark Endpoints
# =============================================================================
# Marks are listed and drawn under /images/{id}/marks; this router updates
# and deletes individual marks. The mark's author and the project owner
# may change a mark.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from app.auth import AuthUser, get_current_user
from core.models.mark import MarkUpdate
from core.services.mark_service import MarkService

router = APIRouter()

MarkId = Annotated[UUID, Path(description="Mark UUID")]


@router.patch("/{mark_id}")
async def update_mark(
    mark_id: MarkId,
    request: MarkUpdate,
    user: AuthUser = Depends(get_current_user),
):
    mark = MarkService.update_mark(user, mark_id, request)
    return {"success": True, "mark": mark.model_dump(mode="json")}


@router.delete("/{mark_id}")
async def delete_mark(
    mark_id: MarkId,
    user: AuthUser = Depends(get_current_user),
):
    MarkService.delete_mark(user, mark_id)
    return {"success": True, "message": "Mark deleted successfully"}
