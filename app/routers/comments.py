# =============================================================================
# app/routers/comments.py - Comment Endpoints
# =============================================================================
# Comments are listed and created under /images/{id}/comments; this router
# edits and deletes individual comments. Only the author may do either.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from app.auth import AuthUser, get_current_user
from core.models.comment import CommentUpdate
from core.services.comment_service import CommentService

router = APIRouter()

CommentId = Annotated[UUID, Path(description="Comment UUID")]


@router.patch("/{comment_id}")
async def update_comment(
    comment_id: CommentId,
    request: CommentUpdate,
    user: AuthUser = Depends(get_current_user),
):
    comment = CommentService.update_comment(user, comment_id, request)
    return {"success": True, "comment": comment}


@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: CommentId,
    user: AuthUser = Depends(get_current_user),
):
    CommentService.delete_comment(user, comment_id)
    return {"success": True, "message": "Comment deleted successfully"}
