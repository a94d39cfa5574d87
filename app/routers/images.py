# =============================================================================
# app/routers/images.py - Image Endpoints
# =============================================================================
# Uploads go through /functions/v1/upload-image; these endpoints cover
# viewing, approval and deletion of existing images, plus the comments and
# marks attached to an image.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel

from app.auth import AuthUser, get_current_user, get_current_user_optional
from core.models.comment import CommentCreate
from core.models.mark import MarkCreate
from core.services.comment_service import CommentService
from core.services.image_service import ImageService
from core.services.mark_service import MarkService
from core.services.project_service import ProjectService

router = APIRouter()

ImageId = Annotated[UUID, Path(description="Image UUID")]


class ApprovalRequest(BaseModel):
    approved: bool = True


# =============================================================================
# Images
# =============================================================================

@router.get("/{image_id}")
async def get_image(
    image_id: ImageId,
    user: AuthUser | None = Depends(get_current_user_optional),
):
    """
    Get an image row with a short-lived view URL.
    """
    image = ImageService.get_image(image_id)
    ProjectService.get_accessible_project(image["project_id"], user)
    download = ImageService.get_download_url(image_id, user)
    return {"success": True, "image": {**image, "url": download["url"]}}


@router.get("/{image_id}/download-url")
async def get_download_url(
    image_id: ImageId,
    user: AuthUser | None = Depends(get_current_user_optional),
):
    return {"success": True, **ImageService.get_download_url(image_id, user)}


@router.put("/{image_id}/approval")
async def set_approval(
    image_id: ImageId,
    request: ApprovalRequest,
    user: AuthUser = Depends(get_current_user),
):
    image = ImageService.set_approval(image_id, user, request.approved)
    return {"success": True, "image": image}


@router.delete("/{image_id}")
async def delete_image(
    image_id: ImageId,
    user: AuthUser = Depends(get_current_user),
):
    """
    Delete an image the user uploaded, and free its storage.
    """
    return {"success": True, **ImageService.delete_image(user, image_id)}


# =============================================================================
# Comments & Marks on an Image
# =============================================================================

@router.get("/{image_id}/comments")
async def list_comments(
    image_id: ImageId,
    user: AuthUser | None = Depends(get_current_user_optional),
):
    comments = CommentService.list_comments(image_id, user)
    return {"success": True, "comments": comments, "total": len(comments)}


@router.post("/{image_id}/comments", status_code=201)
async def add_comment(
    image_id: ImageId,
    request: CommentCreate,
    user: AuthUser = Depends(get_current_user),
):
    comment = CommentService.add_comment(user, image_id, request)
    return {"success": True, "comment": comment}


@router.get("/{image_id}/marks")
async def list_marks(
    image_id: ImageId,
    user: AuthUser | None = Depends(get_current_user_optional),
):
    marks = MarkService.list_marks(image_id, user)
    return {"success": True, "marks": [m.model_dump(mode="json") for m in marks]}


@router.post("/{image_id}/marks", status_code=201)
async def add_mark(
    image_id: ImageId,
    request: MarkCreate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Draw a mark on an image. Coordinates are rounded to whole pixels.
    """
    mark = MarkService.add_mark(user, image_id, request)
    return {"success": True, "mark": mark.model_dump(mode="json")}
