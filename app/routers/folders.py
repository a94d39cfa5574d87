# =============================================================================
# app/routers/folders.py - Folder Endpoints
# =============================================================================
# Folders are created through POST /projects/{id}/folders; this router
# handles individual folders.
#
# DELETE /folders/{id} removes the folder with everything beneath it.
# With ?recursive=false only a folder without subfolders is accepted.
# =============================================================================

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from app.auth import AuthUser, get_current_user, get_current_user_optional
from core.models.folder import FolderRename
from core.services.folder_service import FolderService
from core.services.project_service import ProjectService

logger = logging.getLogger(__name__)

router = APIRouter()

FolderId = Annotated[UUID, Path(description="Folder UUID")]


@router.get("/{folder_id}")
async def get_folder(
    folder_id: FolderId,
    user: AuthUser | None = Depends(get_current_user_optional),
):
    """
    Get a folder with its breadcrumb path (root first).
    """
    folder = FolderService.get_folder(folder_id)
    ProjectService.get_accessible_project(folder["project_id"], user)
    return {
        "success": True,
        "folder": folder,
        "path": FolderService.get_folder_path(folder_id),
    }


@router.patch("/{folder_id}")
async def rename_folder(
    folder_id: FolderId,
    request: FolderRename,
    user: AuthUser = Depends(get_current_user),
):
    folder = FolderService.rename_folder(folder_id, user, request.name)
    return {"success": True, "folder": folder}


@router.delete("/{folder_id}")
async def delete_folder(
    folder_id: FolderId,
    user: AuthUser = Depends(get_current_user),
    recursive: Annotated[bool, Query(description="Also delete subfolders")] = True,
):
    """
    Delete a folder and its images, and free the storage they used.

    Recursive deletion is best effort: subfolders or objects that fail are
    listed in the response, and the rest of the tree is still removed.
    """
    if recursive:
        result = FolderService.delete_folder_with_contents(folder_id, user)
    else:
        result = FolderService.delete_folder(folder_id, user)

    return {"success": result.success, **result.model_dump()}
