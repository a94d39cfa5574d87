# =============================================================================
# app/routers/projects.py - Project Endpoints
# =============================================================================
# Project CRUD plus the listings nested under a project (folders, images,
# shares).
#
# Endpoints:
# - GET    /projects                      Projects visible to the user
# - POST   /projects                      Create a project
# - GET    /projects/limits               Plan allowance
# - GET    /projects/{id}                 Project details
# - PATCH  /projects/{id}                 Rename
# - PUT    /projects/{id}/visibility      Public/private
# - PUT    /projects/{id}/thumbnail       Choose thumbnail image
# - DELETE /projects/{id}/thumbnail       Clear thumbnail
# - DELETE /projects/{id}                 Delete with all folders and images
# - GET    /projects/{id}/folders         Folders under a parent
# - POST   /projects/{id}/folders         Create a folder
# - GET    /projects/{id}/images          Images in a folder
# - GET    /projects/{id}/shares          Collaborators (owner only)
# - POST   /projects/{id}/shares          Invite a collaborator
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from app.auth import AuthUser, get_current_user, get_current_user_optional
from core.models.folder import FolderCreate
from core.models.project import (
    ProjectCreate,
    ProjectRename,
    ProjectVisibilityUpdate,
    ThumbnailUpdate,
)
from core.models.share import ShareCreate
from core.services.folder_service import FolderService
from core.services.image_service import ImageService
from core.services.project_service import ProjectService
from core.services.share_service import ShareService

router = APIRouter()

ProjectId = Annotated[UUID, Path(description="Project UUID")]


# =============================================================================
# Projects
# =============================================================================

@router.get("")
async def list_projects(
    user: AuthUser = Depends(get_current_user),
    public: Annotated[bool, Query(description="Only public projects")] = False,
):
    """
    List projects the user owns, has accepted shares for, or that are public.
    """
    projects = ProjectService.list_projects(user, public_only=public)
    return {"success": True, "projects": projects, "total": len(projects)}


@router.post("", status_code=201)
async def create_project(
    request: ProjectCreate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Create a private project.

    Fails with 403 PROJECT_LIMIT_REACHED when the plan allows no more.
    """
    project = ProjectService.create_project(user, request.name)
    return {"success": True, "project": project}


@router.get("/limits")
async def get_project_limits(user: AuthUser = Depends(get_current_user)):
    limits = ProjectService.check_project_limits(user.id)
    return {"success": True, **limits.model_dump()}


@router.get("/{project_id}")
async def get_project(
    project_id: ProjectId,
    user: AuthUser | None = Depends(get_current_user_optional),
):
    """
    Get a project. Public projects can be read without signing in.
    """
    project = ProjectService.get_accessible_project(project_id, user)
    return {
        "success": True,
        "project": {**project, "thumbnail_url": ProjectService.get_thumbnail_url(project)},
        "is_owner": ProjectService.is_owner(project, user),
        "can_edit": ProjectService.can_edit(project, user),
    }


@router.patch("/{project_id}")
async def rename_project(
    project_id: ProjectId,
    request: ProjectRename,
    user: AuthUser = Depends(get_current_user),
):
    project = ProjectService.rename_project(project_id, user, request.name)
    return {"success": True, "project": project}


@router.put("/{project_id}/visibility")
async def update_visibility(
    project_id: ProjectId,
    request: ProjectVisibilityUpdate,
    user: AuthUser = Depends(get_current_user),
):
    project = ProjectService.update_visibility(project_id, user, request.visibility)
    return {"success": True, "project": project}


@router.put("/{project_id}/thumbnail")
async def set_thumbnail(
    project_id: ProjectId,
    request: ThumbnailUpdate,
    user: AuthUser = Depends(get_current_user),
):
    project = ProjectService.set_thumbnail(project_id, user, request.image_id)
    return {
        "success": True,
        "thumbnail_key": project.get("thumbnail_key"),
        "thumbnail_url": ProjectService.get_thumbnail_url(project),
    }


@router.delete("/{project_id}/thumbnail")
async def remove_thumbnail(
    project_id: ProjectId,
    user: AuthUser = Depends(get_current_user),
):
    ProjectService.remove_thumbnail(project_id, user)
    return {"success": True, "message": "Thumbnail removed"}


@router.delete("/{project_id}")
async def delete_project(
    project_id: ProjectId,
    user: AuthUser = Depends(get_current_user),
):
    """
    Delete a project, all of its folders (recursively) and all images.

    Folders or objects that fail to delete are reported, not fatal.
    """
    summary = ProjectService.delete_project(project_id, user)
    return {"success": True, "message": "Project deleted successfully", **summary}


# =============================================================================
# Nested Listings
# =============================================================================

@router.get("/{project_id}/folders")
async def list_folders(
    project_id: ProjectId,
    user: AuthUser | None = Depends(get_current_user_optional),
    parent_id: Annotated[UUID | None, Query(description="Parent folder; omit for root")] = None,
):
    ProjectService.get_accessible_project(project_id, user)
    folders = FolderService.list_folders(project_id, parent_id)
    path = FolderService.get_folder_path(parent_id) if parent_id else []
    return {"success": True, "folders": folders, "path": path}


@router.post("/{project_id}/folders", status_code=201)
async def create_folder(
    project_id: ProjectId,
    request: FolderCreate,
    user: AuthUser = Depends(get_current_user),
):
    folder = FolderService.create_folder(project_id, user, request.name, request.parent_id)
    return {"success": True, "folder": folder}


@router.get("/{project_id}/images")
async def list_images(
    project_id: ProjectId,
    user: AuthUser | None = Depends(get_current_user_optional),
    folder_id: Annotated[UUID | None, Query(description="Folder; omit for project root")] = None,
):
    """
    List images with short-lived view URLs and a has_comments flag.
    """
    images = ImageService.list_images(project_id, user, folder_id)
    return {"success": True, "images": images, "total": len(images)}


@router.get("/{project_id}/shares")
async def list_project_shares(
    project_id: ProjectId,
    user: AuthUser = Depends(get_current_user),
):
    shares = ShareService.list_project_shares(project_id, user)
    return {"success": True, "shares": [s.model_dump() for s in shares]}


@router.post("/{project_id}/shares", status_code=201)
async def share_project(
    project_id: ProjectId,
    request: ShareCreate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Invite a collaborator by email. The invitation email is sent in the
    background.
    """
    share = ShareService.share_project(user, project_id, request.email)
    return {"success": True, "share": share}
