# =============================================================================
# core/services/project_service.py - Project Business Logic
# =============================================================================
# Handles project CRUD, access rules, plan limits and thumbnails.
#
# Access rules:
#   - view:   owner, anyone if public, or a user whose email has an
#             accepted share
#   - edit:   owner or accepted collaborator (folders, uploads, review)
#   - manage: owner only (rename, visibility, thumbnail, sharing, delete)
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.auth.models import AuthUser
from app.exceptions import (
    DatabaseOperationError,
    ImageNotFoundError,
    ProjectAccessDeniedError,
    ProjectLimitReachedError,
    ProjectNotFoundError,
)
from app.websocket.broadcast import publish_project_event
from core.models.project import ProjectLimits, ProjectVisibility
from lib.object_storage import ObjectStorageClient, ObjectStorageError
from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid

logger = logging.getLogger(__name__)

# Warn when a user has used this share of their project allowance
PROJECT_LIMIT_WARNING_PERCENT = 80


class ProjectService:
    """
    Service for project management operations.

    Provides a clean interface between API routes and database.
    """

    # -------------------------------------------------------------------------
    # Lookup & Access
    # -------------------------------------------------------------------------

    @staticmethod
    def get_project(project_id: UUID | str) -> dict[str, Any]:
        """
        Get a project by ID.

        Raises:
            ProjectNotFoundError: If project doesn't exist
        """
        project = SupabaseClient.fetch_project(project_id)
        if not project:
            raise ProjectNotFoundError(normalize_uuid(project_id))
        return project

    @staticmethod
    def is_owner(project: dict[str, Any], user: AuthUser | None) -> bool:
        return user is not None and str(project.get("user_id")) == str(user.id)

    @staticmethod
    def is_collaborator(project: dict[str, Any], user: AuthUser | None) -> bool:
        """True if the user's email has an accepted share on this project."""
        if user is None or not user.email:
            return False
        return SupabaseClient.has_accepted_share(project["id"], user.email.lower())

    @staticmethod
    def has_access(project: dict[str, Any], user: AuthUser | None) -> bool:
        """
        Check whether a user may view a project.

        Args:
            project: Project row
            user: Current user, or None for anonymous visitors
        """
        if ProjectService.is_owner(project, user):
            return True
        if project.get("visibility") == ProjectVisibility.PUBLIC.value:
            return True
        return ProjectService.is_collaborator(project, user)

    @staticmethod
    def can_edit(project: dict[str, Any], user: AuthUser | None) -> bool:
        """Owner or accepted collaborator."""
        return ProjectService.is_owner(project, user) or ProjectService.is_collaborator(project, user)

    @staticmethod
    def get_accessible_project(project_id: UUID | str, user: AuthUser | None) -> dict[str, Any]:
        """
        Get a project the user may view.

        Raises:
            ProjectNotFoundError: If project doesn't exist
            ProjectAccessDeniedError: If the user may not view it
        """
        project = ProjectService.get_project(project_id)
        if not ProjectService.has_access(project, user):
            raise ProjectAccessDeniedError(normalize_uuid(project_id))
        return project

    @staticmethod
    def get_editable_project(project_id: UUID | str, user: AuthUser) -> dict[str, Any]:
        """
        Get a project the user may change the contents of.

        Raises:
            ProjectNotFoundError: If project doesn't exist
            ProjectAccessDeniedError: If the user is neither owner nor collaborator
        """
        project = ProjectService.get_project(project_id)
        if not ProjectService.can_edit(project, user):
            raise ProjectAccessDeniedError(normalize_uuid(project_id), action="edit")
        return project

    @staticmethod
    def get_owned_project(project_id: UUID | str, user: AuthUser) -> dict[str, Any]:
        """
        Get a project owned by the user.

        Raises:
            ProjectNotFoundError: If project doesn't exist
            ProjectAccessDeniedError: If the user isn't the owner
        """
        project = ProjectService.get_project(project_id)
        if not ProjectService.is_owner(project, user):
            raise ProjectAccessDeniedError(normalize_uuid(project_id), action="manage")
        return project

    # -------------------------------------------------------------------------
    # Plan Limits
    # -------------------------------------------------------------------------

    @staticmethod
    def count_projects(user_id: UUID | str) -> int:
        client = SupabaseClient.get_client()
        response = (
            client.table("projects")
            .select("id", count="exact")
            .eq("user_id", normalize_uuid(user_id))
            .execute()
        )
        if response.count is not None:
            return response.count
        return len(response.data or [])

    @staticmethod
    def check_project_limits(user_id: UUID | str) -> ProjectLimits:
        """
        Compare the user's project count against their plan allowance.

        A missing plan or a plan with allowed_projects = null is unlimited.
        """
        profile = SupabaseClient.fetch_profile(user_id)
        plan = SupabaseClient.fetch_plan(profile.get("plan_id")) if profile else None
        allowed = plan.get("allowed_projects") if plan else None
        current = ProjectService.count_projects(user_id)

        if allowed is None:
            return ProjectLimits(
                can_create_more=True,
                current_count=current,
                allowed_projects=None,
                usage_percentage=0.0,
            )

        return ProjectLimits(
            can_create_more=current < allowed,
            current_count=current,
            allowed_projects=allowed,
            usage_percentage=(current / allowed * 100) if allowed else 100.0,
        )

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    @staticmethod
    def create_project(user: AuthUser, name: str) -> dict[str, Any]:
        """
        Create a private project for the user.

        Args:
            user: The project owner
            name: Display name

        Returns:
            Created project dict

        Raises:
            ProjectLimitReachedError: If the plan allows no more projects
            DatabaseOperationError: If the insert fails
        """
        limits = ProjectService.check_project_limits(user.id)

        if limits.allowed_projects is not None:
            if not limits.can_create_more:
                raise ProjectLimitReachedError(limits.current_count, limits.allowed_projects)
            if limits.usage_percentage >= PROJECT_LIMIT_WARNING_PERCENT:
                logger.warning(
                    f"User {user.id} is using {limits.current_count} of "
                    f"{limits.allowed_projects} allowed projects"
                )

        client = SupabaseClient.get_client()
        data = {
            "name": name,
            "user_id": str(user.id),
            "visibility": ProjectVisibility.PRIVATE.value,
        }

        try:
            response = client.table("projects").insert(data).execute()
        except Exception as e:
            logger.error(f"Failed to create project: {e}")
            raise DatabaseOperationError("create_project", str(e))

        if not response.data:
            raise DatabaseOperationError("create_project", "Insert returned no data")

        project = response.data[0]
        logger.info(f"Created project: {project['id']} for user: {user.id}")
        publish_project_event(project["id"], "project_created", {"name": project["name"]})
        return project

    @staticmethod
    def list_projects(user: AuthUser, public_only: bool = False) -> list[dict[str, Any]]:
        """
        List projects visible to the user (owned, shared, and public).

        Uses the get_complete_user_projects procedure and attaches a
        pre-signed thumbnail URL to each project that has one.
        """
        projects = SupabaseClient.rpc(
            "get_complete_user_projects",
            {
                "input_user_id": str(user.id),
                "input_user_email": user.email or "",
                "ispublic": public_only,
            },
        ) or []

        for project in projects:
            project["thumbnail_url"] = ProjectService.get_thumbnail_url(project)

        return projects

    @staticmethod
    def _update_project(project_id: str, changes: dict[str, Any], operation: str) -> dict[str, Any]:
        client = SupabaseClient.get_client()

        try:
            response = (
                client.table("projects")
                .update(changes)
                .eq("id", project_id)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to {operation} for project {project_id}: {e}")
            raise DatabaseOperationError(operation, str(e))

        publish_project_event(project_id, "project_updated", {"changes": sorted(changes)})
        return response.data[0] if response.data else {"id": project_id, **changes}

    @staticmethod
    def rename_project(project_id: UUID | str, user: AuthUser, name: str) -> dict[str, Any]:
        project = ProjectService.get_owned_project(project_id, user)
        updated = ProjectService._update_project(project["id"], {"name": name}, "rename_project")
        logger.info(f"Renamed project {project['id']} to {name!r}")
        return updated

    @staticmethod
    def update_visibility(
        project_id: UUID | str,
        user: AuthUser,
        visibility: ProjectVisibility,
    ) -> dict[str, Any]:
        project = ProjectService.get_owned_project(project_id, user)
        return ProjectService._update_project(
            project["id"], {"visibility": visibility.value}, "update_visibility"
        )

    @staticmethod
    def delete_project(project_id: UUID | str, user: AuthUser) -> dict[str, Any]:
        """
        Delete a project with all of its folders and images.

        Folders are deleted recursively, then images at the project root,
        then the project row. Folder and object failures are logged and
        skipped; the project row is still deleted.

        Returns:
            Summary with deleted/failed folder counts and freed storage

        Raises:
            ProjectAccessDeniedError: If the user isn't the owner
            DatabaseOperationError: If the project row can't be deleted
        """
        from core.services.folder_service import FolderService
        from core.services.image_service import ImageService

        project = ProjectService.get_owned_project(project_id, user)
        project_id_str = project["id"]

        folder_results = []
        for folder in FolderService.list_folders(project_id_str, parent_id=None):
            try:
                folder_results.append(
                    FolderService.delete_subtree(folder, user, require_uploader=False)
                )
            except Exception as e:
                logger.error(f"Failed to delete folder {folder['id']} of project {project_id_str}: {e}")

        root_images = ImageService.list_image_rows(project_id_str, folder_id=None)
        root_deletion = ImageService.purge_images(root_images)

        client = SupabaseClient.get_client()
        try:
            client.table("projects").delete().eq("id", project_id_str).execute()
        except Exception as e:
            logger.error(f"Failed to delete project {project_id_str}: {e}")
            raise DatabaseOperationError("delete_project", str(e))

        logger.info(f"Deleted project {project_id_str}")
        publish_project_event(project_id_str, "project_deleted", {})

        return {
            "project_id": project_id_str,
            "deleted_folders": sum(len(r.deleted_folders) for r in folder_results),
            "failed_folders": sum(len(r.failed_folders) for r in folder_results),
            "deleted_images": sum(r.deleted_images for r in folder_results) + root_deletion.images_count,
            "freed_mb": round(
                sum(r.freed_mb for r in folder_results) + root_deletion.total_size_mb, 2
            ),
        }

    # -------------------------------------------------------------------------
    # Thumbnails
    # -------------------------------------------------------------------------

    @staticmethod
    def get_thumbnail_url(project: dict[str, Any]) -> str | None:
        """Pre-signed URL for the project's thumbnail, or None."""
        key = project.get("thumbnail_key")
        if not key:
            return None
        try:
            return ObjectStorageClient.presign_download(key)
        except ObjectStorageError as e:
            logger.warning(f"Could not sign thumbnail for project {project.get('id')}: {e}")
            return None

    @staticmethod
    def set_thumbnail(project_id: UUID | str, user: AuthUser, image_id: UUID | str) -> dict[str, Any]:
        """
        Use one of the project's images as its thumbnail.

        Raises:
            ImageNotFoundError: If the image doesn't exist in this project
        """
        project = ProjectService.get_owned_project(project_id, user)
        image = SupabaseClient.fetch_image(image_id)
        if not image or str(image.get("project_id")) != str(project["id"]):
            raise ImageNotFoundError(normalize_uuid(image_id))

        return ProjectService._update_project(
            project["id"], {"thumbnail_key": image["s3_key"]}, "set_thumbnail"
        )

    @staticmethod
    def remove_thumbnail(project_id: UUID | str, user: AuthUser) -> dict[str, Any]:
        project = ProjectService.get_owned_project(project_id, user)
        return ProjectService._update_project(
            project["id"], {"thumbnail_key": None}, "remove_thumbnail"
        )

    @staticmethod
    def auto_update_thumbnail(project_id: UUID | str) -> str | None:
        """
        Point the thumbnail at the project's most recent image.

        Returns:
            The new thumbnail key, or None if the project has no images or
            the update failed (logged)
        """
        from core.services.image_service import ImageService

        project_id_str = normalize_uuid(project_id)
        try:
            image = ImageService.get_most_recent_image(project_id_str)
            if not image:
                return None
            ProjectService._update_project(
                project_id_str, {"thumbnail_key": image["s3_key"]}, "auto_update_thumbnail"
            )
            return image["s3_key"]
        except Exception as e:
            logger.warning(f"Could not auto-update thumbnail for project {project_id_str}: {e}")
            return None
