# =============================================================================
# core/services/folder_service.py - Folder Business Logic
# =============================================================================
# Handles folder CRUD and recursive deletion.
#
# Recursive deletion walks the tree depth-first. For each folder:
#   1. delete every child folder (a failed child is logged and skipped)
#   2. delete the folder's images (objects, rows, usage decrement)
#   3. delete the folder row
# A folder whose images can't be deleted is left in place, but its
# siblings and ancestors still proceed. Nothing is rolled back.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.auth.models import AuthUser
from app.exceptions import DatabaseOperationError, FolderNotEmptyError, FolderNotFoundError
from app.websocket.broadcast import publish_folders_changed
from core.models.folder import FolderDeletionResult
from core.services.image_service import ImageService
from core.services.project_service import ProjectService
from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid

logger = logging.getLogger(__name__)

# Guards against parent_id cycles
MAX_FOLDER_DEPTH = 50


class FolderService:
    """
    Service for folder management operations.
    """

    @staticmethod
    def get_folder(folder_id: UUID | str) -> dict[str, Any]:
        """
        Raises:
            FolderNotFoundError: If folder doesn't exist
        """
        folder = SupabaseClient.fetch_folder(folder_id)
        if not folder:
            raise FolderNotFoundError(normalize_uuid(folder_id))
        return folder

    @staticmethod
    def create_folder(
        project_id: UUID | str,
        user: AuthUser,
        name: str,
        parent_id: UUID | str | None = None,
    ) -> dict[str, Any]:
        """
        Create a folder in a project.

        Args:
            project_id: Project to create the folder in
            user: Owner or collaborator
            name: Folder name
            parent_id: Parent folder, or None for a root folder

        Raises:
            ProjectAccessDeniedError: If the user can't edit the project
            FolderNotFoundError: If parent_id isn't a folder of this project
        """
        project = ProjectService.get_editable_project(project_id, user)

        if parent_id:
            parent = FolderService.get_folder(parent_id)
            if str(parent.get("project_id")) != str(project["id"]):
                raise FolderNotFoundError(normalize_uuid(parent_id))

        client = SupabaseClient.get_client()
        data = {
            "name": name,
            "project_id": str(project["id"]),
            "parent_id": normalize_uuid(parent_id) if parent_id else None,
        }

        try:
            response = client.table("folders").insert(data).execute()
        except Exception as e:
            logger.error(f"Failed to create folder: {e}")
            raise DatabaseOperationError("create_folder", str(e))

        if not response.data:
            raise DatabaseOperationError("create_folder", "Insert returned no data")

        folder = response.data[0]
        logger.info(f"Created folder {folder['id']} in project {project['id']}")
        publish_folders_changed(project["id"], "created", folder["id"])
        return folder

    @staticmethod
    def list_folders(
        project_id: UUID | str,
        parent_id: UUID | str | None = None,
    ) -> list[dict[str, Any]]:
        """
        List the folders directly under a parent, oldest first.

        Args:
            project_id: Project to list
            parent_id: Parent folder; None lists root folders
        """
        client = SupabaseClient.get_client()
        query = (
            client.table("folders")
            .select("*")
            .eq("project_id", normalize_uuid(project_id))
        )
        if parent_id:
            query = query.eq("parent_id", normalize_uuid(parent_id))
        else:
            query = query.is_("parent_id", "null")

        response = query.order("created_at").execute()
        return response.data or []

    @staticmethod
    def list_children(folder_id: UUID | str) -> list[dict[str, Any]]:
        client = SupabaseClient.get_client()
        response = (
            client.table("folders")
            .select("*")
            .eq("parent_id", normalize_uuid(folder_id))
            .execute()
        )
        return response.data or []

    @staticmethod
    def rename_folder(folder_id: UUID | str, user: AuthUser, name: str) -> dict[str, Any]:
        folder = FolderService.get_folder(folder_id)
        ProjectService.get_editable_project(folder["project_id"], user)

        client = SupabaseClient.get_client()
        try:
            response = (
                client.table("folders")
                .update({"name": name})
                .eq("id", folder["id"])
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to rename folder {folder['id']}: {e}")
            raise DatabaseOperationError("rename_folder", str(e))

        publish_folders_changed(folder["project_id"], "renamed", folder["id"])
        return response.data[0] if response.data else {**folder, "name": name}

    @staticmethod
    def get_folder_path(folder_id: UUID | str, max_depth: int = MAX_FOLDER_DEPTH) -> list[dict[str, Any]]:
        """
        Get the chain of folders from the root down to this folder.

        Useful for breadcrumbs. Stops early on a missing parent or after
        max_depth hops.

        Returns:
            List of folder dicts, root first, ending with the folder itself
        """
        path = []
        current_id: str | None = normalize_uuid(folder_id)
        seen = set()

        while current_id and len(path) < max_depth:
            if current_id in seen:
                logger.warning(f"Folder cycle detected at {current_id}")
                break
            seen.add(current_id)

            folder = SupabaseClient.fetch_folder(current_id)
            if not folder:
                break
            path.append(folder)
            current_id = folder.get("parent_id")

        path.reverse()
        return path

    # -------------------------------------------------------------------------
    # Deletion
    # -------------------------------------------------------------------------

    @staticmethod
    def _delete_folder_row(folder_id: str) -> None:
        client = SupabaseClient.get_client()
        client.table("folders").delete().eq("id", folder_id).execute()

    @staticmethod
    def delete_folder(folder_id: UUID | str, user: AuthUser) -> FolderDeletionResult:
        """
        Delete a folder that has no subfolders: its images, then the row.

        Raises:
            FolderNotFoundError: If folder doesn't exist
            ProjectAccessDeniedError: If the user can't edit the project
            FolderNotEmptyError: If the folder has subfolders
            ImagePermissionError: If the folder holds other users' images
            DatabaseOperationError: If the row delete fails
        """
        folder = FolderService.get_folder(folder_id)
        ProjectService.get_editable_project(folder["project_id"], user)
        folder_id_str = str(folder["id"])

        children = FolderService.list_children(folder_id_str)
        if children:
            raise FolderNotEmptyError(folder_id_str, len(children))

        deletion = ImageService.delete_folder_images(user, folder_id_str)

        try:
            FolderService._delete_folder_row(folder_id_str)
        except Exception as e:
            logger.error(f"Failed to delete folder {folder_id_str}: {e}")
            raise DatabaseOperationError("delete_folder", str(e))

        publish_folders_changed(folder["project_id"], "deleted", folder_id_str)

        return FolderDeletionResult(
            folder_id=folder_id_str,
            success=True,
            deleted_folders=[folder_id_str],
            deleted_images=deletion.images_count,
            failed_object_deletions=deletion.failed_objects,
            freed_mb=deletion.total_size_mb,
        )

    @staticmethod
    def delete_folder_with_contents(folder_id: UUID | str, user: AuthUser) -> FolderDeletionResult:
        """
        Delete a folder, every folder beneath it, and all of their images.

        Args:
            folder_id: Folder to delete
            user: Owner or collaborator of the folder's project

        Returns:
            FolderDeletionResult for the whole subtree

        Raises:
            FolderNotFoundError: If the folder doesn't exist
            ProjectAccessDeniedError: If the user can't edit the project
        """
        folder = FolderService.get_folder(folder_id)
        ProjectService.get_editable_project(folder["project_id"], user)

        result = FolderService.delete_subtree(folder, user)

        if result.deleted_folders:
            publish_folders_changed(folder["project_id"], "deleted", folder["id"])

        logger.info(
            f"Recursive delete of folder {folder['id']}: success={result.success}, "
            f"folders deleted={len(result.deleted_folders)}, failed={len(result.failed_folders)}, "
            f"images={result.deleted_images}, freed={result.freed_mb:.2f} MB"
        )
        return result

    @staticmethod
    def delete_subtree(
        folder: dict[str, Any],
        user: AuthUser,
        depth: int = 0,
        require_uploader: bool = True,
    ) -> FolderDeletionResult:
        """
        Depth-first deletion of a folder row and everything under it.

        Never raises for problems inside the subtree; they are logged and
        reported in the result. With require_uploader, a folder holding
        another user's images is left in place.
        """
        folder_id = str(folder["id"])
        result = FolderDeletionResult(folder_id=folder_id)

        if depth >= MAX_FOLDER_DEPTH:
            logger.error(f"Folder {folder_id} is nested deeper than {MAX_FOLDER_DEPTH}; skipping")
            result.failed_folders.append(folder_id)
            return result

        try:
            children = FolderService.list_children(folder_id)
        except Exception as e:
            logger.error(f"Failed to list subfolders of {folder_id}: {e}")
            result.failed_folders.append(folder_id)
            return result

        for child in children:
            try:
                child_result = FolderService.delete_subtree(child, user, depth + 1, require_uploader)
            except Exception as e:
                logger.error(f"Failed to delete subfolder {child.get('id')}: {e}")
                result.failed_folders.append(str(child.get("id")))
                continue

            if not child_result.success:
                logger.warning(f"Subfolder {child['id']} of {folder_id} was not fully deleted")
            result.absorb(child_result)

        try:
            deletion = ImageService.delete_folder_images(user, folder_id, require_uploader)
        except Exception as e:
            logger.error(f"Failed to delete images in folder {folder_id}: {e}")
            result.failed_folders.append(folder_id)
            return result

        result.deleted_images += deletion.images_count
        result.failed_object_deletions += deletion.failed_objects
        result.freed_mb += deletion.total_size_mb

        try:
            FolderService._delete_folder_row(folder_id)
        except Exception as e:
            logger.error(f"Failed to delete folder row {folder_id}: {e}")
            result.failed_folders.append(folder_id)
            return result

        result.deleted_folders.append(folder_id)
        result.success = True
        return result
