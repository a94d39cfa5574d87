# =============================================================================
# core/services/image_service.py - Image & Upload Business Logic
# =============================================================================
# Handles the upload flow, image listings and image deletion.
#
# Upload flow:
#   get_upload_url  -> access + quota check, pre-signed PUT URL
#   (client PUTs the file to S3)
#   save_metadata   -> image row insert, usage increment queued
#
# Deletion never runs in a transaction: objects are removed first, then
# rows, then the uploader's usage is decremented. A failure part way
# through leaves the earlier steps in place.
# =============================================================================

import logging
import time
from collections import defaultdict
from typing import Any
from uuid import UUID

from app.auth.models import AuthUser
from app.exceptions import (
    DatabaseOperationError,
    FolderNotFoundError,
    ImageNotFoundError,
    ImagePermissionError,
    InvalidObjectKeyError,
    StorageDeleteError,
    StorageSigningError,
)
from app.websocket.broadcast import publish_images_changed
from core.models.image import FolderImagesDeletion, SavedImage, SaveMetadataRequest, UploadUrlRequest
from core.services.profile_service import ProfileService
from core.services.project_service import ProjectService
from lib.object_storage import ObjectStorageClient, ObjectStorageError
from lib.supabase_client import SupabaseClient
from lib.utils import bytes_to_mb, normalize_uuid
from workers import dispatch

logger = logging.getLogger(__name__)

# Shown by the client when an image URL can't be signed
PLACEHOLDER_URL = "/placeholder.svg"

SAVED_IMAGE_COLUMNS = "id, s3_key, file_name, file_size_bytes"


class ImageService:
    """
    Service for image upload, listing and deletion.
    """

    # -------------------------------------------------------------------------
    # Upload Flow
    # -------------------------------------------------------------------------

    @staticmethod
    def get_upload_url(user: AuthUser, request: UploadUrlRequest) -> dict[str, Any]:
        """
        Issue a pre-signed PUT URL for a new image.

        Args:
            user: The uploader
            request: Target project/folder and file details

        Returns:
            Dict with url, s3_key and user_id

        Raises:
            ProjectNotFoundError: If the project doesn't exist
            ProjectAccessDeniedError: If the user may not view the project
            FolderNotFoundError: If folder_id isn't a folder of the project
            StorageQuotaExceededError: If the file would exceed the plan limit
            StorageSigningError: If the URL can't be signed
        """
        project = ProjectService.get_accessible_project(request.project_id, user)

        if request.folder_id:
            folder = SupabaseClient.fetch_folder(request.folder_id)
            if not folder or str(folder.get("project_id")) != str(project["id"]):
                raise FolderNotFoundError(str(request.folder_id))

        ProfileService.check_upload_quota(user.id, request.file_size)

        key = ObjectStorageClient.build_object_key(
            user.id, project["id"], request.folder_id, request.file_name
        )

        try:
            url = ObjectStorageClient.presign_upload(key, request.file_type)
        except ObjectStorageError as e:
            raise StorageSigningError(key, e.message)

        logger.info(f"Issued upload URL for {key} ({request.file_size} bytes)")
        return {"url": url, "s3_key": key, "user_id": str(user.id)}

    @staticmethod
    def save_metadata(user: AuthUser, request: SaveMetadataRequest) -> dict[str, Any]:
        """
        Record an uploaded image.

        The row insert is synchronous; the usage increment is queued and
        may complete after the response is sent.

        Returns:
            Dict with the saved image (id, s3_key, file_name, size_bytes)
            and elapsed_ms

        Raises:
            InvalidObjectKeyError: If s3_key isn't under the user's prefix for the project
            DatabaseOperationError: If the insert fails
        """
        started = time.perf_counter()
        project = ProjectService.get_accessible_project(request.project_id, user)

        prefix = ObjectStorageClient.owner_prefix(user.id, project["id"])
        if not request.s3_key.startswith(prefix):
            raise InvalidObjectKeyError(request.s3_key)

        client = SupabaseClient.get_client()
        row = {
            "user_id": str(user.id),
            "project_id": str(project["id"]),
            "folder_id": str(request.folder_id) if request.folder_id else None,
            "file_name": request.file_name,
            "original_file_name": request.file_name,
            "s3_key": request.s3_key,
            "file_size_bytes": request.file_size,
            "mime_type": request.file_type,
        }

        try:
            response = client.table("images").insert(row).execute()
        except Exception as e:
            logger.error(f"Failed to save image metadata for {request.s3_key}: {e}")
            raise DatabaseOperationError("save_metadata", str(e))

        if not response.data:
            raise DatabaseOperationError("save_metadata", "Insert returned no data")

        image = response.data[0]

        if request.file_size > 0:
            dispatch.enqueue_storage_increment(str(user.id), bytes_to_mb(request.file_size))

        if not project.get("thumbnail_key"):
            ProjectService.auto_update_thumbnail(project["id"])

        publish_images_changed(project["id"], "added", [image["id"]])

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.info(f"Saved image {image['id']} ({request.file_size} bytes) in {elapsed_ms}ms")

        return {
            "image": SavedImage(
                id=image["id"],
                s3_key=image["s3_key"],
                file_name=image["file_name"],
                size_bytes=image.get("file_size_bytes") or 0,
            ).model_dump(mode="json"),
            "elapsed_ms": elapsed_ms,
        }

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @staticmethod
    def get_image(image_id: UUID | str) -> dict[str, Any]:
        """
        Raises:
            ImageNotFoundError: If the image doesn't exist
        """
        image = SupabaseClient.fetch_image(image_id)
        if not image:
            raise ImageNotFoundError(normalize_uuid(image_id))
        return image

    @staticmethod
    def list_image_rows(
        project_id: UUID | str,
        folder_id: UUID | str | None = None,
        all_folders: bool = False,
    ) -> list[dict[str, Any]]:
        """
        Fetch raw image rows, newest first.

        Args:
            project_id: Project to list
            folder_id: Folder to list; None means the project root
            all_folders: Ignore folder_id and list every image in the project
        """
        client = SupabaseClient.get_client()
        query = (
            client.table("images")
            .select("*")
            .eq("project_id", normalize_uuid(project_id))
        )
        if not all_folders:
            if folder_id:
                query = query.eq("folder_id", normalize_uuid(folder_id))
            else:
                query = query.is_("folder_id", "null")

        response = query.order("created_at", desc=True).execute()
        return response.data or []

    @staticmethod
    def _image_ids_with_comments(image_ids: list[str]) -> set[str]:
        if not image_ids:
            return set()
        client = SupabaseClient.get_client()
        try:
            response = (
                client.table("image_comments")
                .select("image_id")
                .in_("image_id", image_ids)
                .execute()
            )
        except Exception as e:
            logger.warning(f"Could not load comment flags: {e}")
            return set()
        return {str(row["image_id"]) for row in response.data or []}

    @staticmethod
    def list_images(
        project_id: UUID | str,
        user: AuthUser | None,
        folder_id: UUID | str | None = None,
    ) -> list[dict[str, Any]]:
        """
        List images in a project folder with view URLs.

        Each image gets a pre-signed GET URL (or PLACEHOLDER_URL when signing
        fails) and a has_comments flag.
        """
        ProjectService.get_accessible_project(project_id, user)
        images = ImageService.list_image_rows(project_id, folder_id)
        commented = ImageService._image_ids_with_comments([str(img["id"]) for img in images])

        for image in images:
            try:
                image["url"] = ObjectStorageClient.presign_download(image["s3_key"])
            except ObjectStorageError:
                image["url"] = PLACEHOLDER_URL
            image["has_comments"] = str(image["id"]) in commented

        return images

    @staticmethod
    def get_download_url(image_id: UUID | str, user: AuthUser | None) -> dict[str, Any]:
        image = ImageService.get_image(image_id)
        ProjectService.get_accessible_project(image["project_id"], user)

        try:
            url = ObjectStorageClient.presign_download(image["s3_key"])
        except ObjectStorageError as e:
            raise StorageSigningError(image["s3_key"], e.message)

        return {"url": url, "file_name": image.get("file_name")}

    @staticmethod
    def get_most_recent_image(project_id: UUID | str) -> dict[str, Any] | None:
        client = SupabaseClient.get_client()
        response = (
            client.table("images")
            .select("id, s3_key, file_name, created_at")
            .eq("project_id", normalize_uuid(project_id))
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    # -------------------------------------------------------------------------
    # Approval
    # -------------------------------------------------------------------------

    @staticmethod
    def set_approval(image_id: UUID | str, user: AuthUser, approved: bool) -> dict[str, Any]:
        """
        Mark an image as approved (or clear the approval).

        Raises:
            ImageNotFoundError: If the image doesn't exist
            ProjectAccessDeniedError: If the user can't edit the project
        """
        image = ImageService.get_image(image_id)
        ProjectService.get_editable_project(image["project_id"], user)

        changes = {
            "is_approved": approved,
            "approved_by": str(user.id) if approved else None,
        }

        client = SupabaseClient.get_client()
        try:
            response = (
                client.table("images")
                .update(changes)
                .eq("id", image["id"])
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to update approval for image {image['id']}: {e}")
            raise DatabaseOperationError("set_approval", str(e))

        publish_images_changed(image["project_id"], "approved" if approved else "unapproved", [image["id"]])
        return response.data[0] if response.data else {**image, **changes}

    # -------------------------------------------------------------------------
    # Deletion
    # -------------------------------------------------------------------------

    @staticmethod
    def delete_image(user: AuthUser, image_id: UUID | str) -> dict[str, Any]:
        """
        Delete one image: object, then row, then a queued usage decrement.

        Raises:
            ImageNotFoundError: If the image doesn't exist
            ImagePermissionError: If the user didn't upload it
            StorageDeleteError: If the object can't be deleted (row is kept)
            DatabaseOperationError: If the row can't be deleted (object is gone)
        """
        image = ImageService.get_image(image_id)
        image_id_str = str(image["id"])

        if str(image.get("user_id")) != str(user.id):
            raise ImagePermissionError(image_id=image_id_str)

        try:
            ObjectStorageClient.delete_object(image["s3_key"])
        except ObjectStorageError as e:
            raise StorageDeleteError(image["s3_key"], e.message)

        client = SupabaseClient.get_client()
        try:
            client.table("images").delete().eq("id", image_id_str).execute()
        except Exception as e:
            logger.error(f"Object {image['s3_key']} deleted but row {image_id_str} remains: {e}")
            raise DatabaseOperationError("delete_image", str(e))

        size_bytes = image.get("file_size_bytes") or 0
        if size_bytes:
            dispatch.enqueue_storage_adjustment(str(user.id), -bytes_to_mb(size_bytes))

        publish_images_changed(image["project_id"], "deleted", [image_id_str])
        logger.info(f"Deleted image {image_id_str}")

        return {"message": "Image deleted successfully", "image_id": image_id_str}

    @staticmethod
    def purge_images(
        images: list[dict[str, Any]],
        folder_id: str | None = None,
    ) -> FolderImagesDeletion:
        """
        Delete a batch of images without permission checks.

        Objects are deleted one by one (failures logged and counted), then
        the rows are deleted in one statement, then each uploader's usage
        is decremented by the size of their images.

        Args:
            images: Image rows to delete
            folder_id: When set, rows are deleted by folder instead of by ID

        Raises:
            DatabaseOperationError: If the row delete fails
        """
        result = FolderImagesDeletion(folder_id=folder_id or "", images_count=len(images))
        if not images:
            return result

        keys = [image["s3_key"] for image in images if image.get("s3_key")]
        bulk = ObjectStorageClient.delete_objects(keys)
        result.deleted_objects = len(bulk.deleted)
        result.failed_objects = bulk.failed_count

        client = SupabaseClient.get_client()
        try:
            query = client.table("images").delete()
            if folder_id:
                query = query.eq("folder_id", folder_id)
            else:
                query = query.in_("id", [str(image["id"]) for image in images])
            query.execute()
        except Exception as e:
            logger.error(f"Failed to delete image rows: {e}")
            raise DatabaseOperationError("delete_images", str(e))

        bytes_by_user: dict[str, int] = defaultdict(int)
        for image in images:
            bytes_by_user[str(image.get("user_id"))] += image.get("file_size_bytes") or 0

        for user_id, size_bytes in bytes_by_user.items():
            ProfileService.release_storage(user_id, size_bytes)

        result.total_size_mb = bytes_to_mb(sum(bytes_by_user.values()))
        return result

    @staticmethod
    def delete_folder_images(
        user: AuthUser,
        folder_id: UUID | str,
        require_uploader: bool = True,
    ) -> FolderImagesDeletion:
        """
        Delete every image directly inside a folder.

        Subfolders are not touched. Unless require_uploader is False (project
        deletion by its owner), all images must have been uploaded by the
        user; otherwise nothing is deleted.

        Raises:
            FolderNotFoundError: If the folder doesn't exist
            ImagePermissionError: If any image belongs to another user
            DatabaseOperationError: If the rows can't be deleted
        """
        folder_id_str = normalize_uuid(folder_id)
        folder = SupabaseClient.fetch_folder(folder_id_str)
        if not folder:
            raise FolderNotFoundError(folder_id_str)

        images = ImageService.list_image_rows(folder["project_id"], folder_id_str)
        if not images:
            logger.info(f"Folder {folder_id_str} has no images")
            return FolderImagesDeletion(folder_id=folder_id_str)

        if require_uploader and any(str(image.get("user_id")) != str(user.id) for image in images):
            raise ImagePermissionError(folder_id=folder_id_str)

        result = ImageService.purge_images(images, folder_id=folder_id_str)

        publish_images_changed(folder["project_id"], "deleted", [image["id"] for image in images])
        logger.info(
            f"Deleted {result.images_count} images from folder {folder_id_str} "
            f"({result.failed_objects} object failures, {result.total_size_mb:.2f} MB)"
        )
        return result
