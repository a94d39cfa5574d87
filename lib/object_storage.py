# =============================================================================
# lib/object_storage.py - S3 Object Storage Wrapper
# =============================================================================
# Images never pass through the API. Clients upload and download them with
# short-lived pre-signed URLs; the API only signs URLs and deletes objects.
#
# Object keys follow the layout:
#   {user_id}/{project_id}/{folder_id}/{uuid}{file_name}
# The folder segment is left out for images at the project root.
#
# Usage:
#   from lib.object_storage import ObjectStorageClient
#   key = ObjectStorageClient.build_object_key(user_id, project_id, None, "a.png")
#   url = ObjectStorageClient.presign_upload(key, "image/png", expires_in=60)
# =============================================================================

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

import boto3
from botocore.config import Config

from app.config import settings

logger = logging.getLogger(__name__)


class ObjectStorageError(Exception):
    """Error while talking to the object store."""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.message = message
        self.key = key


@dataclass
class BulkDeleteResult:
    """Outcome of deleting several objects one by one."""

    deleted: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def failed_count(self) -> int:
        return len(self.failed)


class ObjectStorageClient:
    """
    Singleton wrapper around a boto3 S3 client.

    All methods are class methods, mirroring SupabaseClient.
    """

    _instance: Any = None

    @classmethod
    def get_client(cls):
        """
        Get or create the singleton S3 client.

        Explicit credentials are used when configured; otherwise boto3 falls
        back to its default credential chain (env, profile, instance role).
        """
        if cls._instance is None:
            config = Config(signature_version="s3v4")
            cls._instance = boto3.client(
                "s3",
                region_name=settings.S3_REGION,
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                config=config,
            )
            logger.info(f"S3 client initialized for bucket {settings.S3_BUCKET}")
        return cls._instance

    # -------------------------------------------------------------------------
    # Keys
    # -------------------------------------------------------------------------

    @staticmethod
    def build_object_key(
        user_id: str | UUID,
        project_id: str | UUID,
        folder_id: str | UUID | None,
        file_name: str,
    ) -> str:
        """
        Build a unique object key for a new upload.

        Args:
            user_id: Uploader's user ID
            project_id: Target project ID
            folder_id: Target folder ID, or None for the project root
            file_name: Original file name (appended after a random UUID)

        Returns:
            Key such as "u1/p1/f1/3f2a...photo.png"
        """
        segments = [str(user_id), str(project_id)]
        if folder_id:
            segments.append(str(folder_id))
        segments.append(f"{uuid.uuid4()}{file_name}")
        return "/".join(segments)

    @staticmethod
    def owner_prefix(user_id: str | UUID, project_id: str | UUID) -> str:
        """Prefix every key uploaded by this user into this project starts with."""
        return f"{user_id}/{project_id}/"

    # -------------------------------------------------------------------------
    # Pre-signed URLs
    # -------------------------------------------------------------------------

    @classmethod
    def presign_upload(
        cls,
        key: str,
        content_type: str | None = None,
        expires_in: int | None = None,
    ) -> str:
        """
        Generate a pre-signed PUT URL.

        The client must send the same Content-Type header when uploading.

        Raises:
            ObjectStorageError: If signing fails
        """
        try:
            return cls.get_client().generate_presigned_url(
                ClientMethod="put_object",
                Params={
                    "Bucket": settings.S3_BUCKET,
                    "Key": key,
                    "ContentType": content_type or "application/octet-stream",
                },
                ExpiresIn=expires_in or settings.UPLOAD_URL_EXPIRES_SECONDS,
            )
        except Exception as e:
            logger.error(f"Failed to presign upload for {key}: {e}")
            raise ObjectStorageError(str(e), key=key)

    @classmethod
    def presign_download(cls, key: str, expires_in: int | None = None) -> str:
        """
        Generate a pre-signed GET URL.

        Raises:
            ObjectStorageError: If signing fails
        """
        try:
            return cls.get_client().generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": settings.S3_BUCKET, "Key": key},
                ExpiresIn=expires_in or settings.DOWNLOAD_URL_EXPIRES_SECONDS,
            )
        except Exception as e:
            logger.error(f"Failed to presign download for {key}: {e}")
            raise ObjectStorageError(str(e), key=key)

    # -------------------------------------------------------------------------
    # Deletion
    # -------------------------------------------------------------------------

    @classmethod
    def delete_object(cls, key: str) -> None:
        """
        Delete a single object.

        S3 treats deleting a missing key as success.

        Raises:
            ObjectStorageError: If the request fails
        """
        try:
            cls.get_client().delete_object(Bucket=settings.S3_BUCKET, Key=key)
            logger.info(f"Deleted object {key}")
        except Exception as e:
            logger.error(f"Failed to delete object {key}: {e}")
            raise ObjectStorageError(str(e), key=key)

    @classmethod
    def delete_objects(cls, keys: list[str]) -> BulkDeleteResult:
        """
        Delete objects one at a time, continuing past failures.

        Args:
            keys: Object keys to delete

        Returns:
            BulkDeleteResult listing deleted keys and per-key errors
        """
        result = BulkDeleteResult()

        for key in keys:
            try:
                cls.delete_object(key)
                result.deleted.append(key)
            except ObjectStorageError as e:
                result.failed[key] = e.message

        if result.failed:
            logger.warning(
                f"Bulk delete finished with {result.failed_count} failures "
                f"out of {len(keys)} objects"
            )

        return result
