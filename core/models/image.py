# =============================================================================
# core/models/image.py - Image & Upload Schemas
# =============================================================================
# Upload flow:
#   1. Client asks for a pre-signed PUT URL (UploadUrlRequest)
#   2. Client PUTs the file straight to S3
#   3. Client reports the upload (SaveMetadataRequest); the image row is
#      created and the owner's storage usage is incremented in the background
#
# Request bodies use camelCase field names, matching the JSON the web client
# sends. Python code reads them through the snake_case attribute names.
# =============================================================================

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UploadUrlRequest(BaseModel):
    """
    Request for a pre-signed upload URL.

    Example:
        {
            "projectId": "550e8400-...",
            "folderId": null,
            "fileName": "IMG_0042.jpg",
            "fileSize": 2483112,
            "fileType": "image/jpeg"
        }
    """
    model_config = ConfigDict(populate_by_name=True)

    project_id: UUID = Field(..., alias="projectId")
    folder_id: UUID | None = Field(default=None, alias="folderId")
    file_name: str = Field(..., alias="fileName", min_length=1, max_length=255)
    file_size: int = Field(..., alias="fileSize", gt=0)
    file_type: str | None = Field(default=None, alias="fileType")


class UploadUrlResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    url: str
    s3_key: str = Field(..., serialization_alias="s3Key")
    user_id: str = Field(..., serialization_alias="userId")


class SaveMetadataRequest(BaseModel):
    """Report a finished upload so the image row can be created."""
    model_config = ConfigDict(populate_by_name=True)

    s3_key: str = Field(..., alias="s3Key", min_length=1)
    file_name: str = Field(..., alias="fileName", min_length=1, max_length=255)
    file_type: str | None = Field(default=None, alias="fileType")
    file_size: int = Field(default=0, alias="fileSize", ge=0)
    project_id: UUID = Field(..., alias="projectId")
    folder_id: UUID | None = Field(default=None, alias="folderId")


class SavedImage(BaseModel):
    id: UUID
    s3_key: str
    file_name: str
    size_bytes: int = 0


class DeleteImageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_id: UUID = Field(..., alias="imageId")


class DeleteFolderImagesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    folder_id: UUID = Field(..., alias="folderId")


class FolderImagesDeletion(BaseModel):
    """
    Outcome of deleting every image directly inside one folder.

    Object deletions that failed are counted but the rows are removed anyway,
    which may leave orphaned objects in the bucket.
    """
    folder_id: str
    images_count: int = 0
    deleted_objects: int = 0
    failed_objects: int = 0
    total_size_mb: float = 0.0

