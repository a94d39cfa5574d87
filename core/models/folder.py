# =============================================================================
# core/models/folder.py - Folder Schemas
# =============================================================================
# Folders form a tree inside a project (parent_id is null for root folders).
# Deleting a folder deletes everything beneath it; FolderDeletionResult
# reports what happened across the whole subtree.
# =============================================================================

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class FolderCreate(BaseModel):
    """
    Schema for creating a folder.

    Example:
        {"name": "Day 1", "parent_id": null}
    """
    name: str = Field(..., min_length=1, max_length=200, examples=["Day 1"])
    parent_id: UUID | None = Field(
        default=None,
        description="Parent folder; omit to create a root folder"
    )


class FolderRename(BaseModel):
    """Schema for renaming a folder."""
    name: str = Field(..., min_length=1, max_length=200)


class FolderResponse(BaseModel):
    id: UUID
    name: str
    project_id: UUID
    parent_id: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class FolderDeletionResult(BaseModel):
    """
    Summary of a (possibly recursive) folder deletion.

    Counts cover the folder and every descendant that was processed.
    `success` refers to the requested folder only: a failed descendant
    is listed in `failed_folders` but doesn't flip it.
    """
    folder_id: str
    success: bool = False
    deleted_folders: list[str] = Field(default_factory=list)
    failed_folders: list[str] = Field(default_factory=list)
    deleted_images: int = 0
    failed_object_deletions: int = 0
    freed_mb: float = 0.0

    def absorb(self, child: "FolderDeletionResult") -> None:
        """Fold a child folder's result into this one."""
        self.deleted_folders.extend(child.deleted_folders)
        self.failed_folders.extend(child.failed_folders)
        self.deleted_images += child.deleted_images
        self.failed_object_deletions += child.failed_object_deletions
        self.freed_mb += child.freed_mb
