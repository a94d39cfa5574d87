# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every error carries a machine-readable code and, where possible, a
# suggestion telling the caller how to recover.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class StillColabException(Exception):
    """
    Base exception for the StillColab API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "STILLCOLAB_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "success": False,
            "error": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Project Exceptions
# =============================================================================

class ProjectNotFoundError(StillColabException):
    """Raised when a project ID doesn't exist."""

    def __init__(self, project_id: str):
        super().__init__(
            message=f"Project not found: {project_id}",
            code="PROJECT_NOT_FOUND",
            status_code=404,
            suggestion="Check that the project_id is correct and the project hasn't been deleted",
            details={"project_id": project_id}
        )


class ProjectAccessDeniedError(StillColabException):
    """Raised when a user may not read or modify a project."""

    def __init__(self, project_id: str, action: str = "access"):
        super().__init__(
            message=f"Access denied to project: {project_id}",
            code="PROJECT_ACCESS_DENIED",
            status_code=403,
            suggestion=f"Ask the project owner to share the project before you {action} it",
            details={"project_id": project_id, "action": action}
        )


class ProjectLimitReachedError(StillColabException):
    """Raised when the user's plan does not allow another project."""

    def __init__(self, current_count: int, allowed: int):
        super().__init__(
            message=f"You've reached your project limit ({allowed}). Please upgrade your plan to create more projects.",
            code="PROJECT_LIMIT_REACHED",
            status_code=403,
            suggestion="Delete an existing project or upgrade your plan",
            details={"current_count": current_count, "allowed_projects": allowed}
        )


# =============================================================================
# Folder Exceptions
# =============================================================================

class FolderNotFoundError(StillColabException):
    """Raised when a folder ID doesn't exist."""

    def __init__(self, folder_id: str):
        super().__init__(
            message=f"Folder not found: {folder_id}",
            code="FOLDER_NOT_FOUND",
            status_code=404,
            suggestion="Check that the folder_id is correct",
            details={"folder_id": folder_id}
        )


class FolderNotEmptyError(StillColabException):
    """Raised when a non-recursive delete targets a folder with subfolders."""

    def __init__(self, folder_id: str, subfolder_count: int):
        super().__init__(
            message=f"Folder {folder_id} has {subfolder_count} subfolder(s)",
            code="FOLDER_NOT_EMPTY",
            status_code=409,
            suggestion="Delete recursively or remove the subfolders first",
            details={"folder_id": folder_id, "subfolder_count": subfolder_count}
        )


# =============================================================================
# Image & Upload Exceptions
# =============================================================================

class ImageNotFoundError(StillColabException):
    """Raised when an image ID doesn't exist."""

    def __init__(self, image_id: str):
        super().__init__(
            message=f"Image not found: {image_id}",
            code="IMAGE_NOT_FOUND",
            status_code=404,
            suggestion="Check that the image_id is correct",
            details={"image_id": image_id}
        )


class ImagePermissionError(StillColabException):
    """Raised when a user tries to delete images they did not upload."""

    def __init__(self, image_id: str | None = None, folder_id: str | None = None):
        target = f"image {image_id}" if image_id else f"images in folder {folder_id}"
        details = {"image_id": image_id} if image_id else {"folder_id": folder_id}
        super().__init__(
            message=f"You don't have permission to delete {target}",
            code="IMAGE_PERMISSION_DENIED",
            status_code=403,
            suggestion="Only the user who uploaded an image can delete it",
            details=details
        )


class StorageQuotaExceededError(StillColabException):
    """Raised when an upload would push usage past the plan's limit."""

    def __init__(self, used_bytes: int, file_size: int, limit_bytes: int):
        super().__init__(
            message="Storage quota exceeded. Please upgrade your plan.",
            code="STORAGE_QUOTA_EXCEEDED",
            status_code=400,
            suggestion="Delete unused images or upgrade your plan",
            details={
                "used_bytes": used_bytes,
                "file_size": file_size,
                "limit_bytes": limit_bytes,
            }
        )


class InvalidObjectKeyError(StillColabException):
    """Raised when saved metadata points at a key outside the caller's prefix."""

    def __init__(self, s3_key: str):
        super().__init__(
            message=f"Invalid storage key: {s3_key}",
            code="INVALID_OBJECT_KEY",
            status_code=400,
            suggestion="Use the s3Key returned by get-upload-url",
            details={"s3_key": s3_key}
        )


class RequestTooLargeError(StillColabException):
    """Raised when a request body exceeds the accepted size."""

    def __init__(self, size: int, max_size: int):
        super().__init__(
            message="Payload too large",
            code="PAYLOAD_TOO_LARGE",
            status_code=413,
            suggestion=f"Send a body smaller than {max_size} bytes",
            details={"size": size, "max_size": max_size}
        )


class StorageDeleteError(StillColabException):
    """Raised when an object cannot be removed from the bucket."""

    def __init__(self, key: str, error: str):
        super().__init__(
            message=f"Failed to delete file from storage: {error}",
            code="STORAGE_DELETE_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"s3_key": key, "error": error}
        )


class StorageSigningError(StillColabException):
    """Raised when a pre-signed URL cannot be generated."""

    def __init__(self, key: str, error: str):
        super().__init__(
            message=f"Failed to generate storage URL: {error}",
            code="STORAGE_SIGNING_ERROR",
            status_code=500,
            suggestion="Check the S3 credentials and bucket configuration",
            details={"s3_key": key, "error": error}
        )


class DatabaseOperationError(StillColabException):
    """Raised when a required database write or read fails."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            message=f"Database operation failed ({operation}): {error}",
            code="DATABASE_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"operation": operation, "error": error}
        )


# =============================================================================
# Comment & Mark Exceptions
# =============================================================================

class CommentNotFoundError(StillColabException):
    """Raised when a comment ID doesn't exist."""

    def __init__(self, comment_id: str):
        super().__init__(
            message=f"Comment not found: {comment_id}",
            code="COMMENT_NOT_FOUND",
            status_code=404,
            details={"comment_id": comment_id}
        )


class CommentPermissionError(StillColabException):
    """Raised when a user edits or deletes someone else's comment."""

    def __init__(self, comment_id: str):
        super().__init__(
            message="You can only modify your own comments",
            code="COMMENT_PERMISSION_DENIED",
            status_code=403,
            details={"comment_id": comment_id}
        )


class MarkNotFoundError(StillColabException):
    """Raised when a mark ID doesn't exist."""

    def __init__(self, mark_id: str):
        super().__init__(
            message=f"Mark not found: {mark_id}",
            code="MARK_NOT_FOUND",
            status_code=404,
            details={"mark_id": mark_id}
        )


# =============================================================================
# Sharing Exceptions
# =============================================================================

class ShareNotFoundError(StillColabException):
    """Raised when a share request doesn't exist or isn't addressed to the user."""

    def __init__(self, share_id: str):
        super().__init__(
            message=f"Share request not found: {share_id}",
            code="SHARE_NOT_FOUND",
            status_code=404,
            details={"share_id": share_id}
        )


class ShareAlreadyExistsError(StillColabException):
    """Raised when a project is already shared with an email address."""

    def __init__(self, project_id: str, email: str):
        super().__init__(
            message=f"Project is already shared with {email}",
            code="SHARE_ALREADY_EXISTS",
            status_code=409,
            suggestion="Wait for the recipient to accept the existing invitation",
            details={"project_id": project_id, "email": email}
        )


# =============================================================================
# Profile, Plan & Notification Exceptions
# =============================================================================

class ProfileNotFoundError(StillColabException):
    """Raised when a profile cannot be found."""

    def __init__(self, identifier: str):
        super().__init__(
            message=f"Profile not found: {identifier}",
            code="PROFILE_NOT_FOUND",
            status_code=404,
            details={"profile": identifier}
        )


class UsernameTakenError(StillColabException):
    """Raised when a requested username is already in use."""

    def __init__(self, username: str):
        super().__init__(
            message=f"Username is already taken: {username}",
            code="USERNAME_TAKEN",
            status_code=409,
            suggestion="Pick a different username",
            details={"username": username}
        )


class PlanNotFoundError(StillColabException):
    """Raised when a subscription plan doesn't exist."""

    def __init__(self, plan_id: str):
        super().__init__(
            message=f"Plan not found: {plan_id}",
            code="PLAN_NOT_FOUND",
            status_code=404,
            details={"plan_id": plan_id}
        )


class CheckoutError(StillColabException):
    """Raised when the payment provider rejects a checkout request."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to create checkout session: {error}",
            code="CHECKOUT_FAILED",
            status_code=502,
            suggestion="Try again later or contact support if the issue persists",
            details={"error": error}
        )


class NotificationDeliveryError(StillColabException):
    """Raised when a required email could not be delivered."""

    def __init__(self, recipient: str, error: str):
        super().__init__(
            message=f"Failed to send email: {error}",
            code="EMAIL_DELIVERY_FAILED",
            status_code=500,
            details={"recipient": recipient, "error": error}
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def stillcolab_exception_handler(
    request: Request,
    exc: StillColabException
) -> JSONResponse:
    """
    Convert StillColabException to JSON response.

    Returns structured error with:
    - success: Always false
    - error: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Converts validation errors to user-friendly messages.
    """
    errors = exc.errors() if hasattr(exc, "errors") else str(exc)
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": "Missing or invalid parameters",
            "code": "VALIDATION_ERROR",
            "errors": [
                {"loc": list(err.get("loc", [])), "msg": err.get("msg")}
                for err in errors
            ] if isinstance(errors, list) else errors,
        }
    )
