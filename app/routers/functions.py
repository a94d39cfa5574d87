# =============================================================================
# app/routers/functions.py - Serverless-Compatible Handlers
# =============================================================================
# JSON handlers mounted under /functions/v1 with the same paths and
# camelCase bodies the web client already uses:
#
# - POST /upload-image/get-upload-url     Pre-signed PUT URL (quota checked)
# - POST /upload-image/save-metadata      Record an uploaded image
# - POST /delete-image                    Delete one image
# - POST /delete-folder-images            Delete every image in a folder
# - POST /send-notifications              Email a project about a change
# - POST /share-notification-email        Email a share invitation
# - POST /create-checkout                 Start a Stripe Checkout session
#
# Success bodies are {"success": true, ...}; errors go through the
# StillColabException handler as {"success": false, "error": ...}.
# =============================================================================

import logging

from fastapi import APIRouter, Depends, Request

from app.auth import AuthUser, get_current_user
from app.config import settings
from app.exceptions import RequestTooLargeError
from core.models.billing import CheckoutRequest
from core.models.image import (
    DeleteFolderImagesRequest,
    DeleteImageRequest,
    SaveMetadataRequest,
    UploadUrlRequest,
    UploadUrlResponse,
)
from core.models.notification import SendNotificationsRequest, ShareInvitation
from core.services.billing_service import BillingService
from core.services.image_service import ImageService
from core.services.notification_service import NotificationService
from core.services.project_service import ProjectService

logger = logging.getLogger(__name__)

router = APIRouter()


async def limit_body_size(request: Request) -> None:
    """
    Reject bodies larger than MAX_METADATA_BODY_BYTES with 413.

    Raises:
        RequestTooLargeError: If the raw body is too large
    """
    body = await request.body()
    if len(body) > settings.MAX_METADATA_BODY_BYTES:
        raise RequestTooLargeError(len(body), settings.MAX_METADATA_BODY_BYTES)


# =============================================================================
# Uploads
# =============================================================================

@router.post("/upload-image/get-upload-url")
async def get_upload_url(
    request: UploadUrlRequest,
    user: AuthUser = Depends(get_current_user),
):
    """
    Issue a short-lived pre-signed URL for uploading one image.

    Refused with 400 STORAGE_QUOTA_EXCEEDED when the file would take the
    user past their plan's storage limit.
    """
    result = ImageService.get_upload_url(user, request)
    return UploadUrlResponse(**result).model_dump(by_alias=True)


@router.post("/upload-image/save-metadata", dependencies=[Depends(limit_body_size)])
async def save_metadata(
    request: SaveMetadataRequest,
    user: AuthUser = Depends(get_current_user),
):
    """
    Record an image after the client has uploaded it.

    Storage usage is incremented in the background.
    """
    result = ImageService.save_metadata(user, request)
    return {"success": True, **result}


# =============================================================================
# Deletion
# =============================================================================

@router.post("/delete-image")
async def delete_image(
    request: DeleteImageRequest,
    user: AuthUser = Depends(get_current_user),
):
    result = ImageService.delete_image(user, request.image_id)
    return {"success": True, "message": result["message"], "imageId": result["image_id"]}


@router.post("/delete-folder-images")
async def delete_folder_images(
    request: DeleteFolderImagesRequest,
    user: AuthUser = Depends(get_current_user),
):
    """
    Delete every image directly inside a folder (not its subfolders).

    All images must belong to the caller. Objects that fail to delete are
    logged; their rows are removed anyway.
    """
    result = ImageService.delete_folder_images(user, request.folder_id)
    if result.images_count == 0:
        return {
            "success": True,
            "message": "No images to delete in this folder",
            "folderImagesCount": 0,
        }

    return {
        "success": True,
        "message": "All folder images deleted successfully",
        "folderImagesCount": result.images_count,
        "failedObjectDeletions": result.failed_objects,
        "totalSizeMB": f"{result.total_size_mb:.2f}",
    }


# =============================================================================
# Email
# =============================================================================

@router.post("/send-notifications")
async def send_notifications(
    request: SendNotificationsRequest,
    user: AuthUser = Depends(get_current_user),
):
    """
    Email the owner and collaborators of a project about a mark or comment
    change, and wait for the result.

    The author is always the caller; the author fields in the body are
    overwritten with the caller's identity.
    """
    notification = request.notification_data.model_copy(
        update={"author_id": user.id, "author_email": user.email}
    )
    ProjectService.get_accessible_project(notification.project_id, user)

    result = NotificationService.send_activity_notifications(notification)
    return {
        "success": True,
        "message": f"Notifications sent to {result.successful} recipients",
        "totalRecipients": result.recipients,
        "successful": result.successful,
        "failed": result.failed,
    }


@router.post("/share-notification-email")
async def share_notification_email(
    request: ShareInvitation,
    user: AuthUser = Depends(get_current_user),
):
    """
    Send a share invitation email for a project the caller owns.
    """
    ProjectService.get_owned_project(request.project_id, user)
    invitation = request.model_copy(update={"shared_by": user.id})
    result = NotificationService.send_share_invitation(invitation)
    return {"success": True, **result}


# =============================================================================
# Billing
# =============================================================================

@router.post("/create-checkout")
async def create_checkout(
    request: CheckoutRequest,
    http_request: Request,
    user: AuthUser = Depends(get_current_user),
):
    """
    Start a Stripe Checkout session for a plan and return its URL.
    """
    origin = http_request.headers.get("origin")
    result = BillingService.create_checkout(user, request.plan_id, origin)
    return {"success": True, **result}
