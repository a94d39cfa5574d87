# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Background work queued by the API:
#
# - increment_storage_usage: add an upload's size to the owner's quota
# - adjust_storage_usage: signed quota change (image deletion)
# - send_activity_notifications: email a project about a mark/comment change
# - send_share_invitation: email a share invitation
#
# Arguments are JSON-serializable (IDs as strings, models as dicts).
# Service imports happen inside each task so the worker and the API can
# import this module without pulling each other in.
# =============================================================================

import logging
from typing import Any

from celery import shared_task

logger = logging.getLogger(__name__)


# =============================================================================
# Storage Quota
# =============================================================================

@shared_task(bind=True, name="workers.tasks.increment_storage_usage")
def increment_storage_usage(self, user_id: str, size_mb: float) -> dict[str, Any]:
    """
    Add an uploaded file's size to a user's storage usage.

    Args:
        user_id: Uploader
        size_mb: File size in megabytes

    Returns:
        Dict with success flag
    """
    from core.services.profile_service import ProfileService

    success = ProfileService.increment_storage_usage(user_id, size_mb)
    if not success:
        logger.warning(f"Storage increment for {user_id} was not applied")
    return {"success": success, "user_id": user_id, "size_mb": size_mb}


@shared_task(bind=True, name="workers.tasks.adjust_storage_usage")
def adjust_storage_usage(self, user_id: str, delta_mb: float) -> dict[str, Any]:
    """
    Apply a signed change to a user's storage usage (clamped at zero).

    Returns:
        Dict with success flag and the new total
    """
    from core.services.profile_service import ProfileService

    new_total = ProfileService.adjust_storage_usage(user_id, delta_mb)
    return {
        "success": new_total is not None,
        "user_id": user_id,
        "total_size_mb": new_total,
    }


# =============================================================================
# Email Notifications
# =============================================================================

@shared_task(bind=True, name="workers.tasks.send_activity_notifications")
def send_activity_notifications(self, notification: dict[str, Any]) -> dict[str, Any]:
    """
    Email the owner and collaborators of a project about one change.

    Args:
        notification: ActivityNotification as a JSON dict

    Returns:
        Dict with recipient/success/failure counts
    """
    from app.exceptions import ProjectNotFoundError
    from core.models.notification import ActivityNotification
    from core.services.notification_service import NotificationService

    data = ActivityNotification.model_validate(notification)
    logger.info(f"Sending {data.type.value} notifications for project {data.project_id}")

    try:
        result = NotificationService.send_activity_notifications(data)
    except ProjectNotFoundError:
        logger.warning(f"Project {data.project_id} is gone; notification dropped")
        return {"success": False, "error": "Project not found"}

    return {"success": True, **result.model_dump()}


@shared_task(bind=True, name="workers.tasks.send_share_invitation")
def send_share_invitation(self, invitation: dict[str, Any]) -> dict[str, Any]:
    """
    Email a share invitation, retrying when the provider fails.

    Args:
        invitation: ShareInvitation as a JSON dict
    """
    from app.exceptions import NotificationDeliveryError, StillColabException
    from core.models.notification import ShareInvitation
    from core.services.notification_service import NotificationService

    data = ShareInvitation.model_validate(invitation)

    try:
        result = NotificationService.send_share_invitation(data)
    except NotificationDeliveryError as e:
        logger.warning(f"Share invitation to {data.shared_with_email} failed, retrying: {e.message}")
        raise self.retry(exc=e)
    except StillColabException as e:
        logger.error(f"Share invitation to {data.shared_with_email} dropped: {e.message}")
        return {"success": False, "error": e.message}

    return {"success": True, **result}
