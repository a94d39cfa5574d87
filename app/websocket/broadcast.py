# =============================================================================
# app/websocket/broadcast.py - Cross-Process Broadcasting
# =============================================================================
# Publishes project change events that get broadcast to WebSocket clients.
#
# Uses Redis pub/sub for cross-process communication:
# - API processes and Celery workers call publish_project_event()
# - The FastAPI lifespan listener subscribes and fans out to WebSocket clients
#
# Events (all scoped to one project):
#   - project_created / project_deleted
#   - project_updated: name, visibility or thumbnail changed
#   - folders_changed: a folder was created, renamed or deleted
#   - images_changed: images were added, approved or deleted
#   - marks_changed / comments_changed: review activity on an image
# =============================================================================

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

# Redis channel for WebSocket events
WEBSOCKET_CHANNEL = "stillcolab:websocket:events"


def get_redis_client():
    """Get a Redis client for pub/sub operations."""
    import redis
    from app.config import settings
    return redis.from_url(settings.REDIS_URL)


def publish_project_event(project_id: str, event_type: str, data: dict[str, Any] | None = None) -> bool:
    """
    Publish an event that will be broadcast to everyone watching a project.

    Failures are logged and reported through the return value; callers
    never fail a request because an event could not be published.

    Args:
        project_id: The project to broadcast to
        event_type: Event type (folders_changed, marks_changed, ...)
        data: Event data to include

    Returns:
        bool: True if published successfully
    """
    try:
        client = get_redis_client()

        message = json.dumps({
            "project_id": str(project_id),
            "type": event_type,
            **(data or {})
        }, default=str)

        client.publish(WEBSOCKET_CHANNEL, message)

        logger.debug(f"Published {event_type} event for project {project_id}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish event: {e}")
        return False


def publish_folders_changed(project_id: str, action: str, folder_id: str) -> bool:
    return publish_project_event(
        project_id, "folders_changed", {"action": action, "folder_id": str(folder_id)}
    )


def publish_images_changed(project_id: str, action: str, image_ids: list[str] | None = None) -> bool:
    return publish_project_event(
        project_id,
        "images_changed",
        {"action": action, "image_ids": [str(i) for i in image_ids or []]},
    )


def publish_review_changed(project_id: str, kind: str, action: str, image_id: str, item_id: str) -> bool:
    """
    Publish a marks_changed or comments_changed event.

    Args:
        kind: "marks" or "comments"
        action: "added", "updated" or "deleted"
    """
    return publish_project_event(
        project_id,
        f"{kind}_changed",
        {"action": action, "image_id": str(image_id), "id": str(item_id)},
    )
