# =============================================================================
# workers/dispatch.py - Fire-and-Forget Task Enqueueing
# =============================================================================
# Services call these helpers instead of the tasks directly. Each one queues
# a task with .delay() and returns at once. If the broker is unreachable the
# failure is logged and False is returned; the caller's request still
# succeeds.
# =============================================================================

import logging
from typing import Any

logger = logging.getLogger(__name__)


def _enqueue(task_name: str, *args: Any) -> bool:
    from workers import tasks

    try:
        getattr(tasks, task_name).delay(*args)
        return True
    except Exception as e:
        logger.error(f"Failed to enqueue {task_name}: {e}")
        return False


def enqueue_storage_increment(user_id: str, size_mb: float) -> bool:
    """Queue an increase of a user's storage usage."""
    return _enqueue("increment_storage_usage", user_id, size_mb)


def enqueue_storage_adjustment(user_id: str, delta_mb: float) -> bool:
    """Queue a signed change of a user's storage usage."""
    return _enqueue("adjust_storage_usage", user_id, delta_mb)


def enqueue_activity_notification(notification: dict[str, Any]) -> bool:
    """Queue emails about a mark or comment change."""
    return _enqueue("send_activity_notifications", notification)


def enqueue_share_invitation(invitation: dict[str, Any]) -> bool:
    """Queue a share invitation email."""
    return _enqueue("send_share_invitation", invitation)
