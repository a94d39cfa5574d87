# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# Background processing for storage-quota updates and notification emails.
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions
# - dispatch.py: Fire-and-forget enqueue helpers used by the services
# - config.py: Worker-specific settings
#
# Usage:
#   # Start worker
#   celery -A workers.celery_app worker --loglevel=info
#
#   # Queue work (from a service)
#   from workers import dispatch
#   dispatch.enqueue_storage_increment(user_id, size_mb)
# =============================================================================

from .celery_app import celery_app
from . import dispatch, tasks

__all__ = [
    "celery_app",
    "dispatch",
    "tasks",
]
