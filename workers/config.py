# =============================================================================
# workers/config.py - Celery Worker Configuration
# =============================================================================
# Loaded with app.config_from_object("workers.config:CeleryConfig").
#
# Two queues besides "default":
#   quota          storage usage increments/adjustments (fast, DB only)
#   notifications  Resend emails (slow, network bound, retried)
#
# Run both from one worker in development:
#   celery -A workers.celery_app worker -Q default,quota,notifications
# =============================================================================

from app.config import settings

QUOTA_QUEUE = "quota"
NOTIFICATIONS_QUEUE = "notifications"

SHARE_INVITATION_MAX_RETRIES = 3
SHARE_INVITATION_RETRY_DELAY = 60


class CeleryConfig:
    """Celery settings for the StillColab workers."""

    broker_url = settings.REDIS_URL
    result_backend = settings.REDIS_URL
    broker_connection_retry_on_startup = True

    # Redeliver tasks interrupted by a worker crash
    task_acks_late = True
    worker_prefetch_multiplier = 1

    # Emails and RPC calls finish in seconds
    task_time_limit = 120
    task_soft_time_limit = 90
    result_expires = 3600

    task_serializer = "json"
    result_serializer = "json"
    accept_content = ["json"]

    task_default_queue = "default"
    task_routes = {
        "workers.tasks.increment_storage_usage": {"queue": QUOTA_QUEUE},
        "workers.tasks.adjust_storage_usage": {"queue": QUOTA_QUEUE},
        "workers.tasks.send_activity_notifications": {"queue": NOTIFICATIONS_QUEUE},
        "workers.tasks.send_share_invitation": {"queue": NOTIFICATIONS_QUEUE},
    }

    # Quota results are never read back
    task_annotations = {
        "workers.tasks.increment_storage_usage": {"ignore_result": True},
        "workers.tasks.adjust_storage_usage": {"ignore_result": True},
        "workers.tasks.send_share_invitation": {
            "max_retries": SHARE_INVITATION_MAX_RETRIES,
            "default_retry_delay": SHARE_INVITATION_RETRY_DELAY,
        },
    }

    worker_send_task_events = True
    task_send_sent_event = True

    timezone = "UTC"
    enable_utc = True
