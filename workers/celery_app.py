# =============================================================================
# workers/celery_app.py - Celery Application
# =============================================================================
# Creates the Celery app the API enqueues to and the workers consume from.
#
# Usage:
#   celery -A workers.celery_app worker --loglevel=info -Q default,quota,notifications
# =============================================================================

import logging

from celery import Celery
from celery.signals import task_failure, task_retry, worker_process_init
from dotenv import load_dotenv

from app.config import settings

load_dotenv()

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def broker_host(url: str) -> str:
    """Broker URL without credentials, for logs."""
    return url.rsplit("@", 1)[-1]


def create_celery_app() -> Celery:
    app = Celery(
        "stillcolab_worker",
        broker=settings.REDIS_URL,
        backend=settings.REDIS_URL,
        include=["workers.tasks"],
    )
    app.config_from_object("workers.config:CeleryConfig")

    logger.info(f"Celery app using broker {broker_host(settings.REDIS_URL)}")
    return app


celery_app = create_celery_app()


# =============================================================================
# Signals
# =============================================================================

@worker_process_init.connect
def reset_clients(**extra):
    """
    Forked worker processes must not reuse the parent's HTTP sessions;
    drop the Supabase and S3 singletons so each process builds its own.
    """
    from lib.object_storage import ObjectStorageClient
    from lib.supabase_client import SupabaseClient

    SupabaseClient._instance = None
    ObjectStorageClient._instance = None


@task_retry.connect
def log_retry(sender=None, request=None, reason=None, **extra):
    logger.warning(f"Retrying {sender.name} [{request.id}] ({request.retries + 1}): {reason}")


@task_failure.connect
def log_failure(sender=None, task_id=None, exception=None, args=None, **extra):
    logger.error(f"Task {sender.name} [{task_id}] failed with {type(exception).__name__}: {exception}")


if __name__ == "__main__":
    celery_app.start()
