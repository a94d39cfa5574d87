# =============================================================================
# app/websocket/ - Real-Time Project Change Feed
# =============================================================================
# Services and Celery workers publish project events to Redis
# (broadcast.py); each API process relays them (listener.py) to the
# viewers connected to it (manager.py, routes.py).
#
#   from app.websocket import publish_folders_changed
#   publish_folders_changed(project_id, "created", folder_id)
# =============================================================================

from app.websocket.broadcast import (
    WEBSOCKET_CHANNEL,
    publish_folders_changed,
    publish_images_changed,
    publish_project_event,
    publish_review_changed,
)
from app.websocket.manager import websocket_manager

__all__ = [
    "WEBSOCKET_CHANNEL",
    "publish_folders_changed",
    "publish_images_changed",
    "publish_project_event",
    "publish_review_changed",
    "websocket_manager",
]
