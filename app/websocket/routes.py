# =============================================================================
# app/websocket/routes.py - Project Change Feed
# =============================================================================
# Connect: ws://host/ws/projects/{project_id}?token={access_token}
#
# Server messages:
#   {"type": "connected", "project_id": "...", "viewers": [...]}
#   {"type": "viewers_changed", "viewers": [...]}
#   {"type": "folders_changed", "action": "created", "folder_id": "..."}
#   {"type": "images_changed", "action": "deleted", "image_ids": [...]}
#   {"type": "marks_changed" | "comments_changed", "action": ..., "image_id": ...}
#   {"type": "project_created" | "project_updated" | "project_deleted" | "share_accepted", ...}
#
# The client may send "ping" and gets "pong" back; anything else is ignored.
# =============================================================================

import logging
from uuid import UUID

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from app.auth.dependencies import TokenValidationError, decode_access_token
from app.exceptions import ProjectAccessDeniedError, ProjectNotFoundError
from app.websocket.manager import websocket_manager
from core.services.project_service import ProjectService

logger = logging.getLogger(__name__)

router = APIRouter()

CLOSE_INVALID_TOKEN = 4001
CLOSE_ACCESS_DENIED = 4003
CLOSE_NOT_FOUND = 4004


@router.websocket("/ws/projects/{project_id}")
async def project_websocket(
    websocket: WebSocket,
    project_id: UUID,
    token: str = Query(..., description="Supabase access token"),
):
    """
    Stream change events for one project to a viewer.

    Close codes: 4001 invalid token, 4003 no access, 4004 no such project.
    """
    try:
        user = decode_access_token(token)
    except TokenValidationError as e:
        logger.info(f"WebSocket rejected for project {project_id}: {e}")
        await websocket.close(code=CLOSE_INVALID_TOKEN, reason="Invalid token")
        return

    try:
        ProjectService.get_accessible_project(project_id, user)
    except ProjectNotFoundError:
        await websocket.close(code=CLOSE_NOT_FOUND, reason="Project not found")
        return
    except ProjectAccessDeniedError:
        await websocket.close(code=CLOSE_ACCESS_DENIED, reason="Access denied")
        return

    key = str(project_id)
    viewers = await websocket_manager.connect(key, websocket, user.id)

    try:
        await websocket.send_json({"type": "connected", "project_id": key, "viewers": viewers})
        await websocket_manager.broadcast(
            key, {"type": "viewers_changed", "viewers": viewers}, exclude=websocket
        )

        while True:
            if await websocket.receive_text() == "ping":
                await websocket.send_text("pong")

    except WebSocketDisconnect:
        logger.debug(f"Viewer {user.id} disconnected from project {key}")
    finally:
        remaining = websocket_manager.disconnect(key, websocket)
        await websocket_manager.broadcast(key, {"type": "viewers_changed", "viewers": remaining})


@router.get("/ws/status")
async def websocket_status():
    projects = list(websocket_manager.connections)
    return {
        "total_connections": websocket_manager.count(),
        "active_projects": projects,
        "project_count": len(projects),
    }
