# =============================================================================
# app/websocket/manager.py - Project Viewer Connections
# =============================================================================
# Tracks, per project, which signed-in users have the project open and
# pushes change events to them.
#
# Usage:
#   viewers = await websocket_manager.connect(project_id, websocket, user.id)
#   await websocket_manager.broadcast(project_id, {"type": "marks_changed", ...})
#   websocket_manager.disconnect(project_id, websocket)
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    WebSocket connections grouped by project.

    One user may hold several connections (tabs); viewers() reports each
    user once.
    """

    def __init__(self):
        # project_id -> {websocket: user_id}
        self.connections: dict[str, dict[WebSocket, UUID]] = {}

    async def connect(self, project_id: str, websocket: WebSocket, user_id: UUID) -> list[str]:
        """
        Accept a connection for a project.

        Returns:
            The project's viewers after joining
        """
        await websocket.accept()
        self.connections.setdefault(project_id, {})[websocket] = user_id
        logger.info(f"User {user_id} watching project {project_id} ({self.count(project_id)} connections)")
        return self.viewers(project_id)

    def disconnect(self, project_id: str, websocket: WebSocket) -> list[str]:
        """
        Forget a connection. Safe for connections broadcast() already dropped.

        Returns:
            The project's remaining viewers
        """
        watchers = self.connections.get(project_id)
        if watchers is not None:
            user_id = watchers.pop(websocket, None)
            if user_id is not None:
                logger.info(f"User {user_id} left project {project_id}")
            if not watchers:
                del self.connections[project_id]
        return self.viewers(project_id)

    async def broadcast(
        self,
        project_id: str,
        message: dict[str, Any],
        exclude: WebSocket | None = None,
    ) -> int:
        """
        Send a JSON message to every connection on a project.

        Connections that fail to receive are dropped.

        Returns:
            Number of connections the message reached
        """
        watchers = self.connections.get(project_id)
        if not watchers:
            return 0

        sent = 0
        for websocket in list(watchers):
            if websocket is exclude:
                continue
            try:
                await websocket.send_json(message)
                sent += 1
            except Exception as e:
                logger.warning(f"Dropping WebSocket on project {project_id}: {e}")
                self.disconnect(project_id, websocket)

        logger.debug(f"Sent {message.get('type')} to {sent} viewer(s) of project {project_id}")
        return sent

    def viewers(self, project_id: str) -> list[str]:
        """Distinct user IDs watching a project."""
        return sorted({str(user_id) for user_id in self.connections.get(project_id, {}).values()})

    def count(self, project_id: str | None = None) -> int:
        """Open connections on one project, or overall."""
        if project_id is not None:
            return len(self.connections.get(project_id, {}))
        return sum(len(watchers) for watchers in self.connections.values())


websocket_manager = ConnectionManager()
