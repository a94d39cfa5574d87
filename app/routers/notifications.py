# =============================================================================
# app/routers/notifications.py - Notification Log Endpoints
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from app.auth import AuthUser, get_current_user
from core.services.notification_service import NOTIFICATION_LOG_LIMIT, NotificationService
from core.services.project_service import ProjectService

router = APIRouter()


@router.get("")
async def list_my_notifications(
    user: AuthUser = Depends(get_current_user),
    limit: Annotated[int, Query(ge=1, le=NOTIFICATION_LOG_LIMIT)] = NOTIFICATION_LOG_LIMIT,
):
    """
    Notifications triggered by the user's own marks and comments, newest first.
    """
    logs = NotificationService.list_logs(user.id, limit=limit)
    return {"success": True, "notifications": logs, "total": len(logs)}


@router.get("/projects/{project_id}/stats")
async def get_project_stats(
    project_id: Annotated[UUID, Path(description="Project UUID")],
    user: AuthUser = Depends(get_current_user),
):
    ProjectService.get_owned_project(project_id, user)
    stats = NotificationService.project_stats(project_id)
    return {"success": True, **stats.model_dump()}
