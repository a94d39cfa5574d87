# =============================================================================
# core/services/mark_service.py - Image Mark Business Logic
# =============================================================================
# Marks (circles, rectangles, points) drawn on images by project viewers.
# Each change queues an activity notification and publishes a
# marks_changed event; neither can fail the request.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.auth.models import AuthUser
from app.exceptions import DatabaseOperationError, MarkNotFoundError, ProjectAccessDeniedError
from app.websocket.broadcast import publish_review_changed
from core.models.mark import Mark, MarkCreate, MarkUpdate
from core.models.notification import ActivityNotification, Coordinates, NotificationType
from core.services.image_service import ImageService
from core.services.notification_service import NotificationService
from core.services.profile_service import ProfileService
from core.services.project_service import ProjectService
from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid

logger = logging.getLogger(__name__)


class MarkService:
    """
    Service for image marks.

    Stored rows use the image_marks column names; everything returned to
    callers is converted to Mark.
    """

    @staticmethod
    def list_marks(image_id: UUID | str, user: AuthUser | None) -> list[Mark]:
        image = ImageService.get_image(image_id)
        ProjectService.get_accessible_project(image["project_id"], user)

        client = SupabaseClient.get_client()
        response = (
            client.table("image_marks")
            .select("*")
            .eq("image_id", str(image["id"]))
            .order("created_at")
            .execute()
        )
        return [Mark.from_row(row) for row in response.data or []]

    @staticmethod
    def count_marks(image_id: UUID | str) -> int:
        client = SupabaseClient.get_client()
        response = (
            client.table("image_marks")
            .select("id", count="exact")
            .eq("image_id", normalize_uuid(image_id))
            .execute()
        )
        if response.count is not None:
            return response.count
        return len(response.data or [])

    @staticmethod
    def _get_mark_row(mark_id: UUID | str) -> dict[str, Any]:
        client = SupabaseClient.get_client()
        mark_id_str = normalize_uuid(mark_id)
        try:
            response = (
                client.table("image_marks")
                .select("*")
                .eq("id", mark_id_str)
                .single()
                .execute()
            )
        except Exception as e:
            if SupabaseClient.is_not_found(e):
                raise MarkNotFoundError(mark_id_str)
            raise
        if not response.data:
            raise MarkNotFoundError(mark_id_str)
        return response.data

    @staticmethod
    def _get_modifiable_mark(mark_id: UUID | str, user: AuthUser) -> dict[str, Any]:
        """
        A mark the user may change: their own, or any mark on a project they own.

        Raises:
            MarkNotFoundError: If the mark doesn't exist
            ProjectAccessDeniedError: Otherwise
        """
        row = MarkService._get_mark_row(mark_id)
        if str(row.get("author_id")) == str(user.id):
            return row

        project = ProjectService.get_project(row["project_id"])
        if not ProjectService.is_owner(project, user):
            raise ProjectAccessDeniedError(str(row["project_id"]), action="change marks in")
        return row

    @staticmethod
    def _notify(
        kind: NotificationType,
        user: AuthUser,
        row: dict[str, Any],
        author_name: str | None = None,
    ) -> None:
        action = kind.value.split("_", 1)[1]
        publish_review_changed(row["project_id"], "marks", action, row["image_id"], row["id"])

        coordinates = None
        if row.get("x_coordinate") is not None and row.get("y_coordinate") is not None:
            coordinates = Coordinates(x=row["x_coordinate"], y=row["y_coordinate"])

        try:
            NotificationService.dispatch_activity(ActivityNotification(
                type=kind,
                project_id=row["project_id"],
                image_id=row["image_id"],
                author_id=user.id,
                author_name=author_name or ProfileService.display_name(user.id, user.email),
                author_email=user.email,
                content=row.get("comment"),
                mark_type=row.get("mark_type"),
                mark_color=row.get("color"),
                coordinates=coordinates,
            ))
        except Exception as e:
            logger.warning(f"Skipped {kind.value} notification for mark {row['id']}: {e}")

    @staticmethod
    def add_mark(user: AuthUser, image_id: UUID | str, mark: MarkCreate) -> Mark:
        """
        Draw a mark on an image.

        Coordinates and sizes are rounded to whole pixels.

        Raises:
            ImageNotFoundError: If the image doesn't exist
            ProjectAccessDeniedError: If the user can't view the project
            DatabaseOperationError: If the insert fails
        """
        image = ImageService.get_image(image_id)
        ProjectService.get_accessible_project(image["project_id"], user)

        author_name = ProfileService.display_name(user.id, user.email)
        row = mark.to_row(
            image_id=str(image["id"]),
            project_id=str(image["project_id"]),
            author_id=str(user.id),
            author_name=author_name,
        )

        client = SupabaseClient.get_client()
        try:
            response = client.table("image_marks").insert(row).execute()
        except Exception as e:
            logger.error(f"Failed to add mark to image {image['id']}: {e}")
            raise DatabaseOperationError("add_mark", str(e))

        if not response.data:
            raise DatabaseOperationError("add_mark", "Insert returned no data")

        saved = response.data[0]
        logger.info(f"Added {saved['mark_type']} mark {saved['id']} to image {image['id']}")
        MarkService._notify(NotificationType.MARK_ADDED, user, saved, author_name)
        return Mark.from_row(saved)

    @staticmethod
    def update_mark(user: AuthUser, mark_id: UUID | str, updates: MarkUpdate) -> Mark:
        """
        Apply a partial update to a mark.

        Raises:
            MarkNotFoundError: If the mark doesn't exist
            ProjectAccessDeniedError: If the user isn't the author or project owner
        """
        row = MarkService._get_modifiable_mark(mark_id, user)
        changes = updates.to_row_updates()
        if not changes:
            return Mark.from_row(row)

        client = SupabaseClient.get_client()
        try:
            response = (
                client.table("image_marks")
                .update(changes)
                .eq("id", row["id"])
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to update mark {row['id']}: {e}")
            raise DatabaseOperationError("update_mark", str(e))

        saved = response.data[0] if response.data else {**row, **changes}
        MarkService._notify(NotificationType.MARK_UPDATED, user, saved)
        return Mark.from_row(saved)

    @staticmethod
    def delete_mark(user: AuthUser, mark_id: UUID | str) -> bool:
        """
        Delete a mark. The row is read first so the notification can
        describe what was removed.

        Raises:
            MarkNotFoundError: If the mark doesn't exist
            ProjectAccessDeniedError: If the user isn't the author or project owner
        """
        row = MarkService._get_modifiable_mark(mark_id, user)

        client = SupabaseClient.get_client()
        try:
            client.table("image_marks").delete().eq("id", row["id"]).execute()
        except Exception as e:
            logger.error(f"Failed to delete mark {row['id']}: {e}")
            raise DatabaseOperationError("delete_mark", str(e))

        logger.info(f"Deleted mark {row['id']}")
        MarkService._notify(NotificationType.MARK_DELETED, user, row)
        return True
