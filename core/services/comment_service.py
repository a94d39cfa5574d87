# =============================================================================
# core/services/comment_service.py - Image Comment Business Logic
# =============================================================================
# Comments are readable by anyone who can view the project and writable by
# any signed-in viewer. Only the author may edit or delete a comment.
# Every change queues an activity notification and publishes a
# comments_changed event; neither can fail the request.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.auth.models import AuthUser
from app.exceptions import (
    CommentNotFoundError,
    CommentPermissionError,
    DatabaseOperationError,
)
from app.websocket.broadcast import publish_review_changed
from core.models.comment import CommentCreate, CommentUpdate
from core.models.notification import ActivityNotification, NotificationType
from core.services.image_service import ImageService
from core.services.notification_service import NotificationService
from core.services.profile_service import ProfileService
from core.services.project_service import ProjectService
from lib.supabase_client import SupabaseClient
from lib.utils import full_name, normalize_uuid

logger = logging.getLogger(__name__)


class CommentService:
    """
    Service for image comments.
    """

    @staticmethod
    def list_comments(image_id: UUID | str, user: AuthUser | None) -> list[dict[str, Any]]:
        """
        List an image's comments, oldest first, with author names.

        Author profiles are loaded with one query for all authors.
        """
        image = ImageService.get_image(image_id)
        ProjectService.get_accessible_project(image["project_id"], user)

        client = SupabaseClient.get_client()
        response = (
            client.table("image_comments")
            .select("*")
            .eq("image_id", str(image["id"]))
            .order("created_at")
            .execute()
        )
        comments = response.data or []
        if not comments:
            return []

        author_ids = sorted({str(c["user_id"]) for c in comments})
        try:
            profiles_response = (
                client.table("profiles")
                .select("id, first_name, last_name, avatar_url")
                .in_("id", author_ids)
                .execute()
            )
            profiles = {str(p["id"]): p for p in profiles_response.data or []}
        except Exception as e:
            logger.warning(f"Could not load comment authors: {e}")
            profiles = {}

        for comment in comments:
            profile = profiles.get(str(comment["user_id"]))
            comment["author_name"] = full_name(profile, fallback="Anonymous")
            comment["author_avatar"] = profile.get("avatar_url") if profile else None

        return comments

    @staticmethod
    def _get_comment(comment_id: UUID | str) -> dict[str, Any]:
        client = SupabaseClient.get_client()
        comment_id_str = normalize_uuid(comment_id)
        try:
            response = (
                client.table("image_comments")
                .select("*")
                .eq("id", comment_id_str)
                .single()
                .execute()
            )
        except Exception as e:
            if SupabaseClient.is_not_found(e):
                raise CommentNotFoundError(comment_id_str)
            raise
        if not response.data:
            raise CommentNotFoundError(comment_id_str)
        return response.data

    @staticmethod
    def _get_own_comment(comment_id: UUID | str, user: AuthUser) -> dict[str, Any]:
        comment = CommentService._get_comment(comment_id)
        if str(comment.get("user_id")) != str(user.id):
            raise CommentPermissionError(normalize_uuid(comment_id))
        return comment

    @staticmethod
    def _after_change(
        kind: NotificationType,
        user: AuthUser,
        image: dict[str, Any],
        comment_id: str,
        content: str | None,
    ) -> None:
        action = kind.value.split("_", 1)[1]
        publish_review_changed(image["project_id"], "comments", action, image["id"], comment_id)
        try:
            NotificationService.dispatch_activity(ActivityNotification(
                type=kind,
                project_id=image["project_id"],
                image_id=image["id"],
                author_id=user.id,
                author_name=ProfileService.display_name(user.id, user.email),
                author_email=user.email,
                content=content,
            ))
        except Exception as e:
            logger.warning(f"Skipped {kind.value} notification for comment {comment_id}: {e}")

    @staticmethod
    def add_comment(user: AuthUser, image_id: UUID | str, data: CommentCreate) -> dict[str, Any]:
        """
        Post a comment on an image.

        Raises:
            ImageNotFoundError: If the image doesn't exist
            ProjectAccessDeniedError: If the user can't view the project
            DatabaseOperationError: If the insert fails
        """
        image = ImageService.get_image(image_id)
        ProjectService.get_accessible_project(image["project_id"], user)

        client = SupabaseClient.get_client()
        row = {
            "image_id": str(image["id"]),
            "user_id": str(user.id),
            "content": data.content,
            "time_marker": data.time_marker,
            "is_reply_to": str(data.is_reply_to) if data.is_reply_to else None,
        }

        try:
            response = client.table("image_comments").insert(row).execute()
        except Exception as e:
            logger.error(f"Failed to add comment to image {image['id']}: {e}")
            raise DatabaseOperationError("add_comment", str(e))

        if not response.data:
            raise DatabaseOperationError("add_comment", "Insert returned no data")

        comment = response.data[0]
        logger.info(f"User {user.id} commented on image {image['id']}")
        CommentService._after_change(
            NotificationType.COMMENT_ADDED, user, image, comment["id"], data.content
        )
        return comment

    @staticmethod
    def update_comment(user: AuthUser, comment_id: UUID | str, data: CommentUpdate) -> dict[str, Any]:
        """
        Edit one of the user's own comments.

        Raises:
            CommentNotFoundError: If the comment doesn't exist
            CommentPermissionError: If the user isn't the author
        """
        comment = CommentService._get_own_comment(comment_id, user)
        image = ImageService.get_image(comment["image_id"])
        client = SupabaseClient.get_client()

        try:
            response = (
                client.table("image_comments")
                .update({"content": data.content})
                .eq("id", comment["id"])
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to update comment {comment['id']}: {e}")
            raise DatabaseOperationError("update_comment", str(e))

        CommentService._after_change(
            NotificationType.COMMENT_UPDATED, user, image, comment["id"], data.content
        )
        return response.data[0] if response.data else {**comment, "content": data.content}

    @staticmethod
    def delete_comment(user: AuthUser, comment_id: UUID | str) -> bool:
        """
        Delete one of the user's own comments.

        Raises:
            CommentNotFoundError: If the comment doesn't exist
            CommentPermissionError: If the user isn't the author
        """
        comment = CommentService._get_own_comment(comment_id, user)
        image = ImageService.get_image(comment["image_id"])
        client = SupabaseClient.get_client()

        try:
            client.table("image_comments").delete().eq("id", comment["id"]).execute()
        except Exception as e:
            logger.error(f"Failed to delete comment {comment['id']}: {e}")
            raise DatabaseOperationError("delete_comment", str(e))

        CommentService._after_change(
            NotificationType.COMMENT_DELETED, user, image, comment["id"], comment.get("content")
        )
        return True
