# =============================================================================
# core/services/notification_service.py - Email Notifications
# =============================================================================
# Activity notifications (marks and comments) and share invitations.
#
# Review services never send email themselves. They call dispatch_activity(),
# which queues a Celery task and returns immediately; any failure to queue
# is logged and swallowed. The worker then runs send_activity_notifications().
#
# Recipients are the project owner plus every accepted collaborator,
# minus the author of the change.
# =============================================================================

import html
import logging
from typing import Any
from uuid import UUID

from app.config import settings
from app.exceptions import NotificationDeliveryError, ProfileNotFoundError, ProjectNotFoundError
from core.models.notification import (
    ActivityNotification,
    NotificationLog,
    NotificationResult,
    NotificationStats,
    NotificationType,
    ShareInvitation,
)
from lib.email_client import EmailClient, EmailDeliveryError, EmailMessage
from lib.supabase_client import SupabaseClient
from lib.utils import full_name, normalize_uuid
from workers import dispatch

logger = logging.getLogger(__name__)

NOTIFICATION_LOG_LIMIT = 50


class NotificationService:
    """
    Service for building, sending and logging notification emails.
    """

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    @staticmethod
    def dispatch_activity(notification: ActivityNotification) -> bool:
        """
        Queue an activity notification without waiting for it.

        Returns:
            True if queued; False (logged) otherwise
        """
        return dispatch.enqueue_activity_notification(notification.to_task_payload())

    # -------------------------------------------------------------------------
    # Recipients & Rendering
    # -------------------------------------------------------------------------

    @staticmethod
    def resolve_recipients(project: dict[str, Any], author_email: str | None) -> list[dict[str, str]]:
        """
        Owner and accepted collaborators, excluding the author.

        Returns:
            List of {"email", "name"} dicts without duplicates
        """
        recipients: list[dict[str, str]] = []
        seen: set[str] = set()
        author = (author_email or "").lower()

        owner_email = SupabaseClient.fetch_user_email(project["user_id"])
        if owner_email:
            owner_profile = SupabaseClient.fetch_profile(project["user_id"])
            recipients.append({
                "email": owner_email,
                "name": full_name(owner_profile, fallback="Project Owner"),
            })

        for share in SupabaseClient.fetch_accepted_shares(project["id"]):
            email = share.get("shared_with")
            if email:
                recipients.append({"email": email, "name": "Shared User"})

        unique = []
        for recipient in recipients:
            key = recipient["email"].lower()
            if key == author or key in seen:
                continue
            seen.add(key)
            unique.append(recipient)
        return unique

    @staticmethod
    def describe_change(notification: ActivityNotification) -> str:
        """One-line description of what changed."""
        kind = notification.type
        if kind.is_mark:
            detail = f"{notification.mark_type or 'unknown'} mark in {notification.mark_color or 'no'} color"
            if kind == NotificationType.MARK_ADDED and notification.coordinates:
                detail += f" at coordinates ({notification.coordinates.x:g}, {notification.coordinates.y:g})"
            return detail
        if kind == NotificationType.COMMENT_DELETED:
            return "Comment was removed"
        return f'Comment: "{notification.content or ""}"'

    @staticmethod
    def render_activity_email(
        notification: ActivityNotification,
        project_name: str,
        image_name: str,
        recipient_email: str,
    ) -> EmailMessage:
        action = notification.type.action_text
        subject = f"[{project_name}] {notification.author_name} {action} on {image_name}"
        detail = NotificationService.describe_change(notification)
        project_url = f"{settings.FRONTEND_URL.rstrip('/')}/project/{notification.project_id}"

        text = (
            f"{notification.author_name} {action}\n\n"
            f"Project: {project_name}\n"
            f"Image: {image_name}\n"
            f"Details: {detail}\n\n"
            f"View the project: {project_url}\n"
        )
        body = (
            f"<h2>{html.escape(notification.author_name)} {action}</h2>"
            f"<p><strong>Project:</strong> {html.escape(project_name)}</p>"
            f"<p><strong>Image:</strong> {html.escape(image_name)}</p>"
            f"<p><strong>Details:</strong> {html.escape(detail)}</p>"
            f'<p><a href="{html.escape(project_url)}">View project</a></p>'
        )

        return EmailMessage(
            to=recipient_email,
            subject=subject,
            html=body,
            text=text,
            sender=settings.NOTIFICATION_FROM_EMAIL,
        )

    # -------------------------------------------------------------------------
    # Sending
    # -------------------------------------------------------------------------

    @staticmethod
    def send_activity_notifications(notification: ActivityNotification) -> NotificationResult:
        """
        Email everyone on the project about one change, then log it.

        Each recipient is sent to independently; a failed send is counted
        and doesn't stop the rest. The log insert is best effort.

        Raises:
            ProjectNotFoundError: If the project no longer exists
        """
        project = SupabaseClient.fetch_project(notification.project_id)
        if not project:
            raise ProjectNotFoundError(str(notification.project_id))

        image = SupabaseClient.fetch_image(notification.image_id)
        image_name = image.get("file_name") if image else "an image"

        recipients = NotificationService.resolve_recipients(project, notification.author_email)
        result = NotificationResult(recipients=len(recipients))

        for recipient in recipients:
            message = NotificationService.render_activity_email(
                notification, project.get("name") or "Untitled Project", image_name, recipient["email"]
            )
            try:
                EmailClient.send(message)
                result.successful += 1
            except EmailDeliveryError as e:
                logger.error(f"Failed to notify {recipient['email']}: {e}")
                result.failed += 1

        logger.info(
            f"Notification {notification.type.value} for project {project['id']}: "
            f"{result.successful} sent, {result.failed} failed"
        )
        NotificationService.store_log(notification, result)
        return result

    @staticmethod
    def store_log(notification: ActivityNotification, result: NotificationResult) -> bool:
        client = SupabaseClient.get_client()
        log = NotificationLog(
            type=notification.type,
            project_id=notification.project_id,
            image_id=notification.image_id,
            author_id=notification.author_id,
            author_name=notification.author_name,
            content=notification.content,
            recipients_count=result.recipients,
            successful_count=result.successful,
            failed_count=result.failed,
        )
        row = log.model_dump(mode="json", exclude={"id", "created_at"})
        try:
            client.table("notification_logs").insert(row).execute()
            return True
        except Exception as e:
            logger.error(f"Failed to store notification log: {e}")
            return False

    @staticmethod
    def send_share_invitation(invitation: ShareInvitation) -> dict[str, Any]:
        """
        Email an invitation to collaborate on a project.

        Raises:
            ProjectNotFoundError: If the project doesn't exist
            ProfileNotFoundError: If the sharer has no profile
            NotificationDeliveryError: If the email can't be sent
        """
        project = SupabaseClient.fetch_project(invitation.project_id)
        if not project:
            raise ProjectNotFoundError(str(invitation.project_id))

        sharer = SupabaseClient.fetch_profile(invitation.shared_by)
        if not sharer:
            raise ProfileNotFoundError(str(invitation.shared_by))

        project_name = project.get("name") or "Untitled Project"
        sharer_name = full_name(sharer, fallback=sharer.get("username") or "A StillColab user")
        link = f"{settings.FRONTEND_URL.rstrip('/')}/share-requests"

        message = EmailMessage(
            to=invitation.shared_with_email,
            subject=f"You've been invited to collaborate on {project_name}",
            text=(
                f"{sharer_name} has invited you to collaborate on \"{project_name}\".\n\n"
                f"Review the invitation: {link}\n"
            ),
            html=(
                f"<p>{html.escape(sharer_name)} has invited you to collaborate on "
                f"<strong>{html.escape(project_name)}</strong>.</p>"
                f'<p><a href="{html.escape(link)}">Review the invitation</a></p>'
            ),
            sender=settings.SHARE_FROM_EMAIL,
        )

        try:
            message_id = EmailClient.send(message)
        except EmailDeliveryError as e:
            logger.error(f"Share invitation to {invitation.shared_with_email} failed: {e}")
            raise NotificationDeliveryError(invitation.shared_with_email, str(e))

        logger.info(f"Sent share invitation for project {project['id']} to {invitation.shared_with_email}")
        return {"message": "Share notification sent", "message_id": message_id}

    # -------------------------------------------------------------------------
    # Log Queries
    # -------------------------------------------------------------------------

    @staticmethod
    def list_logs(author_id: UUID | str, limit: int = NOTIFICATION_LOG_LIMIT) -> list[dict[str, Any]]:
        """Latest notifications triggered by a user, newest first."""
        client = SupabaseClient.get_client()
        response = (
            client.table("notification_logs")
            .select("*")
            .eq("author_id", normalize_uuid(author_id))
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return response.data or []

    @staticmethod
    def project_stats(project_id: UUID | str) -> NotificationStats:
        client = SupabaseClient.get_client()
        response = (
            client.table("notification_logs")
            .select("type, recipients_count, successful_count, failed_count")
            .eq("project_id", normalize_uuid(project_id))
            .execute()
        )

        stats = NotificationStats()
        for row in response.data or []:
            stats.total_notifications += 1
            stats.total_recipients += row.get("recipients_count") or 0
            stats.total_successful += row.get("successful_count") or 0
            stats.total_failed += row.get("failed_count") or 0
            stats.by_type[row["type"]] = stats.by_type.get(row["type"], 0) + 1
        return stats
