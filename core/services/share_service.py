# =============================================================================
# core/services/share_service.py - Project Sharing
# =============================================================================
# Owners invite collaborators by email. Invitations stay pending until the
# recipient accepts or rejects them; only accepted shares grant access.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.auth.models import AuthUser
from app.exceptions import (
    DatabaseOperationError,
    ProjectAccessDeniedError,
    ShareAlreadyExistsError,
    ShareNotFoundError,
)
from app.websocket.broadcast import publish_project_event
from core.models.notification import ShareInvitation
from core.models.share import ProjectShareView, ShareRequestView, ShareStatus
from core.services.project_service import ProjectService
from lib.supabase_client import SupabaseClient
from lib.utils import full_name, normalize_uuid
from workers import dispatch

logger = logging.getLogger(__name__)


class ShareService:
    """
    Service for project share invitations.
    """

    @staticmethod
    def share_project(user: AuthUser, project_id: UUID | str, email: str) -> dict[str, Any]:
        """
        Invite someone to collaborate on a project.

        The invitation email is queued; failing to queue it doesn't undo
        the share.

        Args:
            user: Project owner
            project_id: Project to share
            email: Recipient address (already normalized)

        Returns:
            The inserted project_shares row

        Raises:
            ProjectNotFoundError: If the project doesn't exist
            ProjectAccessDeniedError: If the user doesn't own the project
            ShareAlreadyExistsError: If this email already has a share
        """
        project = ProjectService.get_owned_project(project_id, user)
        client = SupabaseClient.get_client()
        project_id_str = str(project["id"])

        existing = (
            client.table("project_shares")
            .select("id")
            .eq("project_id", project_id_str)
            .eq("shared_with", email)
            .limit(1)
            .execute()
        )
        if existing.data:
            raise ShareAlreadyExistsError(project_id_str, email)

        row = {
            "project_id": project_id_str,
            "shared_by": str(user.id),
            "shared_with": email,
            "status": ShareStatus.PENDING.value,
        }
        try:
            response = client.table("project_shares").insert(row).execute()
        except Exception as e:
            logger.error(f"Failed to share project {project_id_str} with {email}: {e}")
            raise DatabaseOperationError("share_project", str(e))

        share = response.data[0] if response.data else row
        logger.info(f"Project {project_id_str} shared with {email}")

        dispatch.enqueue_share_invitation(ShareInvitation(
            project_id=project["id"],
            shared_by=user.id,
            shared_with_email=email,
        ).model_dump(mode="json"))
        return share

    @staticmethod
    def list_share_requests(user: AuthUser) -> list[ShareRequestView]:
        """Pending invitations addressed to the user's email."""
        if not user.email:
            return []

        client = SupabaseClient.get_client()
        response = (
            client.table("project_shares")
            .select("*")
            .eq("shared_with", user.email.lower())
            .eq("status", ShareStatus.PENDING.value)
            .order("created_at", desc=True)
            .execute()
        )

        requests = []
        for share in response.data or []:
            project = SupabaseClient.fetch_project(share["project_id"])
            sender = SupabaseClient.fetch_profile(share["shared_by"])
            requests.append(ShareRequestView(
                id=share["id"],
                project_id=share["project_id"],
                project_name=(project or {}).get("name") or "Untitled Project",
                shared_by=share["shared_by"],
                sender_name=full_name(sender),
                status=share["status"],
                created_at=share.get("created_at"),
            ))
        return requests

    @staticmethod
    def respond_to_share(user: AuthUser, share_id: UUID | str, accept: bool) -> dict[str, Any]:
        """
        Accept or reject an invitation.

        Raises:
            ShareNotFoundError: If the share doesn't exist or isn't addressed
                to this user
        """
        client = SupabaseClient.get_client()
        share_id_str = normalize_uuid(share_id)

        try:
            response = (
                client.table("project_shares")
                .select("*")
                .eq("id", share_id_str)
                .single()
                .execute()
            )
        except Exception as e:
            if SupabaseClient.is_not_found(e):
                raise ShareNotFoundError(share_id_str)
            raise

        share = response.data
        if not share or (share.get("shared_with") or "").lower() != (user.email or "").lower():
            raise ShareNotFoundError(share_id_str)

        status = ShareStatus.ACCEPTED if accept else ShareStatus.REJECTED
        changes = {"status": status.value, "shared_with_user_id": str(user.id)}
        try:
            updated = (
                client.table("project_shares")
                .update(changes)
                .eq("id", share_id_str)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to update share {share_id_str}: {e}")
            raise DatabaseOperationError("respond_to_share", str(e))

        logger.info(f"User {user.id} {status.value} share {share_id_str}")
        if accept:
            publish_project_event(share["project_id"], "share_accepted", {"share_id": share_id_str})
        return updated.data[0] if updated.data else {**share, **changes}

    @staticmethod
    def list_project_shares(project_id: UUID | str, user: AuthUser) -> list[ProjectShareView]:
        """
        Everyone a project has been shared with, for its owner.

        Raises:
            ProjectAccessDeniedError: If the user doesn't own the project
        """
        project = ProjectService.get_project(project_id)
        if not ProjectService.is_owner(project, user):
            raise ProjectAccessDeniedError(str(project["id"]), action="view shares of")

        client = SupabaseClient.get_client()
        response = (
            client.table("project_shares")
            .select("shared_with, status")
            .eq("project_id", str(project["id"]))
            .execute()
        )
        return [
            ProjectShareView(email=row["shared_with"], status=row["status"])
            for row in response.data or []
        ]
