# =============================================================================
# core/services/vote_service.py - Image Voting
# =============================================================================

import logging
from uuid import UUID

from app.auth.models import AuthUser
from app.exceptions import DatabaseOperationError
from core.models.billing import VoteCount
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)


class VoteService:
    """
    Votes on images. A user's vote for an image is stored once no matter
    how often it is submitted.
    """

    @staticmethod
    def vote_counts() -> list[VoteCount]:
        """Vote totals per image, from get_image_vote_counts."""
        try:
            rows = SupabaseClient.rpc("get_image_vote_counts") or []
        except SupabaseClientError as e:
            logger.error(f"Failed to load vote counts: {e}")
            raise DatabaseOperationError("vote_counts", str(e))
        return [VoteCount(**row) for row in rows]

    @staticmethod
    def user_votes(user: AuthUser) -> list[str]:
        """IDs of the images the user has voted for."""
        client = SupabaseClient.get_client()
        response = (
            client.table("image_votes")
            .select("image_id")
            .eq("user_id", str(user.id))
            .execute()
        )
        return [str(row["image_id"]) for row in response.data or []]

    @staticmethod
    def submit_votes(user: AuthUser, image_ids: list[UUID]) -> list[str]:
        """
        Record a vote for each image.

        Returns:
            The image IDs voted for

        Raises:
            DatabaseOperationError: If any vote can't be stored; votes
                stored before the failure are kept
        """
        client = SupabaseClient.get_client()
        voted = []
        for image_id in dict.fromkeys(str(i) for i in image_ids):
            try:
                (
                    client.table("image_votes")
                    .upsert(
                        {"user_id": str(user.id), "image_id": image_id},
                        on_conflict="image_id,user_id",
                    )
                    .execute()
                )
            except Exception as e:
                logger.error(f"Failed to store vote of {user.id} for image {image_id}: {e}")
                raise DatabaseOperationError("submit_votes", str(e))
            voted.append(image_id)

        logger.info(f"User {user.id} voted for {len(voted)} image(s)")
        return voted
