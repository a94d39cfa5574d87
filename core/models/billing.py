# =============================================================================
# core/models/billing.py - Plans, Checkout & Votes
# =============================================================================

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CheckoutRequest(BaseModel):
    """
    Start a checkout for a plan.

    Example:
        {"planId": "8d0f..."}
    """
    model_config = ConfigDict(populate_by_name=True)

    plan_id: UUID = Field(..., alias="planId")


class CheckoutResponse(BaseModel):
    url: str


class VoteRequest(BaseModel):
    """Images the current user votes for; earlier votes are kept."""
    image_ids: list[UUID] = Field(..., min_length=1, max_length=100)


class VoteCount(BaseModel):
    image_id: UUID
    vote_count: int = 0
