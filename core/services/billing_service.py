# =============================================================================
# core/services/billing_service.py - Plan Checkout (Stripe)
# =============================================================================
# Creates Stripe Checkout sessions for plan upgrades through the Stripe REST
# API. Plans with a stripe_price_id are sold as subscriptions; plans without
# one are charged once using the plan's price_cents and price_currency.
#
# Stripe expects form-encoded bodies with bracketed keys, e.g.
#   line_items[0][price]=price_123&line_items[0][quantity]=1
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

import httpx

from app.auth.models import AuthUser
from app.config import settings
from app.exceptions import CheckoutError, PlanNotFoundError
from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid

logger = logging.getLogger(__name__)

DEFAULT_ORIGIN = "http://localhost:3000"


class BillingService:
    """
    Service for starting plan purchases.
    """

    @staticmethod
    def _stripe_request(method: str, path: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Call the Stripe API.

        Raises:
            CheckoutError: If Stripe isn't configured or returns an error
        """
        if not settings.STRIPE_SECRET_KEY:
            raise CheckoutError("Payments are not configured")

        url = f"{settings.STRIPE_API_BASE.rstrip('/')}/{path.lstrip('/')}"
        try:
            response = httpx.request(
                method,
                url,
                auth=(settings.STRIPE_SECRET_KEY, ""),
                params=data if method == "GET" else None,
                data=data if method != "GET" else None,
                timeout=15,
            )
        except httpx.HTTPError as e:
            raise CheckoutError(f"Request to Stripe failed: {e}")

        if response.status_code >= 400:
            try:
                message = response.json().get("error", {}).get("message", response.text)
            except ValueError:
                message = response.text
            raise CheckoutError(f"Stripe returned {response.status_code}: {message}")

        return response.json()

    @staticmethod
    def find_customer_id(email: str) -> str | None:
        """Existing Stripe customer for an email, if any."""
        result = BillingService._stripe_request("GET", "customers", {"email": email, "limit": 1})
        customers = result.get("data") or []
        return customers[0]["id"] if customers else None

    @staticmethod
    def build_session_params(
        plan: dict[str, Any],
        email: str,
        customer_id: str | None,
        origin: str,
    ) -> dict[str, Any]:
        """
        Form fields for POST /checkout/sessions.

        Args:
            plan: Plan row
            email: Buyer's email, used when there's no Stripe customer yet
            customer_id: Existing Stripe customer ID
            origin: Web client origin for the return URLs
        """
        params: dict[str, Any] = {
            "success_url": f"{origin}/settings?tab=subscription&success=true",
            "cancel_url": f"{origin}/settings?tab=subscription&canceled=true",
            "line_items[0][quantity]": 1,
        }
        if customer_id:
            params["customer"] = customer_id
        else:
            params["customer_email"] = email

        if plan.get("stripe_price_id"):
            params["mode"] = "subscription"
            params["line_items[0][price]"] = plan["stripe_price_id"]
        else:
            params["mode"] = "payment"
            params["line_items[0][price_data][currency]"] = plan.get("price_currency") or "usd"
            params["line_items[0][price_data][product_data][name]"] = f"{plan.get('name')} Plan"
            params["line_items[0][price_data][unit_amount]"] = int(plan.get("price_cents") or 0)

        return params

    @staticmethod
    def create_checkout(user: AuthUser, plan_id: UUID | str, origin: str | None = None) -> dict[str, str]:
        """
        Start a Stripe Checkout session for a plan.

        Args:
            user: Buyer; must have an email
            plan_id: Plan to buy
            origin: Web client origin (request Origin header)

        Returns:
            {"url": checkout page URL}

        Raises:
            PlanNotFoundError: If the plan doesn't exist
            CheckoutError: If Stripe rejects the request
        """
        if not user.email:
            raise CheckoutError("User email is not available")

        plan_id_str = normalize_uuid(plan_id)
        plan = SupabaseClient.fetch_plan(plan_id_str)
        if not plan:
            raise PlanNotFoundError(plan_id_str)

        customer_id = BillingService.find_customer_id(user.email)
        params = BillingService.build_session_params(
            plan, user.email, customer_id, (origin or DEFAULT_ORIGIN).rstrip("/")
        )
        session = BillingService._stripe_request("POST", "checkout/sessions", params)
        logger.info(
            f"Checkout session {session.get('id')} created for {user.id} "
            f"(plan={plan_id_str}, mode={params['mode']})"
        )

        client = SupabaseClient.get_client()
        try:
            client.table("subscribers").upsert(
                {
                    "user_id": str(user.id),
                    "email": user.email,
                    "stripe_customer_id": customer_id,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                },
                on_conflict="email",
            ).execute()
        except Exception as e:
            logger.error(f"Failed to record subscriber {user.email}: {e}")

        return {"url": session["url"]}
