# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single client connection
# and provides specialized lookups shared by several services:
# - Projects, folders and images by ID
# - Profiles and subscription plans
# - Accepted project shares (for access checks and notification fan-out)
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   project = SupabaseClient.fetch_project(project_id)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from app.config import settings

# Set up logging for this module
logger = logging.getLogger(__name__)

# PostgREST error code returned by .single() when no row matched
NO_ROWS_CODE = "PGRST116"


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Provides actionable error messages: what failed and how to fix it.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    Implements singleton pattern - one client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation.

    Example:
        project = SupabaseClient.fetch_project("550e8400-...")
        if project is None:
            raise ProjectNotFoundError(...)
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        Authorization is therefore enforced by the service layer.

        Returns:
            Client: Supabase client instance

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def _normalize_uuid(cls, uuid_value: str | UUID) -> str:
        """Convert UUID to string for queries."""
        return str(uuid_value) if isinstance(uuid_value, UUID) else uuid_value

    @staticmethod
    def is_not_found(error: Exception) -> bool:
        """True when a .single() query failed because no row matched."""
        return NO_ROWS_CODE in str(error)

    @classmethod
    def _fetch_by_id(
        cls,
        table: str,
        row_id: str | UUID,
        columns: str = "*",
    ) -> dict[str, Any] | None:
        """
        Fetch one row by primary key.

        Returns:
            Row dict, or None if no row has this ID

        Raises:
            SupabaseClientError: If the query fails for any other reason
        """
        client = cls.get_client()
        row_id_str = cls._normalize_uuid(row_id)

        try:
            response = (
                client.table(table)
                .select(columns)
                .eq("id", row_id_str)
                .single()
                .execute()
            )
            return response.data

        except Exception as e:
            if cls.is_not_found(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch {table} row: {e}",
                code="FETCH_FAILED",
                suggestion=f"Check that the {table} table is accessible",
                details={"table": table, "id": row_id_str}
            )

    # -------------------------------------------------------------------------
    # Projects, Folders, Images
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_project(cls, project_id: str | UUID) -> dict[str, Any] | None:
        """
        Fetch a project by ID.

        Returns:
            Project dict with id, name, user_id, visibility, thumbnail_key,
            created_at, updated_at; or None if not found
        """
        return cls._fetch_by_id("projects", project_id)

    @classmethod
    def fetch_folder(cls, folder_id: str | UUID) -> dict[str, Any] | None:
        """Fetch a folder by ID, or None if it doesn't exist."""
        return cls._fetch_by_id("folders", folder_id)

    @classmethod
    def fetch_image(cls, image_id: str | UUID) -> dict[str, Any] | None:
        """Fetch an image row by ID, or None if it doesn't exist."""
        return cls._fetch_by_id("images", image_id)

    # -------------------------------------------------------------------------
    # Profiles & Plans
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_profile(cls, user_id: str | UUID) -> dict[str, Any] | None:
        """
        Fetch a user's profile.

        Returns:
            Profile dict with username, first_name, last_name, avatar_url,
            plan_id, total_size_mb; or None if the user has no profile row
        """
        return cls._fetch_by_id("profiles", user_id)

    @classmethod
    def fetch_plan(cls, plan_id: str | UUID | None) -> dict[str, Any] | None:
        """Fetch a subscription plan. A missing plan_id yields None."""
        if not plan_id:
            return None
        return cls._fetch_by_id("plans", plan_id)

    @classmethod
    def fetch_user_email(cls, user_id: str | UUID) -> str | None:
        """
        Look up an auth user's email (profiles don't store it).

        Returns:
            The email, or None if the user can't be found (logged)
        """
        client = cls.get_client()
        user_id_str = cls._normalize_uuid(user_id)

        try:
            response = client.auth.admin.get_user_by_id(user_id_str)
            return response.user.email if response and response.user else None
        except Exception as e:
            logger.warning(f"Could not look up email for user {user_id_str}: {e}")
            return None

    # -------------------------------------------------------------------------
    # Shares
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_accepted_shares(cls, project_id: str | UUID) -> list[dict[str, Any]]:
        """
        Fetch accepted shares for a project.

        Args:
            project_id: The project UUID

        Returns:
            List of share dicts (shared_with email, shared_with_user_id)

        Raises:
            SupabaseClientError: If query fails
        """
        client = cls.get_client()
        project_id_str = cls._normalize_uuid(project_id)

        try:
            response = (
                client.table("project_shares")
                .select("shared_with, shared_with_user_id")
                .eq("project_id", project_id_str)
                .eq("status", "accepted")
                .execute()
            )
            return response.data or []

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch project shares: {e}",
                code="FETCH_SHARES_FAILED",
                suggestion="Check that the project_shares table is accessible",
                details={"project_id": project_id_str}
            )

    @classmethod
    def has_accepted_share(cls, project_id: str | UUID, email: str | None) -> bool:
        """
        Check whether a project has been shared with an email and accepted.

        Returns:
            True if an accepted share exists for this email
        """
        if not email:
            return False

        client = cls.get_client()
        project_id_str = cls._normalize_uuid(project_id)

        try:
            response = (
                client.table("project_shares")
                .select("id")
                .eq("project_id", project_id_str)
                .eq("shared_with", email.lower())
                .eq("status", "accepted")
                .limit(1)
                .execute()
            )
            return bool(response.data)

        except Exception as e:
            logger.warning(f"Share lookup failed for project {project_id_str}: {e}")
            return False

    # -------------------------------------------------------------------------
    # RPC
    # -------------------------------------------------------------------------

    @classmethod
    def rpc(cls, function: str, params: dict[str, Any] | None = None) -> Any:
        """
        Call a database procedure.

        Args:
            function: Procedure name (e.g. "increment_storage_usage")
            params: Named parameters

        Returns:
            The procedure's result payload

        Raises:
            SupabaseClientError: If the call fails
        """
        client = cls.get_client()

        try:
            response = client.rpc(function, params or {}).execute()
            return response.data

        except Exception as e:
            raise SupabaseClientError(
                message=f"RPC {function} failed: {e}",
                code="RPC_FAILED",
                suggestion=f"Check that the {function} function exists and its parameters match",
                details={"function": function, "params": params or {}}
            )
