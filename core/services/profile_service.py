# =============================================================================
# core/services/profile_service.py - Profiles & Storage Quota
# =============================================================================
# Handles profile reads/updates and the storage usage counter
# (profiles.total_size_mb).
#
# Usage is tracked in decimal megabytes. Increments go through the
# increment_storage_usage procedure; decrements are a read-modify-write
# clamped at zero. Neither is transactional with the upload or deletion
# that caused it.
#
# Profile reads used by quota checks are served from a per-process
# TTLCache, so a check may see usage that is up to CACHE_TTL_SECONDS old.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.config import settings
from app.exceptions import (
    ProfileNotFoundError,
    StorageQuotaExceededError,
    UsernameTakenError,
)
from core.models.profile import ProfileUpdate, StorageUsage
from lib.supabase_client import SupabaseClient
from lib.ttl_cache import TTLCache
from lib.utils import bytes_to_mb, full_name, mb_to_bytes, normalize_uuid

logger = logging.getLogger(__name__)

_profile_cache = TTLCache(ttl_seconds=settings.CACHE_TTL_SECONDS)

PUBLIC_PROFILE_COLUMNS = "id, username, first_name, last_name, avatar_url, profile_page_text"


class ProfileService:
    """
    Service for profile and storage-usage operations.
    """

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    @staticmethod
    def get_profile(user_id: UUID | str) -> dict[str, Any]:
        """
        Get a profile by user ID (uncached).

        Raises:
            ProfileNotFoundError: If the user has no profile row
        """
        profile = SupabaseClient.fetch_profile(user_id)
        if not profile:
            raise ProfileNotFoundError(normalize_uuid(user_id))
        _profile_cache.set(normalize_uuid(user_id), profile)
        return profile

    @staticmethod
    def get_cached_profile(user_id: UUID | str) -> dict[str, Any] | None:
        """
        Get a profile, serving repeated lookups from the TTL cache.

        Returns:
            Profile dict, or None if the user has no profile row
        """
        key = normalize_uuid(user_id)
        profile = _profile_cache.get(key)
        if profile is not None:
            return profile

        profile = SupabaseClient.fetch_profile(key)
        if profile:
            _profile_cache.set(key, profile)
        return profile

    @staticmethod
    def display_name(user_id: UUID | str, email: str | None = None) -> str:
        """First and last name, else the username, else the email."""
        profile = ProfileService.get_cached_profile(user_id)
        fallback = (profile or {}).get("username") or email or "Anonymous"
        return full_name(profile, fallback=fallback)

    @staticmethod
    def invalidate(user_id: UUID | str) -> None:
        _profile_cache.delete(normalize_uuid(user_id))

    @staticmethod
    def get_profile_by_username(username: str) -> dict[str, Any]:
        """
        Get the public part of a profile by username.

        Raises:
            ProfileNotFoundError: If no profile has this username
        """
        client = SupabaseClient.get_client()

        try:
            response = (
                client.table("profiles")
                .select(PUBLIC_PROFILE_COLUMNS)
                .eq("username", username)
                .single()
                .execute()
            )
        except Exception as e:
            if SupabaseClient.is_not_found(e):
                raise ProfileNotFoundError(username)
            logger.error(f"Failed to fetch profile {username}: {e}")
            raise

        if not response.data:
            raise ProfileNotFoundError(username)
        return response.data

    @staticmethod
    def is_username_available(username: str) -> bool:
        return bool(SupabaseClient.rpc("is_username_available", {"username": username}))

    @staticmethod
    def update_profile(user_id: UUID | str, update: ProfileUpdate) -> dict[str, Any]:
        """
        Apply a partial profile update.

        Args:
            user_id: Profile owner
            update: Fields to change; unset fields are left alone

        Returns:
            Updated profile dict

        Raises:
            ProfileNotFoundError: If the profile doesn't exist
            UsernameTakenError: If the new username belongs to someone else
        """
        profile = ProfileService.get_profile(user_id)
        changes = update.model_dump(exclude_unset=True)

        new_username = changes.get("username")
        if new_username and new_username != profile.get("username"):
            if not ProfileService.is_username_available(new_username):
                raise UsernameTakenError(new_username)

        if not changes:
            return profile

        client = SupabaseClient.get_client()
        user_id_str = normalize_uuid(user_id)

        try:
            response = (
                client.table("profiles")
                .update(changes)
                .eq("id", user_id_str)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to update profile {user_id_str}: {e}")
            raise

        ProfileService.invalidate(user_id_str)
        logger.info(f"Updated profile {user_id_str}: {sorted(changes)}")
        return response.data[0] if response.data else {**profile, **changes}

    # -------------------------------------------------------------------------
    # Storage Quota
    # -------------------------------------------------------------------------

    @staticmethod
    def get_storage_limit_bytes(profile: dict[str, Any] | None) -> int:
        """Plan storage limit for a profile, or the default limit."""
        plan = SupabaseClient.fetch_plan(profile.get("plan_id")) if profile else None
        if plan and plan.get("storage_limit_bytes") is not None:
            return int(plan["storage_limit_bytes"])
        return settings.DEFAULT_STORAGE_LIMIT_BYTES

    @staticmethod
    def check_upload_quota(user_id: UUID | str, file_size: int) -> None:
        """
        Refuse an upload that would push usage past the plan limit.

        Uses the cached profile; a user without a profile row counts as
        having stored nothing.

        Raises:
            StorageQuotaExceededError: If usage + file_size > limit
        """
        profile = ProfileService.get_cached_profile(user_id)
        used_bytes = mb_to_bytes(profile.get("total_size_mb") if profile else 0)
        limit_bytes = ProfileService.get_storage_limit_bytes(profile)

        if used_bytes + file_size > limit_bytes:
            logger.info(
                f"Upload refused for {user_id}: {used_bytes} + {file_size} > {limit_bytes} bytes"
            )
            raise StorageQuotaExceededError(used_bytes, file_size, limit_bytes)

    @staticmethod
    def get_storage_usage(user_id: UUID | str) -> StorageUsage:
        profile = ProfileService.get_profile(user_id)
        used_mb = float(profile.get("total_size_mb") or 0)
        plan = SupabaseClient.fetch_plan(profile.get("plan_id"))
        limit_bytes = ProfileService.get_storage_limit_bytes(profile)
        used_bytes = mb_to_bytes(used_mb)

        return StorageUsage(
            used_mb=round(used_mb, 2),
            used_bytes=used_bytes,
            limit_bytes=limit_bytes,
            usage_percentage=round(used_bytes / limit_bytes * 100, 2) if limit_bytes else 0.0,
            plan_name=plan.get("name") if plan else None,
        )

    @staticmethod
    def increment_storage_usage(user_id: UUID | str, size_mb: float) -> bool:
        """
        Add to a user's usage through the increment_storage_usage procedure.

        Returns:
            True on success; failures are logged
        """
        user_id_str = normalize_uuid(user_id)
        try:
            SupabaseClient.rpc(
                "increment_storage_usage",
                {"user_id": user_id_str, "size_mb": size_mb},
            )
        except Exception as e:
            logger.error(f"Failed to increment storage usage for {user_id_str}: {e}")
            return False

        ProfileService.invalidate(user_id_str)
        logger.info(f"Incremented storage usage for {user_id_str} by {size_mb:.4f} MB")
        return True

    @staticmethod
    def adjust_storage_usage(user_id: UUID | str, delta_mb: float) -> float | None:
        """
        Change a user's usage by delta_mb, never going below zero.

        Args:
            user_id: Profile owner
            delta_mb: Signed change in megabytes (negative to free space)

        Returns:
            The new total in MB, or None if the update failed (logged)
        """
        user_id_str = normalize_uuid(user_id)
        client = SupabaseClient.get_client()

        try:
            profile = SupabaseClient.fetch_profile(user_id_str)
            if not profile:
                logger.warning(f"No profile for {user_id_str}; storage usage not adjusted")
                return None

            current = float(profile.get("total_size_mb") or 0)
            new_total = max(0.0, current + delta_mb)

            (
                client.table("profiles")
                .update({"total_size_mb": new_total})
                .eq("id", user_id_str)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to adjust storage usage for {user_id_str}: {e}")
            return None

        _profile_cache.set(user_id_str, {**profile, "total_size_mb": new_total})
        logger.info(
            f"Adjusted storage usage for {user_id_str}: {current:.4f} -> {new_total:.4f} MB"
        )
        return new_total

    @staticmethod
    def release_storage(user_id: UUID | str, size_bytes: int) -> float | None:
        """Decrement usage by a byte count (convenience for deletions)."""
        if not size_bytes:
            return None
        return ProfileService.adjust_storage_usage(user_id, -bytes_to_mb(size_bytes))
