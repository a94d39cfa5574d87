# =============================================================================
# tests/test_profile_service.py - Profile & Storage Quota Tests
# =============================================================================

import pytest

from app.exceptions import ProfileNotFoundError, StorageQuotaExceededError, UsernameTakenError
from core.models.profile import ProfileUpdate
from core.services.profile_service import ProfileService
from tests.fakes import COLLABORATOR_ID, OWNER_ID, STRANGER_ID


class TestQuotaCheck:
    """Inline quota check used before issuing upload URLs."""

    def test_upload_within_plan_limit(self, project, fake_db):
        fake_db.get("profiles", OWNER_ID)["total_size_mb"] = 4.0
        ProfileService.check_upload_quota(OWNER_ID, 6_000_000)

    def test_upload_past_plan_limit_refused(self, project, fake_db):
        fake_db.get("profiles", OWNER_ID)["total_size_mb"] = 4.0

        with pytest.raises(StorageQuotaExceededError) as exc_info:
            ProfileService.check_upload_quota(OWNER_ID, 6_000_001)

        assert exc_info.value.status_code == 400
        assert exc_info.value.details["limit_bytes"] == 10_000_000

    def test_no_plan_uses_default_limit(self, project, fake_db):
        fake_db.get("profiles", COLLABORATOR_ID)["total_size_mb"] = 999.0

        ProfileService.check_upload_quota(COLLABORATOR_ID, 1_000_000)
        with pytest.raises(StorageQuotaExceededError):
            ProfileService.check_upload_quota(COLLABORATOR_ID, 1_000_001)

    def test_missing_profile_counts_as_empty(self, fake_db):
        ProfileService.check_upload_quota(STRANGER_ID, 1_000_000_000)
        with pytest.raises(StorageQuotaExceededError):
            ProfileService.check_upload_quota(STRANGER_ID, 1_000_000_001)

    def test_check_uses_cached_usage(self, project, fake_db):
        ProfileService.check_upload_quota(OWNER_ID, 1)
        fake_db.get("profiles", OWNER_ID)["total_size_mb"] = 10.0

        # Still served from the cache populated above
        ProfileService.check_upload_quota(OWNER_ID, 5_000_000)


class TestStorageAdjustments:

    def test_adjust_is_clamped_at_zero(self, project, fake_db):
        fake_db.get("profiles", OWNER_ID)["total_size_mb"] = 2.0

        new_total = ProfileService.adjust_storage_usage(OWNER_ID, -5.0)

        assert new_total == 0.0
        assert fake_db.get("profiles", OWNER_ID)["total_size_mb"] == 0.0

    def test_adjust_refreshes_cache(self, project, fake_db):
        fake_db.get("profiles", OWNER_ID)["total_size_mb"] = 9.0
        ProfileService.get_cached_profile(OWNER_ID)

        ProfileService.adjust_storage_usage(OWNER_ID, -8.0)

        assert ProfileService.get_cached_profile(OWNER_ID)["total_size_mb"] == 1.0

    def test_adjust_without_profile_returns_none(self, fake_db):
        assert ProfileService.adjust_storage_usage(STRANGER_ID, -1.0) is None

    def test_adjust_failure_is_logged_not_raised(self, project, fake_db):
        fake_db.fail("profiles", "update")
        assert ProfileService.adjust_storage_usage(OWNER_ID, 1.0) is None

    def test_release_storage_converts_bytes(self, project, fake_db):
        fake_db.get("profiles", OWNER_ID)["total_size_mb"] = 3.0

        assert ProfileService.release_storage(OWNER_ID, 2_500_000) == pytest.approx(0.5)

    def test_release_nothing(self, project):
        assert ProfileService.release_storage(OWNER_ID, 0) is None

    def test_increment_calls_procedure(self, project, fake_db):
        assert ProfileService.increment_storage_usage(OWNER_ID, 1.5) is True

        assert fake_db.rpc_calls[-1] == (
            "increment_storage_usage", {"user_id": OWNER_ID, "size_mb": 1.5}
        )
        assert fake_db.get("profiles", OWNER_ID)["total_size_mb"] == 1.5

    def test_increment_failure_returns_false(self, project, fake_db):
        fake_db.fail("rpc", "increment_storage_usage")
        assert ProfileService.increment_storage_usage(OWNER_ID, 1.5) is False

    def test_storage_usage_summary(self, project, fake_db):
        fake_db.get("profiles", OWNER_ID)["total_size_mb"] = 2.5

        usage = ProfileService.get_storage_usage(OWNER_ID)

        assert usage.used_bytes == 2_500_000
        assert usage.limit_bytes == 10_000_000
        assert usage.usage_percentage == 25.0
        assert usage.plan_name == "Pro"


class TestProfiles:

    def test_get_profile_missing(self, fake_db):
        with pytest.raises(ProfileNotFoundError):
            ProfileService.get_profile(STRANGER_ID)

    def test_display_name_prefers_full_name(self, project):
        assert ProfileService.display_name(OWNER_ID) == "Olive Owner"

    def test_display_name_falls_back_to_email(self, fake_db):
        assert ProfileService.display_name(STRANGER_ID, "s@example.com") == "s@example.com"

    def test_public_profile_by_username(self, project):
        profile = ProfileService.get_profile_by_username("colorist")
        assert profile["first_name"] == "Cole"

    def test_unknown_username(self, project):
        with pytest.raises(ProfileNotFoundError):
            ProfileService.get_profile_by_username("nobody")

    def test_update_profile(self, project, fake_db):
        updated = ProfileService.update_profile(OWNER_ID, ProfileUpdate(first_name="Liv"))

        assert updated["first_name"] == "Liv"
        assert fake_db.get("profiles", OWNER_ID)["first_name"] == "Liv"

    def test_update_to_taken_username(self, project):
        with pytest.raises(UsernameTakenError):
            ProfileService.update_profile(OWNER_ID, ProfileUpdate(username="colorist"))

    def test_keeping_own_username_is_allowed(self, project):
        updated = ProfileService.update_profile(OWNER_ID, ProfileUpdate(username="owner"))
        assert updated["username"] == "owner"
