# =============================================================================
# tests/test_project_service.py - Project Access, Limits & Lifecycle Tests
# =============================================================================

import json
from uuid import uuid4

import pytest

from app.exceptions import (
    ImageNotFoundError,
    ProjectAccessDeniedError,
    ProjectLimitReachedError,
    ProjectNotFoundError,
)
from core.models.project import ProjectVisibility
from core.services.project_service import ProjectService
from tests.fakes import COLLABORATOR_ID, OWNER_ID, PROJECT_ID, add_folder, add_image


# =============================================================================
# Access Rules
# =============================================================================

class TestAccess:
    """Owner, public, or accepted share; nothing else."""

    def test_owner_has_access(self, project, owner):
        assert ProjectService.has_access(project, owner) is True

    def test_accepted_collaborator_has_access(self, project, collaborator):
        assert ProjectService.has_access(project, collaborator) is True
        assert ProjectService.can_edit(project, collaborator) is True

    def test_pending_share_grants_nothing(self, project, stranger, fake_db):
        fake_db.add("project_shares", {
            "project_id": PROJECT_ID,
            "shared_by": OWNER_ID,
            "shared_with": stranger.email,
            "status": "pending",
        })
        assert ProjectService.has_access(project, stranger) is False

    def test_rejected_share_grants_nothing(self, project, collaborator, fake_db):
        fake_db.rows("project_shares", shared_with=collaborator.email)[0]["status"] = "rejected"
        assert ProjectService.has_access(project, collaborator) is False

    def test_anonymous_denied_on_private(self, project):
        assert ProjectService.has_access(project, None) is False

    def test_public_project_open_to_all(self, project, stranger):
        public = {**project, "visibility": "public"}

        assert ProjectService.has_access(public, None) is True
        assert ProjectService.has_access(public, stranger) is True
        assert ProjectService.can_edit(public, stranger) is False

    def test_get_accessible_project_raises(self, project, stranger):
        with pytest.raises(ProjectAccessDeniedError) as exc_info:
            ProjectService.get_accessible_project(PROJECT_ID, stranger)
        assert exc_info.value.status_code == 403

    def test_missing_project(self, fake_db, owner):
        with pytest.raises(ProjectNotFoundError):
            ProjectService.get_project(uuid4())

    def test_collaborator_cannot_manage(self, project, collaborator):
        with pytest.raises(ProjectAccessDeniedError):
            ProjectService.get_owned_project(PROJECT_ID, collaborator)


# =============================================================================
# Plan Limits
# =============================================================================

class TestProjectLimits:

    def test_limits_with_plan(self, project):
        limits = ProjectService.check_project_limits(OWNER_ID)

        assert limits.current_count == 1
        assert limits.allowed_projects == 3
        assert limits.can_create_more is True
        assert limits.usage_percentage == pytest.approx(33.33, abs=0.01)

    def test_no_plan_is_unlimited(self, project):
        limits = ProjectService.check_project_limits(COLLABORATOR_ID)

        assert limits.allowed_projects is None
        assert limits.can_create_more is True
        assert limits.usage_percentage == 0.0

    def test_create_project_is_private(self, project, owner, fake_db):
        created = ProjectService.create_project(owner, "Summer")

        assert created["visibility"] == "private"
        assert created["user_id"] == OWNER_ID
        assert len(fake_db.rows("projects", user_id=OWNER_ID)) == 2

    def test_create_publishes_event(self, project, owner, redis_publisher):
        created = ProjectService.create_project(owner, "Summer")

        _, message = redis_publisher.publish.call_args.args
        assert json.loads(message) == {
            "project_id": created["id"],
            "type": "project_created",
            "name": "Summer",
        }

    def test_create_refused_at_limit(self, project, owner, fake_db):
        ProjectService.create_project(owner, "Two")
        ProjectService.create_project(owner, "Three")

        with pytest.raises(ProjectLimitReachedError):
            ProjectService.create_project(owner, "Four")
        assert len(fake_db.rows("projects", user_id=OWNER_ID)) == 3


# =============================================================================
# Updates
# =============================================================================

class TestProjectUpdates:

    def test_rename(self, project, owner, fake_db, redis_publisher):
        ProjectService.rename_project(PROJECT_ID, owner, "Renamed")

        assert fake_db.get("projects", PROJECT_ID)["name"] == "Renamed"
        assert redis_publisher.publish.called

    def test_visibility(self, project, owner, fake_db):
        ProjectService.update_visibility(PROJECT_ID, owner, ProjectVisibility.PUBLIC)
        assert fake_db.get("projects", PROJECT_ID)["visibility"] == "public"

    def test_set_and_remove_thumbnail(self, project, owner, fake_db):
        image = add_image(fake_db)

        ProjectService.set_thumbnail(PROJECT_ID, owner, image["id"])
        assert fake_db.get("projects", PROJECT_ID)["thumbnail_key"] == image["s3_key"]

        ProjectService.remove_thumbnail(PROJECT_ID, owner)
        assert fake_db.get("projects", PROJECT_ID)["thumbnail_key"] is None

    def test_thumbnail_from_other_project_rejected(self, project, owner, fake_db):
        image = add_image(fake_db, project_id=str(uuid4()))

        with pytest.raises(ImageNotFoundError):
            ProjectService.set_thumbnail(PROJECT_ID, owner, image["id"])

    def test_thumbnail_url(self, project):
        assert ProjectService.get_thumbnail_url(project) is None
        assert "thumb.jpg" in ProjectService.get_thumbnail_url({**project, "thumbnail_key": "u/p/thumb.jpg"})

    def test_list_projects_attaches_thumbnail_urls(self, project, owner, fake_db):
        fake_db.rpc_handlers["get_complete_user_projects"] = lambda db, **params: [
            {"id": PROJECT_ID, "name": "Spring Campaign", "thumbnail_key": "k.jpg"},
            {"id": "other", "name": "No Thumb", "thumbnail_key": None},
        ]

        projects = ProjectService.list_projects(owner)

        assert "k.jpg" in projects[0]["thumbnail_url"]
        assert projects[1]["thumbnail_url"] is None
        name, params = fake_db.rpc_calls[-1]
        assert name == "get_complete_user_projects"
        assert params == {"input_user_id": OWNER_ID, "input_user_email": owner.email, "ispublic": False}


# =============================================================================
# Deletion
# =============================================================================

class TestDeleteProject:

    def test_deletes_folders_images_and_row(self, project, owner, fake_db, fake_s3):
        fake_db.get("profiles", OWNER_ID)["total_size_mb"] = 4.0
        fake_db.get("profiles", COLLABORATOR_ID)["total_size_mb"] = 1.0
        day1 = add_folder(fake_db, "day1")
        nested = add_folder(fake_db, "nested", parent_id=day1["id"])
        add_image(fake_db, folder_id=day1["id"])
        add_image(fake_db, folder_id=nested["id"], user_id=COLLABORATOR_ID)
        add_image(fake_db)

        summary = ProjectService.delete_project(PROJECT_ID, owner)

        assert summary["deleted_folders"] == 2
        assert summary["failed_folders"] == 0
        assert summary["deleted_images"] == 3
        assert summary["freed_mb"] == 3.0
        assert fake_db.get("projects", PROJECT_ID) is None
        assert fake_db.rows("folders") == []
        assert fake_db.rows("images") == []
        assert len(fake_s3.deleted) == 3
        assert fake_db.get("profiles", OWNER_ID)["total_size_mb"] == pytest.approx(2.0)
        assert fake_db.get("profiles", COLLABORATOR_ID)["total_size_mb"] == 0.0

    def test_only_owner_may_delete(self, project, collaborator, fake_db):
        with pytest.raises(ProjectAccessDeniedError):
            ProjectService.delete_project(PROJECT_ID, collaborator)
        assert fake_db.get("projects", PROJECT_ID) is not None
