# =============================================================================
# tests/test_workers.py - Celery Task & Dispatch Tests
# =============================================================================
# Tasks are called directly (synchronously); no broker is needed.
# =============================================================================

from unittest.mock import MagicMock, patch

import pytest

from app.exceptions import NotificationDeliveryError
from lib.email_client import EmailDeliveryError
from tests.fakes import COLLABORATOR_ID, OWNER_ID, PROJECT_ID, add_image
from workers import dispatch, tasks


class TestEnqueue:

    def test_enqueue_calls_delay(self, monkeypatch):
        task = MagicMock()
        monkeypatch.setattr(tasks, "increment_storage_usage", task)

        assert dispatch._enqueue("increment_storage_usage", OWNER_ID, 2.5) is True
        task.delay.assert_called_once_with(OWNER_ID, 2.5)

    def test_broker_failure_is_swallowed(self, monkeypatch):
        task = MagicMock()
        task.delay.side_effect = ConnectionError("broker unreachable")
        monkeypatch.setattr(tasks, "send_share_invitation", task)

        assert dispatch._enqueue("send_share_invitation", {"project_id": PROJECT_ID}) is False


class TestStorageTasks:

    def test_increment(self, project, fake_db):
        result = tasks.increment_storage_usage(OWNER_ID, 1.5)

        assert result["success"] is True
        assert fake_db.get("profiles", OWNER_ID)["total_size_mb"] == pytest.approx(1.5)

    def test_adjust_clamps_at_zero(self, project, fake_db):
        fake_db.get("profiles", OWNER_ID)["total_size_mb"] = 1.0

        result = tasks.adjust_storage_usage(OWNER_ID, -3.0)

        assert result == {"success": True, "user_id": OWNER_ID, "total_size_mb": 0.0}

    def test_adjust_missing_profile(self, fake_db):
        assert tasks.adjust_storage_usage(OWNER_ID, -1.0)["success"] is False


class TestNotificationTasks:

    def test_activity_notifications(self, project, fake_db):
        image = add_image(fake_db)
        payload = {
            "type": "comment_added",
            "project_id": PROJECT_ID,
            "image_id": image["id"],
            "author_id": COLLABORATOR_ID,
            "author_name": "Cole",
            "author_email": "colorist@example.com",
            "content": "Looks good",
        }

        with patch("core.services.notification_service.EmailClient.send") as send:
            result = tasks.send_activity_notifications(payload)

        assert result["success"] is True
        assert result["recipients"] == 1
        assert send.call_args.args[0].to == "owner@example.com"

    def test_missing_project_is_dropped(self, fake_db):
        payload = {
            "type": "mark_deleted",
            "project_id": PROJECT_ID,
            "image_id": PROJECT_ID,
            "author_id": OWNER_ID,
            "author_name": "Olive Owner",
        }

        assert tasks.send_activity_notifications(payload) == {
            "success": False,
            "error": "Project not found",
        }

    def test_share_invitation_delivery_failure_propagates(self, project):
        invitation = {
            "project_id": PROJECT_ID,
            "shared_by": OWNER_ID,
            "shared_with_email": "new@example.com",
        }

        with patch(
            "core.services.notification_service.EmailClient.send",
            side_effect=EmailDeliveryError("timeout"),
        ):
            with pytest.raises(NotificationDeliveryError):
                tasks.send_share_invitation(invitation)

    def test_share_invitation_for_missing_project(self, fake_db):
        invitation = {
            "project_id": PROJECT_ID,
            "shared_by": OWNER_ID,
            "shared_with_email": "new@example.com",
        }

        result = tasks.send_share_invitation(invitation)

        assert result["success"] is False
        assert PROJECT_ID in result["error"]
