# =============================================================================
# tests/test_models.py - Pydantic Model Tests
# =============================================================================
# Unit tests for the request/response models:
# - camelCase request bodies parse into snake_case attributes
# - Invalid data raises ValidationError
# - Mark conversions between API shape and row shape
# - Folder deletion results aggregate correctly
#
# Run with: pytest tests/test_models.py -v
# =============================================================================

from uuid import uuid4

import pytest
from pydantic import ValidationError

from core.models import (
    ActivityNotification,
    CommentCreate,
    FolderDeletionResult,
    Mark,
    MarkCreate,
    MarkerColor,
    MarkType,
    MarkUpdate,
    NotificationType,
    ProfileUpdate,
    ProjectCreate,
    SaveMetadataRequest,
    SendNotificationsRequest,
    ShareCreate,
    UploadUrlRequest,
    VoteRequest,
)


# =============================================================================
# Upload Models
# =============================================================================

class TestUploadUrlRequest:
    """Tests for UploadUrlRequest model."""

    def test_parses_camel_case_body(self):
        project_id = uuid4()
        request = UploadUrlRequest.model_validate({
            "projectId": str(project_id),
            "folderId": None,
            "fileName": "IMG_0042.jpg",
            "fileSize": 2483112,
            "fileType": "image/jpeg",
        })

        assert request.project_id == project_id
        assert request.folder_id is None
        assert request.file_name == "IMG_0042.jpg"
        assert request.file_size == 2483112

    def test_zero_size_rejected(self):
        with pytest.raises(ValidationError):
            UploadUrlRequest.model_validate({
                "projectId": str(uuid4()),
                "fileName": "a.jpg",
                "fileSize": 0,
            })

    def test_missing_file_name_rejected(self):
        with pytest.raises(ValidationError):
            UploadUrlRequest.model_validate({"projectId": str(uuid4()), "fileSize": 10})


class TestSaveMetadataRequest:

    def test_defaults(self):
        request = SaveMetadataRequest.model_validate({
            "s3Key": "u/p/abcphoto.png",
            "fileName": "photo.png",
            "projectId": str(uuid4()),
        })

        assert request.file_size == 0
        assert request.folder_id is None
        assert request.file_type is None

    def test_empty_key_rejected(self):
        with pytest.raises(ValidationError):
            SaveMetadataRequest.model_validate({
                "s3Key": "",
                "fileName": "photo.png",
                "projectId": str(uuid4()),
            })


# =============================================================================
# Project & Share Models
# =============================================================================

class TestProjectCreate:

    def test_valid_name(self):
        assert ProjectCreate(name="Spring Campaign").name == "Spring Campaign"

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            ProjectCreate(name="")


class TestShareCreate:

    def test_email_is_normalized(self):
        assert ShareCreate(email="  Colorist@Example.COM ").email == "colorist@example.com"

    def test_invalid_email_rejected(self):
        with pytest.raises(ValidationError):
            ShareCreate(email="not-an-email")


# =============================================================================
# Review Models
# =============================================================================

class TestCommentCreate:

    def test_content_is_trimmed(self):
        assert CommentCreate(content="  warmer shadows  ").content == "warmer shadows"

    def test_whitespace_only_rejected(self):
        with pytest.raises(ValidationError):
            CommentCreate(content="   ")


class TestMarkConversions:
    """Tests for the API shape <-> row shape conversions."""

    def test_to_row_rounds_coordinates(self):
        mark = MarkCreate(type="circle", x=120.4, y=88.6, radius=23.5, color="red", comment="Dust")

        row = mark.to_row(image_id="img", project_id="proj", author_id="u1", author_name="Ada")

        assert row["mark_type"] == "circle"
        assert row["x_coordinate"] == 120
        assert row["y_coordinate"] == 89
        assert row["radius"] == 24
        assert row["width"] is None
        assert row["color"] == "red"
        assert row["comment"] == "Dust"
        assert row["author_name"] == "Ada"

    def test_empty_comment_stored_as_null(self):
        row = MarkCreate(type="point", x=1, y=2, comment="").to_row("i", "p", "u", "A")
        assert row["comment"] is None

    def test_default_color_is_blue(self):
        assert MarkCreate(type="point", x=0, y=0).color == MarkerColor.BLUE

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            MarkCreate(type="triangle", x=0, y=0)

    def test_negative_size_rejected(self):
        with pytest.raises(ValidationError):
            MarkCreate(type="rectangle", x=0, y=0, width=-5, height=10)

    def test_update_only_writes_set_fields(self):
        updates = MarkUpdate(x=10.7, color="green").to_row_updates()
        assert updates == {"x_coordinate": 11, "color": "green"}

    def test_update_can_clear_comment(self):
        assert MarkUpdate(comment=None).to_row_updates() == {"comment": None}

    def test_from_row(self):
        mark_id = uuid4()
        mark = Mark.from_row({
            "id": str(mark_id),
            "mark_type": "rectangle",
            "x_coordinate": 5,
            "y_coordinate": 6,
            "width": 30,
            "height": 40,
            "color": None,
            "comment": None,
            "author_name": "Ada",
            "created_at": "2024-01-01T00:00:01+00:00",
        })

        assert mark.id == mark_id
        assert mark.type == MarkType.RECTANGLE
        assert (mark.x, mark.y, mark.width, mark.height) == (5, 6, 30, 40)
        assert mark.color == MarkerColor.NONE
        assert mark.comment == ""
        assert mark.author == "Ada"


# =============================================================================
# Notification Models
# =============================================================================

class TestActivityNotification:

    def test_accepts_camel_case(self):
        request = SendNotificationsRequest.model_validate({
            "notificationData": {
                "type": "mark_added",
                "projectId": str(uuid4()),
                "imageId": str(uuid4()),
                "authorId": str(uuid4()),
                "authorName": "Ada",
                "markType": "circle",
                "markColor": "red",
                "coordinates": {"x": 10, "y": 20},
            }
        })

        data = request.notification_data
        assert data.type == NotificationType.MARK_ADDED
        assert data.mark_type == "circle"
        assert data.coordinates.x == 10

    def test_task_payload_is_json_safe(self):
        notification = ActivityNotification(
            type=NotificationType.COMMENT_ADDED,
            project_id=uuid4(),
            image_id=uuid4(),
            author_id=uuid4(),
            author_name="Ada",
            content="Nice",
        )

        payload = notification.to_task_payload()

        assert isinstance(payload["project_id"], str)
        assert payload["type"] == "comment_added"
        assert ActivityNotification.model_validate(payload) == notification

    def test_action_text(self):
        assert NotificationType.MARK_DELETED.action_text == "deleted a mark"
        assert NotificationType.COMMENT_UPDATED.is_mark is False


# =============================================================================
# Folder Deletion Result
# =============================================================================

class TestFolderDeletionResult:

    def test_absorb_sums_child_results(self):
        parent = FolderDeletionResult(folder_id="root", deleted_images=1, freed_mb=1.5)
        child = FolderDeletionResult(
            folder_id="child",
            success=True,
            deleted_folders=["child", "grandchild"],
            failed_folders=["broken"],
            deleted_images=3,
            failed_object_deletions=1,
            freed_mb=2.0,
        )

        parent.absorb(child)

        assert parent.deleted_folders == ["child", "grandchild"]
        assert parent.failed_folders == ["broken"]
        assert parent.deleted_images == 4
        assert parent.failed_object_deletions == 1
        assert parent.freed_mb == 3.5
        assert parent.success is False


# =============================================================================
# Profile & Vote Models
# =============================================================================

class TestProfileUpdate:

    def test_valid_username(self):
        assert ProfileUpdate(username=" ada_l ").username == "ada_l"

    @pytest.mark.parametrize("username", ["ab", "has space", "x" * 31])
    def test_invalid_username(self, username):
        with pytest.raises(ValidationError):
            ProfileUpdate(username=username)

    def test_unset_fields_excluded(self):
        assert ProfileUpdate(first_name="Ada").model_dump(exclude_unset=True) == {"first_name": "Ada"}


class TestVoteRequest:

    def test_requires_at_least_one_image(self):
        with pytest.raises(ValidationError):
            VoteRequest(image_ids=[])
