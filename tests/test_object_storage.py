# =============================================================================
# tests/test_object_storage.py - ObjectStorageClient Tests
# =============================================================================
# The boto3 client is replaced by FakeS3 (see conftest.fake_s3).
# =============================================================================

import re
from uuid import UUID

import pytest

from lib.object_storage import ObjectStorageClient, ObjectStorageError

UUID_PREFIX = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}")


class TestBuildObjectKey:

    def test_key_with_folder(self):
        key = ObjectStorageClient.build_object_key("u1", "p1", "f1", "photo.png")

        user, project, folder, name = key.split("/")
        assert (user, project, folder) == ("u1", "p1", "f1")
        assert UUID_PREFIX.match(name)
        assert name.endswith("photo.png")

    def test_key_without_folder(self):
        key = ObjectStorageClient.build_object_key(
            UUID("11111111-1111-1111-1111-111111111111"), "p1", None, "photo.png"
        )

        assert key.startswith("11111111-1111-1111-1111-111111111111/p1/")
        assert key.count("/") == 2

    def test_keys_are_unique(self):
        first = ObjectStorageClient.build_object_key("u", "p", None, "a.png")
        second = ObjectStorageClient.build_object_key("u", "p", None, "a.png")
        assert first != second

    def test_owner_prefix_matches_built_keys(self):
        key = ObjectStorageClient.build_object_key("u", "p", "f", "a.png")
        assert key.startswith(ObjectStorageClient.owner_prefix("u", "p"))


class TestPresignedUrls:

    def test_upload_url_uses_put_and_short_expiry(self, fake_s3):
        url = ObjectStorageClient.presign_upload("u/p/key.png", "image/png")

        method, params = fake_s3.presigned[-1]
        assert method == "put_object"
        assert params["Bucket"] == "test-bucket"
        assert params["ContentType"] == "image/png"
        assert params["ExpiresIn"] == 60
        assert "u/p/key.png" in url

    def test_upload_without_content_type(self, fake_s3):
        ObjectStorageClient.presign_upload("k")
        assert fake_s3.presigned[-1][1]["ContentType"] == "application/octet-stream"

    def test_download_url(self, fake_s3):
        ObjectStorageClient.presign_download("k", expires_in=120)

        method, params = fake_s3.presigned[-1]
        assert method == "get_object"
        assert params["ExpiresIn"] == 120

    def test_signing_failure_raises(self, fake_s3, monkeypatch):
        def broken(**kwargs):
            raise RuntimeError("no credentials")

        monkeypatch.setattr(fake_s3, "generate_presigned_url", broken)

        with pytest.raises(ObjectStorageError) as exc_info:
            ObjectStorageClient.presign_download("k")
        assert exc_info.value.key == "k"


class TestDeletion:

    def test_delete_object(self, fake_s3):
        ObjectStorageClient.delete_object("a")
        assert fake_s3.deleted == ["a"]

    def test_delete_object_failure(self, fake_s3):
        fake_s3.fail_keys.add("a")
        with pytest.raises(ObjectStorageError):
            ObjectStorageClient.delete_object("a")

    def test_delete_objects_continues_past_failures(self, fake_s3):
        fake_s3.fail_keys.add("b")

        result = ObjectStorageClient.delete_objects(["a", "b", "c"])

        assert result.deleted == ["a", "c"]
        assert list(result.failed) == ["b"]
        assert result.failed_count == 1
        assert fake_s3.deleted == ["a", "c"]

    def test_delete_objects_empty(self, fake_s3):
        result = ObjectStorageClient.delete_objects([])
        assert result.deleted == []
        assert result.failed_count == 0
