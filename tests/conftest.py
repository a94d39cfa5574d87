# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Swaps the Supabase and S3 singletons for in-memory fakes
# - Stubs out Celery enqueueing and Redis publishing for every test
# =============================================================================

import os
from unittest.mock import MagicMock
from uuid import UUID

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("S3_BUCKET", "test-bucket")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")
os.environ["RESEND_API_KEY"] = ""
os.environ["STRIPE_SECRET_KEY"] = ""

import pytest

from app.auth.models import AuthUser
from lib.object_storage import ObjectStorageClient
from lib.supabase_client import SupabaseClient
from tests.fakes import (
    COLLABORATOR_ID,
    OWNER_ID,
    PLAN_ID,
    PROJECT_ID,
    STRANGER_ID,
    FakeS3,
    FakeSupabase,
)


# =============================================================================
# Backends
# =============================================================================

@pytest.fixture
def fake_db(monkeypatch):
    """In-memory Supabase client installed as the singleton."""
    db = FakeSupabase()
    monkeypatch.setattr(SupabaseClient, "_instance", db)
    return db


@pytest.fixture
def fake_s3(monkeypatch):
    """Recording S3 client installed as the singleton."""
    s3 = FakeS3()
    monkeypatch.setattr(ObjectStorageClient, "_instance", s3)
    return s3


@pytest.fixture(autouse=True)
def queued(monkeypatch):
    """
    Replace the Celery enqueue helpers with mocks.

    Returns a namespace-like dict of the mocks so tests can assert on what
    was queued.
    """
    from workers import dispatch

    mocks = {}
    for name in (
        "enqueue_storage_increment",
        "enqueue_storage_adjustment",
        "enqueue_activity_notification",
        "enqueue_share_invitation",
    ):
        mocks[name] = MagicMock(return_value=True)
        monkeypatch.setattr(dispatch, name, mocks[name])
    return mocks


@pytest.fixture(autouse=True)
def redis_publisher(monkeypatch):
    """Redis client used by publish_project_event; records publish calls."""
    from app.websocket import broadcast

    client = MagicMock()
    monkeypatch.setattr(broadcast, "get_redis_client", lambda: client)
    return client


@pytest.fixture(autouse=True)
def clear_profile_cache():
    from core.services import profile_service

    profile_service._profile_cache.clear()
    yield
    profile_service._profile_cache.clear()


# =============================================================================
# Users
# =============================================================================

@pytest.fixture
def owner():
    return AuthUser(id=UUID(OWNER_ID), email="owner@example.com")


@pytest.fixture
def collaborator():
    return AuthUser(id=UUID(COLLABORATOR_ID), email="colorist@example.com")


@pytest.fixture
def stranger():
    return AuthUser(id=UUID(STRANGER_ID), email="stranger@example.com")


# =============================================================================
# Sample Data
# =============================================================================

@pytest.fixture
def project(fake_db, fake_s3):
    """
    A private project owned by `owner`, shared (accepted) with
    `collaborator`, and profiles for both users.
    """
    fake_db.add("plans", {
        "id": PLAN_ID,
        "name": "Pro",
        "storage_limit_bytes": 10_000_000,
        "allowed_projects": 3,
    })
    fake_db.add("profiles", {
        "id": OWNER_ID,
        "username": "owner",
        "first_name": "Olive",
        "last_name": "Owner",
        "plan_id": PLAN_ID,
        "total_size_mb": 0.0,
    })
    fake_db.add("profiles", {
        "id": COLLABORATOR_ID,
        "username": "colorist",
        "first_name": "Cole",
        "last_name": None,
        "plan_id": None,
        "total_size_mb": 0.0,
    })
    fake_db.add_user(OWNER_ID, "owner@example.com")
    fake_db.add_user(COLLABORATOR_ID, "colorist@example.com")

    row = fake_db.add("projects", {
        "id": PROJECT_ID,
        "name": "Spring Campaign",
        "user_id": OWNER_ID,
        "visibility": "private",
        "thumbnail_key": None,
    })
    fake_db.add("project_shares", {
        "project_id": PROJECT_ID,
        "shared_by": OWNER_ID,
        "shared_with": "colorist@example.com",
        "shared_with_user_id": COLLABORATOR_ID,
        "status": "accepted",
    })
    return row

