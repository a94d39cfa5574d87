# =============================================================================
# tests/test_auth_and_realtime.py - Token Verification & Change Feed Tests
# =============================================================================
# Tokens are signed with the HS256 secret set in conftest
# (SUPABASE_JWT_SECRET=test-jwt-secret).
# =============================================================================

import asyncio
import json
import time
from uuid import UUID

import pytest
from jose import jwt

from app.auth import TokenValidationError, decode_access_token
from app.auth.models import AuthUser, UserResponse
from app.config import settings
from app.websocket.broadcast import WEBSOCKET_CHANNEL, publish_project_event
from app.websocket.listener import parse_event
from app.websocket.manager import ConnectionManager
from tests.fakes import COLLABORATOR_ID, OWNER_ID, PROJECT_ID


def make_token(sub=OWNER_ID, email="Owner@Example.com", expires_in=3600, secret=None, **extra):
    claims = {
        "sub": sub,
        "email": email,
        "aud": "authenticated",
        "exp": int(time.time()) + expires_in,
        **extra,
    }
    return jwt.encode(claims, secret or settings.SUPABASE_JWT_SECRET, algorithm="HS256")


# =============================================================================
# Tokens
# =============================================================================

class TestDecodeAccessToken:

    def test_valid_token(self):
        user = decode_access_token(make_token())

        assert user.id == UUID(OWNER_ID)
        assert user.email == "owner@example.com"

    def test_expired(self):
        with pytest.raises(TokenValidationError, match="expired"):
            decode_access_token(make_token(expires_in=-60))

    def test_wrong_secret(self):
        with pytest.raises(TokenValidationError):
            decode_access_token(make_token(secret="not-the-secret"))

    def test_wrong_audience(self):
        with pytest.raises(TokenValidationError):
            decode_access_token(make_token(aud="anon"))

    def test_malformed_subject(self):
        with pytest.raises(TokenValidationError, match="user ID"):
            decode_access_token(make_token(sub="not-a-uuid"))

    def test_garbage(self):
        with pytest.raises(TokenValidationError):
            decode_access_token("definitely.not.a-jwt")


class TestUserResponse:

    def test_without_profile(self):
        user = AuthUser(id=UUID(OWNER_ID), email="owner@example.com")

        response = UserResponse.build(user, None)

        assert response.has_profile is False
        assert response.username is None

    def test_with_profile(self):
        user = AuthUser(id=UUID(OWNER_ID), email="owner@example.com")

        response = UserResponse.build(user, {"username": "owner", "total_size_mb": "2.5"})

        assert response.has_profile is True
        assert response.username == "owner"
        assert response.total_size_mb == 2.5


# =============================================================================
# Change Feed
# =============================================================================

class FakeWebSocket:
    def __init__(self, broken=False):
        self.accepted = False
        self.sent = []
        self.broken = broken

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        if self.broken:
            raise RuntimeError("connection closed")
        self.sent.append(message)


class TestConnectionManager:

    def test_viewers_are_distinct_users(self):
        manager = ConnectionManager()
        tab1, tab2, other = FakeWebSocket(), FakeWebSocket(), FakeWebSocket()

        asyncio.run(manager.connect(PROJECT_ID, tab1, UUID(OWNER_ID)))
        asyncio.run(manager.connect(PROJECT_ID, tab2, UUID(OWNER_ID)))
        viewers = asyncio.run(manager.connect(PROJECT_ID, other, UUID(COLLABORATOR_ID)))

        assert tab1.accepted
        assert viewers == sorted([OWNER_ID, COLLABORATOR_ID])
        assert manager.count(PROJECT_ID) == 3
        assert manager.disconnect(PROJECT_ID, other) == [OWNER_ID]

    def test_broadcast_drops_broken_connections(self):
        manager = ConnectionManager()
        good, broken = FakeWebSocket(), FakeWebSocket(broken=True)
        asyncio.run(manager.connect(PROJECT_ID, good, UUID(OWNER_ID)))
        asyncio.run(manager.connect(PROJECT_ID, broken, UUID(COLLABORATOR_ID)))

        sent = asyncio.run(manager.broadcast(PROJECT_ID, {"type": "marks_changed"}))

        assert sent == 1
        assert good.sent == [{"type": "marks_changed"}]
        assert manager.count(PROJECT_ID) == 1

    def test_broadcast_can_skip_sender(self):
        manager = ConnectionManager()
        sender, receiver = FakeWebSocket(), FakeWebSocket()
        asyncio.run(manager.connect(PROJECT_ID, sender, UUID(OWNER_ID)))
        asyncio.run(manager.connect(PROJECT_ID, receiver, UUID(COLLABORATOR_ID)))

        asyncio.run(manager.broadcast(PROJECT_ID, {"type": "viewers_changed"}, exclude=sender))

        assert sender.sent == []
        assert receiver.sent == [{"type": "viewers_changed"}]

    def test_last_disconnect_forgets_project(self):
        manager = ConnectionManager()
        ws = FakeWebSocket()
        asyncio.run(manager.connect(PROJECT_ID, ws, UUID(OWNER_ID)))

        manager.disconnect(PROJECT_ID, ws)
        manager.disconnect(PROJECT_ID, ws)

        assert PROJECT_ID not in manager.connections
        assert asyncio.run(manager.broadcast(PROJECT_ID, {"type": "x"})) == 0


class TestPublish:

    def test_publishes_to_channel(self, redis_publisher):
        assert publish_project_event(PROJECT_ID, "folders_changed", {"action": "created"}) is True

        channel, message = redis_publisher.publish.call_args.args
        assert channel == WEBSOCKET_CHANNEL
        assert json.loads(message) == {
            "project_id": PROJECT_ID,
            "type": "folders_changed",
            "action": "created",
        }

    def test_redis_failure_reported(self, redis_publisher):
        redis_publisher.publish.side_effect = ConnectionError("down")
        assert publish_project_event(PROJECT_ID, "folders_changed") is False


class TestParseEvent:

    def test_splits_project_id(self):
        raw = json.dumps({"project_id": PROJECT_ID, "type": "marks_changed", "action": "added"})
        assert parse_event(raw) == (PROJECT_ID, {"type": "marks_changed", "action": "added"})

    def test_bytes_accepted(self):
        raw = json.dumps({"project_id": PROJECT_ID, "type": "x"}).encode()
        assert parse_event(raw)[0] == PROJECT_ID

    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", json.dumps({"type": "orphan"})])
    def test_unroutable_messages_ignored(self, raw):
        assert parse_event(raw) is None
