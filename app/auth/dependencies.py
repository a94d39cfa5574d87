# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Verifies Supabase access tokens sent as "Authorization: Bearer <jwt>".
#
# Signing keys:
# - HS256 tokens (legacy projects) are checked against SUPABASE_JWT_SECRET
# - ES256/RS256 tokens are checked against the project's JWKS, looked up by
#   the token's "kid"; the JWKS document is cached for an hour
#
# The email claim is lowercased: share invitations are matched against it.
#
# Usage:
#   @router.get("/projects")
#   async def list_projects(user: AuthUser = Depends(get_current_user)): ...
#
#   @router.get("/projects/{id}")   # public projects readable anonymously
#   async def get_project(user: AuthUser | None = Depends(get_current_user_optional)): ...
# =============================================================================

import logging
from typing import Any, Optional
from uuid import UUID

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from app.auth.models import AuthUser
from app.config import settings
from lib.ttl_cache import TTLCache

logger = logging.getLogger(__name__)

security = HTTPBearer()
security_optional = HTTPBearer(auto_error=False)

TOKEN_AUDIENCE = "authenticated"
ASYMMETRIC_ALGORITHMS = {"ES256", "RS256"}

JWKS_CACHE_TTL = 3600
_jwks_cache = TTLCache(ttl_seconds=JWKS_CACHE_TTL)
# Last document fetched successfully; served while Supabase is unreachable
_jwks_last_known: dict[str, Any] = {"keys": []}


class TokenValidationError(Exception):
    """Token is missing claims, malformed, expired or badly signed."""


# =============================================================================
# Signing Keys
# =============================================================================

def jwks_url() -> str:
    return f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1/.well-known/jwks.json"


def fetch_jwks() -> dict[str, Any]:
    global _jwks_last_known

    cached = _jwks_cache.get("jwks")
    if cached is not None:
        return cached

    try:
        response = httpx.get(jwks_url(), timeout=10)
        response.raise_for_status()
        jwks = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Failed to fetch JWKS, using last known keys: {e}")
        return _jwks_last_known

    _jwks_cache.set("jwks", jwks)
    _jwks_last_known = jwks
    return jwks


def resolve_signing_key(token: str) -> tuple[Any, str]:
    """
    Pick the key and algorithm a token must be verified with.

    Raises:
        TokenValidationError: If the header can't be read, the algorithm
            isn't supported or no JWKS key matches the token's kid
    """
    try:
        header = jwt.get_unverified_header(token)
    except JWTError as e:
        raise TokenValidationError(f"Invalid token: {e}")

    algorithm = header.get("alg", "HS256")
    if algorithm == "HS256":
        return settings.SUPABASE_JWT_SECRET, algorithm

    if algorithm not in ASYMMETRIC_ALGORITHMS:
        raise TokenValidationError(f"Invalid token: unsupported algorithm {algorithm}")

    kid = header.get("kid")
    for key in fetch_jwks().get("keys", []):
        if kid and key.get("kid") == kid:
            return key, algorithm

    raise TokenValidationError("Invalid token: unknown signing key")


# =============================================================================
# Token Verification
# =============================================================================

def decode_access_token(token: str) -> AuthUser:
    """
    Verify a Supabase access token and build the AuthUser.

    Shared by the HTTP dependencies and the WebSocket endpoint.

    Raises:
        TokenValidationError: With a client-safe reason
    """
    key, algorithm = resolve_signing_key(token)

    try:
        claims = jwt.decode(token, key, algorithms=[algorithm], audience=TOKEN_AUDIENCE)
    except ExpiredSignatureError:
        raise TokenValidationError("Token has expired")
    except JWTError as e:
        raise TokenValidationError(f"Invalid token: {e}")

    try:
        user_id = UUID(str(claims.get("sub")))
    except ValueError:
        raise TokenValidationError("Invalid token: missing or malformed user ID")

    email = claims.get("email")
    return AuthUser(id=user_id, email=email.lower() if email else None)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthUser:
    """
    Require a valid access token.

    Raises:
        HTTPException: 401 if the token is invalid or expired
    """
    try:
        return decode_access_token(credentials.credentials)
    except TokenValidationError as e:
        logger.info(f"Rejected access token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional)
) -> Optional[AuthUser]:
    """
    The signed-in user, or None for anonymous visitors.

    An invalid token is treated like no token, so a stale session can
    still read public projects.
    """
    if credentials is None:
        return None

    try:
        return decode_access_token(credentials.credentials)
    except TokenValidationError as e:
        logger.debug(f"Ignoring invalid token on public endpoint: {e}")
        return None
