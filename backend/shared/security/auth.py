"""
Authentication and authorization utilities.
Handles JWT bearer tokens for staff and print agents.

Token claims:
    sub        user id (string)
    theater_id tenant the user is scoped to, or None for super admins
    role       one of Roles.ALL
    username   login name
"""

from __future__ import annotations

import time
import uuid
from typing import Any

import jwt
from fastapi import Header, HTTPException, Query, status

from shared.config.constants import Roles
from shared.config.logging import get_logger
from shared.config.settings import JWT_AUDIENCE, JWT_ISSUER, JWT_SECRET, settings

logger = get_logger(__name__)


# =============================================================================
# JWT Functions
# =============================================================================


def sign_jwt(payload: dict[str, Any], ttl_seconds: int | None = None) -> str:
    """
    Sign a JWT token with the given payload.

    Args:
        payload: Claims to include in the token (sub, theater_id, role, username).
        ttl_seconds: Token lifetime in seconds. Defaults to access token expiry.

    Returns:
        Signed JWT token string.
    """
    if ttl_seconds is None:
        ttl_seconds = settings.jwt_access_token_expire_minutes * 60

    now = int(time.time())
    data = {
        **payload,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": now,
        "exp": now + ttl_seconds,
        "type": "access",
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(data, JWT_SECRET, algorithm="HS256")


def sign_user_token(
    user_id: int,
    username: str,
    role: str,
    theater_id: int | None,
    ttl_seconds: int | None = None,
) -> str:
    """Create an access token for a user row."""
    return sign_jwt(
        {
            "sub": str(user_id),
            "username": username,
            "role": role,
            "theater_id": theater_id,
        },
        ttl_seconds=ttl_seconds,
    )


def verify_jwt(token: str) -> dict[str, Any]:
    """
    Verify and decode a JWT token.

    Returns:
        Decoded token claims.

    Raises:
        HTTPException: 401 if the token is invalid, expired or malformed.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=["HS256"],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except jwt.InvalidTokenError as e:
        # Generic message to the client, actual reason only in logs
        logger.warning("JWT validation failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    if "sub" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing subject claim",
        )
    try:
        int(payload["sub"])
    except (ValueError, TypeError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: malformed subject claim",
        )

    if payload.get("role") not in Roles.ALL:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: invalid role claim",
        )

    theater_id = payload.get("theater_id")
    if theater_id is not None and not isinstance(theater_id, int):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: malformed theater_id claim",
        )

    return payload


def get_bearer_token(authorization: str | None) -> str:
    """
    Extract bearer token from Authorization header.

    Raises:
        HTTPException: If header is missing or malformed.
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header",
        )
    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Authorization header format. Expected: Bearer <token>",
        )
    return authorization.split(" ", 1)[1].strip()


def resolve_stream_token(authorization: str | None, query_token: str | None) -> str:
    """
    Pick the bearer token of an event stream subscription.

    EventSource clients cannot set headers, so the token may arrive as
    ``?token=``. The Authorization header wins when both are present.
    """
    if authorization:
        return get_bearer_token(authorization)
    if query_token:
        return query_token.strip()
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Missing token",
    )


def current_user_context(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict[str, Any]:
    """
    FastAPI dependency to get the current user context from JWT.

    Usage:
        @router.get("/protected")
        def protected_endpoint(ctx = Depends(current_user_context)):
            user_id = int(ctx["sub"])
            theater_id = ctx["theater_id"]
            ...
    """
    token = get_bearer_token(authorization)
    return verify_jwt(token)


def stream_token_context(
    authorization: str | None = Header(default=None, alias="Authorization"),
    token: str | None = Query(default=None),
) -> dict[str, Any]:
    """Like current_user_context, but also accepts ``?token=``."""
    return verify_jwt(resolve_stream_token(authorization, token))


def require_roles(ctx: dict[str, Any], allowed: list[str] | frozenset[str]) -> None:
    """
    Verify that the user has one of the allowed roles.

    Raises:
        HTTPException: 403 if user lacks required role.
    """
    if ctx.get("role") not in allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Insufficient permissions. Required role: one of {sorted(allowed)}",
        )


def can_access_theater(ctx: dict[str, Any], theater_id: int) -> bool:
    """Super admins see every theater; everyone else only their own."""
    if ctx.get("role") == Roles.SUPER_ADMIN:
        return True
    return ctx.get("theater_id") == theater_id


def require_theater(ctx: dict[str, Any], theater_id: int) -> None:
    """
    Verify that the user may act on the given theater.

    Raises:
        HTTPException: 403 if the token is scoped to another theater.
    """
    if not can_access_theater(ctx, theater_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"No access to theater {theater_id}",
        )
