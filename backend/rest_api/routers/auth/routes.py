"""
Authentication router.
Handles login for dashboard users and print agents.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from shared.config.logging import audit_auth_event
from shared.config.settings import settings
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context, sign_user_token
from shared.security.password import verify_password
from shared.security.rate_limit import check_login_rate_limit, limiter
from shared.utils.schemas import LoginRequest, LoginResponse, UserInfo
from rest_api.models import Theater, User

router = APIRouter(prefix="/api/auth", tags=["auth"])

INVALID_CREDENTIALS = "Invalid username or password"


@router.post("/login", response_model=LoginResponse)
@limiter.limit(f"{settings.login_rate_limit}/minute")
def login(request: Request, body: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    """
    Authenticate a user and return an access token.

    The token contains:
    - sub: user ID
    - theater_id: theater the user is scoped to (None for super admins)
    - role: SUPER_ADMIN, THEATER_ADMIN or POS_USER
    - username

    Rate limited by client IP (slowapi) and by username.
    """
    client_ip = request.client.host if request.client else None
    check_login_rate_limit(body.username)

    user = db.scalar(
        select(User).where(User.username == body.username.strip(), User.is_active.is_(True))
    )

    if user is None or not verify_password(body.password, user.password):
        audit_auth_event(
            "LOGIN_FAILED",
            user_id=user.id if user else None,
            username=body.username,
            success=False,
            reason="user_not_found" if user is None else "bad_password",
            ip_address=client_ip,
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS,
        )

    if user.theater_id is not None:
        theater = db.get(Theater, user.theater_id)
        if theater is None or not theater.is_active:
            audit_auth_event(
                "LOGIN_FAILED",
                user_id=user.id,
                username=user.username,
                success=False,
                reason="theater_inactive",
                ip_address=client_ip,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Theater is not active",
            )

    token = sign_user_token(user.id, user.username, user.role, user.theater_id)
    audit_auth_event(
        "LOGIN",
        user_id=user.id,
        username=user.username,
        role=user.role,
        theater_id=user.theater_id,
        ip_address=client_ip,
    )

    return LoginResponse(
        token=token,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        user=UserInfo(
            id=user.id,
            username=user.username,
            role=user.role,
            theater_id=user.theater_id,
        ),
    )


@router.get("/me")
def me(ctx: dict[str, Any] = Depends(current_user_context)) -> dict[str, Any]:
    """Claims of the current token."""
    return {
        "success": True,
        "user": {
            "id": int(ctx["sub"]),
            "username": ctx.get("username"),
            "role": ctx.get("role"),
            "theaterId": ctx.get("theater_id"),
        },
    }
