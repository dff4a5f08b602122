"""
Security module: Authentication, password hashing, rate limiting.
"""

from shared.security.auth import (
    sign_jwt,
    sign_user_token,
    verify_jwt,
    get_bearer_token,
    resolve_stream_token,
    current_user_context,
    stream_token_context,
    require_roles,
    require_theater,
    can_access_theater,
)
from shared.security.password import hash_password, verify_password
from shared.security.rate_limit import (
    limiter,
    rate_limit_exceeded_handler,
    check_login_rate_limit,
)

__all__ = [
    # auth
    "sign_jwt",
    "sign_user_token",
    "verify_jwt",
    "get_bearer_token",
    "resolve_stream_token",
    "current_user_context",
    "stream_token_context",
    "require_roles",
    "require_theater",
    "can_access_theater",
    # password
    "hash_password",
    "verify_password",
    # rate_limit
    "limiter",
    "rate_limit_exceeded_handler",
    "check_login_rate_limit",
]
