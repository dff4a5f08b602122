"""
Rate limiting for the login endpoint.

slowapi limits by client IP. Print agents at one theater share a public IP,
so failed attempts are additionally counted per username in process memory.
"""

import threading
import time
from collections import deque

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from shared.config.logging import get_logger, mask_username
from shared.config.settings import settings

logger = get_logger(__name__)

# Create limiter instance using client IP as key
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


class UsernameRateLimiter:
    """
    Sliding-window counter of login attempts per username.

    Thread-safe: login runs in FastAPI's threadpool.
    """

    def __init__(self, limit: int, window_seconds: int) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._attempts: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    def check(self, username: str) -> None:
        """
        Record an attempt for ``username``.

        Raises:
            HTTPException: 429 once the limit for the window is exceeded.
        """
        now = time.monotonic()
        key = username.strip().lower()
        with self._lock:
            attempts = self._attempts.setdefault(key, deque())
            while attempts and now - attempts[0] >= self.window_seconds:
                attempts.popleft()
            if len(attempts) >= self.limit:
                retry_after = max(1, int(self.window_seconds - (now - attempts[0])))
                logger.warning(
                    "Login rate limit exceeded",
                    username=mask_username(username),
                    limit=self.limit,
                )
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail=f"Too many login attempts. Try again in {retry_after} seconds.",
                    headers={"Retry-After": str(retry_after)},
                )
            attempts.append(now)

    def reset(self, username: str | None = None) -> None:
        """Forget attempts for one username, or for everyone."""
        with self._lock:
            if username is None:
                self._attempts.clear()
            else:
                self._attempts.pop(username.strip().lower(), None)


login_attempts = UsernameRateLimiter(settings.login_rate_limit, settings.login_rate_window)


def check_login_rate_limit(username: str) -> None:
    """Raise 429 when ``username`` has too many recent login attempts."""
    if not limiter.enabled:
        return
    login_attempts.check(username)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Custom handler for rate limit exceeded errors.
    Returns a JSON response with retry information.
    """
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "detail": "Rate limit exceeded. Try again later.",
            "retry_after": exc.detail,
        },
        headers={"Retry-After": str(exc.detail)},
    )
