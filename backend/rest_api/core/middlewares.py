"""
Security middlewares for the FastAPI application.
Implements security headers and content-type validation.

Both are pure ASGI middlewares so the long-lived SSE stream is passed
through without buffering.
"""

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from shared.config.settings import settings


class SecurityHeadersMiddleware:
    """
    Add security headers to all responses.

    Headers added:
    - X-Content-Type-Options: nosniff
    - X-Frame-Options: DENY
    - Referrer-Policy: strict-origin-when-cross-origin
    - Strict-Transport-Security in production
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers["X-Content-Type-Options"] = "nosniff"
                headers["X-Frame-Options"] = "DENY"
                headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
                if settings.environment == "production":
                    headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
            await send(message)

        await self.app(scope, receive, send_with_headers)


class ContentTypeValidationMiddleware:
    """
    Validate Content-Type for requests with body.

    POST/PUT/PATCH requests must use application/json.
    Returns 415 Unsupported Media Type otherwise.
    """

    METHODS_WITH_BODY = {"POST", "PUT", "PATCH"}

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["method"] in self.METHODS_WITH_BODY:
            content_type = Headers(scope=scope).get("content-type", "")
            if content_type and not content_type.startswith("application/json"):
                response = JSONResponse(
                    status_code=415,
                    content={"detail": "Unsupported Media Type. Use application/json"},
                )
                await response(scope, receive, send)
                return
        await self.app(scope, receive, send)


def register_middlewares(app: FastAPI) -> None:
    """
    Register all security middlewares on the FastAPI application.

    Middlewares execute in reverse order of registration.
    """
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(ContentTypeValidationMiddleware)
