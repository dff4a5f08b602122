"""
Request correlation middleware.

Adds an X-Request-ID to every request so log lines emitted while handling it
can be grouped together.
"""

import uuid
from contextvars import ContextVar

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

# Context variable for request ID (task-local)
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class CorrelationIdMiddleware:
    """
    Pure ASGI middleware that assigns correlation IDs.

    - If X-Request-ID header is present, uses that value
    - Otherwise generates a new UUID
    - Sets the ID in context for logging
    - Returns the ID in response headers

    Written against raw ASGI instead of BaseHTTPMiddleware so long-lived
    streaming responses pass through unbuffered.
    """

    HEADER_NAME = "X-Request-ID"

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = ""
        for key, value in scope.get("headers", []):
            if key.decode("latin-1").lower() == self.HEADER_NAME.lower():
                request_id = value.decode("latin-1")
                break
        if not request_id:
            request_id = str(uuid.uuid4())

        scope.setdefault("state", {})["request_id"] = request_id
        token = request_id_var.set(request_id)

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers[self.HEADER_NAME] = request_id
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            request_id_var.reset(token)


class CorrelationIdFilter:
    """
    Logging filter that adds request_id to log records.

    Usage:
        handler = logging.StreamHandler()
        handler.addFilter(CorrelationIdFilter())
    """

    def filter(self, record) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True
