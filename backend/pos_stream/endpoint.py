"""
Subscriber gateway endpoint for the POS event stream.

Lifecycle of one subscription:
1. validate_auth(): token from header or ``?token=``, verified within a
   bounded time, theater access checked.
2. The ``connected`` frame is written before registering with the bus.
3. Events are forwarded as SSE frames; a keep-alive frame goes out after
   every idle interval and the token is re-validated at that moment.
4. On client disconnect, token expiry or a bus drop, the subscriber is
   unregistered.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Any

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse, Response, StreamingResponse

from shared.config.logging import audit_stream_connection, get_logger
from shared.config.settings import settings
from shared.security.auth import can_access_theater, resolve_stream_token, verify_jwt
from pos_stream.constants import SSE_HEADERS, SSE_MEDIA_TYPE
from pos_stream.event_bus import EventBus, SubscriptionTicket, get_event_bus
from pos_stream.frames import PrintEvent
from pos_stream.subscription import StreamSubscriber

logger = get_logger(__name__)


class PosStreamEndpoint:
    """
    One ``GET /api/pos-stream/{theater_id}`` request.

    Usage:
        endpoint = PosStreamEndpoint(theater_id, authorization=..., query_token=...)
        return await endpoint.open()
    """

    def __init__(
        self,
        theater_id: int,
        authorization: str | None = None,
        query_token: str | None = None,
        bus: EventBus | None = None,
        keepalive_interval: float | None = None,
        auth_timeout: float | None = None,
        max_pending: int | None = None,
    ) -> None:
        self.theater_id = theater_id
        self._authorization = authorization
        self._query_token = query_token
        self._bus = bus or get_event_bus()
        self.keepalive_interval = keepalive_interval or settings.pos_stream_keepalive_interval
        self.auth_timeout = auth_timeout or settings.pos_stream_auth_timeout
        self.max_pending = max_pending or settings.pos_stream_max_pending_events

        self._token: str | None = None
        self.claims: dict[str, Any] | None = None
        self.subscriber: StreamSubscriber | None = None

    @property
    def subject(self) -> str | None:
        return str(self.claims.get("sub")) if self.claims else None

    async def validate_auth(self) -> dict[str, Any]:
        """
        Authenticate the subscription.

        Raises:
            HTTPException: 401 on a missing, invalid or slow-to-verify token,
                403 when the token belongs to another theater.
        """
        token = resolve_stream_token(self._authorization, self._query_token)
        try:
            claims = await asyncio.wait_for(
                asyncio.to_thread(verify_jwt, token), timeout=self.auth_timeout
            )
        except asyncio.TimeoutError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication timed out",
            )

        if not can_access_theater(claims, self.theater_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"No access to theater {self.theater_id}",
            )

        self._token = token
        self.claims = claims
        return claims

    def _token_still_valid(self) -> bool:
        if self._token is None:
            return False
        try:
            verify_jwt(self._token)
        except HTTPException:
            return False
        return True

    def create_subscriber(self) -> StreamSubscriber:
        self.subscriber = StreamSubscriber(
            self.theater_id,
            subject=self.subject,
            max_pending=self.max_pending,
        )
        return self.subscriber

    async def event_frames(self) -> AsyncIterator[str]:
        """SSE body. Registers with the bus after the connected frame is out."""
        subscriber = self.subscriber or self.create_subscriber()
        ticket: SubscriptionTicket | None = None
        reason = "client_closed"

        try:
            yield PrintEvent.connected(self.theater_id).encode_sse()

            ticket = self._bus.subscribe(self.theater_id, subscriber)
            audit_stream_connection(
                "CONNECT", str(self.theater_id), subject=self.subject, subscriber_id=subscriber.id
            )

            while True:
                try:
                    event = await subscriber.next_event(timeout=self.keepalive_interval)
                except asyncio.TimeoutError:
                    if not self._token_still_valid():
                        reason = "token_expired"
                        break
                    subscriber.mark_keepalive()
                    yield PrintEvent.keepalive().encode_sse()
                    continue

                if event is None:
                    reason = "dropped"
                    break
                if not self._token_still_valid():
                    reason = "token_expired"
                    break
                yield event.encode_sse()
        finally:
            if ticket is not None:
                self._bus.unsubscribe(ticket)
            subscriber.close()
            audit_stream_connection(
                "DISCONNECT",
                str(self.theater_id),
                subject=self.subject,
                reason=reason,
                subscriber_id=subscriber.id,
                delivered=subscriber.delivered,
            )

    async def open(self) -> Response:
        """Authenticate and return the streaming response, or a JSON error."""
        try:
            await self.validate_auth()
        except HTTPException as e:
            event_type = "FORBIDDEN" if e.status_code == status.HTTP_403_FORBIDDEN else "AUTH_FAILED"
            audit_stream_connection(event_type, str(self.theater_id), reason=str(e.detail))
            return JSONResponse(
                status_code=e.status_code,
                content={"success": False, "error": e.detail},
                headers={"Access-Control-Allow-Origin": "*"},
            )

        self.create_subscriber()
        return StreamingResponse(
            self.event_frames(),
            media_type=SSE_MEDIA_TYPE,
            headers=SSE_HEADERS,
        )
