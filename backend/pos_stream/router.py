"""
POS stream routes.

- GET  /api/pos-stream/{theater_id}         Server-Sent Events subscription
- GET  /api/pos-stream/{theater_id}/status  connected agents of a theater
- POST /api/pos-stream/{theater_id}/test    broadcast a test pointer event
"""

import time
from typing import Any

from fastapi import APIRouter, Depends, Header, Query
from pydantic import Field

from shared.config.constants import MANAGEMENT_ROLES, PrintTransition
from shared.config.logging import get_logger
from shared.security.auth import require_roles, require_theater, stream_token_context
from shared.utils.schemas import CamelModel
from pos_stream.endpoint import PosStreamEndpoint
from pos_stream.event_bus import get_event_bus
from pos_stream.frames import PrintEvent

logger = get_logger(__name__)

router = APIRouter(prefix="/api/pos-stream", tags=["pos-stream"])


class BroadcastTestRequest(CamelModel):
    """Body of the test broadcast. Both fields optional."""

    event: str = Field(default=PrintTransition.CREATED, pattern="^(created|paid)$")
    order_id: str | None = Field(default=None, max_length=64)


@router.get("/{theater_id}")
async def pos_stream(
    theater_id: int,
    authorization: str | None = Header(default=None, alias="Authorization"),
    token: str | None = Query(default=None),
):
    """
    Long-lived event stream for print agents.

    Frames: ``connected`` once, then ``pos_order`` pointers and periodic
    ``keepalive`` objects.
    """
    endpoint = PosStreamEndpoint(theater_id, authorization=authorization, query_token=token)
    return await endpoint.open()


@router.get("/{theater_id}/status")
def pos_stream_status(
    theater_id: int,
    ctx: dict[str, Any] = Depends(stream_token_context),
):
    """Agents currently subscribed to the theater."""
    require_theater(ctx, theater_id)
    subscribers = get_event_bus().subscribers(theater_id)
    return {
        "success": True,
        "data": {
            "theaterId": str(theater_id),
            "connected": len(subscribers),
            "agents": [s.snapshot() for s in subscribers if hasattr(s, "snapshot")],
        },
    }


@router.post("/{theater_id}/test")
def pos_stream_test(
    theater_id: int,
    body: BroadcastTestRequest | None = None,
    ctx: dict[str, Any] = Depends(stream_token_context),
):
    """
    Broadcast a pointer event without touching any order.

    Agents will try to fetch the order id; with the default synthetic id
    the fetch fails and is logged agent-side, which proves the path up to
    the agent. Pass a real order id to print it.
    """
    require_roles(ctx, MANAGEMENT_ROLES)
    require_theater(ctx, theater_id)

    body = body or BroadcastTestRequest()
    order_id = body.order_id or f"test-{int(time.time() * 1000)}"
    notified = get_event_bus().broadcast(
        theater_id, PrintEvent.pos_order(theater_id, body.event, order_id)
    )
    logger.info(
        "Test broadcast sent",
        theater_id=theater_id,
        transition=body.event,
        agents_notified=notified,
    )
    return {
        "success": True,
        "message": "Test broadcast sent",
        "agentsNotified": notified,
        "orderId": order_id,
    }
