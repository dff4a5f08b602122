"""
Wire frames of the POS event stream.

A ``pos_order`` frame is a pointer: transition kind plus order id. It never
carries the order body; agents fetch current state from the order API.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from shared.config.constants import PrintTransition, StreamFrameType

_FRAME_TYPES = frozenset(
    {StreamFrameType.CONNECTED, StreamFrameType.POS_ORDER, StreamFrameType.KEEPALIVE}
)


@dataclass(frozen=True, slots=True)
class PrintEvent:
    """
    One frame of the stream.

    Attributes:
        type: connected | pos_order | keepalive
        theater_id: Tenant the frame belongs to (connected, pos_order)
        event: Transition kind for pos_order frames (created | paid)
        order_id: Order pointer for pos_order frames
    """

    type: str
    theater_id: str | None = None
    event: str | None = None
    order_id: str | None = None

    def __post_init__(self) -> None:
        if self.type not in _FRAME_TYPES:
            raise ValueError(f"Unknown frame type: {self.type}")
        if self.type == StreamFrameType.POS_ORDER:
            if self.event not in PrintTransition.ALL:
                raise ValueError(f"Unknown transition: {self.event}")
            if not self.order_id:
                raise ValueError("pos_order frame requires an order id")
            if not self.theater_id:
                raise ValueError("pos_order frame requires a theater id")
        if self.type == StreamFrameType.CONNECTED and not self.theater_id:
            raise ValueError("connected frame requires a theater id")

    @classmethod
    def connected(cls, theater_id: int | str) -> PrintEvent:
        return cls(type=StreamFrameType.CONNECTED, theater_id=str(theater_id))

    @classmethod
    def pos_order(cls, theater_id: int | str, transition: str, order_id: int | str) -> PrintEvent:
        return cls(
            type=StreamFrameType.POS_ORDER,
            theater_id=str(theater_id),
            event=transition,
            order_id=str(order_id),
        )

    @classmethod
    def keepalive(cls) -> PrintEvent:
        return cls(type=StreamFrameType.KEEPALIVE)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type}
        if self.type == StreamFrameType.POS_ORDER:
            data["event"] = self.event
            data["orderId"] = self.order_id
            data["theaterId"] = self.theater_id
        elif self.type == StreamFrameType.CONNECTED:
            data["theaterId"] = self.theater_id
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    def encode_sse(self) -> str:
        """Server-Sent Events framing: ``data: <json>`` plus a blank line."""
        return f"data: {self.to_json()}\n\n"
