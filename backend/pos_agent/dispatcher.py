"""
Turns ``pos_order`` frames into printed receipts.

Per frame: validate shape, skip recently printed orders, fetch the order,
re-check print eligibility for ``created``, render, print in a worker
thread. Every failure is logged and the frame is abandoned; nothing is
raised to the caller.
"""

from __future__ import annotations

import asyncio
from datetime import tzinfo
from typing import Any

import httpx

from pos_agent.client import BackendClient
from pos_agent.dedup import RecentPrints
from pos_agent.errors import AuthenticationError, OrderFetchError, PrinterError
from pos_agent.printers.base import ReceiptPrinter
from pos_agent.receipt import render_receipt
from shared.config.constants import PrintTransition, StreamFrameType
from shared.config.logging import get_logger
from shared.print_eligibility import is_order_print_eligible

logger = get_logger(__name__)


def parse_pos_order(frame: Any) -> tuple[str, str] | None:
    """(transition, order_id) of a well-formed pos_order frame, else None."""
    if not isinstance(frame, dict) or frame.get("type") != StreamFrameType.POS_ORDER:
        return None
    transition = frame.get("event")
    order_id = frame.get("orderId")
    if transition not in PrintTransition.ALL:
        return None
    if isinstance(order_id, bool) or not isinstance(order_id, (str, int)):
        return None
    order_id = str(order_id).strip()
    if not order_id:
        return None
    return transition, order_id


class PrintDispatcher:
    """Print pipeline of one theater."""

    def __init__(
        self,
        client: BackendClient,
        theater_id: int | str,
        printer: ReceiptPrinter,
        recent: RecentPrints | None = None,
        label: str = "",
        tz: tzinfo | None = None,
    ) -> None:
        self._client = client
        self._theater_id = str(theater_id)
        self.printer = printer
        self._recent = recent if recent is not None else RecentPrints(0)
        self._label = label
        self._tz = tz
        self.printed = 0
        self.failed = 0

    async def handle(self, frame: dict[str, Any]) -> bool:
        """Process one frame. Returns True when a receipt was printed."""
        try:
            return await self._handle(frame)
        except Exception:
            self.failed += 1
            logger.exception("Unhandled error while handling POS event", agent=self._label)
            return False

    async def _handle(self, frame: dict[str, Any]) -> bool:
        if frame.get("type") != StreamFrameType.POS_ORDER:
            return False

        parsed = parse_pos_order(frame)
        if parsed is None:
            logger.warning("Dropping malformed pos_order frame", agent=self._label, frame=frame)
            return False
        transition, order_id = parsed

        frame_theater = frame.get("theaterId")
        if frame_theater is not None and str(frame_theater) != self._theater_id:
            logger.warning(
                "Dropping pos_order frame of another theater",
                agent=self._label,
                theater_id=frame_theater,
                order_id=order_id,
            )
            return False

        if self._recent.seen(order_id):
            logger.info("Order printed recently, skipping", agent=self._label, order_id=order_id, transition=transition)
            return False

        try:
            order = await self._client.get_order(self._theater_id, order_id)
        except (OrderFetchError, AuthenticationError, httpx.HTTPError) as e:
            self.failed += 1
            logger.error("Cannot fetch order, event abandoned", agent=self._label, order_id=order_id, error=str(e))
            return False

        # The backend already filters, the agent enforces the same rule again
        if transition == PrintTransition.CREATED and not is_order_print_eligible(transition, order):
            logger.info("Order not paid yet, waiting for paid event", agent=self._label, order_id=order_id)
            return False

        receipt = render_receipt(order, self._tz)

        try:
            await asyncio.to_thread(self.printer.print_receipt, receipt)
        except PrinterError as e:
            self.failed += 1
            logger.error(
                "Print failed, event abandoned",
                agent=self._label,
                order_id=order_id,
                printer=self.printer.describe(),
                error=str(e),
            )
            return False

        self._recent.mark(order_id)
        self.printed += 1
        logger.info(
            "Receipt printed",
            agent=self._label,
            order_id=order_id,
            order_number=receipt.order_number,
            transition=transition,
            printer=self.printer.describe(),
        )
        return True
