"""
Lifecycle emitter: turns order transitions into POS stream events.

Called by OrderService (``created``) and PaymentService (``paid``) after the
order mutation has been committed. Never raises: a failed publication is
logged and the order mutation stands.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from shared.config.constants import PrintTransition
from shared.config.logging import get_logger
from shared.print_eligibility import is_print_eligible
from pos_stream.event_bus import EventBus, get_event_bus
from pos_stream.frames import PrintEvent

if TYPE_CHECKING:
    from rest_api.models import Order

logger = get_logger(__name__)


class LifecycleEmitter:
    """
    Publishes a ``pos_order`` pointer event for print-eligible transitions.

    The event carries theater id, transition and order id only; agents fetch
    the order body themselves.
    """

    def __init__(self, bus: EventBus | None = None) -> None:
        self._bus = bus

    @property
    def bus(self) -> EventBus:
        return self._bus or get_event_bus()

    def order_created(self, order: "Order") -> bool:
        return self.emit(PrintTransition.CREATED, order)

    def order_paid(self, order: "Order") -> bool:
        return self.emit(PrintTransition.PAID, order)

    def emit(self, transition: str, order: "Order") -> bool:
        """
        Publish ``transition`` of ``order`` if it is print-eligible.

        Returns:
            True if an event was handed to the bus.
        """
        try:
            if not is_print_eligible(transition, order.payment_method, order.payment_status):
                logger.debug(
                    "Transition not print-eligible",
                    order_id=order.id,
                    transition=transition,
                    payment_method=order.payment_method,
                    payment_status=order.payment_status,
                )
                return False

            event = PrintEvent.pos_order(order.theater_id, transition, order.id)
            notified = self.bus.broadcast(order.theater_id, event)
            logger.info(
                "Print event published",
                theater_id=order.theater_id,
                order_id=order.id,
                transition=transition,
                agents_notified=notified,
            )
            return True
        except Exception as e:
            logger.error(
                "Failed to publish print event",
                order_id=getattr(order, "id", None),
                transition=transition,
                error=str(e),
                exc_info=True,
            )
            return False


_emitter: LifecycleEmitter | None = None


def get_lifecycle_emitter() -> LifecycleEmitter:
    """Process-wide emitter bound to the process-wide event bus."""
    global _emitter
    if _emitter is None:
        _emitter = LifecycleEmitter()
    return _emitter
