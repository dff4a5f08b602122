"""
Print eligibility of an order lifecycle transition.

Imported by the backend emitter and by the print agent so both sides apply
the same rule:

* ``paid``: always eligible.
* ``created``: eligible only when the order was settled at the counter,
  i.e. payment method is cash/cod and payment status is completed/paid.
"""

from collections.abc import Mapping
from typing import Any

from shared.config.constants import PaymentMethod, PaymentStatus, PrintTransition


def _norm(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def is_counter_settled(method: Any, status: Any) -> bool:
    """True iff the payment was taken in person and has been received."""
    return _norm(method) in PaymentMethod.COUNTER and _norm(status) in PaymentStatus.SETTLED


def is_print_eligible(transition: str, method: Any, status: Any) -> bool:
    """
    Decide whether ``transition`` of an order with the given payment
    method/status should reach a printer. Unknown transitions are not eligible.
    """
    if transition == PrintTransition.PAID:
        return True
    if transition == PrintTransition.CREATED:
        return is_counter_settled(method, status)
    return False


def is_order_print_eligible(transition: str, order: Mapping[str, Any]) -> bool:
    """
    Same rule applied to an order JSON body (``payment.method`` /
    ``payment.status``), as returned by the order fetch endpoint.
    Top-level ``paymentMethod`` / ``paymentStatus`` are accepted as fallbacks.
    """
    payment = order.get("payment")
    if not isinstance(payment, Mapping):
        payment = {}
    method = payment.get("method", order.get("paymentMethod"))
    status = payment.get("status", order.get("paymentStatus"))
    return is_print_eligible(transition, method, status)
