"""
Payment Domain Service.

Payment verification mutates an order's payment sub-state once:
pending -> completed | paid | failed. Reaching completed/paid publishes the
``paid`` transition.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from shared.config.constants import PaymentStatus
from shared.config.logging import get_logger
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import (
    InvalidTransitionError,
    OrderNotFoundError,
    ValidationError,
)
from rest_api.models import Order
from rest_api.services.events.print_events import LifecycleEmitter, get_lifecycle_emitter

logger = get_logger(__name__)

VERIFIABLE_STATUSES = frozenset(
    {PaymentStatus.COMPLETED, PaymentStatus.PAID, PaymentStatus.FAILED}
)


class PaymentService:
    """
    Domain service for payment verification.
    """

    def __init__(self, db: Session, emitter: LifecycleEmitter | None = None):
        self._db = db
        self._emitter = emitter or get_lifecycle_emitter()

    def verify_payment(
        self,
        theater_id: int,
        order_id: int,
        status: str,
        transaction_id: str | None = None,
        actor: dict[str, Any] | None = None,
    ) -> tuple[Order, bool]:
        """
        Record the verified payment outcome.

        Returns:
            (order, changed). ``changed`` is False when the order already had
            this terminal status.

        Raises:
            ValidationError: unknown target status or archived order.
            InvalidTransitionError: the order already reached another terminal status.
        """
        status = status.strip().lower()
        if status not in VERIFIABLE_STATUSES:
            raise ValidationError(
                f"Payment status must be one of {sorted(VERIFIABLE_STATUSES)}",
                order_id=order_id,
                status=status,
            )

        # Find order with lock
        order = self._db.scalar(
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.id == order_id, Order.theater_id == theater_id)
            .with_for_update()
        )
        if order is None:
            raise OrderNotFoundError(order_id, theater_id=theater_id)
        if not order.is_active:
            raise ValidationError("Archived orders cannot be paid", order_id=order_id)

        current = order.payment_status
        if current != PaymentStatus.PENDING:
            return self._already_settled(order, status)

        values: dict[str, Any] = {"payment_status": status}
        if transaction_id:
            values["transaction_id"] = transaction_id
        if status in PaymentStatus.SETTLED:
            values["paid_at"] = datetime.now(timezone.utc)
        if actor:
            values["updated_by_id"] = int(actor["sub"])
            values["updated_by_username"] = actor.get("username")

        # Only a pending row is claimed; a concurrent verification leaves rowcount 0
        result = self._db.execute(
            update(Order)
            .where(
                Order.id == order.id,
                Order.payment_status == PaymentStatus.PENDING,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self._db.rollback()
            self._db.refresh(order)
            return self._already_settled(order, status)

        safe_commit(self._db)
        self._db.refresh(order)
        logger.info(
            "Payment verified",
            theater_id=theater_id,
            order_id=order_id,
            from_status=current,
            to_status=status,
        )

        if status in PaymentStatus.SETTLED:
            self._emitter.order_paid(order)
        return order, True

    def _already_settled(self, order: Order, status: str) -> tuple[Order, bool]:
        if order.payment_status == status:
            logger.info(
                "Payment already recorded",
                theater_id=order.theater_id,
                order_id=order.id,
                status=status,
            )
            return order, False
        raise InvalidTransitionError(
            "order payment",
            order.payment_status,
            status,
            order_id=order.id,
            theater_id=order.theater_id,
        )
