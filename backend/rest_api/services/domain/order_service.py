"""
Order Domain Service.

Creates, reads and archives orders of a theater. Creation hands the committed
order to the lifecycle emitter; print dispatch never affects the outcome.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from shared.config.constants import Limits, PaymentStatus
from shared.config.logging import get_logger
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import NotFoundError, OrderNotFoundError, ValidationError
from shared.utils.schemas import (
    OrderCreateRequest,
    OrderItemOutput,
    OrderOutput,
    PaymentOutput,
    PricingOutput,
)
from rest_api.models import Order, OrderItem, Theater
from rest_api.services.events.print_events import LifecycleEmitter, get_lifecycle_emitter

logger = get_logger(__name__)

ORDER_NUMBER_PREFIX = "ORD-"


def to_cents(amount: Decimal) -> int:
    """Major units to minor units, half-up."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> float:
    return round(cents / 100, 2)


def _aware(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _actor(actor: dict[str, Any] | None) -> tuple[int | None, str | None]:
    if not actor:
        return None, None
    sub = actor.get("sub")
    return (int(sub) if sub is not None else None), actor.get("username")


class OrderService:
    """
    Domain service for Order operations.
    """

    def __init__(self, db: Session, emitter: LifecycleEmitter | None = None):
        self._db = db
        self._emitter = emitter or get_lifecycle_emitter()

    # =========================================================================
    # Commands
    # =========================================================================

    def create_order(
        self,
        theater_id: int,
        body: OrderCreateRequest,
        actor: dict[str, Any] | None = None,
    ) -> Order:
        """
        Persist a new order and publish its ``created`` transition.

        Raises:
            NotFoundError: theater does not exist.
            ValidationError: discount exceeds the subtotal.
        """
        theater = self._db.scalar(
            select(Theater)
            .where(Theater.id == theater_id, Theater.is_active.is_(True))
            .with_for_update()
        )
        if theater is None:
            raise NotFoundError("Theater", theater_id)

        items = [
            OrderItem(
                product_name=item.product_name.strip(),
                quantity=item.quantity,
                unit_price_cents=to_cents(item.unit_price),
                size_label=(item.size or "").strip() or None,
            )
            for item in body.items
        ]
        subtotal = sum(i.quantity * i.unit_price_cents for i in items)
        discount = to_cents(body.discount)
        if discount > subtotal:
            raise ValidationError(
                "Discount cannot exceed the order subtotal",
                theater_id=theater_id,
                subtotal_cents=subtotal,
                discount_cents=discount,
            )

        theater.last_order_seq += 1
        order = Order(
            theater_id=theater_id,
            order_number=f"{ORDER_NUMBER_PREFIX}{theater.last_order_seq}",
            source=body.source,
            customer_name=body.customer_name,
            notes=body.notes,
            subtotal_cents=subtotal,
            discount_cents=discount,
            total_cents=subtotal - discount,
            payment_method=body.payment.method,
            payment_status=body.payment.status,
            transaction_id=body.payment.transaction_id,
            items=items,
        )
        if order.payment_status in PaymentStatus.SETTLED:
            order.paid_at = datetime.now(timezone.utc)
        order.set_created_by(*_actor(actor))

        self._db.add(order)
        safe_commit(self._db)
        self._db.refresh(order)

        logger.info(
            "Order created",
            theater_id=theater_id,
            order_id=order.id,
            order_number=order.order_number,
            source=order.source,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            total_cents=order.total_cents,
        )

        self._emitter.order_created(order)
        return order

    def archive_order(
        self,
        theater_id: int,
        order_id: int,
        actor: dict[str, Any] | None = None,
    ) -> Order:
        """Soft-delete an order. Archiving twice is a no-op."""
        order = self.get_order(theater_id, order_id)
        if not order.is_active:
            return order

        order.soft_delete(*_actor(actor))
        safe_commit(self._db)
        logger.info("Order archived", theater_id=theater_id, order_id=order_id)
        return order

    # =========================================================================
    # Queries
    # =========================================================================

    def get_order(self, theater_id: int, order_id: int) -> Order:
        """
        Tenant-scoped fetch. Archived orders are still returned.

        Raises:
            OrderNotFoundError: no such order in this theater.
        """
        order = self._db.scalar(
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.id == order_id, Order.theater_id == theater_id)
        )
        if order is None:
            raise OrderNotFoundError(order_id, theater_id=theater_id)
        return order

    def list_orders(
        self,
        theater_id: int,
        limit: int = 50,
        include_archived: bool = False,
    ) -> list[Order]:
        """Most recent orders first."""
        limit = max(1, min(limit, Limits.MAX_ORDERS_PAGE))
        stmt = (
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.theater_id == theater_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
        )
        if not include_archived:
            stmt = stmt.where(Order.is_active.is_(True))
        return list(self._db.scalars(stmt).all())

    # =========================================================================
    # Output
    # =========================================================================

    @staticmethod
    def to_output(order: Order) -> OrderOutput:
        return OrderOutput(
            id=order.id,
            theater_id=order.theater_id,
            order_number=order.order_number,
            source=order.source,
            customer_name=order.customer_name,
            created_at=_aware(order.created_at),
            items=[
                OrderItemOutput(
                    product_name=item.product_name,
                    quantity=item.quantity,
                    unit_price=from_cents(item.unit_price_cents),
                    size=item.size_label,
                    total=from_cents(item.total_cents),
                )
                for item in order.items
            ],
            pricing=PricingOutput(
                subtotal=from_cents(order.subtotal_cents),
                discount=from_cents(order.discount_cents),
                total=from_cents(order.total_cents),
            ),
            payment=PaymentOutput(
                method=order.payment_method,
                status=order.payment_status,
                transaction_id=order.transaction_id,
                paid_at=_aware(order.paid_at),
            ),
            archived=not order.is_active,
        )

    @classmethod
    def to_json(cls, order: Order) -> dict[str, Any]:
        return cls.to_output(order).model_dump(by_alias=True, mode="json")
