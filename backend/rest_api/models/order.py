"""
Order Models: Order, OrderItem.

Money is stored in minor units (paise).
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from .base import AuditMixin, Base, BigIntPK

if TYPE_CHECKING:
    from .theater import Theater


class Order(AuditMixin, Base):
    """
    A concession order placed at the POS counter, a kiosk or via QR code.
    Inherits: is_active (False = archived), created_at, ... from AuditMixin.

    Payment sub-state (method/status/transaction_id/paid_at) is written at
    creation and then changed at most once by payment verification.
    """

    __tablename__ = "pos_order"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    theater_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("theater.id"), nullable=False, index=True
    )
    order_number: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[str] = mapped_column(Text, nullable=False, default="pos")  # pos, kiosk, qr_code, online
    customer_name: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    subtotal_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    discount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    payment_method: Mapped[str] = mapped_column(Text, nullable=False)
    payment_status: Mapped[str] = mapped_column(Text, nullable=False, default="pending", index=True)
    transaction_id: Mapped[Optional[str]] = mapped_column(Text)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        UniqueConstraint("theater_id", "order_number", name="uq_order_theater_number"),
        CheckConstraint("total_cents >= 0", name="chk_order_total_non_negative"),
        CheckConstraint("discount_cents >= 0", name="chk_order_discount_non_negative"),
        Index("ix_order_theater_created", "theater_id", "created_at"),
    )

    theater: Mapped["Theater"] = relationship(back_populates="orders")
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    @validates("theater_id")
    def _theater_id_is_immutable(self, key: str, value: int) -> int:
        current = self.__dict__.get("theater_id")
        if current is not None and value != current:
            raise ValueError("Order theater_id cannot be changed")
        return value

    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id}, theater_id={self.theater_id}, "
            f"number='{self.order_number}', payment={self.payment_method}/{self.payment_status})>"
        )


class OrderItem(Base):
    """A line of an order. Product name and price are snapshots taken at order time."""

    __tablename__ = "pos_order_item"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("pos_order.id"), nullable=False, index=True
    )
    product_name: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    size_label: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_order_item_quantity_positive"),
        CheckConstraint("unit_price_cents >= 0", name="chk_order_item_price_non_negative"),
    )

    order: Mapped["Order"] = relationship(back_populates="items")

    @property
    def total_cents(self) -> int:
        return self.quantity * self.unit_price_cents

    def __repr__(self) -> str:
        return f"<OrderItem(id={self.id}, product='{self.product_name}', qty={self.quantity})>"
