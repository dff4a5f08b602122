"""
Tenant model: Theater.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, BigIntPK

if TYPE_CHECKING:
    from .order import Order
    from .printer_setting import PosPrinterSetting
    from .user import User


class Theater(AuditMixin, Base):
    """
    A theater: the tenant every order, user and print subscriber belongs to.
    Inherits: is_active, created_at, updated_at, deleted_at, *_by_id/username from AuditMixin.
    """

    __tablename__ = "theater"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    # Last allocated order number; bumped under a row lock by OrderService
    last_order_seq: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    users: Mapped[list["User"]] = relationship(back_populates="theater")
    orders: Mapped[list["Order"]] = relationship(back_populates="theater")
    printer_setting: Mapped["PosPrinterSetting | None"] = relationship(
        back_populates="theater", uselist=False
    )

    def __repr__(self) -> str:
        return f"<Theater(id={self.id}, name='{self.name}', slug='{self.slug}')>"
