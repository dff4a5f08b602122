"""
Per-theater receipt printer configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, BigIntPK

if TYPE_CHECKING:
    from .theater import Theater


class PosPrinterSetting(AuditMixin, Base):
    """
    Printer used by the theater's print agent.

    driver "usb": usb_vendor_id/usb_product_id select the device; both
    empty means auto-detect. driver "system": printer_name is the OS
    spooler queue; empty means the default printer.
    """

    __tablename__ = "pos_printer_setting"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    theater_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("theater.id"), nullable=False, unique=True
    )
    driver: Mapped[str] = mapped_column(Text, nullable=False, default="usb")
    usb_vendor_id: Mapped[Optional[int]] = mapped_column(Integer)
    usb_product_id: Mapped[Optional[int]] = mapped_column(Integer)
    printer_name: Mapped[str] = mapped_column(Text, nullable=False, default="")

    theater: Mapped["Theater"] = relationship(back_populates="printer_setting")
