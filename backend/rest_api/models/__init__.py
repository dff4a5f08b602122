"""
SQLAlchemy ORM Models Package.

- base: Base class and AuditMixin
- theater: Theater (tenant)
- user: User
- order: Order, OrderItem
- printer_setting: PosPrinterSetting
"""

from .base import Base, AuditMixin
from .theater import Theater
from .user import User
from .order import Order, OrderItem
from .printer_setting import PosPrinterSetting

__all__ = [
    "Base",
    "AuditMixin",
    "Theater",
    "User",
    "Order",
    "OrderItem",
    "PosPrinterSetting",
]
