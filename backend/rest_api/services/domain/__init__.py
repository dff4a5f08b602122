"""
Domain Services - application layer.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Model (entity)

Usage:
    from rest_api.services.domain import OrderService

    service = OrderService(db)
    order = service.create_order(theater_id, body, actor=ctx)
"""

from .order_service import OrderService
from .payment_service import PaymentService
from .printer_settings_service import PrinterSettingsService
from .theater_service import TheaterService

__all__ = [
    "OrderService",
    "PaymentService",
    "PrinterSettingsService",
    "TheaterService",
]
