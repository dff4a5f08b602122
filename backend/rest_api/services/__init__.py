"""
Services module for business logic.

- domain/: Application services (OrderService, PaymentService, PrinterSettingsService)
- events/: Lifecycle emitter publishing print events to the POS stream

Usage:
    from rest_api.services.domain import OrderService
    service = OrderService(db)
    order = service.get_order(theater_id, order_id)
"""
