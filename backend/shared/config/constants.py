"""
Centralized constants for the backend application and the print agent.

Usage:
    from shared.config.constants import Roles, PaymentStatus, PrintTransition

    if status in PaymentStatus.TERMINAL:
        ...
"""

from typing import Final


# =============================================================================
# User Roles
# =============================================================================


class Roles:
    """User role constants."""

    SUPER_ADMIN: Final[str] = "SUPER_ADMIN"
    THEATER_ADMIN: Final[str] = "THEATER_ADMIN"
    POS_USER: Final[str] = "POS_USER"

    ALL: Final[list[str]] = [SUPER_ADMIN, THEATER_ADMIN, POS_USER]


# Role groups for common access patterns
MANAGEMENT_ROLES: Final[frozenset[str]] = frozenset({Roles.SUPER_ADMIN, Roles.THEATER_ADMIN})


# =============================================================================
# Orders and payments
# =============================================================================


class OrderSource:
    """Where an order was placed."""

    POS: Final[str] = "pos"
    KIOSK: Final[str] = "kiosk"
    QR_CODE: Final[str] = "qr_code"
    ONLINE: Final[str] = "online"

    ALL: Final[list[str]] = [POS, KIOSK, QR_CODE, ONLINE]


class PaymentMethod:
    """Payment method constants. Stored lower-case."""

    CASH: Final[str] = "cash"
    COD: Final[str] = "cod"
    CARD: Final[str] = "card"
    UPI: Final[str] = "upi"
    ONLINE: Final[str] = "online"

    ALL: Final[list[str]] = [CASH, COD, CARD, UPI, ONLINE]
    # Settled at the counter in person
    COUNTER: Final[frozenset[str]] = frozenset({CASH, COD})


class PaymentStatus:
    """Payment sub-state of an order."""

    PENDING: Final[str] = "pending"
    COMPLETED: Final[str] = "completed"
    PAID: Final[str] = "paid"
    FAILED: Final[str] = "failed"
    REFUNDED: Final[str] = "refunded"

    ALL: Final[list[str]] = [PENDING, COMPLETED, PAID, FAILED, REFUNDED]
    # Once reached, never rewritten to pending
    TERMINAL: Final[frozenset[str]] = frozenset({COMPLETED, PAID, FAILED, REFUNDED})
    # Terminal and money received
    SETTLED: Final[frozenset[str]] = frozenset({COMPLETED, PAID})


# =============================================================================
# POS event stream
# =============================================================================


class PrintTransition:
    """Order lifecycle transitions published on the POS stream."""

    CREATED: Final[str] = "created"
    PAID: Final[str] = "paid"

    ALL: Final[frozenset[str]] = frozenset({CREATED, PAID})


class StreamFrameType:
    """Values of the ``type`` field of frames sent on the POS stream."""

    CONNECTED: Final[str] = "connected"
    POS_ORDER: Final[str] = "pos_order"
    KEEPALIVE: Final[str] = "keepalive"


class PrinterDriver:
    """Receipt printer drivers configurable per theater."""

    USB: Final[str] = "usb"
    SYSTEM: Final[str] = "system"

    ALL: Final[frozenset[str]] = frozenset({USB, SYSTEM})


# =============================================================================
# Limits
# =============================================================================


class Limits:
    """Validation limits."""

    MAX_ORDER_ITEMS: Final[int] = 100
    MAX_ITEM_QUANTITY: Final[int] = 999
    MAX_PRODUCT_NAME_LENGTH: Final[int] = 120
    MAX_ORDERS_PAGE: Final[int] = 200
