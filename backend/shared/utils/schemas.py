"""
Shared Pydantic schemas used across the application.

Wire JSON is camelCase; Python attributes stay snake_case. Money crosses the
wire in major units (rupees) and is stored in minor units (paise).
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from shared.config.constants import Limits, OrderSource, PaymentMethod, PaymentStatus


# =============================================================================
# Common Types
# =============================================================================

Role = Literal["SUPER_ADMIN", "THEATER_ADMIN", "POS_USER"]
PrinterDriverName = Literal["usb", "system"]
VerifiedPaymentStatus = Literal["completed", "paid", "failed"]


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys, accepting either form on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# Authentication Schemas
# =============================================================================


class LoginRequest(BaseModel):
    """Login request body."""

    username: str = Field(min_length=1, max_length=120)
    password: str = Field(min_length=1, max_length=200)


class UserInfo(CamelModel):
    """User information included in auth responses."""

    id: int
    username: str
    role: Role
    theater_id: int | None = None


class LoginResponse(CamelModel):
    """Login response with JWT token."""

    success: bool = True
    token: str
    token_type: str = "Bearer"
    expires_in: int  # seconds
    user: UserInfo


class TheaterOutput(CamelModel):
    id: int
    name: str
    slug: str


# =============================================================================
# Order Schemas
# =============================================================================


class OrderItemInput(CamelModel):
    """A line of a new order."""

    product_name: str = Field(min_length=1, max_length=Limits.MAX_PRODUCT_NAME_LENGTH)
    quantity: int = Field(ge=1, le=Limits.MAX_ITEM_QUANTITY)
    unit_price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    size: str | None = Field(default=None, max_length=60)


class PaymentInput(CamelModel):
    """Payment sub-record supplied at order creation."""

    method: str
    status: str = PaymentStatus.PENDING
    transaction_id: str | None = Field(default=None, max_length=120)

    @field_validator("method")
    @classmethod
    def _known_method(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in PaymentMethod.ALL:
            raise ValueError(f"method must be one of {PaymentMethod.ALL}")
        return v

    @field_validator("status")
    @classmethod
    def _creation_status(cls, v: str) -> str:
        v = v.strip().lower()
        allowed = (PaymentStatus.PENDING, PaymentStatus.COMPLETED, PaymentStatus.PAID)
        if v not in allowed:
            raise ValueError(f"status at creation must be one of {list(allowed)}")
        return v


class OrderCreateRequest(CamelModel):
    """Body of POST /api/orders/theater/{theaterId}."""

    source: str = OrderSource.POS
    items: list[OrderItemInput] = Field(min_length=1, max_length=Limits.MAX_ORDER_ITEMS)
    payment: PaymentInput
    discount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    customer_name: str | None = Field(default=None, max_length=120)
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("source")
    @classmethod
    def _known_source(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in OrderSource.ALL:
            raise ValueError(f"source must be one of {OrderSource.ALL}")
        return v


class PaymentVerifyRequest(CamelModel):
    """Outcome reported by payment verification."""

    status: VerifiedPaymentStatus
    transaction_id: str | None = Field(default=None, max_length=120)


class OrderItemOutput(CamelModel):
    product_name: str
    quantity: int
    unit_price: float
    size: str | None = None
    total: float


class PricingOutput(CamelModel):
    subtotal: float
    discount: float
    total: float


class PaymentOutput(CamelModel):
    method: str
    status: str
    transaction_id: str | None = None
    paid_at: datetime | None = None


class OrderOutput(CamelModel):
    """Order JSON returned by the order API and fetched by print agents."""

    id: int
    theater_id: int
    order_number: str
    source: str
    customer_name: str | None = None
    created_at: datetime
    items: list[OrderItemOutput]
    pricing: PricingOutput
    payment: PaymentOutput
    archived: bool = False


# =============================================================================
# Printer Settings Schemas
# =============================================================================


def _parse_usb_id(v):
    """Accept 1208, "1208" or "0x04b8". Empty means auto-detect."""
    if v is None or v == "":
        return None
    if isinstance(v, bool):
        raise ValueError("USB id must be an integer")
    if isinstance(v, int):
        parsed = v
    else:
        text = str(v).strip().lower()
        parsed = int(text, 16) if text.startswith("0x") else int(text)
    if not 0 <= parsed <= 0xFFFF:
        raise ValueError("USB id must be between 0x0000 and 0xFFFF")
    return parsed


class PrinterConfig(CamelModel):
    """Per-theater printer configuration as seen by the print agent."""

    driver: PrinterDriverName = "usb"
    usb_vendor_id: int | None = None
    usb_product_id: int | None = None
    printer_name: str = ""

    @field_validator("usb_vendor_id", "usb_product_id", mode="before")
    @classmethod
    def _usb_id(cls, v):
        return _parse_usb_id(v)

    @field_validator("printer_name", mode="before")
    @classmethod
    def _printer_name(cls, v):
        return "" if v is None else str(v).strip()


class PrinterConfigUpdate(CamelModel):
    """Partial update; omitted fields keep their stored value."""

    driver: PrinterDriverName | None = None
    usb_vendor_id: int | None = None
    usb_product_id: int | None = None
    printer_name: str | None = Field(default=None, max_length=200)

    @field_validator("usb_vendor_id", "usb_product_id", mode="before")
    @classmethod
    def _usb_id(cls, v):
        return _parse_usb_id(v)
