"""
Receipt rendering.

``render_receipt`` turns an order JSON body (as returned by the order fetch
endpoint) into a ``Receipt``: an ordered list of lines, each with the
alignment the ESC/POS driver applies. ``Receipt.to_text()`` is the plain-text
layout handed to the system spooler:

    YQ PAY - THEATER POS
    ---------------------------
    Order: ORD-1
    Date : 18/10/2026, 15:30:00

    Popcorn (Large) x2  ₹100.00
    ---------------------------
    TOTAL: ₹200.00

    Thank you!

Rendering is a pure function of the order body and the time zone.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Final, Literal

HEADER: Final[str] = "YQ PAY - THEATER POS"
RULE: Final[str] = "-" * 27
FOOTER: Final[str] = "Thank you!"
CURRENCY: Final[str] = "₹"
DATE_FORMAT: Final[str] = "%d/%m/%Y, %H:%M:%S"

Align = Literal["center", "left", "right"]

# First non-empty wins
_SIZE_KEYS: Final[tuple[str, ...]] = (
    "originalQuantity",
    "size",
    "productSize",
    "sizeLabel",
)


@dataclass(frozen=True, slots=True)
class ReceiptLine:
    text: str
    align: Align = "left"


@dataclass(frozen=True, slots=True)
class Receipt:
    """Rendered receipt of one order."""

    order_number: str
    lines: tuple[ReceiptLine, ...] = field(default_factory=tuple)

    def to_text(self) -> str:
        return "\n".join(line.text for line in self.lines)


def _truthy(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (int, float, Decimal)):
        return value != 0
    return bool(value)


def _first(*values: Any) -> Any:
    for value in values:
        if _truthy(value):
            return value
    return None


def _money(value: Any) -> Decimal:
    """Parse 100, 100.5 or "100.50" into a 2dp Decimal. Garbage reads as zero."""
    if value is None or isinstance(value, bool):
        return Decimal("0.00")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return Decimal("0.00")
    if not amount.is_finite():
        return Decimal("0.00")
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def format_money(value: Any) -> str:
    return f"{CURRENCY}{_money(value):.2f}"


def _quantity(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if value is None:
        return ""
    return str(value)


def item_size(item: Mapping[str, Any]) -> str | None:
    """Size or variant label of a line item, if any."""
    candidates = [item.get(key) for key in _SIZE_KEYS]

    variant = item.get("variant")
    if isinstance(variant, Mapping):
        candidates.append(variant.get("option"))

    variants = item.get("variants")
    if isinstance(variants, list) and variants and isinstance(variants[0], Mapping):
        candidates.append(variants[0].get("option"))

    size = _first(*candidates)
    return str(size).strip() if size is not None else None


def format_item_line(item: Mapping[str, Any]) -> str:
    name = _first(item.get("productName"), item.get("name"))
    name = "" if name is None else str(name)
    size = item_size(item)
    if size:
        name = f"{name} ({size})"
    price = _first(item.get("unitPrice"), item.get("price"))
    return f"{name} x{_quantity(item.get('quantity'))}  {format_money(price)}"


def order_total(order: Mapping[str, Any]) -> Decimal:
    pricing = order.get("pricing")
    pricing_total = pricing.get("total") if isinstance(pricing, Mapping) else None
    return _money(_first(pricing_total, order.get("totalAmount")))


def format_created_at(value: Any, tz: tzinfo | None = None) -> str:
    """
    Local date/time of ``createdAt``. Naive timestamps are UTC, as stored by
    the backend. Unparseable values are printed as received.
    """
    if value is None or value == "":
        return ""
    if isinstance(value, datetime):
        created = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            created = datetime.fromisoformat(text)
        except ValueError:
            return str(value)
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created.astimezone(tz).strftime(DATE_FORMAT)


def render_receipt(order: Mapping[str, Any], tz: tzinfo | None = None) -> Receipt:
    """
    Render an order body.

    Args:
        order: Order JSON (camelCase keys).
        tz: Time zone for the date line; None uses the machine's local zone.
    """
    order_number = str(order.get("orderNumber") or order.get("id") or "")

    lines: list[ReceiptLine] = [
        ReceiptLine(HEADER, "center"),
        ReceiptLine(RULE, "center"),
        ReceiptLine(f"Order: {order_number}"),
        ReceiptLine(f"Date : {format_created_at(order.get('createdAt'), tz)}"),
        ReceiptLine(""),
    ]

    items = order.get("items")
    if isinstance(items, list):
        lines.extend(
            ReceiptLine(format_item_line(item)) for item in items if isinstance(item, Mapping)
        )

    lines.extend(
        [
            ReceiptLine(RULE),
            ReceiptLine(f"TOTAL: {format_money(order_total(order))}", "right"),
            ReceiptLine("", "center"),
            ReceiptLine(FOOTER, "center"),
        ]
    )

    return Receipt(order_number=order_number, lines=tuple(lines))
