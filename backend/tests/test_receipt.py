"""
Tests for receipt rendering.
"""

from datetime import timedelta, timezone

import pytest

from pos_agent.receipt import (
    FOOTER,
    HEADER,
    RULE,
    format_created_at,
    format_item_line,
    format_money,
    item_size,
    order_total,
    render_receipt,
)


@pytest.fixture
def cash_order():
    return {
        "id": 1,
        "orderNumber": "ORD-1",
        "createdAt": "2026-10-18T10:00:00Z",
        "items": [{"productName": "Popcorn", "quantity": 2, "unitPrice": 100.0, "size": None}],
        "pricing": {"subtotal": 200.0, "discount": 0.0, "total": 200.0},
        "payment": {"method": "cash", "status": "completed"},
    }


class TestRenderReceipt:
    def test_cash_order_layout(self, cash_order):
        receipt = render_receipt(cash_order, tz=timezone.utc)

        assert receipt.order_number == "ORD-1"
        assert receipt.to_text().split("\n") == [
            HEADER,
            RULE,
            "Order: ORD-1",
            "Date : 18/10/2026, 10:00:00",
            "",
            "Popcorn x2  ₹100.00",
            RULE,
            "TOTAL: ₹200.00",
            "",
            FOOTER,
        ]

    def test_alignment(self, cash_order):
        lines = render_receipt(cash_order, tz=timezone.utc).lines

        assert [line.align for line in lines] == [
            "center",
            "center",
            "left",
            "left",
            "left",
            "left",
            "left",
            "right",
            "center",
            "center",
        ]

    def test_sized_items(self):
        order = {
            "orderNumber": "ORD-7",
            "items": [
                {"productName": "Cola", "quantity": 1, "unitPrice": 80, "size": "Large"},
                {"productName": "Nachos", "quantity": 1, "unitPrice": 120},
            ],
            "pricing": {"total": 200},
        }

        text = render_receipt(order, tz=timezone.utc).to_text()

        assert "Cola (Large) x1  ₹80.00" in text
        assert "Nachos x1  ₹120.00" in text
        assert "TOTAL: ₹200.00" in text

    def test_is_deterministic(self, cash_order):
        first = render_receipt(cash_order, tz=timezone.utc)
        second = render_receipt(dict(cash_order), tz=timezone.utc)
        assert first == second

    def test_order_id_when_number_missing(self):
        receipt = render_receipt({"id": 55, "items": []}, tz=timezone.utc)
        assert receipt.order_number == "55"
        assert "Date : " in receipt.to_text()

    def test_malformed_items_are_skipped(self):
        text = render_receipt({"orderNumber": "X", "items": ["junk", None]}).to_text()
        assert "TOTAL: ₹0.00" in text


class TestFieldFallbacks:
    def test_name_and_price_fallbacks(self):
        assert format_item_line({"name": "Samosa", "quantity": 3, "price": "15.5"}) == (
            "Samosa x3  ₹15.50"
        )

    def test_integral_float_quantity(self):
        assert format_item_line({"productName": "Tea", "quantity": 2.0, "unitPrice": 10}) == (
            "Tea x2  ₹10.00"
        )

    @pytest.mark.parametrize("price, expected", [(0.125, "₹0.13"), ("2.675", "₹2.68"), (1.004, "₹1.00")])
    def test_price_ties_round_up(self, price, expected):
        assert format_money(price) == expected

    def test_garbage_price_reads_zero(self):
        assert format_item_line({"productName": "Tea", "quantity": 1, "unitPrice": "n/a"}) == (
            "Tea x1  ₹0.00"
        )

    @pytest.mark.parametrize(
        "item, expected",
        [
            ({"originalQuantity": "500 ml", "size": "Large"}, "500 ml"),
            ({"size": "", "productSize": "Medium"}, "Medium"),
            ({"sizeLabel": "Regular"}, "Regular"),
            ({"variant": {"option": "Butter"}}, "Butter"),
            ({"variants": [{"option": "Caramel"}, {"option": "Salted"}]}, "Caramel"),
            ({"variants": []}, None),
            ({}, None),
        ],
    )
    def test_item_size(self, item, expected):
        assert item_size(item) == expected

    def test_total_fallback(self):
        assert str(order_total({"totalAmount": "99.9"})) == "99.90"
        assert str(order_total({"pricing": {"total": 0}, "totalAmount": 10})) == "10.00"


class TestCreatedAt:
    def test_converts_to_zone(self):
        ist = timezone(timedelta(hours=5, minutes=30))
        assert format_created_at("2026-10-18T10:00:00Z", ist) == "18/10/2026, 15:30:00"

    def test_naive_is_utc(self):
        assert format_created_at("2026-10-18T10:00:00", timezone.utc) == "18/10/2026, 10:00:00"

    def test_unparseable_is_printed_raw(self):
        assert format_created_at("yesterday", timezone.utc) == "yesterday"

    def test_missing(self):
        assert format_created_at(None) == ""
