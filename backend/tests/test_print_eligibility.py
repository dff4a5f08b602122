"""
Tests for the print eligibility rule shared by the emitter and the agent.
"""

import pytest

from shared.print_eligibility import (
    is_counter_settled,
    is_order_print_eligible,
    is_print_eligible,
)


class TestCreatedTransition:
    """created prints only when paid in person at the counter."""

    @pytest.mark.parametrize("method", ["cash", "cod", "CASH", " Cod "])
    @pytest.mark.parametrize("status", ["completed", "paid", "PAID"])
    def test_counter_settled_orders_are_eligible(self, method, status):
        assert is_print_eligible("created", method, status) is True

    @pytest.mark.parametrize(
        "method,status",
        [
            ("upi", "completed"),
            ("card", "paid"),
            ("online", "completed"),
            ("cash", "pending"),
            ("cash", "failed"),
            ("cod", "refunded"),
            (None, "completed"),
            ("cash", None),
        ],
    )
    def test_everything_else_is_not(self, method, status):
        assert is_print_eligible("created", method, status) is False


class TestPaidTransition:
    @pytest.mark.parametrize("method,status", [("upi", "completed"), ("cash", "pending"), (None, None)])
    def test_paid_is_always_eligible(self, method, status):
        assert is_print_eligible("paid", method, status) is True


def test_unknown_transition_is_not_eligible():
    assert is_print_eligible("refunded", "cash", "completed") is False


def test_is_counter_settled():
    assert is_counter_settled("cash", "completed") is True
    assert is_counter_settled("upi", "completed") is False


class TestOrderBody:
    """Same rule read from an order JSON body."""

    def test_payment_object(self):
        order = {"payment": {"method": "cash", "status": "completed"}}
        assert is_order_print_eligible("created", order) is True

    def test_top_level_fallback(self):
        order = {"paymentMethod": "cod", "paymentStatus": "paid"}
        assert is_order_print_eligible("created", order) is True

    def test_missing_payment(self):
        assert is_order_print_eligible("created", {}) is False
        assert is_order_print_eligible("paid", {}) is True

    def test_pending_qr_order(self):
        order = {"payment": {"method": "upi", "status": "pending"}}
        assert is_order_print_eligible("created", order) is False
