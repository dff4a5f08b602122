"""
Tests for OrderService and PaymentService without the HTTP layer.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from rest_api.models import Order
from rest_api.services.domain import OrderService, PaymentService
from rest_api.services.domain.order_service import from_cents, to_cents
from shared.utils.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    OrderNotFoundError,
    ValidationError,
)
from shared.utils.schemas import OrderCreateRequest
from tests.conftest import TestingSessionLocal


def order_request(method="upi", status="pending", **extra):
    return OrderCreateRequest.model_validate(
        {
            "source": "qr_code",
            "items": [{"productName": "Cola", "quantity": 3, "unitPrice": "33.33"}],
            "payment": {"method": method, "status": status},
            **extra,
        }
    )


@pytest.fixture
def emitter():
    return MagicMock()


class TestMoney:
    def test_to_cents_rounds_half_up(self):
        assert to_cents(Decimal("0.005")) == 1
        assert to_cents(Decimal("10.10")) == 1010

    def test_from_cents(self):
        assert from_cents(9999) == 99.99


class TestOrderService:
    def test_create_computes_totals_and_notifies(self, db_session, seed_theater, emitter):
        service = OrderService(db_session, emitter=emitter)

        order = service.create_order(seed_theater.id, order_request())

        assert order.subtotal_cents == 9999
        assert order.total_cents == 9999
        assert order.items[0].total_cents == 9999
        emitter.order_created.assert_called_once_with(order)

    def test_actor_is_recorded(self, db_session, seed_theater, emitter):
        actor = {"sub": "7", "username": "counter"}
        order = OrderService(db_session, emitter=emitter).create_order(
            seed_theater.id, order_request(), actor=actor
        )
        assert order.created_by_id == 7
        assert order.created_by_username == "counter"

    def test_unknown_theater(self, db_session, emitter):
        with pytest.raises(NotFoundError):
            OrderService(db_session, emitter=emitter).create_order(404, order_request())
        emitter.order_created.assert_not_called()

    def test_get_order_is_tenant_scoped(self, db_session, seed_theater, other_theater, emitter):
        service = OrderService(db_session, emitter=emitter)
        order = service.create_order(seed_theater.id, order_request())

        with pytest.raises(OrderNotFoundError):
            service.get_order(other_theater.id, order.id)

    def test_theater_of_an_order_is_immutable(self, db_session, seed_theater, other_theater, emitter):
        order = OrderService(db_session, emitter=emitter).create_order(seed_theater.id, order_request())
        with pytest.raises(ValueError):
            order.theater_id = other_theater.id

    def test_archive_twice_is_a_no_op(self, db_session, seed_theater, emitter):
        service = OrderService(db_session, emitter=emitter)
        order = service.create_order(seed_theater.id, order_request())

        service.archive_order(seed_theater.id, order.id)
        archived = service.archive_order(seed_theater.id, order.id)

        assert archived.is_active is False
        assert archived.deleted_at is not None


class TestPaymentService:
    def test_pending_to_completed_publishes_paid(self, db_session, seed_theater, emitter):
        order = OrderService(db_session, emitter=emitter).create_order(seed_theater.id, order_request())

        updated, changed = PaymentService(db_session, emitter=emitter).verify_payment(
            seed_theater.id, order.id, "completed", transaction_id="tx-1"
        )

        assert changed is True
        assert updated.payment_status == "completed"
        assert updated.transaction_id == "tx-1"
        assert updated.paid_at is not None
        emitter.order_paid.assert_called_once_with(updated)

    def test_failed_does_not_publish(self, db_session, seed_theater, emitter):
        order = OrderService(db_session, emitter=emitter).create_order(seed_theater.id, order_request())

        updated, changed = PaymentService(db_session, emitter=emitter).verify_payment(
            seed_theater.id, order.id, "failed"
        )

        assert changed is True
        assert updated.paid_at is None
        emitter.order_paid.assert_not_called()

    def test_same_terminal_status_is_idempotent(self, db_session, seed_theater, emitter):
        order = OrderService(db_session, emitter=emitter).create_order(seed_theater.id, order_request())
        payments = PaymentService(db_session, emitter=emitter)

        payments.verify_payment(seed_theater.id, order.id, "paid")
        _, changed = payments.verify_payment(seed_theater.id, order.id, "PAID")

        assert changed is False
        assert emitter.order_paid.call_count == 1

    def test_terminal_status_never_changes(self, db_session, seed_theater, emitter):
        order = OrderService(db_session, emitter=emitter).create_order(
            seed_theater.id, order_request("cash", "completed")
        )

        with pytest.raises(InvalidTransitionError):
            PaymentService(db_session, emitter=emitter).verify_payment(
                seed_theater.id, order.id, "failed"
            )

    def test_pending_is_rejected(self, db_session, seed_theater, emitter):
        order = OrderService(db_session, emitter=emitter).create_order(seed_theater.id, order_request())
        with pytest.raises(ValidationError):
            PaymentService(db_session, emitter=emitter).verify_payment(seed_theater.id, order.id, "pending")

    def test_archived_order_cannot_be_paid(self, db_session, seed_theater, emitter):
        service = OrderService(db_session, emitter=emitter)
        order = service.create_order(seed_theater.id, order_request())
        service.archive_order(seed_theater.id, order.id)

        with pytest.raises(ValidationError):
            PaymentService(db_session, emitter=emitter).verify_payment(seed_theater.id, order.id, "paid")


class TestConcurrentVerification:
    """Two sessions race on the same pending order."""

    @pytest.fixture
    def second_session(self, db_session):
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    def _pending_order_seen_by_both(self, db_session, second_session, theater_id, emitter):
        order = OrderService(db_session, emitter=emitter).create_order(theater_id, order_request())
        stale = second_session.get(Order, order.id)
        assert stale.payment_status == "pending"
        return order

    def test_late_verification_cannot_rewrite_terminal_status(
        self, db_session, second_session, seed_theater, emitter
    ):
        order = self._pending_order_seen_by_both(db_session, second_session, seed_theater.id, emitter)
        late_emitter = MagicMock()

        PaymentService(db_session, emitter=emitter).verify_payment(seed_theater.id, order.id, "completed")
        with pytest.raises(InvalidTransitionError):
            PaymentService(second_session, emitter=late_emitter).verify_payment(
                seed_theater.id, order.id, "failed"
            )

        db_session.expire_all()
        assert db_session.get(Order, order.id).payment_status == "completed"
        late_emitter.order_paid.assert_not_called()

    def test_late_duplicate_is_reported_unchanged(
        self, db_session, second_session, seed_theater, emitter
    ):
        order = self._pending_order_seen_by_both(db_session, second_session, seed_theater.id, emitter)
        late_emitter = MagicMock()

        PaymentService(db_session, emitter=emitter).verify_payment(seed_theater.id, order.id, "paid")
        updated, changed = PaymentService(second_session, emitter=late_emitter).verify_payment(
            seed_theater.id, order.id, "paid"
        )

        assert changed is False
        assert updated.payment_status == "paid"
        emitter.order_paid.assert_called_once()
        late_emitter.order_paid.assert_not_called()
