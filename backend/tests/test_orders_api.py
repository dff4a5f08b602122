"""
Tests for the order API and the print events it publishes.
"""

from pos_stream.frames import PrintEvent


def create_order(client, theater_id, payload, headers):
    response = client.post(f"/api/orders/theater/{theater_id}", json=payload, headers=headers)
    assert response.status_code == 201, response.json()
    return response.json()["data"]


class TestCreateOrder:
    def test_cash_order_is_created_and_published(
        self, client, recorder, seed_theater, counter_headers, cash_order_payload
    ):
        """Cash POS order settled at the counter prints immediately."""
        order = create_order(client, seed_theater.id, cash_order_payload, counter_headers)

        assert order["orderNumber"] == "ORD-1"
        assert order["theaterId"] == seed_theater.id
        assert order["items"] == [
            {"productName": "Popcorn", "quantity": 2, "unitPrice": 100.0, "size": None, "total": 200.0}
        ]
        assert order["pricing"] == {"subtotal": 200.0, "discount": 0.0, "total": 200.0}
        assert order["payment"]["method"] == "cash"
        assert order["payment"]["status"] == "completed"
        assert order["payment"]["paidAt"] is not None
        assert order["archived"] is False

        assert recorder.events == [PrintEvent.pos_order(seed_theater.id, "created", order["id"])]

    def test_pending_qr_order_is_not_published(
        self, client, recorder, seed_theater, counter_headers, qr_order_payload
    ):
        order = create_order(client, seed_theater.id, qr_order_payload, counter_headers)

        assert order["payment"]["status"] == "pending"
        assert order["payment"]["paidAt"] is None
        assert order["customerName"] == "Seat F12"
        assert order["items"][0]["size"] == "Large"
        assert recorder.events == []

    def test_order_numbers_are_sequential_per_theater(
        self, client, event_bus, seed_theater, other_theater, counter_headers, super_headers, cash_order_payload
    ):
        first = create_order(client, seed_theater.id, cash_order_payload, counter_headers)
        second = create_order(client, seed_theater.id, cash_order_payload, counter_headers)
        elsewhere = create_order(client, other_theater.id, cash_order_payload, super_headers)

        assert first["orderNumber"] == "ORD-1"
        assert second["orderNumber"] == "ORD-2"
        assert elsewhere["orderNumber"] == "ORD-1"

    def test_discount_is_applied(self, client, event_bus, seed_theater, counter_headers, cash_order_payload):
        payload = {**cash_order_payload, "discount": "25.50"}
        order = create_order(client, seed_theater.id, payload, counter_headers)
        assert order["pricing"] == {"subtotal": 200.0, "discount": 25.5, "total": 174.5}

    def test_discount_above_subtotal_is_rejected(
        self, client, event_bus, seed_theater, counter_headers, cash_order_payload
    ):
        payload = {**cash_order_payload, "discount": 500}
        response = client.post(f"/api/orders/theater/{seed_theater.id}", json=payload, headers=counter_headers)
        assert response.status_code == 400

    def test_unknown_payment_method_is_rejected(
        self, client, event_bus, seed_theater, counter_headers, cash_order_payload
    ):
        payload = {**cash_order_payload, "payment": {"method": "bitcoin", "status": "completed"}}
        response = client.post(f"/api/orders/theater/{seed_theater.id}", json=payload, headers=counter_headers)
        assert response.status_code == 422

    def test_empty_order_is_rejected(self, client, event_bus, seed_theater, counter_headers, cash_order_payload):
        payload = {**cash_order_payload, "items": []}
        response = client.post(f"/api/orders/theater/{seed_theater.id}", json=payload, headers=counter_headers)
        assert response.status_code == 422

    def test_other_theater_token_is_forbidden(
        self, client, event_bus, seed_theater, other_headers, cash_order_payload
    ):
        response = client.post(
            f"/api/orders/theater/{seed_theater.id}", json=cash_order_payload, headers=other_headers
        )
        assert response.status_code == 403

    def test_requires_authentication(self, client, event_bus, seed_theater, cash_order_payload):
        response = client.post(f"/api/orders/theater/{seed_theater.id}", json=cash_order_payload)
        assert response.status_code == 401

    def test_unknown_theater(self, client, event_bus, seed_super_admin, super_headers, cash_order_payload):
        response = client.post("/api/orders/theater/999", json=cash_order_payload, headers=super_headers)
        assert response.status_code == 404

    def test_print_failure_does_not_fail_creation(
        self, client, event_bus, monkeypatch, seed_theater, counter_headers, cash_order_payload
    ):
        def broken_broadcast(theater_id, event):
            raise RuntimeError("bus is down")

        monkeypatch.setattr(event_bus, "broadcast", broken_broadcast)

        order = create_order(client, seed_theater.id, cash_order_payload, counter_headers)
        assert order["orderNumber"] == "ORD-1"


class TestFetchOrders:
    def test_get_order(self, client, event_bus, seed_theater, counter_headers, cash_order_payload):
        created = create_order(client, seed_theater.id, cash_order_payload, counter_headers)

        response = client.get(f"/api/orders/theater/{seed_theater.id}/{created['id']}", headers=counter_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"] == created

    def test_order_of_another_theater_is_not_found(
        self, client, event_bus, seed_theater, other_theater, counter_headers, super_headers, cash_order_payload
    ):
        created = create_order(client, seed_theater.id, cash_order_payload, counter_headers)

        response = client.get(f"/api/orders/theater/{other_theater.id}/{created['id']}", headers=super_headers)

        assert response.status_code == 404

    def test_cross_theater_fetch_is_forbidden(
        self, client, event_bus, seed_theater, counter_headers, other_headers, cash_order_payload
    ):
        created = create_order(client, seed_theater.id, cash_order_payload, counter_headers)

        response = client.get(f"/api/orders/theater/{seed_theater.id}/{created['id']}", headers=other_headers)

        assert response.status_code == 403

    def test_list_newest_first(self, client, event_bus, seed_theater, counter_headers, cash_order_payload):
        for _ in range(3):
            create_order(client, seed_theater.id, cash_order_payload, counter_headers)

        response = client.get(f"/api/orders/theater/{seed_theater.id}?limit=2", headers=counter_headers)

        numbers = [o["orderNumber"] for o in response.json()["data"]]
        assert numbers == ["ORD-3", "ORD-2"]


class TestPaymentVerification:
    def test_qr_order_prints_once_paid(
        self, client, recorder, seed_theater, counter_headers, qr_order_payload
    ):
        """QR order: nothing on creation, a paid event after verification."""
        order = create_order(client, seed_theater.id, qr_order_payload, counter_headers)
        assert recorder.events == []

        response = client.post(
            f"/api/orders/theater/{seed_theater.id}/{order['id']}/payment",
            json={"status": "completed", "transactionId": "upi-123"},
            headers=counter_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["changed"] is True
        assert body["data"]["payment"]["status"] == "completed"
        assert body["data"]["payment"]["transactionId"] == "upi-123"
        assert body["data"]["payment"]["paidAt"] is not None
        assert recorder.events == [PrintEvent.pos_order(seed_theater.id, "paid", order["id"])]

    def test_repeated_verification_is_a_no_op(
        self, client, recorder, seed_theater, counter_headers, qr_order_payload
    ):
        order = create_order(client, seed_theater.id, qr_order_payload, counter_headers)
        url = f"/api/orders/theater/{seed_theater.id}/{order['id']}/payment"

        client.post(url, json={"status": "paid"}, headers=counter_headers)
        response = client.post(url, json={"status": "paid"}, headers=counter_headers)

        assert response.status_code == 200
        assert response.json()["changed"] is False
        assert len(recorder.events) == 1

    def test_failed_payment_does_not_print(
        self, client, recorder, seed_theater, counter_headers, qr_order_payload
    ):
        order = create_order(client, seed_theater.id, qr_order_payload, counter_headers)
        url = f"/api/orders/theater/{seed_theater.id}/{order['id']}/payment"

        response = client.post(url, json={"status": "failed"}, headers=counter_headers)

        assert response.json()["data"]["payment"]["status"] == "failed"
        assert recorder.events == []

    def test_terminal_status_cannot_change(
        self, client, event_bus, seed_theater, counter_headers, qr_order_payload
    ):
        order = create_order(client, seed_theater.id, qr_order_payload, counter_headers)
        url = f"/api/orders/theater/{seed_theater.id}/{order['id']}/payment"
        client.post(url, json={"status": "failed"}, headers=counter_headers)

        response = client.post(url, json={"status": "completed"}, headers=counter_headers)

        assert response.status_code == 400

    def test_pending_is_not_a_verifiable_status(
        self, client, event_bus, seed_theater, counter_headers, qr_order_payload
    ):
        order = create_order(client, seed_theater.id, qr_order_payload, counter_headers)
        response = client.post(
            f"/api/orders/theater/{seed_theater.id}/{order['id']}/payment",
            json={"status": "pending"},
            headers=counter_headers,
        )
        assert response.status_code == 422


class TestArchive:
    def test_admin_archives_order(
        self, client, event_bus, seed_theater, admin_headers, counter_headers, cash_order_payload
    ):
        order = create_order(client, seed_theater.id, cash_order_payload, counter_headers)

        response = client.post(
            f"/api/orders/theater/{seed_theater.id}/{order['id']}/archive", headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["archived"] is True

        listed = client.get(f"/api/orders/theater/{seed_theater.id}", headers=counter_headers).json()["data"]
        assert listed == []
        with_archived = client.get(
            f"/api/orders/theater/{seed_theater.id}?includeArchived=true", headers=counter_headers
        ).json()["data"]
        assert [o["id"] for o in with_archived] == [order["id"]]

        # Archived orders stay fetchable for reprints
        fetched = client.get(f"/api/orders/theater/{seed_theater.id}/{order['id']}", headers=counter_headers)
        assert fetched.status_code == 200

    def test_counter_cannot_archive(
        self, client, event_bus, seed_theater, counter_headers, cash_order_payload
    ):
        order = create_order(client, seed_theater.id, cash_order_payload, counter_headers)
        response = client.post(
            f"/api/orders/theater/{seed_theater.id}/{order['id']}/archive", headers=counter_headers
        )
        assert response.status_code == 403
