"""
Tests for the per-theater POS printer settings API.
"""


class TestGetPrinterSettings:
    def test_defaults_without_row(self, client, seed_theater, counter_headers):
        response = client.get("/api/settings/pos-printer", headers=counter_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["theaterId"] == seed_theater.id
        assert data["config"] == {
            "driver": "usb",
            "usbVendorId": None,
            "usbProductId": None,
            "printerName": "",
        }

    def test_stored_config(self, client, seed_printer_setting, counter_headers):
        config = client.get("/api/settings/pos-printer", headers=counter_headers).json()["data"]["config"]
        assert config["driver"] == "system"
        assert config["printerName"] == "Counter Printer"

    def test_super_admin_needs_theater_id(self, client, seed_theater, super_headers):
        response = client.get("/api/settings/pos-printer", headers=super_headers)
        assert response.status_code == 400

        response = client.get(f"/api/settings/pos-printer?theaterId={seed_theater.id}", headers=super_headers)
        assert response.status_code == 200

    def test_explicit_other_theater_is_forbidden(self, client, seed_theater, other_theater, counter_headers):
        response = client.get(
            f"/api/settings/pos-printer?theaterId={other_theater.id}", headers=counter_headers
        )
        assert response.status_code == 403


class TestSavePrinterSettings:
    def test_admin_saves_system_printer(self, client, seed_theater, admin_headers, counter_headers):
        response = client.post(
            "/api/settings/pos-printer",
            json={"driver": "system", "printerName": "  EPSON TM-T82  "},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["config"]["printerName"] == "EPSON TM-T82"

        config = client.get("/api/settings/pos-printer", headers=counter_headers).json()["data"]["config"]
        assert config["driver"] == "system"
        assert config["printerName"] == "EPSON TM-T82"

    def test_usb_ids_accept_hex(self, client, seed_theater, admin_headers):
        response = client.post(
            "/api/settings/pos-printer",
            json={"driver": "usb", "usbVendorId": "0x04b8", "usbProductId": "514"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        config = response.json()["data"]["config"]
        assert config["usbVendorId"] == 0x04B8
        assert config["usbProductId"] == 514

    def test_partial_update_keeps_other_fields(self, client, seed_printer_setting, admin_headers):
        response = client.post(
            "/api/settings/pos-printer",
            json={"printerName": "Bar Printer"},
            headers=admin_headers,
        )
        config = response.json()["data"]["config"]
        assert config["driver"] == "system"
        assert config["printerName"] == "Bar Printer"

    def test_vendor_without_product_is_rejected(self, client, seed_theater, admin_headers):
        response = client.post(
            "/api/settings/pos-printer",
            json={"driver": "usb", "usbVendorId": 1208},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_out_of_range_usb_id(self, client, seed_theater, admin_headers):
        response = client.post(
            "/api/settings/pos-printer",
            json={"usbVendorId": 70000, "usbProductId": 1},
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_unknown_driver(self, client, seed_theater, admin_headers):
        response = client.post(
            "/api/settings/pos-printer",
            json={"driver": "bluetooth"},
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_counter_cannot_save(self, client, seed_theater, counter_headers):
        response = client.post(
            "/api/settings/pos-printer",
            json={"driver": "system"},
            headers=counter_headers,
        )
        assert response.status_code == 403
