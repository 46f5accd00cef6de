"""HTTP-level tests for the invoice, hold and cashbook endpoints."""
from __future__ import annotations

from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from pos_backend.app.models.item import Item
from pos_backend.app.models.user import User


def _invoice_body(item: Item, **overrides) -> dict:
    body = {
        "invoiceNumber": "INV-0001",
        "date": "2026-10-19",
        "customerName": "Unknown",
        "items": [
            {"itemId": item.id, "qty": 1, "market_price": 100, "selling_price": 90},
            {"item_id": item.id, "quantity": 1, "marketPrice": 100, "sellingPrice": 90},
        ],
        "cashPayment": 200,
        "cardPayment": 0,
        "cardInfo": "",
        "userName": "ignored",
        "status": "completed",
    }
    body.update(overrides)
    return body


class TestAuth:
    def test_login_returns_token(self, client: TestClient, cashier_user: User) -> None:
        resp = client.post(
            "/api/v1/auth/login/access-token",
            data={"username": "cashier1", "password": "pass"},
        )
        assert resp.status_code == 200
        assert resp.json()["token_type"] == "bearer"

    def test_bad_password(self, client: TestClient, cashier_user: User) -> None:
        resp = client.post(
            "/api/v1/auth/login/access-token",
            data={"username": "cashier1", "password": "nope"},
        )
        assert resp.status_code == 401

    def test_invoice_requires_token(self, client: TestClient, item_a: Item) -> None:
        resp = client.post("/api/v1/invoices", json=_invoice_body(item_a))
        assert resp.status_code == 401


class TestInvoiceEndpoints:
    def test_create(self, client: TestClient, cashier_headers: dict, item_a: Item) -> None:
        resp = client.post("/api/v1/invoices", json=_invoice_body(item_a), headers=cashier_headers)
        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert isinstance(body["invoiceId"], int)
        assert body["warnings"] == []
        [snapshot] = body["updatedItems"]
        assert snapshot["id"] == item_a.id
        assert snapshot["item_name"] == "USB Cable"
        assert Decimal(snapshot["qty"]) == Decimal("8")

    def test_missing_date(self, client: TestClient, cashier_headers: dict, item_a: Item) -> None:
        resp = client.post(
            "/api/v1/invoices", json=_invoice_body(item_a, date=None), headers=cashier_headers
        )
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Missing required fields (date, items)."}

    def test_missing_items(self, client: TestClient, cashier_headers: dict, item_a: Item) -> None:
        body = _invoice_body(item_a)
        del body["items"]
        resp = client.post("/api/v1/invoices", json=body, headers=cashier_headers)
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_underpaid(self, client: TestClient, cashier_headers: dict, item_a: Item) -> None:
        resp = client.post(
            "/api/v1/invoices", json=_invoice_body(item_a, cashPayment=50), headers=cashier_headers
        )
        assert resp.status_code == 400
        assert "does not cover" in resp.json()["error"]

    def test_malformed_body(self, client: TestClient, cashier_headers: dict, item_a: Item) -> None:
        resp = client.post(
            "/api/v1/invoices",
            json=_invoice_body(item_a, cashPayment="lots"),
            headers=cashier_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_stock_warning_surfaces(self, client: TestClient, cashier_headers: dict) -> None:
        body = {
            "date": "2026-10-19",
            "items": [{"itemId": 999, "qty": 1, "market_price": 10}],
            "cashPayment": 10,
        }
        resp = client.post("/api/v1/invoices", json=body, headers=cashier_headers)
        assert resp.status_code == 201
        assert [w["kind"] for w in resp.json()["warnings"]] == ["stock"]

    def test_get_and_update(
        self, client: TestClient, cashier_headers: dict, item_a: Item, db: Session
    ) -> None:
        created = client.post(
            "/api/v1/invoices", json=_invoice_body(item_a), headers=cashier_headers
        ).json()
        invoice_id = created["invoiceId"]

        update = _invoice_body(
            item_a,
            items=[{"itemId": item_a.id, "qty": 3, "market_price": 100, "selling_price": 90}],
            cashPayment=300,
        )
        resp = client.put(f"/api/v1/invoices/{invoice_id}", json=update, headers=cashier_headers)
        assert resp.status_code == 200
        assert Decimal(resp.json()["updatedItems"][0]["qty"]) == Decimal("7")

        resp = client.get(f"/api/v1/invoices/{invoice_id}", headers=cashier_headers)
        assert resp.status_code == 200
        loaded = resp.json()
        assert loaded["invoice"]["user_name"] == "cashier1"
        assert Decimal(loaded["invoice"]["net_total"]) == Decimal("270")
        assert len(loaded["items"]) == 1
        assert loaded["items"][0]["item_barcode"] == "4790001"

    def test_direct_reads_between_requests(
        self, client: TestClient, cashier_headers: dict, item_a: Item, db: Session
    ) -> None:
        first = client.post("/api/v1/invoices", json=_invoice_body(item_a), headers=cashier_headers)
        assert first.status_code == 201
        db.refresh(item_a)
        assert item_a.qty == Decimal("8")

        second = client.post(
            "/api/v1/invoices", json=_invoice_body(item_a), headers=cashier_headers
        )
        assert second.status_code == 201
        db.refresh(item_a)
        assert item_a.qty == Decimal("6")

    def test_stale_customer_id_still_sells(
        self, client: TestClient, cashier_headers: dict, item_a: Item
    ) -> None:
        resp = client.post(
            "/api/v1/invoices",
            json=_invoice_body(item_a, customerId=9999, customerName="Gone Customer"),
            headers=cashier_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["success"] is True

    def test_get_unknown(self, client: TestClient, cashier_headers: dict) -> None:
        resp = client.get("/api/v1/invoices/123", headers=cashier_headers)
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "error": "Invoice 123 not found"}


class TestHoldEndpoints:
    def test_hold_lifecycle(self, client: TestClient, cashier_headers: dict, item_a: Item) -> None:
        body = _invoice_body(item_a, remark="back in 5")
        resp = client.post("/api/v1/holds", json=body, headers=cashier_headers)
        assert resp.status_code == 201
        hold_id = resp.json()["holdId"]

        listed = client.get("/api/v1/holds", headers=cashier_headers).json()
        assert [h["id"] for h in listed["holds"]] == [hold_id]
        assert listed["holds"][0]["remark"] == "back in 5"

        loaded = client.get(f"/api/v1/holds/{hold_id}", headers=cashier_headers).json()
        assert len(loaded["items"]) == 2

        resp = client.post(
            f"/api/v1/holds/{hold_id}/convert",
            json={"invoiceNumber": "INV-0099"},
            headers=cashier_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["success"] is True

        resp = client.get(f"/api/v1/holds/{hold_id}", headers=cashier_headers)
        assert resp.status_code == 404

    def test_convert_without_body(
        self, client: TestClient, cashier_headers: dict, item_a: Item
    ) -> None:
        hold_id = client.post(
            "/api/v1/holds", json=_invoice_body(item_a), headers=cashier_headers
        ).json()["holdId"]
        resp = client.post(f"/api/v1/holds/{hold_id}/convert", headers=cashier_headers)
        assert resp.status_code == 200

    def test_delete(self, client: TestClient, cashier_headers: dict, item_a: Item) -> None:
        hold_id = client.post(
            "/api/v1/holds", json=_invoice_body(item_a), headers=cashier_headers
        ).json()["holdId"]
        assert client.delete(f"/api/v1/holds/{hold_id}", headers=cashier_headers).json() == {
            "success": True
        }
        assert client.delete(f"/api/v1/holds/{hold_id}", headers=cashier_headers).status_code == 404


class TestCashbookEndpoints:
    def test_invoice_posts_to_cashbook(
        self, client: TestClient, cashier_headers: dict, item_a: Item
    ) -> None:
        client.post("/api/v1/invoices", json=_invoice_body(item_a), headers=cashier_headers)
        book = client.get("/api/v1/cashbook", headers=cashier_headers).json()
        assert len(book["data"]) == 1
        assert Decimal(book["totals"]["cash"]) == Decimal("180")

    def test_manual_entry(self, client: TestClient, cashier_headers: dict) -> None:
        resp = client.post(
            "/api/v1/cashbook",
            json={"remark": "opening float", "cash": 500},
            headers=cashier_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["data"][0]["user"] == "cashier1"

    def test_clear_needs_password(
        self, client: TestClient, cashier_headers: dict, cashier_user: User
    ) -> None:
        client.post("/api/v1/cashbook", json={"cash": 5}, headers=cashier_headers)
        resp = client.post(
            "/api/v1/cashbook/clear",
            json={"username": "cashier1", "password": "wrong"},
            headers=cashier_headers,
        )
        assert resp.status_code == 401
        assert resp.json() == {"success": False, "error": "Invalid password"}

        resp = client.post(
            "/api/v1/cashbook/clear",
            json={"username": "nobody", "password": "pass"},
            headers=cashier_headers,
        )
        assert resp.status_code == 401
        assert resp.json() == {"success": False, "error": "Invalid user"}

        resp = client.post(
            "/api/v1/cashbook/clear",
            json={"username": "cashier1", "password": "pass"},
            headers=cashier_headers,
        )
        body = resp.json()
        assert body["removed"] == 1
        assert body["remaining"] == 0
        assert body["data"] == []
