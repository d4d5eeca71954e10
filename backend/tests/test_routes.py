# Overview: HTTP-level coverage for the JSON API (status codes and error bodies).

import unittest

from shopledger import create_app
from shopledger.extensions import db
from shopledger.services.setup_service import seed_reference_data


class TestHealth:
    def test_ok_when_seeded(self, client, reference_data):
        response = client.get("/api/health")
        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "ok"
        assert body["locations"] == ["SERVICE", "SHOP", "WAREHOUSE"]
        assert body["active_accounts"] == 4

    def test_degraded_without_shop(self, client, db_session):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.get_json()["status"] == "degraded"


class TestSalesRoutes:
    def test_pos_sale(self, client, make_product, stock_of):
        product = make_product(price_cents=1000, stock=10)

        response = client.post("/api/pos", json={"lines": [{"product_id": product.id, "quantity": 3}]})

        assert response.status_code == 201
        invoice = response.get_json()["invoice"]
        assert invoice["status"] == "ISSUED"
        assert invoice["payment_status"] == "PAID"
        assert invoice["total_cents"] == 3000
        assert invoice["items"][0]["quantity"] == 3
        assert stock_of(product) == (7, {"SHOP": 7})

    def test_insufficient_stock_is_409(self, client, make_product, stock_of):
        product = make_product(stock=1)

        response = client.post("/api/pos", json={"lines": [{"product_id": product.id, "quantity": 2}]})

        assert response.status_code == 409
        body = response.get_json()
        assert body["code"] == "INSUFFICIENT_STOCK"
        assert body["details"]["available"] == 1
        assert stock_of(product) == (1, {"SHOP": 1})

    def test_decimal_quantity_is_rejected(self, client, make_product):
        product = make_product(stock=5)
        response = client.post("/api/pos", json={"lines": [{"product_id": product.id, "quantity": "1.5"}]})
        assert response.status_code == 400
        assert response.get_json()["code"] == "VALIDATION_ERROR"

    def test_unknown_payment_method(self, client, make_product):
        product = make_product(stock=5)
        response = client.post(
            "/api/pos",
            json={"payment_method": "CHEQUE", "lines": [{"product_id": product.id, "quantity": 1}]},
        )
        assert response.status_code == 400

    def test_unknown_product_is_404(self, client, reference_data):
        response = client.post("/api/pos", json={"lines": [{"product_id": 424242, "quantity": 1}]})
        assert response.status_code == 404
        assert response.get_json()["code"] == "NOT_FOUND"

    def test_reissue_is_409(self, client, make_product):
        product = make_product(stock=5)
        created = client.post("/api/invoices", json={"lines": [{"product_id": product.id, "quantity": 1}]})
        invoice_id = created.get_json()["invoice"]["id"]

        assert client.post(f"/api/invoices/{invoice_id}/issue").status_code == 200
        again = client.post(f"/api/invoices/{invoice_id}/issue")
        assert again.status_code == 409
        assert again.get_json()["code"] == "DOC_ALREADY_ISSUED"


class TestReadRoutes:
    def test_stock_and_movements(self, client, shop, warehouse, make_product):
        product = make_product(stock=4)
        transfer = client.post("/api/stock-transfers", json={
            "from_location_id": shop.id,
            "to_location_id": warehouse.id,
            "lines": [{"product_id": product.id, "quantity": 1}],
        })
        assert transfer.status_code == 201

        response = client.get(f"/api/products/{product.id}/stock")
        assert response.status_code == 200
        body = response.get_json()
        assert body["stock"] == 4
        assert {row["location_code"]: row["quantity"] for row in body["locations"]} == {"SHOP": 3, "WAREHOUSE": 1}

        movements = client.get(f"/api/products/{product.id}/movements").get_json()["movements"]
        assert [m["kind"] for m in movements] == ["IN", "OUT", "IN"]

    def test_account_balance(self, client, cash_account, make_product):
        product = make_product(price_cents=700, stock=2)
        client.post("/api/pos", json={"lines": [{"product_id": product.id, "quantity": 2}]})

        response = client.get(f"/api/ledger/accounts/{cash_account.id}/balance")
        assert response.status_code == 200
        assert response.get_json()["balance_cents"] == 1400

        entries = client.get(f"/api/ledger/entries?account_id={cash_account.id}").get_json()["entries"]
        assert [e["amount_cents"] for e in entries] == [1400]


class TestLedgerRoutes:
    def test_manual_entries_move_the_balance(self, client, cash_account):
        deposit = client.post("/api/ledger/entries", json={
            "account_id": cash_account.id,
            "direction": "IN",
            "amount_cents": 5000,
            "note": "Owner top-up",
            "occurred_at": "2026-10-01T09:00:00Z",
        })
        assert deposit.status_code == 201
        entry = deposit.get_json()["entry"]
        assert entry["direction"] == "IN"
        assert entry["note"] == "Owner top-up"
        assert entry["occurred_at"].startswith("2026-10-01T09:00:00")

        expense = client.post("/api/ledger/entries", json={
            "account_id": cash_account.id,
            "direction": "OUT",
            "amount_cents": 1200,
            "ref_type": "EXPENSE",
            "ref_id": 7,
        })
        assert expense.status_code == 201
        assert expense.get_json()["entry"]["ref_type"] == "EXPENSE"

        balance = client.get(f"/api/ledger/accounts/{cash_account.id}/balance").get_json()
        assert balance["balance_cents"] == 3800

    def test_zero_amount_is_invalid_amount(self, client, cash_account):
        response = client.post("/api/ledger/entries", json={
            "account_id": cash_account.id, "direction": "IN", "amount_cents": 0,
        })
        assert response.status_code == 400
        assert response.get_json()["code"] == "INVALID_AMOUNT"

    def test_negative_amount_is_invalid_amount(self, client, cash_account):
        response = client.post("/api/ledger/entries", json={
            "account_id": cash_account.id, "direction": "OUT", "amount_cents": -50,
        })
        assert response.status_code == 400
        assert response.get_json()["code"] == "INVALID_AMOUNT"

    def test_unknown_or_inactive_account(self, client, db_session, cash_account):
        missing = client.post("/api/ledger/entries", json={
            "account_id": 424242, "direction": "IN", "amount_cents": 100,
        })
        assert missing.status_code == 400
        assert missing.get_json()["code"] == "INVALID_ACCOUNT"

        cash_account.is_active = False
        db_session.commit()
        inactive = client.post("/api/ledger/entries", json={
            "account_id": cash_account.id, "direction": "IN", "amount_cents": 100,
        })
        assert inactive.status_code == 400
        assert inactive.get_json()["code"] == "INVALID_ACCOUNT"

    def test_bad_direction(self, client, cash_account):
        response = client.post("/api/ledger/entries", json={
            "account_id": cash_account.id, "direction": "SIDEWAYS", "amount_cents": 100,
        })
        assert response.status_code == 400
        assert response.get_json()["code"] == "VALIDATION_ERROR"


class UnitRouteTests(unittest.TestCase):
    """Register and revise a customer-owned unit over HTTP on a private app."""

    def setUp(self):
        self.app = create_app({
            'TESTING': True,
            'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
            'TX_RETRY_BACKOFF': 0,
        })
        self.ctx = self.app.app_context()
        self.ctx.push()
        db.create_all()
        seed_reference_data(db.session)
        from shopledger.models import Party
        self.owner = Party(name="Walk-in", type="CUSTOMER")
        db.session.add(self.owner)
        db.session.commit()
        self.client = self.app.test_client()

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.ctx.pop()

    def test_register_and_revise(self):
        response = self.client.post("/api/units", json={
            "ownership": "CUSTOMER_OWNED",
            "owner_party_id": self.owner.id,
            "brand": "Singer",
            "model": "M100",
            "serial": "c 55",
        })
        self.assertEqual(response.status_code, 201)
        unit = response.get_json()["unit"]
        self.assertEqual(unit["unique_serial_key"], "SINGER-M100-C-55")

        revised = self.client.patch(f"/api/units/{unit['id']}/identity", json={
            "change_reason": "Serial misread at intake",
            "serial": "C-56",
        })
        self.assertEqual(revised.status_code, 200)

        loaded = self.client.get(f"/api/units/{unit['id']}").get_json()
        self.assertEqual(loaded["unit"]["unique_serial_key"], "SINGER-M100-C-56")
        self.assertEqual(len(loaded["identity_revisions"]), 1)

    def test_owned_units_cannot_be_registered(self):
        response = self.client.post("/api/units", json={"ownership": "OWNED", "brand": "Singer", "model": "M100"})
        self.assertEqual(response.status_code, 400)
