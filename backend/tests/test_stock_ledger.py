# Overview: Coverage for the stock ledger and the inventory movement log.

"""
Stock Ledger Tests

Prove that:
1. Product totals and location quantities change together
2. No change can drive either quantity below zero
3. Movements snapshot the product total around each change
4. Product totals always equal the sum of their location rows
"""

import pytest

from shopledger.errors import InsufficientStock, NotFound, ValidationError
from shopledger.models import InventoryMovement, LocationStock
from shopledger.services.movement_service import MovementLog
from shopledger.services.report_service import stock_drift
from shopledger.services.stock_service import StockLedger


class TestApplyDelta:
    def test_inbound_creates_location_row(self, db_session, shop, make_product):
        product = make_product()
        ledger = StockLedger(db_session)

        change = ledger.apply_delta(product.id, shop.id, 7)
        db_session.commit()

        assert change.product_before == 0
        assert change.product_after == 7
        assert change.location_before == 0
        assert change.location_after == 7
        row = db_session.query(LocationStock).filter_by(product_id=product.id, location_id=shop.id).one()
        assert row.quantity == 7
        assert product.stock == 7

    def test_outbound_beyond_location_quantity_rejected(self, db_session, shop, warehouse, make_product, stock_of):
        """Stock at another location does not cover a shortfall here."""
        product = make_product(stock=3)
        StockLedger(db_session).apply_delta(product.id, warehouse.id, 10)
        db_session.commit()

        with pytest.raises(InsufficientStock) as exc:
            StockLedger(db_session).apply_delta(product.id, shop.id, -4)
        db_session.rollback()

        assert exc.value.requested == 4
        assert exc.value.available == 3
        assert exc.value.details["location_id"] == shop.id
        assert stock_of(product) == (13, {"SHOP": 3, "WAREHOUSE": 10})

    def test_zero_delta_rejected(self, db_session, shop, make_product):
        product = make_product(stock=1)
        with pytest.raises(ValidationError):
            StockLedger(db_session).apply_delta(product.id, shop.id, 0)

    def test_unknown_location(self, db_session, make_product):
        product = make_product()
        with pytest.raises(NotFound):
            StockLedger(db_session).apply_delta(product.id, 9999, 1)

    def test_unknown_product(self, db_session, shop):
        with pytest.raises(NotFound):
            StockLedger(db_session).apply_delta(9999, shop.id, 1)

    def test_totals_match_locations_after_mixed_changes(self, db_session, shop, warehouse, make_product):
        a = make_product(title="Fan", stock=5)
        b = make_product(title="Iron", stock=2, location=warehouse)
        ledger = StockLedger(db_session)
        ledger.apply_delta(a.id, warehouse.id, 4)
        ledger.apply_delta(a.id, shop.id, -5)
        ledger.apply_delta(b.id, shop.id, 1)
        db_session.commit()

        assert stock_drift(db_session) == []
        assert ledger.location_total(a.id) == a.stock == 4
        assert ledger.location_total(b.id) == b.stock == 3


class TestEnsureAvailable:
    def test_aggregated_demand_checked(self, db_session, shop, make_product):
        """Two lines of the same product are checked as one combined quantity."""
        product = make_product(stock=5)
        ledger = StockLedger(db_session)

        ledger.ensure_available({(product.id, shop.id): 5})
        with pytest.raises(InsufficientStock) as exc:
            ledger.ensure_available({(product.id, shop.id): 6})
        assert exc.value.available == 5


class TestMovementLog:
    def test_inbound_and_outbound_movements(self, db_session, shop, make_product):
        product = make_product(stock=10)
        ledger = StockLedger(db_session)
        log = MovementLog(db_session)

        out = log.record(ledger.apply_delta(product.id, shop.id, -3), "OUT", ref_type="TEST", ref_id=1)
        inbound = log.record(ledger.apply_delta(product.id, shop.id, 2), "IN", ref_type="TEST", ref_id=1)
        db_session.commit()

        assert (out.quantity, out.before_stock, out.after_stock) == (3, 10, 7)
        assert out.from_location_id == shop.id and out.to_location_id is None
        assert (inbound.quantity, inbound.before_stock, inbound.after_stock) == (2, 7, 9)
        assert inbound.to_location_id == shop.id and inbound.from_location_id is None
        assert [m.id for m in log.for_reference("TEST", 1)] == [out.id, inbound.id]

    def test_adjust_movement_is_signed(self, db_session, shop, make_product):
        product = make_product(stock=4)
        change = StockLedger(db_session).apply_delta(product.id, shop.id, -4)
        movement = MovementLog(db_session).record(change, "ADJUST")
        assert movement.quantity == -4
        assert movement.after_stock == 0

    def test_kind_must_match_sign(self, db_session, shop, make_product):
        product = make_product(stock=4)
        change = StockLedger(db_session).apply_delta(product.id, shop.id, -1)
        with pytest.raises(ValidationError):
            MovementLog(db_session).record(change, "IN")

    def test_opening_stock_is_logged(self, db_session, make_product):
        product = make_product(stock=6)
        movements = db_session.query(InventoryMovement).filter_by(product_id=product.id).all()
        assert len(movements) == 1
        assert movements[0].kind == "IN"
        assert movements[0].after_stock == 6
