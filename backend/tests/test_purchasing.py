# Overview: Coverage for purchase bills, unit intake and purchase returns.

"""
Purchase Bill Tests

Receiving is all-or-nothing: a bad intake row (missing serial, duplicate
identity, wrong count) fails the whole bill with no stock, unit, movement or
document number left behind.
"""

import pytest

from shopledger.errors import (
    AlreadyIssued,
    DuplicateIdentity,
    InsufficientStock,
    InvalidIdentity,
    InvalidStateTransition,
    ValidationError,
)
from shopledger.models import InventoryMovement, PurchaseBill, Unit
from shopledger.schemas import CreatePurchaseReturn, IssuePurchaseBill, LineInput, PurchaseLineInput, UnitIntakeRow
from shopledger.services import purchase_service, return_service
from shopledger.services.ledger_service import FinancialLedger
from shopledger.services.movement_service import MovementLog


def _bill(product, quantity, location=None, units=None, cost=800, supplier=None):
    return IssuePurchaseBill(
        lines=[PurchaseLineInput(product_id=product.id, quantity=quantity, unit_cost_cents=cost)],
        location_id=location.id if location else None,
        units=units or [],
        supplier_party_id=supplier.id if supplier else None,
    )


class TestIssuePurchaseBill:
    def test_receive_into_warehouse(self, db_session, shop, warehouse, make_product, stock_of):
        """Stock 10 at SHOP plus a bill of 5 into WAREHOUSE."""
        product = make_product(stock=10)

        bill = purchase_service.issue_purchase_bill(_bill(product, 5, warehouse))

        assert bill.status == "ISSUED"
        assert bill.document_number == "PB-000001"
        assert bill.total_cents == 4000
        assert stock_of(product) == (15, {"SHOP": 10, "WAREHOUSE": 5})

        movements = MovementLog(db_session).for_reference("PURCHASE_BILL", bill.id)
        assert len(movements) == 1
        assert movements[0].kind == "IN"
        assert (movements[0].before_stock, movements[0].after_stock) == (10, 15)
        assert movements[0].to_location_id == warehouse.id

    def test_defaults_to_shop(self, db_session, shop, make_product, stock_of, supplier):
        product = make_product()
        purchase_service.issue_purchase_bill(_bill(product, 2, supplier=supplier))
        assert stock_of(product) == (2, {"SHOP": 2})

    def test_customer_is_not_a_supplier(self, db_session, make_product, customer):
        product = make_product()
        with pytest.raises(ValidationError):
            purchase_service.issue_purchase_bill(_bill(product, 2, supplier=customer))

    def test_tracked_intake_creates_units(self, db_session, warehouse, make_product):
        product = make_product(title="Sewing Machine", is_asset_tracked=True, brand="Singer", model="M100")
        rows = [
            UnitIntakeRow(product_id=product.id, serial="A-1"),
            UnitIntakeRow(product_id=product.id, serial="A-2"),
            UnitIntakeRow(product_id=product.id),
        ]

        bill = purchase_service.issue_purchase_bill(_bill(product, 3, warehouse, units=rows))

        units = db_session.query(Unit).filter_by(source_type="PURCHASE_BILL", source_id=bill.id).order_by(Unit.id).all()
        assert [u.unique_serial_key for u in units] == ["SINGER-M100-A-1", "SINGER-M100-A-2", "SS-M-000001"]
        assert all(u.status == "AVAILABLE" and u.current_location_id == warehouse.id for u in units)
        assert all(u.ownership == "OWNED" for u in units)

    def test_missing_serial_fails_whole_bill(self, db_session, make_product, stock_of):
        """One of three rows lacks a serial on a serial-required product."""
        product = make_product(
            title="Industrial Machine", stock=4, is_asset_tracked=True, serial_required=True, brand="Juki", model="DDL",
        )
        movements_before = db_session.query(InventoryMovement).count()
        rows = [
            UnitIntakeRow(product_id=product.id, serial="J1"),
            UnitIntakeRow(product_id=product.id),
            UnitIntakeRow(product_id=product.id, serial="J3"),
        ]

        with pytest.raises(InvalidIdentity):
            purchase_service.issue_purchase_bill(_bill(product, 3, units=rows))

        assert db_session.query(Unit).count() == 0
        assert db_session.query(PurchaseBill).count() == 0
        assert db_session.query(InventoryMovement).count() == movements_before
        assert stock_of(product) == (4, {"SHOP": 4})

        # the failed attempt did not consume a document number
        rows[1] = UnitIntakeRow(product_id=product.id, serial="J2")
        bill = purchase_service.issue_purchase_bill(_bill(product, 3, units=rows))
        assert bill.document_number == "PB-000001"

    def test_unit_rows_must_match_quantity(self, db_session, make_product):
        product = make_product(is_asset_tracked=True, brand="Singer", model="M100")
        with pytest.raises(InvalidIdentity):
            purchase_service.issue_purchase_bill(
                _bill(product, 2, units=[UnitIntakeRow(product_id=product.id, serial="1")])
            )

    def test_duplicate_serial_in_batch(self, db_session, make_product):
        product = make_product(is_asset_tracked=True, brand="Singer", model="M100")
        rows = [UnitIntakeRow(product_id=product.id, serial="S 1"), UnitIntakeRow(product_id=product.id, serial="s-1")]
        with pytest.raises(DuplicateIdentity):
            purchase_service.issue_purchase_bill(_bill(product, 2, units=rows))
        assert db_session.query(Unit).count() == 0

    def test_duplicate_serial_against_existing_unit(self, db_session, make_product, stock_of):
        product = make_product(is_asset_tracked=True, brand="Singer", model="M100")
        purchase_service.issue_purchase_bill(_bill(product, 1, units=[UnitIntakeRow(product_id=product.id, serial="S1")]))

        with pytest.raises(DuplicateIdentity):
            purchase_service.issue_purchase_bill(_bill(product, 1, units=[UnitIntakeRow(product_id=product.id, serial="s1")]))
        assert stock_of(product) == (1, {"SHOP": 1})


class TestDraftPurchaseBill:
    def test_draft_then_issue(self, db_session, make_product, stock_of):
        product = make_product()
        bill = purchase_service.create_purchase_bill(_bill(product, 4))
        assert bill.status == "DRAFT"
        assert stock_of(product) == (0, {})

        bill = purchase_service.issue_draft_purchase_bill(bill.id)
        assert bill.status == "ISSUED"
        assert stock_of(product) == (4, {"SHOP": 4})

        with pytest.raises(AlreadyIssued):
            purchase_service.issue_draft_purchase_bill(bill.id)
        assert stock_of(product) == (4, {"SHOP": 4})

    def test_draft_tracked_bill_takes_units_at_issue(self, db_session, make_product):
        product = make_product(is_asset_tracked=True, brand="Singer", model="M100")
        bill = purchase_service.create_purchase_bill(_bill(product, 1))
        purchase_service.issue_draft_purchase_bill(bill.id, [UnitIntakeRow(product_id=product.id, serial="Z")])
        assert db_session.query(Unit).one().unique_serial_key == "SINGER-M100-Z"

    def test_cancel_only_drafts(self, db_session, make_product):
        product = make_product()
        draft = purchase_service.create_purchase_bill(_bill(product, 1))
        assert purchase_service.cancel_purchase_bill(draft.id).status == "CANCELLED"

        issued = purchase_service.issue_purchase_bill(_bill(product, 1))
        with pytest.raises(InvalidStateTransition):
            purchase_service.cancel_purchase_bill(issued.id)


class TestPurchaseReturn:
    def test_partial_return_with_refund(self, db_session, warehouse, cash_account, make_product, stock_of):
        product = make_product()
        bill = purchase_service.issue_purchase_bill(_bill(product, 5, warehouse, cost=800))

        purchase_return = return_service.create_purchase_return(CreatePurchaseReturn(
            purchase_bill_id=bill.id,
            lines=[LineInput(product_id=product.id, quantity=2)],
            refund_amount_cents=5000,
        ))

        assert purchase_return.total_cents == 1600
        assert purchase_return.refund_cents == 1600
        assert purchase_return.refund_account_id == cash_account.id
        assert stock_of(product) == (3, {"WAREHOUSE": 3})
        assert FinancialLedger(db_session).balance(cash_account.id) == 1600

    def test_return_limited_to_remaining(self, db_session, make_product):
        product = make_product()
        bill = purchase_service.issue_purchase_bill(_bill(product, 3))
        return_service.create_purchase_return(CreatePurchaseReturn(
            purchase_bill_id=bill.id, lines=[LineInput(product_id=product.id, quantity=2)],
        ))

        with pytest.raises(ValidationError) as exc:
            return_service.create_purchase_return(CreatePurchaseReturn(
                purchase_bill_id=bill.id, lines=[LineInput(product_id=product.id, quantity=2)],
            ))
        assert exc.value.code == "RETURN_EXCEEDS_REMAINING"
        assert exc.value.details["remaining"] == 1

    def test_return_needs_stock_at_receiving_location(self, db_session, make_product):
        product = make_product(price_cents=1000)
        bill = purchase_service.issue_purchase_bill(_bill(product, 2))
        from shopledger.schemas import CreateWriteOff
        from shopledger.services import write_off_service
        write_off_service.create_write_off(CreateWriteOff(lines=[LineInput(product_id=product.id, quantity=2)]))

        with pytest.raises(InsufficientStock):
            return_service.create_purchase_return(CreatePurchaseReturn(
                purchase_bill_id=bill.id, lines=[LineInput(product_id=product.id, quantity=1)],
            ))

    def test_returned_units_leave_stock(self, db_session, make_product):
        product = make_product(is_asset_tracked=True, brand="Singer", model="M100")
        rows = [UnitIntakeRow(product_id=product.id, serial="R1"), UnitIntakeRow(product_id=product.id, serial="R2")]
        bill = purchase_service.issue_purchase_bill(_bill(product, 2, units=rows))
        unit = db_session.query(Unit).filter_by(manufacturer_serial="R1").one()

        return_service.create_purchase_return(CreatePurchaseReturn(
            purchase_bill_id=bill.id, lines=[LineInput(product_id=product.id, quantity=1, unit_ids=[unit.id])],
        ))

        db_session.expire_all()
        unit = db_session.get(Unit, unit.id)
        assert unit.status == "RETURNED_TO_SUPPLIER"
        assert unit.current_location_id is None
