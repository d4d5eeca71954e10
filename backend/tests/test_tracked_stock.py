# Overview: Tracked units follow stock on every outbound document, named or not.

"""
Tracked Stock Tests

A document line for an asset-tracked product may name its units. When it
does not, the oldest available units at the location go with the stock,
so a location never holds more live units than it has stock.
"""

import pytest

from shopledger.errors import InvalidStateTransition
from shopledger.models import Unit
from shopledger.schemas import (
    AdjustInventory,
    AdjustmentLine,
    CreateOrder,
    CreatePosSale,
    CreatePurchaseReturn,
    CreateRentalContract,
    CreateSalesInvoice,
    CreateStockTransfer,
    CreateWriteOff,
    IssuePurchaseBill,
    LineInput,
    PurchaseLineInput,
    RentalLineInput,
    UnitIntakeRow,
)
from shopledger.services import (
    adjustment_service,
    invoice_service,
    order_service,
    pos_service,
    purchase_service,
    rental_service,
    return_service,
    transfer_service,
    write_off_service,
)


@pytest.fixture
def tracked_product(make_product):
    return make_product(title="Sewing Machine", price_cents=1000, is_asset_tracked=True, brand="Singer", model="M100")


def _receive(product, serials, location=None):
    return purchase_service.issue_purchase_bill(IssuePurchaseBill(
        lines=[PurchaseLineInput(product_id=product.id, quantity=len(serials), unit_cost_cents=800)],
        location_id=location.id if location else None,
        units=[UnitIntakeRow(product_id=product.id, serial=s) for s in serials],
    ))


def _units(session, product):
    session.expire_all()
    return {
        u.manufacturer_serial: (u.status, u.current_location_id)
        for u in session.query(Unit).filter_by(product_id=product.id).all()
    }


def _line(product, quantity):
    return LineInput(product_id=product.id, quantity=quantity)


class TestSalesTakeUnits:
    def test_pos_without_unit_ids(self, db_session, tracked_product, stock_of):
        _receive(tracked_product, ["A1", "A2"])

        pos_service.create_pos_sale(CreatePosSale(lines=[_line(tracked_product, 2)]))

        assert stock_of(tracked_product) == (0, {"SHOP": 0})
        assert _units(db_session, tracked_product) == {"A1": ("SOLD", None), "A2": ("SOLD", None)}

    def test_oldest_unit_goes_first(self, db_session, shop, tracked_product):
        _receive(tracked_product, ["A1", "A2", "A3"])

        pos_service.create_pos_sale(CreatePosSale(lines=[_line(tracked_product, 1)]))

        assert _units(db_session, tracked_product) == {
            "A1": ("SOLD", None),
            "A2": ("AVAILABLE", shop.id),
            "A3": ("AVAILABLE", shop.id),
        }

    def test_untracked_quantity_is_sold_first(self, db_session, shop, make_product, stock_of):
        product = make_product(title="Sewing Machine", stock=3, is_asset_tracked=True, brand="Singer", model="M100")
        _receive(product, ["A1", "A2"])

        pos_service.create_pos_sale(CreatePosSale(lines=[_line(product, 3)]))
        assert stock_of(product) == (2, {"SHOP": 2})
        assert _units(db_session, product) == {"A1": ("AVAILABLE", shop.id), "A2": ("AVAILABLE", shop.id)}

        pos_service.create_pos_sale(CreatePosSale(lines=[_line(product, 1)]))
        assert _units(db_session, product) == {"A1": ("SOLD", None), "A2": ("AVAILABLE", shop.id)}

    def test_invoice_issue(self, db_session, tracked_product):
        _receive(tracked_product, ["A1", "A2"])
        invoice = invoice_service.create_sales_invoice(CreateSalesInvoice(lines=[_line(tracked_product, 2)]))
        assert [status for status, _ in _units(db_session, tracked_product).values()] == ["AVAILABLE", "AVAILABLE"]

        invoice_service.issue_sales_invoice(invoice.id)

        assert _units(db_session, tracked_product) == {"A1": ("SOLD", None), "A2": ("SOLD", None)}

    def test_order(self, db_session, shop, tracked_product):
        _receive(tracked_product, ["A1", "A2"])

        order_service.create_order(CreateOrder(lines=[_line(tracked_product, 1)], customer_name="Karim"))

        assert _units(db_session, tracked_product) == {"A1": ("SOLD", None), "A2": ("AVAILABLE", shop.id)}

    def test_unit_held_elsewhere_blocks_sale(self, db_session, tracked_product, stock_of):
        _receive(tracked_product, ["A1"])
        unit = db_session.query(Unit).filter_by(manufacturer_serial="A1").one()
        unit.status = "IN_SERVICE"
        db_session.commit()

        with pytest.raises(InvalidStateTransition):
            pos_service.create_pos_sale(CreatePosSale(lines=[_line(tracked_product, 1)]))
        assert stock_of(tracked_product) == (1, {"SHOP": 1})


class TestStockDocumentsTakeUnits:
    def test_write_off(self, db_session, tracked_product, stock_of):
        _receive(tracked_product, ["A1", "A2"])

        write_off_service.create_write_off(CreateWriteOff(lines=[_line(tracked_product, 1)], reason="Water damage"))

        assert stock_of(tracked_product) == (1, {"SHOP": 1})
        assert _units(db_session, tracked_product)["A1"] == ("SCRAPPED", None)

    def test_negative_adjustment(self, db_session, shop, tracked_product):
        _receive(tracked_product, ["A1", "A2"])

        adjustment_service.adjust_inventory(AdjustInventory(
            mode="DELTA", lines=[AdjustmentLine(product_id=tracked_product.id, value=-1)], reason="Count",
        ))

        assert _units(db_session, tracked_product) == {"A1": ("SCRAPPED", None), "A2": ("AVAILABLE", shop.id)}

    def test_positive_adjustment_leaves_units(self, db_session, shop, tracked_product):
        _receive(tracked_product, ["A1"])

        adjustment_service.adjust_inventory(AdjustInventory(
            mode="DELTA", lines=[AdjustmentLine(product_id=tracked_product.id, value=2)],
        ))

        assert _units(db_session, tracked_product) == {"A1": ("AVAILABLE", shop.id)}

    def test_purchase_return(self, db_session, warehouse, tracked_product, stock_of):
        bill = _receive(tracked_product, ["A1", "A2"], location=warehouse)

        return_service.create_purchase_return(CreatePurchaseReturn(
            purchase_bill_id=bill.id, lines=[_line(tracked_product, 2)],
        ))

        assert stock_of(tracked_product) == (0, {"WAREHOUSE": 0})
        assert _units(db_session, tracked_product) == {
            "A1": ("RETURNED_TO_SUPPLIER", None),
            "A2": ("RETURNED_TO_SUPPLIER", None),
        }

    def test_transfer_moves_units(self, db_session, shop, warehouse, tracked_product, stock_of):
        _receive(tracked_product, ["A1", "A2"])

        transfer_service.create_stock_transfer(CreateStockTransfer(
            from_location_id=shop.id, to_location_id=warehouse.id, lines=[_line(tracked_product, 1)],
        ))

        assert stock_of(tracked_product) == (2, {"SHOP": 1, "WAREHOUSE": 1})
        assert _units(db_session, tracked_product) == {
            "A1": ("AVAILABLE", warehouse.id),
            "A2": ("AVAILABLE", shop.id),
        }


class TestRentalsTakeUnits:
    def test_units_go_out_and_come_back(self, db_session, shop, make_product, stock_of):
        product = make_product(
            title="Industrial Sewing Machine", type="RENT", price_cents=0,
            is_asset_tracked=True, brand="Juki", model="DDL",
        )
        _receive(product, ["R1", "R2", "R3"])
        contract = rental_service.create_rental_contract(CreateRentalContract(
            customer_name="Garments Ltd",
            lines=[RentalLineInput(product_id=product.id, quantity=2, monthly_rate_cents=1500)],
        ))

        rental_service.activate_rental_contract(contract.id)

        assert stock_of(product) == (1, {"SHOP": 1})
        assert _units(db_session, product) == {
            "R1": ("RENTED_OUT", None),
            "R2": ("RENTED_OUT", None),
            "R3": ("AVAILABLE", shop.id),
        }
        rented = db_session.query(Unit).filter_by(status="RENTED_OUT").all()
        assert {u.rental_contract_id for u in rented} == {contract.id}

        rental_service.close_rental_contract(contract.id)

        assert stock_of(product) == (3, {"SHOP": 3})
        units = db_session.query(Unit).filter_by(product_id=product.id).all()
        assert {(u.status, u.current_location_id, u.rental_contract_id) for u in units} == {("AVAILABLE", shop.id, None)}
