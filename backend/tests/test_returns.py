# Overview: Coverage for sales returns and the end-to-end shop flow (receive, sell, return).

"""
Shop Flow Tests

Walks one product through the normal day: stock at SHOP, a purchase into
WAREHOUSE, a counter sale, then customer returns until nothing is left to
return. Totals, per-location stock, movements and ledger entries are checked
after every step.
"""

import pytest

from shopledger.errors import InvalidStateTransition, ValidationError
from shopledger.models import LedgerEntry, SalesReturn, SalesReturnRefund
from shopledger.schemas import CreatePosSale, CreateSalesReturn, IssuePurchaseBill, LineInput, PurchaseLineInput
from shopledger.services import invoice_service, pos_service, purchase_service, return_service
from shopledger.services.ledger_service import FinancialLedger
from shopledger.services.movement_service import MovementLog


def _return(invoice, product, quantity, **kwargs):
    return return_service.create_sales_return(
        CreateSalesReturn(invoice_id=invoice.id, lines=[LineInput(product_id=product.id, quantity=quantity)], **kwargs)
    )


class TestShopFlow:
    def test_receive_sell_and_return(self, db_session, warehouse, cash_account, make_product, stock_of):
        product = make_product(title="Ceiling Fan", price_cents=1000, stock=10)

        bill = purchase_service.issue_purchase_bill(IssuePurchaseBill(
            lines=[PurchaseLineInput(product_id=product.id, quantity=5, unit_cost_cents=700)],
            location_id=warehouse.id,
        ))
        assert stock_of(product) == (15, {"SHOP": 10, "WAREHOUSE": 5})
        [received] = MovementLog(db_session).for_reference("PURCHASE_BILL", bill.id)
        assert (received.kind, received.before_stock, received.after_stock) == ("IN", 10, 15)

        invoice = pos_service.create_pos_sale(CreatePosSale(lines=[LineInput(product_id=product.id, quantity=3)]))
        assert stock_of(product) == (12, {"SHOP": 7, "WAREHOUSE": 5})
        assert FinancialLedger(db_session).balance(cash_account.id) == 3000

        _return(invoice, product, 1)
        assert stock_of(product) == (13, {"SHOP": 8, "WAREHOUSE": 5})
        _return(invoice, product, 2)
        assert stock_of(product) == (15, {"SHOP": 10, "WAREHOUSE": 5})

        with pytest.raises(ValidationError) as exc:
            _return(invoice, product, 1)
        assert exc.value.code == "RETURN_EXCEEDS_REMAINING"
        assert exc.value.details["remaining"] == 0
        assert stock_of(product) == (15, {"SHOP": 10, "WAREHOUSE": 5})


class TestSalesReturn:
    @pytest.fixture
    def sold(self, db_session, make_product):
        product = make_product(price_cents=1200, stock=5)
        invoice = pos_service.create_pos_sale(CreatePosSale(lines=[LineInput(product_id=product.id, quantity=4)]))
        return invoice, product

    def test_return_into_shop(self, db_session, sold, stock_of):
        invoice, product = sold
        sales_return = _return(invoice, product, 2, reason="Damaged box")

        assert sales_return.document_number == "SR-000001"
        assert sales_return.total_cents == 2400
        assert stock_of(product) == (3, {"SHOP": 3})
        [movement] = MovementLog(db_session).for_reference("SALES_RETURN", sales_return.id)
        assert (movement.kind, movement.quantity) == ("IN", 2)

    def test_refund_capped_at_return_total(self, db_session, cash_account, sold):
        invoice, product = sold
        sales_return = _return(invoice, product, 1, refund_amount_cents=9999)

        refund = db_session.query(SalesReturnRefund).filter_by(sales_return_id=sales_return.id).one()
        assert refund.amount_cents == 1200
        entry = db_session.get(LedgerEntry, refund.ledger_entry_id)
        assert (entry.direction, entry.amount_cents, entry.account_id) == ("OUT", 1200, cash_account.id)
        assert FinancialLedger(db_session).balance(cash_account.id) == 4800 - 1200

    def test_refund_by_method(self, db_session, bkash_account, sold):
        invoice, product = sold
        _return(invoice, product, 1, refund_amount_cents=500, refund_method="BKASH")
        assert FinancialLedger(db_session).balance(bkash_account.id) == -500

    def test_product_not_on_invoice(self, db_session, sold, make_product):
        invoice, _ = sold
        other = make_product(title="Iron")
        with pytest.raises(ValidationError):
            _return(invoice, other, 1)
        assert db_session.query(SalesReturn).count() == 0

    def test_draft_invoice_cannot_be_returned(self, db_session, make_product):
        from shopledger.schemas import CreateSalesInvoice
        product = make_product(stock=5)
        draft = invoice_service.create_sales_invoice(
            CreateSalesInvoice(lines=[LineInput(product_id=product.id, quantity=1)])
        )
        with pytest.raises(InvalidStateTransition):
            _return(draft, product, 1)

    def test_invoice_with_returns_cannot_be_cancelled(self, db_session, sold, stock_of):
        invoice, product = sold
        _return(invoice, product, 1)
        with pytest.raises(InvalidStateTransition):
            invoice_service.cancel_sales_invoice(invoice.id)
        assert stock_of(product) == (2, {"SHOP": 2})
