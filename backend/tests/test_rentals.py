# Overview: Coverage for rental contracts and monthly rental bills.

import pytest

from shopledger.errors import AlreadyIssued, InsufficientStock, InvalidStateTransition, ValidationError
from shopledger.schemas import CreateRentalContract, GenerateRentalBill, RentalLineInput
from shopledger.services import rental_service
from shopledger.services.ledger_service import FinancialLedger
from shopledger.services.movement_service import MovementLog


@pytest.fixture
def rental_product(make_product):
    return make_product(title="Industrial Sewing Machine", type="RENT", price_cents=0, stock=3)


def _contract(product, quantity=2, rate=1500):
    return rental_service.create_rental_contract(CreateRentalContract(
        customer_name="Garments Ltd",
        lines=[RentalLineInput(product_id=product.id, quantity=quantity, monthly_rate_cents=rate)],
    ))


class TestRentalContract:
    def test_draft_activate_close(self, db_session, rental_product, stock_of):
        contract = _contract(rental_product)
        assert contract.status == "DRAFT"
        assert contract.document_number == "RC-000001"
        assert contract.monthly_total_cents == 3000
        assert stock_of(rental_product) == (3, {"SHOP": 3})

        contract = rental_service.activate_rental_contract(contract.id)
        assert contract.status == "ACTIVE"
        assert contract.start_date is not None
        assert stock_of(rental_product) == (1, {"SHOP": 1})

        contract = rental_service.close_rental_contract(contract.id)
        assert contract.status == "CLOSED"
        assert stock_of(rental_product) == (3, {"SHOP": 3})

        out_moves = MovementLog(db_session).for_reference("RENTAL_CONTRACT", contract.id)
        back_moves = MovementLog(db_session).for_reference("RENTAL_CONTRACT_CLOSE", contract.id)
        assert [(m.kind, m.quantity) for m in out_moves] == [("OUT", 2)]
        assert [(m.kind, m.quantity) for m in back_moves] == [("IN", 2)]

    def test_only_rental_products(self, db_session, make_product):
        product = make_product(title="Ceiling Fan", stock=3)
        with pytest.raises(ValidationError):
            _contract(product)

    def test_activate_needs_stock(self, db_session, rental_product, stock_of):
        contract = _contract(rental_product, quantity=4)
        with pytest.raises(InsufficientStock):
            rental_service.activate_rental_contract(contract.id)
        assert stock_of(rental_product) == (3, {"SHOP": 3})

    def test_cancel_only_drafts(self, db_session, rental_product):
        draft = _contract(rental_product)
        assert rental_service.cancel_rental_contract(draft.id).status == "CANCELLED"

        active = _contract(rental_product, quantity=1)
        rental_service.activate_rental_contract(active.id)
        with pytest.raises(InvalidStateTransition):
            rental_service.cancel_rental_contract(active.id)


class TestRentalBills:
    @pytest.fixture
    def active_contract(self, db_session, rental_product):
        contract = _contract(rental_product)
        return rental_service.activate_rental_contract(contract.id)

    def test_generate_defaults_to_monthly_total(self, db_session, active_contract):
        bill = rental_service.generate_rental_bill(GenerateRentalBill(contract_id=active_contract.id, period="2026-10"))
        assert bill.status == "DRAFT"
        assert bill.document_number == "RB-000001"
        assert bill.amount_cents == 3000

    def test_one_bill_per_period(self, db_session, active_contract):
        rental_service.generate_rental_bill(GenerateRentalBill(contract_id=active_contract.id, period="2026-10"))
        with pytest.raises(ValidationError) as exc:
            rental_service.generate_rental_bill(
                GenerateRentalBill(contract_id=active_contract.id, period="2026-10", amount_cents=100)
            )
        assert exc.value.code == "DUPLICATE_PERIOD"

        other = rental_service.generate_rental_bill(
            GenerateRentalBill(contract_id=active_contract.id, period="2026-11", amount_cents=2500)
        )
        assert other.amount_cents == 2500

    def test_draft_contract_cannot_be_billed(self, db_session, rental_product):
        contract = _contract(rental_product)
        with pytest.raises(InvalidStateTransition):
            rental_service.generate_rental_bill(GenerateRentalBill(contract_id=contract.id, period="2026-10"))

    def test_issue_and_pay(self, db_session, cash_account, bkash_account, active_contract):
        bill = rental_service.generate_rental_bill(GenerateRentalBill(contract_id=active_contract.id, period="2026-10"))

        with pytest.raises(InvalidStateTransition):
            rental_service.mark_rental_bill_paid(bill.id)

        rental_service.issue_rental_bill(bill.id)
        with pytest.raises(AlreadyIssued):
            rental_service.issue_rental_bill(bill.id)

        paid = rental_service.mark_rental_bill_paid(bill.id, account_id=bkash_account.id)
        assert paid.payment_status == "PAID"
        assert FinancialLedger(db_session).balance(bkash_account.id) == 3000
        assert FinancialLedger(db_session).balance(cash_account.id) == 0

        with pytest.raises(InvalidStateTransition):
            rental_service.mark_rental_bill_paid(bill.id)
        with pytest.raises(InvalidStateTransition):
            rental_service.cancel_rental_bill(bill.id)

    def test_pay_defaults_to_cash(self, db_session, cash_account, active_contract):
        bill = rental_service.generate_rental_bill(GenerateRentalBill(contract_id=active_contract.id, period="2026-10"))
        rental_service.issue_rental_bill(bill.id)
        rental_service.mark_rental_bill_paid(bill.id)
        assert FinancialLedger(db_session).balance(cash_account.id) == 3000

    def test_cancel_unpaid_bill(self, db_session, active_contract):
        bill = rental_service.generate_rental_bill(GenerateRentalBill(contract_id=active_contract.id, period="2026-10"))
        rental_service.issue_rental_bill(bill.id)
        assert rental_service.cancel_rental_bill(bill.id).status == "CANCELLED"
