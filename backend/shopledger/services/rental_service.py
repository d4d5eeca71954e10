# Overview: Rental contracts and their periodic bills.

"""
Rental contracts lend RENT-type products to customers.

    create   -> DRAFT (no stock change)
    activate -> ACTIVE, stock OUT of SHOP
    close    -> CLOSED, stock IN to SHOP

Bills are generated per period (YYYY-MM) for ACTIVE contracts, issued, and
marked paid with a ledger IN entry (CASH account unless another is given).
"""

from __future__ import annotations

from ..errors import InvalidStateTransition, NotFound, ValidationError
from ..models import RentalBill, RentalContract, RentalContractItem
from ..time_utils import period_key
from .catalog_service import get_party, get_product, location_by_code
from .concurrency import lock_for_update, run_in_transaction
from .issuance import IssuanceContext, log_issued
from .lifecycle_service import require_transition
from .stock_service import aggregate_demands


REF_RENTAL_CONTRACT = "RENTAL_CONTRACT"
REF_RENTAL_CONTRACT_CLOSE = "RENTAL_CONTRACT_CLOSE"
REF_RENTAL_BILL = "RENTAL_BILL"


def _lock_contract(ctx: IssuanceContext, contract_id: int) -> RentalContract:
    contract = lock_for_update(ctx.session.query(RentalContract).filter_by(id=contract_id)).first()
    if not contract:
        raise NotFound("Rental contract not found", details={"contract_id": contract_id})
    return contract


def _lock_bill(ctx: IssuanceContext, bill_id: int) -> RentalBill:
    bill = lock_for_update(ctx.session.query(RentalBill).filter_by(id=bill_id)).first()
    if not bill:
        raise NotFound("Rental bill not found", details={"rental_bill_id": bill_id})
    return bill


def create_rental_contract(req, ctx: IssuanceContext | None = None) -> RentalContract:
    ctx = ctx or IssuanceContext.default()

    def _op():
        get_party(ctx.session, req.party_id, party_type="CUSTOMER")
        if not req.lines:
            raise ValidationError("At least one line is required")
        if req.start_date and req.end_date and req.end_date < req.start_date:
            raise ValidationError("end_date must not be before start_date")

        products = []
        for line in req.lines:
            product = get_product(ctx.session, line.product_id)
            if product.type != "RENT":
                raise ValidationError("Only rental products can be rented", details={"product_id": product.id})
            products.append(product)

        shop = location_by_code(ctx.session, "SHOP")
        number, label = ctx.counter.next_label("rental-contract")
        contract = RentalContract(
            number=number,
            document_number=label,
            party_id=req.party_id,
            customer_name=req.customer_name,
            status="DRAFT",
            location_id=shop.id,
            deposit_cents=req.deposit_cents,
            start_date=req.start_date,
            end_date=req.end_date,
            notes=req.notes,
        )
        ctx.session.add(contract)
        ctx.session.flush()

        monthly = 0
        for line, product in zip(req.lines, products):
            ctx.session.add(
                RentalContractItem(
                    contract_id=contract.id,
                    product_id=product.id,
                    title_snapshot=product.title,
                    quantity=line.quantity,
                    monthly_rate_cents=line.monthly_rate_cents,
                )
            )
            monthly += line.monthly_rate_cents * line.quantity
        contract.monthly_total_cents = monthly
        ctx.session.flush()
        log_issued(contract, "Drafted")
        return contract

    return run_in_transaction(_op)


def activate_rental_contract(contract_id: int, ctx: IssuanceContext | None = None) -> RentalContract:
    ctx = ctx or IssuanceContext.default()

    def _op():
        contract = _lock_contract(ctx, contract_id)
        require_transition("RENTAL_CONTRACT", contract.status, "ACTIVE", doc_id=contract.id)

        ctx.stock.ensure_available(aggregate_demands(contract.items, contract.location_id))
        for item in contract.items:
            units = ctx.units_leaving(item.product_id, contract.location_id, item.quantity)
            ctx.post_stock(
                item.product_id,
                contract.location_id,
                -item.quantity,
                ref_type=REF_RENTAL_CONTRACT,
                ref_id=contract.id,
                note=f"Rental {contract.document_number}",
            )
            ctx.units.rent_out(units, contract.id)

        contract.status = "ACTIVE"
        contract.activated_at = ctx.clock()
        if contract.start_date is None:
            contract.start_date = contract.activated_at
        log_issued(contract, "Activated")
        return contract

    return run_in_transaction(_op)


def close_rental_contract(contract_id: int, ctx: IssuanceContext | None = None) -> RentalContract:
    ctx = ctx or IssuanceContext.default()

    def _op():
        contract = _lock_contract(ctx, contract_id)
        require_transition("RENTAL_CONTRACT", contract.status, "CLOSED", doc_id=contract.id)

        for item in contract.items:
            ctx.post_stock(
                item.product_id,
                contract.location_id,
                item.quantity,
                ref_type=REF_RENTAL_CONTRACT_CLOSE,
                ref_id=contract.id,
                note=f"Rental closed {contract.document_number}",
            )
        ctx.units.bring_back(contract.id, contract.location_id)

        contract.status = "CLOSED"
        contract.closed_at = ctx.clock()
        if contract.end_date is None:
            contract.end_date = contract.closed_at
        log_issued(contract, "Closed")
        return contract

    return run_in_transaction(_op)


def cancel_rental_contract(contract_id: int, ctx: IssuanceContext | None = None) -> RentalContract:
    """DRAFT -> CANCELLED. Active contracts are closed instead."""
    ctx = ctx or IssuanceContext.default()

    def _op():
        contract = _lock_contract(ctx, contract_id)
        require_transition("RENTAL_CONTRACT", contract.status, "CANCELLED", doc_id=contract.id)
        contract.status = "CANCELLED"
        log_issued(contract, "Cancelled")
        return contract

    return run_in_transaction(_op)


def generate_rental_bill(req, ctx: IssuanceContext | None = None) -> RentalBill:
    """DRAFT bill for one period of an ACTIVE contract; one bill per period."""
    ctx = ctx or IssuanceContext.default()

    def _op():
        contract = _lock_contract(ctx, req.contract_id)
        if contract.status != "ACTIVE":
            raise InvalidStateTransition(
                "Bills can only be generated for active contracts",
                details={"contract_id": contract.id, "status": contract.status},
            )
        period = req.period or period_key(ctx.clock())
        duplicate = (
            ctx.session.query(RentalBill.id)
            .filter(RentalBill.contract_id == contract.id, RentalBill.period == period)
            .first()
        )
        if duplicate:
            raise ValidationError(
                "A bill for this period already exists",
                details={"contract_id": contract.id, "period": period},
                code="DUPLICATE_PERIOD",
            )

        amount = req.amount_cents if req.amount_cents is not None else contract.monthly_total_cents
        if amount <= 0:
            raise ValidationError("Bill amount must be positive", details={"contract_id": contract.id})

        number, label = ctx.counter.next_label("rental-bill")
        bill = RentalBill(
            number=number,
            document_number=label,
            contract_id=contract.id,
            period=period,
            status="DRAFT",
            payment_status="UNPAID",
            amount_cents=amount,
        )
        ctx.session.add(bill)
        ctx.session.flush()
        log_issued(bill, "Drafted")
        return bill

    return run_in_transaction(_op)


def issue_rental_bill(bill_id: int, ctx: IssuanceContext | None = None) -> RentalBill:
    ctx = ctx or IssuanceContext.default()

    def _op():
        bill = _lock_bill(ctx, bill_id)
        require_transition("RENTAL_BILL", bill.status, "ISSUED", doc_id=bill.id)
        bill.status = "ISSUED"
        bill.issued_at = ctx.clock()
        log_issued(bill)
        return bill

    return run_in_transaction(_op)


def cancel_rental_bill(bill_id: int, ctx: IssuanceContext | None = None) -> RentalBill:
    ctx = ctx or IssuanceContext.default()

    def _op():
        bill = _lock_bill(ctx, bill_id)
        if bill.payment_status == "PAID":
            raise InvalidStateTransition("Paid bills cannot be cancelled", details={"rental_bill_id": bill.id})
        require_transition("RENTAL_BILL", bill.status, "CANCELLED", doc_id=bill.id)
        bill.status = "CANCELLED"
        log_issued(bill, "Cancelled")
        return bill

    return run_in_transaction(_op)


def mark_rental_bill_paid(bill_id: int, account_id: int | None = None, ctx: IssuanceContext | None = None) -> RentalBill:
    ctx = ctx or IssuanceContext.default()

    def _op():
        bill = _lock_bill(ctx, bill_id)
        if bill.status != "ISSUED":
            raise InvalidStateTransition(
                "Only issued bills can be paid",
                details={"rental_bill_id": bill.id, "status": bill.status},
            )
        if bill.payment_status == "PAID":
            raise InvalidStateTransition("Bill is already paid", details={"rental_bill_id": bill.id})

        account = ctx.ledger.lock_account(account_id) if account_id is not None else ctx.ledger.account_for_kind("CASH")
        ctx.ledger.post(
            account.id,
            "IN",
            bill.amount_cents,
            ref_type=REF_RENTAL_BILL,
            ref_id=bill.id,
            note=f"Rental bill {bill.document_number}",
        )
        bill.payment_status = "PAID"
        bill.paid_at = ctx.clock()
        log_issued(bill, "Paid")
        return bill

    return run_in_transaction(_op)
