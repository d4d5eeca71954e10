# Overview: Sales returns (customer -> shop) and purchase returns (shop -> supplier).

"""
Returns are created ISSUED against an ISSUED source document.

Remaining returnable quantity per product is the quantity on the source
document minus the quantity already returned on earlier ISSUED returns of
the same source. Validating against the original quantity alone would let
several partial returns exceed what was sold or bought.
"""

from __future__ import annotations

from sqlalchemy import func

from ..errors import InvalidAmount, InvalidStateTransition, NotFound, ValidationError
from ..models import (
    PurchaseBill,
    PurchaseBillItem,
    PurchaseReturn,
    PurchaseReturnItem,
    SalesInvoice,
    SalesInvoiceItem,
    SalesReturn,
    SalesReturnItem,
    SalesReturnRefund,
)
from .catalog_service import get_location, location_by_code
from .concurrency import lock_for_update, run_in_transaction
from .issuance import IssuanceContext, log_issued


REF_SALES_RETURN = "SALES_RETURN"
REF_SALES_RETURN_REFUND = "SALES_RETURN_REFUND"
REF_PURCHASE_RETURN = "PURCHASE_RETURN"
REF_PURCHASE_RETURN_REFUND = "PURCHASE_RETURN_REFUND"


def _merge_lines(lines) -> dict[int, int]:
    requested: dict[int, int] = {}
    for line in lines:
        if line.quantity <= 0:
            raise ValidationError("Return quantity must be positive", details={"product_id": line.product_id})
        requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity
    if not requested:
        raise ValidationError("At least one line is required")
    return requested


def _check_remaining(requested: dict[int, int], remaining_by_product: dict[int, int], source_key: str, source_id: int) -> None:
    for product_id, qty in requested.items():
        if product_id not in remaining_by_product:
            raise ValidationError(
                "Product is not on the source document",
                details={source_key: source_id, "product_id": product_id},
            )
        remaining = remaining_by_product[product_id]
        if qty > remaining:
            raise ValidationError(
                "Return quantity exceeds remaining returnable quantity",
                details={
                    source_key: source_id,
                    "product_id": product_id,
                    "requested": qty,
                    "remaining": remaining,
                },
                code="RETURN_EXCEEDS_REMAINING",
            )


def _resolve_refund_account(ctx: IssuanceContext, req):
    if req.refund_account_id is not None:
        return ctx.ledger.lock_account(req.refund_account_id)
    if req.refund_method:
        return ctx.ledger.account_for_payment_method(req.refund_method)
    return ctx.ledger.account_for_kind("CASH")


# =============================================================================
# Sales returns
# =============================================================================

def sales_remaining_quantities(session, invoice_id: int) -> dict[int, int]:
    """Product id -> quantity still returnable on an invoice."""
    sold = dict(
        session.query(SalesInvoiceItem.product_id, func.sum(SalesInvoiceItem.quantity))
        .filter(SalesInvoiceItem.invoice_id == invoice_id)
        .group_by(SalesInvoiceItem.product_id)
        .all()
    )
    returned = dict(
        session.query(SalesReturnItem.product_id, func.sum(SalesReturnItem.quantity))
        .join(SalesReturn, SalesReturn.id == SalesReturnItem.sales_return_id)
        .filter(SalesReturn.invoice_id == invoice_id, SalesReturn.status == "ISSUED")
        .group_by(SalesReturnItem.product_id)
        .all()
    )
    return {pid: int(qty) - int(returned.get(pid, 0)) for pid, qty in sold.items()}


def create_sales_return(req, ctx: IssuanceContext | None = None) -> SalesReturn:
    """
    Take goods back from a customer into SHOP.

    An optional refund posts a ledger OUT entry, capped at the return total.
    """
    ctx = ctx or IssuanceContext.default()

    def _op():
        invoice = lock_for_update(ctx.session.query(SalesInvoice).filter_by(id=req.invoice_id)).first()
        if not invoice:
            raise NotFound("Sales invoice not found", details={"invoice_id": req.invoice_id})
        if invoice.status != "ISSUED":
            raise InvalidStateTransition(
                "Only issued invoices can be returned",
                details={"invoice_id": invoice.id, "status": invoice.status},
            )

        requested = _merge_lines(req.lines)
        items = {item.product_id: item for item in invoice.items}
        _check_remaining(requested, sales_remaining_quantities(ctx.session, invoice.id), "invoice_id", invoice.id)

        refund_account = None
        if req.refund_amount_cents:
            refund_account = _resolve_refund_account(ctx, req)

        shop = location_by_code(ctx.session, "SHOP")
        number, label = ctx.counter.next_label("sales-return")
        sales_return = SalesReturn(
            number=number,
            document_number=label,
            invoice_id=invoice.id,
            status="ISSUED",
            location_id=shop.id,
            reason=req.reason,
        )
        ctx.session.add(sales_return)
        ctx.session.flush()

        total = 0
        for product_id, qty in requested.items():
            source = items[product_id]
            line_total = source.unit_price_cents * qty
            ctx.session.add(
                SalesReturnItem(
                    sales_return_id=sales_return.id,
                    product_id=product_id,
                    title_snapshot=source.title_snapshot,
                    unit_price_cents=source.unit_price_cents,
                    quantity=qty,
                    line_total_cents=line_total,
                )
            )
            total += line_total
            ctx.post_stock(
                product_id,
                shop.id,
                qty,
                ref_type=REF_SALES_RETURN,
                ref_id=sales_return.id,
                note=f"Return {label} of {invoice.document_number}",
            )
        sales_return.total_cents = total

        if refund_account is not None:
            amount = min(req.refund_amount_cents, total)
            if amount <= 0:
                raise InvalidAmount("Refund amount must be positive", details={"refund_amount_cents": amount})
            entry = ctx.ledger.post(
                refund_account.id,
                "OUT",
                amount,
                ref_type=REF_SALES_RETURN_REFUND,
                ref_id=sales_return.id,
                note=f"Refund {label}",
            )
            ctx.session.add(
                SalesReturnRefund(
                    sales_return_id=sales_return.id,
                    account_id=refund_account.id,
                    ledger_entry_id=entry.id,
                    amount_cents=amount,
                )
            )

        ctx.session.flush()
        log_issued(sales_return)
        return sales_return

    return run_in_transaction(_op)


# =============================================================================
# Purchase returns
# =============================================================================

def purchase_remaining_quantities(session, bill_id: int) -> dict[int, int]:
    bought = dict(
        session.query(PurchaseBillItem.product_id, func.sum(PurchaseBillItem.quantity))
        .filter(PurchaseBillItem.bill_id == bill_id)
        .group_by(PurchaseBillItem.product_id)
        .all()
    )
    returned = dict(
        session.query(PurchaseReturnItem.product_id, func.sum(PurchaseReturnItem.quantity))
        .join(PurchaseReturn, PurchaseReturn.id == PurchaseReturnItem.purchase_return_id)
        .filter(PurchaseReturn.purchase_bill_id == bill_id, PurchaseReturn.status == "ISSUED")
        .group_by(PurchaseReturnItem.product_id)
        .all()
    )
    return {pid: int(qty) - int(returned.get(pid, 0)) for pid, qty in bought.items()}


def create_purchase_return(req, ctx: IssuanceContext | None = None) -> PurchaseReturn:
    """
    Send received goods back to the supplier, out of the bill's receiving
    location. Named units move to RETURNED_TO_SUPPLIER. An optional
    supplier refund posts a ledger IN entry capped at the return total.
    """
    ctx = ctx or IssuanceContext.default()

    def _op():
        bill = lock_for_update(ctx.session.query(PurchaseBill).filter_by(id=req.purchase_bill_id)).first()
        if not bill:
            raise NotFound("Purchase bill not found", details={"purchase_bill_id": req.purchase_bill_id})
        if bill.status != "ISSUED":
            raise InvalidStateTransition(
                "Only issued purchase bills can be returned",
                details={"purchase_bill_id": bill.id, "status": bill.status},
            )

        requested = _merge_lines(req.lines)
        items = {item.product_id: item for item in bill.items}
        _check_remaining(requested, purchase_remaining_quantities(ctx.session, bill.id), "purchase_bill_id", bill.id)

        location = get_location(ctx.session, bill.location_id, active_only=False)
        ctx.stock.ensure_available({(pid, location.id): qty for pid, qty in requested.items()})

        refund_account = None
        if req.refund_amount_cents:
            refund_account = _resolve_refund_account(ctx, req)

        number, label = ctx.counter.next_label("purchase-return")
        purchase_return = PurchaseReturn(
            number=number,
            document_number=label,
            purchase_bill_id=bill.id,
            status="ISSUED",
            location_id=location.id,
            reason=req.reason,
        )
        ctx.session.add(purchase_return)
        ctx.session.flush()

        unit_ids: dict[int, list[int]] = {}
        for line in req.lines:
            if line.unit_ids:
                unit_ids.setdefault(line.product_id, []).extend(line.unit_ids)

        total = 0
        for product_id, qty in requested.items():
            source = items[product_id]
            line_total = source.unit_cost_cents * qty
            ctx.session.add(
                PurchaseReturnItem(
                    purchase_return_id=purchase_return.id,
                    product_id=product_id,
                    title_snapshot=source.title_snapshot,
                    unit_cost_cents=source.unit_cost_cents,
                    quantity=qty,
                    line_total_cents=line_total,
                )
            )
            total += line_total
            units = ctx.units_leaving(product_id, location.id, qty, unit_ids.get(product_id))
            ctx.post_stock(
                product_id,
                location.id,
                -qty,
                ref_type=REF_PURCHASE_RETURN,
                ref_id=purchase_return.id,
                note=f"Purchase return {label} of {bill.document_number}",
            )
            ctx.units.retire(units, "RETURNED_TO_SUPPLIER")
        purchase_return.total_cents = total

        if refund_account is not None:
            amount = min(req.refund_amount_cents, total)
            if amount <= 0:
                raise InvalidAmount("Refund amount must be positive", details={"refund_amount_cents": amount})
            ctx.ledger.post(
                refund_account.id,
                "IN",
                amount,
                ref_type=REF_PURCHASE_RETURN_REFUND,
                ref_id=purchase_return.id,
                note=f"Supplier refund {label}",
            )
            purchase_return.refund_account_id = refund_account.id
            purchase_return.refund_cents = amount

        ctx.session.flush()
        log_issued(purchase_return)
        return purchase_return

    return run_in_transaction(_op)
