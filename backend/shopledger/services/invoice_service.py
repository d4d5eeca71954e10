# Overview: Sales invoice lifecycle (draft, issue, cancel) and invoice payments.

from __future__ import annotations

from ..errors import InvalidAmount, InvalidStateTransition, NotFound
from ..models import SalesInvoice, SalesInvoiceItem, SalesReturn
from .catalog_service import get_party, location_by_code, resolve_location
from .concurrency import lock_for_update, run_in_transaction
from .issuance import IssuanceContext, compute_totals, log_issued, snapshot_lines
from .lifecycle_service import require_transition
from .stock_service import aggregate_demands


REF_SALES_INVOICE = "SALES_INVOICE"
REF_SALES_INVOICE_CANCEL = "SALES_INVOICE_CANCEL"
REF_SALES_INVOICE_PAYMENT = "SALES_INVOICE_PAYMENT"


def lock_invoice(ctx: IssuanceContext, invoice_id: int) -> SalesInvoice:
    invoice = lock_for_update(ctx.session.query(SalesInvoice).filter_by(id=invoice_id)).first()
    if not invoice:
        raise NotFound("Sales invoice not found", details={"invoice_id": invoice_id})
    return invoice


def add_invoice_items(ctx: IssuanceContext, invoice: SalesInvoice, snapshots) -> int:
    """Persist snapshot lines on the invoice; returns the subtotal."""
    subtotal = 0
    for line in snapshots:
        ctx.session.add(
            SalesInvoiceItem(
                invoice_id=invoice.id,
                product_id=line.product_id,
                title_snapshot=line.title,
                unit_price_cents=line.unit_price_cents,
                quantity=line.quantity,
                line_total_cents=line.line_total_cents,
            )
        )
        subtotal += line.line_total_cents
    ctx.session.flush()
    return subtotal


def payment_status_for(paid: int, total: int) -> str:
    if paid <= 0:
        return "UNPAID"
    if paid >= total:
        return "PAID"
    return "PARTIAL"


def create_sales_invoice(req, ctx: IssuanceContext | None = None) -> SalesInvoice:
    """Create a DRAFT invoice. No stock moves until it is issued."""
    ctx = ctx or IssuanceContext.default()

    def _op():
        location = resolve_location(ctx.session, req.location_id)
        get_party(ctx.session, req.party_id, party_type="CUSTOMER")
        snapshots = snapshot_lines(ctx, req.lines)

        number, label = ctx.counter.next_label("sales")
        invoice = SalesInvoice(
            number=number,
            document_number=label,
            source="MANUAL",
            party_id=req.party_id,
            customer_name=req.customer_name,
            customer_phone=req.customer_phone,
            status="DRAFT",
            payment_method=req.payment_method if req.payment_method != "CASH" else "COD",
            payment_status="UNPAID",
            discount_cents=req.discount_cents,
            delivery_fee_cents=req.delivery_fee_cents,
            location_id=location.id,
            notes=req.notes,
        )
        ctx.session.add(invoice)
        ctx.session.flush()

        invoice.subtotal_cents = add_invoice_items(ctx, invoice, snapshots)
        invoice.total_cents = compute_totals(invoice.subtotal_cents, req.discount_cents, req.delivery_fee_cents)
        log_issued(invoice, "Drafted")
        return invoice

    return run_in_transaction(_op)


def issue_sales_invoice(invoice_id: int, ctx: IssuanceContext | None = None) -> SalesInvoice:
    """DRAFT -> ISSUED. Takes every line out of the invoice's location."""
    ctx = ctx or IssuanceContext.default()

    def _op():
        invoice = lock_invoice(ctx, invoice_id)
        require_transition("SALES_INVOICE", invoice.status, "ISSUED", doc_id=invoice.id)

        ctx.stock.ensure_available(aggregate_demands(invoice.items, invoice.location_id))
        for item in invoice.items:
            units = ctx.units_leaving(item.product_id, invoice.location_id, item.quantity)
            ctx.post_stock(
                item.product_id,
                invoice.location_id,
                -item.quantity,
                ref_type=REF_SALES_INVOICE,
                ref_id=invoice.id,
                note=f"Invoice {invoice.document_number}",
            )
            ctx.units.retire(units, "SOLD")

        invoice.status = "ISSUED"
        invoice.stock_posted = True
        invoice.issued_at = ctx.clock()
        log_issued(invoice)
        return invoice

    return run_in_transaction(_op)


def cancel_sales_invoice(invoice_id: int, ctx: IssuanceContext | None = None) -> SalesInvoice:
    """
    Cancel a DRAFT or ISSUED invoice.

    An ISSUED invoice that took stock out gets compensating IN movements
    into SHOP. Invoices with ISSUED returns against them cannot be cancelled.
    """
    ctx = ctx or IssuanceContext.default()

    def _op():
        invoice = lock_invoice(ctx, invoice_id)
        require_transition("SALES_INVOICE", invoice.status, "CANCELLED", doc_id=invoice.id)

        if invoice.status == "ISSUED":
            has_returns = (
                ctx.session.query(SalesReturn.id)
                .filter_by(invoice_id=invoice.id, status="ISSUED")
                .first()
            )
            if has_returns:
                raise InvalidStateTransition(
                    "Invoice has returns and cannot be cancelled",
                    details={"invoice_id": invoice.id},
                )
            if invoice.stock_posted:
                shop = location_by_code(ctx.session, "SHOP")
                for item in invoice.items:
                    ctx.post_stock(
                        item.product_id,
                        shop.id,
                        item.quantity,
                        ref_type=REF_SALES_INVOICE_CANCEL,
                        ref_id=invoice.id,
                        note=f"Cancel {invoice.document_number}",
                    )

        invoice.status = "CANCELLED"
        invoice.cancelled_at = ctx.clock()
        log_issued(invoice, "Cancelled")
        return invoice

    return run_in_transaction(_op)


def record_invoice_payment(req, ctx: IssuanceContext | None = None) -> dict:
    """
    Post a customer payment against an ISSUED invoice.

    The amount is capped at what is still owed. An invoice that is already
    fully paid rejects further payments, including one marked PAID by the
    order it was generated from.
    """
    ctx = ctx or IssuanceContext.default()

    def _op():
        invoice = lock_invoice(ctx, req.invoice_id)
        if invoice.status != "ISSUED":
            raise InvalidStateTransition(
                "Payments can only be recorded on issued invoices",
                details={"invoice_id": invoice.id, "status": invoice.status},
            )
        ctx.ledger.lock_account(req.account_id)

        paid = ctx.ledger.total_for_reference(REF_SALES_INVOICE_PAYMENT, invoice.id)
        if invoice.source == "POS":
            paid += ctx.ledger.total_for_reference(REF_SALES_INVOICE, invoice.id)
        remaining = invoice.total_cents - paid
        if remaining <= 0 or invoice.payment_status == "PAID":
            raise InvalidAmount("Invoice is already fully paid", details={"invoice_id": invoice.id})

        amount = min(req.amount_cents, remaining)
        entry = ctx.ledger.post(
            req.account_id,
            "IN",
            amount,
            ref_type=REF_SALES_INVOICE_PAYMENT,
            ref_id=invoice.id,
            note=req.note or f"Payment for {invoice.document_number}",
        )
        invoice.payment_status = payment_status_for(paid + amount, invoice.total_cents)
        ctx.session.flush()
        return {"invoice": invoice.to_dict(), "entry": entry.to_dict(), "paid_cents": paid + amount}

    return run_in_transaction(_op)
