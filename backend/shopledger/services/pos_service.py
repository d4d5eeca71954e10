# Overview: Point-of-sale checkout; one call issues a paid invoice.

from __future__ import annotations

from ..models import SalesInvoice
from .catalog_service import get_party, resolve_location
from .concurrency import run_in_transaction
from .invoice_service import REF_SALES_INVOICE, add_invoice_items
from .issuance import IssuanceContext, compute_totals, log_issued, snapshot_lines
from .stock_service import aggregate_demands


def create_pos_sale(req, ctx: IssuanceContext | None = None) -> SalesInvoice:
    """
    Counter sale: ISSUED invoice, stock out of the sale location (SHOP by
    default), one ledger IN entry for the total on the account of the
    payment rail, payment status PAID.

    Availability of every line is checked before any stock moves, so a
    shortfall on one line leaves the others untouched.
    """
    ctx = ctx or IssuanceContext.default()

    def _op():
        location = resolve_location(ctx.session, req.location_id)
        get_party(ctx.session, req.party_id, party_type="CUSTOMER")
        snapshots = snapshot_lines(ctx, req.lines, price_attr=None)
        account = ctx.ledger.account_for_payment_method(req.payment_method)

        ctx.stock.ensure_available(aggregate_demands(snapshots, location.id))

        number, label = ctx.counter.next_label("sales")
        invoice = SalesInvoice(
            number=number,
            document_number=label,
            source="POS",
            party_id=req.party_id,
            customer_name=req.customer_name,
            customer_phone=req.customer_phone,
            status="ISSUED",
            # cash at the counter is recorded the same way as cash on delivery
            payment_method="COD" if req.payment_method == "CASH" else req.payment_method,
            payment_status="UNPAID",
            discount_cents=req.discount_cents,
            location_id=location.id,
            stock_posted=True,
            notes=req.notes,
            issued_at=ctx.clock(),
        )
        ctx.session.add(invoice)
        ctx.session.flush()

        invoice.subtotal_cents = add_invoice_items(ctx, invoice, snapshots)
        invoice.total_cents = compute_totals(invoice.subtotal_cents, req.discount_cents)

        for line in snapshots:
            units = ctx.units_leaving(line.product_id, location.id, line.quantity, line.unit_ids)
            ctx.post_stock(
                line.product_id,
                location.id,
                -line.quantity,
                ref_type=REF_SALES_INVOICE,
                ref_id=invoice.id,
                note=f"POS sale {label}",
            )
            ctx.units.retire(units, "SOLD")

        if invoice.total_cents > 0:
            ctx.ledger.post(
                account.id,
                "IN",
                invoice.total_cents,
                ref_type=REF_SALES_INVOICE,
                ref_id=invoice.id,
                note=f"POS sale {label}",
            )
        invoice.payment_status = "PAID"
        log_issued(invoice)
        return invoice

    return run_in_transaction(_op)
