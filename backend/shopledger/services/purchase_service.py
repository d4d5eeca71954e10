# Overview: Purchase bills; receiving stock and creating tracked units.

"""
Purchase bills receive stock into a location (SHOP unless another is named).

Two entry points:
- issue_purchase_bill: create and issue in one call (the common case)
- create_purchase_bill + issue_draft_purchase_bill: draft first, issue later

Tracked products need one intake row per physical unit. The whole intake
batch is validated (counts, serials, duplicate keys) before any stock or
unit is written.
"""

from __future__ import annotations

from ..errors import NotFound
from ..models import PurchaseBill, PurchaseBillItem
from .catalog_service import get_party, resolve_location
from .concurrency import lock_for_update, run_in_transaction
from .issuance import IssuanceContext, log_issued, snapshot_lines
from .lifecycle_service import require_transition


REF_PURCHASE_BILL = "PURCHASE_BILL"


def _lock_bill(ctx: IssuanceContext, bill_id: int) -> PurchaseBill:
    bill = lock_for_update(ctx.session.query(PurchaseBill).filter_by(id=bill_id)).first()
    if not bill:
        raise NotFound("Purchase bill not found", details={"purchase_bill_id": bill_id})
    return bill


def _tracked_quantities(lines) -> dict[int, int]:
    tracked: dict[int, int] = {}
    for line in lines:
        if line.product.is_asset_tracked:
            tracked[line.product_id] = tracked.get(line.product_id, 0) + line.quantity
    return tracked


def _create_bill(ctx: IssuanceContext, req, status: str) -> tuple[PurchaseBill, list]:
    location = resolve_location(ctx.session, req.location_id)
    get_party(ctx.session, req.supplier_party_id, party_type="SUPPLIER")
    snapshots = snapshot_lines(ctx, req.lines, price_attr="unit_cost_cents")

    number, label = ctx.counter.next_label("purchase")
    bill = PurchaseBill(
        number=number,
        document_number=label,
        supplier_party_id=req.supplier_party_id,
        status=status,
        location_id=location.id,
        notes=req.notes,
    )
    ctx.session.add(bill)
    ctx.session.flush()

    subtotal = 0
    for line in snapshots:
        ctx.session.add(
            PurchaseBillItem(
                bill_id=bill.id,
                product_id=line.product_id,
                title_snapshot=line.title,
                unit_cost_cents=line.unit_price_cents,
                quantity=line.quantity,
                line_total_cents=line.line_total_cents,
            )
        )
        subtotal += line.line_total_cents
    bill.subtotal_cents = subtotal
    bill.total_cents = subtotal
    ctx.session.flush()
    return bill, snapshots


def _receive(ctx: IssuanceContext, bill: PurchaseBill, lines, unit_rows) -> None:
    prepared = ctx.units.prepare_intake(_tracked_quantities(lines), unit_rows or [])

    for line in lines:
        ctx.post_stock(
            line.product_id,
            bill.location_id,
            line.quantity,
            ref_type=REF_PURCHASE_BILL,
            ref_id=bill.id,
            note=f"Purchase {bill.document_number}",
        )
    if prepared:
        ctx.units.create_units(
            prepared,
            location_id=bill.location_id,
            source_type=REF_PURCHASE_BILL,
            source_id=bill.id,
        )

    bill.status = "ISSUED"
    bill.issued_at = ctx.clock()


def issue_purchase_bill(req, ctx: IssuanceContext | None = None) -> PurchaseBill:
    """Create an ISSUED bill: stock IN to the receiving location plus unit intake."""
    ctx = ctx or IssuanceContext.default()

    def _op():
        bill, snapshots = _create_bill(ctx, req, "DRAFT")
        require_transition("PURCHASE_BILL", bill.status, "ISSUED", doc_id=bill.id)
        _receive(ctx, bill, snapshots, req.units)
        log_issued(bill)
        return bill

    return run_in_transaction(_op)


def create_purchase_bill(req, ctx: IssuanceContext | None = None) -> PurchaseBill:
    """DRAFT bill; nothing is received yet."""
    ctx = ctx or IssuanceContext.default()

    def _op():
        bill, _ = _create_bill(ctx, req, "DRAFT")
        log_issued(bill, "Drafted")
        return bill

    return run_in_transaction(_op)


def issue_draft_purchase_bill(bill_id: int, unit_rows=None, ctx: IssuanceContext | None = None) -> PurchaseBill:
    """DRAFT -> ISSUED. Re-issuing raises AlreadyIssued."""
    ctx = ctx or IssuanceContext.default()

    def _op():
        bill = _lock_bill(ctx, bill_id)
        require_transition("PURCHASE_BILL", bill.status, "ISSUED", doc_id=bill.id)
        _receive(ctx, bill, bill.items, unit_rows)
        log_issued(bill)
        return bill

    return run_in_transaction(_op)


def cancel_purchase_bill(bill_id: int, ctx: IssuanceContext | None = None) -> PurchaseBill:
    """DRAFT -> CANCELLED. Issued bills are corrected with a purchase return instead."""
    ctx = ctx or IssuanceContext.default()

    def _op():
        bill = _lock_bill(ctx, bill_id)
        require_transition("PURCHASE_BILL", bill.status, "CANCELLED", doc_id=bill.id)
        bill.status = "CANCELLED"
        log_issued(bill, "Cancelled")
        return bill

    return run_in_transaction(_op)
