# Overview: Stock transfers between locations.

from __future__ import annotations

from ..errors import ValidationError
from ..models import StockTransfer, StockTransferItem
from .catalog_service import get_location
from .concurrency import run_in_transaction
from .issuance import IssuanceContext, log_issued, snapshot_lines
from .stock_service import aggregate_demands


REF_STOCK_TRANSFER = "STOCK_TRANSFER"


def create_stock_transfer(req, ctx: IssuanceContext | None = None) -> StockTransfer:
    """
    ISSUED transfer. Each line writes two movements: OUT at the source and
    IN at the destination, so per-location history stays complete while
    the product total ends where it started.
    """
    ctx = ctx or IssuanceContext.default()

    def _op():
        if req.from_location_id == req.to_location_id:
            raise ValidationError(
                "Source and destination locations must differ",
                details={"location_id": req.from_location_id},
            )
        source = get_location(ctx.session, req.from_location_id)
        destination = get_location(ctx.session, req.to_location_id)

        snapshots = snapshot_lines(ctx, req.lines)
        ctx.stock.ensure_available(aggregate_demands(snapshots, source.id))

        number, label = ctx.counter.next_label("stock-transfer")
        transfer = StockTransfer(
            number=number,
            document_number=label,
            status="ISSUED",
            from_location_id=source.id,
            to_location_id=destination.id,
            note=req.note,
        )
        ctx.session.add(transfer)
        ctx.session.flush()

        note = f"Transfer {label} {source.code} -> {destination.code}"
        for line in snapshots:
            ctx.session.add(
                StockTransferItem(transfer_id=transfer.id, product_id=line.product_id, quantity=line.quantity)
            )
            units = ctx.units_leaving(line.product_id, source.id, line.quantity, line.unit_ids)
            ctx.post_stock(
                line.product_id, source.id, -line.quantity,
                ref_type=REF_STOCK_TRANSFER, ref_id=transfer.id, note=note,
            )
            ctx.post_stock(
                line.product_id, destination.id, line.quantity,
                ref_type=REF_STOCK_TRANSFER, ref_id=transfer.id, note=note,
            )
            ctx.units.relocate(units, destination.id)

        ctx.session.flush()
        log_issued(transfer)
        return transfer

    return run_in_transaction(_op)
