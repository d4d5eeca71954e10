# Overview: Write-offs of damaged or lost stock.

from __future__ import annotations

from ..models import WriteOff, WriteOffItem
from .catalog_service import resolve_location
from .concurrency import run_in_transaction
from .issuance import IssuanceContext, log_issued, snapshot_lines
from .stock_service import aggregate_demands


REF_WRITE_OFF = "WRITE_OFF"


def create_write_off(req, ctx: IssuanceContext | None = None) -> WriteOff:
    """ISSUED write-off: stock OUT of the location, valued at current product price."""
    ctx = ctx or IssuanceContext.default()

    def _op():
        location = resolve_location(ctx.session, req.location_id)
        snapshots = snapshot_lines(ctx, req.lines, price_attr=None)
        ctx.stock.ensure_available(aggregate_demands(snapshots, location.id))

        number, label = ctx.counter.next_label("write-off")
        write_off = WriteOff(
            number=number,
            document_number=label,
            status="ISSUED",
            location_id=location.id,
            reason=req.reason,
        )
        ctx.session.add(write_off)
        ctx.session.flush()

        total = 0
        for line in snapshots:
            ctx.session.add(
                WriteOffItem(
                    write_off_id=write_off.id,
                    product_id=line.product_id,
                    title_snapshot=line.title,
                    unit_price_cents=line.unit_price_cents,
                    quantity=line.quantity,
                    line_total_cents=line.line_total_cents,
                )
            )
            total += line.line_total_cents
            units = ctx.units_leaving(line.product_id, location.id, line.quantity, line.unit_ids)
            ctx.post_stock(
                line.product_id,
                location.id,
                -line.quantity,
                ref_type=REF_WRITE_OFF,
                ref_id=write_off.id,
                note=f"Write-off {label}",
            )
            ctx.units.retire(units, "SCRAPPED")

        write_off.total_value_cents = total
        ctx.session.flush()
        log_issued(write_off)
        return write_off

    return run_in_transaction(_op)
