# Overview: Manual stock adjustments (relative DELTA or absolute SET) at one location.

from __future__ import annotations

from ..errors import InsufficientStock, ValidationError
from ..models import StockAdjustment, StockAdjustmentItem
from .catalog_service import get_product, resolve_location
from .concurrency import run_in_transaction
from .issuance import IssuanceContext, log_issued


REF_STOCK_ADJUSTMENT = "STOCK_ADJUSTMENT"


def adjust_inventory(req, ctx: IssuanceContext | None = None) -> StockAdjustment:
    """
    Correct stock at a location (SHOP by default).

    DELTA applies value as a signed change; SET makes the location quantity
    equal to value. The delta for SET is computed from the locked row, so
    concurrent movements cannot make it stale. A line that would not change
    anything, or would go negative, fails the whole adjustment.
    """
    ctx = ctx or IssuanceContext.default()

    def _op():
        location = resolve_location(ctx.session, req.location_id)
        if not req.lines:
            raise ValidationError("At least one line is required")
        seen = set()
        for line in req.lines:
            if line.product_id in seen:
                raise ValidationError("Each product can appear only once", details={"product_id": line.product_id})
            seen.add(line.product_id)
            get_product(ctx.session, line.product_id, active_only=False)

        number, label = ctx.counter.next_label("stock-adjustment")
        adjustment = StockAdjustment(
            number=number,
            document_number=label,
            status="ISSUED",
            location_id=location.id,
            mode=req.mode,
            reason=req.reason,
        )
        ctx.session.add(adjustment)
        ctx.session.flush()

        for line in req.lines:
            ctx.stock.lock_product(line.product_id)
            before = ctx.stock.location_quantity(line.product_id, location.id)
            delta = line.value - before if req.mode == "SET" else line.value
            if delta == 0:
                raise ValidationError(
                    "Adjustment does not change stock",
                    details={"product_id": line.product_id, "location_id": location.id, "quantity": before},
                )
            if before + delta < 0:
                raise InsufficientStock(line.product_id, location.id, -delta, before)

            units = ctx.units_leaving(line.product_id, location.id, -delta) if delta < 0 else []
            change = ctx.stock.apply_delta(line.product_id, location.id, delta)
            ctx.movements.record(
                change,
                "ADJUST",
                ref_type=REF_STOCK_ADJUSTMENT,
                ref_id=adjustment.id,
                note=req.reason or f"Adjustment {label}",
            )
            ctx.units.retire(units, "SCRAPPED")
            ctx.session.add(
                StockAdjustmentItem(
                    adjustment_id=adjustment.id,
                    product_id=line.product_id,
                    delta=delta,
                    before_quantity=change.location_before,
                    after_quantity=change.location_after,
                )
            )

        ctx.session.flush()
        log_issued(adjustment)
        return adjustment

    return run_in_transaction(_op)
