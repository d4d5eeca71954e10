# Overview: Transactional entry points for serialized unit maintenance.

from __future__ import annotations

from ..errors import NotFound
from ..models import Unit
from .catalog_service import get_product, resolve_location
from .concurrency import run_in_transaction
from .issuance import IssuanceContext


def register_unit(req, ctx: IssuanceContext | None = None) -> Unit:
    ctx = ctx or IssuanceContext.default()
    return run_in_transaction(lambda: ctx.units.register_unit(req))


def revise_unit_identity(req, ctx: IssuanceContext | None = None):
    ctx = ctx or IssuanceContext.default()
    return run_in_transaction(
        lambda: ctx.units.revise_identity(
            req.unit_id,
            brand=req.brand,
            model=req.model,
            serial=req.serial,
            tag_code=req.tag_code,
            reason=req.change_reason,
        )
    )


def change_unit_status(req, ctx: IssuanceContext | None = None) -> Unit:
    ctx = ctx or IssuanceContext.default()
    return run_in_transaction(
        lambda: ctx.units.change_status(req.unit_id, req.status, location_id=req.location_id, note=req.note)
    )


def unitize_stock(req, ctx: IssuanceContext | None = None):
    """Give identities to untracked stock already sitting at a location."""
    ctx = ctx or IssuanceContext.default()

    def _op():
        product = get_product(ctx.session, req.product_id, active_only=False)
        location = resolve_location(ctx.session, req.location_id)
        ctx.stock.lock_product(product.id)
        on_hand = ctx.stock.location_quantity(product.id, location.id)
        return ctx.units.unitize_stock(product, location.id, on_hand, req.units, req.reason)

    return run_in_transaction(_op)


def get_unit(session, unit_id: int) -> Unit:
    unit = session.get(Unit, unit_id)
    if not unit:
        raise NotFound("Unit not found", details={"unit_id": unit_id})
    return unit
