# Overview: Append-only inventory movement log.

from __future__ import annotations

from ..errors import ValidationError
from ..models import InventoryMovement
from ..models.inventory import MOVEMENT_KINDS
from ..time_utils import utcnow
from .stock_service import StockChange


class MovementLog:
    """
    Writes one InventoryMovement per stock change, using the snapshot
    returned by StockLedger.apply_delta so before/after always match the
    locked rows.
    """

    def __init__(self, session, clock=utcnow):
        self.session = session
        self.clock = clock

    def record(
        self,
        change: StockChange,
        kind: str,
        ref_type: str | None = None,
        ref_id: int | None = None,
        note: str | None = None,
    ) -> InventoryMovement:
        if kind not in MOVEMENT_KINDS:
            raise ValidationError(f"Invalid movement kind '{kind}'")

        if kind == "ADJUST":
            quantity = change.delta
        else:
            quantity = abs(change.delta)
            if (kind == "IN") != (change.delta > 0):
                raise ValidationError(f"{kind} movement does not match delta {change.delta}")

        inbound = change.delta > 0
        movement = InventoryMovement(
            product_id=change.product_id,
            kind=kind,
            quantity=quantity,
            before_stock=change.product_before,
            after_stock=change.product_after,
            from_location_id=None if inbound else change.location_id,
            to_location_id=change.location_id if inbound else None,
            ref_type=ref_type,
            ref_id=ref_id,
            note=note,
            occurred_at=self.clock(),
        )
        self.session.add(movement)
        return movement

    def history(self, product_id: int, limit: int = 100) -> list[InventoryMovement]:
        return (
            self.session.query(InventoryMovement)
            .filter_by(product_id=product_id)
            .order_by(InventoryMovement.id.desc())
            .limit(limit)
            .all()
        )

    def for_reference(self, ref_type: str, ref_id: int) -> list[InventoryMovement]:
        return (
            self.session.query(InventoryMovement)
            .filter_by(ref_type=ref_type, ref_id=ref_id)
            .order_by(InventoryMovement.id)
            .all()
        )
