# Overview: Shared plumbing for document issuance (component wiring, line snapshots, stock posting).

"""
Document Issuance Engine.

Every document operation has the same shape:

    def op(req, ctx=None):
        ctx = ctx or IssuanceContext.default()
        def _op():
            ... validate, allocate number, persist, post stock/units/ledger ...
        return run_in_transaction(_op)

IssuanceContext bundles the components one issuance needs. They all share
the same session, so everything an operation writes commits or rolls back
together.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from flask import current_app

from ..errors import ValidationError
from ..extensions import db
from ..models import InventoryMovement, Product
from ..time_utils import utcnow
from .catalog_service import get_product
from .ledger_service import FinancialLedger
from .movement_service import MovementLog
from .sequence_service import SequenceCounter
from .stock_service import StockLedger
from .unit_service import UnitRegistry


@dataclass
class IssuanceContext:
    session: object
    clock: Callable
    counter: SequenceCounter
    stock: StockLedger
    movements: MovementLog
    units: UnitRegistry
    ledger: FinancialLedger

    @classmethod
    def default(cls, session=None, clock=utcnow) -> "IssuanceContext":
        session = session or db.session
        counter = SequenceCounter(session)
        return cls(
            session=session,
            clock=clock,
            counter=counter,
            stock=StockLedger(session),
            movements=MovementLog(session, clock),
            units=UnitRegistry(session, counter, clock),
            ledger=FinancialLedger(session, clock),
        )

    def post_stock(
        self,
        product_id: int,
        location_id: int,
        delta: int,
        *,
        kind: str | None = None,
        ref_type: str | None = None,
        ref_id: int | None = None,
        note: str | None = None,
    ) -> InventoryMovement:
        """Apply a stock delta and log its movement (IN/OUT from the sign unless kind is given)."""
        change = self.stock.apply_delta(product_id, location_id, delta)
        return self.movements.record(
            change,
            kind or ("IN" if delta > 0 else "OUT"),
            ref_type=ref_type,
            ref_id=ref_id,
            note=note,
        )

    def units_leaving(self, product_id: int, location_id: int, quantity: int, unit_ids=None) -> list:
        """Units that go out with `quantity` items; call before the stock is posted."""
        product = self.session.get(Product, product_id)
        remaining = self.stock.location_quantity(product_id, location_id) - quantity
        return self.units.outbound_units(product, location_id, quantity, list(unit_ids or []), remaining)


@dataclass
class LineSnapshot:
    product: Product
    product_id: int
    title: str
    unit_price_cents: int
    quantity: int
    unit_ids: list

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity


def snapshot_lines(ctx: IssuanceContext, lines, *, price_attr: str | None = "unit_price_cents") -> list[LineSnapshot]:
    """
    Resolve document lines against the catalog and freeze title / price.

    A line without an explicit price uses the product's current price;
    price_attr=None always uses the catalog price.
    """
    if not lines:
        raise ValidationError("At least one line is required")
    snapshots = []
    for line in lines:
        if line.quantity <= 0:
            raise ValidationError("Line quantity must be positive", details={"product_id": line.product_id})
        product = get_product(ctx.session, line.product_id)
        price = getattr(line, price_attr, None) if price_attr else None
        snapshots.append(
            LineSnapshot(
                product=product,
                product_id=product.id,
                title=product.title,
                unit_price_cents=product.price_cents if price is None else price,
                quantity=line.quantity,
                unit_ids=list(getattr(line, "unit_ids", None) or []),
            )
        )
    return snapshots


def compute_totals(subtotal: int, discount: int = 0, delivery_fee: int = 0) -> int:
    if discount > subtotal:
        raise ValidationError("Discount cannot exceed subtotal", details={"subtotal_cents": subtotal, "discount_cents": discount})
    return subtotal - discount + delivery_fee


def log_issued(doc, action: str = "Issued") -> None:
    current_app.logger.info("%s %s (id=%s)", action, doc.document_number, doc.id)
