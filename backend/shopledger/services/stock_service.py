# Overview: The single write path for product totals and per-location stock.

"""
StockLedger owns Product.stock and LocationStock.quantity. No other code
writes either column.

Every change goes through apply_delta, which:
1. locks the product row, then the (location, product) row, in that order
   (a fixed order keeps concurrent issuers from deadlocking)
2. refuses the change if either quantity would drop below zero
3. updates both quantities in the caller's transaction
4. returns a StockChange snapshot for the movement log

Invariant after every commit: product.stock == sum of its location rows.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func

from ..errors import InsufficientStock, NotFound, ValidationError
from ..models import Location, LocationStock, Product
from .concurrency import lock_for_update


@dataclass(frozen=True)
class StockChange:
    product_id: int
    location_id: int
    delta: int
    product_before: int
    product_after: int
    location_before: int
    location_after: int


class StockLedger:
    def __init__(self, session):
        self.session = session

    def lock_product(self, product_id: int) -> Product:
        product = lock_for_update(self.session.query(Product).filter_by(id=product_id)).first()
        if not product:
            raise NotFound("Product not found", details={"product_id": product_id})
        return product

    def _lock_location_row(self, product_id: int, location_id: int) -> LocationStock | None:
        return lock_for_update(
            self.session.query(LocationStock).filter_by(location_id=location_id, product_id=product_id)
        ).first()

    def apply_delta(self, product_id: int, location_id: int, delta: int) -> StockChange:
        if not isinstance(delta, int) or isinstance(delta, bool):
            raise ValidationError("delta must be an integer")
        if delta == 0:
            raise ValidationError("Stock delta must be non-zero", details={"product_id": product_id})
        if not self.session.get(Location, location_id):
            raise NotFound("Location not found", details={"location_id": location_id})

        product = self.lock_product(product_id)
        row = self._lock_location_row(product_id, location_id)
        location_before = row.quantity if row else 0

        if location_before + delta < 0:
            raise InsufficientStock(product_id, location_id, -delta, location_before)
        if product.stock + delta < 0:
            raise InsufficientStock(product_id, location_id, -delta, product.stock)

        if row is None:
            row = LocationStock(location_id=location_id, product_id=product_id, quantity=0)
            self.session.add(row)

        product_before = product.stock
        product.stock = product_before + delta
        row.quantity = location_before + delta
        self.session.flush()

        return StockChange(
            product_id=product_id,
            location_id=location_id,
            delta=delta,
            product_before=product_before,
            product_after=product.stock,
            location_before=location_before,
            location_after=row.quantity,
        )

    def location_quantity(self, product_id: int, location_id: int) -> int:
        qty = (
            self.session.query(LocationStock.quantity)
            .filter_by(location_id=location_id, product_id=product_id)
            .scalar()
        )
        return qty or 0

    def ensure_available(self, demands: dict[tuple[int, int], int]) -> None:
        """
        Pre-flight check of aggregated outbound quantities.

        demands maps (product_id, location_id) -> total quantity the document
        takes out. Raises InsufficientStock for the first shortage so no line
        is posted when any line would fail. Products are locked in id order.
        """
        for (product_id, location_id), qty in sorted(demands.items()):
            self.lock_product(product_id)
            row = self._lock_location_row(product_id, location_id)
            available = row.quantity if row else 0
            if available < qty:
                raise InsufficientStock(product_id, location_id, qty, available)

    def stock_by_location(self, product_id: int) -> list[LocationStock]:
        return (
            self.session.query(LocationStock)
            .filter_by(product_id=product_id)
            .order_by(LocationStock.location_id)
            .all()
        )

    def location_total(self, product_id: int) -> int:
        total = (
            self.session.query(func.coalesce(func.sum(LocationStock.quantity), 0))
            .filter(LocationStock.product_id == product_id)
            .scalar()
        )
        return int(total or 0)


def aggregate_demands(lines, location_id: int) -> dict[tuple[int, int], int]:
    """Sum line quantities per (product, location) before posting."""
    demands: dict[tuple[int, int], int] = {}
    for line in lines:
        key = (line.product_id, location_id)
        demands[key] = demands.get(key, 0) + line.quantity
    return demands
