from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


MOVEMENT_KINDS = {"IN", "OUT", "ADJUST"}


class InventoryMovement(db.Model):
    """
    Append-only audit record of a single stock change.

    quantity is positive for IN/OUT and signed for ADJUST.
    before_stock/after_stock snapshot the PRODUCT TOTAL around the change
    (read from the same locked row the change was applied to), so the
    history of a product can be replayed from its movements alone.

    from_location_id is set for outbound changes, to_location_id for
    inbound ones; ADJUST sets whichever side matches the sign.
    """
    __tablename__ = "inventory_movements"
    __table_args__ = (
        db.CheckConstraint("kind IN ('IN', 'OUT', 'ADJUST')", name="ck_inventory_movements_kind"),
        db.Index("ix_inventory_movements_product_occurred", "product_id", "occurred_at"),
        db.Index("ix_inventory_movements_ref", "ref_type", "ref_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    kind = db.Column(db.String(8), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    before_stock = db.Column(db.Integer, nullable=False)
    after_stock = db.Column(db.Integer, nullable=False)

    from_location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=True)
    to_location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=True)

    ref_type = db.Column(db.String(48), nullable=True)
    ref_id = db.Column(db.Integer, nullable=True)
    note = db.Column(db.Text, nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")

    def __repr__(self) -> str:
        return (
            f"<InventoryMovement id={self.id} product_id={self.product_id} kind={self.kind} "
            f"qty={self.quantity} {self.before_stock}->{self.after_stock}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "kind": self.kind,
            "quantity": self.quantity,
            "before_stock": self.before_stock,
            "after_stock": self.after_stock,
            "from_location_id": self.from_location_id,
            "to_location_id": self.to_location_id,
            "ref_type": self.ref_type,
            "ref_id": self.ref_id,
            "note": self.note,
            "occurred_at": to_utc_z(self.occurred_at),
        }
