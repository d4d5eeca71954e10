from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


OWNERSHIP_TYPES = {"OWNED", "CUSTOMER_OWNED", "RENTED_IN"}

UNIT_STATUS_AVAILABLE = "AVAILABLE"
UNIT_STATUSES = {
    "AVAILABLE",
    "IN_SERVICE",
    "RENTED_OUT",
    "IDLE_AT_CUSTOMER",
    "SOLD",
    "SCRAPPED",
    "RETURNED_TO_SUPPLIER",
    "RETURNED_TO_CUSTOMER",
}
TERMINAL_UNIT_STATUSES = {"SOLD", "SCRAPPED", "RETURNED_TO_SUPPLIER", "RETURNED_TO_CUSTOMER"}


class Unit(db.Model):
    """
    A single physical, identifiable item.

    unique_serial_key is the normalized identity (brand-model-serial, or the
    internal tag when no serial exists). It is globally unique.
    Terminal statuses never change again.
    """
    __tablename__ = "units"
    __table_args__ = (
        db.UniqueConstraint("unique_serial_key", name="uq_units_unique_serial_key"),
        db.Index("ix_units_product_status_location", "product_id", "status", "current_location_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    ownership = db.Column(db.String(20), nullable=False, default="OWNED")
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True, index=True)
    owner_party_id = db.Column(db.Integer, db.ForeignKey("parties.id"), nullable=True, index=True)

    brand = db.Column(db.String(120), nullable=False)
    model = db.Column(db.String(120), nullable=False)
    manufacturer_serial = db.Column(db.String(120), nullable=True)
    tag_code = db.Column(db.String(32), nullable=True, unique=True)
    unique_serial_key = db.Column(db.String(400), nullable=False)

    status = db.Column(db.String(24), nullable=False, default=UNIT_STATUS_AVAILABLE, index=True)
    current_location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=True, index=True)

    # Which document brought the unit in (PURCHASE_BILL, UNITIZATION, MANUAL ...)
    source_type = db.Column(db.String(48), nullable=True)
    source_id = db.Column(db.Integer, nullable=True)
    unitization_batch_id = db.Column(db.Integer, db.ForeignKey("unitization_batches.id"), nullable=True)
    # Contract currently holding a RENTED_OUT unit
    rental_contract_id = db.Column(db.Integer, nullable=True, index=True)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    product = db.relationship("Product")
    current_location = db.relationship("Location")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_UNIT_STATUSES

    def __repr__(self) -> str:
        return f"<Unit id={self.id} key={self.unique_serial_key!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ownership": self.ownership,
            "product_id": self.product_id,
            "owner_party_id": self.owner_party_id,
            "brand": self.brand,
            "model": self.model,
            "manufacturer_serial": self.manufacturer_serial,
            "tag_code": self.tag_code,
            "unique_serial_key": self.unique_serial_key,
            "status": self.status,
            "current_location_id": self.current_location_id,
            "source_type": self.source_type,
            "source_id": self.source_id,
            "unitization_batch_id": self.unitization_batch_id,
            "rental_contract_id": self.rental_contract_id,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class UnitIdentityRevision(db.Model):
    """Append-only record of a change to a unit's identifying fields."""
    __tablename__ = "unit_identity_revisions"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    unit_id = db.Column(db.Integer, db.ForeignKey("units.id"), nullable=False, index=True)

    old_brand = db.Column(db.String(120), nullable=True)
    new_brand = db.Column(db.String(120), nullable=True)
    old_model = db.Column(db.String(120), nullable=True)
    new_model = db.Column(db.String(120), nullable=True)
    old_serial = db.Column(db.String(120), nullable=True)
    new_serial = db.Column(db.String(120), nullable=True)
    old_tag_code = db.Column(db.String(32), nullable=True)
    new_tag_code = db.Column(db.String(32), nullable=True)
    old_unique_key = db.Column(db.String(400), nullable=False)
    new_unique_key = db.Column(db.String(400), nullable=False)

    change_reason = db.Column(db.Text, nullable=False)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False)

    unit = db.relationship("Unit", backref=db.backref("identity_revisions", lazy=True, order_by="UnitIdentityRevision.id"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "unit_id": self.unit_id,
            "old_brand": self.old_brand,
            "new_brand": self.new_brand,
            "old_model": self.old_model,
            "new_model": self.new_model,
            "old_serial": self.old_serial,
            "new_serial": self.new_serial,
            "old_tag_code": self.old_tag_code,
            "new_tag_code": self.new_tag_code,
            "old_unique_key": self.old_unique_key,
            "new_unique_key": self.new_unique_key,
            "change_reason": self.change_reason,
            "occurred_at": to_utc_z(self.occurred_at),
        }


class UnitizationBatch(db.Model):
    """Conversion of untracked location stock into tracked units (totals unchanged)."""
    __tablename__ = "unitization_batches"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False)
    unit_count = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.Text, nullable=True)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False)

    units = db.relationship("Unit", backref="unitization_batch", lazy=True, foreign_keys="Unit.unitization_batch_id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "location_id": self.location_id,
            "unit_count": self.unit_count,
            "reason": self.reason,
            "occurred_at": to_utc_z(self.occurred_at),
            "unit_ids": [u.id for u in self.units],
        }
