from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


PRODUCT_TYPES = {"SALE", "RENT", "PART"}
PARTY_TYPES = {"CUSTOMER", "SUPPLIER", "BOTH"}


class Location(db.Model):
    """
    Physical stock location (shop floor, warehouse, service bench).

    Seeded codes: SHOP, WAREHOUSE, SERVICE. Issuance routines that do not
    name a location operate on SHOP.
    """
    __tablename__ = "locations"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_locations_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), nullable=False)
    name = db.Column(db.String(120), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Location id={self.id} code={self.code!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class Party(db.Model):
    """Customer / supplier master record (collaborator data, never mutated by issuance)."""
    __tablename__ = "parties"
    __table_args__ = (
        db.Index("ix_parties_type_active", "type", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(16), nullable=False, default="CUSTOMER")  # CUSTOMER, SUPPLIER, BOTH
    phone = db.Column(db.String(32), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "phone": self.phone,
            "is_active": self.is_active,
        }


class Product(db.Model):
    """
    Product master data.

    STOCK: `stock` is the product-wide total. It always equals the sum of
    LocationStock.quantity for the product; the only writer is
    StockLedger.apply_delta, which changes both in the same transaction.

    TRACKING: when is_asset_tracked is set, every physical item is expected
    to have a Unit row. serial_required additionally forces a manufacturer
    serial on intake.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_nonneg"),
        db.Index("ix_products_type_active", "type", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(16), nullable=False, default="SALE")  # SALE, RENT, PART

    # Authoritative storage in cents
    price_cents = db.Column(db.Integer, nullable=False, default=0)

    stock = db.Column(db.Integer, nullable=False, default=0)

    is_asset_tracked = db.Column(db.Boolean, nullable=False, default=False)
    serial_required = db.Column(db.Boolean, nullable=False, default=False)
    brand = db.Column(db.String(120), nullable=True)
    model = db.Column(db.String(120), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} title={self.title!r} stock={self.stock}>"

    @property
    def tag_kind(self) -> str:
        return "P" if self.type == "PART" else "M"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "type": self.type,
            "price_cents": self.price_cents,
            "stock": self.stock,
            "is_asset_tracked": self.is_asset_tracked,
            "serial_required": self.serial_required,
            "brand": self.brand,
            "model": self.model,
            "is_active": self.is_active,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class LocationStock(db.Model):
    """
    Per-location quantity of a product.

    Rows are created lazily the first time a location receives a product
    and are never deleted.
    """
    __tablename__ = "location_stocks"
    __table_args__ = (
        db.UniqueConstraint("location_id", "product_id", name="uq_location_stocks_location_product"),
        db.CheckConstraint("quantity >= 0", name="ck_location_stocks_quantity_nonneg"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    location = db.relationship("Location")
    product = db.relationship("Product", backref=db.backref("location_stocks", lazy=True))

    def to_dict(self) -> dict:
        return {
            "location_id": self.location_id,
            "location_code": self.location.code if self.location else None,
            "product_id": self.product_id,
            "quantity": self.quantity,
        }
