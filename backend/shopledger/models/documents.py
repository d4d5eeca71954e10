from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class DocumentSequence(db.Model):
    """
    Monotonic counter per document family.

    next_number is the value the NEXT allocation returns. It is advanced
    with a single row-locked UPDATE in the issuing transaction, so a
    rollback also rolls the counter back.
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("family", name="uq_document_sequences_family"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    family = db.Column(db.String(48), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)

    def to_dict(self) -> dict:
        return {"family": self.family, "next_number": self.next_number}


def _line_dict(line) -> dict:
    return {
        "id": line.id,
        "product_id": line.product_id,
        "title": line.title_snapshot,
        "unit_price_cents": line.unit_price_cents,
        "quantity": line.quantity,
        "line_total_cents": line.line_total_cents,
    }


# =============================================================================
# Orders
# =============================================================================

class Order(db.Model):
    """
    Customer order. Stock is reserved (taken from SHOP) at creation.

    LIFECYCLE: PENDING -> CONFIRMED -> CANCELLED (PENDING -> CANCELLED allowed).
    Cancelling returns the stock; a cancelled order cannot be reopened.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.UniqueConstraint("document_number", name="uq_orders_document_number"),
        db.Index("ix_orders_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    number = db.Column(db.Integer, nullable=False)
    document_number = db.Column(db.String(32), nullable=False)

    party_id = db.Column(db.Integer, db.ForeignKey("parties.id"), nullable=True)
    customer_name = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(32), nullable=True)
    delivery_address = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="PENDING", index=True)
    payment_status = db.Column(db.String(16), nullable=False, default="UNPAID")

    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    delivery_fee_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False, default=0)

    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    items = db.relationship("OrderItem", backref="order", lazy=True, order_by="OrderItem.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "document_number": self.document_number,
            "party_id": self.party_id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "delivery_address": self.delivery_address,
            "status": self.status,
            "payment_status": self.payment_status,
            "subtotal_cents": self.subtotal_cents,
            "delivery_fee_cents": self.delivery_fee_cents,
            "total_cents": self.total_cents,
            "location_id": self.location_id,
            "invoice_id": self.invoice.id if self.invoice else None,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "cancelled_at": to_utc_z(self.cancelled_at),
            "items": [_line_dict(i) for i in self.items],
        }


class OrderItem(db.Model):
    __tablename__ = "order_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    title_snapshot = db.Column(db.String(255), nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)


# =============================================================================
# Sales invoices
# =============================================================================

class SalesInvoice(db.Model):
    """
    Sales invoice.

    LIFECYCLE: DRAFT -> ISSUED -> CANCELLED (DRAFT -> CANCELLED allowed).
    source records where the invoice came from: MANUAL, POS or ORDER.
    stock_posted is set when issuing the invoice itself took stock out
    (false for invoices generated from orders, whose stock left at order time).
    """
    __tablename__ = "sales_invoices"
    __table_args__ = (
        db.UniqueConstraint("document_number", name="uq_sales_invoices_document_number"),
        db.Index("ix_sales_invoices_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    number = db.Column(db.Integer, nullable=False)
    document_number = db.Column(db.String(32), nullable=False)

    source = db.Column(db.String(16), nullable=False, default="MANUAL")
    party_id = db.Column(db.Integer, db.ForeignKey("parties.id"), nullable=True)
    customer_name = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)

    status = db.Column(db.String(16), nullable=False, default="DRAFT", index=True)
    payment_method = db.Column(db.String(16), nullable=True)  # COD, BKASH, NAGAD, BANK
    payment_status = db.Column(db.String(16), nullable=False, default="UNPAID")

    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    delivery_fee_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False, default=0)

    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False)
    stock_posted = db.Column(db.Boolean, nullable=False, default=False)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True, index=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    issued_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    items = db.relationship("SalesInvoiceItem", backref="invoice", lazy=True, order_by="SalesInvoiceItem.id")
    order = db.relationship("Order", backref=db.backref("invoice", uselist=False))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "document_number": self.document_number,
            "source": self.source,
            "party_id": self.party_id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "status": self.status,
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "subtotal_cents": self.subtotal_cents,
            "discount_cents": self.discount_cents,
            "delivery_fee_cents": self.delivery_fee_cents,
            "total_cents": self.total_cents,
            "location_id": self.location_id,
            "stock_posted": self.stock_posted,
            "order_id": self.order_id,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "issued_at": to_utc_z(self.issued_at),
            "cancelled_at": to_utc_z(self.cancelled_at),
            "items": [_line_dict(i) for i in self.items],
        }


class SalesInvoiceItem(db.Model):
    __tablename__ = "sales_invoice_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("sales_invoices.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    title_snapshot = db.Column(db.String(255), nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)


# =============================================================================
# Purchase bills
# =============================================================================

class PurchaseBill(db.Model):
    """
    Supplier bill. Issuing it receives stock into location_id and creates
    the units of tracked lines.

    LIFECYCLE: DRAFT -> ISSUED, DRAFT -> CANCELLED.
    """
    __tablename__ = "purchase_bills"
    __table_args__ = (
        db.UniqueConstraint("document_number", name="uq_purchase_bills_document_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    number = db.Column(db.Integer, nullable=False)
    document_number = db.Column(db.String(32), nullable=False)

    supplier_party_id = db.Column(db.Integer, db.ForeignKey("parties.id"), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="DRAFT", index=True)
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False)

    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    issued_at = db.Column(db.DateTime(timezone=True), nullable=True)

    items = db.relationship("PurchaseBillItem", backref="bill", lazy=True, order_by="PurchaseBillItem.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "document_number": self.document_number,
            "supplier_party_id": self.supplier_party_id,
            "status": self.status,
            "location_id": self.location_id,
            "subtotal_cents": self.subtotal_cents,
            "total_cents": self.total_cents,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "issued_at": to_utc_z(self.issued_at),
            "items": [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "title": i.title_snapshot,
                    "unit_cost_cents": i.unit_cost_cents,
                    "quantity": i.quantity,
                    "line_total_cents": i.line_total_cents,
                }
                for i in self.items
            ],
        }


class PurchaseBillItem(db.Model):
    __tablename__ = "purchase_bill_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    bill_id = db.Column(db.Integer, db.ForeignKey("purchase_bills.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    title_snapshot = db.Column(db.String(255), nullable=False)
    unit_cost_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    product = db.relationship("Product")


# =============================================================================
# Returns
# =============================================================================

class SalesReturn(db.Model):
    """Customer return against an ISSUED sales invoice. Created ISSUED."""
    __tablename__ = "sales_returns"
    __table_args__ = (
        db.UniqueConstraint("document_number", name="uq_sales_returns_document_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    number = db.Column(db.Integer, nullable=False)
    document_number = db.Column(db.String(32), nullable=False)

    invoice_id = db.Column(db.Integer, db.ForeignKey("sales_invoices.id"), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default="ISSUED")
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False)
    total_cents = db.Column(db.Integer, nullable=False, default=0)
    reason = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    items = db.relationship("SalesReturnItem", backref="sales_return", lazy=True, order_by="SalesReturnItem.id")
    refunds = db.relationship("SalesReturnRefund", backref="sales_return", lazy=True)
    invoice = db.relationship("SalesInvoice")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "document_number": self.document_number,
            "invoice_id": self.invoice_id,
            "status": self.status,
            "location_id": self.location_id,
            "total_cents": self.total_cents,
            "refund_cents": sum(r.amount_cents for r in self.refunds),
            "reason": self.reason,
            "created_at": to_utc_z(self.created_at),
            "items": [_line_dict(i) for i in self.items],
        }


class SalesReturnItem(db.Model):
    __tablename__ = "sales_return_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    sales_return_id = db.Column(db.Integer, db.ForeignKey("sales_returns.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    title_snapshot = db.Column(db.String(255), nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)


class SalesReturnRefund(db.Model):
    __tablename__ = "sales_return_refunds"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    sales_return_id = db.Column(db.Integer, db.ForeignKey("sales_returns.id"), nullable=False, index=True)
    account_id = db.Column(db.Integer, db.ForeignKey("ledger_accounts.id"), nullable=False)
    ledger_entry_id = db.Column(db.Integer, db.ForeignKey("ledger_entries.id"), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())


class PurchaseReturn(db.Model):
    """Return of received goods to the supplier. Created ISSUED."""
    __tablename__ = "purchase_returns"
    __table_args__ = (
        db.UniqueConstraint("document_number", name="uq_purchase_returns_document_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    number = db.Column(db.Integer, nullable=False)
    document_number = db.Column(db.String(32), nullable=False)

    purchase_bill_id = db.Column(db.Integer, db.ForeignKey("purchase_bills.id"), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default="ISSUED")
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False)
    total_cents = db.Column(db.Integer, nullable=False, default=0)

    refund_account_id = db.Column(db.Integer, db.ForeignKey("ledger_accounts.id"), nullable=True)
    refund_cents = db.Column(db.Integer, nullable=False, default=0)
    reason = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    items = db.relationship("PurchaseReturnItem", backref="purchase_return", lazy=True, order_by="PurchaseReturnItem.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "document_number": self.document_number,
            "purchase_bill_id": self.purchase_bill_id,
            "status": self.status,
            "location_id": self.location_id,
            "total_cents": self.total_cents,
            "refund_account_id": self.refund_account_id,
            "refund_cents": self.refund_cents,
            "reason": self.reason,
            "created_at": to_utc_z(self.created_at),
            "items": [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "title": i.title_snapshot,
                    "unit_cost_cents": i.unit_cost_cents,
                    "quantity": i.quantity,
                    "line_total_cents": i.line_total_cents,
                }
                for i in self.items
            ],
        }


class PurchaseReturnItem(db.Model):
    __tablename__ = "purchase_return_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    purchase_return_id = db.Column(db.Integer, db.ForeignKey("purchase_returns.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    title_snapshot = db.Column(db.String(255), nullable=False)
    unit_cost_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)


# =============================================================================
# Write-offs, transfers, adjustments
# =============================================================================

class WriteOff(db.Model):
    """Damaged / lost stock removal. Created ISSUED, valued at product price."""
    __tablename__ = "write_offs"
    __table_args__ = (
        db.UniqueConstraint("document_number", name="uq_write_offs_document_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    number = db.Column(db.Integer, nullable=False)
    document_number = db.Column(db.String(32), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="ISSUED")
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False)
    total_value_cents = db.Column(db.Integer, nullable=False, default=0)
    reason = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    items = db.relationship("WriteOffItem", backref="write_off", lazy=True, order_by="WriteOffItem.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "document_number": self.document_number,
            "status": self.status,
            "location_id": self.location_id,
            "total_value_cents": self.total_value_cents,
            "reason": self.reason,
            "created_at": to_utc_z(self.created_at),
            "items": [_line_dict(i) for i in self.items],
        }


class WriteOffItem(db.Model):
    __tablename__ = "write_off_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    write_off_id = db.Column(db.Integer, db.ForeignKey("write_offs.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    title_snapshot = db.Column(db.String(255), nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)


class StockTransfer(db.Model):
    """Move stock between two locations. Created ISSUED; product totals unchanged."""
    __tablename__ = "stock_transfers"
    __table_args__ = (
        db.UniqueConstraint("document_number", name="uq_stock_transfers_document_number"),
        db.CheckConstraint("from_location_id <> to_location_id", name="ck_stock_transfers_distinct_locations"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    number = db.Column(db.Integer, nullable=False)
    document_number = db.Column(db.String(32), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="ISSUED")
    from_location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False)
    to_location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False)
    note = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    items = db.relationship("StockTransferItem", backref="transfer", lazy=True, order_by="StockTransferItem.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "document_number": self.document_number,
            "status": self.status,
            "from_location_id": self.from_location_id,
            "to_location_id": self.to_location_id,
            "note": self.note,
            "created_at": to_utc_z(self.created_at),
            "items": [
                {"id": i.id, "product_id": i.product_id, "quantity": i.quantity}
                for i in self.items
            ],
        }


class StockTransferItem(db.Model):
    __tablename__ = "stock_transfer_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    transfer_id = db.Column(db.Integer, db.ForeignKey("stock_transfers.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)


class StockAdjustment(db.Model):
    """
    Manual stock correction at one location.

    mode DELTA applies a signed change; mode SET sets the location quantity
    to an absolute value (the delta is derived under lock).
    """
    __tablename__ = "stock_adjustments"
    __table_args__ = (
        db.UniqueConstraint("document_number", name="uq_stock_adjustments_document_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    number = db.Column(db.Integer, nullable=False)
    document_number = db.Column(db.String(32), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="ISSUED")
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False)
    mode = db.Column(db.String(8), nullable=False)  # DELTA, SET
    reason = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    items = db.relationship("StockAdjustmentItem", backref="adjustment", lazy=True, order_by="StockAdjustmentItem.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "document_number": self.document_number,
            "status": self.status,
            "location_id": self.location_id,
            "mode": self.mode,
            "reason": self.reason,
            "created_at": to_utc_z(self.created_at),
            "items": [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "delta": i.delta,
                    "before_quantity": i.before_quantity,
                    "after_quantity": i.after_quantity,
                }
                for i in self.items
            ],
        }


class StockAdjustmentItem(db.Model):
    __tablename__ = "stock_adjustment_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    adjustment_id = db.Column(db.Integer, db.ForeignKey("stock_adjustments.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    delta = db.Column(db.Integer, nullable=False)
    before_quantity = db.Column(db.Integer, nullable=False)
    after_quantity = db.Column(db.Integer, nullable=False)
