from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class RentalContract(db.Model):
    """
    Rental of RENT-type products to a customer.

    LIFECYCLE: DRAFT -> ACTIVE -> CLOSED, DRAFT -> CANCELLED.
    Activation takes the stock out of SHOP, closing brings it back.
    """
    __tablename__ = "rental_contracts"
    __table_args__ = (
        db.UniqueConstraint("document_number", name="uq_rental_contracts_document_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    number = db.Column(db.Integer, nullable=False)
    document_number = db.Column(db.String(32), nullable=False)

    party_id = db.Column(db.Integer, db.ForeignKey("parties.id"), nullable=True)
    customer_name = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="DRAFT", index=True)
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False)

    deposit_cents = db.Column(db.Integer, nullable=False, default=0)
    monthly_total_cents = db.Column(db.Integer, nullable=False, default=0)
    start_date = db.Column(db.DateTime(timezone=True), nullable=True)
    end_date = db.Column(db.DateTime(timezone=True), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    activated_at = db.Column(db.DateTime(timezone=True), nullable=True)
    closed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    items = db.relationship("RentalContractItem", backref="contract", lazy=True, order_by="RentalContractItem.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "document_number": self.document_number,
            "party_id": self.party_id,
            "customer_name": self.customer_name,
            "status": self.status,
            "location_id": self.location_id,
            "deposit_cents": self.deposit_cents,
            "monthly_total_cents": self.monthly_total_cents,
            "start_date": to_utc_z(self.start_date),
            "end_date": to_utc_z(self.end_date),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "activated_at": to_utc_z(self.activated_at),
            "closed_at": to_utc_z(self.closed_at),
            "items": [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "title": i.title_snapshot,
                    "quantity": i.quantity,
                    "monthly_rate_cents": i.monthly_rate_cents,
                }
                for i in self.items
            ],
        }


class RentalContractItem(db.Model):
    __tablename__ = "rental_contract_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    contract_id = db.Column(db.Integer, db.ForeignKey("rental_contracts.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    title_snapshot = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    monthly_rate_cents = db.Column(db.Integer, nullable=False)


class RentalBill(db.Model):
    """
    Periodic bill for an ACTIVE rental contract.

    LIFECYCLE: DRAFT -> ISSUED -> CANCELLED (DRAFT -> CANCELLED allowed).
    Only one bill per (contract, period).
    """
    __tablename__ = "rental_bills"
    __table_args__ = (
        db.UniqueConstraint("document_number", name="uq_rental_bills_document_number"),
        db.UniqueConstraint("contract_id", "period", name="uq_rental_bills_contract_period"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    number = db.Column(db.Integer, nullable=False)
    document_number = db.Column(db.String(32), nullable=False)

    contract_id = db.Column(db.Integer, db.ForeignKey("rental_contracts.id"), nullable=False, index=True)
    period = db.Column(db.String(7), nullable=False)  # YYYY-MM
    status = db.Column(db.String(16), nullable=False, default="DRAFT")
    payment_status = db.Column(db.String(16), nullable=False, default="UNPAID")
    amount_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    issued_at = db.Column(db.DateTime(timezone=True), nullable=True)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)

    contract = db.relationship("RentalContract", backref=db.backref("bills", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "document_number": self.document_number,
            "contract_id": self.contract_id,
            "period": self.period,
            "status": self.status,
            "payment_status": self.payment_status,
            "amount_cents": self.amount_cents,
            "created_at": to_utc_z(self.created_at),
            "issued_at": to_utc_z(self.issued_at),
            "paid_at": to_utc_z(self.paid_at),
        }
