from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


ACCOUNT_KINDS = {"CASH", "BANK", "BKASH", "NAGAD"}
LEDGER_DIRECTIONS = {"IN", "OUT"}


class LedgerAccount(db.Model):
    """
    A cash / bank / mobile wallet account.

    The balance is never stored: it is opening_balance_cents plus the sum of
    IN entries minus the sum of OUT entries, computed on demand.
    """
    __tablename__ = "ledger_accounts"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_ledger_accounts_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    kind = db.Column(db.String(16), nullable=False)  # CASH, BANK, BKASH, NAGAD
    opening_balance_cents = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<LedgerAccount id={self.id} name={self.name!r} kind={self.kind}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind,
            "opening_balance_cents": self.opening_balance_cents,
            "is_active": self.is_active,
        }


class LedgerEntry(db.Model):
    """Append-only single-sided money movement on one account."""
    __tablename__ = "ledger_entries"
    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="ck_ledger_entries_amount_positive"),
        db.CheckConstraint("direction IN ('IN', 'OUT')", name="ck_ledger_entries_direction"),
        db.Index("ix_ledger_entries_account_occurred", "account_id", "occurred_at"),
        db.Index("ix_ledger_entries_ref", "ref_type", "ref_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("ledger_accounts.id"), nullable=False, index=True)
    direction = db.Column(db.String(4), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)

    ref_type = db.Column(db.String(48), nullable=True)
    ref_id = db.Column(db.Integer, nullable=True)
    note = db.Column(db.Text, nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    account = db.relationship("LedgerAccount")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "direction": self.direction,
            "amount_cents": self.amount_cents,
            "ref_type": self.ref_type,
            "ref_id": self.ref_id,
            "note": self.note,
            "occurred_at": to_utc_z(self.occurred_at),
        }
