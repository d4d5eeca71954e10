# Overview: Cash / bank ledger postings and derived balances.

from __future__ import annotations

from flask import current_app
from sqlalchemy import case, func

from ..errors import InvalidAccount, InvalidAmount, ValidationError
from ..extensions import db
from ..models import LedgerAccount, LedgerEntry
from ..models.ledger import LEDGER_DIRECTIONS
from ..time_utils import utcnow
from .concurrency import lock_for_update, run_in_transaction


# Payment method (as entered at the counter) -> ledger account kind
PAYMENT_METHOD_ACCOUNT_KIND = {
    "CASH": "CASH",
    "COD": "CASH",
    "BKASH": "BKASH",
    "NAGAD": "NAGAD",
    "BANK": "BANK",
}


class FinancialLedger:
    """
    Single-sided money movements per account.

    Balances are derived (opening + IN - OUT) at read time; nothing caches
    them, so a balance read after commit always reflects every entry.
    """

    def __init__(self, session, clock=utcnow):
        self.session = session
        self.clock = clock

    def lock_account(self, account_id: int | None) -> LedgerAccount:
        if account_id is None:
            raise InvalidAccount("Ledger account is required")
        account = lock_for_update(self.session.query(LedgerAccount).filter_by(id=account_id)).first()
        if not account:
            raise InvalidAccount("Ledger account not found", details={"account_id": account_id})
        if not account.is_active:
            raise InvalidAccount("Ledger account is inactive", details={"account_id": account_id})
        return account

    def post(
        self,
        account_id: int | None,
        direction: str,
        amount: int,
        ref_type: str | None = None,
        ref_id: int | None = None,
        note: str | None = None,
        occurred_at=None,
    ) -> LedgerEntry:
        if direction not in LEDGER_DIRECTIONS:
            raise ValidationError(f"Invalid ledger direction '{direction}'")
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise InvalidAmount("Ledger amount must be a positive integer", details={"amount": amount})

        account = self.lock_account(account_id)
        entry = LedgerEntry(
            account_id=account.id,
            direction=direction,
            amount_cents=amount,
            ref_type=ref_type,
            ref_id=ref_id,
            note=note,
            occurred_at=occurred_at or self.clock(),
        )
        self.session.add(entry)
        self.session.flush()
        return entry

    def balance(self, account_id: int) -> int:
        account = self.session.get(LedgerAccount, account_id)
        if not account:
            raise InvalidAccount("Ledger account not found", details={"account_id": account_id})
        net = (
            self.session.query(
                func.coalesce(
                    func.sum(
                        case(
                            (LedgerEntry.direction == "IN", LedgerEntry.amount_cents),
                            else_=-LedgerEntry.amount_cents,
                        )
                    ),
                    0,
                )
            )
            .filter(LedgerEntry.account_id == account_id)
            .scalar()
        )
        return account.opening_balance_cents + int(net or 0)

    def account_for_kind(self, kind: str) -> LedgerAccount:
        """First active account of a kind (CASH, BANK, BKASH, NAGAD)."""
        account = (
            self.session.query(LedgerAccount)
            .filter_by(kind=kind, is_active=True)
            .order_by(LedgerAccount.id)
            .first()
        )
        if not account:
            raise InvalidAccount(f"No active {kind} ledger account", details={"kind": kind})
        return account

    def account_for_payment_method(self, method: str) -> LedgerAccount:
        kind = PAYMENT_METHOD_ACCOUNT_KIND.get((method or "").upper())
        if not kind:
            raise ValidationError(f"Unsupported payment method '{method}'")
        return self.account_for_kind(kind)

    def total_for_reference(self, ref_type: str, ref_id: int, direction: str = "IN") -> int:
        total = (
            self.session.query(func.coalesce(func.sum(LedgerEntry.amount_cents), 0))
            .filter_by(ref_type=ref_type, ref_id=ref_id, direction=direction)
            .scalar()
        )
        return int(total or 0)

    def entries(self, account_id: int | None = None, limit: int = 100) -> list[LedgerEntry]:
        query = self.session.query(LedgerEntry)
        if account_id is not None:
            query = query.filter_by(account_id=account_id)
        return query.order_by(LedgerEntry.id.desc()).limit(limit).all()


def post_ledger_entry(req, ledger: FinancialLedger | None = None) -> LedgerEntry:
    """Manual posting (owner drawings, expenses, opening corrections)."""
    ledger = ledger or FinancialLedger(db.session)

    def _op():
        entry = ledger.post(
            req.account_id,
            req.direction,
            req.amount_cents,
            ref_type=req.ref_type,
            ref_id=req.ref_id,
            note=req.note,
            occurred_at=req.occurred_at,
        )
        current_app.logger.info(
            "Ledger %s %s on account %s (entry id=%s)", entry.direction, entry.amount_cents, entry.account_id, entry.id
        )
        return entry

    return run_in_transaction(_op)
