# Overview: Read-only projections (stock summary, movement history, balances, consistency check).

from __future__ import annotations

from sqlalchemy import func

from ..models import LedgerAccount, LocationStock, Product
from .catalog_service import get_product
from .ledger_service import FinancialLedger
from .movement_service import MovementLog
from .stock_service import StockLedger


def stock_summary(session, product_id: int) -> dict:
    product = get_product(session, product_id, active_only=False)
    rows = StockLedger(session).stock_by_location(product.id)
    return {
        "product_id": product.id,
        "title": product.title,
        "stock": product.stock,
        "locations": [r.to_dict() for r in rows],
    }


def movement_history(session, product_id: int, limit: int = 100) -> list[dict]:
    get_product(session, product_id, active_only=False)
    return [m.to_dict() for m in MovementLog(session).history(product_id, limit=limit)]


def account_balance(session, account_id: int) -> dict:
    ledger = FinancialLedger(session)
    balance = ledger.balance(account_id)
    account = session.get(LedgerAccount, account_id)
    return {**account.to_dict(), "balance_cents": balance}


def stock_drift(session) -> list[dict]:
    """Products whose total differs from the sum of their location rows (should always be empty)."""
    sums = (
        session.query(LocationStock.product_id, func.coalesce(func.sum(LocationStock.quantity), 0))
        .group_by(LocationStock.product_id)
        .all()
    )
    by_product = {pid: int(total) for pid, total in sums}
    drift = []
    for product in session.query(Product).order_by(Product.id).all():
        location_total = by_product.get(product.id, 0)
        if product.stock != location_total:
            drift.append({
                "product_id": product.id,
                "title": product.title,
                "stock": product.stock,
                "location_total": location_total,
            })
    return drift
