# backend/shopledger/routes/ledger.py
"""Ledger endpoints (entries, manual postings and derived balances)."""

from flask import Blueprint, jsonify, request

from ..decorators import json_errors
from ..extensions import db
from ..schemas import PostLedgerEntry
from ..services import report_service
from ..services.ledger_service import FinancialLedger, post_ledger_entry
from ..validation import parse_int, parse_optional_int


ledger_bp = Blueprint("ledger", __name__, url_prefix="/api/ledger")


@ledger_bp.get("/entries")
@json_errors("list ledger entries")
def list_entries_route():
    account_id = parse_optional_int(request.args.get("account_id"), "account_id")
    limit = max(1, min(parse_int(request.args.get("limit", "100"), "limit"), 500))
    entries = FinancialLedger(db.session).entries(account_id, limit=limit)
    return jsonify({"entries": [e.to_dict() for e in entries]}), 200


@ledger_bp.post("/entries")
@json_errors("post ledger entry")
def post_entry_route():
    """
    Record a manual money movement.

    Request body:
    {
        "account_id": int, "direction": "IN" | "OUT", "amount_cents": int,
        "note": str?, "occurred_at": iso-8601?, "ref_type": str?, "ref_id": int?
    }
    """
    req = PostLedgerEntry.from_payload(request.get_json(silent=True) or {})
    entry = post_ledger_entry(req)
    return jsonify({"entry": entry.to_dict()}), 201


@ledger_bp.get("/accounts/<int:account_id>/balance")
@json_errors("load account balance")
def account_balance_route(account_id: int):
    return jsonify(report_service.account_balance(db.session, account_id)), 200
