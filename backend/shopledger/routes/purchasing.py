# backend/shopledger/routes/purchasing.py
"""Purchase bill and purchase return API routes."""

from flask import Blueprint, jsonify, request

from ..decorators import json_errors
from ..schemas import CreatePurchaseReturn, IssuePurchaseBill, UnitIntakeRow
from ..services import purchase_service, return_service
from ..validation import require_list


purchasing_bp = Blueprint("purchasing", __name__, url_prefix="/api")


@purchasing_bp.post("/purchase-bills")
@json_errors("create purchase bill")
def create_purchase_bill_route():
    """
    Create a purchase bill.

    Issued immediately unless {"draft": true} is sent. Tracked products need
    one entry in "units" per physical item.
    """
    payload = request.get_json(silent=True) or {}
    req = IssuePurchaseBill.from_payload(payload)
    if payload.get("draft"):
        bill = purchase_service.create_purchase_bill(req)
    else:
        bill = purchase_service.issue_purchase_bill(req)
    return jsonify({"purchase_bill": bill.to_dict()}), 201


@purchasing_bp.post("/purchase-bills/<int:bill_id>/issue")
@json_errors("issue purchase bill")
def issue_purchase_bill_route(bill_id: int):
    payload = request.get_json(silent=True) or {}
    rows = [UnitIntakeRow.from_payload(d, i) for i, d in enumerate(require_list(payload, "units", allow_empty=True))]
    bill = purchase_service.issue_draft_purchase_bill(bill_id, rows)
    return jsonify({"purchase_bill": bill.to_dict()}), 200


@purchasing_bp.post("/purchase-bills/<int:bill_id>/cancel")
@json_errors("cancel purchase bill")
def cancel_purchase_bill_route(bill_id: int):
    bill = purchase_service.cancel_purchase_bill(bill_id)
    return jsonify({"purchase_bill": bill.to_dict()}), 200


@purchasing_bp.post("/purchase-returns")
@json_errors("create purchase return")
def create_purchase_return_route():
    req = CreatePurchaseReturn.from_payload(request.get_json(silent=True) or {})
    purchase_return = return_service.create_purchase_return(req)
    return jsonify({"purchase_return": purchase_return.to_dict()}), 201
