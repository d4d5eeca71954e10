# backend/shopledger/routes/inventory.py
"""
Inventory routes: sales returns, write-offs, transfers, adjustments and
stock read projections.
"""

from flask import Blueprint, jsonify, request

from ..decorators import json_errors
from ..extensions import db
from ..schemas import AdjustInventory, CreateSalesReturn, CreateStockTransfer, CreateWriteOff
from ..services import adjustment_service, report_service, return_service, transfer_service, write_off_service
from ..validation import parse_int


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api")


@inventory_bp.post("/sales-returns")
@json_errors("create sales return")
def create_sales_return_route():
    req = CreateSalesReturn.from_payload(request.get_json(silent=True) or {})
    sales_return = return_service.create_sales_return(req)
    return jsonify({"sales_return": sales_return.to_dict()}), 201


@inventory_bp.post("/write-offs")
@json_errors("create write-off")
def create_write_off_route():
    req = CreateWriteOff.from_payload(request.get_json(silent=True) or {})
    write_off = write_off_service.create_write_off(req)
    return jsonify({"write_off": write_off.to_dict()}), 201


@inventory_bp.post("/stock-transfers")
@json_errors("create stock transfer")
def create_stock_transfer_route():
    req = CreateStockTransfer.from_payload(request.get_json(silent=True) or {})
    transfer = transfer_service.create_stock_transfer(req)
    return jsonify({"stock_transfer": transfer.to_dict()}), 201


@inventory_bp.post("/inventory/adjust")
@json_errors("adjust inventory")
def adjust_inventory_route():
    """
    Request body:
    {"mode": "DELTA" | "SET", "product_id": int, "value": int, "location_id": int?, "reason": str?}
    or {"mode": ..., "lines": [{"product_id": int, "value": int}], ...}
    """
    req = AdjustInventory.from_payload(request.get_json(silent=True) or {})
    adjustment = adjustment_service.adjust_inventory(req)
    return jsonify({"adjustment": adjustment.to_dict()}), 201


@inventory_bp.get("/products/<int:product_id>/stock")
@json_errors("load stock summary")
def stock_summary_route(product_id: int):
    return jsonify(report_service.stock_summary(db.session, product_id)), 200


@inventory_bp.get("/products/<int:product_id>/movements")
@json_errors("load movement history")
def movement_history_route(product_id: int):
    limit = parse_int(request.args.get("limit", "100"), "limit")
    limit = max(1, min(limit, 500))
    return jsonify({"movements": report_service.movement_history(db.session, product_id, limit)}), 200
