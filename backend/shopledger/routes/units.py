# backend/shopledger/routes/units.py
"""Serialized unit API routes."""

from flask import Blueprint, jsonify, request

from ..decorators import json_errors
from ..extensions import db
from ..schemas import ChangeUnitStatus, RegisterUnit, ReviseUnitIdentity, UnitizeStock
from ..services import tracking_service


units_bp = Blueprint("units", __name__, url_prefix="/api/units")


@units_bp.post("")
@json_errors("register unit")
def register_unit_route():
    req = RegisterUnit.from_payload(request.get_json(silent=True) or {})
    unit = tracking_service.register_unit(req)
    return jsonify({"unit": unit.to_dict()}), 201


@units_bp.get("/<int:unit_id>")
@json_errors("load unit")
def get_unit_route(unit_id: int):
    unit = tracking_service.get_unit(db.session, unit_id)
    return jsonify({
        "unit": unit.to_dict(),
        "identity_revisions": [r.to_dict() for r in unit.identity_revisions],
    }), 200


@units_bp.patch("/<int:unit_id>/status")
@json_errors("change unit status")
def change_status_route(unit_id: int):
    req = ChangeUnitStatus.from_payload(unit_id, request.get_json(silent=True) or {})
    unit = tracking_service.change_unit_status(req)
    return jsonify({"unit": unit.to_dict()}), 200


@units_bp.patch("/<int:unit_id>/identity")
@json_errors("revise unit identity")
def revise_identity_route(unit_id: int):
    """Body: {"change_reason": str, "brand"?, "model"?, "serial"?, "tag_code"?}"""
    req = ReviseUnitIdentity.from_payload(unit_id, request.get_json(silent=True) or {})
    revision = tracking_service.revise_unit_identity(req)
    return jsonify({"revision": revision.to_dict()}), 200


@units_bp.post("/unitize-stock")
@json_errors("unitize stock")
def unitize_stock_route():
    """Body: {"product_id": int, "location_id": int?, "count": int?, "units": [...]?, "reason": str?}"""
    req = UnitizeStock.from_payload(request.get_json(silent=True) or {})
    batch = tracking_service.unitize_stock(req)
    return jsonify({"batch": batch.to_dict()}), 201
