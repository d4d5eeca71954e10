# backend/shopledger/routes/rentals.py
"""Rental contract and rental bill API routes."""

from flask import Blueprint, jsonify, request

from ..decorators import json_errors
from ..schemas import CreateRentalContract, GenerateRentalBill
from ..services import rental_service
from ..validation import parse_optional_int


rentals_bp = Blueprint("rentals", __name__, url_prefix="/api")


@rentals_bp.post("/rentals")
@json_errors("create rental contract")
def create_rental_route():
    req = CreateRentalContract.from_payload(request.get_json(silent=True) or {})
    contract = rental_service.create_rental_contract(req)
    return jsonify({"contract": contract.to_dict()}), 201


@rentals_bp.post("/rentals/<int:contract_id>/activate")
@json_errors("activate rental contract")
def activate_rental_route(contract_id: int):
    contract = rental_service.activate_rental_contract(contract_id)
    return jsonify({"contract": contract.to_dict()}), 200


@rentals_bp.post("/rentals/<int:contract_id>/close")
@json_errors("close rental contract")
def close_rental_route(contract_id: int):
    contract = rental_service.close_rental_contract(contract_id)
    return jsonify({"contract": contract.to_dict()}), 200


@rentals_bp.post("/rentals/<int:contract_id>/cancel")
@json_errors("cancel rental contract")
def cancel_rental_route(contract_id: int):
    contract = rental_service.cancel_rental_contract(contract_id)
    return jsonify({"contract": contract.to_dict()}), 200


@rentals_bp.post("/rentals/<int:contract_id>/bills")
@json_errors("generate rental bill")
def generate_bill_route(contract_id: int):
    req = GenerateRentalBill.from_payload(contract_id, request.get_json(silent=True) or {})
    bill = rental_service.generate_rental_bill(req)
    return jsonify({"bill": bill.to_dict()}), 201


@rentals_bp.post("/rental-bills/<int:bill_id>/issue")
@json_errors("issue rental bill")
def issue_bill_route(bill_id: int):
    bill = rental_service.issue_rental_bill(bill_id)
    return jsonify({"bill": bill.to_dict()}), 200


@rentals_bp.post("/rental-bills/<int:bill_id>/cancel")
@json_errors("cancel rental bill")
def cancel_bill_route(bill_id: int):
    bill = rental_service.cancel_rental_bill(bill_id)
    return jsonify({"bill": bill.to_dict()}), 200


@rentals_bp.post("/rental-bills/<int:bill_id>/mark-paid")
@json_errors("mark rental bill paid")
def mark_bill_paid_route(bill_id: int):
    payload = request.get_json(silent=True) or {}
    account_id = parse_optional_int(payload.get("account_id"), "account_id")
    bill = rental_service.mark_rental_bill_paid(bill_id, account_id)
    return jsonify({"bill": bill.to_dict()}), 200
