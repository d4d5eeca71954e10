# backend/shopledger/routes/sales.py
"""POS, invoice and order API routes."""

from flask import Blueprint, jsonify, request

from ..decorators import json_errors
from ..schemas import CreateOrder, CreatePosSale, CreateSalesInvoice, RecordInvoicePayment, UpdateOrderStatus
from ..services import invoice_service, order_service, pos_service


sales_bp = Blueprint("sales", __name__, url_prefix="/api")


@sales_bp.post("/pos")
@json_errors("create POS sale")
def create_pos_sale_route():
    """
    Checkout at the counter.

    Request body:
    {
        "payment_method": "CASH" | "BKASH" | "NAGAD" | "BANK",
        "lines": [{"product_id": int, "quantity": int, "unit_ids": [int]?}],
        "location_id": int?, "party_id": int?, "discount_cents": int?
    }
    """
    req = CreatePosSale.from_payload(request.get_json(silent=True) or {})
    invoice = pos_service.create_pos_sale(req)
    return jsonify({"invoice": invoice.to_dict()}), 201


@sales_bp.post("/invoices")
@json_errors("create invoice")
def create_invoice_route():
    req = CreateSalesInvoice.from_payload(request.get_json(silent=True) or {})
    invoice = invoice_service.create_sales_invoice(req)
    return jsonify({"invoice": invoice.to_dict()}), 201


@sales_bp.post("/invoices/<int:invoice_id>/issue")
@json_errors("issue invoice")
def issue_invoice_route(invoice_id: int):
    invoice = invoice_service.issue_sales_invoice(invoice_id)
    return jsonify({"invoice": invoice.to_dict()}), 200


@sales_bp.post("/invoices/<int:invoice_id>/cancel")
@json_errors("cancel invoice")
def cancel_invoice_route(invoice_id: int):
    invoice = invoice_service.cancel_sales_invoice(invoice_id)
    return jsonify({"invoice": invoice.to_dict()}), 200


@sales_bp.post("/invoices/<int:invoice_id>/payments")
@json_errors("record invoice payment")
def record_payment_route(invoice_id: int):
    req = RecordInvoicePayment.from_payload(invoice_id, request.get_json(silent=True) or {})
    result = invoice_service.record_invoice_payment(req)
    return jsonify(result), 201


@sales_bp.post("/orders")
@json_errors("create order")
def create_order_route():
    req = CreateOrder.from_payload(request.get_json(silent=True) or {})
    order = order_service.create_order(req)
    return jsonify({"order": order.to_dict()}), 201


@sales_bp.patch("/orders/<int:order_id>")
@json_errors("update order")
def update_order_route(order_id: int):
    """Change status (PENDING/CONFIRMED/CANCELLED) and/or payment_status (UNPAID/PAID)."""
    req = UpdateOrderStatus.from_payload(order_id, request.get_json(silent=True) or {})
    order = order_service.update_order_status(req)
    return jsonify({"order": order.to_dict()}), 200


@sales_bp.post("/orders/<int:order_id>/generate-invoice")
@json_errors("generate invoice from order")
def generate_invoice_route(order_id: int):
    invoice = order_service.generate_invoice_from_order(order_id)
    return jsonify({"invoice": invoice.to_dict()}), 200
