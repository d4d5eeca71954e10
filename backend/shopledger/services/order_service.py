# Overview: Customer orders; stock reserved at creation, reversed on cancellation.

from __future__ import annotations

from ..errors import InvalidStateTransition, NotFound, ValidationError
from ..models import Order, OrderItem, SalesInvoice, SalesInvoiceItem, SalesReturn
from .catalog_service import get_party, location_by_code
from .concurrency import lock_for_update, run_in_transaction
from .issuance import IssuanceContext, compute_totals, log_issued, snapshot_lines
from .lifecycle_service import require_transition
from .stock_service import aggregate_demands


REF_ORDER = "ORDER"
REF_ORDER_CANCEL = "ORDER_CANCEL"


def _lock_order(ctx: IssuanceContext, order_id: int) -> Order:
    order = lock_for_update(ctx.session.query(Order).filter_by(id=order_id)).first()
    if not order:
        raise NotFound("Order not found", details={"order_id": order_id})
    return order


def create_order(req, ctx: IssuanceContext | None = None) -> Order:
    """PENDING order. Stock leaves SHOP immediately."""
    ctx = ctx or IssuanceContext.default()

    def _op():
        shop = location_by_code(ctx.session, "SHOP")
        get_party(ctx.session, req.party_id, party_type="CUSTOMER")
        snapshots = snapshot_lines(ctx, req.lines)
        ctx.stock.ensure_available(aggregate_demands(snapshots, shop.id))

        number, label = ctx.counter.next_label("order")
        order = Order(
            number=number,
            document_number=label,
            party_id=req.party_id,
            customer_name=req.customer_name,
            customer_phone=req.customer_phone,
            delivery_address=req.delivery_address,
            status="PENDING",
            payment_status="UNPAID",
            delivery_fee_cents=req.delivery_fee_cents,
            location_id=shop.id,
            notes=req.notes,
        )
        ctx.session.add(order)
        ctx.session.flush()

        subtotal = 0
        for line in snapshots:
            ctx.session.add(
                OrderItem(
                    order_id=order.id,
                    product_id=line.product_id,
                    title_snapshot=line.title,
                    unit_price_cents=line.unit_price_cents,
                    quantity=line.quantity,
                    line_total_cents=line.line_total_cents,
                )
            )
            subtotal += line.line_total_cents
            units = ctx.units_leaving(line.product_id, shop.id, line.quantity)
            ctx.post_stock(
                line.product_id,
                shop.id,
                -line.quantity,
                ref_type=REF_ORDER,
                ref_id=order.id,
                note=f"Order {label}",
            )
            ctx.units.retire(units, "SOLD")

        order.subtotal_cents = subtotal
        order.total_cents = compute_totals(subtotal, 0, req.delivery_fee_cents)
        log_issued(order, "Created")
        return order

    return run_in_transaction(_op)


def _cancel_order_invoice(ctx: IssuanceContext, order: Order) -> None:
    """Cancel the invoice generated from the order, unless it has ISSUED returns."""
    invoice = lock_for_update(ctx.session.query(SalesInvoice).filter_by(order_id=order.id)).first()
    if invoice is None or invoice.status == "CANCELLED":
        return
    has_returns = (
        ctx.session.query(SalesReturn.id)
        .filter_by(invoice_id=invoice.id, status="ISSUED")
        .first()
    )
    if has_returns:
        raise InvalidStateTransition(
            "Order invoice has returns; the order cannot be cancelled",
            details={"order_id": order.id, "invoice_id": invoice.id},
        )
    require_transition("SALES_INVOICE", invoice.status, "CANCELLED", doc_id=invoice.id)
    invoice.status = "CANCELLED"
    invoice.cancelled_at = ctx.clock()
    log_issued(invoice, "Cancelled with order")


def update_order_status(req, ctx: IssuanceContext | None = None) -> Order:
    """
    Change status and/or payment status of an order.

    Moving to CANCELLED returns every line to SHOP with a compensating IN
    movement and cancels the invoice generated from the order. An order
    whose invoice has ISSUED returns cannot be cancelled. CANCELLED is terminal.
    """
    ctx = ctx or IssuanceContext.default()

    def _op():
        order = _lock_order(ctx, req.order_id)

        if req.status is not None and req.status != order.status:
            require_transition("ORDER", order.status, req.status, doc_id=order.id)
            if req.status == "CANCELLED":
                _cancel_order_invoice(ctx, order)
                shop = location_by_code(ctx.session, "SHOP")
                for item in order.items:
                    ctx.post_stock(
                        item.product_id,
                        shop.id,
                        item.quantity,
                        ref_type=REF_ORDER_CANCEL,
                        ref_id=order.id,
                        note=f"Cancel {order.document_number}",
                    )
                order.cancelled_at = ctx.clock()
            order.status = req.status
            log_issued(order, f"Order -> {req.status}")

        if req.payment_status is not None:
            if order.status == "CANCELLED" and req.payment_status != order.payment_status:
                raise ValidationError("Cannot change payment status of a cancelled order", details={"order_id": order.id})
            order.payment_status = req.payment_status

        ctx.session.flush()
        return order

    return run_in_transaction(_op)


def generate_invoice_from_order(order_id: int, ctx: IssuanceContext | None = None) -> SalesInvoice:
    """
    ISSUED invoice mirroring a CONFIRMED order.

    No stock moves (the order already took it). Idempotent: a second call
    returns the invoice created by the first.
    """
    ctx = ctx or IssuanceContext.default()

    def _op():
        order = _lock_order(ctx, order_id)
        existing = ctx.session.query(SalesInvoice).filter_by(order_id=order.id).first()
        if existing:
            return existing
        if order.status != "CONFIRMED":
            raise ValidationError(
                "Only confirmed orders can be invoiced",
                details={"order_id": order.id, "status": order.status},
            )

        number, label = ctx.counter.next_label("sales")
        invoice = SalesInvoice(
            number=number,
            document_number=label,
            source="ORDER",
            party_id=order.party_id,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            status="ISSUED",
            payment_method="COD",
            payment_status="PAID" if order.payment_status == "PAID" else "UNPAID",
            subtotal_cents=order.subtotal_cents,
            delivery_fee_cents=order.delivery_fee_cents,
            total_cents=order.total_cents,
            location_id=order.location_id,
            stock_posted=False,
            order_id=order.id,
            issued_at=ctx.clock(),
        )
        ctx.session.add(invoice)
        ctx.session.flush()
        for item in order.items:
            ctx.session.add(
                SalesInvoiceItem(
                    invoice_id=invoice.id,
                    product_id=item.product_id,
                    title_snapshot=item.title_snapshot,
                    unit_price_cents=item.unit_price_cents,
                    quantity=item.quantity,
                    line_total_cents=item.line_total_cents,
                )
            )
        ctx.session.flush()
        log_issued(invoice)
        return invoice

    return run_in_transaction(_op)
