# Overview: Request objects for document operations, parsed strictly from JSON payloads.

"""
Each operation takes one request dataclass. from_payload() does all input
coercion (strict integers, enumerations, required fields) so services only
deal with typed values. Parsing errors raise ValidationError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .errors import ValidationError
from .validation import (
    parse_amount,
    parse_choice,
    parse_datetime,
    parse_int,
    parse_optional_int,
    parse_positive_int,
    parse_str,
    require_list,
    require_mapping,
)


PAYMENT_METHODS = {"CASH", "COD", "BKASH", "NAGAD", "BANK"}


def _unit_ids(raw, field_name: str) -> list[int]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError(f"{field_name} must be a list")
    return [parse_int(v, field_name) for v in raw]


@dataclass
class LineInput:
    product_id: int
    quantity: int
    unit_price_cents: int | None = None
    unit_ids: list[int] = field(default_factory=list)

    @classmethod
    def from_payload(cls, data: dict, index: int = 0) -> "LineInput":
        data = require_mapping(data, f"lines[{index}]")
        return cls(
            product_id=parse_int(data.get("product_id"), f"lines[{index}].product_id"),
            quantity=parse_positive_int(data.get("quantity"), f"lines[{index}].quantity"),
            unit_price_cents=(
                parse_amount(data["unit_price_cents"], f"lines[{index}].unit_price_cents")
                if data.get("unit_price_cents") is not None
                else None
            ),
            unit_ids=_unit_ids(data.get("unit_ids"), f"lines[{index}].unit_ids"),
        )


def _lines(payload: dict, key: str = "lines") -> list[LineInput]:
    return [LineInput.from_payload(d, i) for i, d in enumerate(require_list(payload, key))]


@dataclass
class UnitIntakeRow:
    product_id: int | None = None
    brand: str | None = None
    model: str | None = None
    serial: str | None = None
    tag_code: str | None = None
    notes: str | None = None

    @classmethod
    def from_payload(cls, data: dict, index: int = 0) -> "UnitIntakeRow":
        data = require_mapping(data, f"units[{index}]")
        return cls(
            product_id=parse_optional_int(data.get("product_id"), f"units[{index}].product_id"),
            brand=parse_str(data.get("brand"), "brand", max_length=120),
            model=parse_str(data.get("model"), "model", max_length=120),
            serial=parse_str(data.get("serial"), "serial", max_length=120),
            tag_code=parse_str(data.get("tag_code"), "tag_code", max_length=32),
            notes=parse_str(data.get("notes"), "notes"),
        )


def _units(payload: dict, key: str = "units") -> list[UnitIntakeRow]:
    return [UnitIntakeRow.from_payload(d, i) for i, d in enumerate(require_list(payload, key, allow_empty=True))]


# =============================================================================
# Sales
# =============================================================================

@dataclass
class CreatePosSale:
    lines: list[LineInput]
    payment_method: str = "CASH"
    location_id: int | None = None
    party_id: int | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    discount_cents: int = 0
    notes: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "CreatePosSale":
        return cls(
            lines=_lines(payload),
            payment_method=parse_choice(payload.get("payment_method"), "payment_method", PAYMENT_METHODS, default="CASH"),
            location_id=parse_optional_int(payload.get("location_id"), "location_id"),
            party_id=parse_optional_int(payload.get("party_id"), "party_id"),
            customer_name=parse_str(payload.get("customer_name"), "customer_name", max_length=255),
            customer_phone=parse_str(payload.get("customer_phone"), "customer_phone", max_length=32),
            discount_cents=parse_amount(payload.get("discount_cents", 0), "discount_cents"),
            notes=parse_str(payload.get("notes"), "notes"),
        )


@dataclass
class CreateSalesInvoice:
    lines: list[LineInput]
    party_id: int | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    payment_method: str = "COD"
    discount_cents: int = 0
    delivery_fee_cents: int = 0
    location_id: int | None = None
    notes: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "CreateSalesInvoice":
        return cls(
            lines=_lines(payload),
            party_id=parse_optional_int(payload.get("party_id"), "party_id"),
            customer_name=parse_str(payload.get("customer_name"), "customer_name", max_length=255),
            customer_phone=parse_str(payload.get("customer_phone"), "customer_phone", max_length=32),
            payment_method=parse_choice(payload.get("payment_method"), "payment_method", PAYMENT_METHODS, default="COD"),
            discount_cents=parse_amount(payload.get("discount_cents", 0), "discount_cents"),
            delivery_fee_cents=parse_amount(payload.get("delivery_fee_cents", 0), "delivery_fee_cents"),
            location_id=parse_optional_int(payload.get("location_id"), "location_id"),
            notes=parse_str(payload.get("notes"), "notes"),
        )


@dataclass
class RecordInvoicePayment:
    invoice_id: int
    account_id: int
    amount_cents: int
    note: str | None = None

    @classmethod
    def from_payload(cls, invoice_id: int, payload: dict) -> "RecordInvoicePayment":
        return cls(
            invoice_id=invoice_id,
            account_id=parse_int(payload.get("account_id"), "account_id"),
            amount_cents=parse_amount(payload.get("amount_cents"), "amount_cents", allow_zero=False),
            note=parse_str(payload.get("note"), "note"),
        )


# =============================================================================
# Orders
# =============================================================================

ORDER_STATUSES = {"PENDING", "CONFIRMED", "CANCELLED"}
ORDER_PAYMENT_STATUSES = {"UNPAID", "PAID"}


@dataclass
class CreateOrder:
    lines: list[LineInput]
    customer_name: str
    customer_phone: str | None = None
    delivery_address: str | None = None
    party_id: int | None = None
    delivery_fee_cents: int = 0
    notes: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "CreateOrder":
        return cls(
            lines=_lines(payload),
            customer_name=parse_str(payload.get("customer_name"), "customer_name", required=True, max_length=255),
            customer_phone=parse_str(payload.get("customer_phone"), "customer_phone", max_length=32),
            delivery_address=parse_str(payload.get("delivery_address"), "delivery_address"),
            party_id=parse_optional_int(payload.get("party_id"), "party_id"),
            delivery_fee_cents=parse_amount(payload.get("delivery_fee_cents", 0), "delivery_fee_cents"),
            notes=parse_str(payload.get("notes"), "notes"),
        )


@dataclass
class UpdateOrderStatus:
    order_id: int
    status: str | None = None
    payment_status: str | None = None

    @classmethod
    def from_payload(cls, order_id: int, payload: dict) -> "UpdateOrderStatus":
        status = payload.get("status")
        payment_status = payload.get("payment_status")
        if status is None and payment_status is None:
            raise ValidationError("status or payment_status is required")
        return cls(
            order_id=order_id,
            status=parse_choice(status, "status", ORDER_STATUSES) if status is not None else None,
            payment_status=(
                parse_choice(payment_status, "payment_status", ORDER_PAYMENT_STATUSES)
                if payment_status is not None
                else None
            ),
        )


# =============================================================================
# Purchasing
# =============================================================================

@dataclass
class PurchaseLineInput:
    product_id: int
    quantity: int
    unit_cost_cents: int = 0

    @classmethod
    def from_payload(cls, data: dict, index: int = 0) -> "PurchaseLineInput":
        data = require_mapping(data, f"lines[{index}]")
        return cls(
            product_id=parse_int(data.get("product_id"), f"lines[{index}].product_id"),
            quantity=parse_positive_int(data.get("quantity"), f"lines[{index}].quantity"),
            unit_cost_cents=parse_amount(data.get("unit_cost_cents", 0), f"lines[{index}].unit_cost_cents"),
        )


@dataclass
class IssuePurchaseBill:
    lines: list[PurchaseLineInput]
    supplier_party_id: int | None = None
    location_id: int | None = None
    units: list[UnitIntakeRow] = field(default_factory=list)
    notes: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "IssuePurchaseBill":
        return cls(
            lines=[PurchaseLineInput.from_payload(d, i) for i, d in enumerate(require_list(payload, "lines"))],
            supplier_party_id=parse_optional_int(payload.get("supplier_party_id"), "supplier_party_id"),
            location_id=parse_optional_int(payload.get("location_id"), "location_id"),
            units=_units(payload),
            notes=parse_str(payload.get("notes"), "notes"),
        )


# =============================================================================
# Returns / write-offs / transfers / adjustments
# =============================================================================

@dataclass
class CreateSalesReturn:
    invoice_id: int
    lines: list[LineInput]
    refund_amount_cents: int = 0
    refund_account_id: int | None = None
    refund_method: str | None = None
    reason: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "CreateSalesReturn":
        return cls(
            invoice_id=parse_int(payload.get("invoice_id"), "invoice_id"),
            lines=_lines(payload),
            refund_amount_cents=parse_amount(payload.get("refund_amount_cents", 0), "refund_amount_cents"),
            refund_account_id=parse_optional_int(payload.get("refund_account_id"), "refund_account_id"),
            refund_method=(
                parse_choice(payload["refund_method"], "refund_method", PAYMENT_METHODS)
                if payload.get("refund_method")
                else None
            ),
            reason=parse_str(payload.get("reason"), "reason"),
        )


@dataclass
class CreatePurchaseReturn:
    purchase_bill_id: int
    lines: list[LineInput]
    refund_amount_cents: int = 0
    refund_account_id: int | None = None
    refund_method: str | None = None
    reason: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "CreatePurchaseReturn":
        return cls(
            purchase_bill_id=parse_int(payload.get("purchase_bill_id"), "purchase_bill_id"),
            lines=_lines(payload),
            refund_amount_cents=parse_amount(payload.get("refund_amount_cents", 0), "refund_amount_cents"),
            refund_account_id=parse_optional_int(payload.get("refund_account_id"), "refund_account_id"),
            refund_method=(
                parse_choice(payload["refund_method"], "refund_method", PAYMENT_METHODS)
                if payload.get("refund_method")
                else None
            ),
            reason=parse_str(payload.get("reason"), "reason"),
        )


@dataclass
class CreateWriteOff:
    lines: list[LineInput]
    location_id: int | None = None
    reason: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "CreateWriteOff":
        return cls(
            lines=_lines(payload),
            location_id=parse_optional_int(payload.get("location_id"), "location_id"),
            reason=parse_str(payload.get("reason"), "reason"),
        )


@dataclass
class CreateStockTransfer:
    from_location_id: int
    to_location_id: int
    lines: list[LineInput]
    note: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "CreateStockTransfer":
        return cls(
            from_location_id=parse_int(payload.get("from_location_id"), "from_location_id"),
            to_location_id=parse_int(payload.get("to_location_id"), "to_location_id"),
            lines=_lines(payload),
            note=parse_str(payload.get("note"), "note"),
        )


ADJUSTMENT_MODES = {"DELTA", "SET"}


@dataclass
class AdjustmentLine:
    product_id: int
    value: int

    @classmethod
    def from_payload(cls, data: dict, index: int, mode: str) -> "AdjustmentLine":
        data = require_mapping(data, f"lines[{index}]")
        value = parse_int(data.get("value"), f"lines[{index}].value")
        if mode == "SET" and value < 0:
            raise ValidationError(f"lines[{index}].value must be >= 0 for SET")
        return cls(product_id=parse_int(data.get("product_id"), f"lines[{index}].product_id"), value=value)


@dataclass
class AdjustInventory:
    mode: str
    lines: list[AdjustmentLine]
    location_id: int | None = None
    reason: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "AdjustInventory":
        mode = parse_choice(payload.get("mode"), "mode", ADJUSTMENT_MODES, default="DELTA")
        if "lines" not in payload and "product_id" in payload:
            # single-product form: {product_id, mode, value}
            raw_lines = [{"product_id": payload.get("product_id"), "value": payload.get("value")}]
        else:
            raw_lines = require_list(payload, "lines")
        return cls(
            mode=mode,
            lines=[AdjustmentLine.from_payload(d, i, mode) for i, d in enumerate(raw_lines)],
            location_id=parse_optional_int(payload.get("location_id"), "location_id"),
            reason=parse_str(payload.get("reason"), "reason"),
        )


# =============================================================================
# Rentals
# =============================================================================

@dataclass
class RentalLineInput:
    product_id: int
    quantity: int
    monthly_rate_cents: int

    @classmethod
    def from_payload(cls, data: dict, index: int = 0) -> "RentalLineInput":
        data = require_mapping(data, f"lines[{index}]")
        return cls(
            product_id=parse_int(data.get("product_id"), f"lines[{index}].product_id"),
            quantity=parse_positive_int(data.get("quantity"), f"lines[{index}].quantity"),
            monthly_rate_cents=parse_amount(data.get("monthly_rate_cents"), f"lines[{index}].monthly_rate_cents"),
        )


@dataclass
class CreateRentalContract:
    customer_name: str
    lines: list[RentalLineInput]
    party_id: int | None = None
    deposit_cents: int = 0
    start_date: datetime | None = None
    end_date: datetime | None = None
    notes: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "CreateRentalContract":
        return cls(
            customer_name=parse_str(payload.get("customer_name"), "customer_name", required=True, max_length=255),
            lines=[RentalLineInput.from_payload(d, i) for i, d in enumerate(require_list(payload, "lines"))],
            party_id=parse_optional_int(payload.get("party_id"), "party_id"),
            deposit_cents=parse_amount(payload.get("deposit_cents", 0), "deposit_cents"),
            start_date=parse_datetime(payload.get("start_date"), "start_date"),
            end_date=parse_datetime(payload.get("end_date"), "end_date"),
            notes=parse_str(payload.get("notes"), "notes"),
        )


@dataclass
class GenerateRentalBill:
    contract_id: int
    period: str | None = None
    amount_cents: int | None = None

    @classmethod
    def from_payload(cls, contract_id: int, payload: dict) -> "GenerateRentalBill":
        period = parse_str(payload.get("period"), "period", max_length=7)
        if period is not None:
            parts = period.split("-")
            if len(parts) != 2 or not all(p.isdigit() for p in parts) or len(parts[0]) != 4 or not 1 <= int(parts[1]) <= 12:
                raise ValidationError("period must be YYYY-MM")
            period = f"{parts[0]}-{int(parts[1]):02d}"
        amount = payload.get("amount_cents")
        return cls(
            contract_id=contract_id,
            period=period,
            amount_cents=parse_amount(amount, "amount_cents", allow_zero=False) if amount is not None else None,
        )


# =============================================================================
# Units
# =============================================================================

@dataclass
class RegisterUnit:
    ownership: str
    brand: str | None = None
    model: str | None = None
    serial: str | None = None
    tag_code: str | None = None
    product_id: int | None = None
    owner_party_id: int | None = None
    location_id: int | None = None
    notes: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "RegisterUnit":
        return cls(
            ownership=parse_choice(payload.get("ownership"), "ownership", {"OWNED", "CUSTOMER_OWNED", "RENTED_IN"}),
            brand=parse_str(payload.get("brand"), "brand", max_length=120),
            model=parse_str(payload.get("model"), "model", max_length=120),
            serial=parse_str(payload.get("serial"), "serial", max_length=120),
            tag_code=parse_str(payload.get("tag_code"), "tag_code", max_length=32),
            product_id=parse_optional_int(payload.get("product_id"), "product_id"),
            owner_party_id=parse_optional_int(payload.get("owner_party_id"), "owner_party_id"),
            location_id=parse_optional_int(payload.get("location_id"), "location_id"),
            notes=parse_str(payload.get("notes"), "notes"),
        )


@dataclass
class ReviseUnitIdentity:
    unit_id: int
    change_reason: str
    brand: str | None = None
    model: str | None = None
    serial: str | None = None
    tag_code: str | None = None

    @classmethod
    def from_payload(cls, unit_id: int, payload: dict) -> "ReviseUnitIdentity":
        return cls(
            unit_id=unit_id,
            change_reason=parse_str(payload.get("change_reason"), "change_reason", required=True),
            brand=parse_str(payload.get("brand"), "brand", max_length=120),
            model=parse_str(payload.get("model"), "model", max_length=120),
            # "" clears the serial, absent keeps it
            serial=payload["serial"].strip() if isinstance(payload.get("serial"), str) else None,
            tag_code=parse_str(payload.get("tag_code"), "tag_code", max_length=32),
        )


@dataclass
class ChangeUnitStatus:
    unit_id: int
    status: str
    location_id: int | None = None
    note: str | None = None

    @classmethod
    def from_payload(cls, unit_id: int, payload: dict) -> "ChangeUnitStatus":
        return cls(
            unit_id=unit_id,
            status=parse_str(payload.get("status"), "status", required=True).upper(),
            location_id=parse_optional_int(payload.get("location_id"), "location_id"),
            note=parse_str(payload.get("note"), "note"),
        )


@dataclass
class UnitizeStock:
    product_id: int
    units: list[UnitIntakeRow]
    location_id: int | None = None
    reason: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "UnitizeStock":
        units = _units(payload)
        count = payload.get("count")
        if count is not None:
            n = parse_positive_int(count, "count")
            if n > 1000:
                raise ValidationError("At most 1000 units can be unitized at once")
            if units and len(units) != n:
                raise ValidationError("count does not match the number of units provided")
            if not units:
                units = [UnitIntakeRow() for _ in range(n)]
        if not units:
            raise ValidationError("count or units is required")
        return cls(
            product_id=parse_int(payload.get("product_id"), "product_id"),
            units=units,
            location_id=parse_optional_int(payload.get("location_id"), "location_id"),
            reason=parse_str(payload.get("reason"), "reason"),
        )


# =============================================================================
# Ledger
# =============================================================================

@dataclass
class PostLedgerEntry:
    account_id: int
    direction: str
    amount_cents: int
    note: str | None = None
    occurred_at: datetime | None = None
    ref_type: str | None = None
    ref_id: int | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "PostLedgerEntry":
        # Sign and zero checks belong to the ledger, which raises InvalidAmount.
        return cls(
            account_id=parse_int(payload.get("account_id"), "account_id"),
            direction=parse_choice(payload.get("direction"), "direction", {"IN", "OUT"}),
            amount_cents=parse_int(payload.get("amount_cents"), "amount_cents"),
            note=parse_str(payload.get("note"), "note"),
            occurred_at=parse_datetime(payload.get("occurred_at"), "occurred_at"),
            ref_type=parse_str(payload.get("ref_type"), "ref_type", max_length=48),
            ref_id=parse_optional_int(payload.get("ref_id"), "ref_id"),
        )
