# Overview: Status state machines for every document family.

"""
Document lifecycle tables.

Each family has an explicit set of allowed (from, to) transitions. Every
status change in the services goes through require_transition, so a
transition that is not in the table cannot happen.

    SALES_INVOICE:    DRAFT -> ISSUED -> CANCELLED, DRAFT -> CANCELLED
    PURCHASE_BILL:    DRAFT -> ISSUED, DRAFT -> CANCELLED
    ORDER:            PENDING -> CONFIRMED -> CANCELLED, PENDING -> CANCELLED
    RENTAL_CONTRACT:  DRAFT -> ACTIVE -> CLOSED, DRAFT -> CANCELLED
    RENTAL_BILL:      DRAFT -> ISSUED -> CANCELLED, DRAFT -> CANCELLED

Returns, write-offs, transfers and adjustments are created ISSUED and have
no further transitions.
"""

from __future__ import annotations

from ..errors import AlreadyIssued, InvalidStateTransition, ValidationError


TRANSITIONS: dict[str, set[tuple[str, str]]] = {
    "SALES_INVOICE": {("DRAFT", "ISSUED"), ("DRAFT", "CANCELLED"), ("ISSUED", "CANCELLED")},
    "PURCHASE_BILL": {("DRAFT", "ISSUED"), ("DRAFT", "CANCELLED")},
    "ORDER": {("PENDING", "CONFIRMED"), ("PENDING", "CANCELLED"), ("CONFIRMED", "CANCELLED")},
    "RENTAL_CONTRACT": {("DRAFT", "ACTIVE"), ("DRAFT", "CANCELLED"), ("ACTIVE", "CLOSED")},
    "RENTAL_BILL": {("DRAFT", "ISSUED"), ("DRAFT", "CANCELLED"), ("ISSUED", "CANCELLED")},
    "SALES_RETURN": set(),
    "PURCHASE_RETURN": set(),
    "WRITE_OFF": set(),
    "STOCK_TRANSFER": set(),
    "STOCK_ADJUSTMENT": set(),
}


def statuses_for(family: str) -> set[str]:
    if family not in TRANSITIONS:
        raise ValidationError(f"Unknown document family '{family}'")
    statuses = {s for pair in TRANSITIONS[family] for s in pair}
    return statuses or {"ISSUED"}


def can_transition(family: str, current: str, target: str) -> bool:
    if family not in TRANSITIONS:
        raise ValidationError(f"Unknown document family '{family}'")
    return (current, target) in TRANSITIONS[family]


def require_transition(family: str, current: str, target: str, *, doc_id: int | None = None) -> None:
    """
    Raise unless current -> target is allowed for the family.

    Re-issuing an issued document raises AlreadyIssued so callers can tell a
    duplicate submit apart from a genuinely invalid move.
    """
    if can_transition(family, current, target):
        return
    details = {"family": family, "from": current, "to": target, "id": doc_id}
    if current == target == "ISSUED":
        raise AlreadyIssued("Document is already issued", details=details)
    raise InvalidStateTransition(
        f"Cannot change {family.lower().replace('_', ' ')} from {current} to {target}",
        details=details,
    )
