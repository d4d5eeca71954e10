# Overview: Domain error taxonomy shared by services, routes and the CLI.

"""
Every error raised by the issuance engine derives from DomainError.

A DomainError carries:
- message: human readable summary
- code: stable machine code returned to API clients
- http_status: status the route layer responds with
- details: structured context (ids, requested/available quantities)

Raising any of these inside a document operation aborts the whole
transaction; nothing partial is committed.
"""

from __future__ import annotations


class DomainError(Exception):
    code = "DOMAIN_ERROR"
    http_status = 400

    def __init__(self, message: str, details: dict | None = None, *, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if code:
            self.code = code

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code, "details": self.details}


class ValidationError(DomainError, ValueError):
    """400-level input problem."""
    code = "VALIDATION_ERROR"


class NotFound(DomainError):
    code = "NOT_FOUND"
    http_status = 404


class InsufficientStock(DomainError):
    code = "INSUFFICIENT_STOCK"
    http_status = 409

    def __init__(self, product_id: int, location_id: int | None, requested: int, available: int, message: str | None = None):
        super().__init__(
            message or "Insufficient stock",
            details={
                "product_id": product_id,
                "location_id": location_id,
                "requested": requested,
                "available": available,
            },
        )
        self.product_id = product_id
        self.location_id = location_id
        self.requested = requested
        self.available = available


class DuplicateIdentity(DomainError):
    code = "DUPLICATE_IDENTITY"
    http_status = 409


class InvalidIdentity(DomainError):
    code = "INVALID_IDENTITY"


class InvalidAccount(DomainError):
    code = "INVALID_ACCOUNT"


class InvalidAmount(DomainError):
    code = "INVALID_AMOUNT"


class InvalidStateTransition(DomainError):
    code = "INVALID_STATE_TRANSITION"
    http_status = 409


class AlreadyIssued(InvalidStateTransition):
    code = "DOC_ALREADY_ISSUED"


class AppendOnlyViolation(DomainError):
    """Raised when an append-only record (movement, ledger entry, identity revision) is updated or deleted."""
    code = "APPEND_ONLY"
    http_status = 409
