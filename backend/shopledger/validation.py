# Overview: Strict payload coercion helpers used by request schemas.

from __future__ import annotations

from datetime import datetime
from typing import Any

from .errors import ValidationError
from .time_utils import parse_iso_datetime


# Maximum money value accepted in any single field (minor units)
MAX_AMOUNT_CENTS = 999_999_999


def parse_int(value: Any, field: str) -> int:
    """
    Strict integer coercion.

    Accepts ints and plain digit strings. Rejects bools, floats, decimals
    and scientific notation.
    """
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def parse_optional_int(value: Any, field: str) -> int | None:
    if value is None or value == "":
        return None
    return parse_int(value, field)


def parse_positive_int(value: Any, field: str) -> int:
    n = parse_int(value, field)
    if n <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    return n


def parse_amount(value: Any, field: str, *, allow_zero: bool = True) -> int:
    n = parse_int(value, field)
    if n < 0 or (n == 0 and not allow_zero):
        raise ValidationError(f"{field} must be {'>= 0' if allow_zero else '> 0'}")
    if n > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} exceeds maximum of {MAX_AMOUNT_CENTS}")
    return n


def parse_str(value: Any, field: str, *, required: bool = False, max_length: int | None = None) -> str | None:
    if value is None:
        if required:
            raise ValidationError(f"{field} is required")
        return None
    s = str(value).strip()
    if not s:
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if max_length is not None and len(s) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return s


def parse_choice(value: Any, field: str, choices: set[str], *, default: str | None = None) -> str:
    if value is None or value == "":
        if default is None:
            raise ValidationError(f"{field} is required")
        return default
    s = str(value).strip().upper()
    if s not in choices:
        raise ValidationError(f"{field} must be one of: {', '.join(sorted(choices))}")
    return s


def parse_datetime(value: Any, field: str) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return parse_iso_datetime(value)
        except ValueError:
            raise ValidationError(f"{field} must be an ISO-8601 datetime")
    raise ValidationError(f"{field} must be an ISO-8601 datetime")


def require_list(payload: dict, field: str, *, allow_empty: bool = False) -> list:
    value = payload.get(field)
    if value is None:
        if allow_empty:
            return []
        raise ValidationError(f"{field} is required")
    if not isinstance(value, list):
        raise ValidationError(f"{field} must be a list")
    if not value and not allow_empty:
        raise ValidationError(f"{field} must not be empty")
    return value


def require_mapping(value: Any, field: str) -> dict:
    if not isinstance(value, dict):
        raise ValidationError(f"{field} must be an object")
    return value
