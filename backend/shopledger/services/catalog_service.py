# Overview: Read-only collaborator lookups (products, locations, parties, accounts).

from __future__ import annotations

from flask import current_app

from ..errors import NotFound, ValidationError
from ..models import Location, Party, Product


def get_product(session, product_id: int, *, active_only: bool = True) -> Product:
    product = session.get(Product, product_id)
    if not product:
        raise NotFound("Product not found", details={"product_id": product_id})
    if active_only and not product.is_active:
        raise ValidationError("Product is inactive", details={"product_id": product_id})
    return product


def get_location(session, location_id: int, *, active_only: bool = True) -> Location:
    location = session.get(Location, location_id)
    if not location:
        raise NotFound("Location not found", details={"location_id": location_id})
    if active_only and not location.is_active:
        raise ValidationError("Location is inactive", details={"location_id": location_id})
    return location


def location_by_code(session, code: str) -> Location:
    location = session.query(Location).filter_by(code=code).first()
    if not location:
        raise NotFound(f"Location {code} is not configured", details={"code": code})
    return location


def resolve_location(session, location_id: int | None) -> Location:
    """Given location, or the default stock location (SHOP) when none is named."""
    if location_id is not None:
        return get_location(session, location_id)
    return location_by_code(session, current_app.config.get("DEFAULT_LOCATION_CODE", "SHOP"))


def get_party(session, party_id: int | None, *, party_type: str | None = None) -> Party | None:
    if party_id is None:
        return None
    party = session.get(Party, party_id)
    if not party:
        raise NotFound("Party not found", details={"party_id": party_id})
    if party_type and party.type not in (party_type, "BOTH"):
        raise ValidationError(f"Party is not a {party_type.lower()}", details={"party_id": party_id})
    return party
