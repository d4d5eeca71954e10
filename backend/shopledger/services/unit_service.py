# Overview: Serialized unit identity, intake preparation and unit lifecycle.

"""
Unit Identity Registry.

IDENTITY RULES:
- A unit is identified by unique_serial_key.
- With a manufacturer serial the key is BRAND-MODEL-SERIAL, each part
  normalized (uppercased, trimmed, every run of non-alphanumerics collapsed
  to a single '-', leading/trailing '-' removed).
- Without a serial the key is the unit's tag (SS-M-000001 for machines,
  SS-P-000001 for parts), provided by the caller or allocated here.
- Keys are globally unique. Duplicates are rejected within a batch and
  against persisted units before anything is written.

STATUS RULES:
- SOLD, SCRAPPED, RETURNED_TO_SUPPLIER and RETURNED_TO_CUSTOMER are terminal.
- Identity of a terminal unit cannot be revised.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from sqlalchemy import or_

from ..errors import DuplicateIdentity, InvalidIdentity, InvalidStateTransition, NotFound, ValidationError
from ..models import Location, Party, Product, Unit, UnitIdentityRevision, UnitizationBatch
from ..models.units import OWNERSHIP_TYPES, TERMINAL_UNIT_STATUSES, UNIT_STATUS_AVAILABLE, UNIT_STATUSES
from ..time_utils import utcnow
from .concurrency import lock_for_update
from .sequence_service import SequenceCounter


MAX_UNITIZE_BATCH = 1000

_NON_ALNUM = re.compile(r"[^A-Z0-9]+")


def normalize_identity_part(value: str | None) -> str:
    s = (value or "").strip().upper()
    return _NON_ALNUM.sub("-", s).strip("-")


def compute_key(brand: str | None, model: str | None, serial: str | None) -> str:
    parts = [normalize_identity_part(p) for p in (brand, model, serial)]
    if not all(parts):
        raise InvalidIdentity(
            "Brand, model and serial must each contain at least one letter or digit",
            details={"brand": brand, "model": model, "serial": serial},
        )
    return "-".join(parts)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


@dataclass
class PreparedUnit:
    product_id: int
    brand: str
    model: str
    manufacturer_serial: str | None
    tag_code: str | None
    unique_serial_key: str
    notes: str | None = None


class UnitRegistry:
    def __init__(self, session, counter: SequenceCounter, clock=utcnow):
        self.session = session
        self.counter = counter
        self.clock = clock

    # ------------------------------------------------------------------
    # identity
    # ------------------------------------------------------------------

    def allocate_tag(self, kind: str) -> str:
        if kind not in ("M", "P"):
            raise ValidationError(f"Invalid tag kind '{kind}'")
        n = self.counter.next_number(f"unit-tag-{kind}")
        return f"SS-{kind}-{n:06d}"

    def _existing_keys(self, keys: list[str], tags: list[str]) -> set[str]:
        if not keys and not tags:
            return set()
        conditions = []
        if keys:
            conditions.append(Unit.unique_serial_key.in_(keys))
        if tags:
            conditions.append(Unit.tag_code.in_(tags))
        rows = self.session.query(Unit.unique_serial_key, Unit.tag_code).filter(or_(*conditions)).all()
        found = set()
        for key, tag in rows:
            found.add(key)
            if tag:
                found.add(tag)
        return found

    def _ensure_unique(self, prepared: list[PreparedUnit]) -> None:
        seen: set[str] = set()
        for p in prepared:
            if p.unique_serial_key in seen:
                raise DuplicateIdentity(
                    "Duplicate unit identity in batch",
                    details={"unique_serial_key": p.unique_serial_key},
                )
            seen.add(p.unique_serial_key)

        tags = [p.tag_code for p in prepared if p.tag_code]
        existing = self._existing_keys([p.unique_serial_key for p in prepared], tags)
        for p in prepared:
            if p.unique_serial_key in existing or (p.tag_code and p.tag_code in existing):
                raise DuplicateIdentity(
                    "Unit identity already exists",
                    details={"unique_serial_key": p.unique_serial_key, "tag_code": p.tag_code},
                )

    def _resolve_identity(self, product: Product | None, row) -> PreparedUnit:
        brand = _clean(row.brand) or (product.brand if product else None)
        model = _clean(row.model) or (product.model if product else None)
        serial = _clean(row.serial)
        tag = _clean(row.tag_code)

        if not _clean(brand) or not _clean(model):
            raise InvalidIdentity(
                "Brand and model are required for tracked units",
                details={"product_id": product.id if product else None},
            )
        if product is not None and product.serial_required and not serial:
            raise InvalidIdentity(
                "Serial number is required for this product",
                details={"product_id": product.id},
            )

        if serial:
            key = compute_key(brand, model, serial)
        elif tag:
            key = normalize_identity_part(tag)
            if not key:
                raise InvalidIdentity("Tag code is empty after normalization", details={"tag_code": tag})
            tag = key
        else:
            key = ""  # allocated after validation

        return PreparedUnit(
            product_id=product.id if product else None,
            brand=brand,
            model=model,
            manufacturer_serial=serial,
            tag_code=tag,
            unique_serial_key=key,
            notes=_clean(getattr(row, "notes", None)),
        )

    def _allocate_missing_tags(self, prepared: list[PreparedUnit], kinds: dict[int, str]) -> None:
        for p in prepared:
            if not p.unique_serial_key:
                p.tag_code = self.allocate_tag(kinds.get(p.product_id, "M"))
                p.unique_serial_key = p.tag_code

    def prepare_intake(self, tracked: dict[int, int], rows: list) -> list[PreparedUnit]:
        """
        Validate and resolve unit identities for the tracked lines of a document.

        tracked maps product_id -> quantity for every tracked product on the
        document. rows are intake rows (product_id, brand, model, serial,
        tag_code, notes). Nothing is persisted; tags are allocated from the
        counter in the caller's transaction.
        """
        counts: dict[int, int] = {}
        for row in rows:
            if row.product_id not in tracked:
                raise InvalidIdentity(
                    "Unit row does not match a tracked line",
                    details={"product_id": row.product_id},
                )
            counts[row.product_id] = counts.get(row.product_id, 0) + 1

        for product_id, qty in tracked.items():
            if counts.get(product_id, 0) != qty:
                raise InvalidIdentity(
                    "Unit rows must match the tracked quantity",
                    details={"product_id": product_id, "expected": qty, "received": counts.get(product_id, 0)},
                )

        products = {
            p.id: p for p in self.session.query(Product).filter(Product.id.in_(list(tracked))).all()
        } if tracked else {}

        prepared = []
        for row in rows:
            product = products.get(row.product_id)
            if product is None:
                raise NotFound("Product not found", details={"product_id": row.product_id})
            prepared.append(self._resolve_identity(product, row))

        self._ensure_unique([p for p in prepared if p.unique_serial_key])
        self._allocate_missing_tags(prepared, {pid: p.tag_kind for pid, p in products.items()})
        self._ensure_unique(prepared)
        return prepared

    def create_units(
        self,
        prepared: list[PreparedUnit],
        *,
        location_id: int | None,
        source_type: str | None,
        source_id: int | None,
        ownership: str = "OWNED",
        owner_party_id: int | None = None,
        unitization_batch_id: int | None = None,
    ) -> list[Unit]:
        units = []
        for p in prepared:
            unit = Unit(
                ownership=ownership,
                product_id=p.product_id,
                owner_party_id=owner_party_id,
                brand=p.brand,
                model=p.model,
                manufacturer_serial=p.manufacturer_serial,
                tag_code=p.tag_code,
                unique_serial_key=p.unique_serial_key,
                status="AVAILABLE",
                current_location_id=location_id,
                source_type=source_type,
                source_id=source_id,
                unitization_batch_id=unitization_batch_id,
                notes=p.notes,
            )
            self.session.add(unit)
            units.append(unit)
        self.session.flush()
        return units

    # ------------------------------------------------------------------
    # standalone registration / revision / status
    # ------------------------------------------------------------------

    def register_unit(self, req) -> Unit:
        """Register a unit that is not shop stock (customer-owned or rented in)."""
        if req.ownership not in OWNERSHIP_TYPES:
            raise ValidationError(f"ownership must be one of: {', '.join(sorted(OWNERSHIP_TYPES))}")
        if req.ownership == "OWNED":
            raise ValidationError("Owned units are created by purchase bills or stock unitization")
        if req.ownership == "CUSTOMER_OWNED":
            if not req.owner_party_id or not self.session.get(Party, req.owner_party_id):
                raise ValidationError("Customer-owned units require an existing owner party")

        product = None
        if req.product_id is not None:
            product = self.session.get(Product, req.product_id)
            if not product:
                raise NotFound("Product not found", details={"product_id": req.product_id})
        if req.location_id is not None and not self.session.get(Location, req.location_id):
            raise NotFound("Location not found", details={"location_id": req.location_id})

        prepared = [self._resolve_identity(product, req)]
        self._ensure_unique([p for p in prepared if p.unique_serial_key])
        self._allocate_missing_tags(prepared, {product.id: product.tag_kind} if product else {})
        self._ensure_unique(prepared)

        return self.create_units(
            prepared,
            location_id=req.location_id,
            source_type="MANUAL",
            source_id=None,
            ownership=req.ownership,
            owner_party_id=req.owner_party_id,
        )[0]

    def lock_unit(self, unit_id: int) -> Unit:
        unit = lock_for_update(self.session.query(Unit).filter_by(id=unit_id)).first()
        if not unit:
            raise NotFound("Unit not found", details={"unit_id": unit_id})
        return unit

    def revise_identity(self, unit_id: int, *, brand=None, model=None, serial=None, tag_code=None, reason: str | None = None) -> UnitIdentityRevision:
        if not _clean(reason):
            raise ValidationError("change_reason is required")
        unit = self.lock_unit(unit_id)
        if unit.is_terminal:
            raise InvalidStateTransition(
                "Identity of a unit in a terminal status cannot be changed",
                details={"unit_id": unit.id, "status": unit.status},
            )

        new_brand = _clean(brand) or unit.brand
        new_model = _clean(model) or unit.model
        new_serial = _clean(serial) if serial is not None else unit.manufacturer_serial
        new_tag = normalize_identity_part(tag_code) if _clean(tag_code) else unit.tag_code

        product = self.session.get(Product, unit.product_id) if unit.product_id else None
        if product is not None and product.serial_required and not new_serial:
            raise InvalidIdentity("Serial number is required for this product", details={"product_id": product.id})

        if new_serial:
            new_key = compute_key(new_brand, new_model, new_serial)
        elif new_tag:
            new_key = new_tag
        else:
            raise InvalidIdentity("A unit needs a serial or a tag", details={"unit_id": unit.id})

        unchanged = (
            new_brand == unit.brand
            and new_model == unit.model
            and new_serial == unit.manufacturer_serial
            and new_tag == unit.tag_code
        )
        if unchanged:
            raise ValidationError("No identity fields changed", details={"unit_id": unit.id})

        clash = (
            self.session.query(Unit.id)
            .filter(Unit.id != unit.id)
            .filter(or_(Unit.unique_serial_key == new_key, Unit.tag_code == new_tag) if new_tag else Unit.unique_serial_key == new_key)
            .first()
        )
        if clash:
            raise DuplicateIdentity("Unit identity already exists", details={"unique_serial_key": new_key})

        revision = UnitIdentityRevision(
            unit_id=unit.id,
            old_brand=unit.brand,
            new_brand=new_brand,
            old_model=unit.model,
            new_model=new_model,
            old_serial=unit.manufacturer_serial,
            new_serial=new_serial,
            old_tag_code=unit.tag_code,
            new_tag_code=new_tag,
            old_unique_key=unit.unique_serial_key,
            new_unique_key=new_key,
            change_reason=reason.strip(),
            occurred_at=self.clock(),
        )
        unit.brand = new_brand
        unit.model = new_model
        unit.manufacturer_serial = new_serial
        unit.tag_code = new_tag
        unit.unique_serial_key = new_key
        self.session.add(revision)
        self.session.flush()
        return revision

    def change_status(self, unit_id: int, status: str, *, location_id: int | None = None, note: str | None = None) -> Unit:
        if status not in UNIT_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(sorted(UNIT_STATUSES))}")
        unit = self.lock_unit(unit_id)
        if unit.is_terminal:
            raise InvalidStateTransition(
                "Unit is in a terminal status",
                details={"unit_id": unit.id, "status": unit.status},
            )
        if location_id is not None:
            if not self.session.get(Location, location_id):
                raise NotFound("Location not found", details={"location_id": location_id})
            unit.current_location_id = location_id
        unit.status = status
        if note:
            unit.notes = f"{unit.notes}\n{note}" if unit.notes else note
        self.session.flush()
        return unit

    # ------------------------------------------------------------------
    # units moved by documents
    # ------------------------------------------------------------------

    def _lock_document_units(self, unit_ids: list[int], product_id: int, location_id: int, quantity: int) -> list[Unit]:
        if len(unit_ids) != len(set(unit_ids)):
            raise ValidationError("unit_ids contains duplicates", details={"product_id": product_id})
        if len(unit_ids) != quantity:
            raise ValidationError(
                "Number of units must match the line quantity",
                details={"product_id": product_id, "quantity": quantity, "units": len(unit_ids)},
            )
        units = []
        for unit_id in sorted(unit_ids):
            unit = self.lock_unit(unit_id)
            if unit.product_id != product_id or unit.ownership != "OWNED":
                raise ValidationError("Unit does not belong to this product", details={"unit_id": unit_id})
            if unit.status != "AVAILABLE" or unit.current_location_id != location_id:
                raise InvalidStateTransition(
                    "Unit is not available at this location",
                    details={"unit_id": unit_id, "status": unit.status, "location_id": unit.current_location_id},
                )
            units.append(unit)
        return units

    def outbound_units(self, product: Product, location_id: int, quantity: int, unit_ids: list[int], remaining: int) -> list[Unit]:
        """
        Lock the units that leave a location with one outbound line.

        Named units must number exactly `quantity`. For a tracked product with
        no named units, the oldest AVAILABLE units are picked, just enough to
        keep the live units at the location within `remaining` (the location
        stock left after the line). Untracked products never give up units.
        """
        if unit_ids:
            return self._lock_document_units(unit_ids, product.id, location_id, quantity)
        if not product.is_asset_tracked:
            return []
        excess = self.live_unit_count(product.id, location_id) - max(remaining, 0)
        if excess <= 0:
            return []
        units = (
            lock_for_update(
                self.session.query(Unit).filter(
                    Unit.product_id == product.id,
                    Unit.current_location_id == location_id,
                    Unit.ownership == "OWNED",
                    Unit.status == UNIT_STATUS_AVAILABLE,
                )
            )
            .order_by(Unit.id)
            .limit(excess)
            .all()
        )
        if len(units) < excess:
            raise InvalidStateTransition(
                "Not enough available units at this location",
                details={"product_id": product.id, "location_id": location_id, "needed": excess, "available": len(units)},
            )
        return units

    def retire(self, units: list[Unit], status: str) -> None:
        """Move units out of stock into a terminal status (sold, scrapped, returned)."""
        if status not in TERMINAL_UNIT_STATUSES:
            raise ValidationError(f"{status} is not a terminal unit status")
        for unit in units:
            unit.status = status
            unit.current_location_id = None
        self.session.flush()

    def relocate(self, units: list[Unit], location_id: int) -> None:
        for unit in units:
            unit.current_location_id = location_id
        self.session.flush()

    def rent_out(self, units: list[Unit], contract_id: int) -> None:
        for unit in units:
            unit.status = "RENTED_OUT"
            unit.current_location_id = None
            unit.rental_contract_id = contract_id
        self.session.flush()

    def bring_back(self, contract_id: int, location_id: int) -> list[Unit]:
        """Units rented out on a contract come back AVAILABLE at location_id."""
        units = (
            lock_for_update(self.session.query(Unit).filter_by(rental_contract_id=contract_id, status="RENTED_OUT"))
            .order_by(Unit.id)
            .all()
        )
        for unit in units:
            unit.status = UNIT_STATUS_AVAILABLE
            unit.current_location_id = location_id
            unit.rental_contract_id = None
        self.session.flush()
        return units

    # ------------------------------------------------------------------
    # unitization
    # ------------------------------------------------------------------

    def live_unit_count(self, product_id: int, location_id: int) -> int:
        return (
            self.session.query(Unit)
            .filter(
                Unit.product_id == product_id,
                Unit.current_location_id == location_id,
                Unit.ownership == "OWNED",
                Unit.status.notin_(TERMINAL_UNIT_STATUSES),
            )
            .count()
        )

    def unitize_stock(self, product: Product, location_id: int, location_quantity: int, rows: list, reason: str | None) -> UnitizationBatch:
        """
        Create units for stock that was received before tracking existed.

        Totals do not change; only identities are added. The number of new
        units cannot exceed location stock minus the live units already at
        that location.
        """
        count = len(rows)
        if count <= 0:
            raise ValidationError("At least one unit is required")
        if count > MAX_UNITIZE_BATCH:
            raise ValidationError(f"At most {MAX_UNITIZE_BATCH} units can be unitized at once")
        if not product.is_asset_tracked:
            raise ValidationError("Product is not asset tracked", details={"product_id": product.id})

        untracked = location_quantity - self.live_unit_count(product.id, location_id)
        if count > untracked:
            raise ValidationError(
                "Not enough untracked stock at this location",
                details={"product_id": product.id, "location_id": location_id, "requested": count, "untracked": untracked},
            )

        prepared = []
        for row in rows:
            if row.product_id not in (None, product.id):
                raise InvalidIdentity("Unit row does not match the product", details={"product_id": row.product_id})
            prepared.append(self._resolve_identity(product, row))
        self._ensure_unique([p for p in prepared if p.unique_serial_key])
        self._allocate_missing_tags(prepared, {product.id: product.tag_kind})
        self._ensure_unique(prepared)

        batch = UnitizationBatch(
            product_id=product.id,
            location_id=location_id,
            unit_count=count,
            reason=_clean(reason),
            occurred_at=self.clock(),
        )
        self.session.add(batch)
        self.session.flush()
        self.create_units(
            prepared,
            location_id=location_id,
            source_type="UNITIZATION",
            source_id=batch.id,
            unitization_batch_id=batch.id,
        )
        return batch
