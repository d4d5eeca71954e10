# Overview: Idempotent seeding of the reference rows the engine depends on.

from __future__ import annotations

from ..models import LedgerAccount, Location


DEFAULT_LOCATIONS = [
    ("SHOP", "Shop floor"),
    ("WAREHOUSE", "Warehouse"),
    ("SERVICE", "Service bench"),
]

DEFAULT_ACCOUNTS = [
    ("Cash", "CASH"),
    ("Bank", "BANK"),
    ("bKash", "BKASH"),
    ("Nagad", "NAGAD"),
]


def seed_reference_data(session) -> dict:
    """Create missing default locations and ledger accounts. Returns what was created."""
    created = {"locations": [], "accounts": []}

    existing_codes = {code for (code,) in session.query(Location.code).all()}
    for code, name in DEFAULT_LOCATIONS:
        if code not in existing_codes:
            session.add(Location(code=code, name=name, is_active=True))
            created["locations"].append(code)

    existing_kinds = {kind for (kind,) in session.query(LedgerAccount.kind).all()}
    for name, kind in DEFAULT_ACCOUNTS:
        if kind not in existing_kinds:
            session.add(LedgerAccount(name=name, kind=kind, opening_balance_cents=0, is_active=True))
            created["accounts"].append(kind)

    session.commit()
    return created
