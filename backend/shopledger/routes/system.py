# backend/shopledger/routes/system.py
"""System health endpoint."""

import time
from flask import Blueprint, current_app, jsonify

from ..extensions import db
from ..models import Location, LedgerAccount
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


@system_bp.get("/api/health")
def health():
    """
    Database connectivity plus the seeded reference data the engine needs.

    Returns:
    - 200 "ok": database reachable, SHOP location configured
    - 200 "degraded": database reachable but SHOP is missing (run `flask system init`)
    - 503 "unhealthy": database error
    """
    start_time = time.time()
    try:
        location_codes = sorted(code for (code,) in db.session.query(Location.code).all())
        account_count = db.session.query(LedgerAccount).filter_by(is_active=True).count()
        body = {
            "status": "ok" if "SHOP" in location_codes else "degraded",
            "locations": location_codes,
            "active_accounts": account_count,
        }
        http_status = 200
    except Exception:
        current_app.logger.exception("Database health check failed")
        body = {"status": "unhealthy", "error": "Database error"}
        http_status = 503
    body["response_time_ms"] = round((time.time() - start_time) * 1000, 2)
    body["time"] = to_utc_z(utcnow())
    return jsonify(body), http_status
