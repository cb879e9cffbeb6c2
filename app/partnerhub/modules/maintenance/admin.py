from __future__ import annotations

import secrets

from flask import Blueprint, abort, current_app, jsonify, request

from app.partnerhub.db import db_session
from app.partnerhub.modules.maintenance.service import run_maintenance

bp = Blueprint("admin_maintenance", __name__)


def maintenance_authorized() -> bool:
    """Bearer token or x-maintenance-token header; with no token configured nothing is authorised."""
    expected = current_app.config.get("MAINTENANCE_TOKEN") or ""
    if not expected:
        return False
    supplied = ""
    auth = (request.headers.get("Authorization") or "").strip()
    if auth.lower().startswith("bearer "):
        supplied = auth[len("bearer "):].strip()
    if not supplied:
        supplied = (request.headers.get("x-maintenance-token") or "").strip()
    return bool(supplied) and secrets.compare_digest(supplied, expected)


def _run():
    if not maintenance_authorized():
        current_app.logger.warning("Maintenance request rejected (path=%s)", request.path)
        abort(401, description="Unauthorized")
    s = db_session()
    result = run_maintenance(s)
    s.commit()
    return jsonify(result)


@bp.post("/maintenance")
def maintenance():
    return _run()


@bp.post("/reminders")
def reminders():
    return _run()
