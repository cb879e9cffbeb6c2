from flask import Blueprint, jsonify

from app.partnerhub.locations import regions_payload

bp = Blueprint("routes", __name__)


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for container probes. No DB access, minimal overhead.
    """
    return "ok", 200


@bp.get("/api/locations/regions")
def locations_regions():
    return jsonify({"regions": regions_payload()})
