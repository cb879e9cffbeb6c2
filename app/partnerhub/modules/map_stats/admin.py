from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.partnerhub.db import db_session
from app.partnerhub.modules.map_stats.service import region_detail, region_stats
from app.partnerhub.rbac import current_admin, require_admin
from app.partnerhub.utils import clean_str

bp = Blueprint("admin_map_stats", __name__)


@bp.get("/map-stats")
@require_admin()
def map_stats():
    s = db_session()
    return jsonify(region_stats(s, current_admin(), clean_str(request.args.get("search"))))


@bp.get("/map-stats/<region_code>")
@require_admin()
def map_stats_region(region_code: str):
    s = db_session()
    return jsonify(region_detail(s, current_admin(), region_code, clean_str(request.args.get("search"))))
