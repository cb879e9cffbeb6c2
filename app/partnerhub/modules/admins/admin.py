from __future__ import annotations

from flask import Blueprint, jsonify

from app.partnerhub.constants import ROLE_FULL
from app.partnerhub.db import db_session
from app.partnerhub.modules.admins.service import (
    create_admin,
    get_admin,
    list_admins,
    managed_admin_to_dict,
    toggle_admin,
    update_regions,
)
from app.partnerhub.rbac import current_admin, require_admin
from app.partnerhub.utils import json_body

bp = Blueprint("admin_management", __name__)


@bp.get("/management")
@require_admin(ROLE_FULL)
def management_list():
    s = db_session()
    return jsonify({"admins": [managed_admin_to_dict(a) for a in list_admins(s)]})


@bp.post("/management")
@require_admin(ROLE_FULL)
def management_create():
    s = db_session()
    admin = create_admin(s, json_body(), current_admin())
    s.commit()
    return jsonify({"admin": managed_admin_to_dict(admin)}), 201


@bp.post("/management/<int:admin_id>/toggle")
@require_admin(ROLE_FULL)
def management_toggle(admin_id: int):
    s = db_session()
    enabled = toggle_admin(s, get_admin(s, admin_id), current_admin())
    s.commit()
    return jsonify({"enabled": enabled})


@bp.put("/management/<int:admin_id>/regions")
@require_admin(ROLE_FULL)
def management_regions(admin_id: int):
    s = db_session()
    codes = update_regions(s, get_admin(s, admin_id), json_body(), current_admin())
    s.commit()
    return jsonify({"regionCodes": codes})
