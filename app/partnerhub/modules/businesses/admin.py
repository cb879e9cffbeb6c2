from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.partnerhub.db import db_session
from app.partnerhub.modules.businesses.service import (
    admin_update_business,
    approve_business,
    business_to_dict,
    deny_business,
    get_business_for_admin,
    list_businesses,
)
from app.partnerhub.rbac import current_admin, require_admin
from app.partnerhub.utils import json_body

bp = Blueprint("admin_businesses", __name__)


@bp.get("/businesses")
@require_admin()
def businesses_list():
    s = db_session()
    admin = current_admin()
    status = (request.args.get("status") or "").strip() or None
    rows = list_businesses(s, admin, status=status)
    return jsonify({"businesses": [business_to_dict(b) for b in rows], "adminRole": admin.role})


@bp.get("/businesses/<int:business_id>")
@require_admin()
def business_detail(business_id: int):
    s = db_session()
    admin = current_admin()
    business = get_business_for_admin(s, admin, business_id)
    return jsonify({"business": business_to_dict(business), "adminRole": admin.role})


@bp.put("/businesses/<int:business_id>")
@require_admin()
def business_update(business_id: int):
    s = db_session()
    admin = current_admin()
    business = get_business_for_admin(s, admin, business_id)
    admin_update_business(s, business, json_body(), admin)
    s.commit()
    return jsonify({"business": business_to_dict(business)})


@bp.post("/businesses/<int:business_id>/approve")
@require_admin()
def business_approve(business_id: int):
    s = db_session()
    admin = current_admin()
    business = get_business_for_admin(s, admin, business_id)
    approve_business(s, business, admin)
    s.commit()
    return jsonify({"business": business_to_dict(business)})


@bp.post("/businesses/<int:business_id>/deny")
@require_admin()
def business_deny(business_id: int):
    s = db_session()
    admin = current_admin()
    business = get_business_for_admin(s, admin, business_id)
    deny_business(s, business, admin, json_body().get("reason"))
    s.commit()
    return jsonify({"business": business_to_dict(business)})
