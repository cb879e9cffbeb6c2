from __future__ import annotations

from flask import Blueprint, abort, jsonify, request

from app.partnerhub.constants import ROLE_FULL
from app.partnerhub.db import db_session
from app.partnerhub.modules.partners.models import PartnerProfile
from app.partnerhub.modules.partners.service import (
    admin_update_profile,
    approve_partner,
    delete_partner,
    deny_partner,
    list_partners,
    profile_to_dict,
    search_partners,
    toggle_suspension,
)
from app.partnerhub.rbac import current_admin, require_admin
from app.partnerhub.utils import json_body

bp = Blueprint("admin_partners", __name__)


def _get_profile_or_404(s, profile_id: int) -> PartnerProfile:
    profile = s.get(PartnerProfile, profile_id)
    if not profile:
        abort(404, description="Not found")
    return profile


@bp.get("/partners")
@require_admin()
def partners_list():
    s = db_session()
    status = (request.args.get("status") or "").strip() or None
    partners = list_partners(s, status=status)
    return jsonify({"partners": [profile_to_dict(p) for p in partners], "adminRole": current_admin().role})


@bp.get("/partners/search")
@require_admin(ROLE_FULL)
def partners_search():
    s = db_session()
    partners = search_partners(s, request.args.get("q") or "")
    return jsonify({"partners": [profile_to_dict(p) for p in partners]})


@bp.get("/partners/<int:profile_id>")
@require_admin()
def partner_detail(profile_id: int):
    s = db_session()
    profile = _get_profile_or_404(s, profile_id)
    return jsonify({"profile": profile_to_dict(profile), "adminRole": current_admin().role})


@bp.put("/partners/<int:profile_id>")
@require_admin()
def partner_update(profile_id: int):
    s = db_session()
    profile = _get_profile_or_404(s, profile_id)
    admin_update_profile(s, profile, json_body(), current_admin())
    s.commit()
    return jsonify({"profile": profile_to_dict(profile)})


@bp.post("/partners/<int:profile_id>/approve")
@require_admin()
def partner_approve(profile_id: int):
    s = db_session()
    profile = _get_profile_or_404(s, profile_id)
    approve_partner(s, profile, current_admin())
    s.commit()
    return jsonify({"profile": profile_to_dict(profile)})


@bp.post("/partners/<int:profile_id>/deny")
@require_admin()
def partner_deny(profile_id: int):
    s = db_session()
    profile = _get_profile_or_404(s, profile_id)
    deny_partner(s, profile, current_admin(), json_body().get("reason"))
    s.commit()
    return jsonify({"profile": profile_to_dict(profile)})


@bp.post("/partners/<int:profile_id>/suspend")
@require_admin()
def partner_suspend(profile_id: int):
    s = db_session()
    profile = _get_profile_or_404(s, profile_id)
    toggle_suspension(s, profile, current_admin())
    s.commit()
    return jsonify({"profile": profile_to_dict(profile)})


@bp.delete("/partners/<int:profile_id>/delete")
@require_admin()
def partner_delete(profile_id: int):
    s = db_session()
    profile = _get_profile_or_404(s, profile_id)
    delete_partner(s, profile, current_admin(), json_body().get("confirmBusinessName"))
    s.commit()
    return jsonify({"success": True})
