from __future__ import annotations

from flask import Blueprint, jsonify

from app.partnerhub.db import db_session
from app.partnerhub.modules.partners.service import profile_to_dict, submit_onboarding, upsert_onboarding
from app.partnerhub.rbac import current_partner, require_partner
from app.partnerhub.utils import json_body

bp = Blueprint("partner_onboarding", __name__)


@bp.get("/onboarding")
@require_partner()
def onboarding_get():
    profile = current_partner().profile
    return jsonify({"profile": profile_to_dict(profile, include_user=False) if profile else None})


@bp.put("/onboarding")
@require_partner()
def onboarding_put():
    s = db_session()
    profile = upsert_onboarding(s, current_partner(), json_body())
    s.commit()
    return jsonify({"profile": profile_to_dict(profile, include_user=False)})


@bp.post("/onboarding/submit")
@require_partner()
def onboarding_submit():
    s = db_session()
    profile = submit_onboarding(s, current_partner())
    s.commit()
    return jsonify({"profile": profile_to_dict(profile, include_user=False)})
