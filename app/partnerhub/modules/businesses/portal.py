from __future__ import annotations

from flask import Blueprint, jsonify

from app.partnerhub.db import db_session
from app.partnerhub.modules.businesses.service import (
    business_to_dict,
    create_business,
    get_partner_business,
    list_partner_businesses,
    update_device_details,
)
from app.partnerhub.rbac import current_partner, require_partner
from app.partnerhub.utils import json_body

bp = Blueprint("partner_businesses", __name__)


@bp.get("/businesses")
@require_partner(approved=True)
def businesses_list():
    s = db_session()
    profile = current_partner().profile
    rows = list_partner_businesses(s, profile)
    return jsonify(
        {
            "businesses": [business_to_dict(b) for b in rows],
            "partnerBusinessName": profile.business_name or "",
        }
    )


@bp.post("/businesses")
@require_partner(approved=True)
def businesses_create():
    s = db_session()
    business = create_business(s, current_partner().profile, json_body())
    s.commit()
    return jsonify({"business": business_to_dict(business)}), 201


@bp.post("/businesses/<int:business_id>/device-details")
@require_partner(approved=True)
def business_device_details(business_id: int):
    s = db_session()
    business = get_partner_business(s, current_partner().profile, business_id)
    update_device_details(s, business, json_body())
    s.commit()
    return jsonify({"business": business_to_dict(business)})
