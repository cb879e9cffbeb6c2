from __future__ import annotations

from flask import Blueprint, jsonify

from app.partnerhub.db import db_session
from app.partnerhub.modules.payslips.service import create_payslip, list_partner_payslips, payslip_to_dict
from app.partnerhub.rbac import current_partner, require_partner
from app.partnerhub.utils import json_body

bp = Blueprint("partner_payslips", __name__)


@bp.get("/payslips")
@require_partner(approved=True)
def payslips_list():
    s = db_session()
    rows = list_partner_payslips(s, current_partner().profile)
    resp = jsonify({"paySlips": [payslip_to_dict(p) for p in rows]})
    resp.headers["Cache-Control"] = "private, max-age=30"
    return resp


@bp.post("/payslips")
@require_partner(approved=True)
def payslips_create():
    s = db_session()
    payslip = create_payslip(s, current_partner().profile, json_body())
    s.commit()
    return jsonify({"paySlip": payslip_to_dict(payslip)}), 201
