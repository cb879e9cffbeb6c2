from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.partnerhub.constants import ROLE_COORDINATOR
from app.partnerhub.db import db_session
from app.partnerhub.modules.payslips.service import list_payslips, payslip_to_dict
from app.partnerhub.rbac import current_admin, require_admin

bp = Blueprint("admin_payslips", __name__)


@bp.get("/payslips")
@require_admin(ROLE_COORDINATOR)
def payslips_list():
    s = db_session()
    partner_id = request.args.get("partnerId", type=int)
    rows = list_payslips(s, current_admin(), partner_id=partner_id)
    resp = jsonify({"paySlips": [payslip_to_dict(p, include_partner=True) for p in rows]})
    resp.headers["Cache-Control"] = "private, max-age=30"
    return resp
