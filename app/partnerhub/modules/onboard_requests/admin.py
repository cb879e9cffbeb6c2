from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.partnerhub.approvals import create_form, deny_form, form_to_dict, get_form, list_forms, submit_form, update_form
from app.partnerhub.db import db_session
from app.partnerhub.modules.onboard_requests.service import ONBOARD_CHAIN
from app.partnerhub.rbac import current_admin, require_admin
from app.partnerhub.utils import json_body, page_args, pagination

bp = Blueprint("admin_onboard_requests", __name__)


@bp.get("/onboard-requests")
@require_admin()
def onboard_requests_list():
    s = db_session()
    page, limit = page_args(request.args)
    forms, total = list_forms(
        s,
        ONBOARD_CHAIN,
        current_admin(),
        page=page,
        limit=limit,
        status=(request.args.get("status") or "").strip() or None,
        region_code=(request.args.get("regionCode") or "").strip() or None,
    )
    return jsonify(
        {
            "forms": [form_to_dict(ONBOARD_CHAIN, f) for f in forms],
            "pagination": pagination(page, limit, total),
        }
    )


@bp.post("/onboard-requests")
@require_admin()
def onboard_requests_create():
    s = db_session()
    form = create_form(s, ONBOARD_CHAIN, current_admin(), json_body())
    s.commit()
    return jsonify({"form": form_to_dict(ONBOARD_CHAIN, form)}), 201


@bp.get("/onboard-requests/<int:form_id>")
@require_admin()
def onboard_request_detail(form_id: int):
    s = db_session()
    form = get_form(s, ONBOARD_CHAIN, form_id)
    return jsonify({"form": form_to_dict(ONBOARD_CHAIN, form, include_approvals=True)})


@bp.put("/onboard-requests/<int:form_id>")
@require_admin()
def onboard_request_update(form_id: int):
    s = db_session()
    form = get_form(s, ONBOARD_CHAIN, form_id)
    update_form(s, ONBOARD_CHAIN, form, current_admin(), json_body())
    s.commit()
    return jsonify({"form": form_to_dict(ONBOARD_CHAIN, form)})


@bp.post("/onboard-requests/<int:form_id>/submit")
@require_admin()
def onboard_request_submit(form_id: int):
    s = db_session()
    form = get_form(s, ONBOARD_CHAIN, form_id)
    submit_form(s, ONBOARD_CHAIN, form, current_admin(), json_body())
    s.commit()
    return jsonify({"form": form_to_dict(ONBOARD_CHAIN, form, include_approvals=True)})


@bp.post("/onboard-requests/<int:form_id>/deny")
@require_admin()
def onboard_request_deny(form_id: int):
    s = db_session()
    form = get_form(s, ONBOARD_CHAIN, form_id)
    deny_form(s, ONBOARD_CHAIN, form, current_admin(), json_body())
    s.commit()
    return jsonify({"form": form_to_dict(ONBOARD_CHAIN, form, include_approvals=True)})
