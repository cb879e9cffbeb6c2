from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.partnerhub.approvals import create_form, deny_form, form_to_dict, get_form, list_forms, submit_form, update_form
from app.partnerhub.db import db_session
from app.partnerhub.modules.data_requests.service import DATA_REQUEST_CHAIN
from app.partnerhub.rbac import current_admin, require_admin
from app.partnerhub.utils import json_body, page_args, pagination

bp = Blueprint("admin_data_requests", __name__)


@bp.get("/data-requests")
@require_admin()
def data_requests_list():
    s = db_session()
    page, limit = page_args(request.args)
    forms, total = list_forms(
        s,
        DATA_REQUEST_CHAIN,
        current_admin(),
        page=page,
        limit=limit,
        status=(request.args.get("status") or "").strip() or None,
        region_code=(request.args.get("regionCode") or "").strip() or None,
    )
    return jsonify(
        {
            "forms": [form_to_dict(DATA_REQUEST_CHAIN, f) for f in forms],
            "pagination": pagination(page, limit, total),
        }
    )


@bp.post("/data-requests")
@require_admin()
def data_requests_create():
    s = db_session()
    form = create_form(s, DATA_REQUEST_CHAIN, current_admin(), json_body())
    s.commit()
    return jsonify({"form": form_to_dict(DATA_REQUEST_CHAIN, form)}), 201


@bp.get("/data-requests/<int:form_id>")
@require_admin()
def data_request_detail(form_id: int):
    s = db_session()
    form = get_form(s, DATA_REQUEST_CHAIN, form_id)
    return jsonify({"form": form_to_dict(DATA_REQUEST_CHAIN, form, include_approvals=True)})


@bp.put("/data-requests/<int:form_id>")
@require_admin()
def data_request_update(form_id: int):
    s = db_session()
    form = get_form(s, DATA_REQUEST_CHAIN, form_id)
    update_form(s, DATA_REQUEST_CHAIN, form, current_admin(), json_body())
    s.commit()
    return jsonify({"form": form_to_dict(DATA_REQUEST_CHAIN, form)})


@bp.post("/data-requests/<int:form_id>/submit")
@require_admin()
def data_request_submit(form_id: int):
    s = db_session()
    form = get_form(s, DATA_REQUEST_CHAIN, form_id)
    submit_form(s, DATA_REQUEST_CHAIN, form, current_admin(), json_body())
    s.commit()
    return jsonify({"form": form_to_dict(DATA_REQUEST_CHAIN, form, include_approvals=True)})


@bp.post("/data-requests/<int:form_id>/deny")
@require_admin()
def data_request_deny(form_id: int):
    s = db_session()
    form = get_form(s, DATA_REQUEST_CHAIN, form_id)
    deny_form(s, DATA_REQUEST_CHAIN, form, current_admin(), json_body())
    s.commit()
    return jsonify({"form": form_to_dict(DATA_REQUEST_CHAIN, form, include_approvals=True)})
