from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.partnerhub.db import db_session
from app.partnerhub.modules.partner_requests.service import (
    REQUEST_TYPES,
    admin_reply,
    get_request,
    list_requests,
    request_to_dict,
    set_request_status,
)
from app.partnerhub.rbac import current_admin, require_admin
from app.partnerhub.threads import reply_to_dict
from app.partnerhub.utils import clean_str, json_body, page_args

bp = Blueprint("admin_requests", __name__)


@bp.get("/requests")
@require_admin()
def requests_list():
    s = db_session()
    kind = clean_str(request.args.get("type"))
    page, limit = page_args(request.args, default_limit=50, max_limit=100)
    rows = list_requests(
        s,
        current_admin(),
        kind=kind if kind in REQUEST_TYPES else None,
        status=clean_str(request.args.get("status")),
        page=page,
        limit=limit,
    )
    resp = jsonify({"requests": [request_to_dict(r, include_replies=False, include_partner=True) for r in rows]})
    resp.headers["Cache-Control"] = "private, max-age=30"
    return resp


@bp.get("/requests/<kind>/<int:request_id>")
@require_admin()
def request_detail(kind: str, request_id: int):
    s = db_session()
    return jsonify({"request": request_to_dict(get_request(s, kind, request_id), include_partner=True)})


@bp.patch("/requests/<kind>/<int:request_id>")
@require_admin()
def request_status(kind: str, request_id: int):
    s = db_session()
    row = set_request_status(s, get_request(s, kind, request_id), json_body(), current_admin())
    s.commit()
    return jsonify({"request": request_to_dict(row, include_partner=True)})


@bp.post("/requests/<kind>/<int:request_id>/reply")
@require_admin()
def request_reply(kind: str, request_id: int):
    s = db_session()
    reply = admin_reply(s, get_request(s, kind, request_id), json_body(), current_admin())
    s.commit()
    return jsonify({"reply": reply_to_dict(reply)})
