from __future__ import annotations

from flask import Blueprint, jsonify

from app.partnerhub.db import db_session
from app.partnerhub.modules.partner_requests.service import (
    create_restock_request,
    create_training_request,
    list_partner_requests,
    partner_reply,
    request_to_dict,
)
from app.partnerhub.rbac import current_partner, require_partner
from app.partnerhub.threads import reply_to_dict
from app.partnerhub.utils import json_body

bp = Blueprint("partner_requests", __name__)


@bp.get("/requests")
@require_partner(approved=True)
def requests_list():
    s = db_session()
    rows = list_partner_requests(s, current_partner().profile)
    resp = jsonify({"requests": [request_to_dict(r) for r in rows]})
    resp.headers["Cache-Control"] = "private, max-age=30"
    return resp


@bp.post("/requests/restock")
@require_partner(approved=True)
def restock_create():
    s = db_session()
    row = create_restock_request(s, current_partner().profile, json_body())
    s.commit()
    return jsonify({"request": request_to_dict(row)}), 201


@bp.post("/requests/training")
@require_partner(approved=True)
def training_create():
    s = db_session()
    row = create_training_request(s, current_partner().profile, json_body())
    s.commit()
    return jsonify({"request": request_to_dict(row)}), 201


@bp.post("/requests/<kind>/<int:request_id>/reply")
@require_partner(approved=True)
def request_reply(kind: str, request_id: int):
    s = db_session()
    reply = partner_reply(s, current_partner().profile, kind, request_id, json_body())
    s.commit()
    return jsonify({"reply": reply_to_dict(reply)})
