from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.partnerhub.db import db_session
from app.partnerhub.modules.feedback.service import (
    admin_reply,
    feedback_to_dict,
    get_feedback,
    list_feedback,
    set_feedback_status,
)
from app.partnerhub.rbac import current_admin, require_admin
from app.partnerhub.threads import reply_to_dict
from app.partnerhub.utils import clean_str, json_body

bp = Blueprint("admin_feedback", __name__)


@bp.get("/feedback")
@require_admin()
def feedback_list():
    s = db_session()
    rows = list_feedback(s, status=clean_str(request.args.get("status")))
    return jsonify({"feedback": [feedback_to_dict(f, include_replies=False, include_partner=True) for f in rows]})


@bp.get("/feedback/<int:feedback_id>")
@require_admin()
def feedback_detail(feedback_id: int):
    s = db_session()
    return jsonify({"feedback": feedback_to_dict(get_feedback(s, feedback_id), include_partner=True)})


@bp.patch("/feedback/<int:feedback_id>")
@require_admin()
def feedback_status(feedback_id: int):
    s = db_session()
    feedback = set_feedback_status(s, get_feedback(s, feedback_id), json_body(), current_admin())
    s.commit()
    return jsonify({"feedback": feedback_to_dict(feedback, include_partner=True)})


@bp.post("/feedback/<int:feedback_id>/reply")
@require_admin()
def feedback_reply(feedback_id: int):
    s = db_session()
    reply = admin_reply(s, get_feedback(s, feedback_id), json_body(), current_admin())
    s.commit()
    return jsonify({"reply": reply_to_dict(reply)})
