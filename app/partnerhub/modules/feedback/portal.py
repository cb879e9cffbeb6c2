from __future__ import annotations

from flask import Blueprint, jsonify

from app.partnerhub.db import db_session
from app.partnerhub.modules.feedback.service import (
    create_feedback,
    feedback_to_dict,
    list_partner_feedback,
    partner_reply,
)
from app.partnerhub.rbac import current_partner, require_partner
from app.partnerhub.threads import reply_to_dict
from app.partnerhub.utils import json_body

bp = Blueprint("partner_feedback", __name__)


@bp.get("/feedback")
@require_partner(approved=True)
def feedback_list():
    s = db_session()
    rows = list_partner_feedback(s, current_partner().profile)
    return jsonify({"feedback": [feedback_to_dict(f) for f in rows]})


@bp.post("/feedback")
@require_partner(approved=True)
def feedback_create():
    s = db_session()
    feedback = create_feedback(s, current_partner().profile, json_body())
    s.commit()
    return jsonify({"feedback": feedback_to_dict(feedback)}), 201


@bp.post("/feedback/<int:feedback_id>/reply")
@require_partner(approved=True)
def feedback_reply(feedback_id: int):
    s = db_session()
    reply = partner_reply(s, current_partner().profile, feedback_id, json_body())
    s.commit()
    return jsonify({"reply": reply_to_dict(reply)})
