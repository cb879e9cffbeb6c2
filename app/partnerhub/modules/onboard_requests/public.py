from __future__ import annotations

from flask import Blueprint, jsonify

from app.partnerhub.db import db_session
from app.partnerhub.modules.onboard_requests.service import submit_public_request
from app.partnerhub.utils import json_body

bp = Blueprint("public_onboard_requests", __name__)


@bp.post("/onboard-requests")
def public_onboard_request_create():
    s = db_session()
    form = submit_public_request(s, json_body())
    s.commit()
    return jsonify({"message": "Your onboard request has been submitted successfully.", "id": form.id}), 201
