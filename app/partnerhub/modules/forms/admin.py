from __future__ import annotations

from flask import Blueprint, jsonify

from app.partnerhub.constants import ROLE_COORDINATOR, ROLE_FULL, ROLE_MANAGER
from app.partnerhub.db import db_session
from app.partnerhub.modules.forms.service import form_to_dict, list_sent_forms, send_forms
from app.partnerhub.rbac import current_admin, require_admin
from app.partnerhub.utils import json_body

bp = Blueprint("admin_forms", __name__)


@bp.get("/forms")
@require_admin()
def forms_list():
    s = db_session()
    return jsonify({"forms": [form_to_dict(f, include_partner=True) for f in list_sent_forms(s)]})


@bp.post("/forms/send")
@require_admin(ROLE_FULL, ROLE_MANAGER, ROLE_COORDINATOR)
def forms_send():
    s = db_session()
    forms = send_forms(s, json_body(), current_admin())
    s.commit()
    return jsonify({"forms": [form_to_dict(f) for f in forms]}), 201
