from __future__ import annotations

from flask import Blueprint, jsonify

from app.partnerhub.db import db_session
from app.partnerhub.modules.forms.service import form_to_dict, list_partner_forms, sign_form
from app.partnerhub.rbac import current_partner, require_partner
from app.partnerhub.utils import json_body

bp = Blueprint("partner_forms", __name__)


@bp.get("/forms")
@require_partner(approved=True)
def forms_list():
    s = db_session()
    forms = list_partner_forms(s, current_partner().profile)
    return jsonify({"forms": [form_to_dict(f) for f in forms]})


@bp.post("/forms/<int:form_id>/sign")
@require_partner(approved=True)
def form_sign(form_id: int):
    s = db_session()
    form = sign_form(s, current_partner().profile, form_id, json_body())
    s.commit()
    return jsonify({"form": form_to_dict(form)})
