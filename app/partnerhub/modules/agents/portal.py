from __future__ import annotations

from flask import Blueprint, jsonify

from app.partnerhub.db import db_session
from app.partnerhub.modules.agents.service import (
    agent_to_dict,
    create_agent,
    get_partner_agent,
    list_partner_agents,
    set_cp_app_number,
    update_credentials,
)
from app.partnerhub.modules.businesses.service import business_to_dict, list_partner_businesses
from app.partnerhub.rbac import current_partner, require_partner
from app.partnerhub.utils import json_body

bp = Blueprint("partner_agents", __name__)


@bp.get("/agents")
@require_partner(approved=True)
def agents_list():
    s = db_session()
    profile = current_partner().profile
    return jsonify(
        {
            "agents": [agent_to_dict(a) for a in list_partner_agents(s, profile)],
            "businesses": [business_to_dict(b) for b in list_partner_businesses(s, profile)],
            "partnerBusinessName": profile.business_name or "",
        }
    )


@bp.post("/agents")
@require_partner(approved=True)
def agents_create():
    s = db_session()
    agent = create_agent(s, current_partner().profile, json_body())
    s.commit()
    return jsonify({"agent": agent_to_dict(agent)}), 201


@bp.post("/agents/<int:agent_id>/cp-app")
@require_partner(approved=True)
def agent_cp_app(agent_id: int):
    s = db_session()
    agent = get_partner_agent(s, current_partner().profile, agent_id)
    set_cp_app_number(s, agent, json_body().get("cpAppNumber"))
    s.commit()
    return jsonify({"agent": agent_to_dict(agent)})


@bp.post("/agents/<int:agent_id>/credentials")
@require_partner(approved=True)
def agent_credentials(agent_id: int):
    s = db_session()
    agent = get_partner_agent(s, current_partner().profile, agent_id)
    update_credentials(s, agent, json_body())
    s.commit()
    return jsonify({"agent": agent_to_dict(agent)})
