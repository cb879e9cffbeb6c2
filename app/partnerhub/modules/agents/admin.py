from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.partnerhub.db import db_session
from app.partnerhub.modules.agents.service import (
    admin_update_agent,
    agent_to_dict,
    approve_agent,
    deny_agent,
    get_agent_for_admin,
    list_agents,
)
from app.partnerhub.rbac import current_admin, require_admin
from app.partnerhub.utils import json_body

bp = Blueprint("admin_agents", __name__)


@bp.get("/agents")
@require_admin()
def agents_list():
    s = db_session()
    admin = current_admin()
    status = (request.args.get("status") or "").strip() or None
    rows = list_agents(s, admin, status=status)
    resp = jsonify({"agents": [agent_to_dict(a) for a in rows], "adminRole": admin.role})
    resp.headers["Cache-Control"] = "private, max-age=30"
    return resp


@bp.get("/agents/<int:agent_id>")
@require_admin()
def agent_detail(agent_id: int):
    s = db_session()
    admin = current_admin()
    agent = get_agent_for_admin(s, admin, agent_id)
    return jsonify({"agent": agent_to_dict(agent), "adminRole": admin.role})


@bp.put("/agents/<int:agent_id>")
@require_admin()
def agent_update(agent_id: int):
    s = db_session()
    admin = current_admin()
    agent = get_agent_for_admin(s, admin, agent_id)
    admin_update_agent(s, agent, json_body(), admin)
    s.commit()
    return jsonify({"agent": agent_to_dict(agent)})


@bp.post("/agents/<int:agent_id>/approve")
@require_admin()
def agent_approve(agent_id: int):
    s = db_session()
    admin = current_admin()
    agent = get_agent_for_admin(s, admin, agent_id)
    approve_agent(s, agent, admin)
    s.commit()
    return jsonify({"agent": agent_to_dict(agent)})


@bp.post("/agents/<int:agent_id>/deny")
@require_admin()
def agent_deny(agent_id: int):
    s = db_session()
    admin = current_admin()
    agent = get_agent_for_admin(s, admin, agent_id)
    deny_agent(s, agent, admin, json_body().get("reason"))
    s.commit()
    return jsonify({"agent": agent_to_dict(agent)})
