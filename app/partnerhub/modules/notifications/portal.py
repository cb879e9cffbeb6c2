from __future__ import annotations

from flask import Blueprint, jsonify

from app.partnerhub.db import db_session
from app.partnerhub.modules.notifications.service import list_notifications, mark_all_read, notification_to_dict, unread_count
from app.partnerhub.rbac import current_partner, require_partner

bp = Blueprint("partner_notifications", __name__)


@bp.get("/notifications")
@require_partner()
def notifications_list():
    s = db_session()
    user = current_partner()
    rows = list_notifications(s, user_id=user.id)
    return jsonify(
        {
            "notifications": [notification_to_dict(n) for n in rows],
            "unread": unread_count(s, user_id=user.id),
        }
    )


@bp.post("/notifications/read-all")
@require_partner()
def notifications_read_all():
    s = db_session()
    updated = mark_all_read(s, user_id=current_partner().id)
    s.commit()
    return jsonify({"success": True, "updated": updated})
