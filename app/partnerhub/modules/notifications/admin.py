from __future__ import annotations

from datetime import datetime

from flask import Blueprint, abort, jsonify

from app.partnerhub.constants import RECIPIENT_ADMIN
from app.partnerhub.db import db_session
from app.partnerhub.modules.notifications.models import Notification
from app.partnerhub.modules.notifications.service import (
    clear_notifications,
    list_notifications,
    mark_all_read,
    notification_to_dict,
    unread_count,
)
from app.partnerhub.rbac import current_admin, require_admin

bp = Blueprint("admin_notifications", __name__)


def _get_own_notification_or_404(s, notification_id: int) -> Notification:
    admin = current_admin()
    n = s.get(Notification, notification_id)
    if not n or n.recipient_type != RECIPIENT_ADMIN or n.admin_id != admin.id:
        abort(404, description="Not found")
    return n


@bp.get("/notifications")
@require_admin()
def notifications_list():
    s = db_session()
    rows = list_notifications(s, admin_id=current_admin().id)
    return jsonify({"notifications": [notification_to_dict(n) for n in rows]})


@bp.get("/notifications/count")
@require_admin()
def notifications_count():
    s = db_session()
    return jsonify({"count": unread_count(s, admin_id=current_admin().id)})


@bp.post("/notifications/<int:notification_id>/read")
@require_admin()
def notification_mark_read(notification_id: int):
    s = db_session()
    n = _get_own_notification_or_404(s, notification_id)
    if n.read_at is None:
        n.read_at = datetime.utcnow()
    s.commit()
    return jsonify({"success": True, "notification": notification_to_dict(n)})


@bp.delete("/notifications/<int:notification_id>")
@require_admin()
def notification_delete(notification_id: int):
    s = db_session()
    n = _get_own_notification_or_404(s, notification_id)
    s.delete(n)
    s.commit()
    return jsonify({"success": True})


@bp.post("/notifications/read-all")
@require_admin()
def notifications_read_all():
    s = db_session()
    updated = mark_all_read(s, admin_id=current_admin().id)
    s.commit()
    return jsonify({"success": True, "updated": updated})


@bp.delete("/notifications/clear")
@require_admin()
def notifications_clear():
    s = db_session()
    deleted = clear_notifications(s, admin_id=current_admin().id)
    s.commit()
    return jsonify({"success": True, "deleted": deleted})
