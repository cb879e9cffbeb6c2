from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import TYPE_CHECKING, Iterable

from sqlalchemy import select

from app.partnerhub.constants import (
    CATEGORY_INFO,
    RECIPIENT_ADMIN,
    RECIPIENT_PARTNER,
    ROLE_COORDINATOR,
    ROLE_FULL,
    ROLE_MANAGER,
)
from app.partnerhub.models import Admin, AdminRegionAssignment
from app.partnerhub.modules.notifications.models import Notification
from app.partnerhub.utils import serialize

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


DEFAULT_BROADCAST_ROLES = (ROLE_FULL, ROLE_MANAGER, ROLE_COORDINATOR)

NOTIFICATION_FIELDS = (
    ("id", "id"),
    ("title", "title"),
    ("message", "message"),
    ("category", "category"),
    ("readAt", "read_at"),
    ("createdAt", "created_at"),
)


@dataclass(frozen=True)
class NotificationInput:
    title: str
    message: str
    category: str = CATEGORY_INFO

    def with_message(self, message: str, category: str | None = None) -> "NotificationInput":
        return replace(self, message=message, category=category or self.category)


def notification_to_dict(n: Notification) -> dict:
    return serialize(n, NOTIFICATION_FIELDS)


def _create_admin_notifications(s: "Session", admin_ids: Iterable[int], data: NotificationInput) -> int:
    count = 0
    for admin_id in sorted(set(admin_ids)):
        s.add(
            Notification(
                recipient_type=RECIPIENT_ADMIN,
                admin_id=admin_id,
                title=data.title,
                message=data.message,
                category=data.category,
            )
        )
        count += 1
    return count


def send_admin_notification(s: "Session", admin_id: int | None, data: NotificationInput) -> None:
    if admin_id is None:
        return
    _create_admin_notifications(s, [admin_id], data)


def send_partner_notification(s: "Session", user_id: int, data: NotificationInput) -> None:
    s.add(
        Notification(
            recipient_type=RECIPIENT_PARTNER,
            user_id=user_id,
            title=data.title,
            message=data.message,
            category=data.category,
        )
    )


def _enabled_admins(s: "Session", roles: Iterable[str]) -> list[Admin]:
    return list(s.scalars(select(Admin).where(Admin.enabled.is_(True), Admin.role.in_(list(roles)))))


def notify_admins_by_role(
    s: "Session",
    data: NotificationInput,
    roles: Iterable[str],
    region_code: str | None = None,
    sbu_code: str | None = None,
) -> int:
    """
    Notify enabled admins holding any of `roles`. With a region, only admins assigned
    to it are included; an SBU-scoped assignment must also match `sbu_code`.
    """
    admin_ids: list[int] = []
    for admin in _enabled_admins(s, roles):
        if region_code is None:
            admin_ids.append(admin.id)
            continue
        for assignment in admin.regions:
            if assignment.region_code != region_code:
                continue
            if sbu_code and assignment.sbu_code and assignment.sbu_code != sbu_code:
                continue
            admin_ids.append(admin.id)
            break
    return _create_admin_notifications(s, admin_ids, data)


def broadcast_admin_notification(
    s: "Session",
    data: NotificationInput,
    roles: Iterable[str] = DEFAULT_BROADCAST_ROLES,
    region_codes: Iterable[str] | None = None,
) -> int:
    """
    Broadcast to admins with `roles`. When `region_codes` is non-empty, coordinators
    are filtered to those regions while the other roles always receive it.
    """
    roles = list(roles)
    regions = set(region_codes or [])
    admin_ids: list[int] = []
    for admin in _enabled_admins(s, roles):
        if regions and admin.role == ROLE_COORDINATOR and not regions.intersection(admin.region_codes):
            continue
        admin_ids.append(admin.id)
    return _create_admin_notifications(s, admin_ids, data)


def get_coordinator_emails_for_regions(s: "Session", region_codes: Iterable[str]) -> list[str]:
    codes = sorted(set(region_codes))
    if not codes:
        return []
    stmt = (
        select(Admin.email)
        .join(AdminRegionAssignment, AdminRegionAssignment.admin_id == Admin.id)
        .where(
            Admin.role == ROLE_COORDINATOR,
            Admin.enabled.is_(True),
            AdminRegionAssignment.region_code.in_(codes),
        )
        .distinct()
    )
    return sorted(s.scalars(stmt))


# ---------- Inbox operations ----------


def _inbox_query(s: "Session", *, admin_id: int | None = None, user_id: int | None = None):
    q = s.query(Notification)
    if admin_id is not None:
        return q.filter(Notification.recipient_type == RECIPIENT_ADMIN, Notification.admin_id == admin_id)
    return q.filter(Notification.recipient_type == RECIPIENT_PARTNER, Notification.user_id == user_id)


def list_notifications(s: "Session", *, admin_id: int | None = None, user_id: int | None = None, limit: int = 50) -> list[Notification]:
    return (
        _inbox_query(s, admin_id=admin_id, user_id=user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )


def unread_count(s: "Session", *, admin_id: int | None = None, user_id: int | None = None) -> int:
    return _inbox_query(s, admin_id=admin_id, user_id=user_id).filter(Notification.read_at.is_(None)).count()


def mark_all_read(s: "Session", *, admin_id: int | None = None, user_id: int | None = None) -> int:
    now = datetime.utcnow()
    rows = _inbox_query(s, admin_id=admin_id, user_id=user_id).filter(Notification.read_at.is_(None)).all()
    for n in rows:
        n.read_at = now
    return len(rows)


def clear_notifications(s: "Session", *, admin_id: int | None = None, user_id: int | None = None) -> int:
    rows = _inbox_query(s, admin_id=admin_id, user_id=user_id).all()
    for n in rows:
        s.delete(n)
    return len(rows)
