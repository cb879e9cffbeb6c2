from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.partnerhub.audit import record_event
from app.partnerhub.constants import ADMIN_ROLES, CATEGORY_SUCCESS, GLOBAL_ROLES, ROLE_FULL
from app.partnerhub.errors import ServiceError
from app.partnerhub.locations import is_valid_region, region_name
from app.partnerhub.models import Admin, AdminRegionAssignment
from app.partnerhub.modules.notifications.service import NotificationInput, send_admin_notification
from app.partnerhub.utils import clean_str, is_email

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def managed_admin_to_dict(admin: Admin) -> dict[str, Any]:
    return {
        "id": admin.id,
        "name": admin.name,
        "email": admin.email,
        "role": admin.role,
        "enabled": admin.enabled,
        "regionCodes": admin.region_codes,
        "sbuAssignments": {r.region_code: r.sbu_code for r in admin.regions if r.sbu_code},
    }


def _region_input(payload: dict) -> tuple[list[str], dict[str, str]]:
    raw_codes = payload.get("regionCodes") or []
    raw_sbus = payload.get("sbuAssignments") or {}
    if not isinstance(raw_codes, list) or not isinstance(raw_sbus, dict):
        raise ServiceError("Invalid input")
    codes: list[str] = []
    for raw in raw_codes:
        code = clean_str(raw)
        if code and code not in codes:
            codes.append(code)
    invalid = [c for c in codes if not is_valid_region(c)]
    if invalid:
        raise ServiceError(f"Invalid region codes: {', '.join(invalid)}")
    sbus = {str(k): v for k, v in ((k, clean_str(v)) for k, v in raw_sbus.items()) if v}
    return codes, sbus


def list_admins(s: "Session") -> list[Admin]:
    return s.query(Admin).order_by(Admin.name.asc()).all()


def create_admin(s: "Session", payload: dict, actor: Admin) -> Admin:
    name = clean_str(payload.get("name"))
    email = (clean_str(payload.get("email")) or "").lower()
    role = clean_str(payload.get("role"))
    if not name:
        raise ServiceError("Name is required")
    if not is_email(email):
        raise ServiceError("Invalid email")
    if role not in ADMIN_ROLES:
        raise ServiceError("Invalid role")
    codes, sbus = _region_input(payload)
    if role in GLOBAL_ROLES and codes:
        raise ServiceError("Full Access and Manager admins have global access and cannot be assigned regions")
    if s.query(Admin).filter(Admin.email == email).one_or_none():
        raise ServiceError("An admin with this email already exists", 409)

    admin = Admin(name=name, email=email, role=role, enabled=True)
    admin.regions = [AdminRegionAssignment(region_code=c, sbu_code=sbus.get(c)) for c in codes]
    s.add(admin)
    s.flush()
    record_event(
        s,
        actor=actor,
        action="ADMIN_CREATED",
        entity_type="Admin",
        entity_id=admin.id,
        metadata={"name": name, "email": email, "role": role, "regionCodes": codes},
    )
    send_admin_notification(
        s,
        admin.id,
        NotificationInput(
            "Welcome to MCS Portal",
            f"Your {role.replace('_', ' ').lower()} admin account has been created. You can now log in using OTP.",
            CATEGORY_SUCCESS,
        ),
    )
    return admin


def get_admin(s: "Session", admin_id: int) -> Admin:
    admin = s.get(Admin, admin_id)
    if not admin:
        raise ServiceError("Admin not found", 404)
    return admin


def toggle_admin(s: "Session", target: Admin, actor: Admin) -> bool:
    if target.id == actor.id:
        raise ServiceError("Cannot disable your own account")
    if target.enabled and target.role == ROLE_FULL:
        enabled_full = s.query(Admin).filter(Admin.role == ROLE_FULL, Admin.enabled.is_(True)).count()
        if enabled_full <= 1:
            raise ServiceError("Cannot disable the last enabled full admin")

    target.enabled = not target.enabled
    target.updated_at = datetime.utcnow()
    record_event(
        s,
        actor=actor,
        action="ADMIN_ENABLED" if target.enabled else "ADMIN_DISABLED",
        entity_type="Admin",
        entity_id=target.id,
        metadata={"targetName": target.name, "targetEmail": target.email, "targetRole": target.role},
    )
    return target.enabled


def update_regions(s: "Session", target: Admin, payload: dict, actor: Admin) -> list[str]:
    """Replace the target's region set, auditing each added and removed code."""
    if target.role == ROLE_FULL:
        raise ServiceError("Full admins have global access and cannot be assigned regions")
    if not isinstance(payload.get("regionCodes"), list):
        raise ServiceError("Invalid input")
    codes, sbus = _region_input(payload)

    existing = {r.region_code: r for r in target.regions}
    removed = [c for c in existing if c not in codes]
    added = [c for c in codes if c not in existing]

    for code in removed:
        target.regions.remove(existing[code])
    for code, assignment in existing.items():
        if code in codes:
            assignment.sbu_code = sbus.get(code)
    for code in added:
        target.regions.append(AdminRegionAssignment(region_code=code, sbu_code=sbus.get(code)))

    for action, batch in (("ADMIN_REGION_REMOVED", removed), ("ADMIN_REGION_ASSIGNED", added)):
        for code in batch:
            record_event(
                s,
                actor=actor,
                action=action,
                entity_type="Admin",
                entity_id=target.id,
                metadata={"targetName": target.name, "regionCode": code, "regionName": region_name(code)},
            )
    target.updated_at = datetime.utcnow()
    return codes
