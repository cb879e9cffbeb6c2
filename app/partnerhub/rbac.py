from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import abort, current_app, g
from sqlalchemy import and_, or_

from app.partnerhub.constants import ROLE_FULL, STATUS_APPROVED
from app.partnerhub.models import Admin, User


def current_admin() -> Admin:
    admin = getattr(g, "current_admin", None)
    if not admin:
        raise RuntimeError("No current admin")
    return admin


def current_partner() -> User:
    user = getattr(g, "current_user", None)
    if not user:
        raise RuntimeError("No current partner")
    return user


def admin_can_access_region(admin: Admin, region_code: str | None) -> bool:
    if admin.role == ROLE_FULL:
        return True
    return bool(region_code) and region_code in admin.region_codes


def coordinator_matches(admin: Admin, region_code: str, sbu_code: str | None = None) -> bool:
    """
    Region match that honours SBU-level assignments: an assignment carrying an SBU
    only matches that SBU; an assignment without one covers the whole region.
    """
    for assignment in admin.regions:
        if assignment.region_code != region_code:
            continue
        if not assignment.sbu_code or assignment.sbu_code == sbu_code:
            return True
    return False


def require_admin(*roles: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Admin-session guard; with roles given, the admin's role must be one of them."""

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            admin: Admin | None = getattr(g, "current_admin", None)
            if not admin or not admin.enabled:
                abort(401, description="Unauthorized")
            if roles and admin.role not in roles:
                g.missing_role = "|".join(roles)
                abort(403, description="Forbidden")
            return fn(*args, **kwargs)

        return wrapped

    return decorator


def require_partner(approved: bool = False) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Partner-session guard; approved=True additionally requires an APPROVED profile."""

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            user: User | None = getattr(g, "current_user", None)
            if not user:
                abort(401, description="Unauthorized")
            if approved:
                profile = user.profile
                if not profile or profile.status != STATUS_APPROVED:
                    abort(403, description="Partner not approved")
                if profile.suspended:
                    current_app.logger.warning("Suspended partner blocked (user_id=%s)", user.id)
                    abort(403, description="Partner account suspended")
            return fn(*args, **kwargs)

        return wrapped

    return decorator


def region_scope_condition(admin: Admin, region_col, sbu_col):
    """
    SQL filter limiting rows to the admin's assigned regions, or None for FULL.
    Regions assigned at SBU level only admit rows carrying that SBU.
    """
    if admin.role == ROLE_FULL:
        return None
    sbu_assignments = [a for a in admin.regions if a.sbu_code]
    if not sbu_assignments:
        return region_col.in_(admin.region_codes)
    whole_regions = [a.region_code for a in admin.regions if not a.sbu_code]
    conditions = [and_(region_col == a.region_code, sbu_col == a.sbu_code) for a in sbu_assignments]
    if whole_regions:
        conditions.append(region_col.in_(whole_regions))
    return or_(*conditions)
