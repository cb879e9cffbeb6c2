from __future__ import annotations

import re
from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.partnerhub.audit import record_event
from app.partnerhub.constants import (
    CATEGORY_INFO,
    ROLE_COORDINATOR,
    ROLE_MANAGER,
    STATUS_APPROVED,
    STATUS_DENIED,
    STATUS_SUBMITTED,
)
from app.partnerhub.errors import ServiceError, validation_error
from app.partnerhub.modules.agents.models import Agent
from app.partnerhub.modules.businesses.models import Business
from app.partnerhub.modules.notifications.service import NotificationInput, notify_admins_by_role
from app.partnerhub.rbac import admin_can_access_region, region_scope_condition
from app.partnerhub.review import ReviewSubject, notify_review_decision
from app.partnerhub.utils import clean_str, is_email, is_url, serialize

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.partnerhub.models import Admin
    from app.partnerhub.modules.partners.models import PartnerProfile


_CP_APP_RE = re.compile(r"^\d{1,10}$")
_REFERRAL_RE = re.compile(r"^[a-zA-Z0-9]+$")

EDITABLE_FIELDS = (
    ("firstName", "first_name"),
    ("surname", "surname"),
    ("phoneNumber", "phone_number"),
    ("email", "email"),
    ("ghanaCardNumber", "ghana_card_number"),
    ("ghanaCardFrontUrl", "ghana_card_front_url"),
    ("ghanaCardBackUrl", "ghana_card_back_url"),
    ("passportPhotoUrl", "passport_photo_url"),
    ("addressRegionCode", "address_region_code"),
    ("addressDistrictCode", "address_district_code"),
    ("addressCode", "address_code"),
    ("city", "city"),
    ("businessName", "business_name"),
    ("cpAppNumber", "cp_app_number"),
)
OPTIONAL_FIELDS = frozenset({"cpAppNumber"})
PHOTO_FIELDS = frozenset({"ghanaCardFrontUrl", "ghanaCardBackUrl", "passportPhotoUrl"})

AGENT_FIELDS = (
    ("id", "id"),
    ("partnerProfileId", "partner_profile_id"),
    ("businessId", "business_id"),
    ("status", "status"),
    *EDITABLE_FIELDS,
    ("agentUsername", "agent_username"),
    ("minervaReferralCode", "minerva_referral_code"),
    ("approvedAt", "approved_at"),
    ("deniedAt", "denied_at"),
    ("denialReason", "denial_reason"),
    ("createdAt", "created_at"),
    ("updatedAt", "updated_at"),
)


def agent_to_dict(agent: Agent, *, include_business: bool = True) -> dict[str, Any]:
    out = serialize(agent, AGENT_FIELDS)
    if include_business and agent.business is not None:
        out["business"] = {
            "id": agent.business.id,
            "businessName": agent.business.business_name,
            "city": agent.business.city,
            "addressCode": agent.business.address_code,
            "addressRegionCode": agent.business.address_region_code,
        }
    return out


def validate_agent_payload(payload: dict, *, partial: bool = False) -> tuple[dict[str, str | None], list[str]]:
    values: dict[str, str | None] = {}
    errors: list[str] = []
    for key, attr in EDITABLE_FIELDS:
        if partial and key not in payload:
            continue
        value = clean_str(payload.get(key))
        if value is None:
            if key not in OPTIONAL_FIELDS and (not partial or key not in PHOTO_FIELDS):
                errors.append(f"{key} is required")
                continue
        elif key in PHOTO_FIELDS and not is_url(value):
            errors.append(f"{key} must be a valid URL")
            continue
        elif key == "email" and not is_email(value):
            errors.append("email must be a valid email address")
            continue
        values[attr] = value
    return values, errors


# ---------- Partner side ----------


def list_partner_agents(s: "Session", profile: "PartnerProfile") -> list[Agent]:
    return (
        s.query(Agent)
        .filter(Agent.partner_profile_id == profile.id)
        .order_by(Agent.created_at.desc(), Agent.id.desc())
        .all()
    )


def create_agent(s: "Session", profile: "PartnerProfile", payload: dict) -> Agent:
    values, errors = validate_agent_payload(payload)
    if errors:
        raise validation_error(errors)
    try:
        business_id = int(payload.get("businessId"))
    except (TypeError, ValueError):
        raise ServiceError("Invalid business") from None
    business = s.get(Business, business_id)
    if not business or business.partner_profile_id != profile.id:
        raise ServiceError("Invalid business")

    agent = Agent(partner_profile_id=profile.id, business_id=business.id, status=STATUS_SUBMITTED, **values)
    s.add(agent)
    s.flush()
    notify_admins_by_role(
        s,
        NotificationInput(
            "New agent submitted",
            f'Partner "{profile.display_name}" submitted agent "{agent.full_name}" for review.',
            CATEGORY_INFO,
        ),
        roles=(ROLE_COORDINATOR, ROLE_MANAGER),
        region_code=business.address_region_code,
        sbu_code=business.address_sbu_code,
    )
    return agent


def get_partner_agent(s: "Session", profile: "PartnerProfile", agent_id: int) -> Agent:
    agent = s.get(Agent, agent_id)
    if not agent or agent.partner_profile_id != profile.id:
        raise ServiceError("Agent not found", 404)
    return agent


def set_cp_app_number(s: "Session", agent: Agent, value: Any) -> Agent:
    number = clean_str(value)
    if not number or not _CP_APP_RE.match(number):
        raise ServiceError("CP app number must be 1-10 digits")
    agent.cp_app_number = number
    agent.updated_at = datetime.utcnow()
    return agent


def update_credentials(s: "Session", agent: Agent, payload: dict) -> Agent:
    cp_app = clean_str(payload.get("cpAppNumber"))
    username = clean_str(payload.get("agentUsername"))
    referral = clean_str(payload.get("minervaReferralCode"))
    errors: list[str] = []
    if cp_app and not _CP_APP_RE.match(cp_app):
        errors.append("CP app number must be 1-10 digits")
    if referral and not _REFERRAL_RE.match(referral):
        errors.append("Referral code must be alphanumeric")
    if not (cp_app or username or referral):
        errors.append("At least one field is required")
    if errors:
        raise validation_error(errors)

    if cp_app:
        agent.cp_app_number = cp_app
    if username:
        agent.agent_username = username
    if referral:
        agent.minerva_referral_code = referral
    agent.updated_at = datetime.utcnow()
    return agent


# ---------- Admin side ----------


def list_agents(s: "Session", admin: "Admin", *, status: str | None = None) -> list[Agent]:
    q = s.query(Agent).join(Business, Business.id == Agent.business_id)
    if status:
        q = q.filter(Agent.status == status)
    scope = region_scope_condition(admin, Business.address_region_code, Business.address_sbu_code)
    if scope is not None:
        q = q.filter(scope)
    return q.order_by(Agent.created_at.desc(), Agent.id.desc()).all()


def get_agent_for_admin(s: "Session", admin: "Admin", agent_id: int) -> Agent:
    agent = s.get(Agent, agent_id)
    if not agent:
        raise ServiceError("not_found", 404)
    if not admin_can_access_region(admin, agent.business.address_region_code):
        raise ServiceError("forbidden", 403)
    return agent


def admin_update_agent(s: "Session", agent: Agent, payload: dict, admin: "Admin") -> Agent:
    values, errors = validate_agent_payload(payload, partial=True)
    if errors:
        raise validation_error(errors)
    updated_fields = [key for key, attr in EDITABLE_FIELDS if attr in values]
    for attr, value in values.items():
        setattr(agent, attr, value)
    agent.updated_at = datetime.utcnow()
    record_event(
        s,
        actor=admin,
        action="AGENT_EDITED",
        entity_type="Agent",
        entity_id=agent.id,
        metadata={"updatedFields": updated_fields},
    )
    return agent


def _subject(agent: Agent) -> ReviewSubject:
    return ReviewSubject(
        label="Agent",
        name=agent.full_name,
        region_code=agent.business.address_region_code,
        partner=agent.partner_profile,
        copy_reviewer=True,
    )


def approve_agent(s: "Session", agent: Agent, admin: "Admin") -> Agent:
    now = datetime.utcnow()
    agent.status = STATUS_APPROVED
    agent.approved_at = now
    agent.denied_at = None
    agent.denial_reason = None
    agent.updated_at = now
    record_event(s, actor=admin, action="AGENT_APPROVED", entity_type="Agent", entity_id=agent.id)
    notify_review_decision(s, _subject(agent), admin, approved=True)
    return agent


def deny_agent(s: "Session", agent: Agent, admin: "Admin", reason: str | None) -> Agent:
    reason = clean_str(reason)
    if not reason:
        raise ServiceError("Denial reason is required")
    now = datetime.utcnow()
    agent.status = STATUS_DENIED
    agent.denied_at = now
    agent.denial_reason = reason
    agent.approved_at = None
    agent.updated_at = now
    record_event(
        s,
        actor=admin,
        action="AGENT_DENIED",
        entity_type="Agent",
        entity_id=agent.id,
        reason=reason,
        metadata={"reason": reason},
    )
    notify_review_decision(s, _subject(agent), admin, approved=False, reason=reason)
    return agent
