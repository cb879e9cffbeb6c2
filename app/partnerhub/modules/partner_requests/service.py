from __future__ import annotations

from typing import TYPE_CHECKING, Any

from flask import current_app
from sqlalchemy import exists, select

from app.partnerhub.audit import record_event
from app.partnerhub.constants import (
    AUTHOR_ADMIN,
    AUTHOR_PARTNER,
    CATEGORY_INFO,
    RESTOCK_ITEMS,
    ROLE_COORDINATOR,
    STATUS_APPROVED,
    THREAD_CLOSED,
    THREAD_OPEN,
    THREAD_RESPONDED,
)
from app.partnerhub.errors import ServiceError
from app.partnerhub.mailer import send_templated_email
from app.partnerhub.modules.agents.models import Agent
from app.partnerhub.modules.businesses.models import Business
from app.partnerhub.modules.notifications.service import (
    NotificationInput,
    broadcast_admin_notification,
    send_partner_notification,
)
from app.partnerhub.modules.partner_requests.models import RequestReply, RestockRequest, TrainingRequest
from app.partnerhub.modules.partners.service import partner_region_codes
from app.partnerhub.rbac import region_scope_condition
from app.partnerhub.threads import after_reply, ensure_open, parse_thread_status, reply_message, reply_to_dict
from app.partnerhub.utils import clean_str, serialize

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.partnerhub.models import Admin
    from app.partnerhub.modules.partners.models import PartnerProfile

TYPE_RESTOCK = "restock"
TYPE_TRAINING = "training"
REQUEST_TYPES = (TYPE_RESTOCK, TYPE_TRAINING)
THREAD_STATUSES = (THREAD_OPEN, THREAD_RESPONDED, THREAD_CLOSED)

_MODELS = {TYPE_RESTOCK: RestockRequest, TYPE_TRAINING: TrainingRequest}
_LABELS = {TYPE_RESTOCK: "Restock request", TYPE_TRAINING: "Training request"}
_AUDIT_PREFIX = {TYPE_RESTOCK: "RESTOCK_REQUEST", TYPE_TRAINING: "TRAINING_REQUEST"}

COMMON_FIELDS = (
    ("id", "id"),
    ("partnerProfileId", "partner_profile_id"),
    ("notes", "notes"),
    ("status", "status"),
    ("createdAt", "created_at"),
    ("updatedAt", "updated_at"),
)
RESTOCK_FIELDS = (*COMMON_FIELDS, ("businessId", "business_id"), ("items", "items"), ("quantity", "quantity"))
TRAINING_FIELDS = (*COMMON_FIELDS, ("agentIds", "agent_ids"), ("agentNames", "agent_names"))


def request_type_of(row: RestockRequest | TrainingRequest) -> str:
    return TYPE_RESTOCK if isinstance(row, RestockRequest) else TYPE_TRAINING


def request_to_dict(row: RestockRequest | TrainingRequest, *, include_replies: bool = True, include_partner: bool = False) -> dict[str, Any]:
    kind = request_type_of(row)
    out = serialize(row, RESTOCK_FIELDS if kind == TYPE_RESTOCK else TRAINING_FIELDS)
    out["requestType"] = kind
    out["replyCount"] = len(row.replies)
    if kind == TYPE_RESTOCK:
        out["business"] = {"businessName": row.business.business_name, "city": row.business.city}
    if include_replies:
        out["replies"] = [reply_to_dict(r) for r in row.replies]
    if include_partner:
        p = row.partner_profile
        out["partnerProfile"] = {
            "id": p.id,
            "businessName": p.business_name,
            "partnerFirstName": p.partner_first_name,
            "partnerSurname": p.partner_surname,
        }
    return out


def _newest_first(rows: list) -> list:
    return sorted(rows, key=lambda r: (r.created_at, r.id), reverse=True)


def _ops_recipient() -> str:
    return current_app.config.get("SMTP_DEFAULT_RECIPIENT") or ""


# ---------- Partner side ----------


def list_partner_requests(s: "Session", profile: "PartnerProfile") -> list[RestockRequest | TrainingRequest]:
    restock = s.query(RestockRequest).filter(RestockRequest.partner_profile_id == profile.id).all()
    training = s.query(TrainingRequest).filter(TrainingRequest.partner_profile_id == profile.id).all()
    return _newest_first([*restock, *training])


def _parse_quantity(value: Any) -> int | None:
    """Positive whole number, given as an int, an integral float or a digit string."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ServiceError("Quantity must be a positive number")
    if isinstance(value, float):
        if not value.is_integer():
            raise ServiceError("Quantity must be a positive number")
        value = int(value)
    elif isinstance(value, str):
        value = value.strip()
        if not value.isdigit():
            raise ServiceError("Quantity must be a positive number")
        value = int(value)
    elif not isinstance(value, int):
        raise ServiceError("Quantity must be a positive number")
    if value < 1:
        raise ServiceError("Quantity must be a positive number")
    return value


def create_restock_request(s: "Session", profile: "PartnerProfile", payload: dict) -> RestockRequest:
    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise ServiceError("At least one item is required")
    if any(item not in RESTOCK_ITEMS for item in items):
        raise ServiceError(f"Items must be drawn from: {', '.join(RESTOCK_ITEMS)}")
    quantity = _parse_quantity(payload.get("quantity"))
    try:
        business_id = int(payload.get("businessId"))
    except (TypeError, ValueError):
        raise ServiceError("Business location is required") from None

    business = s.get(Business, business_id)
    if not business or business.partner_profile_id != profile.id or business.status != STATUS_APPROVED:
        raise ServiceError("Business not found or not approved")

    notes = clean_str(payload.get("notes"))
    row = RestockRequest(
        partner_profile_id=profile.id,
        business_id=business.id,
        items=list(dict.fromkeys(items)),
        quantity=quantity,
        notes=notes,
        status=THREAD_OPEN,
    )
    s.add(row)
    s.flush()

    location = f"{business.business_name} ({business.city})"
    partner = profile.business_name or "Partner"
    broadcast_admin_notification(
        s,
        NotificationInput(
            "Restock request",
            f"{partner} requested restock for {location}: {', '.join(row.items)}.",
            CATEGORY_INFO,
        ),
        region_codes=[business.address_region_code],
    )
    send_templated_email(
        to=_ops_recipient(),
        subject="Partner restock request",
        title="New restock request",
        preheader="A partner submitted a restock request.",
        message=[
            f"Partner: {profile.business_name or 'Unknown'}",
            f"Location: {location}",
            f"Quantity: {quantity}" if quantity else "",
            f"Notes: {notes}" if notes else "Notes: -",
        ],
        bullets=[f"Items: {', '.join(row.items)}"],
    )
    return row


def create_training_request(s: "Session", profile: "PartnerProfile", payload: dict) -> TrainingRequest:
    raw_ids = payload.get("agentIds")
    if not isinstance(raw_ids, list) or not raw_ids:
        raise ServiceError("At least one agent must be selected")
    try:
        ids = {int(a) for a in raw_ids}
    except (TypeError, ValueError):
        raise ServiceError("Invalid agent selection") from None

    agents = (
        s.query(Agent)
        .filter(Agent.id.in_(ids), Agent.partner_profile_id == profile.id)
        .order_by(Agent.id)
        .all()
    )
    if len(agents) != len(ids):
        raise ServiceError("Invalid agent selection")

    notes = clean_str(payload.get("notes"))
    names = [a.full_name for a in agents]
    row = TrainingRequest(
        partner_profile_id=profile.id,
        agent_ids=[a.id for a in agents],
        agent_names=names,
        notes=notes,
        status=THREAD_OPEN,
    )
    s.add(row)
    s.flush()

    broadcast_admin_notification(
        s,
        NotificationInput(
            "Training request",
            f"{profile.business_name or 'Partner'} requested training for {', '.join(names)}.",
            CATEGORY_INFO,
        ),
        region_codes=partner_region_codes(s, profile.id),
    )
    send_templated_email(
        to=_ops_recipient(),
        subject="Partner training request",
        title="New training request",
        preheader="A partner submitted a training request.",
        message=[
            f"Partner: {profile.business_name or 'Unknown'}",
            f"Notes: {notes}" if notes else "Notes: -",
        ],
        bullets=[f"Agents: {', '.join(names)}"],
    )
    return row


def get_request(s: "Session", kind: str, request_id: int) -> RestockRequest | TrainingRequest:
    model = _MODELS.get(kind)
    if model is None:
        raise ServiceError("Invalid request type", 404)
    row = s.get(model, request_id)
    if not row:
        raise ServiceError("Request not found", 404)
    return row


def _region_codes_for(s: "Session", row: RestockRequest | TrainingRequest) -> list[str]:
    if isinstance(row, RestockRequest):
        return [row.business.address_region_code]
    return partner_region_codes(s, row.partner_profile_id)


def partner_reply(s: "Session", profile: "PartnerProfile", kind: str, request_id: int, payload: dict) -> RequestReply:
    message = reply_message(payload)
    row = get_request(s, kind, request_id)
    if row.partner_profile_id != profile.id:
        raise ServiceError("Forbidden", 403)
    ensure_open(row, "Request")

    reply = RequestReply(author_type=AUTHOR_PARTNER, message=message)
    row.replies.append(reply)
    after_reply(row, AUTHOR_PARTNER)
    s.flush()
    label = _LABELS[kind]
    broadcast_admin_notification(
        s,
        NotificationInput(
            f"{label} reply",
            f"{profile.business_name or 'Partner'} replied to a {label.lower()}.",
            CATEGORY_INFO,
        ),
        region_codes=_region_codes_for(s, row),
    )
    return reply


# ---------- Admin side ----------


def list_requests(
    s: "Session",
    admin: "Admin",
    *,
    kind: str | None = None,
    status: str | None = None,
    page: int = 1,
    limit: int = 50,
) -> list[RestockRequest | TrainingRequest]:
    """Both request kinds merged newest first. Coordinators only see their regions."""
    scoped = admin.role == ROLE_COORDINATOR
    offset = (page - 1) * limit
    rows: list = []

    if kind in (None, TYPE_RESTOCK):
        q = s.query(RestockRequest)
        if status in THREAD_STATUSES:
            q = q.filter(RestockRequest.status == status)
        if scoped:
            q = q.join(Business, Business.id == RestockRequest.business_id).filter(
                region_scope_condition(admin, Business.address_region_code, Business.address_sbu_code)
            )
        rows.extend(q.order_by(RestockRequest.created_at.desc()).offset(offset).limit(limit).all())

    if kind in (None, TYPE_TRAINING):
        q = s.query(TrainingRequest)
        if status in THREAD_STATUSES:
            q = q.filter(TrainingRequest.status == status)
        if scoped:
            in_region = exists(
                select(Business.id).where(
                    Business.partner_profile_id == TrainingRequest.partner_profile_id,
                    region_scope_condition(admin, Business.address_region_code, Business.address_sbu_code),
                )
            )
            q = q.filter(in_region)
        rows.extend(q.order_by(TrainingRequest.created_at.desc()).offset(offset).limit(limit).all())

    return _newest_first(rows)


def admin_reply(s: "Session", row: RestockRequest | TrainingRequest, payload: dict, admin: "Admin") -> RequestReply:
    message = reply_message(payload)
    ensure_open(row, "Request")
    kind = request_type_of(row)

    reply = RequestReply(author_type=AUTHOR_ADMIN, admin_id=admin.id, message=message)
    row.replies.append(reply)
    after_reply(row, AUTHOR_ADMIN)
    s.flush()
    label = _LABELS[kind]
    send_partner_notification(
        s,
        row.partner_profile.user_id,
        NotificationInput(f"{label} reply", f"Admin responded to your {label.lower()}.", CATEGORY_INFO),
    )
    record_event(
        s,
        actor=admin,
        action=f"{_AUDIT_PREFIX[kind]}_REPLIED",
        entity_type=type(row).__name__,
        entity_id=row.id,
        metadata={"replyId": reply.id},
    )
    return reply


def set_request_status(s: "Session", row: RestockRequest | TrainingRequest, payload: dict, admin: "Admin") -> RestockRequest | TrainingRequest:
    status = parse_thread_status(payload)
    row.status = status
    suffix = "CLOSED" if status == THREAD_CLOSED else "REOPENED"
    record_event(
        s,
        actor=admin,
        action=f"{_AUDIT_PREFIX[request_type_of(row)]}_{suffix}",
        entity_type=type(row).__name__,
        entity_id=row.id,
        metadata={"status": status},
    )
    return row
