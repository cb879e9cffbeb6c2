"""
Multi-stage approval chains for admin request forms.

A chain is a table of stages keyed by form status. Each stage names the roles
that may act, the next status and the audit action to record; notices say who
hears about each new status. Onboard requests and data requests are two
configurations of the same engine.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Integer, String, Text, and_, or_
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, relationship

from app.partnerhub.audit import record_event
from app.partnerhub.constants import (
    BUSINESS_TYPES,
    CATEGORY_INFO,
    CATEGORY_SUCCESS,
    CATEGORY_WARNING,
    MAX_FORM_IMAGES,
    REGISTERED_NATURES,
    ROLE_COORDINATOR,
    ROLE_FULL,
    ROLE_SENIOR_MANAGER,
    STATUS_APPROVED,
    STATUS_DENIED,
    STATUS_DRAFT,
)
from app.partnerhub.errors import ServiceError, validation_error
from app.partnerhub.locations import is_valid_region
from app.partnerhub.modules.notifications.service import (
    NotificationInput,
    notify_admins_by_role,
    send_admin_notification,
)
from app.partnerhub.rbac import coordinator_matches, region_scope_condition
from app.partnerhub.utils import clean_str, parse_date, parse_datetime, serialize

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.partnerhub.models import Admin

logger = logging.getLogger(__name__)

ACTION_SUBMITTED = "SUBMITTED"
ACTION_APPROVED = "APPROVED"
ACTION_DENIED = "DENIED"


# ---------- Shared columns ----------


class RequestFormMixin:
    """Business details captured on every request form."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=STATUS_DRAFT)
    region_code: Mapped[str] = mapped_column(String(8), nullable=False)

    business_name: Mapped[str] = mapped_column(String(255), nullable=False)
    date_of_incorporation: Mapped[date | None] = mapped_column(Date, nullable=True)
    business_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    business_type_other: Mapped[str | None] = mapped_column(String(255), nullable=True)
    registered_nature: Mapped[str | None] = mapped_column(String(64), nullable=True)
    registration_cert_no: Mapped[str | None] = mapped_column(String(128), nullable=True)
    main_office_location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    tin_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    postal_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    physical_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    company_phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    digital_post_address: Mapped[str | None] = mapped_column(String(64), nullable=True)

    authorized_signatory: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    contact_person: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    pep_declaration: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    image_urls: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    completion_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @declared_attr
    def created_by_admin_id(cls) -> Mapped[int | None]:
        return mapped_column(ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)

    @declared_attr
    def created_by_admin(cls) -> Mapped["Admin"]:
        return relationship("Admin", lazy="joined")


class ApprovalMixin:
    """One recorded decision on a request form."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False)
    action: Mapped[str] = mapped_column(String(16), nullable=False)  # SUBMITTED, APPROVED, DENIED
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    signature_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    signature_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    score: Mapped[float | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    @declared_attr
    def admin_id(cls) -> Mapped[int]:
        return mapped_column(ForeignKey("admins.id", ondelete="CASCADE"), nullable=False)

    @declared_attr
    def admin(cls) -> Mapped["Admin"]:
        return relationship("Admin", lazy="joined")


# ---------- Chain configuration ----------


@dataclass(frozen=True)
class Stage:
    status: str
    roles: tuple[str, ...]
    next_status: str
    audit_suffix: str
    forbidden_message: str
    action: str = ACTION_APPROVED
    creator_only: bool = False
    region_bound: bool = False
    claims: bool = False
    requires_score: bool = False


@dataclass(frozen=True)
class Notice:
    roles: tuple[str, ...]
    message: str
    creator_message: str | None = None
    region_scoped: bool = False


@dataclass(frozen=True)
class ApprovalChain:
    title: str  # "Onboard Request"
    audit_prefix: str  # "ONBOARD_REQUEST"
    entity_type: str
    form_model: type
    approval_model: type
    stages: dict[str, Stage]
    notices: dict[str, Notice]
    approved_message: str
    deny_statuses: dict[str, tuple[str, ...]]
    review_statuses: dict[str, str]
    score_key: str  # "governanceScore"
    score_label: str  # "Governance"
    intake_status: str | None = None
    extra_fields: tuple[tuple[str, str], ...] = ()
    readonly_fields: tuple[tuple[str, str], ...] = ()

    @property
    def noun(self) -> str:
        return self.title.lower()

    @property
    def editable_fields(self) -> tuple[tuple[str, str], ...]:
        return (*FORM_FIELDS, *self.extra_fields)


# ---------- Payloads ----------

# (json key, attribute) shared by every request form
FORM_FIELDS = (
    ("businessName", "business_name"),
    ("dateOfIncorporation", "date_of_incorporation"),
    ("businessType", "business_type"),
    ("businessTypeOther", "business_type_other"),
    ("registeredNature", "registered_nature"),
    ("registrationCertNo", "registration_cert_no"),
    ("mainOfficeLocation", "main_office_location"),
    ("regionCode", "region_code"),
    ("tinNumber", "tin_number"),
    ("postalAddress", "postal_address"),
    ("physicalAddress", "physical_address"),
    ("companyPhone", "company_phone"),
    ("digitalPostAddress", "digital_post_address"),
    ("authorizedSignatory", "authorized_signatory"),
    ("contactPerson", "contact_person"),
    ("pepDeclaration", "pep_declaration"),
    ("imageUrls", "image_urls"),
    ("completionDate", "completion_date"),
)
DATE_FIELDS = frozenset({"dateOfIncorporation", "completionDate"})
JSON_BLOCK_FIELDS = frozenset({"authorizedSignatory", "contactPerson", "pepDeclaration"})
CHOICE_FIELDS = {"businessType": BUSINESS_TYPES, "registeredNature": REGISTERED_NATURES}
REQUIRED_FIELDS = {"businessName": "Business name is required", "regionCode": "Region is required"}

APPROVAL_FIELDS = (
    ("id", "id"),
    ("role", "role"),
    ("action", "action"),
    ("comments", "comments"),
    ("signatureUrl", "signature_url"),
    ("signatureDate", "signature_date"),
    ("createdAt", "created_at"),
)


def _admin_ref(admin) -> dict | None:
    if admin is None:
        return None
    return {"id": admin.id, "name": admin.name, "role": admin.role}


def form_to_dict(chain: ApprovalChain, form, *, include_approvals: bool = False) -> dict[str, Any]:
    out = serialize(form, (("id", "id"), ("status", "status"), *chain.editable_fields, *chain.readonly_fields))
    out.update(
        {
            "createdByAdminId": form.created_by_admin_id,
            "createdByAdmin": _admin_ref(form.created_by_admin),
            "createdAt": form.created_at.isoformat(),
            "updatedAt": form.updated_at.isoformat(),
        }
    )
    if include_approvals:
        approvals = []
        for a in form.approvals:
            item = serialize(a, APPROVAL_FIELDS)
            item[chain.score_key] = a.score
            item["admin"] = _admin_ref(a.admin)
            approvals.append(item)
        out["approvals"] = approvals
    return out


def validate_form_payload(
    chain: ApprovalChain, payload: dict, *, partial: bool = False
) -> tuple[dict[str, Any], list[str]]:
    values: dict[str, Any] = {}
    errors: list[str] = []
    for key, attr in chain.editable_fields:
        if partial and key not in payload:
            continue
        raw = payload.get(key)
        if key in JSON_BLOCK_FIELDS:
            if raw is not None and not isinstance(raw, dict):
                errors.append(f"{key} must be an object")
                continue
            values[attr] = raw or None
            continue
        if key == "imageUrls":
            urls = raw or []
            if not isinstance(urls, list) or not all(isinstance(u, str) for u in urls):
                errors.append("imageUrls must be a list of URLs")
                continue
            if len(urls) > MAX_FORM_IMAGES:
                errors.append(f"At most {MAX_FORM_IMAGES} images are allowed")
                continue
            values[attr] = urls
            continue

        value = clean_str(raw)
        if value is None:
            if key in REQUIRED_FIELDS:
                errors.append(REQUIRED_FIELDS[key])
                continue
        elif key in DATE_FIELDS:
            try:
                value = parse_date(value)
            except ValueError:
                errors.append(f"{key} must be a date (YYYY-MM-DD)")
                continue
        elif key in CHOICE_FIELDS and value not in CHOICE_FIELDS[key]:
            errors.append(f"{key} must be one of: {', '.join(CHOICE_FIELDS[key])}")
            continue
        values[attr] = value
    return values, errors


def _score(chain: ApprovalChain, payload: dict) -> float | None:
    raw = payload.get(chain.score_key)
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, (int, float)) or not 1 <= raw <= 100:
        raise ServiceError(f"{chain.score_key} must be a number between 1 and 100")
    return raw


def _signature_date(payload: dict) -> datetime | None:
    try:
        return parse_datetime(payload.get("signatureDate"))
    except ValueError:
        raise ServiceError("signatureDate must be an ISO date") from None


# ---------- Queries ----------


def get_form(s: "Session", chain: ApprovalChain, form_id: int):
    form = s.get(chain.form_model, form_id)
    if not form:
        raise ServiceError("Not found", 404)
    return form


def _visibility(chain: ApprovalChain, admin: "Admin", status_filter: str | None):
    """Role-based row filter for list views; None means unrestricted."""
    form_cls, approval_cls = chain.form_model, chain.approval_model
    role = admin.role
    if role == ROLE_FULL:
        return None
    if role == ROLE_COORDINATOR:
        own = form_cls.created_by_admin_id == admin.id
        if chain.intake_status is None:
            return own
        region_scope = region_scope_condition(admin, form_cls.region_code, form_cls.sbu_code)
        return or_(own, and_(form_cls.status == chain.intake_status, region_scope))

    pending = chain.review_statuses.get(role)
    if pending is None:
        raise ServiceError("Forbidden", 403)
    acted = form_cls.approvals.any(approval_cls.admin_id == admin.id)
    if role == ROLE_SENIOR_MANAGER:
        in_regions = form_cls.region_code.in_(admin.region_codes)
        if status_filter:
            return in_regions
        return or_(and_(form_cls.status == pending, in_regions), acted)
    if status_filter:
        return None
    return or_(form_cls.status == pending, acted)


def list_forms(
    s: "Session",
    chain: ApprovalChain,
    admin: "Admin",
    *,
    page: int,
    limit: int,
    status: str | None = None,
    region_code: str | None = None,
):
    form_cls = chain.form_model
    q = s.query(form_cls)
    if status:
        q = q.filter(form_cls.status == status)
    if region_code:
        q = q.filter(form_cls.region_code == region_code)
    condition = _visibility(chain, admin, status)
    if condition is not None:
        q = q.filter(condition)
    total = q.count()
    rows = (
        q.order_by(form_cls.created_at.desc(), form_cls.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


# ---------- Mutations ----------


def _require_own_region(admin: "Admin", region_code: str) -> None:
    if region_code not in admin.region_codes:
        raise ServiceError("Region not in your assigned regions", 403)


def create_form(s: "Session", chain: ApprovalChain, admin: "Admin", payload: dict):
    if admin.role != ROLE_COORDINATOR:
        raise ServiceError(f"Only coordinators can create {chain.noun}s", 403)
    values, errors = validate_form_payload(chain, payload)
    if errors:
        raise validation_error(errors)
    _require_own_region(admin, values["region_code"])

    form = chain.form_model(status=STATUS_DRAFT, created_by_admin_id=admin.id, **values)
    s.add(form)
    s.flush()
    record_event(
        s,
        actor=admin,
        action=f"{chain.audit_prefix}_CREATED",
        entity_type=chain.entity_type,
        entity_id=form.id,
        metadata={"businessName": form.business_name, "regionCode": form.region_code},
    )
    return form


def update_form(s: "Session", chain: ApprovalChain, form, admin: "Admin", payload: dict):
    if chain.intake_status is not None and form.status == chain.intake_status:
        if admin.role != ROLE_COORDINATOR:
            raise ServiceError("Only coordinators can edit pending submissions", 403)
        if not coordinator_matches(admin, form.region_code, form.sbu_code):
            raise ServiceError("This form is not in your assigned region", 403)
        if form.created_by_admin_id and form.created_by_admin_id != admin.id:
            raise ServiceError("This form has already been claimed by another coordinator", 409)
    elif form.status in (STATUS_DRAFT, STATUS_DENIED):
        if form.created_by_admin_id != admin.id:
            raise ServiceError("Only the creator can edit this form", 403)
    else:
        raise ServiceError("Can only edit draft or denied forms", 400)

    values, errors = validate_form_payload(chain, payload, partial=True)
    if errors:
        raise validation_error(errors)
    if "region_code" in values:
        _require_own_region(admin, values["region_code"])

    for attr, value in values.items():
        setattr(form, attr, value)
    if form.status == STATUS_DENIED:
        form.status = STATUS_DRAFT
    if chain.intake_status is not None and form.status == chain.intake_status and not form.created_by_admin_id:
        form.created_by_admin_id = admin.id
    form.updated_at = datetime.utcnow()
    return form


def _check_stage_actor(stage: Stage, form, admin: "Admin") -> None:
    if admin.role not in stage.roles:
        raise ServiceError(stage.forbidden_message, 403)
    if stage.creator_only and form.created_by_admin_id != admin.id:
        raise ServiceError(stage.forbidden_message, 403)
    if stage.region_bound and admin.role != ROLE_FULL:
        if stage.claims:
            in_region = coordinator_matches(admin, form.region_code, form.sbu_code)
        else:
            in_region = form.region_code in admin.region_codes
        if not in_region:
            raise ServiceError("This form is not in your assigned region", 403)
    if stage.claims and form.created_by_admin_id and form.created_by_admin_id != admin.id:
        raise ServiceError("This form has already been claimed by another coordinator", 409)


def submit_form(s: "Session", chain: ApprovalChain, form, admin: "Admin", payload: dict):
    """Advance the form one stage and record the actor's approval."""
    stage = chain.stages.get(form.status)
    if stage is None:
        raise ServiceError(f"Cannot submit from status {form.status}")
    _check_stage_actor(stage, form, admin)
    score = _score(chain, payload)
    if stage.requires_score and score is None:
        raise ServiceError(f"{chain.score_label} score is required for final approval")
    signature_date = _signature_date(payload)

    previous_status = form.status
    prior_approver_ids = [a.admin_id for a in form.approvals]
    if stage.claims and not form.created_by_admin_id:
        form.created_by_admin_id = admin.id
    form.status = stage.next_status
    form.updated_at = datetime.utcnow()
    form.approvals.append(
        chain.approval_model(
            admin_id=admin.id,
            role=admin.role,
            action=stage.action,
            comments=clean_str(payload.get("comments")),
            signature_url=clean_str(payload.get("signatureUrl")),
            signature_date=signature_date,
            score=score,
        )
    )
    record_event(
        s,
        actor=admin,
        action=f"{chain.audit_prefix}_{stage.audit_suffix}",
        entity_type=chain.entity_type,
        entity_id=form.id,
        metadata={
            "businessName": form.business_name,
            "from": previous_status,
            "to": form.status,
            chain.score_key: score,
        },
    )
    _notify_transition(s, chain, form, admin, prior_approver_ids, score)
    logger.info("%s %s moved %s -> %s by admin %s", chain.entity_type, form.id, previous_status, form.status, admin.id)
    return form


def _notify_transition(s: "Session", chain: ApprovalChain, form, admin: "Admin", prior_approver_ids, score) -> None:
    title = f"{chain.title}: {form.business_name}"
    if form.status == STATUS_APPROVED:
        data = NotificationInput(title, chain.approved_message.format(name=form.business_name, score=score), CATEGORY_SUCCESS)
        send_admin_notification(s, form.created_by_admin_id, data)
        for admin_id in dict.fromkeys(prior_approver_ids):
            if admin_id not in (admin.id, form.created_by_admin_id):
                send_admin_notification(s, admin_id, data)
        return

    notice = chain.notices.get(form.status)
    if notice is None:
        return
    data = NotificationInput(title, notice.message.format(name=form.business_name), CATEGORY_INFO)
    notify_admins_by_role(s, data, notice.roles, region_code=form.region_code if notice.region_scoped else None)
    if notice.creator_message:
        send_admin_notification(
            s,
            form.created_by_admin_id,
            data.with_message(notice.creator_message.format(name=form.business_name), CATEGORY_SUCCESS),
        )


def deny_form(s: "Session", chain: ApprovalChain, form, admin: "Admin", payload: dict):
    allowed = chain.deny_statuses.get(admin.role)
    if allowed is None:
        raise ServiceError(f"You do not have permission to deny {chain.noun}s", 403)
    if form.status not in allowed:
        raise ServiceError(f"Cannot deny form in {form.status} status with your role")
    comments = clean_str(payload.get("comments"))
    if not comments:
        raise ServiceError("Comments are required when denying")

    previous_status = form.status
    prior_approver_ids = [a.admin_id for a in form.approvals]
    form.status = STATUS_DENIED
    form.updated_at = datetime.utcnow()
    form.approvals.append(
        chain.approval_model(
            admin_id=admin.id,
            role=admin.role,
            action=ACTION_DENIED,
            comments=comments,
            signature_url=clean_str(payload.get("signatureUrl")),
        )
    )
    record_event(
        s,
        actor=admin,
        action=f"{chain.audit_prefix}_DENIED",
        entity_type=chain.entity_type,
        entity_id=form.id,
        reason=comments,
        metadata={"businessName": form.business_name, "previousStatus": previous_status, "reason": comments},
    )

    title = f"{chain.title} Denied: {form.business_name}"
    send_admin_notification(
        s,
        form.created_by_admin_id,
        NotificationInput(
            title,
            f'Your {chain.noun} for "{form.business_name}" has been denied. Reason: {comments}',
            CATEGORY_WARNING,
        ),
    )
    notified = {admin.id, form.created_by_admin_id}
    for admin_id in prior_approver_ids:
        if admin_id in notified:
            continue
        notified.add(admin_id)
        send_admin_notification(
            s,
            admin_id,
            NotificationInput(
                title,
                f'{chain.title.capitalize()} for "{form.business_name}" has been denied.',
                CATEGORY_WARNING,
            ),
        )
    return form


def validate_region(region_code: str | None) -> None:
    if not is_valid_region(region_code):
        raise ServiceError("Invalid region code")
