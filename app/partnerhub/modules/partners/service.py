from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from flask import current_app
from sqlalchemy import func, or_, select

from app.partnerhub.audit import record_event
from app.partnerhub.constants import (
    CATEGORY_INFO,
    CATEGORY_SUCCESS,
    CATEGORY_WARNING,
    ROLE_FULL,
    STATUS_APPROVED,
    STATUS_DENIED,
    STATUS_DRAFT,
    STATUS_SUBMITTED,
)
from app.partnerhub.errors import ServiceError, validation_error
from app.partnerhub.mailer import Cta, send_templated_email
from app.partnerhub.models import User
from app.partnerhub.modules.businesses.models import Business
from app.partnerhub.modules.notifications.models import Notification
from app.partnerhub.modules.notifications.service import (
    NotificationInput,
    broadcast_admin_notification,
    get_coordinator_emails_for_regions,
    send_admin_notification,
    send_partner_notification,
)
from app.partnerhub.modules.partners.models import PartnerProfile
from app.partnerhub.utils import clean_str, is_digits, is_url, serialize

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.partnerhub.models import Admin


# (json key, attribute) for the fifteen onboarding fields, in form order.
ONBOARDING_FIELDS = (
    ("businessName", "business_name"),
    ("partnerFirstName", "partner_first_name"),
    ("partnerSurname", "partner_surname"),
    ("phoneNumber", "phone_number"),
    ("paymentWallet", "payment_wallet"),
    ("ghanaCardNumber", "ghana_card_number"),
    ("ghanaCardFrontUrl", "ghana_card_front_url"),
    ("ghanaCardBackUrl", "ghana_card_back_url"),
    ("passportPhotoUrl", "passport_photo_url"),
    ("taxIdentityNumber", "tax_identity_number"),
    ("businessCertificateUrl", "business_certificate_url"),
    ("fireCertificateUrl", "fire_certificate_url"),
    ("insuranceUrl", "insurance_url"),
    ("apn", "apn"),
    ("mifiImei", "mifi_imei"),
)
URL_FIELDS = frozenset(
    {
        "ghanaCardFrontUrl",
        "ghanaCardBackUrl",
        "passportPhotoUrl",
        "businessCertificateUrl",
        "fireCertificateUrl",
        "insuranceUrl",
    }
)
DIGIT_FIELDS = frozenset({"apn", "mifiImei"})

PROFILE_FIELDS = (
    ("id", "id"),
    ("userId", "user_id"),
    ("status", "status"),
    *ONBOARDING_FIELDS,
    ("submittedAt", "submitted_at"),
    ("approvedAt", "approved_at"),
    ("deniedAt", "denied_at"),
    ("denialReason", "denial_reason"),
    ("suspended", "suspended"),
    ("suspendedAt", "suspended_at"),
    ("createdAt", "created_at"),
    ("updatedAt", "updated_at"),
)


def profile_to_dict(profile: PartnerProfile, *, include_user: bool = True) -> dict[str, Any]:
    out = serialize(profile, PROFILE_FIELDS)
    if include_user and profile.user is not None:
        out["user"] = {"id": profile.user.id, "email": profile.user.email}
    return out


def validate_onboarding_payload(payload: dict) -> tuple[dict[str, str | None], list[str]]:
    """
    Validate a (partial) onboarding payload.
    Returns ({attribute: cleaned value} for keys present in the payload, errors).
    Blank strings clear a field.
    """
    values: dict[str, str | None] = {}
    errors: list[str] = []
    for key, attr in ONBOARDING_FIELDS:
        if key not in payload:
            continue
        value = clean_str(payload.get(key))
        if value is not None and key in URL_FIELDS and not is_url(value):
            errors.append(f"{key} must be a valid URL.")
            continue
        if value is not None and key in DIGIT_FIELDS and not is_digits(value):
            errors.append(f"{key} must contain only digits.")
            continue
        values[attr] = value
    return values, errors


def missing_required_fields(profile: PartnerProfile) -> list[str]:
    return [key for key, attr in ONBOARDING_FIELDS if not getattr(profile, attr)]


def partner_region_codes(s: "Session", profile_id: int) -> list[str]:
    stmt = (
        select(Business.address_region_code)
        .where(Business.partner_profile_id == profile_id)
        .distinct()
    )
    return sorted(code for code in s.scalars(stmt) if code)


# ---------- Partner side ----------


def upsert_onboarding(s: "Session", user: User, payload: dict) -> PartnerProfile:
    values, errors = validate_onboarding_payload(payload)
    if errors:
        raise validation_error(errors)

    profile = user.profile
    if profile is None:
        profile = PartnerProfile(user_id=user.id, status=STATUS_DRAFT)
        user.profile = profile
        s.add(profile)
    elif profile.status not in (STATUS_DRAFT, STATUS_DENIED):
        raise ServiceError("Profile locked", 409)

    for attr, value in values.items():
        setattr(profile, attr, value)
    if profile.status == STATUS_DENIED:
        # editing a denied submission reopens it as a draft
        profile.status = STATUS_DRAFT
    profile.updated_at = datetime.utcnow()
    s.flush()
    return profile


def submit_onboarding(s: "Session", user: User) -> PartnerProfile:
    profile = user.profile
    if profile is None:
        raise ServiceError("Profile missing", 404)
    if profile.status != STATUS_DRAFT:
        raise ServiceError("Profile locked", 409)
    missing = missing_required_fields(profile)
    if missing:
        raise ServiceError("Missing required fields", 400, missing=missing)

    now = datetime.utcnow()
    profile.status = STATUS_SUBMITTED
    profile.submitted_at = now
    profile.updated_at = now
    broadcast_admin_notification(
        s,
        NotificationInput(
            title="Partner submission received",
            message=f'Partner "{profile.display_name}" submitted onboarding details for review.',
            category=CATEGORY_INFO,
        ),
    )
    return profile


# ---------- Admin side ----------


def list_partners(s: "Session", *, status: str | None = None) -> list[PartnerProfile]:
    q = s.query(PartnerProfile)
    if status:
        q = q.filter(PartnerProfile.status == status)
    return q.order_by(PartnerProfile.updated_at.desc(), PartnerProfile.id.desc()).all()


def search_partners(s: "Session", q: str, *, limit: int = 20) -> list[PartnerProfile]:
    q = (q or "").strip()
    if len(q) < 2:
        return []
    like = f"%{q.lower()}%"
    return (
        s.query(PartnerProfile)
        .join(User, User.id == PartnerProfile.user_id)
        .filter(
            or_(
                func.lower(PartnerProfile.business_name).like(like),
                func.lower(PartnerProfile.partner_first_name).like(like),
                func.lower(PartnerProfile.partner_surname).like(like),
                func.lower(User.email).like(like),
            )
        )
        .order_by(PartnerProfile.updated_at.desc())
        .limit(limit)
        .all()
    )


def admin_update_profile(s: "Session", profile: PartnerProfile, payload: dict, admin: "Admin") -> PartnerProfile:
    values, errors = validate_onboarding_payload(payload)
    if errors:
        raise validation_error(errors)
    updated_fields = [key for key, attr in ONBOARDING_FIELDS if attr in values]
    for attr, value in values.items():
        setattr(profile, attr, value)
    profile.updated_at = datetime.utcnow()
    record_event(
        s,
        actor=admin,
        action="PARTNER_EDITED",
        entity_type="PartnerProfile",
        entity_id=profile.id,
        metadata={"updatedFields": updated_fields},
    )
    return profile


def _admin_line(admin: "Admin") -> str:
    return f"Admin: {admin.name} ({admin.email})"


def approve_partner(s: "Session", profile: PartnerProfile, admin: "Admin") -> PartnerProfile:
    now = datetime.utcnow()
    profile.status = STATUS_APPROVED
    profile.approved_at = now
    profile.denied_at = None
    profile.denial_reason = None
    profile.updated_at = now
    record_event(s, actor=admin, action="PARTNER_APPROVED", entity_type="PartnerProfile", entity_id=profile.id)

    name = profile.business_name or "Unknown"
    send_templated_email(
        to=profile.user.email,
        subject="Your partner submission was approved",
        title="Your partner submission was approved",
        preheader="Your submission has been approved.",
        message=[
            f"Location: {profile.business_name or 'MTN Community Shop'}",
            "Your submission is approved. You can now manage agents and locations in your dashboard.",
        ],
    )
    send_templated_email(
        to=get_coordinator_emails_for_regions(s, partner_region_codes(s, profile.id)),
        subject="Partner submission approved",
        title="Partner submission approved",
        preheader="A partner submission was approved.",
        message=[_admin_line(admin), f"Partner: {name}"],
    )
    send_admin_notification(
        s, admin.id, NotificationInput("Partner submission approved", f"Partner: {name}", CATEGORY_SUCCESS)
    )
    send_partner_notification(
        s,
        profile.user_id,
        NotificationInput(
            "Partner submission approved",
            "Your partner submission was approved. You can now manage agents and locations in your dashboard.",
            CATEGORY_SUCCESS,
        ),
    )
    return profile


def deny_partner(s: "Session", profile: PartnerProfile, admin: "Admin", reason: str | None) -> PartnerProfile:
    reason = clean_str(reason)
    if not reason:
        raise ServiceError("Reason is required")
    now = datetime.utcnow()
    profile.status = STATUS_DENIED
    profile.denied_at = now
    profile.denial_reason = reason
    profile.approved_at = None
    profile.updated_at = now
    record_event(
        s,
        actor=admin,
        action="PARTNER_DENIED",
        entity_type="PartnerProfile",
        entity_id=profile.id,
        reason=reason,
        metadata={"reason": reason},
    )

    name = profile.business_name or "Unknown"
    send_templated_email(
        to=profile.user.email,
        subject="Your partner submission was denied",
        title="Your partner submission was denied",
        preheader="Your submission needs updates.",
        message=[
            f"Location: {profile.business_name or 'MTN Community Shop'}",
            f"Reason: {reason}",
            "Please update your submission and resubmit when ready.",
        ],
    )
    send_templated_email(
        to=get_coordinator_emails_for_regions(s, partner_region_codes(s, profile.id)),
        subject="Partner submission denied",
        title="Partner submission denied",
        preheader="A partner submission was denied.",
        message=[_admin_line(admin), f"Partner: {name}", f"Reason: {reason}"],
    )
    send_admin_notification(
        s, admin.id, NotificationInput("Partner submission denied", f"Partner: {name}", CATEGORY_WARNING)
    )
    send_partner_notification(
        s,
        profile.user_id,
        NotificationInput(
            "Partner submission denied",
            f"Your partner submission was denied. Reason: {reason}",
            CATEGORY_WARNING,
        ),
    )
    return profile


def _admin_copy_recipients(admin: "Admin") -> list[str]:
    return [admin.email, current_app.config.get("SMTP_DEFAULT_RECIPIENT") or ""]


def toggle_suspension(s: "Session", profile: PartnerProfile, admin: "Admin") -> PartnerProfile:
    if admin.role != ROLE_FULL:
        raise ServiceError("forbidden", 403)
    if profile.status != STATUS_APPROVED:
        raise ServiceError("Only approved partners can be suspended")

    now_suspended = not profile.suspended
    profile.suspended = now_suspended
    profile.suspended_at = datetime.utcnow() if now_suspended else None
    profile.updated_at = datetime.utcnow()
    partner_name = f"{profile.partner_first_name or ''} {profile.partner_surname or ''}".strip()
    record_event(
        s,
        actor=admin,
        action="PARTNER_SUSPENDED" if now_suspended else "PARTNER_UNSUSPENDED",
        entity_type="PartnerProfile",
        entity_id=profile.id,
        metadata={"businessName": profile.business_name, "partnerName": partner_name},
    )

    location_line = f"Location: {profile.business_name or 'MTN Community Shop'}"
    if now_suspended:
        send_templated_email(
            to=profile.user.email,
            subject="Your account has been suspended",
            title="Your account has been suspended",
            preheader="Your partner account has been suspended.",
            message=[
                location_line,
                "Your partner account has been suspended by an administrator. You will not be able to "
                "access the platform until your account is reactivated.",
                "If you believe this is an error, please contact support.",
            ],
        )
    else:
        send_templated_email(
            to=profile.user.email,
            subject="Your account has been reactivated",
            title="Your account has been reactivated",
            preheader="Your partner account has been reactivated.",
            message=[
                location_line,
                "Your partner account has been reactivated. You can now log in and access the platform again.",
            ],
            cta=Cta("Log in to your dashboard", f"{current_app.config.get('APP_BASE_URL', '')}/partner/login"),
        )
    action_title = "Partner suspended" if now_suspended else "Partner unsuspended"
    send_templated_email(
        to=_admin_copy_recipients(admin),
        subject=action_title,
        title=action_title,
        preheader="A partner account was suspended." if now_suspended else "A partner account was reactivated.",
        message=[
            _admin_line(admin),
            f"Partner: {profile.business_name or 'Unknown'}",
            f"Action: {'Suspended' if now_suspended else 'Unsuspended'}",
        ],
    )
    send_partner_notification(
        s,
        profile.user_id,
        NotificationInput(
            "Account suspended" if now_suspended else "Account reactivated",
            "Your partner account has been suspended. Contact support if you believe this is an error."
            if now_suspended
            else "Your partner account has been reactivated. You can now access the platform again.",
            CATEGORY_WARNING if now_suspended else CATEGORY_SUCCESS,
        ),
    )
    return profile


def delete_partner(s: "Session", profile: PartnerProfile, admin: "Admin", confirm_business_name: str | None) -> None:
    """Permanently remove a partner; the user row cascades to everything the partner owns."""
    if admin.role != ROLE_FULL:
        raise ServiceError("forbidden", 403)
    confirm = (confirm_business_name or "").strip().lower()
    if not confirm or confirm != (profile.business_name or "").strip().lower():
        raise ServiceError("Business name does not match")

    user = profile.user
    partner_name = f"{profile.partner_first_name or ''} {profile.partner_surname or ''}".strip()
    business_name = profile.business_name or "Unknown"

    send_templated_email(
        to=user.email,
        subject="Your partner account has been removed",
        title="Your partner account has been removed",
        preheader="Your partner account has been permanently removed.",
        message=[
            f"Business: {business_name}",
            "Your partner account and all associated data have been permanently removed from the "
            "MTN Community Shop platform by an administrator.",
            "If you believe this is an error, please contact support.",
        ],
    )
    s.query(Notification).filter(Notification.user_id == user.id).delete(synchronize_session=False)
    record_event(
        s,
        actor=admin,
        action="PARTNER_DELETED",
        entity_type="PartnerProfile",
        entity_id=profile.id,
        metadata={"partnerName": partner_name, "email": user.email, "businessName": business_name},
    )
    s.delete(user)
    s.flush()

    send_templated_email(
        to=_admin_copy_recipients(admin),
        subject="Partner permanently deleted",
        title="Partner permanently deleted",
        preheader="A partner account was permanently deleted.",
        message=[
            _admin_line(admin),
            f"Partner: {partner_name} ({user.email})",
            f"Business: {business_name}",
            "All associated data has been cascade-deleted.",
        ],
    )
