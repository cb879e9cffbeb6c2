from __future__ import annotations

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
from app.partnerhub.locations import (
    build_address_code,
    is_address_code_complete,
    is_valid_district,
    is_valid_region,
    parse_address_code,
)
from app.partnerhub.modules.businesses.models import Business
from app.partnerhub.modules.notifications.service import NotificationInput, notify_admins_by_role
from app.partnerhub.rbac import admin_can_access_region, region_scope_condition
from app.partnerhub.review import ReviewSubject, notify_review_decision
from app.partnerhub.utils import clean_str, is_digits, is_url, serialize

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.partnerhub.models import Admin
    from app.partnerhub.modules.partners.models import PartnerProfile


EDITABLE_FIELDS = (
    ("businessName", "business_name"),
    ("addressRegionCode", "address_region_code"),
    ("addressSbuCode", "address_sbu_code"),
    ("addressDistrictCode", "address_district_code"),
    ("addressCode", "address_code"),
    ("gpsLatitude", "gps_latitude"),
    ("gpsLongitude", "gps_longitude"),
    ("city", "city"),
    ("landmark", "landmark"),
    ("storeFrontUrl", "store_front_url"),
    ("storeInsideUrl", "store_inside_url"),
    ("fireCertificateUrl", "fire_certificate_url"),
    ("insuranceUrl", "insurance_url"),
    ("apn", "apn"),
    ("mifiImei", "mifi_imei"),
)
REQUIRED_FIELDS = {
    "businessName": "Business name is required",
    "addressRegionCode": "Region is required",
    "addressDistrictCode": "District is required",
    "addressCode": "Digital address code is required",
    "city": "City is required",
    "storeFrontUrl": "Store front photo is required",
    "storeInsideUrl": "Store inside photo is required",
    "fireCertificateUrl": "Fire certificate is required",
    "insuranceUrl": "Insurance document is required",
}
DOCUMENT_FIELDS = frozenset({"storeFrontUrl", "storeInsideUrl", "fireCertificateUrl", "insuranceUrl"})
MAX_IMEI_DIGITS = 15

BUSINESS_FIELDS = (
    ("id", "id"),
    ("partnerProfileId", "partner_profile_id"),
    ("status", "status"),
    *EDITABLE_FIELDS,
    ("approvedAt", "approved_at"),
    ("deniedAt", "denied_at"),
    ("denialReason", "denial_reason"),
    ("createdAt", "created_at"),
    ("updatedAt", "updated_at"),
)


def business_to_dict(business: Business) -> dict[str, Any]:
    return serialize(business, BUSINESS_FIELDS)


def _device_errors(key: str, value: str) -> list[str]:
    label = "APN" if key == "apn" else "IMEI"
    if not is_digits(value):
        return [f"{label} must contain only digits"]
    if key == "mifiImei" and len(value) > MAX_IMEI_DIGITS:
        return ["IMEI must be at most 15 digits"]
    return []


def validate_business_payload(payload: dict, *, partial: bool = False) -> tuple[dict[str, str | None], list[str]]:
    """
    Returns ({attribute: cleaned value}, errors). A full payload must carry every
    required field; a partial one only validates what it carries.
    """
    values: dict[str, str | None] = {}
    errors: list[str] = []
    for key, attr in EDITABLE_FIELDS:
        if partial and key not in payload:
            continue
        value = clean_str(payload.get(key))
        if value is None:
            if key in REQUIRED_FIELDS and (not partial or key not in DOCUMENT_FIELDS):
                errors.append(REQUIRED_FIELDS[key])
                continue
        elif key in DOCUMENT_FIELDS and not is_url(value):
            errors.append(REQUIRED_FIELDS[key])
            continue
        elif key in ("apn", "mifiImei"):
            field_errors = _device_errors(key, value)
            if field_errors:
                errors.extend(field_errors)
                continue
        values[attr] = value
    return values, errors


def _check_location(region_code: str | None, district_code: str | None) -> list[str]:
    if not is_valid_region(region_code):
        return ["Invalid region"]
    if not is_valid_district(region_code, district_code):
        return ["Invalid district for region"]
    return []


def _normalize_address_code(values: dict, district_code: str | None) -> list[str]:
    """Rebuilds the digital address in place from its parts; the prefix must be the district."""
    if "address_code" not in values:
        return []
    prefix, area, unique = parse_address_code(values["address_code"])
    if prefix.upper() != (district_code or ""):
        return ["Digital address must start with the district code"]
    code = build_address_code(prefix.upper(), area, unique)
    if not is_address_code_complete(code):
        return ["Digital address code is incomplete"]
    values["address_code"] = code
    return []


# ---------- Partner side ----------


def list_partner_businesses(s: "Session", profile: "PartnerProfile") -> list[Business]:
    return (
        s.query(Business)
        .filter(Business.partner_profile_id == profile.id)
        .order_by(Business.created_at.desc(), Business.id.desc())
        .all()
    )


def create_business(s: "Session", profile: "PartnerProfile", payload: dict) -> Business:
    values, errors = validate_business_payload(payload)
    if not errors:
        errors = _check_location(values["address_region_code"], values["address_district_code"])
    if not errors:
        errors = _normalize_address_code(values, values["address_district_code"])
    if errors:
        raise validation_error(errors)

    business = Business(partner_profile_id=profile.id, status=STATUS_SUBMITTED, **values)
    s.add(business)
    s.flush()
    notify_admins_by_role(
        s,
        NotificationInput(
            "New location submitted",
            f'Partner "{profile.display_name}" submitted location "{business.business_name}" for review.',
            CATEGORY_INFO,
        ),
        roles=(ROLE_COORDINATOR, ROLE_MANAGER),
        region_code=business.address_region_code,
        sbu_code=business.address_sbu_code,
    )
    return business


def get_partner_business(s: "Session", profile: "PartnerProfile", business_id: int) -> Business:
    business = s.get(Business, business_id)
    if not business or business.partner_profile_id != profile.id:
        raise ServiceError("Business not found", 404)
    return business


def update_device_details(s: "Session", business: Business, payload: dict) -> Business:
    apn = clean_str(payload.get("apn"))
    imei = clean_str(payload.get("mifiImei"))
    errors: list[str] = []
    if apn:
        errors.extend(_device_errors("apn", apn))
    if imei:
        errors.extend(_device_errors("mifiImei", imei))
    if not apn and not imei:
        errors.append("At least one field is required")
    if errors:
        raise validation_error(errors)

    if apn:
        business.apn = apn
    if imei:
        business.mifi_imei = imei
    business.updated_at = datetime.utcnow()
    return business


# ---------- Admin side ----------


def list_businesses(s: "Session", admin: "Admin", *, status: str | None = None) -> list[Business]:
    q = s.query(Business)
    if status:
        q = q.filter(Business.status == status)
    scope = region_scope_condition(admin, Business.address_region_code, Business.address_sbu_code)
    if scope is not None:
        q = q.filter(scope)
    return q.order_by(Business.created_at.desc(), Business.id.desc()).all()


def get_business_for_admin(s: "Session", admin: "Admin", business_id: int) -> Business:
    business = s.get(Business, business_id)
    if not business:
        raise ServiceError("not_found", 404)
    if not admin_can_access_region(admin, business.address_region_code):
        raise ServiceError("forbidden", 403)
    return business


def admin_update_business(s: "Session", business: Business, payload: dict, admin: "Admin") -> Business:
    values, errors = validate_business_payload(payload, partial=True)
    if not errors and ("address_region_code" in values or "address_district_code" in values):
        errors = _check_location(
            values.get("address_region_code", business.address_region_code),
            values.get("address_district_code", business.address_district_code),
        )
    if not errors:
        errors = _normalize_address_code(values, values.get("address_district_code", business.address_district_code))
    if errors:
        raise validation_error(errors)

    updated_fields = [key for key, attr in EDITABLE_FIELDS if attr in values]
    for attr, value in values.items():
        setattr(business, attr, value)
    business.updated_at = datetime.utcnow()
    record_event(
        s,
        actor=admin,
        action="BUSINESS_EDITED",
        entity_type="Business",
        entity_id=business.id,
        metadata={"updatedFields": updated_fields},
    )
    return business


def _subject(business: Business) -> ReviewSubject:
    return ReviewSubject(
        label="Location",
        name=business.business_name,
        region_code=business.address_region_code,
        partner=business.partner_profile,
    )


def approve_business(s: "Session", business: Business, admin: "Admin") -> Business:
    now = datetime.utcnow()
    business.status = STATUS_APPROVED
    business.approved_at = now
    business.denied_at = None
    business.denial_reason = None
    business.updated_at = now
    record_event(s, actor=admin, action="BUSINESS_APPROVED", entity_type="Business", entity_id=business.id)
    notify_review_decision(s, _subject(business), admin, approved=True)
    return business


def deny_business(s: "Session", business: Business, admin: "Admin", reason: str | None) -> Business:
    reason = clean_str(reason)
    if not reason:
        raise ServiceError("Denial reason is required")
    now = datetime.utcnow()
    business.status = STATUS_DENIED
    business.denied_at = now
    business.denial_reason = reason
    business.approved_at = None
    business.updated_at = now
    record_event(
        s,
        actor=admin,
        action="BUSINESS_DENIED",
        entity_type="Business",
        entity_id=business.id,
        reason=reason,
        metadata={"reason": reason},
    )
    notify_review_decision(s, _subject(business), admin, approved=False, reason=reason)
    return business
