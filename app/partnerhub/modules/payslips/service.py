from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import exists, select

from app.partnerhub.constants import CATEGORY_INFO, ROLE_COORDINATOR
from app.partnerhub.errors import ServiceError
from app.partnerhub.modules.businesses.models import Business
from app.partnerhub.modules.notifications.service import NotificationInput, broadcast_admin_notification
from app.partnerhub.modules.partners.service import partner_region_codes
from app.partnerhub.modules.payslips.models import Payslip
from app.partnerhub.rbac import region_scope_condition
from app.partnerhub.utils import clean_str, is_url, serialize

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.partnerhub.models import Admin
    from app.partnerhub.modules.partners.models import PartnerProfile

PAYSLIP_FIELDS = (
    ("id", "id"),
    ("partnerProfileId", "partner_profile_id"),
    ("imageUrl", "image_url"),
    ("originalFilename", "original_filename"),
    ("displayFilename", "display_filename"),
    ("createdAt", "created_at"),
)


def payslip_to_dict(payslip: Payslip, *, include_partner: bool = False) -> dict[str, Any]:
    out = serialize(payslip, PAYSLIP_FIELDS)
    if include_partner:
        p = payslip.partner_profile
        out["partnerProfile"] = {
            "id": p.id,
            "businessName": p.business_name,
            "partnerFirstName": p.partner_first_name,
            "partnerSurname": p.partner_surname,
        }
    return out


def display_filename(original_filename: str, uploaded_at: datetime) -> str:
    """DDMMYYYY_HHMMSS_AM|PM_GMT.<ext> from the UTC upload time, on a 12-hour clock."""
    ext = original_filename.rsplit(".", 1)[-1].lower() if "." in original_filename else ""
    return uploaded_at.strftime("%d%m%Y_%I%M%S_%p_GMT.") + (ext or "jpg")


def list_partner_payslips(s: "Session", profile: "PartnerProfile") -> list[Payslip]:
    return (
        s.query(Payslip)
        .filter(Payslip.partner_profile_id == profile.id)
        .order_by(Payslip.created_at.desc(), Payslip.id.desc())
        .all()
    )


def create_payslip(s: "Session", profile: "PartnerProfile", payload: dict, *, now: datetime | None = None) -> Payslip:
    image_url = clean_str(payload.get("imageUrl"))
    original = clean_str(payload.get("originalFilename"))
    if not image_url or not original:
        raise ServiceError("imageUrl and originalFilename are required.")
    if not is_url(image_url):
        raise ServiceError("imageUrl must be a valid URL")

    now = now or datetime.utcnow()
    payslip = Payslip(
        partner_profile_id=profile.id,
        image_url=image_url,
        original_filename=original,
        display_filename=display_filename(original, now),
        created_at=now,
    )
    s.add(payslip)
    s.flush()

    name = " ".join(p for p in (profile.partner_first_name, profile.partner_surname) if p) or "A partner"
    broadcast_admin_notification(
        s,
        NotificationInput("New pay slip uploaded", f"{name} uploaded a payment slip.", CATEGORY_INFO),
        roles=(ROLE_COORDINATOR,),
        region_codes=partner_region_codes(s, profile.id),
    )
    return payslip


def list_payslips(s: "Session", admin: "Admin", *, partner_id: int | None = None) -> list[Payslip]:
    """Coordinator view: slips from partners with a business in the coordinator's regions."""
    in_region = exists(
        select(Business.id).where(
            Business.partner_profile_id == Payslip.partner_profile_id,
            region_scope_condition(admin, Business.address_region_code, Business.address_sbu_code),
        )
    )
    q = s.query(Payslip).filter(in_region)
    if partner_id is not None:
        q = q.filter(Payslip.partner_profile_id == partner_id)
    return q.order_by(Payslip.created_at.desc(), Payslip.id.desc()).all()
