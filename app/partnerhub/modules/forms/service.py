from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.partnerhub.audit import record_event
from app.partnerhub.constants import CATEGORY_INFO, CATEGORY_SUCCESS
from app.partnerhub.errors import ServiceError
from app.partnerhub.modules.forms.models import PartnerForm
from app.partnerhub.modules.notifications.service import (
    NotificationInput,
    broadcast_admin_notification,
    send_partner_notification,
)
from app.partnerhub.modules.partners.models import PartnerProfile
from app.partnerhub.modules.partners.service import partner_region_codes
from app.partnerhub.utils import clean_str, is_url, serialize

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.partnerhub.models import Admin

FORM_SENT = "SENT"
FORM_SIGNED = "SIGNED"

FORM_FIELDS = (
    ("id", "id"),
    ("partnerProfileId", "partner_profile_id"),
    ("title", "title"),
    ("documentUrl", "document_url"),
    ("status", "status"),
    ("signerName", "signer_name"),
    ("signatureUrl", "signature_url"),
    ("signedAt", "signed_at"),
    ("createdAt", "created_at"),
)


def form_to_dict(form: PartnerForm, *, include_partner: bool = False) -> dict[str, Any]:
    out = serialize(form, FORM_FIELDS)
    if include_partner:
        p = form.partner_profile
        out["partnerProfile"] = {
            "businessName": p.business_name,
            "partnerFirstName": p.partner_first_name,
            "partnerSurname": p.partner_surname,
        }
    return out


def list_sent_forms(s: "Session") -> list[PartnerForm]:
    return s.query(PartnerForm).order_by(PartnerForm.created_at.desc(), PartnerForm.id.desc()).all()


def send_forms(s: "Session", payload: dict, admin: "Admin") -> list[PartnerForm]:
    """One form per selected partner; unknown partner ids are skipped."""
    title = clean_str(payload.get("title"))
    document_url = clean_str(payload.get("documentUrl"))
    partner_ids = payload.get("partnerIds")
    if not title or not is_url(document_url) or not isinstance(partner_ids, list) or not partner_ids:
        raise ServiceError("Invalid input")
    try:
        ids = {int(pid) for pid in partner_ids}
    except (TypeError, ValueError):
        raise ServiceError("Invalid input") from None

    profiles = s.query(PartnerProfile).filter(PartnerProfile.id.in_(ids)).order_by(PartnerProfile.id).all()
    forms: list[PartnerForm] = []
    for profile in profiles:
        form = PartnerForm(
            partner_profile_id=profile.id,
            title=title,
            document_url=document_url,
            status=FORM_SENT,
            sent_by_admin_id=admin.id,
        )
        s.add(form)
        s.flush()
        record_event(
            s,
            actor=admin,
            action="FORM_SENT",
            entity_type="PartnerForm",
            entity_id=form.id,
            metadata={"title": title, "partnerProfileId": profile.id},
        )
        send_partner_notification(
            s,
            profile.user_id,
            NotificationInput(
                "Form request",
                f"{title} sent to {profile.business_name or 'your account'}.",
                CATEGORY_INFO,
            ),
        )
        forms.append(form)
    return forms


def list_partner_forms(s: "Session", profile: PartnerProfile) -> list[PartnerForm]:
    return (
        s.query(PartnerForm)
        .filter(PartnerForm.partner_profile_id == profile.id)
        .order_by(PartnerForm.created_at.desc(), PartnerForm.id.desc())
        .all()
    )


def sign_form(s: "Session", profile: PartnerProfile, form_id: int, payload: dict) -> PartnerForm:
    form = s.get(PartnerForm, form_id)
    if not form or form.partner_profile_id != profile.id:
        raise ServiceError("Not found", 404)
    if form.status != FORM_SENT:
        raise ServiceError("Form already signed", 409)

    signer_name = clean_str(payload.get("signerName"))
    signature_url = clean_str(payload.get("signatureUrl"))
    if not signer_name:
        raise ServiceError("Signer name is required")
    if not is_url(signature_url):
        raise ServiceError("Signature is required")

    now = datetime.utcnow()
    form.status = FORM_SIGNED
    form.signer_name = signer_name
    form.signature_url = signature_url
    form.signed_at = now
    form.updated_at = now

    broadcast_admin_notification(
        s,
        NotificationInput("Form signed", f'{signer_name} signed "{form.title}".', CATEGORY_SUCCESS),
        region_codes=partner_region_codes(s, profile.id),
    )
    record_event(
        s,
        actor=None,
        action="FORM_SIGNED",
        entity_type="PartnerForm",
        entity_id=form.id,
        metadata={"signerName": signer_name},
    )
    return form
