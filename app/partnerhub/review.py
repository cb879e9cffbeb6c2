"""
Approve/deny fan-out shared by location and agent submissions: partner email,
regional coordinator email, reviewer notification and partner notification.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.partnerhub.constants import CATEGORY_SUCCESS, CATEGORY_WARNING
from app.partnerhub.mailer import send_templated_email
from app.partnerhub.modules.notifications.service import (
    NotificationInput,
    get_coordinator_emails_for_regions,
    send_admin_notification,
    send_partner_notification,
)

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.partnerhub.models import Admin
    from app.partnerhub.modules.partners.models import PartnerProfile


@dataclass(frozen=True)
class ReviewSubject:
    label: str  # "Location", "Agent"
    name: str
    region_code: str
    partner: "PartnerProfile"
    copy_reviewer: bool = False

    @property
    def noun(self) -> str:
        return self.label.lower()

    @property
    def article(self) -> str:
        return "An" if self.noun[:1] in "aeiou" else "A"


def notify_review_decision(
    s: "Session",
    subject: ReviewSubject,
    admin: "Admin",
    *,
    approved: bool,
    reason: str | None = None,
) -> None:
    verb = "approved" if approved else "denied"
    reason_lines = [] if approved else [f"Reason: {reason}"]
    subject_line = f"{subject.label} submission {verb}"

    partner_email = subject.partner.user.email if subject.partner.user else None
    if partner_email:
        send_templated_email(
            to=partner_email,
            subject=subject_line,
            title=f"{subject.article} {subject.noun} submission was {verb}",
            preheader=(
                f"{subject.article} {subject.noun} submission has been approved."
                if approved
                else f"{subject.article} {subject.noun} submission needs updates."
            ),
            message=[
                f"{subject.label}: {subject.name}",
                f"Partner: {subject.partner.business_name or 'MTN Community Shop'}",
                *reason_lines,
            ],
        )

    recipients = get_coordinator_emails_for_regions(s, [subject.region_code])
    if subject.copy_reviewer:
        recipients = [admin.email, *recipients]
    send_templated_email(
        to=recipients,
        subject=subject_line,
        title=subject_line,
        preheader=f"{subject.article} {subject.noun} submission was {verb}.",
        message=[
            f"Admin: {admin.name} ({admin.email})",
            f"{subject.label}: {subject.name}",
            f"Partner: {subject.partner.business_name or 'Unknown'}",
            *reason_lines,
        ],
    )

    category = CATEGORY_SUCCESS if approved else CATEGORY_WARNING
    send_admin_notification(s, admin.id, NotificationInput(subject_line, f"{subject.label}: {subject.name}", category))
    partner_message = f"Your {subject.noun} {subject.name} was {verb}."
    if not approved:
        partner_message = f"{partner_message[:-1]}. Reason: {reason}"
    send_partner_notification(
        s,
        subject.partner.user_id,
        NotificationInput(f"{subject.label} {verb}", partner_message, category),
    )
