from __future__ import annotations

from typing import TYPE_CHECKING, Any

from app.partnerhub.audit import record_event
from app.partnerhub.constants import AUTHOR_ADMIN, AUTHOR_PARTNER, CATEGORY_INFO, THREAD_CLOSED, THREAD_OPEN
from app.partnerhub.errors import ServiceError
from app.partnerhub.modules.feedback.models import Feedback, FeedbackReply
from app.partnerhub.modules.notifications.service import (
    NotificationInput,
    broadcast_admin_notification,
    send_partner_notification,
)
from app.partnerhub.modules.partners.service import partner_region_codes
from app.partnerhub.threads import after_reply, ensure_open, parse_thread_status, reply_message, reply_to_dict
from app.partnerhub.utils import clean_str, serialize

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.partnerhub.models import Admin
    from app.partnerhub.modules.partners.models import PartnerProfile

FEEDBACK_FIELDS = (
    ("id", "id"),
    ("partnerProfileId", "partner_profile_id"),
    ("subject", "subject"),
    ("message", "message"),
    ("status", "status"),
    ("createdAt", "created_at"),
    ("updatedAt", "updated_at"),
)


def feedback_to_dict(feedback: Feedback, *, include_replies: bool = True, include_partner: bool = False) -> dict[str, Any]:
    out = serialize(feedback, FEEDBACK_FIELDS)
    out["replyCount"] = len(feedback.replies)
    if include_replies:
        out["replies"] = [reply_to_dict(r) for r in feedback.replies]
    if include_partner:
        p = feedback.partner_profile
        out["partnerProfile"] = {
            "id": p.id,
            "businessName": p.business_name,
            "partnerFirstName": p.partner_first_name,
            "partnerSurname": p.partner_surname,
        }
    return out


# ---------- Partner side ----------


def list_partner_feedback(s: "Session", profile: "PartnerProfile") -> list[Feedback]:
    return (
        s.query(Feedback)
        .filter(Feedback.partner_profile_id == profile.id)
        .order_by(Feedback.created_at.desc(), Feedback.id.desc())
        .all()
    )


def create_feedback(s: "Session", profile: "PartnerProfile", payload: dict) -> Feedback:
    subject = clean_str(payload.get("subject"))
    message = clean_str(payload.get("message"))
    if not subject or not message:
        raise ServiceError("Invalid input")
    feedback = Feedback(partner_profile_id=profile.id, subject=subject, message=message, status=THREAD_OPEN)
    s.add(feedback)
    s.flush()
    broadcast_admin_notification(
        s,
        NotificationInput(f"Feedback: {subject}", message, CATEGORY_INFO),
        region_codes=partner_region_codes(s, profile.id),
    )
    return feedback


def partner_reply(s: "Session", profile: "PartnerProfile", feedback_id: int, payload: dict) -> FeedbackReply:
    message = reply_message(payload)
    feedback = s.get(Feedback, feedback_id)
    if not feedback:
        raise ServiceError("Feedback not found", 404)
    if feedback.partner_profile_id != profile.id:
        raise ServiceError("Forbidden", 403)
    ensure_open(feedback, "Feedback")

    reply = FeedbackReply(author_type=AUTHOR_PARTNER, message=message)
    feedback.replies.append(reply)
    after_reply(feedback, AUTHOR_PARTNER)
    s.flush()
    broadcast_admin_notification(
        s,
        NotificationInput(f"Feedback reply: {feedback.subject}", message, CATEGORY_INFO),
        region_codes=partner_region_codes(s, profile.id),
    )
    return reply


# ---------- Admin side ----------


def list_feedback(s: "Session", *, status: str | None = None) -> list[Feedback]:
    q = s.query(Feedback)
    if status:
        q = q.filter(Feedback.status == status)
    return q.order_by(Feedback.created_at.desc(), Feedback.id.desc()).all()


def get_feedback(s: "Session", feedback_id: int) -> Feedback:
    feedback = s.get(Feedback, feedback_id)
    if not feedback:
        raise ServiceError("Feedback not found", 404)
    return feedback


def admin_reply(s: "Session", feedback: Feedback, payload: dict, admin: "Admin") -> FeedbackReply:
    message = reply_message(payload)
    ensure_open(feedback, "Feedback")

    reply = FeedbackReply(author_type=AUTHOR_ADMIN, admin_id=admin.id, message=message)
    feedback.replies.append(reply)
    after_reply(feedback, AUTHOR_ADMIN)
    s.flush()
    send_partner_notification(
        s,
        feedback.partner_profile.user_id,
        NotificationInput("Feedback reply", f'Admin responded to "{feedback.subject}".', CATEGORY_INFO),
    )
    record_event(
        s,
        actor=admin,
        action="FEEDBACK_REPLIED",
        entity_type="Feedback",
        entity_id=feedback.id,
        metadata={"replyId": reply.id},
    )
    return reply


def set_feedback_status(s: "Session", feedback: Feedback, payload: dict, admin: "Admin") -> Feedback:
    status = parse_thread_status(payload)
    feedback.status = status
    record_event(
        s,
        actor=admin,
        action="FEEDBACK_CLOSED" if status == THREAD_CLOSED else "FEEDBACK_REOPENED",
        entity_type="Feedback",
        entity_id=feedback.id,
        metadata={"status": status},
    )
    return feedback
