from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable

from flask import current_app

from app.partnerhub.audit import record_event
from app.partnerhub.constants import REJECTION_EXPIRY_DAYS, REJECTION_REMINDER_DAYS, STATUS_DENIED, STATUS_EXPIRED
from app.partnerhub.mailer import send_templated_email
from app.partnerhub.modules.agents.models import Agent
from app.partnerhub.modules.businesses.models import Business
from app.partnerhub.modules.partners.models import PartnerProfile

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

EXPIRY_REASON = f"Auto-expired after {REJECTION_EXPIRY_DAYS} days denied."


@dataclass(frozen=True)
class _Target:
    model: Any
    entity_type: str
    audit_action: str
    describe: Callable[[Any], str]


_TARGETS = (
    _Target(PartnerProfile, "PartnerProfile", "PARTNER_EXPIRED", lambda p: p.business_name or "Partner"),
    _Target(Agent, "Agent", "AGENT_EXPIRED", lambda a: f"Agent {a.full_name}"),
    _Target(Business, "Business", "BUSINESS_EXPIRED", lambda b: f"Location {b.business_name}"),
)


def days_since(then: datetime, now: datetime) -> int:
    return int((now - then).total_seconds() // 86400)


def run_maintenance(s: "Session", now: datetime | None = None) -> dict[str, int]:
    """
    Walk denied partners, agents and locations: collect follow-up reminders on the
    reminder days and expire anything denied for REJECTION_EXPIRY_DAYS or more.
    """
    now = now or datetime.utcnow()
    reminders: list[str] = []
    expired = 0

    for target in _TARGETS:
        model = target.model
        rows = s.query(model).filter(model.status == STATUS_DENIED, model.denied_at.is_not(None)).all()
        for row in rows:
            days = days_since(row.denied_at, now)
            if days in REJECTION_REMINDER_DAYS:
                reminders.append(f"{target.describe(row)} denied {days} days ago.")
            if days >= REJECTION_EXPIRY_DAYS:
                row.status = STATUS_EXPIRED
                row.updated_at = now
                record_event(
                    s,
                    actor=None,
                    action=target.audit_action,
                    entity_type=target.entity_type,
                    entity_id=row.id,
                    metadata={"reason": EXPIRY_REASON},
                )
                expired += 1

    if reminders:
        send_templated_email(
            to=current_app.config.get("SMTP_DEFAULT_RECIPIENT") or "",
            subject="Pending denied submission follow-ups",
            title="Denied submissions nearing expiry",
            preheader="Denied submissions are approaching the expiry window.",
            message="Follow up on these submissions before they expire.",
            bullets=reminders,
        )

    logger.info("Maintenance run complete (reminders=%s expired=%s)", len(reminders), expired)
    return {"remindersSent": len(reminders), "expired": expired}
