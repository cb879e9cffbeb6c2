from __future__ import annotations

from typing import TYPE_CHECKING

from app.partnerhub.approvals import (
    ACTION_SUBMITTED,
    ApprovalChain,
    Notice,
    Stage,
    validate_form_payload,
    validate_region,
)
from app.partnerhub.audit import record_event
from app.partnerhub.constants import (
    CATEGORY_INFO,
    ROLE_COORDINATOR,
    ROLE_GOVERNANCE,
    ROLE_MANAGER,
    ROLE_SENIOR_MANAGER,
    STATUS_APPROVED,
    STATUS_DRAFT,
)
from app.partnerhub.errors import validation_error
from app.partnerhub.modules.notifications.service import NotificationInput, notify_admins_by_role
from app.partnerhub.modules.onboard_requests.models import OnboardRequestApproval, OnboardRequestForm
from app.partnerhub.utils import clean_str, is_email

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

PENDING_COORDINATOR = "PENDING_COORDINATOR"
PENDING_MANAGER = "PENDING_MANAGER"
PENDING_SENIOR_MANAGER = "PENDING_SENIOR_MANAGER"
PENDING_GOVERNANCE_CHECK = "PENDING_GOVERNANCE_CHECK"

ONBOARD_CHAIN = ApprovalChain(
    title="Onboard Request",
    audit_prefix="ONBOARD_REQUEST",
    entity_type="OnboardRequestForm",
    form_model=OnboardRequestForm,
    approval_model=OnboardRequestApproval,
    intake_status=PENDING_COORDINATOR,
    extra_fields=(("sbuCode", "sbu_code"),),
    readonly_fields=(
        ("submitterName", "submitter_name"),
        ("submitterEmail", "submitter_email"),
        ("submitterPhone", "submitter_phone"),
    ),
    stages={
        PENDING_COORDINATOR: Stage(
            status=PENDING_COORDINATOR,
            roles=(ROLE_COORDINATOR,),
            next_status=PENDING_MANAGER,
            audit_suffix="SUBMITTED_TO_MANAGER",
            forbidden_message="Only coordinators can submit at this stage",
            action=ACTION_SUBMITTED,
            region_bound=True,
            claims=True,
        ),
        STATUS_DRAFT: Stage(
            status=STATUS_DRAFT,
            roles=(ROLE_COORDINATOR,),
            next_status=PENDING_MANAGER,
            audit_suffix="SUBMITTED_TO_MANAGER",
            forbidden_message="Only the coordinator who created this can submit",
            action=ACTION_SUBMITTED,
            creator_only=True,
        ),
        PENDING_MANAGER: Stage(
            status=PENDING_MANAGER,
            roles=(ROLE_MANAGER,),
            next_status=PENDING_SENIOR_MANAGER,
            audit_suffix="SUBMITTED_TO_SENIOR_MANAGER",
            forbidden_message="Only managers can approve at this stage",
        ),
        PENDING_SENIOR_MANAGER: Stage(
            status=PENDING_SENIOR_MANAGER,
            roles=(ROLE_SENIOR_MANAGER,),
            next_status=PENDING_GOVERNANCE_CHECK,
            audit_suffix="SUBMITTED_TO_GOVERNANCE",
            forbidden_message="Only senior managers can approve at this stage",
            region_bound=True,
        ),
        PENDING_GOVERNANCE_CHECK: Stage(
            status=PENDING_GOVERNANCE_CHECK,
            roles=(ROLE_GOVERNANCE,),
            next_status=STATUS_APPROVED,
            audit_suffix="APPROVED",
            forbidden_message="Only governance check admins can approve at this stage",
            requires_score=True,
        ),
    },
    notices={
        PENDING_MANAGER: Notice(
            roles=(ROLE_MANAGER,),
            message='A new onboard request for "{name}" has been submitted for your review.',
        ),
        PENDING_SENIOR_MANAGER: Notice(
            roles=(ROLE_SENIOR_MANAGER,),
            message='Onboard request for "{name}" has been approved by a manager and needs your review.',
            creator_message='Your onboard request for "{name}" has been approved by a manager.',
            region_scoped=True,
        ),
        PENDING_GOVERNANCE_CHECK: Notice(
            roles=(ROLE_GOVERNANCE,),
            message='Onboard request for "{name}" has been approved by senior management and needs governance review.',
            creator_message='Your onboard request for "{name}" has been approved by senior management.',
        ),
    },
    approved_message='Onboard request for "{name}" has been fully approved after governance check with a score of {score}%.',
    deny_statuses={
        ROLE_MANAGER: (PENDING_MANAGER,),
        ROLE_SENIOR_MANAGER: (PENDING_SENIOR_MANAGER,),
        ROLE_GOVERNANCE: (PENDING_GOVERNANCE_CHECK,),
    },
    review_statuses={
        ROLE_MANAGER: PENDING_MANAGER,
        ROLE_SENIOR_MANAGER: PENDING_SENIOR_MANAGER,
        ROLE_GOVERNANCE: PENDING_GOVERNANCE_CHECK,
    },
    score_key="governanceScore",
    score_label="Governance",
)


def submit_public_request(s: "Session", payload: dict) -> OnboardRequestForm:
    """Unauthenticated intake: lands in the coordinator queue for its region."""
    submitter_name = clean_str(payload.get("submitterName"))
    submitter_phone = clean_str(payload.get("submitterPhone"))
    submitter_email = clean_str(payload.get("submitterEmail"))
    errors: list[str] = []
    if not submitter_name:
        errors.append("Your name is required")
    if not submitter_phone:
        errors.append("Your phone number is required")
    if submitter_email and not is_email(submitter_email):
        errors.append("submitterEmail must be a valid email address")
    values, form_errors = validate_form_payload(ONBOARD_CHAIN, payload)
    errors.extend(form_errors)
    if errors:
        raise validation_error(errors)
    validate_region(values["region_code"])

    values.pop("image_urls", None)
    form = OnboardRequestForm(
        status=PENDING_COORDINATOR,
        created_by_admin_id=None,
        submitter_name=submitter_name,
        submitter_email=submitter_email.lower() if submitter_email else None,
        submitter_phone=submitter_phone,
        image_urls=[],
        **values,
    )
    s.add(form)
    s.flush()
    record_event(
        s,
        actor=None,
        action="ONBOARD_REQUEST_PUBLIC_SUBMITTED",
        entity_type=ONBOARD_CHAIN.entity_type,
        entity_id=form.id,
        metadata={
            "businessName": form.business_name,
            "regionCode": form.region_code,
            "submitterName": submitter_name,
        },
    )
    notify_admins_by_role(
        s,
        NotificationInput(
            "New Onboard Request Submission",
            f'A new partner onboard request for "{form.business_name}" has been submitted and needs your review.',
            CATEGORY_INFO,
        ),
        roles=(ROLE_COORDINATOR,),
        region_code=form.region_code,
        sbu_code=form.sbu_code,
    )
    return form
