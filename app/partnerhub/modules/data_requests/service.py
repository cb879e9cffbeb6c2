from __future__ import annotations

from app.partnerhub.approvals import ACTION_SUBMITTED, ApprovalChain, Notice, Stage
from app.partnerhub.constants import (
    ROLE_COORDINATOR,
    ROLE_FULL,
    ROLE_LEGAL,
    ROLE_MANAGER,
    ROLE_SENIOR_MANAGER,
    STATUS_APPROVED,
    STATUS_DRAFT,
)
from app.partnerhub.modules.data_requests.models import DataRequestApproval, DataRequestForm

PENDING_MANAGER = "PENDING_MANAGER"
PENDING_SENIOR_MANAGER = "PENDING_SENIOR_MANAGER"
PENDING_LEGAL = "PENDING_LEGAL"
PENDING_STATUSES = (PENDING_MANAGER, PENDING_SENIOR_MANAGER, PENDING_LEGAL)

# FULL admins may stand in for any reviewer.
DATA_REQUEST_CHAIN = ApprovalChain(
    title="Data Request",
    audit_prefix="DATA_REQUEST",
    entity_type="DataRequestForm",
    form_model=DataRequestForm,
    approval_model=DataRequestApproval,
    stages={
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
            roles=(ROLE_MANAGER, ROLE_FULL),
            next_status=PENDING_SENIOR_MANAGER,
            audit_suffix="SUBMITTED_TO_SENIOR_MANAGER",
            forbidden_message="Only managers can approve at this stage",
        ),
        PENDING_SENIOR_MANAGER: Stage(
            status=PENDING_SENIOR_MANAGER,
            roles=(ROLE_SENIOR_MANAGER, ROLE_FULL),
            next_status=PENDING_LEGAL,
            audit_suffix="SUBMITTED_TO_LEGAL",
            forbidden_message="Only senior managers can approve at this stage",
            region_bound=True,
        ),
        PENDING_LEGAL: Stage(
            status=PENDING_LEGAL,
            roles=(ROLE_LEGAL, ROLE_FULL),
            next_status=STATUS_APPROVED,
            audit_suffix="APPROVED",
            forbidden_message="Only legal can approve at this stage",
            requires_score=True,
        ),
    },
    notices={
        PENDING_MANAGER: Notice(
            roles=(ROLE_MANAGER,),
            message='A new data request for "{name}" has been submitted for your review.',
        ),
        PENDING_SENIOR_MANAGER: Notice(
            roles=(ROLE_SENIOR_MANAGER,),
            message='Data request for "{name}" has been approved by a manager and needs your review.',
            creator_message='Your data request for "{name}" has been approved by a manager.',
            region_scoped=True,
        ),
        PENDING_LEGAL: Notice(
            roles=(ROLE_LEGAL,),
            message='Data request for "{name}" has been approved by senior management and needs legal review.',
            creator_message='Your data request for "{name}" has been approved by senior management.',
        ),
    },
    approved_message='Data request for "{name}" has been fully approved by legal with a score of {score}%.',
    deny_statuses={
        ROLE_MANAGER: (PENDING_MANAGER,),
        ROLE_SENIOR_MANAGER: (PENDING_SENIOR_MANAGER,),
        ROLE_LEGAL: (PENDING_LEGAL,),
        ROLE_FULL: PENDING_STATUSES,
    },
    review_statuses={
        ROLE_MANAGER: PENDING_MANAGER,
        ROLE_SENIOR_MANAGER: PENDING_SENIOR_MANAGER,
        ROLE_LEGAL: PENDING_LEGAL,
    },
    score_key="legalScore",
    score_label="Legal",
)
