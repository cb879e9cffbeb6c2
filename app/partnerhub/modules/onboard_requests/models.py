from __future__ import annotations

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.partnerhub.approvals import ApprovalMixin, RequestFormMixin
from app.partnerhub.models import Base


class OnboardRequestForm(RequestFormMixin, Base):
    """Partner onboarding request; may arrive through the public intake form."""

    __tablename__ = "onboard_request_forms"
    __table_args__ = (
        Index("idx_onboard_requests_status", "status"),
        Index("idx_onboard_requests_region", "region_code"),
    )

    sbu_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    submitter_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    submitter_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    submitter_phone: Mapped[str | None] = mapped_column(String(64), nullable=True)

    approvals: Mapped[list["OnboardRequestApproval"]] = relationship(
        back_populates="form",
        cascade="all, delete-orphan",
        order_by="OnboardRequestApproval.created_at, OnboardRequestApproval.id",
    )


class OnboardRequestApproval(ApprovalMixin, Base):
    __tablename__ = "onboard_request_approvals"

    form_id: Mapped[int] = mapped_column(ForeignKey("onboard_request_forms.id", ondelete="CASCADE"), nullable=False, index=True)
    form: Mapped[OnboardRequestForm] = relationship(back_populates="approvals")
