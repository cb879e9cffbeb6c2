from __future__ import annotations

from sqlalchemy import ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.partnerhub.approvals import ApprovalMixin, RequestFormMixin
from app.partnerhub.models import Base


class DataRequestForm(RequestFormMixin, Base):
    __tablename__ = "data_request_forms"
    __table_args__ = (
        Index("idx_data_requests_status", "status"),
        Index("idx_data_requests_region", "region_code"),
    )

    approvals: Mapped[list["DataRequestApproval"]] = relationship(
        back_populates="form",
        cascade="all, delete-orphan",
        order_by="DataRequestApproval.created_at, DataRequestApproval.id",
    )


class DataRequestApproval(ApprovalMixin, Base):
    __tablename__ = "data_request_approvals"

    form_id: Mapped[int] = mapped_column(ForeignKey("data_request_forms.id", ondelete="CASCADE"), nullable=False, index=True)
    form: Mapped[DataRequestForm] = relationship(back_populates="approvals")
