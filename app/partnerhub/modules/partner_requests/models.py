from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.partnerhub.models import Base
from app.partnerhub.threads import ReplyMixin


class RestockRequest(Base):
    __tablename__ = "restock_requests"
    __table_args__ = (Index("idx_restock_requests_status_created", "status", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    partner_profile_id: Mapped[int] = mapped_column(
        ForeignKey("partner_profiles.id", ondelete="CASCADE"), nullable=False
    )
    business_id: Mapped[int] = mapped_column(ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False)
    items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="OPEN")  # OPEN, RESPONDED, CLOSED
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    partner_profile = relationship("PartnerProfile", lazy="joined")
    business = relationship("Business", lazy="joined")
    replies: Mapped[list["RequestReply"]] = relationship(
        primaryjoin="RestockRequest.id == RequestReply.restock_request_id",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RequestReply.created_at",
        lazy="selectin",
    )


class TrainingRequest(Base):
    __tablename__ = "training_requests"
    __table_args__ = (Index("idx_training_requests_status_created", "status", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    partner_profile_id: Mapped[int] = mapped_column(
        ForeignKey("partner_profiles.id", ondelete="CASCADE"), nullable=False
    )
    agent_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    agent_names: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="OPEN")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    partner_profile = relationship("PartnerProfile", lazy="joined")
    replies: Mapped[list["RequestReply"]] = relationship(
        primaryjoin="TrainingRequest.id == RequestReply.training_request_id",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RequestReply.created_at",
        lazy="selectin",
    )


class RequestReply(ReplyMixin, Base):
    """Reply on a restock or training request; exactly one of the two FKs is set."""

    __tablename__ = "request_replies"

    restock_request_id: Mapped[int | None] = mapped_column(
        ForeignKey("restock_requests.id", ondelete="CASCADE"), nullable=True
    )
    training_request_id: Mapped[int | None] = mapped_column(
        ForeignKey("training_requests.id", ondelete="CASCADE"), nullable=True
    )
