from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.partnerhub.models import Base
from app.partnerhub.threads import ReplyMixin


class Feedback(Base):
    __tablename__ = "feedback"
    __table_args__ = (Index("idx_feedback_status_created", "status", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    partner_profile_id: Mapped[int] = mapped_column(
        ForeignKey("partner_profiles.id", ondelete="CASCADE"), nullable=False
    )
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="OPEN")  # OPEN, RESPONDED, CLOSED
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    partner_profile = relationship("PartnerProfile", lazy="joined")
    replies: Mapped[list["FeedbackReply"]] = relationship(
        back_populates="feedback",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="FeedbackReply.created_at",
        lazy="selectin",
    )


class FeedbackReply(ReplyMixin, Base):
    __tablename__ = "feedback_replies"

    feedback_id: Mapped[int] = mapped_column(ForeignKey("feedback.id", ondelete="CASCADE"), nullable=False)

    feedback: Mapped[Feedback] = relationship(back_populates="replies")
