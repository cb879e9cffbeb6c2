from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.partnerhub.models import Base


class PartnerForm(Base):
    """A document sent to a partner for signature."""

    __tablename__ = "partner_forms"
    __table_args__ = (Index("idx_partner_forms_profile", "partner_profile_id", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    partner_profile_id: Mapped[int] = mapped_column(
        ForeignKey("partner_profiles.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    document_url: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="SENT")  # SENT, SIGNED
    signer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    signature_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    sent_by_admin_id: Mapped[int | None] = mapped_column(ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    partner_profile = relationship("PartnerProfile", lazy="joined")
    sent_by_admin = relationship("Admin", lazy="selectin")
