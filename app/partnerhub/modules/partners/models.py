from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.partnerhub.models import Base

if TYPE_CHECKING:
    from app.partnerhub.models import User
    from app.partnerhub.modules.businesses.models import Business


class PartnerProfile(Base):
    __tablename__ = "partner_profiles"
    __table_args__ = (
        Index("idx_partner_profiles_status", "status"),
        Index("idx_partner_profiles_business_name", "business_name"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="DRAFT")  # DRAFT, SUBMITTED, APPROVED, DENIED, EXPIRED

    # Onboarding fields (all required before submit)
    business_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    partner_first_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    partner_surname: Mapped[str | None] = mapped_column(String(128), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    payment_wallet: Mapped[str | None] = mapped_column(String(64), nullable=True)
    ghana_card_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    ghana_card_front_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    ghana_card_back_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    passport_photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    tax_identity_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    business_certificate_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    fire_certificate_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    insurance_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    apn: Mapped[str | None] = mapped_column(String(64), nullable=True)
    mifi_imei: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # Review state
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    denied_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    denial_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    suspended: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    suspended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    user: Mapped["User"] = relationship(back_populates="profile")
    businesses: Mapped[list["Business"]] = relationship(
        back_populates="partner_profile",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def display_name(self) -> str:
        if self.business_name:
            return self.business_name
        return f"{self.partner_first_name or ''} {self.partner_surname or ''}".strip()
