from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.partnerhub.models import Base

if TYPE_CHECKING:
    from app.partnerhub.modules.businesses.models import Business
    from app.partnerhub.modules.partners.models import PartnerProfile


class Agent(Base):
    """A representative working from one of a partner's locations."""

    __tablename__ = "agents"
    __table_args__ = (
        Index("idx_agents_status", "status"),
        Index("idx_agents_partner", "partner_profile_id"),
        Index("idx_agents_business", "business_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    partner_profile_id: Mapped[int] = mapped_column(ForeignKey("partner_profiles.id", ondelete="CASCADE"), nullable=False)
    business_id: Mapped[int] = mapped_column(ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="SUBMITTED")

    first_name: Mapped[str] = mapped_column(String(128), nullable=False)
    surname: Mapped[str] = mapped_column(String(128), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(64), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    ghana_card_number: Mapped[str] = mapped_column(String(64), nullable=False)
    ghana_card_front_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    ghana_card_back_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    passport_photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    address_region_code: Mapped[str] = mapped_column(String(8), nullable=False)
    address_district_code: Mapped[str] = mapped_column(String(8), nullable=False)
    address_code: Mapped[str] = mapped_column(String(32), nullable=False)
    city: Mapped[str] = mapped_column(String(128), nullable=False)
    business_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Issued after approval
    cp_app_number: Mapped[str | None] = mapped_column(String(16), nullable=True)
    agent_username: Mapped[str | None] = mapped_column(String(128), nullable=True)
    minerva_referral_code: Mapped[str | None] = mapped_column(String(64), nullable=True)

    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    denied_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    denial_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    business: Mapped["Business"] = relationship(back_populates="agents", lazy="joined")
    partner_profile: Mapped["PartnerProfile"] = relationship(lazy="joined")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.surname}".strip()
