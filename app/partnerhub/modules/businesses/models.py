from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.partnerhub.models import Base

if TYPE_CHECKING:
    from app.partnerhub.modules.agents.models import Agent
    from app.partnerhub.modules.partners.models import PartnerProfile


class Business(Base):
    """A partner's shop location."""

    __tablename__ = "businesses"
    __table_args__ = (
        Index("idx_businesses_region", "address_region_code"),
        Index("idx_businesses_status", "status"),
        Index("idx_businesses_partner", "partner_profile_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    partner_profile_id: Mapped[int] = mapped_column(ForeignKey("partner_profiles.id", ondelete="CASCADE"), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="SUBMITTED")

    business_name: Mapped[str] = mapped_column(String(255), nullable=False)
    address_region_code: Mapped[str] = mapped_column(String(8), nullable=False)
    address_sbu_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    address_district_code: Mapped[str] = mapped_column(String(8), nullable=False)
    address_code: Mapped[str] = mapped_column(String(32), nullable=False)
    gps_latitude: Mapped[str | None] = mapped_column(String(32), nullable=True)
    gps_longitude: Mapped[str | None] = mapped_column(String(32), nullable=True)
    city: Mapped[str] = mapped_column(String(128), nullable=False)
    landmark: Mapped[str | None] = mapped_column(String(255), nullable=True)

    store_front_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    store_inside_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    fire_certificate_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    insurance_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    apn: Mapped[str | None] = mapped_column(String(64), nullable=True)
    mifi_imei: Mapped[str | None] = mapped_column(String(15), nullable=True)

    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    denied_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    denial_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    partner_profile: Mapped["PartnerProfile"] = relationship(back_populates="businesses", lazy="joined")
    agents: Mapped[list["Agent"]] = relationship(
        back_populates="business",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
