from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class Admin(Base):
    __tablename__ = "admins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False)  # see constants.ADMIN_ROLES
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    regions: Mapped[list["AdminRegionAssignment"]] = relationship(
        back_populates="admin",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="AdminRegionAssignment.region_code",
    )

    @property
    def region_codes(self) -> list[str]:
        return [r.region_code for r in self.regions]


class AdminRegionAssignment(Base):
    __tablename__ = "admin_region_assignments"
    __table_args__ = (
        UniqueConstraint("admin_id", "region_code", name="uq_admin_region"),
        Index("idx_admin_region_code", "region_code"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    admin_id: Mapped[int] = mapped_column(ForeignKey("admins.id", ondelete="CASCADE"), nullable=False)
    region_code: Mapped[str] = mapped_column(String(8), nullable=False)
    sbu_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    admin: Mapped[Admin] = relationship(back_populates="regions")


class AdminOtp(Base):
    __tablename__ = "admin_otps"
    __table_args__ = (Index("idx_admin_otps_admin_status", "admin_id", "status"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    admin_id: Mapped[int] = mapped_column(ForeignKey("admins.id", ondelete="CASCADE"), nullable=False)
    code_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="PENDING")  # PENDING, USED
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)


class AdminSession(Base):
    __tablename__ = "admin_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    admin_id: Mapped[int] = mapped_column(ForeignKey("admins.id", ondelete="CASCADE"), nullable=False)
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    admin: Mapped[Admin] = relationship(lazy="joined")


class User(Base):
    """Partner login account."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    email_verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    profile: Mapped["PartnerProfile | None"] = relationship(
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def is_verified(self) -> bool:
        return self.email_verified_at is not None


class AuthToken(Base):
    """Hashed single-use token for email verification and password reset."""

    __tablename__ = "auth_tokens"
    __table_args__ = (
        UniqueConstraint("identifier", "token_hash", name="uq_auth_token_identifier_hash"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    identifier: Mapped[str] = mapped_column(String(320), nullable=False)
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    purpose: Mapped[str] = mapped_column(String(32), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)


class AuditEvent(Base):
    """
    Append-only audit trail event.
    Keep this table intentionally generic; module tables refer to it by entity_type/entity_id.
    """

    __tablename__ = "audit_events"
    __table_args__ = (
        Index("idx_audit_events_created_at", "created_at"),
        Index("idx_audit_events_entity", "entity_type", "entity_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    actor_admin_id: Mapped[int | None] = mapped_column(ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    actor_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    action: Mapped[str] = mapped_column(String(128), nullable=False)
    entity_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    entity_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    metadata_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    client_ip: Mapped[str | None] = mapped_column(String(64), nullable=True)

    actor: Mapped[Admin | None] = relationship(lazy="selectin")


# Import module models so Base.metadata sees every table.
from app.partnerhub.modules.partners.models import PartnerProfile  # noqa: E402,F401
from app.partnerhub.modules.businesses.models import Business  # noqa: E402,F401
from app.partnerhub.modules.agents.models import Agent  # noqa: E402,F401
from app.partnerhub.modules.notifications.models import Notification  # noqa: E402,F401
from app.partnerhub.modules.onboard_requests.models import OnboardRequestApproval, OnboardRequestForm  # noqa: E402,F401
from app.partnerhub.modules.data_requests.models import DataRequestApproval, DataRequestForm  # noqa: E402,F401
from app.partnerhub.modules.forms.models import PartnerForm  # noqa: E402,F401
from app.partnerhub.modules.feedback.models import Feedback, FeedbackReply  # noqa: E402,F401
from app.partnerhub.modules.partner_requests.models import (  # noqa: E402,F401
    RestockRequest,
    RequestReply,
    TrainingRequest,
)
from app.partnerhub.modules.payslips.models import Payslip  # noqa: E402,F401
