"""initial schema

Revision ID: 0001a2b3c4d5
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = "0001a2b3c4d5"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(updated: bool = True) -> list[sa.Column]:
    cols = [sa.Column("created_at", sa.DateTime(), nullable=False)]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime(), nullable=False))
    return cols


def _profile_fk() -> sa.Column:
    return sa.Column(
        "partner_profile_id",
        sa.Integer(),
        sa.ForeignKey("partner_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )


def _request_form_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("region_code", sa.String(length=8), nullable=False),
        sa.Column("business_name", sa.String(length=255), nullable=False),
        sa.Column("date_of_incorporation", sa.Date(), nullable=True),
        sa.Column("business_type", sa.String(length=64), nullable=True),
        sa.Column("business_type_other", sa.String(length=255), nullable=True),
        sa.Column("registered_nature", sa.String(length=64), nullable=True),
        sa.Column("registration_cert_no", sa.String(length=128), nullable=True),
        sa.Column("main_office_location", sa.String(length=255), nullable=True),
        sa.Column("tin_number", sa.String(length=64), nullable=True),
        sa.Column("postal_address", sa.String(length=255), nullable=True),
        sa.Column("physical_address", sa.String(length=255), nullable=True),
        sa.Column("company_phone", sa.String(length=64), nullable=True),
        sa.Column("digital_post_address", sa.String(length=64), nullable=True),
        sa.Column("authorized_signatory", sa.JSON(), nullable=True),
        sa.Column("contact_person", sa.JSON(), nullable=True),
        sa.Column("pep_declaration", sa.JSON(), nullable=True),
        sa.Column("image_urls", sa.JSON(), nullable=False),
        sa.Column("completion_date", sa.Date(), nullable=True),
        *_timestamps(),
        sa.Column("created_by_admin_id", sa.Integer(), sa.ForeignKey("admins.id", ondelete="SET NULL"), nullable=True),
    ]


def _approval_columns(form_table: str) -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("form_id", sa.Integer(), sa.ForeignKey(f"{form_table}.id", ondelete="CASCADE"), nullable=False),
        sa.Column("admin_id", sa.Integer(), sa.ForeignKey("admins.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("action", sa.String(length=16), nullable=False),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("signature_url", sa.Text(), nullable=True),
        sa.Column("signature_date", sa.DateTime(), nullable=True),
        sa.Column("score", sa.Float(), nullable=True),
        *_timestamps(updated=False),
    ]


def _reply_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("author_type", sa.String(length=16), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("admin_id", sa.Integer(), sa.ForeignKey("admins.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(updated=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    existing_tables = set(inspect(bind).get_table_names())

    def create(name: str, *cols, indexes: tuple[tuple[str, list[str]], ...] = (), **kw) -> None:
        if name in existing_tables:
            return
        op.create_table(name, *cols, **kw)
        for ix_name, ix_cols in indexes:
            op.create_index(ix_name, name, ix_cols)

    create(
        "admins",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    create(
        "admin_region_assignments",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("admin_id", sa.Integer(), sa.ForeignKey("admins.id", ondelete="CASCADE"), nullable=False),
        sa.Column("region_code", sa.String(length=8), nullable=False),
        sa.Column("sbu_code", sa.String(length=32), nullable=True),
        *_timestamps(updated=False),
        sa.UniqueConstraint("admin_id", "region_code", name="uq_admin_region"),
        indexes=(("idx_admin_region_code", ["region_code"]),),
    )
    create(
        "admin_otps",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("admin_id", sa.Integer(), sa.ForeignKey("admins.id", ondelete="CASCADE"), nullable=False),
        sa.Column("code_hash", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        *_timestamps(updated=False),
        indexes=(("idx_admin_otps_admin_status", ["admin_id", "status"]),),
    )
    create(
        "admin_sessions",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("admin_id", sa.Integer(), sa.ForeignKey("admins.id", ondelete="CASCADE"), nullable=False),
        sa.Column("token_hash", sa.String(length=64), nullable=False, unique=True),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        *_timestamps(updated=False),
    )
    create(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("email_verified_at", sa.DateTime(), nullable=True),
        *_timestamps(updated=False),
    )
    create(
        "auth_tokens",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("identifier", sa.String(length=320), nullable=False),
        sa.Column("token_hash", sa.String(length=64), nullable=False),
        sa.Column("purpose", sa.String(length=32), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        *_timestamps(updated=False),
        sa.UniqueConstraint("identifier", "token_hash", name="uq_auth_token_identifier_hash"),
    )
    create(
        "audit_events",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("request_id", sa.String(length=64), nullable=True),
        sa.Column("actor_admin_id", sa.Integer(), sa.ForeignKey("admins.id", ondelete="SET NULL"), nullable=True),
        sa.Column("actor_email", sa.String(length=320), nullable=True),
        sa.Column("action", sa.String(length=128), nullable=False),
        sa.Column("entity_type", sa.String(length=64), nullable=True),
        sa.Column("entity_id", sa.String(length=64), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("metadata_json", sa.Text(), nullable=True),
        sa.Column("client_ip", sa.String(length=64), nullable=True),
        indexes=(
            ("idx_audit_events_created_at", ["created_at"]),
            ("idx_audit_events_entity", ["entity_type", "entity_id"]),
        ),
    )
    create(
        "partner_profiles",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("business_name", sa.String(length=255), nullable=True),
        sa.Column("partner_first_name", sa.String(length=128), nullable=True),
        sa.Column("partner_surname", sa.String(length=128), nullable=True),
        sa.Column("phone_number", sa.String(length=64), nullable=True),
        sa.Column("payment_wallet", sa.String(length=64), nullable=True),
        sa.Column("ghana_card_number", sa.String(length=64), nullable=True),
        sa.Column("ghana_card_front_url", sa.Text(), nullable=True),
        sa.Column("ghana_card_back_url", sa.Text(), nullable=True),
        sa.Column("passport_photo_url", sa.Text(), nullable=True),
        sa.Column("tax_identity_number", sa.String(length=64), nullable=True),
        sa.Column("business_certificate_url", sa.Text(), nullable=True),
        sa.Column("fire_certificate_url", sa.Text(), nullable=True),
        sa.Column("insurance_url", sa.Text(), nullable=True),
        sa.Column("apn", sa.String(length=64), nullable=True),
        sa.Column("mifi_imei", sa.String(length=32), nullable=True),
        sa.Column("submitted_at", sa.DateTime(), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("denied_at", sa.DateTime(), nullable=True),
        sa.Column("denial_reason", sa.Text(), nullable=True),
        sa.Column("suspended", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("suspended_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        indexes=(
            ("idx_partner_profiles_status", ["status"]),
            ("idx_partner_profiles_business_name", ["business_name"]),
        ),
    )
    create(
        "businesses",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        _profile_fk(),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("business_name", sa.String(length=255), nullable=False),
        sa.Column("address_region_code", sa.String(length=8), nullable=False),
        sa.Column("address_sbu_code", sa.String(length=32), nullable=True),
        sa.Column("address_district_code", sa.String(length=8), nullable=False),
        sa.Column("address_code", sa.String(length=32), nullable=False),
        sa.Column("gps_latitude", sa.String(length=32), nullable=True),
        sa.Column("gps_longitude", sa.String(length=32), nullable=True),
        sa.Column("city", sa.String(length=128), nullable=False),
        sa.Column("landmark", sa.String(length=255), nullable=True),
        sa.Column("store_front_url", sa.Text(), nullable=True),
        sa.Column("store_inside_url", sa.Text(), nullable=True),
        sa.Column("fire_certificate_url", sa.Text(), nullable=True),
        sa.Column("insurance_url", sa.Text(), nullable=True),
        sa.Column("apn", sa.String(length=64), nullable=True),
        sa.Column("mifi_imei", sa.String(length=15), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("denied_at", sa.DateTime(), nullable=True),
        sa.Column("denial_reason", sa.Text(), nullable=True),
        *_timestamps(),
        indexes=(
            ("idx_businesses_region", ["address_region_code"]),
            ("idx_businesses_status", ["status"]),
            ("idx_businesses_partner", ["partner_profile_id"]),
        ),
    )
    create(
        "agents",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        _profile_fk(),
        sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("first_name", sa.String(length=128), nullable=False),
        sa.Column("surname", sa.String(length=128), nullable=False),
        sa.Column("phone_number", sa.String(length=64), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("ghana_card_number", sa.String(length=64), nullable=False),
        sa.Column("ghana_card_front_url", sa.Text(), nullable=True),
        sa.Column("ghana_card_back_url", sa.Text(), nullable=True),
        sa.Column("passport_photo_url", sa.Text(), nullable=True),
        sa.Column("address_region_code", sa.String(length=8), nullable=False),
        sa.Column("address_district_code", sa.String(length=8), nullable=False),
        sa.Column("address_code", sa.String(length=32), nullable=False),
        sa.Column("city", sa.String(length=128), nullable=False),
        sa.Column("business_name", sa.String(length=255), nullable=False),
        sa.Column("cp_app_number", sa.String(length=16), nullable=True),
        sa.Column("agent_username", sa.String(length=128), nullable=True),
        sa.Column("minerva_referral_code", sa.String(length=64), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("denied_at", sa.DateTime(), nullable=True),
        sa.Column("denial_reason", sa.Text(), nullable=True),
        *_timestamps(),
        indexes=(
            ("idx_agents_status", ["status"]),
            ("idx_agents_partner", ["partner_profile_id"]),
            ("idx_agents_business", ["business_id"]),
        ),
    )
    create(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("recipient_type", sa.String(length=16), nullable=False),
        sa.Column("admin_id", sa.Integer(), sa.ForeignKey("admins.id", ondelete="CASCADE"), nullable=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("category", sa.String(length=16), nullable=False),
        sa.Column("read_at", sa.DateTime(), nullable=True),
        *_timestamps(updated=False),
        indexes=(
            ("idx_notifications_admin_read", ["admin_id", "read_at"]),
            ("idx_notifications_user_read", ["user_id", "read_at"]),
        ),
    )
    create(
        "onboard_request_forms",
        *_request_form_columns(),
        sa.Column("sbu_code", sa.String(length=32), nullable=True),
        sa.Column("submitter_name", sa.String(length=255), nullable=True),
        sa.Column("submitter_email", sa.String(length=255), nullable=True),
        sa.Column("submitter_phone", sa.String(length=64), nullable=True),
        indexes=(
            ("idx_onboard_requests_status", ["status"]),
            ("idx_onboard_requests_region", ["region_code"]),
        ),
    )
    create(
        "onboard_request_approvals",
        *_approval_columns("onboard_request_forms"),
        indexes=(("ix_onboard_request_approvals_form_id", ["form_id"]),),
    )
    create(
        "data_request_forms",
        *_request_form_columns(),
        indexes=(
            ("idx_data_requests_status", ["status"]),
            ("idx_data_requests_region", ["region_code"]),
        ),
    )
    create(
        "data_request_approvals",
        *_approval_columns("data_request_forms"),
        indexes=(("ix_data_request_approvals_form_id", ["form_id"]),),
    )
    create(
        "partner_forms",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        _profile_fk(),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("document_url", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("signer_name", sa.String(length=255), nullable=True),
        sa.Column("signature_url", sa.Text(), nullable=True),
        sa.Column("signed_at", sa.DateTime(), nullable=True),
        sa.Column("sent_by_admin_id", sa.Integer(), sa.ForeignKey("admins.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
        indexes=(("idx_partner_forms_profile", ["partner_profile_id", "created_at"]),),
    )
    create(
        "feedback",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        _profile_fk(),
        sa.Column("subject", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        *_timestamps(),
        indexes=(("idx_feedback_status_created", ["status", "created_at"]),),
    )
    create(
        "feedback_replies",
        *_reply_columns(),
        sa.Column("feedback_id", sa.Integer(), sa.ForeignKey("feedback.id", ondelete="CASCADE"), nullable=False),
    )
    create(
        "restock_requests",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        _profile_fk(),
        sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("items", sa.JSON(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        *_timestamps(),
        indexes=(("idx_restock_requests_status_created", ["status", "created_at"]),),
    )
    create(
        "training_requests",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        _profile_fk(),
        sa.Column("agent_ids", sa.JSON(), nullable=False),
        sa.Column("agent_names", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        *_timestamps(),
        indexes=(("idx_training_requests_status_created", ["status", "created_at"]),),
    )
    create(
        "request_replies",
        *_reply_columns(),
        sa.Column(
            "restock_request_id", sa.Integer(), sa.ForeignKey("restock_requests.id", ondelete="CASCADE"), nullable=True
        ),
        sa.Column(
            "training_request_id", sa.Integer(), sa.ForeignKey("training_requests.id", ondelete="CASCADE"), nullable=True
        ),
    )
    create(
        "payslips",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        _profile_fk(),
        sa.Column("image_url", sa.Text(), nullable=False),
        sa.Column("original_filename", sa.String(length=255), nullable=False),
        sa.Column("display_filename", sa.String(length=64), nullable=False),
        *_timestamps(updated=False),
        indexes=(("idx_payslips_profile_created", ["partner_profile_id", "created_at"]),),
    )


def downgrade() -> None:
    for name in (
        "payslips",
        "request_replies",
        "training_requests",
        "restock_requests",
        "feedback_replies",
        "feedback",
        "partner_forms",
        "data_request_approvals",
        "data_request_forms",
        "onboard_request_approvals",
        "onboard_request_forms",
        "notifications",
        "agents",
        "businesses",
        "partner_profiles",
        "audit_events",
        "auth_tokens",
        "users",
        "admin_sessions",
        "admin_otps",
        "admin_region_assignments",
        "admins",
    ):
        op.drop_table(name)
