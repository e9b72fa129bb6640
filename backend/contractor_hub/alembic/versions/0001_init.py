"""init schema

Revision ID: 0001_init
Revises:
Create Date: 2026-10-18
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def _insp():
    return inspect(op.get_bind())


def _has_table(name: str) -> bool:
    return name in _insp().get_table_names()


def upgrade():
    if not _has_table("tenants"):
        op.create_table(
            "tenants",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("slug", sa.String(length=80), nullable=False),
            sa.Column("company_name", sa.String(length=160), nullable=False),
            sa.Column("email", sa.String(length=200), nullable=True),
            sa.Column("phone_number", sa.String(length=40), nullable=True),
            sa.Column("business_address", sa.Text(), nullable=True),
            sa.Column("trade_type", sa.String(length=40), nullable=False, server_default="painter"),
            sa.Column("company_logo_url", sa.String(length=500), nullable=True),
            sa.Column("default_email_subject", sa.String(length=255), nullable=True),
            sa.Column("default_email_body", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_tenants_slug", "tenants", ["slug"], unique=True)

    if not _has_table("app_users"):
        op.create_table(
            "app_users",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
            sa.Column("email", sa.String(length=200), nullable=False),
            sa.Column("full_name", sa.String(length=160), nullable=True),
            sa.Column("role", sa.String(length=30), nullable=False, server_default="contractor_admin"),
            sa.Column("password_hash", sa.String(length=255), nullable=True),
            sa.Column("two_factor_enabled", sa.Boolean(), nullable=False, server_default=sa.text("false")),
            sa.Column("two_factor_secret", sa.String(length=64), nullable=True),
            sa.Column("password_reset_token_hash", sa.String(length=128), nullable=True),
            sa.Column("password_reset_expires_at", sa.DateTime(), nullable=True),
            sa.Column("last_login_at", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_app_users_tenant_id", "app_users", ["tenant_id"])
        op.create_index("ix_app_users_email", "app_users", ["email"], unique=True)
        op.create_index("ix_app_users_password_reset_token_hash", "app_users", ["password_reset_token_hash"])

    if not _has_table("audit_events"):
        op.create_table(
            "audit_events",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
            sa.Column("actor_user_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=True),
            sa.Column("action", sa.String(length=80), nullable=False),
            sa.Column("category", sa.String(length=40), nullable=False),
            sa.Column("entity_type", sa.String(length=80), nullable=False),
            sa.Column("entity_id", sa.String(length=80), nullable=False),
            sa.Column("before_json", sa.Text(), nullable=True),
            sa.Column("after_json", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_audit_events_tenant_id", "audit_events", ["tenant_id"])
        op.create_index("ix_audit_events_action", "audit_events", ["action"])

    if not _has_table("contractor_settings"):
        op.create_table(
            "contractor_settings",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
            sa.Column("default_markup_percentage", sa.Float(), nullable=False, server_default="30"),
            sa.Column("tax_rate_percentage", sa.Float(), nullable=False, server_default="8.25"),
            sa.Column("deposit_percentage", sa.Float(), nullable=False, server_default="50"),
            sa.Column("quote_validity_days", sa.Integer(), nullable=False, server_default="30"),
            sa.Column("payment_terms", sa.Text(), nullable=True),
            sa.Column("warranty_terms", sa.Text(), nullable=True),
            sa.Column("general_terms", sa.Text(), nullable=True),
            sa.Column("business_hours", sa.String(length=255), nullable=True),
            sa.Column("portal_duration_days", sa.Integer(), nullable=False, server_default="14"),
            sa.Column("portal_auto_lock", sa.Boolean(), nullable=False, server_default=sa.text("true")),
            sa.Column("portal_link_expiry_days", sa.Integer(), nullable=False, server_default="7"),
            sa.Column("portal_link_max_expiry_days", sa.Integer(), nullable=False, server_default="30"),
            sa.Column("portal_auto_cleanup", sa.Boolean(), nullable=False, server_default=sa.text("true")),
            sa.Column("portal_auto_cleanup_days", sa.Integer(), nullable=False, server_default="30"),
            sa.Column("portal_require_otp_for_multi_job", sa.Boolean(), nullable=False, server_default=sa.text("true")),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("tenant_id", name="uq_contractor_settings_tenant"),
        )
        op.create_index("ix_contractor_settings_tenant_id", "contractor_settings", ["tenant_id"])

    if not _has_table("pricing_schemes"):
        op.create_table(
            "pricing_schemes",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
            sa.Column("name", sa.String(length=160), nullable=False),
            sa.Column("type", sa.String(length=40), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("pricing_rules", sa.JSON(), nullable=False),
            sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.text("false")),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_pricing_schemes_tenant_id", "pricing_schemes", ["tenant_id"])

    if not _has_table("clients"):
        op.create_table(
            "clients",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("email", sa.String(length=200), nullable=True),
            sa.Column("phone", sa.String(length=40), nullable=True),
            sa.Column("street", sa.String(length=255), nullable=True),
            sa.Column("city", sa.String(length=120), nullable=True),
            sa.Column("state", sa.String(length=40), nullable=True),
            sa.Column("zip_code", sa.String(length=20), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_clients_tenant_id", "clients", ["tenant_id"])

    if not _has_table("quotes"):
        op.create_table(
            "quotes",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
            sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=True),
            sa.Column("pricing_scheme_id", sa.Integer(), sa.ForeignKey("pricing_schemes.id"), nullable=True),
            sa.Column("quote_number", sa.String(length=40), nullable=False),
            sa.Column("status", sa.String(length=30), nullable=False, server_default="draft"),
            sa.Column("pricing_scheme_type", sa.String(length=40), nullable=False, server_default="production_based"),
            sa.Column("areas", sa.JSON(), nullable=False),
            sa.Column("flat_rate_items", sa.JSON(), nullable=False),
            sa.Column("breakdown", sa.JSON(), nullable=False),
            sa.Column("customer_name", sa.String(length=200), nullable=True),
            sa.Column("customer_email", sa.String(length=200), nullable=True),
            sa.Column("customer_phone", sa.String(length=40), nullable=True),
            sa.Column("street", sa.String(length=255), nullable=True),
            sa.Column("city", sa.String(length=120), nullable=True),
            sa.Column("state", sa.String(length=40), nullable=True),
            sa.Column("zip_code", sa.String(length=20), nullable=True),
            sa.Column("total", sa.Float(), nullable=False, server_default="0"),
            sa.Column("portal_open", sa.Boolean(), nullable=False, server_default=sa.text("false")),
            sa.Column("portal_opened_at", sa.DateTime(), nullable=True),
            sa.Column("portal_closed_at", sa.DateTime(), nullable=True),
            sa.Column("deposit_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
            sa.Column("deposit_verified_at", sa.DateTime(), nullable=True),
            sa.Column("deposit_transaction_id", sa.String(length=120), nullable=True),
            sa.Column("deposit_payment_method", sa.String(length=40), nullable=True),
            sa.Column("decline_reason", sa.Text(), nullable=True),
            sa.Column("sent_at", sa.DateTime(), nullable=True),
            sa.Column("viewed_at", sa.DateTime(), nullable=True),
            sa.Column("accepted_at", sa.DateTime(), nullable=True),
            sa.Column("declined_at", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("tenant_id", "quote_number", name="uq_quotes_tenant_number"),
        )
        op.create_index("ix_quotes_tenant_id", "quotes", ["tenant_id"])
        op.create_index("ix_quotes_client_id", "quotes", ["client_id"])

    if not _has_table("jobs"):
        op.create_table(
            "jobs",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
            sa.Column("quote_id", sa.Integer(), sa.ForeignKey("quotes.id"), nullable=False),
            sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=True),
            sa.Column("job_number", sa.String(length=40), nullable=False),
            sa.Column("job_name", sa.String(length=200), nullable=True),
            sa.Column("status", sa.String(length=30), nullable=False, server_default="accepted"),
            sa.Column("customer_name", sa.String(length=200), nullable=True),
            sa.Column("customer_email", sa.String(length=200), nullable=True),
            sa.Column("customer_phone", sa.String(length=40), nullable=True),
            sa.Column("job_address", sa.Text(), nullable=True),
            sa.Column("total_amount", sa.Float(), nullable=False, server_default="0"),
            sa.Column("deposit_amount", sa.Float(), nullable=False, server_default="0"),
            sa.Column("deposit_paid", sa.Boolean(), nullable=False, server_default=sa.text("false")),
            sa.Column("deposit_paid_at", sa.DateTime(), nullable=True),
            sa.Column("customer_selections_complete", sa.Boolean(), nullable=False, server_default=sa.text("false")),
            sa.Column("customer_selections_submitted_at", sa.DateTime(), nullable=True),
            sa.Column("scheduled_start_date", sa.Date(), nullable=True),
            sa.Column("scheduled_end_date", sa.Date(), nullable=True),
            sa.Column("estimated_duration", sa.Integer(), nullable=True),
            sa.Column("actual_start_date", sa.DateTime(), nullable=True),
            sa.Column("actual_end_date", sa.DateTime(), nullable=True),
            sa.Column("assigned_crew_members", sa.JSON(), nullable=False),
            sa.Column("crew_notes", sa.Text(), nullable=True),
            sa.Column("contractor_notes", sa.Text(), nullable=True),
            sa.Column("area_progress", sa.JSON(), nullable=False),
            sa.Column("material_list_url", sa.String(length=500), nullable=True),
            sa.Column("paint_order_url", sa.String(length=500), nullable=True),
            sa.Column("work_order_url", sa.String(length=500), nullable=True),
            sa.Column("documents_generated_at", sa.DateTime(), nullable=True),
            sa.Column("lost_reason", sa.String(length=40), nullable=True),
            sa.Column("lost_reason_details", sa.Text(), nullable=True),
            sa.Column("lost_at", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("tenant_id", "job_number", name="uq_jobs_tenant_number"),
        )
        op.create_index("ix_jobs_tenant_id", "jobs", ["tenant_id"])
        op.create_index("ix_jobs_quote_id", "jobs", ["quote_id"])
        op.create_index("ix_jobs_client_id", "jobs", ["client_id"])
        op.create_index("ix_jobs_tenant_status", "jobs", ["tenant_id", "status"])


def downgrade():
    for name in (
        "jobs",
        "quotes",
        "clients",
        "pricing_schemes",
        "contractor_settings",
        "audit_events",
        "app_users",
        "tenants",
    ):
        if _has_table(name):
            op.drop_table(name)
