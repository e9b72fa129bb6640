# backend/contractor_hub/models.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


# -----------------------------
# Tenancy / users
# -----------------------------
class Tenant(Base):
    __tablename__ = "tenants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(80), nullable=False, unique=True, index=True)

    company_name: Mapped[str] = mapped_column(String(160), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    business_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    trade_type: Mapped[str] = mapped_column(String(40), nullable=False, default="painter")
    company_logo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    default_email_subject: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    default_email_body: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class AppUser(Base):
    __tablename__ = "app_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenants.id"), index=True, nullable=False)
    email: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    role: Mapped[str] = mapped_column(String(30), nullable=False, default="contractor_admin")  # contractor_admin|admin|staff

    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    two_factor_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    two_factor_secret: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    password_reset_token_hash: Mapped[Optional[str]] = mapped_column(String(128), nullable=True, index=True)
    password_reset_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class AuditEvent(Base):
    __tablename__ = "audit_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenants.id"), index=True, nullable=False)
    actor_user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=True)

    action: Mapped[str] = mapped_column(String(80), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(40), nullable=False, default="job")
    entity_type: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(80), nullable=False)

    before_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    after_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


# -----------------------------
# Tenant configuration
# -----------------------------
class ContractorSettings(Base):
    __tablename__ = "contractor_settings"
    __table_args__ = (UniqueConstraint("tenant_id", name="uq_contractor_settings_tenant"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenants.id"), index=True, nullable=False)

    default_markup_percentage: Mapped[float] = mapped_column(Float, nullable=False, default=30.0)
    tax_rate_percentage: Mapped[float] = mapped_column(Float, nullable=False, default=8.25)
    deposit_percentage: Mapped[float] = mapped_column(Float, nullable=False, default=50.0)
    quote_validity_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)

    payment_terms: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    warranty_terms: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    general_terms: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    business_hours: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Customer portal / magic links
    portal_duration_days: Mapped[int] = mapped_column(Integer, nullable=False, default=14)
    portal_auto_lock: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    portal_link_expiry_days: Mapped[int] = mapped_column(Integer, nullable=False, default=7)
    portal_link_max_expiry_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    portal_auto_cleanup: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    portal_auto_cleanup_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    portal_require_otp_for_multi_job: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class PricingScheme(Base):
    __tablename__ = "pricing_schemes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenants.id"), index=True, nullable=False)

    name: Mapped[str] = mapped_column(String(160), nullable=False)
    type: Mapped[str] = mapped_column(String(40), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    pricing_rules: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


# -----------------------------
# Customers / quotes / jobs
# -----------------------------
class Client(Base):
    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenants.id"), index=True, nullable=False)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    street: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    zip_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class Quote(Base):
    __tablename__ = "quotes"
    __table_args__ = (UniqueConstraint("tenant_id", "quote_number", name="uq_quotes_tenant_number"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenants.id"), index=True, nullable=False)
    client_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("clients.id"), nullable=True, index=True)
    pricing_scheme_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("pricing_schemes.id"), nullable=True)

    quote_number: Mapped[str] = mapped_column(String(40), nullable=False)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="draft")

    # Snapshot of the scheme type at quote time; selects which shape below is meaningful.
    pricing_scheme_type: Mapped[str] = mapped_column(String(40), nullable=False, default="production_based")
    areas: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    flat_rate_items: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    breakdown: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    customer_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    customer_email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    customer_phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    street: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    zip_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    total: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    portal_open: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    portal_opened_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    portal_closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    deposit_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deposit_verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    deposit_transaction_id: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    deposit_payment_method: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)

    decline_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    viewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    declined_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    client: Mapped[Optional["Client"]] = relationship()
    pricing_scheme: Mapped[Optional["PricingScheme"]] = relationship()
    jobs: Mapped[List["Job"]] = relationship(back_populates="quote")


class Job(Base):
    __tablename__ = "jobs"
    __table_args__ = (
        UniqueConstraint("tenant_id", "job_number", name="uq_jobs_tenant_number"),
        Index("ix_jobs_tenant_status", "tenant_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenants.id"), index=True, nullable=False)
    quote_id: Mapped[int] = mapped_column(Integer, ForeignKey("quotes.id"), index=True, nullable=False)
    client_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("clients.id"), nullable=True, index=True)

    job_number: Mapped[str] = mapped_column(String(40), nullable=False)
    job_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="accepted")

    customer_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    customer_email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    customer_phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    job_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    total_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    deposit_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    deposit_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deposit_paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    customer_selections_complete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    customer_selections_submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    scheduled_start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    scheduled_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    estimated_duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    actual_start_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    actual_end_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    assigned_crew_members: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
    crew_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contractor_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # {itemKey|areaId: {"status": ..., "updatedAt": iso}}
    area_progress: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    material_list_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    paint_order_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    work_order_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    documents_generated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    lost_reason: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    lost_reason_details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    lost_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    quote: Mapped["Quote"] = relationship(back_populates="jobs")
    client: Mapped[Optional["Client"]] = relationship()
