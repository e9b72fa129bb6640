# backend/contractor_hub/schemas.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire format is camelCase; Python side stays snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    def wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def envelope(data: Any = None, message: Optional[str] = None, success: bool = True) -> dict[str, Any]:
    out: dict[str, Any] = {"success": success}
    if data is not None:
        out["data"] = data
    if message is not None:
        out["message"] = message
    return out


# -------------------- Clients / Quotes / Jobs --------------------

class ClientOut(CamelModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None


class PricingSchemeRef(CamelModel):
    id: int
    name: str
    type: str


class QuoteOut(CamelModel):
    id: int
    quote_number: str
    status: str
    pricing_scheme_id: Optional[int] = None
    pricing_scheme_type: str
    pricing_scheme: Optional[PricingSchemeRef] = None
    areas: list[dict[str, Any]] = Field(default_factory=list)
    flat_rate_items: dict[str, Any] = Field(default_factory=dict)
    breakdown: list[dict[str, Any]] = Field(default_factory=list)
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    total: float = 0.0
    portal_open: bool = False
    portal_opened_at: Optional[datetime] = None
    portal_closed_at: Optional[datetime] = None
    deposit_verified: bool = False
    deposit_verified_at: Optional[datetime] = None
    deposit_transaction_id: Optional[str] = None
    deposit_payment_method: Optional[str] = None
    decline_reason: Optional[str] = None
    sent_at: Optional[datetime] = None
    viewed_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    declined_at: Optional[datetime] = None


class JobOut(CamelModel):
    id: int
    job_number: str
    job_name: Optional[str] = None
    status: str
    quote_id: int
    client_id: Optional[int] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    job_address: Optional[str] = None
    total_amount: float = 0.0
    deposit_amount: float = 0.0
    deposit_paid: bool = False
    deposit_paid_at: Optional[datetime] = None
    customer_selections_complete: bool = False
    customer_selections_submitted_at: Optional[datetime] = None
    scheduled_start_date: Optional[date] = None
    scheduled_end_date: Optional[date] = None
    estimated_duration: Optional[int] = None
    actual_start_date: Optional[datetime] = None
    actual_end_date: Optional[datetime] = None
    assigned_crew_members: list[Any] = Field(default_factory=list)
    crew_notes: Optional[str] = None
    contractor_notes: Optional[str] = None
    area_progress: dict[str, Any] = Field(default_factory=dict)
    material_list_url: Optional[str] = None
    paint_order_url: Optional[str] = None
    work_order_url: Optional[str] = None
    documents_generated_at: Optional[datetime] = None
    lost_reason: Optional[str] = None
    lost_reason_details: Optional[str] = None
    lost_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class JobDetailOut(JobOut):
    quote: Optional[QuoteOut] = None
    client: Optional[ClientOut] = None


class ScheduleUpdate(CamelModel):
    scheduled_start_date: Optional[date] = None
    scheduled_end_date: Optional[date] = None
    estimated_duration: Optional[int] = Field(default=None, ge=1)
    assigned_crew_members: Optional[list[Any]] = None
    crew_notes: Optional[str] = None


class JobStatusUpdate(CamelModel):
    status: str
    notes: Optional[str] = None
    scheduled_start_date: Optional[date] = None
    scheduled_end_date: Optional[date] = None
    reason: Optional[str] = None


class VisibilityUpdate(CamelModel):
    visible: bool


class AreaProgressUpdate(CamelModel):
    item_key: Optional[str] = None
    area_id: Optional[str | int] = None
    status: str


class LostReasonIn(CamelModel):
    lost_reason: Optional[str] = None
    lost_reason_details: Optional[str] = None


# -------------------- Admin status --------------------

class MarkDepositPaidIn(CamelModel):
    payment_method: str = "cash"
    notes: Optional[str] = None
    transaction_id: Optional[str] = None


class ReopenQuoteIn(CamelModel):
    reason: Optional[str] = None


class SyncPaymentIn(CamelModel):
    payment_intent_id: Optional[str] = None


class AdminJobStatusIn(CamelModel):
    status: str
    scheduled_start_date: Optional[date] = None
    scheduled_end_date: Optional[date] = None
    reason: Optional[str] = None


class OverrideStatusIn(CamelModel):
    status: str
    reason: Optional[str] = None
    confirm_override: bool = False


# -------------------- Settings / pricing schemes --------------------

class CompanyOut(CamelModel):
    id: int
    slug: str
    company_name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    business_address: Optional[str] = None
    trade_type: str
    company_logo_url: Optional[str] = None
    default_email_subject: Optional[str] = None
    default_email_body: Optional[str] = None


class SettingsOut(CamelModel):
    id: int
    default_markup_percentage: float
    tax_rate_percentage: float
    deposit_percentage: float
    quote_validity_days: int
    payment_terms: Optional[str] = None
    warranty_terms: Optional[str] = None
    general_terms: Optional[str] = None
    business_hours: Optional[str] = None
    portal_duration_days: int
    portal_auto_lock: bool
    portal_link_expiry_days: int
    portal_link_max_expiry_days: int
    portal_auto_cleanup: bool
    portal_auto_cleanup_days: int
    portal_require_otp_for_multi_job: bool
    updated_at: Optional[datetime] = None


class SettingsUpdate(CamelModel):
    default_markup_percentage: Optional[float] = Field(default=None, ge=0, le=500)
    tax_rate_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    deposit_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    quote_validity_days: Optional[int] = Field(default=None, ge=1, le=365)
    payment_terms: Optional[str] = None
    warranty_terms: Optional[str] = None
    general_terms: Optional[str] = None
    business_hours: Optional[str] = None
    portal_duration_days: Optional[int] = Field(default=None, ge=1, le=365)
    portal_auto_lock: Optional[bool] = None
    portal_link_expiry_days: Optional[int] = Field(default=None, ge=1, le=365)
    portal_link_max_expiry_days: Optional[int] = Field(default=None, ge=1, le=365)
    portal_auto_cleanup: Optional[bool] = None
    portal_auto_cleanup_days: Optional[int] = Field(default=None, ge=1, le=365)
    portal_require_otp_for_multi_job: Optional[bool] = None
    default_email_subject: Optional[str] = None
    default_email_body: Optional[str] = None


class CompanyInfoUpdate(CamelModel):
    company_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    business_address: Optional[str] = None
    trade_type: Optional[str] = None
    company_logo_url: Optional[str] = None


class PricingSchemeOut(CamelModel):
    id: int
    name: str
    type: str
    description: Optional[str] = None
    pricing_rules: dict[str, Any] = Field(default_factory=dict)
    is_default: bool
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PricingSchemeCreate(CamelModel):
    name: str = Field(min_length=1, max_length=160)
    type: str
    description: Optional[str] = None
    pricing_rules: dict[str, Any] = Field(default_factory=dict)
    is_default: bool = False


class PricingSchemeUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=160)
    type: Optional[str] = None
    description: Optional[str] = None
    pricing_rules: Optional[dict[str, Any]] = None
    is_default: Optional[bool] = None
    is_active: Optional[bool] = None


# -------------------- Auth --------------------

class LoginIn(CamelModel):
    email: str
    password: str


class ForgotPasswordIn(CamelModel):
    email: str


class ResetPasswordIn(CamelModel):
    token: str
    new_password: str


class ChangePasswordIn(CamelModel):
    current_password: str
    new_password: str


def job_payload(job: Any, *, with_progress: bool = True) -> dict[str, Any]:
    """Job JSON as returned by every job endpoint: row, quote, client, derived progress."""
    from .domain.progress import derive_progress_items

    out = JobDetailOut.model_validate(job).wire()
    if with_progress:
        out["progress"] = derive_progress_items(job).to_dict()
    return out
