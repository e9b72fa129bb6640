# backend/contractor_hub/routers/settings.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal, require_admin
from ..config import settings as app_settings
from ..db import get_db
from ..domain.audit import emit_audit
from ..models import ContractorSettings, Tenant
from ..schemas import CompanyInfoUpdate, CompanyOut, SettingsOut, SettingsUpdate, envelope

log = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])

DEFAULT_PAYMENT_TERMS = (
    "A deposit is required to schedule the work. The remaining balance is due upon completion of the project."
)
DEFAULT_WARRANTY_TERMS = (
    "All workmanship is warranted for 2 years from the date of completion. "
    "Paint manufacturer warranties apply to materials."
)
DEFAULT_GENERAL_TERMS = (
    "This quote is valid for the number of days stated. Any changes to the scope of work "
    "may result in additional charges."
)
DEFAULT_BUSINESS_HOURS = "Monday-Friday: 8:00 AM - 6:00 PM"

_TENANT_FIELDS = ("default_email_subject", "default_email_body")


def _select_settings(db: Session, tenant_id: int) -> Optional[ContractorSettings]:
    return db.scalar(select(ContractorSettings).where(ContractorSettings.tenant_id == tenant_id))


def _get_or_create_settings(db: Session, tenant_id: int) -> ContractorSettings:
    row = _select_settings(db, tenant_id)
    if row:
        return row

    row = ContractorSettings(
        tenant_id=tenant_id,
        default_markup_percentage=app_settings.default_markup_percentage,
        tax_rate_percentage=app_settings.default_tax_rate_percentage,
        deposit_percentage=app_settings.default_deposit_percentage,
        quote_validity_days=app_settings.default_quote_validity_days,
        payment_terms=DEFAULT_PAYMENT_TERMS,
        warranty_terms=DEFAULT_WARRANTY_TERMS,
        general_terms=DEFAULT_GENERAL_TERMS,
        business_hours=DEFAULT_BUSINESS_HOURS,
        portal_duration_days=app_settings.default_portal_duration_days,
        portal_link_expiry_days=app_settings.default_portal_link_expiry_days,
        portal_link_max_expiry_days=app_settings.default_portal_link_max_expiry_days,
        portal_auto_cleanup_days=app_settings.default_portal_auto_cleanup_days,
        updated_at=datetime.utcnow(),
    )
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent first read for this tenant created the row.
        db.rollback()
        log.info("settings row already created", extra={"tenant_id": tenant_id})
        return _select_settings(db, tenant_id)
    db.refresh(row)
    return row


def _get_tenant_or_404(db: Session, tenant_id: int) -> Tenant:
    tenant = db.get(Tenant, tenant_id)
    if tenant is None:
        raise HTTPException(status_code=404, detail="Company not found")
    return tenant


def _payload(row: ContractorSettings, tenant: Tenant) -> dict:
    out = SettingsOut.model_validate(row).wire()
    out["company"] = CompanyOut.model_validate(tenant).wire()
    return out


@router.get("")
def get_settings(db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    row = _get_or_create_settings(db, p.tenant_id)
    return envelope(_payload(row, _get_tenant_or_404(db, p.tenant_id)))


@router.put("")
def update_settings(
    payload: SettingsUpdate,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_admin),
):
    row = _get_or_create_settings(db, p.tenant_id)
    tenant = _get_tenant_or_404(db, p.tenant_id)
    before = SettingsOut.model_validate(row).wire()

    changes = payload.model_dump(exclude_unset=True)
    for k, v in changes.items():
        if k in _TENANT_FIELDS:
            setattr(tenant, k, v)
        elif v is not None:
            setattr(row, k, v)
    row.updated_at = datetime.utcnow()
    db.add(row)
    db.add(tenant)

    emit_audit(
        db,
        principal=p,
        action="settings_updated",
        category="settings",
        entity_type="ContractorSettings",
        entity_id=row.id,
        before=before,
        after=SettingsOut.model_validate(row).wire(),
    )
    db.commit()
    db.refresh(row)
    db.refresh(tenant)
    return envelope(_payload(row, tenant), message="Settings updated successfully")


@router.put("/company")
def update_company(
    payload: CompanyInfoUpdate,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_admin),
):
    tenant = _get_tenant_or_404(db, p.tenant_id)
    before = CompanyOut.model_validate(tenant).wire()

    changes = payload.model_dump(exclude_unset=True)
    if "company_name" in changes and not (changes["company_name"] or "").strip():
        raise HTTPException(status_code=400, detail="Company name cannot be empty")
    for k, v in changes.items():
        setattr(tenant, k, v.strip() if isinstance(v, str) else v)
    db.add(tenant)

    emit_audit(
        db,
        principal=p,
        action="company_info_updated",
        category="settings",
        entity_type="Tenant",
        entity_id=tenant.id,
        before=before,
        after=CompanyOut.model_validate(tenant).wire(),
    )
    db.commit()
    db.refresh(tenant)
    return envelope(CompanyOut.model_validate(tenant).wire(), message="Company information updated successfully")
