# backend/contractor_hub/routers/pricing_schemes.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import asc, desc, select, update
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal, require_admin
from ..db import get_db
from ..domain.audit import emit_audit
from ..models import PricingScheme
from ..schemas import PricingSchemeCreate, PricingSchemeOut, PricingSchemeUpdate, envelope

router = APIRouter(prefix="/pricing-schemes", tags=["pricing-schemes"])

PRICING_SCHEME_TYPES: tuple[str, ...] = (
    "turnkey",
    "rate_based_sqft",
    "production_based",
    "flat_rate_unit",
    "sqft_turnkey",
    "sqft_labor_paint",
    "hourly_time_materials",
    "unit_pricing",
    "room_flat_rate",
)


def _get_scheme_or_404(db: Session, *, tenant_id: int, scheme_id: int) -> PricingScheme:
    row = db.scalar(select(PricingScheme).where(PricingScheme.id == scheme_id, PricingScheme.tenant_id == tenant_id))
    if not row:
        raise HTTPException(status_code=404, detail="Pricing scheme not found")
    return row


def _check_type(scheme_type: str) -> str:
    if scheme_type not in PRICING_SCHEME_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid pricing scheme type: {scheme_type}. Valid types: {', '.join(PRICING_SCHEME_TYPES)}",
        )
    return scheme_type


def _clear_default(db: Session, tenant_id: int, *, keep_id: Optional[int] = None) -> None:
    stmt = update(PricingScheme).where(PricingScheme.tenant_id == tenant_id, PricingScheme.is_default.is_(True))
    if keep_id is not None:
        stmt = stmt.where(PricingScheme.id != keep_id)
    db.execute(stmt.values(is_default=False))


@router.get("")
def list_schemes(
    is_active: Optional[bool] = Query(default=None, alias="isActive"),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    q = select(PricingScheme).where(PricingScheme.tenant_id == p.tenant_id)
    if is_active is not None:
        q = q.where(PricingScheme.is_active.is_(is_active))
    rows = db.scalars(q.order_by(desc(PricingScheme.is_default), asc(PricingScheme.name))).all()
    return envelope([PricingSchemeOut.model_validate(r).wire() for r in rows])


@router.get("/{scheme_id}")
def get_scheme(scheme_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    row = _get_scheme_or_404(db, tenant_id=p.tenant_id, scheme_id=scheme_id)
    return envelope(PricingSchemeOut.model_validate(row).wire())


@router.post("", status_code=201)
def create_scheme(
    payload: PricingSchemeCreate,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_admin),
):
    _check_type(payload.type)
    if payload.is_default:
        _clear_default(db, p.tenant_id)

    now = datetime.utcnow()
    row = PricingScheme(
        tenant_id=p.tenant_id,
        name=payload.name.strip(),
        type=payload.type,
        description=payload.description,
        pricing_rules=dict(payload.pricing_rules or {}),
        is_default=bool(payload.is_default),
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    db.add(row)
    db.flush()

    emit_audit(
        db,
        principal=p,
        action="pricing_scheme_created",
        category="settings",
        entity_type="PricingScheme",
        entity_id=row.id,
        after={"name": row.name, "type": row.type, "isDefault": row.is_default},
    )
    db.commit()
    db.refresh(row)
    return envelope(PricingSchemeOut.model_validate(row).wire(), message="Pricing scheme created successfully")


@router.put("/{scheme_id}")
def update_scheme(
    scheme_id: int,
    payload: PricingSchemeUpdate,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_admin),
):
    row = _get_scheme_or_404(db, tenant_id=p.tenant_id, scheme_id=scheme_id)
    before = PricingSchemeOut.model_validate(row).wire()

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("type") is not None:
        _check_type(changes["type"])
    if changes.get("is_default"):
        _clear_default(db, p.tenant_id, keep_id=row.id)

    for k, v in changes.items():
        if v is None:
            continue
        setattr(row, k, v.strip() if k == "name" else v)
    row.updated_at = datetime.utcnow()
    db.add(row)

    emit_audit(
        db,
        principal=p,
        action="pricing_scheme_updated",
        category="settings",
        entity_type="PricingScheme",
        entity_id=row.id,
        before=before,
        after=PricingSchemeOut.model_validate(row).wire(),
    )
    db.commit()
    db.refresh(row)
    return envelope(PricingSchemeOut.model_validate(row).wire(), message="Pricing scheme updated successfully")


@router.delete("/{scheme_id}")
def delete_scheme(scheme_id: int, db: Session = Depends(get_db), p: Principal = Depends(require_admin)):
    row = _get_scheme_or_404(db, tenant_id=p.tenant_id, scheme_id=scheme_id)
    if row.is_default:
        raise HTTPException(
            status_code=400,
            detail="Cannot delete the default pricing scheme. Set another scheme as default first.",
        )

    emit_audit(
        db,
        principal=p,
        action="pricing_scheme_deleted",
        category="settings",
        entity_type="PricingScheme",
        entity_id=row.id,
        before={"name": row.name, "type": row.type},
    )
    db.delete(row)
    db.commit()
    return envelope(message="Pricing scheme deleted successfully")


@router.put("/{scheme_id}/set-default")
def set_default(scheme_id: int, db: Session = Depends(get_db), p: Principal = Depends(require_admin)):
    row = _get_scheme_or_404(db, tenant_id=p.tenant_id, scheme_id=scheme_id)
    _clear_default(db, p.tenant_id, keep_id=row.id)
    row.is_default = True
    row.is_active = True
    row.updated_at = datetime.utcnow()
    db.add(row)

    emit_audit(
        db,
        principal=p,
        action="pricing_scheme_set_default",
        category="settings",
        entity_type="PricingScheme",
        entity_id=row.id,
        after={"name": row.name},
    )
    db.commit()
    db.refresh(row)
    return envelope(PricingSchemeOut.model_validate(row).wire(), message="Default pricing scheme updated")
