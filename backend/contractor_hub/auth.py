# backend/contractor_hub/auth.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import settings
from .db import get_db
from .models import AppUser, Tenant
from .services.auth_service import AuthError, decode_access_token


@dataclass(frozen=True)
class Principal:
    tenant_id: int
    tenant_slug: str
    user_id: int
    email: str
    role: str  # contractor_admin | admin | staff
    name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.email


ROLE_ORDER = {"staff": 1, "admin": 2, "contractor_admin": 3}


def _require_role(principal: Principal, min_role: str) -> None:
    if ROLE_ORDER.get(principal.role, 0) < ROLE_ORDER.get(min_role, 999):
        raise HTTPException(status_code=403, detail=f"Requires role >= {min_role}")


def _principal(tenant: Tenant, user: AppUser) -> Principal:
    return Principal(
        tenant_id=int(tenant.id),
        tenant_slug=str(tenant.slug),
        user_id=int(user.id),
        email=str(user.email),
        role=str(user.role),
        name=user.full_name,
    )


def _dev_principal(request: Request, db: Session) -> Principal:
    slug = (request.headers.get(settings.dev_header_tenant_slug) or "").strip()
    email = (request.headers.get(settings.dev_header_user_email) or "").strip().lower()
    role_hint = (request.headers.get(settings.dev_header_user_role) or "contractor_admin").strip().lower()
    if not slug or not email:
        raise HTTPException(
            status_code=401,
            detail=f"Missing {settings.dev_header_tenant_slug} / {settings.dev_header_user_email} for dev auth",
        )

    tenant = db.scalar(select(Tenant).where(Tenant.slug == slug))
    if tenant is None and settings.dev_auto_provision:
        tenant = Tenant(slug=slug, company_name=slug, created_at=datetime.utcnow())
        db.add(tenant)
        db.commit()
        db.refresh(tenant)

    user = db.scalar(select(AppUser).where(AppUser.email == email))
    if user is None and settings.dev_auto_provision and tenant is not None:
        user = AppUser(
            tenant_id=int(tenant.id),
            email=email,
            full_name=email.split("@")[0],
            role=role_hint if role_hint in ROLE_ORDER else "contractor_admin",
            created_at=datetime.utcnow(),
        )
        db.add(user)
        db.commit()
        db.refresh(user)

    if tenant is None or user is None:
        raise HTTPException(status_code=401, detail="Dev auth could not provision user/tenant")
    if int(user.tenant_id) != int(tenant.id):
        raise HTTPException(status_code=403, detail="User does not belong to this tenant")

    return _principal(tenant, user)


def get_principal(
    request: Request,
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> Principal:
    """
    Auth modes, in priority order:
      1) Authorization: Bearer <jwt>
      2) dev header spoofing (ONLY if settings.auth_mode == "dev")
    """
    token = None
    if authorization and str(authorization).lower().startswith("bearer "):
        token = str(authorization).split(" ", 1)[1].strip()

    if token:
        try:
            claims = decode_access_token(token)
        except AuthError as e:
            raise HTTPException(status_code=401, detail=str(e))

        sub = str(claims.get("sub") or "")
        if not sub.isdigit():
            raise HTTPException(status_code=401, detail="Token missing sub")

        user = db.get(AppUser, int(sub))
        if user is None:
            raise HTTPException(status_code=401, detail="Unknown user")
        tenant = db.get(Tenant, int(user.tenant_id))
        if tenant is None:
            raise HTTPException(status_code=401, detail="Unknown tenant")
        return _principal(tenant, user)

    if settings.auth_mode == "dev":
        return _dev_principal(request, db)

    raise HTTPException(status_code=401, detail="Not authenticated")


def require_admin(p: Principal = Depends(get_principal)) -> Principal:
    _require_role(p, "admin")
    return p


def current_user(db: Session, p: Principal) -> AppUser:
    user = db.get(AppUser, int(p.user_id))
    if user is None:
        raise HTTPException(status_code=401, detail="Unknown user")
    return user
