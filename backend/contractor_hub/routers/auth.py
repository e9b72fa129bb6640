# backend/contractor_hub/routers/auth.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import Principal, current_user, get_principal
from ..db import get_db
from ..domain.audit import emit_audit
from ..schemas import ChangePasswordIn, ForgotPasswordIn, LoginIn, ResetPasswordIn, envelope
from ..services import auth_service
from ..services.auth_service import AuthError

log = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

FORGOT_PASSWORD_MESSAGE = "If an account exists with that email, a password reset link has been sent."


@router.post("/login")
def login(payload: LoginIn, db: Session = Depends(get_db)):
    try:
        out = auth_service.login(db, email=payload.email, password=payload.password)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))
    db.commit()
    return envelope(out, message="Login successful")


@router.post("/forgot-password")
def forgot_password(payload: ForgotPasswordIn, db: Session = Depends(get_db)):
    issued = auth_service.issue_password_reset(db, email=payload.email)
    if issued is not None:
        emit_audit(
            db,
            tenant_id=issued.tenant_id,
            actor_user_id=issued.user_id,
            action="password_reset_requested",
            category="auth",
            entity_type="AppUser",
            entity_id=issued.user_id,
            after={"expiresAt": issued.expires_at.isoformat()},
        )
        db.commit()
        # Delivery is handled by the mail pipeline; only the fact is logged here.
        log.info("password reset link issued", extra={"event": "password_reset_issued", "user_id": issued.user_id})
    return envelope(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password")
def reset_password(payload: ResetPasswordIn, db: Session = Depends(get_db)):
    try:
        user = auth_service.reset_password(db, token=payload.token, new_password=payload.new_password)
    except AuthError as e:
        raise HTTPException(status_code=400, detail=str(e))

    emit_audit(
        db,
        tenant_id=int(user.tenant_id),
        actor_user_id=int(user.id),
        action="password_reset",
        category="auth",
        entity_type="AppUser",
        entity_id=user.id,
    )
    db.commit()
    return envelope(message="Password has been reset successfully")


@router.post("/change-password")
def change_password(
    payload: ChangePasswordIn,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    user = current_user(db, p)
    try:
        auth_service.change_password(
            db, user, current_password=payload.current_password, new_password=payload.new_password
        )
    except AuthError as e:
        raise HTTPException(status_code=400, detail=str(e))

    emit_audit(db, principal=p, action="password_changed", category="auth", entity_type="AppUser", entity_id=user.id)
    db.commit()
    return envelope(message="Password changed successfully")


@router.post("/enable-2fa")
def enable_2fa(db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    user = current_user(db, p)
    try:
        out = auth_service.enable_two_factor(db, user)
    except AuthError as e:
        raise HTTPException(status_code=400, detail=str(e))

    emit_audit(db, principal=p, action="two_factor_enabled", category="auth", entity_type="AppUser", entity_id=user.id)
    db.commit()
    return envelope(out, message="Two-factor authentication enabled")


@router.post("/disable-2fa")
def disable_2fa(db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    user = current_user(db, p)
    try:
        auth_service.disable_two_factor(db, user)
    except AuthError as e:
        raise HTTPException(status_code=400, detail=str(e))

    emit_audit(db, principal=p, action="two_factor_disabled", category="auth", entity_type="AppUser", entity_id=user.id)
    db.commit()
    return envelope(message="Two-factor authentication disabled")


@router.get("/2fa-status")
def two_factor_status(db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    return envelope(auth_service.two_factor_status(current_user(db, p)))
