# backend/contractor_hub/services/auth_service.py
from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional
from urllib.parse import quote

import jwt  # PyJWT

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import settings
from ..models import AppUser, Tenant

log = logging.getLogger(__name__)


class AuthError(ValueError):
    pass


def _now() -> datetime:
    return datetime.utcnow()


# -------------------------
# Passwords (PBKDF2-HMAC-SHA256)
# -------------------------
def hash_password(password: str) -> str:
    salt = secrets.token_bytes(16)
    iters = int(settings.pbkdf2_iterations)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iters)
    return f"pbkdf2_sha256${iters}${base64.b64encode(salt).decode()}${base64.b64encode(dk).decode()}"


def verify_password(password: str, stored: Optional[str]) -> bool:
    if not stored:
        return False
    try:
        algo, iters_s, salt_b64, dk_b64 = stored.split("$", 3)
    except ValueError:
        return False
    if algo != "pbkdf2_sha256":
        return False
    salt = base64.b64decode(salt_b64.encode())
    dk = base64.b64decode(dk_b64.encode())
    test = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, int(iters_s))
    return hmac.compare_digest(test, dk)


def validate_new_password(password: str) -> None:
    if len(password or "") < 8:
        raise AuthError("Password must be at least 8 characters")


# -------------------------
# JWT
# -------------------------
def create_access_token(*, user_id: int, tenant_slug: str, role: str, minutes: Optional[int] = None) -> str:
    now = _now()
    exp_minutes = int(minutes if minutes is not None else settings.jwt_exp_minutes)
    payload: dict[str, Any] = {
        "sub": str(int(user_id)),
        "tenant": tenant_slug,
        "role": str(role),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=exp_minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def decode_access_token(token: str) -> dict[str, Any]:
    """Raises AuthError for expired or tampered tokens."""
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=["HS256"])
    except jwt.ExpiredSignatureError as e:
        raise AuthError("Token expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthError("Invalid token") from e


def login(db: Session, *, email: str, password: str) -> dict[str, Any]:
    email = (email or "").strip().lower()
    user = db.scalar(select(AppUser).where(AppUser.email == email))
    if user is None or not verify_password(password or "", user.password_hash):
        raise AuthError("Invalid credentials")

    tenant = db.get(Tenant, int(user.tenant_id))
    if tenant is None:
        raise AuthError("Invalid credentials")

    user.last_login_at = _now()
    db.add(user)

    token = create_access_token(user_id=int(user.id), tenant_slug=str(tenant.slug), role=str(user.role))
    return {
        "token": token,
        "user": {"id": int(user.id), "email": user.email, "fullName": user.full_name, "role": user.role},
        "tenant": {"id": int(tenant.id), "slug": tenant.slug, "companyName": tenant.company_name},
        "requiresTwoFactor": bool(user.two_factor_enabled),
    }


# -------------------------
# Password reset
# -------------------------
def _hash_token(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class ResetIssued:
    user_id: int
    tenant_id: int
    raw_token: str
    expires_at: datetime

    @property
    def reset_url(self) -> str:
        return f"{settings.frontend_base_url.rstrip('/')}/reset-password?token={self.raw_token}"


def issue_password_reset(db: Session, *, email: str) -> Optional[ResetIssued]:
    """
    Store a hashed, short-lived reset token for the user, if one exists.

    Returns None for unknown emails; callers must answer identically either
    way so the endpoint cannot be used to enumerate accounts.
    """
    email = (email or "").strip().lower()
    user = db.scalar(select(AppUser).where(AppUser.email == email))
    if user is None:
        log.info("password reset requested for unknown email")
        return None

    raw = secrets.token_hex(32)
    expires_at = _now() + timedelta(minutes=int(settings.password_reset_expiry_minutes))
    user.password_reset_token_hash = _hash_token(raw)
    user.password_reset_expires_at = expires_at
    db.add(user)
    db.flush()

    log.info("password reset issued", extra={"user_id": int(user.id), "tenant_id": int(user.tenant_id)})
    return ResetIssued(user_id=int(user.id), tenant_id=int(user.tenant_id), raw_token=raw, expires_at=expires_at)


def reset_password(db: Session, *, token: str, new_password: str) -> AppUser:
    validate_new_password(new_password)
    user = db.scalar(select(AppUser).where(AppUser.password_reset_token_hash == _hash_token(token or "")))
    if user is None or user.password_reset_expires_at is None or user.password_reset_expires_at < _now():
        raise AuthError("Invalid or expired reset token")

    user.password_hash = hash_password(new_password)
    user.password_reset_token_hash = None
    user.password_reset_expires_at = None
    db.add(user)
    db.flush()
    return user


def change_password(db: Session, user: AppUser, *, current_password: str, new_password: str) -> None:
    if not verify_password(current_password or "", user.password_hash):
        raise AuthError("Current password is incorrect")
    validate_new_password(new_password)
    if current_password == new_password:
        raise AuthError("New password must be different from the current password")

    user.password_hash = hash_password(new_password)
    db.add(user)
    db.flush()


# -------------------------
# Two-factor (TOTP secret provisioning)
# -------------------------
def generate_totp_secret() -> str:
    # 20 random bytes -> 32 base32 chars, the usual authenticator-app size
    return base64.b32encode(secrets.token_bytes(20)).decode("ascii").rstrip("=")


def otpauth_url(secret: str, account: str) -> str:
    issuer = settings.two_factor_issuer
    label = quote(f"{issuer}:{account}")
    return f"otpauth://totp/{label}?secret={secret}&issuer={quote(issuer)}"


def enable_two_factor(db: Session, user: AppUser) -> dict[str, str]:
    if user.two_factor_enabled:
        raise AuthError("Two-factor authentication is already enabled")

    secret = generate_totp_secret()
    user.two_factor_secret = secret
    user.two_factor_enabled = True
    db.add(user)
    db.flush()
    return {"secret": secret, "otpauthUrl": otpauth_url(secret, user.email)}


def disable_two_factor(db: Session, user: AppUser) -> None:
    if not user.two_factor_enabled:
        raise AuthError("Two-factor authentication is not enabled")

    user.two_factor_enabled = False
    user.two_factor_secret = None
    db.add(user)
    db.flush()


def two_factor_status(user: AppUser) -> dict[str, bool]:
    return {
        "twoFactorEnabled": bool(user.two_factor_enabled),
        "hasTwoFactorSecret": bool(user.two_factor_secret),
    }
