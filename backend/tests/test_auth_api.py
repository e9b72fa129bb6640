# backend/tests/test_auth_api.py
from __future__ import annotations

from contractor_hub.routers.auth import FORGOT_PASSWORD_MESSAGE
from contractor_hub.services.auth_service import hash_password, issue_password_reset, verify_password


def _login(client, email: str, password: str):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_password_hash_roundtrip():
    stored = hash_password("correct horse")
    assert stored.startswith("pbkdf2_sha256$")
    assert verify_password("correct horse", stored)
    assert not verify_password("wrong", stored)


def test_login_issues_bearer_token(client, seeded):
    r = _login(client, seeded.user_email, "demo-password")
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["tenant"]["slug"] == seeded.tenant_slug
    assert data["requiresTwoFactor"] is False

    r = client.get("/api/jobs/stats", headers=_bearer(data["token"]))
    assert r.status_code == 200
    assert r.json()["data"]["total"] == 3

    assert _login(client, seeded.user_email, "nope").status_code == 401


def test_forgot_password_does_not_reveal_accounts(client, seeded):
    known = client.post("/api/auth/forgot-password", json={"email": seeded.user_email}).json()
    unknown = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"}).json()
    assert known == unknown == {"success": True, "message": FORGOT_PASSWORD_MESSAGE}


def test_reset_password_with_issued_token(client, db, seeded):
    issued = issue_password_reset(db, email=seeded.user_email)
    db.commit()
    assert issued.reset_url.endswith(issued.raw_token)

    r = client.post("/api/auth/reset-password", json={"token": issued.raw_token, "newPassword": "fresh-password-1"})
    assert r.status_code == 200, r.text
    assert _login(client, seeded.user_email, "fresh-password-1").status_code == 200

    r = client.post("/api/auth/reset-password", json={"token": issued.raw_token, "newPassword": "another-one-2"})
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid or expired reset token"


def test_change_password(client, seeded, headers):
    r = client.post(
        "/api/auth/change-password",
        json={"currentPassword": "wrong", "newPassword": "whatever-123"},
        headers=headers,
    )
    assert r.status_code == 400

    r = client.post(
        "/api/auth/change-password",
        json={"currentPassword": "demo-password", "newPassword": "demo-password"},
        headers=headers,
    )
    assert r.status_code == 400

    r = client.post(
        "/api/auth/change-password",
        json={"currentPassword": "demo-password", "newPassword": "short"},
        headers=headers,
    )
    assert r.status_code == 400

    r = client.post(
        "/api/auth/change-password",
        json={"currentPassword": "demo-password", "newPassword": "better-password-9"},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    assert _login(client, seeded.user_email, "better-password-9").status_code == 200


def test_two_factor_enable_disable_cycle(client, headers):
    assert client.get("/api/auth/2fa-status", headers=headers).json()["data"]["twoFactorEnabled"] is False

    r = client.post("/api/auth/enable-2fa", headers=headers)
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert len(data["secret"]) == 32
    assert data["otpauthUrl"].startswith("otpauth://totp/")

    assert client.post("/api/auth/enable-2fa", headers=headers).status_code == 400
    assert client.get("/api/auth/2fa-status", headers=headers).json()["data"]["twoFactorEnabled"] is True

    assert client.post("/api/auth/disable-2fa", headers=headers).status_code == 200
    assert client.post("/api/auth/disable-2fa", headers=headers).status_code == 400


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["ok"] is True
    assert r.headers["X-Request-ID"]
