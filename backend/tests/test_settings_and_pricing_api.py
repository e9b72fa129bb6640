# backend/tests/test_settings_and_pricing_api.py
from __future__ import annotations

from contractor_hub.routers import settings as settings_router


def test_get_settings_creates_defaults(client, seeded, headers):
    r = client.get("/api/settings", headers=headers)
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["businessHours"] == "Monday-Friday: 8:00 AM - 6:00 PM"
    assert data["depositPercentage"] == 50.0
    assert data["portalLinkExpiryDays"] == 7
    assert data["company"]["slug"] == seeded.tenant_slug

    again = client.get("/api/settings", headers=headers).json()["data"]
    assert again["id"] == data["id"]


def test_update_settings_and_email_template(client, headers):
    r = client.put(
        "/api/settings",
        json={"depositPercentage": 40, "portalAutoLock": False, "defaultEmailSubject": "Your painting quote"},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["message"] == "Settings updated successfully"
    assert body["data"]["depositPercentage"] == 40
    assert body["data"]["portalAutoLock"] is False
    assert body["data"]["company"]["defaultEmailSubject"] == "Your painting quote"


def test_update_settings_validates_ranges(client, headers):
    r = client.put("/api/settings", json={"taxRatePercentage": 150}, headers=headers)
    assert r.status_code == 422
    assert r.json()["success"] is False


def test_update_company_info(client, headers):
    r = client.put("/api/settings/company", json={"companyName": "Brush & Roller", "phoneNumber": "555-0199"}, headers=headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["message"] == "Company information updated successfully"
    assert body["data"]["companyName"] == "Brush & Roller"

    r = client.put("/api/settings/company", json={"companyName": "  "}, headers=headers)
    assert r.status_code == 400


def test_pricing_scheme_default_handling(client, headers):
    schemes = client.get("/api/pricing-schemes", headers=headers).json()["data"]
    assert len(schemes) == 1
    original = schemes[0]
    assert original["isDefault"] is True

    r = client.post(
        "/api/pricing-schemes",
        json={"name": "Flat Rate", "type": "flat_rate_unit", "pricingRules": {"doors": {"price": 85, "unit": "door"}}, "isDefault": True},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    created = r.json()["data"]

    schemes = client.get("/api/pricing-schemes", headers=headers).json()["data"]
    assert [s["id"] for s in schemes if s["isDefault"]] == [created["id"]]
    assert schemes[0]["id"] == created["id"]

    r = client.delete(f"/api/pricing-schemes/{created['id']}", headers=headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Cannot delete the default pricing scheme. Set another scheme as default first."

    r = client.put(f"/api/pricing-schemes/{original['id']}/set-default", headers=headers)
    assert r.status_code == 200
    assert r.json()["data"]["isDefault"] is True

    r = client.delete(f"/api/pricing-schemes/{created['id']}", headers=headers)
    assert r.status_code == 200
    assert client.get(f"/api/pricing-schemes/{created['id']}", headers=headers).status_code == 404


def test_pricing_scheme_update_and_type_validation(client, headers):
    r = client.post("/api/pricing-schemes", json={"name": "Bad", "type": "per_vibe"}, headers=headers)
    assert r.status_code == 400
    assert "Invalid pricing scheme type" in r.json()["message"]

    r = client.post("/api/pricing-schemes", json={"name": "Hourly", "type": "hourly_time_materials"}, headers=headers)
    scheme_id = r.json()["data"]["id"]

    r = client.put(f"/api/pricing-schemes/{scheme_id}", json={"isActive": False, "description": "Legacy"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["data"]["isActive"] is False

    active = client.get("/api/pricing-schemes", params={"isActive": "true"}, headers=headers).json()["data"]
    assert scheme_id not in [s["id"] for s in active]


def test_pricing_schemes_are_tenant_scoped(client, seeded, headers, other_headers):
    mine = client.get("/api/pricing-schemes", headers=headers).json()["data"][0]
    r = client.put(f"/api/pricing-schemes/{mine['id']}", json={"name": "Hijack"}, headers=other_headers)
    assert r.status_code == 404


def test_concurrent_first_read_reuses_existing_row(client, db, seeded, headers, monkeypatch):
    existing = client.get("/api/settings", headers=headers).json()["data"]
    tenant_id = existing["company"]["id"]

    real_select = settings_router._select_settings
    calls = []

    def stale_then_real(session, tid):
        # The first lookup misses, as if another request had not committed yet.
        calls.append(tid)
        return None if len(calls) == 1 else real_select(session, tid)

    monkeypatch.setattr(settings_router, "_select_settings", stale_then_real)
    row = settings_router._get_or_create_settings(db, tenant_id)

    assert row.id == existing["id"]
    assert calls == [tenant_id, tenant_id]
