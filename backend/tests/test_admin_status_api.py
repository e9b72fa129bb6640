# backend/tests/test_admin_status_api.py
from __future__ import annotations

from sqlalchemy import select

from contractor_hub.clients.stripe import PaymentIntent
from contractor_hub.models import AuditEvent, Job, Quote
from contractor_hub.routers import admin_status


def _make_accepted(db, seeded, key: str = "turnkey") -> int:
    quote = db.get(Quote, seeded.quote_ids[key])
    quote.status = "accepted"
    quote.deposit_verified = False
    for job in quote.jobs:
        job.status = "accepted"
        job.deposit_paid = False
    db.commit()
    return int(quote.id)


def test_mark_deposit_paid_moves_quote_and_jobs(client, db, seeded, headers):
    quote_id = _make_accepted(db, seeded)

    r = client.post(
        f"/api/admin/status/quotes/{quote_id}/mark-deposit-paid",
        json={"paymentMethod": "check", "notes": "Check #1043"},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    quote = r.json()["data"]
    assert quote["status"] == "deposit_paid"
    assert quote["depositVerified"] is True
    assert quote["depositPaymentMethod"] == "check"
    assert [j["status"] for j in quote["jobs"]] == ["deposit_paid"]
    assert quote["jobs"][0]["depositPaid"] is True

    r = client.post(f"/api/admin/status/quotes/{quote_id}/mark-deposit-paid", json={}, headers=headers)
    assert r.status_code == 400
    assert 'must be in "accepted" status' in r.json()["message"]


def test_reopen_only_declined_quotes(client, db, seeded, headers):
    quote = db.get(Quote, seeded.quote_ids["flat_rate"])
    r = client.post(f"/api/admin/status/quotes/{quote.id}/reopen", json={}, headers=headers)
    assert r.status_code == 400

    quote.status = "declined"
    db.commit()
    r = client.post(f"/api/admin/status/quotes/{quote.id}/reopen", json={"reason": "Customer called back"}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["status"] == "sent"

    actions = db.scalars(
        select(AuditEvent.action).where(AuditEvent.entity_type == "Quote", AuditEvent.entity_id == str(quote.id))
    ).all()
    assert "quote_reopened" in actions


def test_admin_job_status_accepts_manual_statuses_only(client, seeded, headers):
    job_id = seeded.job_ids["turnkey"]
    r = client.patch(f"/api/admin/status/jobs/{job_id}/status", json={"status": "paused"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Status paused is not a manual status. Use the appropriate endpoint."

    r = client.patch(f"/api/admin/status/jobs/{job_id}/status", json={"status": "in_progress"}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["status"] == "in_progress"

    r = client.patch(
        f"/api/admin/status/jobs/{seeded.job_ids['areas']}/status", json={"status": "scheduled"}, headers=headers
    )
    assert r.status_code == 400


def test_override_requires_confirmation_and_reason(client, db, seeded, headers):
    job_id = seeded.job_ids["areas"]
    url = f"/api/admin/status/jobs/{job_id}/override-status"

    r = client.post(url, json={"status": "scheduled", "reason": "Rain delay"}, headers=headers)
    assert r.json()["message"] == "Override confirmation required. Set confirmOverride: true"

    r = client.post(url, json={"status": "scheduled", "confirmOverride": True}, headers=headers)
    assert r.json()["message"] == "Reason required for status override"

    r = client.post(url, json={"status": "scheduled", "reason": "Rain delay", "confirmOverride": True}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["status"] == "scheduled"

    row = db.scalars(
        select(AuditEvent).where(
            AuditEvent.entity_id == str(job_id), AuditEvent.action == "job_status_overridden"
        )
    ).one()
    assert "Rain delay" in row.after_json


def test_staff_cannot_use_admin_endpoints(client, seeded):
    staff = {
        "X-Tenant-Slug": seeded.tenant_slug,
        "X-User-Email": f"crew-{seeded.tenant_slug}@example.com",
        "X-User-Role": "staff",
    }
    r = client.patch(f"/api/admin/status/jobs/{seeded.job_ids['turnkey']}/status", json={"status": "in_progress"}, headers=staff)
    assert r.status_code == 403


def test_sync_payment_without_intent_reports_current_state(client, seeded, headers):
    r = client.post(f"/api/admin/status/quotes/{seeded.quote_ids['flat_rate']}/sync-payment", json={}, headers=headers)
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Current payment status retrieved"
    assert body["data"]["status"] == "deposit_paid"


def test_sync_payment_marks_paid_when_intent_succeeded(client, db, seeded, headers, monkeypatch):
    quote_id = _make_accepted(db, seeded)
    monkeypatch.setattr(
        admin_status.StripeClient,
        "retrieve_payment_intent",
        lambda self, pid: PaymentIntent(pid, "succeeded", 460000, "usd", {}),
    )

    r = client.post(f"/api/admin/status/quotes/{quote_id}/sync-payment", json={"paymentIntentId": "pi_123"}, headers=headers)
    assert r.status_code == 200, r.text
    quote = r.json()["data"]
    assert quote["status"] == "deposit_paid"
    assert quote["depositTransactionId"] == "pi_123"
    assert quote["depositPaymentMethod"] == "stripe"

    db.expire_all()
    job = db.get(Job, seeded.job_ids["turnkey"])
    assert job.status == "deposit_paid"


def test_sync_payment_rejects_unsettled_or_unreachable_intent(client, db, seeded, headers, monkeypatch):
    quote_id = _make_accepted(db, seeded)

    monkeypatch.setattr(
        admin_status.StripeClient,
        "retrieve_payment_intent",
        lambda self, pid: PaymentIntent(pid, "processing", 460000, "usd", {}),
    )
    r = client.post(f"/api/admin/status/quotes/{quote_id}/sync-payment", json={"paymentIntentId": "pi_1"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Payment intent status: processing. Cannot mark as paid."

    monkeypatch.setattr(
        admin_status.StripeClient,
        "retrieve_payment_intent",
        lambda self, pid: PaymentIntent(pid, None, None, None, {"error": "boom"}),
    )
    r = client.post(f"/api/admin/status/quotes/{quote_id}/sync-payment", json={"paymentIntentId": "pi_1"}, headers=headers)
    assert r.status_code == 502
