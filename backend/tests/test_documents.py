# backend/tests/test_documents.py
from __future__ import annotations

from contractor_hub.models import Job


def test_generate_list_and_download(client, seeded, headers):
    job_id = seeded.job_ids["flat_rate"]

    r = client.get(f"/api/jobs/{job_id}/documents/work-order", headers=headers)
    assert r.status_code == 404

    r = client.post(f"/api/jobs/{job_id}/documents/generate", headers=headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    assert set(body["data"]["documents"]) == {"material-list", "paint-order", "work-order"}
    assert body["data"]["errors"] == []
    assert body["data"]["job"]["workOrderUrl"] == f"/api/jobs/{job_id}/documents/work-order"

    docs = client.get(f"/api/jobs/{job_id}/documents", headers=headers).json()["data"]
    assert [d["type"] for d in docs] == ["material-list", "paint-order", "work-order"]
    assert all(d["available"] for d in docs)

    r = client.get(f"/api/jobs/{job_id}/documents/work-order", headers=headers)
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert "attachment" in r.headers["content-disposition"]
    assert r.content.startswith(b"%PDF")


def test_area_job_documents_render(client, seeded, headers):
    job_id = seeded.job_ids["areas"]
    r = client.post(f"/api/jobs/{job_id}/documents/generate", headers=headers)
    assert r.status_code == 200, r.text
    assert len(r.json()["data"]["documents"]) == 3


def test_generation_requires_deposit(client, db, seeded, headers):
    job_id = seeded.job_ids["flat_rate"]
    job = db.get(Job, job_id)
    job.deposit_paid = False
    db.commit()

    r = client.post(f"/api/jobs/{job_id}/documents/generate", headers=headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Documents can only be generated after the deposit is paid"


def test_unknown_document_type(client, seeded, headers):
    r = client.get(f"/api/jobs/{seeded.job_ids['flat_rate']}/documents/invoice", headers=headers)
    assert r.status_code == 404


def test_documents_are_tenant_scoped(client, seeded, other_headers):
    r = client.get(f"/api/jobs/{seeded.job_ids['flat_rate']}/documents", headers=other_headers)
    assert r.status_code == 404
