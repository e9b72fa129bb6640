# backend/tests/test_jobs_api.py
from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy import select

from contractor_hub.models import AuditEvent, Job


def test_list_jobs_paginates_filters_and_searches(client, seeded, headers):
    r = client.get("/api/jobs", headers=headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    assert body["data"]["pagination"] == {"total": 3, "page": 1, "limit": 20, "totalPages": 1}
    assert {j["jobNumber"] for j in body["data"]["jobs"]} == {"J-1001", "J-1002", "J-1003"}

    r = client.get("/api/jobs", params={"status": "scheduled"}, headers=headers)
    assert [j["jobNumber"] for j in r.json()["data"]["jobs"]] == ["J-1002"]

    r = client.get("/api/jobs", params={"status": "all", "search": "1003"}, headers=headers)
    assert [j["jobNumber"] for j in r.json()["data"]["jobs"]] == ["J-1003"]

    r = client.get("/api/jobs", params={"limit": 2, "page": 2, "sortBy": "jobNumber", "sortOrder": "ASC"}, headers=headers)
    data = r.json()["data"]
    assert [j["jobNumber"] for j in data["jobs"]] == ["J-1003"]
    assert data["pagination"]["totalPages"] == 2


def test_unknown_sort_column_is_rejected(client, headers):
    r = client.get("/api/jobs", params={"sortBy": "password"}, headers=headers)
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Unsupported sortBy: password"}


def test_job_detail_includes_quote_client_and_progress(client, seeded, headers):
    r = client.get(f"/api/jobs/{seeded.job_ids['flat_rate']}", headers=headers)
    assert r.status_code == 200, r.text
    job = r.json()["data"]
    assert job["quote"]["pricingSchemeType"] == "flat_rate_unit"
    assert job["client"]["name"] == "Pat Homeowner"
    progress = job["progress"]
    assert [i["key"] for i in progress["items"]] == ["interior_doors", "exterior_windows"]
    assert [i["quantity"] for i in progress["items"]] == [3, 5]
    assert progress["progressPercent"] == 0
    assert progress["isEmpty"] is False


def test_jobs_are_tenant_scoped(client, seeded, other_headers):
    r = client.get(f"/api/jobs/{seeded.job_ids['flat_rate']}", headers=other_headers)
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Job not found"}

    r = client.post(
        f"/api/jobs/{seeded.job_ids['areas']}/area-progress",
        json={"areaId": 1, "status": "completed"},
        headers=other_headers,
    )
    assert r.status_code == 404


def test_missing_dev_headers_is_unauthorized(client):
    r = client.get("/api/jobs")
    assert r.status_code == 401
    assert r.json()["success"] is False


def test_stats_and_calendar(client, seeded, headers):
    stats = client.get("/api/jobs/stats", headers=headers).json()["data"]
    assert stats == {
        "total": 3,
        "depositPaid": 1,
        "scheduled": 1,
        "inProgress": 1,
        "completed": 0,
        "selectionsNeeded": 1,
    }

    events = client.get("/api/jobs/calendar", headers=headers).json()["data"]
    assert {e["jobNumber"] for e in events} == {"J-1002", "J-1003"}
    assert any(e["title"] == "J-1002 - Pat Homeowner" for e in events)


def test_area_progress_auto_completes_job(client, db, seeded, headers):
    job_id = seeded.job_ids["areas"]

    for area_id in (1, 2):
        r = client.post(f"/api/jobs/{job_id}/area-progress", json={"areaId": area_id, "status": "completed"}, headers=headers)
        assert r.status_code == 200, r.text
        assert r.json()["message"] == "Area progress updated successfully"
        assert r.json()["data"]["status"] == "in_progress"

    r = client.post(f"/api/jobs/{job_id}/area-progress", json={"areaId": 3, "status": "completed"}, headers=headers)
    body = r.json()
    assert body["message"] == "Area progress updated and job marked completed"
    assert body["data"]["status"] == "completed"
    assert body["data"]["actualEndDate"] is not None
    assert body["data"]["progress"]["progressPercent"] == 100
    assert body["data"]["areaProgress"]["3"]["status"] == "completed"

    actions = db.scalars(
        select(AuditEvent.action).where(AuditEvent.entity_type == "Job", AuditEvent.entity_id == str(job_id))
    ).all()
    assert actions.count("area_progress_updated") == 3


def test_area_progress_validates_payload(client, seeded, headers):
    job_id = seeded.job_ids["flat_rate"]
    r = client.post(
        f"/api/jobs/{job_id}/area-progress",
        json={"itemKey": "interior_doors", "areaId": 1, "status": "completed"},
        headers=headers,
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Provide exactly one of itemKey or areaId"

    r = client.post(f"/api/jobs/{job_id}/area-progress", json={"itemKey": "interior_doors", "status": "done"}, headers=headers)
    assert r.status_code == 400

    r = client.post(f"/api/jobs/{job_id}/area-progress", json={"itemKey": "interior_doors", "status": "prepped"}, headers=headers)
    assert r.status_code == 200
    items = r.json()["data"]["progress"]["items"]
    assert items[0]["status"] == "prepped"


def test_lost_reason_recorded_and_guarded(client, seeded, headers):
    turnkey = seeded.job_ids["turnkey"]
    r = client.post(f"/api/jobs/{turnkey}/lost-reason", json={"lostReason": "other", "lostReasonDetails": " "}, headers=headers)
    assert r.status_code == 400

    r = client.post(f"/api/jobs/{turnkey}/lost-reason", json={"lostReason": "budget_mismatch"}, headers=headers)
    assert r.status_code == 200, r.text
    job = r.json()["data"]
    assert (job["status"], job["lostReason"], job["lostReasonDetails"]) == ("canceled", "budget_mismatch", None)
    assert job["lostAt"] is not None

    # a second submission overwrites
    r = client.post(
        f"/api/jobs/{turnkey}/lost-reason",
        json={"lostReason": "other", "lostReasonDetails": "Moved away"},
        headers=headers,
    )
    assert r.json()["data"]["lostReasonDetails"] == "Moved away"

    r = client.post(f"/api/jobs/{seeded.job_ids['flat_rate']}/lost-reason", json={"lostReason": "timing_changed"}, headers=headers)
    assert r.status_code == 400
    assert "deposit_paid" in r.json()["message"]


def test_schedule_update_computes_duration_and_rejects_past(client, db, seeded, headers):
    job_id = seeded.job_ids["flat_rate"]
    start = date.today() + timedelta(days=3)
    end = start + timedelta(days=4)

    r = client.patch(
        f"/api/jobs/{job_id}/schedule",
        json={"scheduledStartDate": start.isoformat(), "scheduledEndDate": end.isoformat(), "crewNotes": "Bring ladders"},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    job = r.json()["data"]
    assert job["estimatedDuration"] == 5
    assert job["scheduledStartDate"] == start.isoformat()
    assert job["crewNotes"] == "Bring ladders"
    assert job["status"] == "deposit_paid"

    r = client.patch(
        f"/api/jobs/{job_id}/schedule",
        json={"scheduledStartDate": (date.today() - timedelta(days=1)).isoformat()},
        headers=headers,
    )
    assert r.status_code == 400
    assert "Start date cannot be in the past" in r.json()["message"]

    r = client.patch(
        f"/api/jobs/{job_id}/schedule",
        json={"scheduledEndDate": (start - timedelta(days=1)).isoformat()},
        headers=headers,
    )
    assert r.status_code == 400
    assert "End date must be on or after the start date" in r.json()["message"]


def test_start_only_reschedule_cannot_pass_stored_end(client, db, seeded, headers):
    job_id = seeded.job_ids["turnkey"]
    start = date.today() + timedelta(days=10)
    end = start + timedelta(days=4)
    r = client.patch(
        f"/api/jobs/{job_id}/schedule",
        json={"scheduledStartDate": start.isoformat(), "scheduledEndDate": end.isoformat()},
        headers=headers,
    )
    assert r.status_code == 200, r.text

    r = client.patch(
        f"/api/jobs/{job_id}/schedule",
        json={"scheduledStartDate": (end + timedelta(days=30)).isoformat()},
        headers=headers,
    )
    assert r.status_code == 400
    assert "End date must be on or after the start date" in r.json()["message"]

    job = db.get(Job, job_id)
    assert job.scheduled_start_date == start
    assert job.scheduled_end_date == end
    assert job.estimated_duration == 5

    # Moving the start within the stored window is fine.
    r = client.patch(
        f"/api/jobs/{job_id}/schedule",
        json={"scheduledStartDate": (start + timedelta(days=2)).isoformat()},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    assert r.json()["data"]["estimatedDuration"] == 3


def test_schedule_moves_selections_complete_to_scheduled(client, db, seeded, headers):
    job = db.get(Job, seeded.job_ids["flat_rate"])
    job.status = "selections_complete"
    db.commit()

    start = date.today() + timedelta(days=1)
    r = client.patch(f"/api/jobs/{job.id}/schedule", json={"scheduledStartDate": start.isoformat(), "estimatedDuration": 2}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["status"] == "scheduled"
    assert r.json()["data"]["estimatedDuration"] == 2


def test_status_update_follows_flow(client, seeded, headers):
    job_id = seeded.job_ids["turnkey"]
    r = client.patch(f"/api/jobs/{job_id}/status", json={"status": "completed"}, headers=headers)
    assert r.status_code == 400
    message = r.json()["message"]
    assert message.startswith('Cannot transition from "scheduled" to "completed"')
    assert "Allowed transitions: in_progress" in message

    r = client.patch(f"/api/jobs/{job_id}/status", json={"status": "in_progress"}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["status"] == "in_progress"
    assert r.json()["data"]["actualStartDate"] is not None


def test_unchanged_status_is_a_no_op(client, db, seeded, headers):
    job = db.get(Job, seeded.job_ids["turnkey"])
    r = client.patch(f"/api/jobs/{job.id}/status", json={"status": "scheduled"}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["status"] == "scheduled"

    actions = db.scalars(
        select(AuditEvent.action).where(
            AuditEvent.tenant_id == job.tenant_id,
            AuditEvent.entity_type == "Job",
            AuditEvent.entity_id == str(job.id),
        )
    ).all()
    assert actions == []


def test_visibility_and_selection_approval(client, seeded, headers):
    job_id = seeded.job_ids["flat_rate"]
    r = client.patch(f"/api/jobs/{job_id}/visibility", json={"visible": True}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["quote"]["portalOpen"] is True

    r = client.patch(f"/api/jobs/{job_id}/visibility", json={"visible": False}, headers=headers)
    quote = r.json()["data"]["quote"]
    assert quote["portalOpen"] is False
    assert quote["portalClosedAt"] is not None

    r = client.patch(f"/api/jobs/{job_id}/approve-selections", headers=headers)
    assert r.status_code == 200
    assert "[Selections Approved by" in r.json()["data"]["contractorNotes"]
