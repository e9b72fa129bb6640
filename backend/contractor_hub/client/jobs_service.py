# backend/contractor_hub/client/jobs_service.py
from __future__ import annotations

from datetime import date
from typing import Any, Optional

from ..domain import labels
from ..domain.progress import progress_key
from .api_client import ApiClient, Envelope


def _iso(d: Optional[date]) -> Optional[str]:
    return d.isoformat() if d is not None else None


class JobsService:
    """REST calls for /jobs. Mutations return the server's updated job."""

    def __init__(self, api: ApiClient):
        self.api = api

    # ---- reads ----
    def list(
        self,
        *,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
        sort_by: str = "createdAt",
        sort_order: str = "DESC",
        search: Optional[str] = None,
    ) -> dict[str, Any]:
        return self.api.get(
            "/jobs",
            {
                "status": status,
                "page": page,
                "limit": limit,
                "sortBy": sort_by,
                "sortOrder": sort_order,
                "search": search,
            },
        ).data

    def get(self, job_id: int) -> dict[str, Any]:
        return self.api.get(f"/jobs/{job_id}").data

    def stats(self) -> dict[str, int]:
        return self.api.get("/jobs/stats").data

    def calendar(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> list[dict[str, Any]]:
        return self.api.get("/jobs/calendar", {"startDate": _iso(start_date), "endDate": _iso(end_date)}).data

    # ---- mutations ----
    def update_schedule(
        self,
        job_id: int,
        *,
        scheduled_start_date: Optional[date] = None,
        scheduled_end_date: Optional[date] = None,
        estimated_duration: Optional[int] = None,
        assigned_crew_members: Optional[list] = None,
        crew_notes: Optional[str] = None,
    ) -> Envelope:
        body = {
            "scheduledStartDate": _iso(scheduled_start_date),
            "scheduledEndDate": _iso(scheduled_end_date),
            "estimatedDuration": estimated_duration,
            "assignedCrewMembers": assigned_crew_members,
            "crewNotes": crew_notes,
        }
        return self.api.patch(f"/jobs/{job_id}/schedule", {k: v for k, v in body.items() if v is not None})

    def update_status(self, job_id: int, status: str, *, notes: Optional[str] = None) -> Envelope:
        body: dict[str, Any] = {"status": status}
        if notes:
            body["notes"] = notes
        return self.api.patch(f"/jobs/{job_id}/status", body)

    def update_area_progress(
        self,
        job_id: int,
        status: str,
        *,
        item_key: Optional[str] = None,
        area_id: Optional[Any] = None,
    ) -> Envelope:
        # Raises ValueError unless exactly one non-empty identifier is given.
        progress_key(item_key, area_id)
        body: dict[str, Any] = {"status": status}
        if item_key is not None and str(item_key) != "":
            body["itemKey"] = item_key
        else:
            body["areaId"] = area_id
        return self.api.post(f"/jobs/{job_id}/area-progress", body)

    def approve_selections(self, job_id: int) -> Envelope:
        return self.api.patch(f"/jobs/{job_id}/approve-selections")

    def set_visibility(self, job_id: int, visible: bool) -> Envelope:
        return self.api.patch(f"/jobs/{job_id}/visibility", {"visible": bool(visible)})

    def record_lost_reason(self, job_id: int, reason: str, details: Optional[str] = None) -> Envelope:
        return self.api.post(f"/jobs/{job_id}/lost-reason", {"lostReason": reason, "lostReasonDetails": details})

    # ---- documents ----
    def list_documents(self, job_id: int) -> list[dict[str, Any]]:
        return self.api.get(f"/jobs/{job_id}/documents").data or []

    def download_document(self, job_id: int, document_type: str) -> bytes:
        return self.api.download(f"/jobs/{job_id}/documents/{document_type}")

    def generate_documents(self, job_id: int) -> Envelope:
        return self.api.post(f"/jobs/{job_id}/documents/generate")

    # ---- static lookups ----
    status_label = staticmethod(labels.job_status_label)
    status_color = staticmethod(labels.job_status_color)
    area_status_label = staticmethod(labels.area_status_label)
    area_status_color = staticmethod(labels.area_status_color)
    lost_reason_label = staticmethod(labels.lost_reason_label)
