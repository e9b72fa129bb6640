# backend/contractor_hub/client/job_session.py
"""
Per-job state container for the contractor dashboard.

A mutation runs in two phases: the expected fields are applied to the local
job view as provisional state, then the server's updated job replaces the
view on success. On ApiError only the provisional fields are restored, so a
concurrent action on other fields keeps its result.

Each action name carries its own busy flag. Starting an action that is
already in flight raises ActionInFlight; different actions may run side by
side.
"""
from __future__ import annotations

import copy
import logging
import threading
from contextlib import contextmanager
from datetime import date
from typing import Any, Callable, Iterator, Optional

from ..domain.job_status import status_options
from ..domain.lost_reason import validate_lost_reason
from ..domain.progress import ProgressSummary, derive_progress_items, progress_key
from ..domain.scheduling import ensure_valid_schedule, resolve_duration
from .api_client import ApiError, Envelope
from .jobs_service import JobsService

log = logging.getLogger(__name__)

_MISSING = object()


class ActionInFlight(RuntimeError):
    def __init__(self, action: str):
        super().__init__(f"{action} is already in progress")
        self.action = action


class JobSession:
    def __init__(self, jobs: JobsService, job_id: int, *, today: Optional[date] = None):
        self.jobs = jobs
        self.job_id = int(job_id)
        self.job: Optional[dict[str, Any]] = None
        self.documents: list[dict[str, Any]] = []
        self.last_message: Optional[str] = None
        self._today = today
        self._busy: set[str] = set()
        self._lock = threading.Lock()

    # ---- busy flags ----
    def is_busy(self, action: str) -> bool:
        with self._lock:
            return action in self._busy

    @contextmanager
    def _action(self, action: str) -> Iterator[None]:
        with self._lock:
            if action in self._busy:
                raise ActionInFlight(action)
            self._busy.add(action)
        try:
            yield
        finally:
            with self._lock:
                self._busy.discard(action)

    # ---- reads ----
    def load(self) -> dict[str, Any]:
        with self._action("load"):
            self.job = self.jobs.get(self.job_id)
        return self.job

    def load_documents(self) -> list[dict[str, Any]]:
        """Document list, or [] when it cannot be fetched."""
        try:
            self.documents = self.jobs.list_documents(self.job_id)
        except ApiError as e:
            log.info("documents unavailable for job %s: %s", self.job_id, e.message, extra={"job_id": self.job_id})
            self.documents = []
        return self.documents

    def progress(self) -> ProgressSummary:
        return derive_progress_items(self.job or {})

    def status_options(self) -> list[str]:
        return status_options(self.job.get("status") if self.job else None)

    # ---- two-phase mutation ----
    def _mutate(self, action: str, provisional: dict[str, Any], call: Callable[[], Envelope]) -> Envelope:
        with self._action(action):
            view = self.job if self.job is not None else {}
            saved = {k: copy.deepcopy(view.get(k, _MISSING)) for k in provisional}
            self.job = {**view, **provisional}
            try:
                env = call()
            except ApiError:
                restored = dict(self.job)
                for k, v in saved.items():
                    if v is _MISSING:
                        restored.pop(k, None)
                    else:
                        restored[k] = v
                self.job = restored
                raise
            self._adopt(env.data)
            self.last_message = env.message
            return env

    def _adopt(self, data: Any) -> None:
        if isinstance(data, dict) and "job" in data and isinstance(data["job"], dict):
            data = data["job"]
        if isinstance(data, dict) and data.get("id") == self.job_id:
            self.job = data

    # ---- mutations ----
    def update_schedule(
        self,
        scheduled_start_date: date,
        scheduled_end_date: Optional[date] = None,
        *,
        estimated_duration: Optional[int] = None,
        assigned_crew_members: Optional[list] = None,
        crew_notes: Optional[str] = None,
    ) -> Envelope:
        ensure_valid_schedule(scheduled_start_date, scheduled_end_date, today=self._today)

        duration = resolve_duration(scheduled_start_date, scheduled_end_date, estimated_duration)
        provisional: dict[str, Any] = {"scheduledStartDate": scheduled_start_date.isoformat()}
        if scheduled_end_date is not None:
            provisional["scheduledEndDate"] = scheduled_end_date.isoformat()
        if duration is not None:
            provisional["estimatedDuration"] = duration
        if assigned_crew_members is not None:
            provisional["assignedCrewMembers"] = list(assigned_crew_members)
        if crew_notes is not None:
            provisional["crewNotes"] = crew_notes

        return self._mutate(
            "schedule",
            provisional,
            lambda: self.jobs.update_schedule(
                self.job_id,
                scheduled_start_date=scheduled_start_date,
                scheduled_end_date=scheduled_end_date,
                estimated_duration=duration,
                assigned_crew_members=assigned_crew_members,
                crew_notes=crew_notes,
            ),
        )

    def update_status(self, status: str, *, notes: Optional[str] = None) -> Envelope:
        return self._mutate(
            "status",
            {"status": status},
            lambda: self.jobs.update_status(self.job_id, status, notes=notes),
        )

    def update_item_status(
        self,
        status: str,
        *,
        item_key: Optional[str] = None,
        area_id: Optional[Any] = None,
    ) -> Envelope:
        key = progress_key(item_key, area_id)
        current = dict((self.job or {}).get("areaProgress") or {})
        current[key] = {"status": status}
        return self._mutate(
            "area_progress",
            {"areaProgress": current},
            lambda: self.jobs.update_area_progress(self.job_id, status, item_key=item_key, area_id=area_id),
        )

    def approve_selections(self) -> Envelope:
        return self._mutate("approve_selections", {}, lambda: self.jobs.approve_selections(self.job_id))

    def set_visibility(self, visible: bool) -> Envelope:
        quote = dict((self.job or {}).get("quote") or {})
        quote["portalOpen"] = bool(visible)
        return self._mutate("visibility", {"quote": quote}, lambda: self.jobs.set_visibility(self.job_id, visible))

    def record_lost_reason(self, reason: Optional[str], details: Optional[str] = None) -> Envelope:
        lost = validate_lost_reason(reason, details)
        return self._mutate(
            "lost_reason",
            {"lostReason": lost.reason, "lostReasonDetails": lost.details},
            lambda: self.jobs.record_lost_reason(self.job_id, lost.reason, lost.details),
        )

    def generate_documents(self) -> Envelope:
        env = self._mutate("documents", {}, lambda: self.jobs.generate_documents(self.job_id))
        self.load_documents()
        return env

    def download_document(self, document_type: str) -> bytes:
        with self._action(f"download:{document_type}"):
            return self.jobs.download_document(self.job_id, document_type)
