# backend/contractor_hub/routers/jobs.py
from __future__ import annotations

import logging
import math
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy import asc, desc, func, or_, select
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..db import get_db
from ..domain.audit import emit_audit
from ..domain.job_status import NON_LOSABLE_JOB_STATUSES, StatusTransitionError
from ..domain.lost_reason import LostReasonError, validate_lost_reason
from ..domain.progress import derive_progress_items, ensure_area_status, progress_key
from ..domain.scheduling import ScheduleError, ScheduleValidationError, as_date, resolve_duration, validate_schedule
from ..models import Job, Quote, Tenant
from ..schemas import (
    AreaProgressUpdate,
    JobOut,
    JobStatusUpdate,
    LostReasonIn,
    ScheduleUpdate,
    VisibilityUpdate,
    envelope,
    job_payload,
)
from ..services import documents as documents_service
from ..services.status_flow import transition_job_status

log = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])

_SORT_COLUMNS = {
    "createdAt": Job.created_at,
    "updatedAt": Job.updated_at,
    "jobNumber": Job.job_number,
    "status": Job.status,
    "customerName": Job.customer_name,
    "scheduledStartDate": Job.scheduled_start_date,
    "totalAmount": Job.total_amount,
}

CALENDAR_STATUSES = ("scheduled", "in_progress", "completed")


def _get_job_or_404(db: Session, *, tenant_id: int, job_id: int) -> Job:
    job = db.scalar(select(Job).where(Job.id == job_id, Job.tenant_id == tenant_id))
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


def _touch(job: Job) -> None:
    job.updated_at = datetime.utcnow()


@router.get("")
def list_jobs(
    status: Optional[str] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    sort_by: str = Query(default="createdAt", alias="sortBy"),
    sort_order: str = Query(default="DESC", alias="sortOrder"),
    search: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    where = [Job.tenant_id == p.tenant_id]
    if status and status != "all":
        where.append(Job.status == status)
    if search:
        like = f"%{search.strip()}%"
        where.append(or_(Job.job_number.ilike(like), Job.customer_name.ilike(like), Job.customer_email.ilike(like)))

    col = _SORT_COLUMNS.get(sort_by)
    if col is None:
        raise HTTPException(status_code=400, detail=f"Unsupported sortBy: {sort_by}")
    order = asc(col) if sort_order.upper() == "ASC" else desc(col)

    total = int(db.scalar(select(func.count(Job.id)).where(*where)) or 0)
    rows = db.scalars(
        select(Job).where(*where).order_by(order, desc(Job.id)).offset((page - 1) * limit).limit(limit)
    ).all()

    return envelope(
        {
            "jobs": [job_payload(j, with_progress=False) for j in rows],
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "totalPages": math.ceil(total / limit) if total else 0,
            },
        }
    )


@router.get("/stats")
def job_stats(db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    counts = dict(
        db.execute(
            select(Job.status, func.count(Job.id)).where(Job.tenant_id == p.tenant_id).group_by(Job.status)
        ).all()
    )
    selections_needed = db.scalar(
        select(func.count(Job.id)).where(
            Job.tenant_id == p.tenant_id,
            Job.status == "deposit_paid",
            Job.customer_selections_complete.is_(False),
        )
    )
    return envelope(
        {
            "total": int(sum(counts.values())),
            "depositPaid": int(counts.get("deposit_paid", 0)),
            "scheduled": int(counts.get("scheduled", 0)),
            "inProgress": int(counts.get("in_progress", 0)),
            "completed": int(counts.get("completed", 0)),
            "selectionsNeeded": int(selections_needed or 0),
        }
    )


@router.get("/calendar")
def job_calendar(
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    where = [Job.tenant_id == p.tenant_id, Job.status.in_(CALENDAR_STATUSES)]
    if start_date and end_date:
        where.append(Job.scheduled_start_date.between(start_date, end_date))

    rows = db.scalars(select(Job).where(*where).order_by(asc(Job.scheduled_start_date), asc(Job.id))).all()

    events = []
    for j in rows:
        start = j.scheduled_start_date or (j.actual_start_date.date() if j.actual_start_date else None)
        end = j.scheduled_end_date or (j.actual_end_date.date() if j.actual_end_date else None)
        events.append(
            {
                "id": j.id,
                "title": f"{j.job_number} - {j.customer_name or ''}".rstrip(" -"),
                "start": start.isoformat() if start else None,
                "end": end.isoformat() if end else None,
                "status": j.status,
                "duration": j.estimated_duration,
                "jobNumber": j.job_number,
                "customerName": j.customer_name,
            }
        )
    return envelope(events)


@router.get("/{job_id}")
def get_job(job_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    job = _get_job_or_404(db, tenant_id=p.tenant_id, job_id=job_id)
    return envelope(job_payload(job))


@router.patch("/{job_id}/schedule")
def update_schedule(
    job_id: int,
    payload: ScheduleUpdate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    job = _get_job_or_404(db, tenant_id=p.tenant_id, job_id=job_id)
    before = JobOut.model_validate(job).wire()

    start = payload.scheduled_start_date
    end = payload.scheduled_end_date
    errors = validate_schedule(start, end)
    # A one-sided change is still checked against the stored other side.
    if (start is None) != (end is None):
        eff_start = start if start is not None else as_date(job.scheduled_start_date)
        eff_end = end if end is not None else as_date(job.scheduled_end_date)
        if eff_start is not None and eff_end is not None and eff_end < eff_start:
            errors.append(ScheduleError("scheduledEndDate", "End date must be on or after the start date"))
    if errors:
        raise HTTPException(status_code=400, detail=str(ScheduleValidationError(errors)))

    if start is not None:
        job.scheduled_start_date = start
    if end is not None:
        job.scheduled_end_date = end
    if start is not None or end is not None or payload.estimated_duration is not None:
        job.estimated_duration = resolve_duration(
            job.scheduled_start_date, job.scheduled_end_date, payload.estimated_duration
        ) or job.estimated_duration
    if payload.assigned_crew_members is not None:
        job.assigned_crew_members = list(payload.assigned_crew_members)
    if payload.crew_notes is not None:
        job.crew_notes = payload.crew_notes

    if start is not None and job.status == "selections_complete":
        job.status = "scheduled"

    _touch(job)
    db.add(job)
    emit_audit(
        db,
        principal=p,
        action="job_scheduled",
        entity_type="Job",
        entity_id=job.id,
        before=before,
        after=JobOut.model_validate(job).wire(),
    )
    db.commit()
    db.refresh(job)
    return envelope(job_payload(job), message="Job schedule updated successfully")


@router.patch("/{job_id}/status")
def update_status(
    job_id: int,
    payload: JobStatusUpdate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    job = _get_job_or_404(db, tenant_id=p.tenant_id, job_id=job_id)
    try:
        transition_job_status(
            db,
            job,
            payload.status,
            principal=p,
            is_admin=True,
            scheduled_start_date=payload.scheduled_start_date,
            scheduled_end_date=payload.scheduled_end_date,
            reason=payload.reason,
        )
    except StatusTransitionError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    if payload.notes:
        job.contractor_notes = payload.notes

    db.commit()
    db.refresh(job)
    return envelope(job_payload(job), message="Job status updated successfully")


@router.patch("/{job_id}/approve-selections")
def approve_selections(job_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    job = _get_job_or_404(db, tenant_id=p.tenant_id, job_id=job_id)

    note = f"[Selections Approved by {p.display_name} at {datetime.utcnow().isoformat()}Z]\n"
    job.contractor_notes = (job.contractor_notes or "") + note
    _touch(job)
    db.add(job)

    emit_audit(
        db,
        principal=p,
        action="selections_approved",
        entity_type="Job",
        entity_id=job.id,
        after={"quoteId": job.quote_id},
    )
    db.commit()
    db.refresh(job)
    return envelope(job_payload(job), message="Customer selections approved")


@router.patch("/{job_id}/visibility")
def set_visibility(
    job_id: int,
    payload: VisibilityUpdate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    job = _get_job_or_404(db, tenant_id=p.tenant_id, job_id=job_id)
    quote = db.scalar(select(Quote).where(Quote.id == job.quote_id, Quote.tenant_id == p.tenant_id))
    if quote is None:
        raise HTTPException(status_code=404, detail="Related proposal not found")

    now = datetime.utcnow()
    quote.portal_open = bool(payload.visible)
    if payload.visible:
        quote.portal_opened_at = now
    else:
        quote.portal_closed_at = now
    quote.updated_at = now
    db.add(quote)

    emit_audit(
        db,
        principal=p,
        action="job_visibility_changed",
        entity_type="Job",
        entity_id=job.id,
        after={"visible": bool(payload.visible)},
    )
    db.commit()
    db.refresh(job)
    return envelope(job_payload(job), message="Job visibility updated")


@router.post("/{job_id}/area-progress")
def update_area_progress(
    job_id: int,
    payload: AreaProgressUpdate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    job = _get_job_or_404(db, tenant_id=p.tenant_id, job_id=job_id)
    try:
        key = progress_key(payload.item_key, payload.area_id)
        status = ensure_area_status(payload.status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    now = datetime.utcnow()
    progress = dict(job.area_progress or {})
    progress[key] = {"status": status, "updatedAt": now.isoformat() + "Z"}
    # Reassign so the JSON column is marked dirty.
    job.area_progress = progress
    _touch(job)

    auto_completed = False
    summary = derive_progress_items(job)
    if not summary.is_empty and summary.completed_count == summary.total_count and job.status != "completed":
        job.status = "completed"
        job.actual_end_date = job.actual_end_date or now
        auto_completed = True

    db.add(job)
    emit_audit(
        db,
        principal=p,
        action="area_progress_updated",
        entity_type="Job",
        entity_id=job.id,
        after={"key": key, "status": status, "autoCompleted": auto_completed},
    )
    db.commit()
    db.refresh(job)

    msg = "Area progress updated and job marked completed" if auto_completed else "Area progress updated successfully"
    return envelope(job_payload(job), message=msg)


@router.post("/{job_id}/lost-reason")
def record_lost_reason(
    job_id: int,
    payload: LostReasonIn,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    try:
        lost = validate_lost_reason(payload.lost_reason, payload.lost_reason_details)
    except LostReasonError as e:
        raise HTTPException(status_code=400, detail=str(e))

    job = _get_job_or_404(db, tenant_id=p.tenant_id, job_id=job_id)
    if job.status in NON_LOSABLE_JOB_STATUSES:
        raise HTTPException(
            status_code=400,
            detail=f'Cannot record a lost reason for a job in "{job.status}" status',
        )

    before = {"status": job.status, "lostReason": job.lost_reason}
    job.lost_reason = lost.reason
    job.lost_reason_details = lost.details
    job.lost_at = datetime.utcnow()
    job.status = "canceled"
    _touch(job)
    db.add(job)

    emit_audit(
        db,
        principal=p,
        action="job_lost_reason_recorded",
        entity_type="Job",
        entity_id=job.id,
        before=before,
        after={"status": "canceled", "lostReason": lost.reason, "lostReasonDetails": lost.details},
    )
    db.commit()
    db.refresh(job)
    return envelope(job_payload(job), message="Lost job reason recorded")


# -----------------------------
# Documents
# -----------------------------
@router.get("/{job_id}/documents")
def list_documents(job_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    job = _get_job_or_404(db, tenant_id=p.tenant_id, job_id=job_id)
    return envelope(documents_service.list_documents(job))


@router.post("/{job_id}/documents/generate")
def generate_documents(job_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    job = _get_job_or_404(db, tenant_id=p.tenant_id, job_id=job_id)
    tenant = db.get(Tenant, p.tenant_id)
    try:
        result = documents_service.generate_job_documents(job, tenant)
    except documents_service.DocumentError as e:
        raise HTTPException(status_code=400, detail=str(e))

    _touch(job)
    db.add(job)
    emit_audit(
        db,
        principal=p,
        action="job_documents_generated",
        entity_type="Job",
        entity_id=job.id,
        after={"documents": result.documents, "errors": result.errors},
    )
    db.commit()
    db.refresh(job)

    return envelope(
        {"documents": result.documents, "errors": result.errors, "job": job_payload(job)},
        message="Documents generated" if result.success else "Documents generated with errors",
        success=result.success,
    )


@router.get("/{job_id}/documents/{document_type}")
def download_document(
    job_id: int,
    document_type: str,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    job = _get_job_or_404(db, tenant_id=p.tenant_id, job_id=job_id)
    if document_type not in documents_service.DOCUMENT_TYPES:
        raise HTTPException(status_code=404, detail=f"Unknown document type: {document_type}")
    try:
        pdf = documents_service.read_document(job, document_type)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Document has not been generated")

    filename = f"{job.job_number}-{document_type}.pdf"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
