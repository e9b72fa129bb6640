# backend/contractor_hub/routers/admin_status.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import Principal, require_admin
from ..clients.stripe import StripeClient
from ..db import get_db
from ..domain.job_status import JOB_STATUSES, MANUAL_JOB_STATUSES, StatusTransitionError
from ..models import Job, Quote
from ..schemas import (
    AdminJobStatusIn,
    MarkDepositPaidIn,
    OverrideStatusIn,
    QuoteOut,
    ReopenQuoteIn,
    SyncPaymentIn,
    envelope,
    job_payload,
)
from ..services.status_flow import (
    handle_payment_success,
    mark_deposit_paid_manual,
    override_job_status,
    reopen_quote,
    transition_job_status,
)

log = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/status", tags=["admin-status"])


def _get_quote_or_404(db: Session, *, tenant_id: int, quote_id: int) -> Quote:
    quote = db.scalar(select(Quote).where(Quote.id == quote_id, Quote.tenant_id == tenant_id))
    if not quote:
        raise HTTPException(status_code=404, detail="Quote not found")
    return quote


def _get_job_or_404(db: Session, *, tenant_id: int, job_id: int) -> Job:
    job = db.scalar(select(Job).where(Job.id == job_id, Job.tenant_id == tenant_id))
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


def _quote_payload(quote: Quote) -> dict:
    out = QuoteOut.model_validate(quote).wire()
    out["jobs"] = [job_payload(j, with_progress=False) for j in quote.jobs]
    return out


@router.post("/quotes/{quote_id}/mark-deposit-paid")
def mark_deposit_paid(
    quote_id: int,
    payload: MarkDepositPaidIn,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_admin),
):
    quote = _get_quote_or_404(db, tenant_id=p.tenant_id, quote_id=quote_id)
    try:
        mark_deposit_paid_manual(
            db,
            quote,
            principal=p,
            payment_method=payload.payment_method,
            notes=payload.notes,
            transaction_id=payload.transaction_id,
        )
    except StatusTransitionError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    db.commit()
    db.refresh(quote)
    return envelope(_quote_payload(quote), message="Deposit marked as paid successfully")


@router.post("/quotes/{quote_id}/reopen")
def reopen(
    quote_id: int,
    payload: ReopenQuoteIn,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_admin),
):
    quote = _get_quote_or_404(db, tenant_id=p.tenant_id, quote_id=quote_id)
    try:
        reopen_quote(db, quote, principal=p, reason=payload.reason)
    except StatusTransitionError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    db.commit()
    db.refresh(quote)
    return envelope(_quote_payload(quote), message="Quote reopened successfully")


@router.post("/quotes/{quote_id}/sync-payment")
def sync_payment(
    quote_id: int,
    payload: SyncPaymentIn,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_admin),
):
    quote = _get_quote_or_404(db, tenant_id=p.tenant_id, quote_id=quote_id)

    if not payload.payment_intent_id:
        return envelope(
            {
                "quoteId": quote.id,
                "status": quote.status,
                "depositVerified": bool(quote.deposit_verified),
                "depositVerifiedAt": quote.deposit_verified_at.isoformat() if quote.deposit_verified_at else None,
                "depositTransactionId": quote.deposit_transaction_id,
            },
            message="Current payment status retrieved",
        )

    intent = StripeClient().retrieve_payment_intent(payload.payment_intent_id)
    if intent.status is None:
        log.warning(
            "payment intent lookup failed",
            extra={"quote_id": int(quote.id), "tenant_id": p.tenant_id},
        )
        raise HTTPException(status_code=502, detail="Could not retrieve payment intent from payment provider")

    if intent.succeeded and quote.status == "accepted":
        handle_payment_success(db, quote, intent.id, principal=p)
        db.commit()
        db.refresh(quote)
        return envelope(_quote_payload(quote), message="Payment synced successfully")

    raise HTTPException(status_code=400, detail=f"Payment intent status: {intent.status}. Cannot mark as paid.")


@router.patch("/jobs/{job_id}/status")
def set_job_status(
    job_id: int,
    payload: AdminJobStatusIn,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_admin),
):
    if payload.status not in MANUAL_JOB_STATUSES:
        raise HTTPException(
            status_code=400,
            detail=f"Status {payload.status} is not a manual status. Use the appropriate endpoint.",
        )

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

    db.commit()
    db.refresh(job)
    return envelope(job_payload(job), message=f"Job status updated to {payload.status}")


@router.post("/jobs/{job_id}/override-status")
def override_status(
    job_id: int,
    payload: OverrideStatusIn,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_admin),
):
    if not payload.confirm_override:
        raise HTTPException(status_code=400, detail="Override confirmation required. Set confirmOverride: true")
    if not (payload.reason or "").strip():
        raise HTTPException(status_code=400, detail="Reason required for status override")
    if payload.status not in JOB_STATUSES:
        raise HTTPException(status_code=400, detail=f"Unknown job status: {payload.status}")

    job = _get_job_or_404(db, tenant_id=p.tenant_id, job_id=job_id)
    override_job_status(db, job, payload.status, principal=p, reason=payload.reason.strip())
    db.commit()
    db.refresh(job)
    return envelope(job_payload(job), message=f"Job status overridden to {payload.status}")
