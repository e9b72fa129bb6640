# backend/contractor_hub/services/status_flow.py
"""
Server-side status transitions for quotes and jobs.

Every transition goes through the flow graph in domain.job_status, applies
its side effects (timestamps, deposit flags, schedule dates) and writes one
audit row. Nothing here commits; routers own the transaction.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..auth import Principal
from ..domain.audit import emit_audit
from ..domain.job_status import (
    MANUAL_JOB_STATUSES,
    REOPENABLE_QUOTE_STATUSES,
    StatusTransitionError,
    ensure_known_job_status,
    validate_status_update,
)
from ..models import Job, Quote

log = logging.getLogger(__name__)

_JOB_AUDIT_ACTIONS = {
    "deposit_paid": "job_deposit_paid",
    "scheduled": "job_scheduled",
    "in_progress": "job_started",
    "completed": "job_completed",
    "closed": "job_closed",
    "paused": "job_paused",
}

_QUOTE_AUDIT_ACTIONS = {
    "sent": "quote_sent",
    "viewed": "quote_viewed",
    "accepted": "quote_accepted",
    "declined": "quote_declined",
    "rejected": "quote_declined",
    "deposit_paid": "deposit_paid",
    "expired": "quote_expired",
}


def _now() -> datetime:
    return datetime.utcnow()


def transition_job_status(
    db: Session,
    job: Job,
    new_status: str,
    *,
    principal: Optional[Principal] = None,
    tenant_id: Optional[int] = None,
    is_admin: bool = False,
    scheduled_start_date: Optional[date] = None,
    scheduled_end_date: Optional[date] = None,
    reason: Optional[str] = None,
) -> Job:
    new_status = ensure_known_job_status(new_status)
    old_status = job.status

    check = validate_status_update("job", old_status, new_status, is_admin=is_admin)
    if not check.valid:
        raise StatusTransitionError(check.message)
    if old_status == new_status:
        return job
    if new_status in MANUAL_JOB_STATUSES and not is_admin:
        raise StatusTransitionError(
            f'Status "{new_status}" requires admin action. Only administrators can set this status.'
        )

    now = _now()
    details: dict = {"oldStatus": old_status, "newStatus": new_status, "jobNumber": job.job_number}

    if new_status == "deposit_paid":
        job.deposit_paid = True
        job.deposit_paid_at = now
    elif new_status == "scheduled":
        if scheduled_start_date:
            job.scheduled_start_date = scheduled_start_date
        if scheduled_end_date:
            job.scheduled_end_date = scheduled_end_date
        details["scheduledStartDate"] = scheduled_start_date
        details["scheduledEndDate"] = scheduled_end_date
    elif new_status == "in_progress":
        job.actual_start_date = job.actual_start_date or now
    elif new_status == "completed":
        job.actual_end_date = job.actual_end_date or now
    elif new_status == "paused":
        details["reason"] = reason

    job.status = new_status
    job.updated_at = now
    db.add(job)

    emit_audit(
        db,
        principal=principal,
        tenant_id=tenant_id if principal is None else None,
        action=_JOB_AUDIT_ACTIONS.get(new_status, "job_status_changed"),
        category="job",
        entity_type="Job",
        entity_id=job.id,
        before={"status": old_status},
        after=details,
    )
    log.info("job status %s -> %s", old_status, new_status, extra={"job_id": int(job.id), "tenant_id": int(job.tenant_id)})
    return job


def override_job_status(db: Session, job: Job, new_status: str, *, principal: Principal, reason: str) -> Job:
    """Admin escape hatch: sets the status directly, bypassing the flow graph."""
    new_status = ensure_known_job_status(new_status)
    old_status = job.status

    job.status = new_status
    job.updated_at = _now()
    db.add(job)

    emit_audit(
        db,
        principal=principal,
        action="job_status_overridden",
        category="job",
        entity_type="Job",
        entity_id=job.id,
        before={"status": old_status},
        after={
            "oldStatus": old_status,
            "newStatus": new_status,
            "reason": reason,
            "override": True,
            "adminAction": True,
            "jobNumber": job.job_number,
        },
    )
    log.warning(
        "job status overridden %s -> %s",
        old_status,
        new_status,
        extra={"job_id": int(job.id), "tenant_id": int(job.tenant_id), "user_id": principal.user_id},
    )
    return job


def transition_quote_status(
    db: Session,
    quote: Quote,
    new_status: str,
    *,
    principal: Optional[Principal] = None,
    tenant_id: Optional[int] = None,
    is_admin: bool = False,
    reason: Optional[str] = None,
    payment_intent_id: Optional[str] = None,
    payment_method: Optional[str] = None,
    notes: Optional[str] = None,
) -> Quote:
    old_status = quote.status
    check = validate_status_update("quote", old_status, new_status, is_admin=is_admin)
    if not check.valid:
        raise StatusTransitionError(check.message)
    if old_status == new_status:
        return quote

    now = _now()
    details: dict = {"oldStatus": old_status, "newStatus": new_status, "quoteNumber": quote.quote_number}

    if new_status == "sent":
        quote.sent_at = now
    elif new_status == "viewed":
        quote.viewed_at = quote.viewed_at or now
    elif new_status == "accepted":
        quote.accepted_at = now
    elif new_status in ("declined", "rejected"):
        quote.declined_at = now
        if reason:
            quote.decline_reason = reason
        details["reason"] = reason
    elif new_status == "deposit_paid":
        quote.deposit_verified = True
        quote.deposit_verified_at = now
        if payment_intent_id:
            quote.deposit_transaction_id = payment_intent_id
        if payment_method:
            quote.deposit_payment_method = payment_method
        details["paymentMethod"] = payment_method or "stripe"
        details["paymentIntentId"] = payment_intent_id
        details["notes"] = notes

    quote.status = new_status
    quote.updated_at = now
    db.add(quote)

    emit_audit(
        db,
        principal=principal,
        tenant_id=tenant_id if principal is None else None,
        action=_QUOTE_AUDIT_ACTIONS.get(new_status, "quote_status_changed"),
        category="quote",
        entity_type="Quote",
        entity_id=quote.id,
        before={"status": old_status},
        after=details,
    )
    return quote


def _sync_jobs_deposit(db: Session, quote: Quote, *, principal: Optional[Principal], tenant_id: Optional[int]) -> None:
    # Jobs waiting on this deposit move along with the quote.
    for job in quote.jobs:
        if job.status in ("accepted", "pending_deposit"):
            transition_job_status(db, job, "deposit_paid", principal=principal, tenant_id=tenant_id)


def mark_deposit_paid_manual(
    db: Session,
    quote: Quote,
    *,
    principal: Principal,
    payment_method: str = "cash",
    notes: Optional[str] = None,
    transaction_id: Optional[str] = None,
) -> Quote:
    if quote.status != "accepted":
        raise StatusTransitionError(f'Quote must be in "accepted" status. Current status: {quote.status}')

    transition_quote_status(
        db,
        quote,
        "deposit_paid",
        principal=principal,
        is_admin=True,
        payment_method=payment_method,
        payment_intent_id=transaction_id,
        notes=notes,
    )
    _sync_jobs_deposit(db, quote, principal=principal, tenant_id=None)
    return quote


def handle_payment_success(
    db: Session,
    quote: Quote,
    payment_intent_id: str,
    *,
    principal: Optional[Principal] = None,
) -> Quote:
    if quote.status != "accepted":
        raise StatusTransitionError(
            f'Quote must be in "accepted" status to receive payment. Current status: {quote.status}'
        )

    transition_quote_status(
        db,
        quote,
        "deposit_paid",
        principal=principal,
        tenant_id=int(quote.tenant_id) if principal is None else None,
        payment_intent_id=payment_intent_id,
        payment_method="stripe",
    )
    _sync_jobs_deposit(db, quote, principal=principal, tenant_id=int(quote.tenant_id))
    return quote


def reopen_quote(db: Session, quote: Quote, *, principal: Principal, reason: Optional[str] = None) -> Quote:
    previous = quote.status
    if previous not in REOPENABLE_QUOTE_STATUSES:
        raise StatusTransitionError(
            f'Quote status "{previous}" cannot be reopened. '
            "Only rejected/declined/expired quotes can be reopened."
        )

    transition_quote_status(db, quote, "sent", principal=principal, is_admin=True, reason=reason)
    emit_audit(
        db,
        principal=principal,
        action="quote_reopened",
        category="quote",
        entity_type="Quote",
        entity_id=quote.id,
        before={"status": previous},
        after={"quoteNumber": quote.quote_number, "previousStatus": previous, "reason": reason, "adminAction": True},
    )
    return quote
