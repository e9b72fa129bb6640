# backend/contractor_hub/services/portal_lock.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..domain.audit import emit_audit
from ..models import Job, Quote

log = logging.getLogger(__name__)

AUTO_HOLD_NOTE = "[Auto] Portal expired - awaiting customer selections"

# Jobs still waiting on the customer when the portal closes.
_AWAITING_SELECTIONS = ("deposit_paid", "selections_pending")


@dataclass
class PortalLockResult:
    locked_quote_ids: list[int] = field(default_factory=list)
    held_job_ids: list[int] = field(default_factory=list)
    dry_run: bool = False

    def as_dict(self) -> dict:
        return {
            "lockedQuotes": len(self.locked_quote_ids),
            "heldJobs": len(self.held_job_ids),
            "lockedQuoteIds": list(self.locked_quote_ids),
            "heldJobIds": list(self.held_job_ids),
            "dryRun": self.dry_run,
        }


def _append_note(existing: Optional[str], note: str) -> str:
    base = existing or ""
    if base and not base.endswith("\n"):
        base += "\n"
    return base + note + "\n"


def lock_expired_portals(db: Session, *, now: Optional[datetime] = None, dry_run: bool = False) -> PortalLockResult:
    """
    Close customer portals whose window has passed.

    Jobs on those quotes that are still waiting for customer selections are
    put on hold with an explanatory note. Commits unless dry_run.
    """
    now = now or datetime.utcnow()
    result = PortalLockResult(dry_run=dry_run)

    quotes = db.scalars(
        select(Quote).where(
            Quote.portal_open.is_(True),
            Quote.portal_closed_at.is_not(None),
            Quote.portal_closed_at <= now,
        )
    ).all()

    for quote in quotes:
        result.locked_quote_ids.append(int(quote.id))
        held: list[int] = []
        for job in quote.jobs:
            if job.status in _AWAITING_SELECTIONS and not job.customer_selections_complete:
                held.append(int(job.id))
        result.held_job_ids.extend(held)

        if dry_run:
            continue

        quote.portal_open = False
        db.add(quote)
        emit_audit(
            db,
            tenant_id=int(quote.tenant_id),
            action="portal_auto_locked",
            category="quote",
            entity_type="Quote",
            entity_id=quote.id,
            before={"portalOpen": True},
            after={"portalOpen": False, "portalClosedAt": quote.portal_closed_at},
        )

        for job in quote.jobs:
            if int(job.id) not in held:
                continue
            old_status = job.status
            job.status = "on_hold"
            job.contractor_notes = _append_note(job.contractor_notes, AUTO_HOLD_NOTE)
            job.updated_at = now
            db.add(job)
            emit_audit(
                db,
                tenant_id=int(job.tenant_id),
                action="job_auto_on_hold",
                category="job",
                entity_type="Job",
                entity_id=job.id,
                before={"status": old_status},
                after={"status": "on_hold", "reason": "portal_expired"},
            )

    if not dry_run:
        db.commit()

    log.info(
        "portal lock sweep: %d quotes, %d jobs on hold",
        len(result.locked_quote_ids),
        len(result.held_job_ids),
        extra={"event": "portal_lock_sweep"},
    )
    return result
