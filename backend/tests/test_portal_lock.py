# backend/tests/test_portal_lock.py
from __future__ import annotations

from datetime import datetime, timedelta

from contractor_hub.models import Job, Quote
from contractor_hub.services.portal_lock import AUTO_HOLD_NOTE, lock_expired_portals
from contractor_hub.workers.tasks import lock_expired_portals as lock_task


def _expire_portal(db, quote_id: int) -> None:
    quote = db.get(Quote, quote_id)
    quote.portal_open = True
    quote.portal_opened_at = datetime.utcnow() - timedelta(days=20)
    quote.portal_closed_at = datetime.utcnow() - timedelta(days=1)
    db.commit()


def test_dry_run_reports_without_changes(db, seeded):
    _expire_portal(db, seeded.quote_ids["flat_rate"])

    result = lock_expired_portals(db, dry_run=True)
    assert result.dry_run is True
    assert seeded.quote_ids["flat_rate"] in result.locked_quote_ids
    assert seeded.job_ids["flat_rate"] in result.held_job_ids

    db.expire_all()
    assert db.get(Quote, seeded.quote_ids["flat_rate"]).portal_open is True
    assert db.get(Job, seeded.job_ids["flat_rate"]).status == "deposit_paid"


def test_sweep_closes_portal_and_holds_waiting_jobs(db, seeded):
    _expire_portal(db, seeded.quote_ids["flat_rate"])
    _expire_portal(db, seeded.quote_ids["turnkey"])

    result = lock_expired_portals(db)
    assert seeded.quote_ids["flat_rate"] in result.locked_quote_ids
    assert seeded.quote_ids["turnkey"] in result.locked_quote_ids
    assert seeded.job_ids["flat_rate"] in result.held_job_ids
    # already scheduled, nothing to wait for
    assert seeded.job_ids["turnkey"] not in result.held_job_ids

    db.expire_all()
    assert db.get(Quote, seeded.quote_ids["flat_rate"]).portal_open is False
    held = db.get(Job, seeded.job_ids["flat_rate"])
    assert held.status == "on_hold"
    assert AUTO_HOLD_NOTE in held.contractor_notes
    assert db.get(Job, seeded.job_ids["turnkey"]).status == "scheduled"


def test_future_portals_are_left_open(db, seeded):
    quote = db.get(Quote, seeded.quote_ids["areas"])
    quote.portal_open = True
    quote.portal_closed_at = datetime.utcnow() + timedelta(days=3)
    db.commit()

    result = lock_expired_portals(db)
    assert seeded.quote_ids["areas"] not in result.locked_quote_ids
    db.expire_all()
    assert db.get(Quote, seeded.quote_ids["areas"]).portal_open is True


def test_celery_task_runs_sweep(db, seeded):
    _expire_portal(db, seeded.quote_ids["flat_rate"])

    out = lock_task.apply(kwargs={"dry_run": True}).get()
    assert out["dryRun"] is True
    assert seeded.quote_ids["flat_rate"] in out["lockedQuoteIds"]
