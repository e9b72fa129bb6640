# backend/contractor_hub/workers/tasks.py
from __future__ import annotations

import logging

from ..db import session_scope
from ..services.portal_lock import lock_expired_portals as run_portal_lock
from .celery_app import celery_app

log = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=2,
    default_retry_delay=60,
    name="contractor_hub.workers.tasks.lock_expired_portals",
)
def lock_expired_portals(self, dry_run: bool = False) -> dict:
    """
    Periodic sweep: close customer portals whose window has passed and put
    jobs still awaiting selections on hold.
    """
    try:
        with session_scope() as db:
            return run_portal_lock(db, dry_run=dry_run).as_dict()
    except Exception as exc:
        log.exception("portal lock sweep failed", extra={"event": "portal_lock_failed"})
        raise self.retry(exc=exc)
