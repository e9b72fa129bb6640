# backend/contractor_hub/workers/celery_app.py
from __future__ import annotations

from celery import Celery

from ..config import settings

celery_app = Celery(
    "contractor_hub",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["contractor_hub.workers.tasks"],
)

celery_app.conf.update(
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_reject_on_worker_lost=True,
    task_track_started=True,
    timezone="UTC",
)

celery_app.conf.task_routes = {
    "contractor_hub.workers.tasks.*": {"queue": "maintenance"},
}

celery_app.conf.beat_schedule = {
    "lock-expired-portals": {
        "task": "contractor_hub.workers.tasks.lock_expired_portals",
        "schedule": float(settings.portal_lock_interval_seconds),
    },
}
