# backend/contractor_hub/domain/job_status.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

JOB_STATUSES: tuple[str, ...] = (
    "accepted",
    "pending_deposit",
    "deposit_paid",
    "selections_pending",
    "selections_complete",
    "scheduled",
    "in_progress",
    "paused",
    "completed",
    "invoiced",
    "paid",
    "closed",
    "canceled",
    "on_hold",
)

QUOTE_STATUSES: tuple[str, ...] = (
    "draft",
    "sent",
    "viewed",
    "accepted",
    "rejected",
    "declined",
    "expired",
    "deposit_paid",
)

# What the admin status dropdown offers. Deliberately not filtered by the
# current status; the server-side flow below is the only guard.
ADMIN_STATUS_OPTIONS: tuple[str, ...] = (
    "deposit_paid",
    "selections_complete",
    "scheduled",
    "in_progress",
    "paused",
    "completed",
    "on_hold",
)

JOB_STATUS_FLOW: dict[str, tuple[str, ...]] = {
    "accepted": ("deposit_paid",),
    "pending_deposit": ("deposit_paid",),
    "deposit_paid": ("scheduled", "selections_pending"),
    "selections_pending": ("selections_complete", "scheduled"),
    "selections_complete": ("scheduled",),
    "scheduled": ("in_progress",),
    "in_progress": ("completed", "paused"),
    "paused": ("in_progress",),
    "completed": ("closed", "paid"),
    "invoiced": ("paid", "closed"),
    "paid": ("closed",),
    "closed": (),
    "canceled": (),
    "on_hold": ("scheduled", "deposit_paid"),
}

QUOTE_STATUS_FLOW: dict[str, tuple[str, ...]] = {
    "draft": ("sent",),
    "sent": ("viewed", "declined", "expired"),
    "viewed": ("accepted", "declined", "expired"),
    "accepted": ("deposit_paid", "declined"),
    "rejected": (),
    "declined": (),
    "expired": (),
    "deposit_paid": (),
}

# Statuses an admin sets by hand through PATCH /admin/status/jobs/{id}/status.
MANUAL_JOB_STATUSES: tuple[str, ...] = ("scheduled", "in_progress", "completed", "closed")

TERMINAL_JOB_STATUSES: frozenset[str] = frozenset({"closed", "canceled"})
REOPENABLE_QUOTE_STATUSES: frozenset[str] = frozenset({"rejected", "declined", "expired"})

# Jobs past this point are real work; they cannot be recorded as lost.
NON_LOSABLE_JOB_STATUSES: frozenset[str] = frozenset({"deposit_paid", "in_progress", "completed"})


class StatusTransitionError(ValueError):
    pass


@dataclass(frozen=True)
class StatusCheck:
    valid: bool
    message: Optional[str] = None


def status_options(current_status: Optional[str] = None) -> list[str]:
    """
    Options for the admin status picker.

    The current status is accepted for call-site symmetry and ignored: every
    option is offered from every state.
    """
    return list(ADMIN_STATUS_OPTIONS)


def _flow(entity_type: str) -> dict[str, tuple[str, ...]]:
    if entity_type == "quote":
        return QUOTE_STATUS_FLOW
    if entity_type == "job":
        return JOB_STATUS_FLOW
    raise ValueError(f"unknown entity_type: {entity_type}")


def can_transition(entity_type: str, from_status: str, to_status: str, *, is_admin: bool = False) -> bool:
    flow = _flow(entity_type)

    if entity_type == "quote" and from_status in REOPENABLE_QUOTE_STATUSES:
        return is_admin and to_status == "sent"

    if entity_type == "job" and from_status in TERMINAL_JOB_STATUSES:
        return is_admin

    return to_status in flow.get(from_status, ())


def next_allowed_statuses(entity_type: str, current_status: str) -> list[str]:
    return list(_flow(entity_type).get(current_status, ()))


def validate_status_update(entity_type: str, old_status: str, new_status: str, *, is_admin: bool = False) -> StatusCheck:
    if old_status == new_status:
        return StatusCheck(valid=True, message="Status unchanged")

    if can_transition(entity_type, old_status, new_status, is_admin=is_admin):
        return StatusCheck(valid=True)

    allowed = next_allowed_statuses(entity_type, old_status)
    return StatusCheck(
        valid=False,
        message=(
            f'Cannot transition from "{old_status}" to "{new_status}". '
            f"Allowed transitions: {', '.join(allowed) or 'none (terminal state)'}"
        ),
    )


def ensure_known_job_status(status: str) -> str:
    s = (status or "").strip()
    if s not in JOB_STATUSES:
        raise StatusTransitionError(f"Unknown job status: {status!r}")
    return s
