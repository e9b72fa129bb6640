# backend/contractor_hub/domain/labels.py
from __future__ import annotations

JOB_STATUS_LABELS: dict[str, str] = {
    "accepted": "Accepted - Awaiting Deposit",
    "pending_deposit": "Pending Deposit",
    "deposit_paid": "Deposit Paid",
    "selections_pending": "Selections Pending",
    "selections_complete": "Selections Complete",
    "scheduled": "Scheduled",
    "in_progress": "In Progress",
    "paused": "Paused",
    "completed": "Completed",
    "invoiced": "Invoiced",
    "paid": "Paid",
    "closed": "Closed",
    "canceled": "Canceled",
    "on_hold": "On Hold",
}

JOB_STATUS_COLORS: dict[str, str] = {
    "accepted": "orange",
    "pending_deposit": "orange",
    "deposit_paid": "blue",
    "selections_pending": "gold",
    "selections_complete": "cyan",
    "scheduled": "purple",
    "in_progress": "processing",
    "paused": "default",
    "completed": "success",
    "invoiced": "lime",
    "paid": "green",
    "canceled": "error",
    "on_hold": "warning",
}

AREA_STATUS_LABELS: dict[str, str] = {
    "not_started": "Not Started",
    "prepped": "Prepped",
    "in_progress": "In Progress",
    "touch_ups": "Touch-Ups",
    "completed": "Completed",
}

AREA_STATUS_COLORS: dict[str, str] = {
    "not_started": "default",
    "prepped": "blue",
    "in_progress": "processing",
    "touch_ups": "warning",
    "completed": "success",
}

LOST_REASON_LABELS: dict[str, str] = {
    "budget_mismatch": "Budget didn't align with expectations",
    "chose_competitor": "Chose a different contractor",
    "timing_changed": "Timing or priorities changed",
    "scope_misalignment": "Scope or details weren't fully aligned",
    "confidence_issues": "Needed more confidence before moving forward",
    "project_paused": "Decided to pause the project",
    "other": "Other",
}

DOCUMENT_TYPE_LABELS: dict[str, str] = {
    "material-list": "Material List",
    "paint-order": "Paint Product Order",
    "work-order": "Work Order",
}


# Unknown keys fall back to the raw value (labels) or "default" (colors).
def job_status_label(status: str) -> str:
    return JOB_STATUS_LABELS.get(status, status)


def job_status_color(status: str) -> str:
    return JOB_STATUS_COLORS.get(status, "default")


def area_status_label(status: str) -> str:
    return AREA_STATUS_LABELS.get(status, status)


def area_status_color(status: str) -> str:
    return AREA_STATUS_COLORS.get(status, "default")


def lost_reason_label(reason: str) -> str:
    return LOST_REASON_LABELS.get(reason, reason)
