# backend/contractor_hub/domain/lost_reason.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .labels import LOST_REASON_LABELS

LOST_REASONS: tuple[str, ...] = tuple(LOST_REASON_LABELS.keys())


class LostReasonError(ValueError):
    pass


@dataclass(frozen=True)
class LostReason:
    reason: str
    details: Optional[str]

    @property
    def label(self) -> str:
        return LOST_REASON_LABELS[self.reason]


def validate_lost_reason(reason: Optional[str], details: Optional[str] = None) -> LostReason:
    if not reason:
        raise LostReasonError("Please select a reason")
    if reason not in LOST_REASON_LABELS:
        raise LostReasonError(f"Invalid lost reason: {reason}")

    cleaned = (details or "").strip() or None
    if reason == "other" and cleaned is None:
        raise LostReasonError("Please describe the reason when selecting 'Other'")

    return LostReason(reason=reason, details=cleaned)
