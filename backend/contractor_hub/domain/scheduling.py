# backend/contractor_hub/domain/scheduling.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional


@dataclass(frozen=True)
class ScheduleError:
    field: str
    message: str


class ScheduleValidationError(ValueError):
    def __init__(self, errors: list[ScheduleError]):
        self.errors = list(errors)
        super().__init__("; ".join(e.message for e in self.errors) or "invalid schedule")


def as_date(v: Any) -> Optional[date]:
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    if isinstance(v, str):
        s = v.strip()
        try:
            return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
        except ValueError:
            return date.fromisoformat(s[:10])
    raise TypeError(f"not a date: {v!r}")


def validate_schedule(start: Optional[date], end: Optional[date] = None, *, today: Optional[date] = None) -> list[ScheduleError]:
    """
    Check a proposed schedule. Each rule is reported on its own, so a past
    end date that is also before the start yields two errors. Dates equal to
    today are fine.
    """
    today = today or date.today()
    errors: list[ScheduleError] = []

    if start is not None and start < today:
        errors.append(ScheduleError("scheduledStartDate", "Start date cannot be in the past"))

    if end is not None:
        if start is not None and end < start:
            errors.append(ScheduleError("scheduledEndDate", "End date must be on or after the start date"))
        if end < today:
            errors.append(ScheduleError("scheduledEndDate", "End date cannot be in the past"))

    return errors


def compute_estimated_duration(start: Optional[date], end: Optional[date]) -> Optional[int]:
    """Working days spanned, counting both endpoints."""
    if start is None or end is None:
        return None
    return (end - start).days + 1


def resolve_duration(start: Optional[date], end: Optional[date], manual: Optional[int] = None) -> Optional[int]:
    if manual is not None:
        return int(manual)
    return compute_estimated_duration(start, end)


def ensure_valid_schedule(start: Optional[date], end: Optional[date] = None, *, today: Optional[date] = None) -> None:
    errors = validate_schedule(start, end, today=today)
    if errors:
        raise ScheduleValidationError(errors)
