# backend/tests/test_schedule_validation.py
from __future__ import annotations

from datetime import date

import pytest

from contractor_hub.domain.scheduling import (
    ScheduleValidationError,
    as_date,
    compute_estimated_duration,
    ensure_valid_schedule,
    resolve_duration,
    validate_schedule,
)

TODAY = date(2024, 6, 1)


def _messages(start, end):
    return [e.message for e in validate_schedule(start, end, today=TODAY)]


def test_accepts_today_for_both_dates():
    assert validate_schedule(TODAY, TODAY, today=TODAY) == []


def test_rejects_past_start():
    assert _messages(date(2024, 5, 31), None) == ["Start date cannot be in the past"]


def test_rejects_end_before_start():
    errors = validate_schedule(date(2024, 6, 10), date(2024, 6, 5), today=TODAY)
    assert [(e.field, e.message) for e in errors] == [
        ("scheduledEndDate", "End date must be on or after the start date")
    ]


def test_rejects_past_end_independently():
    msgs = _messages(date(2024, 5, 20), date(2024, 5, 10))
    assert msgs == [
        "Start date cannot be in the past",
        "End date must be on or after the start date",
        "End date cannot be in the past",
    ]


def test_end_without_start_only_checks_past():
    assert _messages(None, date(2024, 6, 2)) == []
    assert _messages(None, date(2024, 5, 2)) == ["End date cannot be in the past"]


def test_duration_is_inclusive_of_both_endpoints():
    assert compute_estimated_duration(date(2024, 6, 1), date(2024, 6, 5)) == 5
    assert compute_estimated_duration(date(2024, 6, 1), date(2024, 6, 1)) == 1
    assert compute_estimated_duration(date(2024, 6, 1), None) is None


def test_manual_duration_overrides_computed():
    assert resolve_duration(date(2024, 6, 1), date(2024, 6, 5), 3) == 3
    assert resolve_duration(date(2024, 6, 1), date(2024, 6, 5)) == 5


def test_ensure_valid_schedule_raises_with_all_errors():
    with pytest.raises(ScheduleValidationError) as ei:
        ensure_valid_schedule(date(2024, 5, 1), date(2024, 4, 1), today=TODAY)
    assert len(ei.value.errors) == 3


def test_as_date_parses_iso_strings():
    assert as_date("2024-06-05") == date(2024, 6, 5)
    assert as_date("2024-06-05T10:00:00Z") == date(2024, 6, 5)
    assert as_date("") is None
