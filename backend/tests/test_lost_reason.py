# backend/tests/test_lost_reason.py
from __future__ import annotations

import pytest

from contractor_hub.domain.lost_reason import LOST_REASONS, LostReasonError, validate_lost_reason


def test_seven_reasons_including_other():
    assert len(LOST_REASONS) == 7
    assert "other" in LOST_REASONS


@pytest.mark.parametrize("reason", [None, ""])
def test_rejects_missing_reason(reason):
    with pytest.raises(LostReasonError, match="Please select a reason"):
        validate_lost_reason(reason, "details")


@pytest.mark.parametrize("details", [None, "", "   \n\t"])
def test_other_requires_details(details):
    with pytest.raises(LostReasonError):
        validate_lost_reason("other", details)


def test_rejects_unknown_reason():
    with pytest.raises(LostReasonError):
        validate_lost_reason("weather", None)


def test_accepts_listed_reason_without_details():
    lost = validate_lost_reason("chose_competitor", "  ")
    assert lost.reason == "chose_competitor"
    assert lost.details is None
    assert lost.label == "Chose a different contractor"


def test_other_with_details_is_stripped():
    lost = validate_lost_reason("other", "  moved out of state ")
    assert lost.details == "moved out of state"
