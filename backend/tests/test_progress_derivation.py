# backend/tests/test_progress_derivation.py
from __future__ import annotations

import pytest

from contractor_hub.domain.progress import (
    AreaQuote,
    FlatRateQuote,
    TurnkeyQuote,
    derive_progress_items,
    progress_key,
    progress_percent,
    quote_shape,
    rebuild_flat_rate_items,
)


def _job(quote, area_progress=None):
    return {"id": 1, "quote": quote, "areaProgress": area_progress or {}}


def test_breakdown_reconstruction_groups_by_category():
    breakdown = [
        {"category": "Interior", "itemKey": "doors", "quantity": 3},
        {"category": "exterior", "itemKey": "windows", "quantity": 5},
    ]
    assert rebuild_flat_rate_items(breakdown) == {"interior": {"doors": 3}, "exterior": {"windows": 5}}

    quote = {"pricingScheme": {"type": "flat_rate_unit"}, "flatRateItems": {}, "breakdown": breakdown}
    summary = derive_progress_items(_job(quote))
    assert [(i.key, i.quantity) for i in summary.items] == [("interior_doors", 3), ("exterior_windows", 5)]
    assert [i.name for i in summary.items] == ["Interior Doors", "Windows"]
    assert {i.category for i in summary.items} == {"Interior", "Exterior"}


def test_breakdown_missing_category_defaults_to_interior_and_sums():
    rows = [
        {"itemKey": "closets", "quantity": 1},
        {"category": "INTERIOR", "itemKey": "closets", "quantity": 2},
        {"category": "garage", "itemKey": "floor", "quantity": 9},
    ]
    assert rebuild_flat_rate_items(rows) == {"interior": {"closets": 3}, "exterior": {}}


def test_flat_rate_items_take_precedence_over_breakdown():
    quote = {
        "pricingSchemeType": "flat_rate_unit",
        "flatRateItems": {"interior": {"cabinets": 2, "doors": 0}, "exterior": {"mystery": 1}},
        "breakdown": [{"category": "interior", "itemKey": "doors", "quantity": 7}],
    }
    summary = derive_progress_items(_job(quote))
    assert [i.key for i in summary.items] == ["interior_cabinets", "exterior_mystery"]
    # unknown keys fall back to the raw key as display name
    assert summary.items[1].name == "mystery"
    assert all(i.unit == "unit(s)" for i in summary.items)


@pytest.mark.parametrize("scheme", ["turnkey", "sqft_turnkey"])
def test_turnkey_is_one_whole_house_item(scheme):
    summary = derive_progress_items(_job({"pricingScheme": {"type": scheme}, "areas": [{"id": 9}]}))
    assert summary.total_count == 1
    item = summary.items[0]
    assert (item.key, item.name, item.quantity, item.unit) == ("whole_house", "Whole House", 1, "project")
    assert summary.unit_noun == "project"


def test_area_items_use_name_or_surface_type():
    quote = {
        "pricingScheme": {"type": "production_based"},
        "areas": [{"id": 11, "name": "Bedroom", "surfaceType": "walls"}, {"id": 12, "surfaceType": "ceiling"}],
    }
    summary = derive_progress_items(_job(quote, {"12": {"status": "completed"}}))
    assert [(i.key, i.name, i.area_id) for i in summary.items] == [("11", "Bedroom", 11), ("12", "ceiling", 12)]
    assert [i.status for i in summary.items] == ["not_started", "completed"]
    assert summary.completed_count == 1
    assert summary.progress_percent == 50


@pytest.mark.parametrize(
    "quote, expected_empty",
    [
        ({"pricingScheme": {"type": "flat_rate_unit"}, "flatRateItems": {}, "breakdown": []}, True),
        ({"pricingScheme": {"type": "flat_rate_unit"}, "flatRateItems": {"interior": {"doors": 0}}}, True),
        ({"pricingScheme": {"type": "flat_rate_unit"}, "flatRateItems": {"exterior": {"windows": 1}}}, False),
        ({"pricingScheme": {"type": "rate_based_sqft"}, "areas": []}, True),
        ({"pricingScheme": {"type": "rate_based_sqft"}, "areas": [{"id": 1}]}, False),
        ({"pricingScheme": {"type": "turnkey"}}, False),
    ],
)
def test_items_non_empty_iff_quote_has_qualifying_entries(quote, expected_empty):
    summary = derive_progress_items(_job(quote))
    assert summary.is_empty is expected_empty
    assert (summary.total_count == 0) is expected_empty


def test_job_without_quote_is_empty_not_zero_percent():
    summary = derive_progress_items({"id": 1})
    assert summary.is_empty
    assert summary.progress_percent == 0
    assert summary.to_dict()["isEmpty"] is True


@pytest.mark.parametrize(
    "completed, total, expected",
    [(0, 0, 0), (0, 3, 0), (1, 3, 33), (2, 3, 67), (1, 8, 13), (3, 3, 100), (1, 2, 50)],
)
def test_progress_percent_is_rounded_integer_in_range(completed, total, expected):
    pct = progress_percent(completed, total)
    assert isinstance(pct, int)
    assert 0 <= pct <= 100
    assert pct == expected


def test_quote_shape_is_tagged_by_scheme_type():
    assert isinstance(quote_shape({"pricingSchemeType": "flat_rate_unit"}), FlatRateQuote)
    assert isinstance(quote_shape({"pricingSchemeType": "sqft_turnkey"}), TurnkeyQuote)
    assert isinstance(quote_shape({"pricingSchemeType": "hourly_time_materials"}), AreaQuote)


def test_progress_key_requires_exactly_one_identifier():
    assert progress_key("interior_doors", None) == "interior_doors"
    assert progress_key(None, 7) == "7"
    with pytest.raises(ValueError):
        progress_key(None, None)
    with pytest.raises(ValueError):
        progress_key("interior_doors", 7)
