# backend/contractor_hub/domain/progress.py
"""
Job progress projection.

A quote carries its line items in one of three shapes depending on the
pricing scheme that produced it:

  - flat_rate_unit       -> flat_rate_items {interior: {key: qty}, exterior: {...}}
                            (older quotes only have breakdown rows)
  - turnkey/sqft_turnkey -> the whole house is a single trackable item
  - anything else        -> areas[]

Each shape is parsed into its own variant and projected by its own function,
then joined with job.area_progress to give a uniform, status-annotated item
list. Everything here is pure: it reads a Job (ORM row or the camelCase JSON
the API returns) and touches nothing.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Union

AREA_STATUSES: tuple[str, ...] = ("not_started", "prepped", "in_progress", "touch_ups", "completed")
DEFAULT_AREA_STATUS = "not_started"

FLAT_RATE_SCHEME = "flat_rate_unit"
TURNKEY_SCHEMES: frozenset[str] = frozenset({"turnkey", "sqft_turnkey"})

WHOLE_HOUSE_KEY = "whole_house"

INTERIOR_ITEM_LABELS: dict[str, str] = {
    "doors": "Interior Doors",
    "smallRooms": "Small Rooms",
    "mediumRooms": "Medium Rooms",
    "largeRooms": "Large Rooms",
    "closets": "Closets",
    "accentWalls": "Accent Walls",
    "cabinets": "Cabinets",
    "cabinetFaces": "Cabinet Faces",
    "cabinetDoors": "Cabinet Doors",
}

EXTERIOR_ITEM_LABELS: dict[str, str] = {
    "doors": "Doors",
    "windows": "Windows",
    "garageDoor1Car": "1-Car Garage Door",
    "garageDoor2Car": "2-Car Garage Door",
    "garageDoor3Car": "3-Car Garage Door",
    "shutters": "Shutters",
}

_CATEGORY_LABELS = {
    "interior": ("Interior", INTERIOR_ITEM_LABELS),
    "exterior": ("Exterior", EXTERIOR_ITEM_LABELS),
}


# -----------------------------
# Quote shape variants
# -----------------------------
@dataclass(frozen=True)
class FlatRateQuote:
    interior: dict[str, float] = field(default_factory=dict)
    exterior: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class TurnkeyQuote:
    scheme_type: str = "turnkey"


@dataclass(frozen=True)
class AreaQuote:
    areas: tuple[Mapping[str, Any], ...] = ()


QuoteShape = Union[FlatRateQuote, TurnkeyQuote, AreaQuote]


@dataclass(frozen=True)
class ProgressItem:
    key: str
    name: str
    category: Optional[str]
    quantity: float
    unit: Optional[str]
    status: str = DEFAULT_AREA_STATUS
    area_id: Optional[Any] = None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "category": self.category,
            "quantity": self.quantity,
            "unit": self.unit,
            "status": self.status,
            "areaId": self.area_id,
        }


@dataclass(frozen=True)
class ProgressSummary:
    items: tuple[ProgressItem, ...]
    completed_count: int
    total_count: int
    unit_noun: str = "areas"

    @property
    def is_empty(self) -> bool:
        # "Nothing to track" is a different answer from "0% done".
        return self.total_count == 0

    @property
    def progress_percent(self) -> int:
        return progress_percent(self.completed_count, self.total_count)

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [i.to_dict() for i in self.items],
            "completedCount": self.completed_count,
            "totalCount": self.total_count,
            "progressPercent": self.progress_percent,
            "isEmpty": self.is_empty,
            "unitNoun": self.unit_noun,
        }


def progress_percent(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    # round-half-up; Python's round() would send 12.5 to 12
    pct = int(math.floor(100.0 * completed / total + 0.5))
    return max(0, min(100, pct))


# -----------------------------
# Input normalization
# -----------------------------
def _read(obj: Any, snake: str, camel: Optional[str] = None, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        if snake in obj:
            return obj[snake]
        if camel and camel in obj:
            return obj[camel]
        return default
    return getattr(obj, snake, default)


def _as_qty(v: Any) -> float:
    try:
        return float(v or 0)
    except (TypeError, ValueError):
        return 0.0


def _qty_out(q: float) -> float | int:
    return int(q) if float(q).is_integer() else q


def scheme_type_of(quote: Any) -> Optional[str]:
    """
    The pricing scheme type of a quote.

    ORM rows keep a snapshot in pricing_scheme_type; API payloads nest it as
    pricingScheme.type.
    """
    t = _read(quote, "pricing_scheme_type", "pricingSchemeType")
    if t:
        return str(t)
    scheme = _read(quote, "pricing_scheme", "pricingScheme")
    t = _read(scheme, "type")
    return str(t) if t else None


def rebuild_flat_rate_items(breakdown: Any) -> dict[str, dict[str, float]]:
    """
    Regroup breakdown rows into {interior: {itemKey: qty}, exterior: {...}}.

    Category matching is case-insensitive and a missing category counts as
    interior. Quantities for a repeated itemKey are summed. Rows without an
    itemKey or with any other category are ignored.
    """
    out: dict[str, dict[str, float]] = {"interior": {}, "exterior": {}}
    for row in breakdown or []:
        category = str(_read(row, "category", default=None) or "interior").strip().lower()
        item_key = _read(row, "item_key", "itemKey")
        if category not in out or not item_key:
            continue
        bucket = out[category]
        bucket[str(item_key)] = bucket.get(str(item_key), 0) + _as_qty(_read(row, "quantity"))
    return out


def quote_shape(quote: Any) -> QuoteShape:
    scheme = scheme_type_of(quote)

    if scheme == FLAT_RATE_SCHEME:
        items = _read(quote, "flat_rate_items", "flatRateItems") or {}
        interior = dict(_read(items, "interior") or {})
        exterior = dict(_read(items, "exterior") or {})
        if not interior and not exterior:
            breakdown = _read(quote, "breakdown") or []
            if breakdown:
                rebuilt = rebuild_flat_rate_items(breakdown)
                interior, exterior = rebuilt["interior"], rebuilt["exterior"]
        return FlatRateQuote(interior=interior, exterior=exterior)

    if scheme in TURNKEY_SCHEMES:
        return TurnkeyQuote(scheme_type=scheme)

    return AreaQuote(areas=tuple(_read(quote, "areas") or ()))


# -----------------------------
# Projections (one per variant)
# -----------------------------
def _project_flat_rate(shape: FlatRateQuote) -> list[ProgressItem]:
    items: list[ProgressItem] = []
    for category, counts in (("interior", shape.interior), ("exterior", shape.exterior)):
        display, labels = _CATEGORY_LABELS[category]
        for key, raw in counts.items():
            qty = _as_qty(raw)
            if qty <= 0:
                continue
            items.append(
                ProgressItem(
                    key=f"{category}_{key}",
                    name=labels.get(key, key),
                    category=display,
                    quantity=_qty_out(qty),
                    unit="unit(s)",
                )
            )
    return items


def _project_turnkey(shape: TurnkeyQuote) -> list[ProgressItem]:
    return [
        ProgressItem(
            key=WHOLE_HOUSE_KEY,
            name="Whole House",
            category="Complete Project",
            quantity=1,
            unit="project",
        )
    ]


def _project_areas(shape: AreaQuote) -> list[ProgressItem]:
    items: list[ProgressItem] = []
    for idx, area in enumerate(shape.areas):
        area_id = _read(area, "id")
        surface = _read(area, "surface_type", "surfaceType")
        name = _read(area, "name") or surface or f"Area {idx + 1}"
        items.append(
            ProgressItem(
                key=str(area_id) if area_id is not None else str(idx),
                name=str(name),
                category=surface,
                quantity=_read(area, "quantity"),
                unit=_read(area, "unit"),
                area_id=area_id,
            )
        )
    return items


_PROJECTORS: dict[type, Callable[[Any], list[ProgressItem]]] = {
    FlatRateQuote: _project_flat_rate,
    TurnkeyQuote: _project_turnkey,
    AreaQuote: _project_areas,
}

_UNIT_NOUNS: dict[type, str] = {
    FlatRateQuote: "items",
    TurnkeyQuote: "project",
    AreaQuote: "areas",
}


def project_items(shape: QuoteShape) -> list[ProgressItem]:
    return _PROJECTORS[type(shape)](shape)


def _status_for(area_progress: Any, key: str) -> str:
    entry = _read(area_progress, key) if area_progress else None
    status = _read(entry, "status") if entry else None
    return str(status) if status else DEFAULT_AREA_STATUS


def derive_progress_items(job: Any) -> ProgressSummary:
    """
    Project a job (and its quote) into trackable items with status.

    Works on a Job row or on the job JSON returned by the API. A job without a
    quote yields an empty summary.
    """
    quote = _read(job, "quote")
    if quote is None:
        return ProgressSummary(items=(), completed_count=0, total_count=0)

    shape = quote_shape(quote)
    area_progress = _read(job, "area_progress", "areaProgress") or {}

    items = tuple(
        ProgressItem(
            key=i.key,
            name=i.name,
            category=i.category,
            quantity=i.quantity,
            unit=i.unit,
            status=_status_for(area_progress, i.key),
            area_id=i.area_id,
        )
        for i in project_items(shape)
    )
    completed = sum(1 for i in items if i.is_completed)
    return ProgressSummary(
        items=items,
        completed_count=completed,
        total_count=len(items),
        unit_noun=_UNIT_NOUNS[type(shape)],
    )


def progress_key(item_key: Optional[str], area_id: Optional[Any]) -> str:
    """
    The area_progress key for an update: exactly one of item_key / area_id.
    """
    has_item = item_key is not None and str(item_key) != ""
    has_area = area_id is not None and str(area_id) != ""
    if has_item == has_area:
        raise ValueError("Provide exactly one of itemKey or areaId")
    return str(item_key) if has_item else str(area_id)


def ensure_area_status(status: str) -> str:
    if status not in AREA_STATUSES:
        raise ValueError(f"Invalid area status: {status!r}")
    return status
