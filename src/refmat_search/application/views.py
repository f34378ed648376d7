"""
Analyte views: filtering, sorting, pagination and property points.

Pure data helpers for the presentation layer. Nothing here renders.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from refmat_search.shared.exceptions import InvalidParameterError

T = TypeVar("T")

if TYPE_CHECKING:
    from refmat_search.domain.entities import Analyte, ChemicalIdentity

DEFAULT_ITEMS_PER_PAGE = 20

MOLECULAR_WEIGHT_RANGE = (0.0, 2500.0)
POLARITY_RANGE = (-10.0, 10.0)

_FILTER_FIELDS = (
    "name",
    "quantity",
    "value",
    "uncertainty",
    "unit",
    "category",
    "origin_material_name",
    "origin_material_type",
)

_SORT_KEYS: dict[str, Callable[[Analyte], Any]] = {
    "name": lambda a: a.name.casefold(),
    "quantity": lambda a: a.quantity.casefold(),
    "value": lambda a: a.numeric_value,
    "uncertainty": lambda a: a.uncertainty.casefold(),
    "unit": lambda a: a.unit.casefold(),
    "category": lambda a: a.category.casefold(),
    "origin_material_name": lambda a: (a.origin_material_name or "").casefold(),
    "origin_material_type": lambda a: (a.origin_material_type or "").casefold(),
}

SORT_COLUMNS = tuple(_SORT_KEYS)


def filter_analytes(analytes: Sequence[Analyte], text: str) -> list[Analyte]:
    """Analytes with ``text`` in any displayed column (case-insensitive)."""
    needle = (text or "").strip().casefold()
    if not needle:
        return list(analytes)
    return [
        a for a in analytes if any(needle in (getattr(a, f) or "").casefold() for f in _FILTER_FIELDS)
    ]


def sort_analytes(analytes: Sequence[Analyte], column: str, ascending: bool = True) -> list[Analyte]:
    """
    Stable sort by one column.

    ``value`` sorts numerically; unparseable values come first when
    ascending.

    Raises:
        InvalidParameterError: Unknown column
    """
    key = _SORT_KEYS.get(column)
    if key is None:
        raise InvalidParameterError("column", column, f"one of {', '.join(SORT_COLUMNS)}")
    return sorted(analytes, key=key, reverse=not ascending)


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a paginated list. ``page`` is 1-based."""

    items: list[T]
    page: int
    total_pages: int
    total_items: int

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def paginate(items: Sequence[T], page: int = 1, per_page: int = DEFAULT_ITEMS_PER_PAGE) -> Page[T]:
    """
    Slice ``items`` into the requested page.

    Pages below 1 clamp to the first page, pages past the end to the last.
    An empty list has a single empty page.

    Raises:
        InvalidParameterError: per_page is not positive
    """
    if per_page < 1:
        raise InvalidParameterError("per_page", per_page, "a positive integer")

    total_items = len(items)
    total_pages = max(1, math.ceil(total_items / per_page))
    page = min(max(1, page), total_pages)
    start = (page - 1) * per_page
    return Page(
        items=list(items[start : start + per_page]),
        page=page,
        total_pages=total_pages,
        total_items=total_items,
    )


@dataclass(frozen=True)
class PropertyPoint:
    """One compound on the molecular weight vs. polarity plot."""

    name: str
    molecular_weight: float
    polarity: float


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    return min(max(value, low), high)


def property_points(
    identities: Sequence[ChemicalIdentity],
    sort_by: str | None = None,
    ascending: bool = True,
) -> list[PropertyPoint]:
    """
    Plot points for identities that have both molecular weight and polarity.

    Values are clamped to the plot ranges. ``sort_by`` is one of
    ``name``, ``molecular_weight`` or ``polarity``; None keeps input order.
    """
    points = [
        PropertyPoint(
            name=identity.canonical_name,
            molecular_weight=_clamp(identity.molecular_weight, MOLECULAR_WEIGHT_RANGE),
            polarity=_clamp(identity.polarity, POLARITY_RANGE),
        )
        for identity in identities
        if identity.molecular_weight is not None and identity.polarity is not None
    ]

    if sort_by is None:
        return points
    if sort_by == "name":
        return sorted(points, key=lambda p: p.name.casefold(), reverse=not ascending)
    if sort_by in ("molecular_weight", "polarity"):
        return sorted(points, key=lambda p: getattr(p, sort_by), reverse=not ascending)
    raise InvalidParameterError("sort_by", sort_by, "name, molecular_weight or polarity")
