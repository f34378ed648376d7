"""
Domain Entities: MaterialSummary, MaterialDetail, Analyte

Reference materials as published by the repository, and the analytes
(measured constituents) they certify.
Pure domain entities: feed/HTML mapping lives in the repository parsers.
"""

from __future__ import annotations

import dataclasses
import math
import re
from dataclasses import dataclass, field

_QUALIFIER_PREFIX = re.compile(r"[<+]")


@dataclass(frozen=True)
class MaterialSummary:
    """
    One repository search hit.

    ``display_name`` is the short name (title up to the first colon),
    ``searchable_name`` the full feed title.
    """

    id: str
    display_name: str
    searchable_name: str
    abstract_text: str = ""

    @property
    def material_type(self) -> str:
        """Description after the first colon of the title, e.g. "Fish protein CRM"."""
        _, sep, rest = self.searchable_name.partition(":")
        return rest.strip() if sep else ""

    def to_dict(self) -> dict:
        """Serialize to dictionary (auto-tracks new fields)."""
        return dataclasses.asdict(self)


@dataclass(frozen=True)
class Analyte:
    """
    A certified constituent of a reference material.

    Value fields are kept exactly as published (e.g. "<0.05", "12.3").
    Identity for search/selection dedup is the name, case-insensitive;
    see refmat_search.domain.matching.
    """

    name: str
    quantity: str = ""
    value: str = ""
    uncertainty: str = ""
    unit: str = ""
    category: str = ""
    origin_material_name: str | None = None
    origin_material_type: str | None = None

    @property
    def numeric_value(self) -> float:
        """Value as a float for ordering only; unparseable values sort first."""
        return parse_numeric_value(self.value)

    def with_origin(self, material_name: str | None, material_type: str | None) -> Analyte:
        """Copy stamped with the material it was published in."""
        return dataclasses.replace(
            self,
            origin_material_name=material_name,
            origin_material_type=material_type,
        )

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


@dataclass
class MaterialDetail:
    """Full record of one reference material, fetched from its detail page."""

    title: str
    abstract_text: str = ""
    material_type: str = ""
    doi: str | None = None
    publication_date: str | None = None
    analytes: list[Analyte] = field(default_factory=list)

    @property
    def has_analyte_data(self) -> bool:
        return bool(self.analytes)

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


def parse_numeric_value(value: str | None) -> float:
    """
    Parse a published value string, ignoring ``<`` and ``+`` qualifiers.

    Never raises: anything unparseable (including NaN) maps to -inf.
    """
    if not value:
        return -math.inf
    cleaned = _QUALIFIER_PREFIX.sub("", value).strip()
    try:
        number = float(cleaned)
    except ValueError:
        return -math.inf
    return -math.inf if math.isnan(number) else number
