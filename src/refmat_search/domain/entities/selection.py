"""
Domain Entity: SelectionSnapshot

Immutable view of the analyte selection handed to observers.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .identity import ChemicalIdentity
from .material import Analyte


@dataclass(frozen=True)
class SelectionSnapshot:
    """
    Selected analytes and their index-aligned enrichment.

    ``enrichment[i]`` belongs to ``analytes[i]``; both tuples always have
    the same length.
    """

    analytes: tuple[Analyte, ...] = field(default_factory=tuple)
    enrichment: tuple[ChemicalIdentity, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.analytes)

    def pairs(self) -> list[tuple[Analyte, ChemicalIdentity]]:
        return list(zip(self.analytes, self.enrichment, strict=True))
