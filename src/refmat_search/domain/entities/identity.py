"""
Domain Entity: ChemicalIdentity

Compound identity and computed properties returned by the identity
service. Numeric properties are optional: a compound without a computed
value is a valid result, not an error.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field

MAX_SYNONYMS = 10


@dataclass(frozen=True)
class ChemicalIdentity:
    """
    Canonical identity of a compound.

    ``log_p`` is the computed octanol/water partition coefficient (XLogP);
    ``polarity`` is derived from it by sign inversion.
    """

    canonical_name: str
    iupac_name: str = ""
    formula: str = ""
    molecular_weight: float | None = None
    smiles: str = ""
    inchi_key: str = ""
    exact_mass: float | None = None
    polar_surface_area: float | None = None
    log_p: float | None = None
    compound_id: int | None = None
    synonyms: tuple[str, ...] = field(default_factory=tuple)
    image_ref: str | None = None

    @classmethod
    def unknown(cls, name: str) -> ChemicalIdentity:
        """Placeholder paired with a selected analyte whose enrichment failed."""
        return cls(canonical_name=name, iupac_name="Unknown")

    @property
    def is_placeholder(self) -> bool:
        return self.compound_id is None and self.iupac_name == "Unknown"

    @property
    def polarity(self) -> float | None:
        if self.log_p is None:
            return None
        return -self.log_p

    def to_dict(self) -> dict:
        data = dataclasses.asdict(self)
        data["synonyms"] = list(self.synonyms)
        data["polarity"] = self.polarity
        return data
