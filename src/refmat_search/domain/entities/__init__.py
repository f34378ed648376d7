"""Domain entities."""

from .identity import MAX_SYNONYMS, ChemicalIdentity
from .material import Analyte, MaterialDetail, MaterialSummary, parse_numeric_value
from .selection import SelectionSnapshot
from .spectrum import Spectrum, SpectrumDataset, SpectrumPoint

__all__ = [
    "MAX_SYNONYMS",
    "Analyte",
    "ChemicalIdentity",
    "MaterialDetail",
    "MaterialSummary",
    "SelectionSnapshot",
    "Spectrum",
    "SpectrumDataset",
    "SpectrumPoint",
    "parse_numeric_value",
]
