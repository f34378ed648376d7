"""
Analyte comparison contracts.

Two distinct notions of "the same analyte" are used in the pipeline:

- ``same_analyte``: names equal, case-insensitive. Used to deduplicate
  analytes coming from different sources and to make re-adding a selected
  analyte a no-op.
- ``same_selected_entry``: the very same record (reference identity or full
  structural equality). Used when removing entries from the selection, so
  that deselecting "Lead" from one material does not drop a differently
  sourced "Lead" record.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from refmat_search.domain.entities import Analyte


def name_key(name: str) -> str:
    """Case-insensitive comparison key for analyte and compound names."""
    return name.strip().casefold()


def same_analyte(a: Analyte, b: Analyte) -> bool:
    return name_key(a.name) == name_key(b.name)


def same_selected_entry(a: Analyte, b: Analyte) -> bool:
    return a is b or a == b


def contains_analyte(analytes: Iterable[Analyte], target: Analyte) -> bool:
    """Whether any entry matches ``target`` under ``same_analyte``."""
    return any(same_analyte(a, target) for a in analytes)


def contains_entry(analytes: Iterable[Analyte], target: Analyte) -> bool:
    """Whether any entry matches ``target`` under ``same_selected_entry``."""
    return any(same_selected_entry(a, target) for a in analytes)
