"""Analyte selection: store and enrichment coordination."""

from .coordinator import EnrichmentCoordinator, EnrichmentReport, diff_selection
from .store import SelectionObserver, SelectionStore

__all__ = [
    "EnrichmentCoordinator",
    "EnrichmentReport",
    "SelectionObserver",
    "SelectionStore",
    "diff_selection",
]
