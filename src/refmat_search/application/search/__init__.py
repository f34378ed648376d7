"""Search application services."""

from .aggregator import (
    SearchAggregator,
    SearchOutcome,
    SearchStatus,
    build_term_set,
    merge_material_results,
    no_results_message,
    stamp_origin,
)

__all__ = [
    "SearchAggregator",
    "SearchOutcome",
    "SearchStatus",
    "build_term_set",
    "merge_material_results",
    "no_results_message",
    "stamp_origin",
]
