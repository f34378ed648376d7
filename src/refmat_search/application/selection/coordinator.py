"""
EnrichmentCoordinator - Keeps the SelectionStore in step with the UI selection

Each time the user's row selection changes, the coordinator:

1. Diffs the new selection against the previous one.
2. Removes deselected entries from the store straight away.
3. Resolves, in parallel and once per name, every selected analyte whose
   name the store does not hold (through the identity cache); a failed
   lookup yields a ChemicalIdentity.unknown placeholder.
4. Drops analytes the user deselected while enrichment was running and
   commits the rest with a single SelectionStore.add.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from refmat_search.domain.entities import ChemicalIdentity
from refmat_search.domain.matching import contains_entry, name_key
from refmat_search.shared.async_utils import gather_with_errors

if TYPE_CHECKING:
    from refmat_search.domain.entities import Analyte
    from refmat_search.infrastructure.cache import IdentityCache
    from refmat_search.infrastructure.identity import IdentityResolver

    from .store import SelectionStore

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentReport:
    """Names affected by one selection change."""

    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


def diff_selection(
    previous: Sequence[Analyte],
    current: Sequence[Analyte],
) -> tuple[list[Analyte], list[Analyte]]:
    """
    Newly selected and deselected entries between two selections.

    New entries are compared by name (case-insensitive), deselected ones
    by reference or full equality.
    """
    previous_names = {name_key(a.name) for a in previous}
    added = [a for a in current if name_key(a.name) not in previous_names]
    removed = [a for a in previous if not contains_entry(current, a)]
    return added, removed


class EnrichmentCoordinator:
    """
    Bridges selection changes to the identity service and the store.

    Usage:
        coordinator = EnrichmentCoordinator(resolver, store, cache)
        report = await coordinator.on_selection_changed(selected_rows)
    """

    def __init__(
        self,
        resolver: IdentityResolver,
        store: SelectionStore,
        identity_cache: IdentityCache[ChemicalIdentity] | None = None,
    ) -> None:
        self._resolver = resolver
        self._store = store
        self._identity_cache = identity_cache
        self._previous: list[Analyte] = []

    @property
    def previous_selection(self) -> tuple[Analyte, ...]:
        return tuple(self._previous)

    def reset(self) -> None:
        """Forget the previous selection (a different material is shown)."""
        self._previous = []

    async def on_selection_changed(self, new_selection: Sequence[Analyte]) -> EnrichmentReport:
        """Apply one selection change to the store."""
        _, removed = diff_selection(self._previous, new_selection)
        self._previous = list(new_selection)
        report = EnrichmentReport()

        if removed:
            self._store.remove(removed)
            report.removed = [a.name for a in removed]

        # Computed after removal: a deselected row may leave a same-name row
        # from another material selected but no longer held by the store.
        pending = self._unheld(new_selection)
        if not pending:
            return report

        results = await gather_with_errors(
            *(self._resolve(a.name) for a in pending),
            return_exceptions=True,
        )

        analytes: list[Analyte] = []
        identities: list[ChemicalIdentity] = []
        for analyte, result in zip(pending, results, strict=True):
            if not contains_entry(self._previous, analyte):
                logger.debug(f"Dropping {analyte.name!r}: deselected during enrichment")
                continue
            if self._store.contains(analyte.name):
                # Committed by an overlapping selection change
                continue
            if isinstance(result, Exception):
                logger.warning(f"Enrichment failed for {analyte.name!r}: {result}")
                report.failed.append(analyte.name)
                result = ChemicalIdentity.unknown(analyte.name)
            analytes.append(analyte)
            identities.append(result)

        if analytes:
            self._store.add(analytes, identities)
            report.added = [a.name for a in analytes]

        logger.info(
            f"Selection changed: +{len(report.added)} -{len(report.removed)} "
            f"({len(report.failed)} without enrichment)"
        )
        return report

    def _unheld(self, selection: Sequence[Analyte]) -> list[Analyte]:
        """Selected entries whose name the store does not hold, one per name."""
        seen: set[str] = set()
        pending: list[Analyte] = []
        for analyte in selection:
            key = name_key(analyte.name)
            if key in seen or self._store.contains(analyte.name):
                continue
            seen.add(key)
            pending.append(analyte)
        return pending

    async def _resolve(self, name: str) -> ChemicalIdentity:
        if self._identity_cache is not None:
            return await self._identity_cache.get_or_fetch(name, lambda: self._resolver.resolve(name))
        return await self._resolver.resolve(name)
