"""
SelectionStore - Process-wide Analyte Selection

Holds the analytes the user has selected together with their chemical
enrichment, as two index-aligned sequences: ``enrichment[i]`` always
belongs to ``selected_analytes[i]``.

Mutations run under a re-entrant lock. Observers are called after the
mutation with a SelectionSnapshot taken under that lock, so no observer
ever sees sequences of different lengths.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from refmat_search.domain.entities import SelectionSnapshot
from refmat_search.domain.matching import contains_analyte, contains_entry, name_key
from refmat_search.shared.exceptions import ErrorContext, InconsistentStateError

if TYPE_CHECKING:
    from refmat_search.domain.entities import Analyte, ChemicalIdentity

logger = logging.getLogger(__name__)

SelectionObserver = Callable[[SelectionSnapshot], None]


class SelectionStore:
    """
    Selected analytes and their aligned enrichment.

    Usage:
        store = SelectionStore()
        unsubscribe = store.subscribe(lambda snap: print(len(snap)))
        store.add([lead], [lead_identity])
        store.remove([lead])
        unsubscribe()
    """

    def __init__(self) -> None:
        self._analytes: list[Analyte] = []
        self._enrichment: list[ChemicalIdentity] = []
        self._observers: list[SelectionObserver] = []
        self._lock = threading.RLock()

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def selected_analytes(self) -> tuple[Analyte, ...]:
        with self._lock:
            return tuple(self._analytes)

    @property
    def enrichment(self) -> tuple[ChemicalIdentity, ...]:
        with self._lock:
            return tuple(self._enrichment)

    def snapshot(self) -> SelectionSnapshot:
        with self._lock:
            return SelectionSnapshot(tuple(self._analytes), tuple(self._enrichment))

    def contains(self, name: str) -> bool:
        """Whether an analyte with this name (case-insensitive) is selected."""
        key = name_key(name)
        with self._lock:
            return any(name_key(a.name) == key for a in self._analytes)

    def enrichment_for(self, name: str) -> ChemicalIdentity | None:
        """Enrichment of the selected analyte with this name, if any."""
        key = name_key(name)
        with self._lock:
            for analyte, identity in zip(self._analytes, self._enrichment, strict=True):
                if name_key(analyte.name) == key:
                    return identity
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._analytes)

    # =========================================================================
    # Mutations
    # =========================================================================

    def add(self, analytes: Sequence[Analyte], identities: Sequence[ChemicalIdentity]) -> int:
        """
        Append analyte/enrichment pairs, skipping names already selected.

        Returns:
            Number of pairs appended

        Raises:
            InconsistentStateError: The two sequences differ in length
        """
        if len(analytes) != len(identities):
            raise InconsistentStateError(
                f"Cannot pair {len(analytes)} analytes with {len(identities)} identities",
                context=ErrorContext(operation="add"),
            )

        with self._lock:
            added = 0
            for analyte, identity in zip(analytes, identities, strict=True):
                if contains_analyte(self._analytes, analyte):
                    logger.debug(f"Skipping already selected analyte {analyte.name!r}")
                    continue
                self._analytes.append(analyte)
                self._enrichment.append(identity)
                added += 1
            self._check_aligned()
            snapshot = self.snapshot() if added else None

        if snapshot is not None:
            self._notify(snapshot)
        return added

    def remove(self, analytes: Sequence[Analyte]) -> int:
        """
        Remove the given entries and their aligned enrichment.

        Entries match by reference or full equality, not by name.

        Returns:
            Number of entries removed
        """
        with self._lock:
            keep = [not contains_entry(analytes, a) for a in self._analytes]
            removed = keep.count(False)
            if removed:
                self._analytes = [a for a, k in zip(self._analytes, keep, strict=True) if k]
                self._enrichment = [e for e, k in zip(self._enrichment, keep, strict=True) if k]
            self._check_aligned()
            snapshot = self.snapshot() if removed else None

        if snapshot is not None:
            self._notify(snapshot)
        return removed

    def remove_by_name(self, name: str) -> int:
        """Remove every selected analyte with this name (case-insensitive)."""
        key = name_key(name)
        with self._lock:
            matches = [a for a in self._analytes if name_key(a.name) == key]
        return self.remove(matches) if matches else 0

    def clear(self) -> None:
        """Empty the selection. Observers are always notified."""
        with self._lock:
            self._analytes.clear()
            self._enrichment.clear()
            snapshot = self.snapshot()
        self._notify(snapshot)

    def _check_aligned(self) -> None:
        if len(self._analytes) != len(self._enrichment):
            raise InconsistentStateError(
                f"Selection out of alignment: {len(self._analytes)} analytes, "
                f"{len(self._enrichment)} enrichment entries"
            )

    # =========================================================================
    # Observers
    # =========================================================================

    def subscribe(self, callback: SelectionObserver) -> Callable[[], None]:
        """
        Register a change observer.

        Returns:
            Function that unregisters the observer
        """
        with self._lock:
            self._observers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._observers:
                    self._observers.remove(callback)

        return unsubscribe

    def _notify(self, snapshot: SelectionSnapshot) -> None:
        with self._lock:
            observers = list(self._observers)
        for observer in observers:
            try:
                observer(snapshot)
            except Exception:
                logger.exception(f"Selection observer {observer!r} failed")
