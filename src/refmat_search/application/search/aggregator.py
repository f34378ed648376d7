"""
SearchAggregator - Alias-Expanded Reference Material Search

Turns one user query into a deduplicated material list plus a flattened,
provenance-tagged analyte list:

1. Expand the query into a term set via the identity service
   (canonical name + synonyms). Identity failure falls back to the query.
2. Fan out one repository search per term; merge results by material id.
3. Fan out one detail fetch per unique material; stamp each analyte with
   the material it came from.
4. Offer the canonical name as a "did you mean" suggestion.

Failures local to one term or one material are logged and skipped. Only an
empty overall result is reported to the caller, and as a status, not an
exception.

Every call takes a new generation token; a call overtaken by a newer one
stops at its next join point and reports SUPERSEDED without touching
``latest``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from refmat_search.domain.matching import name_key
from refmat_search.shared.async_utils import batch_process, gather_with_errors
from refmat_search.shared.exceptions import (
    InvalidQueryError,
    NotFoundError,
    UpstreamError,
)

if TYPE_CHECKING:
    from refmat_search.domain.entities import (
        Analyte,
        ChemicalIdentity,
        MaterialDetail,
        MaterialSummary,
    )
    from refmat_search.infrastructure.cache import IdentityCache
    from refmat_search.infrastructure.identity import IdentityResolver
    from refmat_search.infrastructure.repository import RepositorySearchClient

logger = logging.getLogger(__name__)


class SearchStatus(str, Enum):
    """How a search ended."""

    OK = "ok"
    NO_RESULTS_FOR_IDENTITY = "no_results_for_identity"  # identity matched, repository empty
    NO_RESULTS = "no_results"  # no identity match and no direct hits
    SUPERSEDED = "superseded"  # a newer search started before this one finished


@dataclass
class SearchOutcome:
    """Result of one SearchAggregator.search call."""

    query: str
    status: SearchStatus = SearchStatus.OK
    materials: list[MaterialSummary] = field(default_factory=list)
    analytes: list[Analyte] = field(default_factory=list)
    suggestion: str | None = None
    terms: list[str] = field(default_factory=list)
    identity: ChemicalIdentity | None = None
    failed_terms: list[str] = field(default_factory=list)
    failed_materials: list[str] = field(default_factory=list)
    message: str = ""
    generation: int = 0
    elapsed_ms: float = 0.0

    @property
    def has_results(self) -> bool:
        return self.status is SearchStatus.OK

    @property
    def is_superseded(self) -> bool:
        return self.status is SearchStatus.SUPERSEDED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "query": self.query,
            "status": self.status.value,
            "message": self.message,
            "suggestion": self.suggestion,
            "terms": self.terms,
            "materials": [m.to_dict() for m in self.materials],
            "analytes": [a.to_dict() for a in self.analytes],
            "failed_terms": self.failed_terms,
            "failed_materials": self.failed_materials,
            "generation": self.generation,
            "elapsed_ms": round(self.elapsed_ms, 1),
        }


def no_results_message(query: str, identity: ChemicalIdentity | None) -> str:
    """User-facing explanation for an empty search."""
    if identity is not None:
        return (
            f"'{query}' was identified as {identity.canonical_name}, but no reference "
            f"materials were found for it or its synonyms"
        )
    return f"No reference materials found for '{query}'"


class _Superseded(Exception):
    """Internal: a newer search has started."""


class SearchAggregator:
    """
    Orchestrates IdentityResolver + RepositorySearchClient.

    Usage:
        aggregator = SearchAggregator(repository, resolver)
        outcome = await aggregator.search("aspirin")
        if outcome.suggestion:
            ...  # offer "did you mean {outcome.suggestion}?"
    """

    def __init__(
        self,
        repository: RepositorySearchClient,
        resolver: IdentityResolver,
        identity_cache: IdentityCache[ChemicalIdentity] | None = None,
        detail_batch_size: int = 10,
    ) -> None:
        self._repository = repository
        self._resolver = resolver
        self._identity_cache = identity_cache
        self._detail_batch_size = detail_batch_size
        self._generation = 0
        self._latest: SearchOutcome | None = None

    @property
    def generation(self) -> int:
        """Token of the most recently started search."""
        return self._generation

    @property
    def latest(self) -> SearchOutcome | None:
        """Outcome of the most recent search that was not superseded."""
        return self._latest

    def _check_current(self, generation: int) -> None:
        if generation != self._generation:
            raise _Superseded

    async def search(self, query: str) -> SearchOutcome:
        """
        Run the full pipeline for one query.

        Raises:
            InvalidQueryError: Query is blank
        """
        query = (query or "").strip()
        if not query:
            raise InvalidQueryError(query)

        self._generation += 1
        generation = self._generation
        start = time.perf_counter()
        outcome = SearchOutcome(query=query, generation=generation)

        try:
            await self._run(outcome, generation)
        except _Superseded:
            logger.info(f"Search {generation} for {query!r} superseded by search {self._generation}")
            outcome.status = SearchStatus.SUPERSEDED
            outcome.materials = []
            outcome.analytes = []
            outcome.message = "Superseded by a newer search"
            outcome.elapsed_ms = (time.perf_counter() - start) * 1000
            return outcome

        outcome.elapsed_ms = (time.perf_counter() - start) * 1000
        self._latest = outcome
        logger.info(
            f"Search {query!r}: {len(outcome.terms)} terms, {len(outcome.materials)} materials, "
            f"{len(outcome.analytes)} analytes ({outcome.status.value}, {outcome.elapsed_ms:.0f}ms)"
        )
        return outcome

    async def apply_suggestion(self, outcome: SearchOutcome) -> SearchOutcome | None:
        """Re-run the pipeline with the outcome's suggested query, if any."""
        if not outcome.suggestion:
            return None
        return await self.search(outcome.suggestion)

    async def _run(self, outcome: SearchOutcome, generation: int) -> None:
        query = outcome.query

        # Step 1: term expansion
        identity = await self._resolve_identity(query)
        self._check_current(generation)
        outcome.identity = identity
        outcome.terms = build_term_set(query, identity)
        if identity is not None and name_key(identity.canonical_name) != name_key(query):
            outcome.suggestion = identity.canonical_name

        # Step 2: parallel term search, union by id
        materials = await self._search_terms(outcome.terms, outcome.failed_terms)
        self._check_current(generation)

        # Step 3: empty result is a status, not an error
        if not materials:
            outcome.status = (
                SearchStatus.NO_RESULTS_FOR_IDENTITY if identity is not None else SearchStatus.NO_RESULTS
            )
            outcome.message = no_results_message(query, identity)
            return

        outcome.materials = sorted(materials.values(), key=lambda m: m.display_name)

        # Step 4: parallel detail fetch, flatten analytes
        outcome.analytes = await self._collect_analytes(outcome.materials, outcome.failed_materials)
        self._check_current(generation)
        outcome.message = f"Found {len(outcome.materials)} reference materials"

    async def _resolve_identity(self, query: str) -> ChemicalIdentity | None:
        try:
            if self._identity_cache is not None:
                return await self._identity_cache.get_or_fetch(query, lambda: self._resolver.resolve(query))
            return await self._resolver.resolve(query)
        except NotFoundError:
            logger.info(f"No identity match for {query!r}; searching the literal term only")
        except (UpstreamError, InvalidQueryError) as e:
            logger.warning(f"Identity lookup failed for {query!r}: {e}")
        return None

    async def _search_terms(self, terms: list[str], failed: list[str]) -> dict[str, MaterialSummary]:
        results = await gather_with_errors(
            *(self._repository.search(term) for term in terms),
            return_exceptions=True,
        )
        return merge_material_results(terms, results, failed)

    async def _collect_analytes(self, materials: list[MaterialSummary], failed: list[str]) -> list[Analyte]:
        details = await batch_process(
            materials,
            self._repository.fetch_detail,
            batch_size=self._detail_batch_size,
        )

        analytes: list[Analyte] = []
        for material, detail in zip(materials, details, strict=True):
            if isinstance(detail, Exception):
                logger.warning(f"Detail fetch failed for {material.display_name!r}: {detail}")
                failed.append(material.id)
                continue
            analytes.extend(stamp_origin(detail))
        return analytes


def build_term_set(query: str, identity: ChemicalIdentity | None) -> list[str]:
    """
    Query, canonical name and synonyms, deduplicated case-insensitively.

    The query always comes first.
    """
    candidates = [query]
    if identity is not None:
        candidates.append(identity.canonical_name)
        candidates.extend(identity.synonyms)

    terms: list[str] = []
    seen: set[str] = set()
    for term in candidates:
        term = term.strip()
        key = name_key(term)
        if not term or key in seen:
            continue
        seen.add(key)
        terms.append(term)
    return terms


def merge_material_results(
    terms: list[str],
    results: list[list[MaterialSummary] | Exception],
    failed: list[str],
) -> dict[str, MaterialSummary]:
    """
    Union per-term search results keyed by material id.

    The union is order-independent: the same material found through several
    terms appears once, whichever call completed first.
    """
    merged: dict[str, MaterialSummary] = {}
    for term, result in zip(terms, results, strict=True):
        if isinstance(result, Exception):
            logger.warning(f"Repository search failed for term {term!r}: {result}")
            failed.append(term)
            continue
        for material in result:
            merged.setdefault(material.id, material)
    return merged


def stamp_origin(detail: MaterialDetail) -> list[Analyte]:
    """Analytes of ``detail`` tagged with the material's title and type."""
    return [a.with_origin(detail.title, detail.material_type) for a in detail.analytes]
