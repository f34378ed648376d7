"""
PubChem PUG REST identity resolver.

Resolves a free-text compound name to a ChemicalIdentity in three calls:
1. name -> CID
2. CID -> computed property bundle
3. CID -> synonym list (best effort)

API Documentation:
https://pubchem.ncbi.nlm.nih.gov/docs/pug-rest

The resolver never retries; callers decide what a failure means.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from refmat_search.domain.entities import MAX_SYNONYMS, ChemicalIdentity
from refmat_search.infrastructure.http.base_client import BaseAPIClient
from refmat_search.shared.async_utils import gather_with_errors
from refmat_search.shared.exceptions import (
    InvalidQueryError,
    NotFoundError,
    ParseError,
    UpstreamError,
)

from .normalize import normalize_identifier

if TYPE_CHECKING:
    import httpx

    from refmat_search.shared.async_utils import CircuitBreaker

logger = logging.getLogger(__name__)

PUBCHEM_BASE_URL = "https://pubchem.ncbi.nlm.nih.gov/rest/pug"

PROPERTY_FIELDS = (
    "Title",
    "IUPACName",
    "MolecularFormula",
    "MolecularWeight",
    "InChIKey",
    "SMILES",
    "ExactMass",
    "TPSA",
    "XLogP",
)


class IdentityResolver(BaseAPIClient):
    """
    Client for the PubChem compound endpoints.

    Example:
        async with IdentityResolver() as resolver:
            identity = await resolver.resolve("aspirin")
            print(identity.canonical_name, identity.synonyms[:3])
    """

    _service_name = "PubChem"

    def __init__(
        self,
        base_url: str = PUBCHEM_BASE_URL,
        timeout: float = 30.0,
        min_interval: float = 0.2,
        circuit_breaker: CircuitBreaker | None = None,
    ) -> None:
        # PubChem allows 5 requests/second per client
        super().__init__(
            base_url=base_url,
            timeout=timeout,
            min_interval=min_interval,
            headers={"Accept": "application/json"},
            circuit_breaker=circuit_breaker,
        )

    def _handle_expected_status(self, response: httpx.Response, url: str) -> None:
        # PubChem answers 404 (PUGREST.NotFound) for unknown names
        if response.status_code == 404:
            raise NotFoundError("Compound", url.rsplit("/compound/", 1)[-1])

    async def resolve(self, term: str) -> ChemicalIdentity:
        """
        Resolve a compound name.

        Args:
            term: Free-text name, e.g. "Δ9-THC" or "Lead (Pb)"

        Returns:
            ChemicalIdentity with up to 10 synonyms

        Raises:
            InvalidQueryError: Term is empty after normalization
            NotFoundError: PubChem has no compound for the term
            UpstreamError: Transport failure or malformed response
        """
        identifier = normalize_identifier(term)
        if not identifier:
            raise InvalidQueryError(term, "Lookup term is empty after normalization")

        cid = await self._lookup_cid(identifier)
        properties = await self._fetch_properties(cid)
        synonyms = await self._fetch_synonyms(cid)
        logger.debug(f"Resolved {term!r} -> CID {cid} ({len(synonyms)} synonyms)")
        return self._build_identity(identifier, cid, properties, synonyms)

    async def resolve_many(self, terms: Sequence[str]) -> list[ChemicalIdentity | Exception]:
        """Resolve several names in parallel; results are positional, failures returned as exceptions."""
        return await gather_with_errors(*(self.resolve(t) for t in terms), return_exceptions=True)

    # ==================== Individual calls ====================

    async def _lookup_cid(self, identifier: str) -> int:
        data = await self._make_request(f"/compound/name/{quote(identifier, safe='')}/cids/JSON")
        if not isinstance(data, dict):
            raise ParseError("CID response is not a JSON object", source=self._service_name)

        cids = (data.get("IdentifierList") or {}).get("CID") or []
        if not cids:
            raise NotFoundError("Compound", identifier)
        try:
            return int(cids[0])
        except (TypeError, ValueError) as e:
            raise ParseError(f"Unexpected CID value {cids[0]!r}", source=self._service_name) from e

    async def _fetch_properties(self, cid: int) -> dict[str, Any]:
        fields = ",".join(PROPERTY_FIELDS)
        data = await self._make_request(f"/compound/cid/{cid}/property/{fields}/JSON")
        try:
            properties = data["PropertyTable"]["Properties"][0]  # type: ignore[index]
        except (KeyError, IndexError, TypeError) as e:
            raise ParseError(f"No property table for CID {cid}", source=self._service_name) from e
        if not isinstance(properties, dict):
            raise ParseError(f"Malformed property table for CID {cid}", source=self._service_name)
        return properties

    async def _fetch_synonyms(self, cid: int) -> list[str]:
        """Synonyms are optional; a failed lookup yields an empty list."""
        try:
            data = await self._make_request(f"/compound/cid/{cid}/synonyms/JSON")
            synonyms = data["InformationList"]["Information"][0].get("Synonym") or []  # type: ignore[index]
        except (UpstreamError, NotFoundError) as e:
            logger.warning(f"Synonym lookup failed for CID {cid}: {e}")
            return []
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            logger.warning(f"Malformed synonym response for CID {cid}: {e}")
            return []
        return [str(s) for s in synonyms[:MAX_SYNONYMS]]

    def _build_identity(
        self,
        identifier: str,
        cid: int,
        properties: dict[str, Any],
        synonyms: list[str],
    ) -> ChemicalIdentity:
        return ChemicalIdentity(
            canonical_name=properties.get("Title") or identifier,
            iupac_name=properties.get("IUPACName") or identifier,
            formula=properties.get("MolecularFormula") or "",
            molecular_weight=parse_numeric(properties.get("MolecularWeight")),
            smiles=properties.get("SMILES") or "",
            inchi_key=properties.get("InChIKey") or "",
            exact_mass=parse_numeric(properties.get("ExactMass")),
            polar_surface_area=parse_numeric(properties.get("TPSA")),
            log_p=parse_numeric(properties.get("XLogP")),
            compound_id=cid,
            synonyms=tuple(synonyms),
            image_ref=f"{self._base_url}/compound/cid/{cid}/PNG",
        )


def parse_numeric(value: Any) -> float | None:
    """PubChem returns some numbers as strings ("180.16"); anything else is None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None
