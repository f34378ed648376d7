"""
NRC Digital Repository client.

Async HTTP client for the certified reference material (CRM) collection:
- Atom search over CRMs (one term per call)
- Object detail pages with the certified analyte table
- Spectrum CSV attachments linked from search entries

Transient failures (429, 5xx, connection errors) are retried with
exponential backoff; parse errors and other client errors are not.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from refmat_search.infrastructure.http.base_client import BaseAPIClient
from refmat_search.shared.exceptions import ParseError, is_retryable_error

from .parsers import (
    parse_detail_page,
    parse_search_feed,
    parse_spectrum_csv,
    parse_spectrum_links,
)

if TYPE_CHECKING:
    from refmat_search.domain.entities import (
        MaterialDetail,
        MaterialSummary,
        Spectrum,
        SpectrumDataset,
    )
    from refmat_search.shared.async_utils import CircuitBreaker

logger = logging.getLogger(__name__)

NRC_BASE_URL = "https://nrc-digital-repository.canada.ca"
SEARCH_PATH = "/eng/search/atom/"
DETAIL_PATH = "/eng/view/object/"
CRM_COLLECTION_FILTER = "+cn:crm"
ID_PREFIX = "urn:uuid:"

# Retry settings for transient repository errors
MAX_RETRIES = 3
RETRY_DELAY = 1.0  # seconds


class RepositorySearchClient(BaseAPIClient):
    """
    Client for the NRC Digital Repository.

    Example:
        async with RepositorySearchClient() as client:
            materials = await client.search("arsenic")
            detail = await client.fetch_detail(materials[0])
    """

    _service_name = "NRC repository"

    def __init__(
        self,
        base_url: str = NRC_BASE_URL,
        timeout: float = 30.0,
        min_interval: float = 0.1,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
        circuit_breaker: CircuitBreaker | None = None,
    ) -> None:
        super().__init__(
            base_url=base_url,
            timeout=timeout,
            min_interval=min_interval,
            circuit_breaker=circuit_breaker,
        )
        self._max_retries = max(0, max_retries)
        self._retry_delay = retry_delay

    async def _get_text(self, url: str, params: dict[str, Any] | None = None) -> str:
        """GET a text body, retrying transient upstream failures."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_retries + 1),
            wait=wait_exponential(
                multiplier=self._retry_delay,
                min=self._retry_delay,
                max=self._retry_delay * 8,
            ),
            retry=retry_if_exception(is_retryable_error),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        f"{self._service_name}: retry {attempt.retry_state.attempt_number - 1}/"
                        f"{self._max_retries} for {url}"
                    )
                body = await self._make_request(url, params=params, expect_json=False)
                if not isinstance(body, str):
                    raise ParseError("Expected a text body", source=self._service_name)
                return body
        raise AssertionError("unreachable")  # pragma: no cover

    # ==================== Search ====================

    async def search(self, term: str) -> list[MaterialSummary]:
        """
        Search the CRM collection for one term.

        Args:
            term: Free-text term (material name, analyte, synonym)

        Returns:
            Matching material summaries; an empty list is a valid result

        Raises:
            UpstreamError: Non-success response, transport failure or bad feed
        """
        feed = await self._get_text(SEARCH_PATH, params={"q": term, "fc": CRM_COLLECTION_FILTER})
        summaries = parse_search_feed(feed)
        logger.debug(f"{self._service_name}: {len(summaries)} materials for {term!r}")
        return summaries

    async def browse(self) -> list[MaterialSummary]:
        """List the whole CRM collection (initial material list)."""
        return await self.search("*")

    # ==================== Detail ====================

    @staticmethod
    def detail_url_id(summary: MaterialSummary) -> str:
        """Object id as used in the view URL (URN prefix removed)."""
        return summary.id.replace(ID_PREFIX, "")

    async def fetch_detail(self, summary: MaterialSummary) -> MaterialDetail:
        """
        Fetch the detail page of one material.

        A page without an analyte table yields a detail with no analytes.

        Raises:
            UpstreamError: Non-success response or transport failure
        """
        html = await self._get_text(DETAIL_PATH, params={"id": self.detail_url_id(summary)})
        detail = parse_detail_page(html, summary)
        if not detail.analytes:
            logger.info(f"{self._service_name}: no analyte table for {summary.display_name!r}")
        return detail

    # ==================== Spectra ====================

    async def find_spectra(self, analyte_name: str) -> list[SpectrumDataset]:
        """Spectrum CSV datasets published for an analyte (any collection)."""
        feed = await self._get_text(SEARCH_PATH, params={"q": analyte_name})
        return parse_spectrum_links(feed)

    async def fetch_spectrum(self, dataset: SpectrumDataset) -> Spectrum:
        """Download and parse one spectrum CSV."""
        csv_text = await self._get_text(dataset.href)
        return parse_spectrum_csv(csv_text, dataset)
