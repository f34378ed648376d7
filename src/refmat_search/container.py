"""
Application DI Container (dependency-injector).

Centralizes service creation and lifecycle management.

Usage::

    from refmat_search.config import load_settings
    from refmat_search.container import ApplicationContainer

    container = ApplicationContainer()
    container.config.from_dict(load_settings())

    aggregator = container.search_aggregator()
    coordinator = container.enrichment_coordinator()

    # In tests, override any provider:
    container.identity_resolver.override(providers.Object(mock_resolver))
"""

from __future__ import annotations

import logging

from dependency_injector import containers, providers

logger = logging.getLogger(__name__)


def _create_repository_client(
    base_url: str,
    timeout: float,
    min_interval: float,
    max_retries: int,
) -> object:
    """Lazy factory for RepositorySearchClient (avoids top-level import)."""
    from refmat_search.infrastructure.repository import RepositorySearchClient

    return RepositorySearchClient(
        base_url=base_url,
        timeout=timeout,
        min_interval=min_interval,
        max_retries=max_retries,
    )


def _create_identity_resolver(base_url: str, timeout: float, min_interval: float) -> object:
    """Lazy factory for IdentityResolver."""
    from refmat_search.infrastructure.identity import IdentityResolver

    return IdentityResolver(base_url=base_url, timeout=timeout, min_interval=min_interval)


def _create_identity_cache(max_size: int, ttl: float) -> object:
    from refmat_search.infrastructure.cache import IdentityCache

    return IdentityCache(max_size=max_size, ttl=ttl)


def _create_selection_store() -> object:
    from refmat_search.application.selection import SelectionStore

    return SelectionStore()


def _create_search_aggregator(
    repository: object,
    resolver: object,
    identity_cache: object,
    detail_batch_size: int,
) -> object:
    """Lazy factory for SearchAggregator."""
    from refmat_search.application.search import SearchAggregator

    return SearchAggregator(
        repository,  # type: ignore[arg-type]
        resolver,  # type: ignore[arg-type]
        identity_cache=identity_cache,  # type: ignore[arg-type]
        detail_batch_size=detail_batch_size,
    )


def _create_enrichment_coordinator(resolver: object, store: object, identity_cache: object) -> object:
    """Lazy factory for EnrichmentCoordinator."""
    from refmat_search.application.selection import EnrichmentCoordinator

    return EnrichmentCoordinator(resolver, store, identity_cache)  # type: ignore[arg-type]


class ApplicationContainer(containers.DeclarativeContainer):
    """Central DI container for refmat-search.

    Manages creation and lifecycle of all core services:
    - ``repository_client``: repository search, detail and spectra
    - ``identity_resolver``: PubChem compound lookup
    - ``identity_cache``: shared TTL cache of resolved identities
    - ``selection_store``: process-wide analyte selection
    - ``search_aggregator``: alias-expanded search pipeline
    - ``enrichment_coordinator``: selection change handling
    """

    config = providers.Configuration()

    repository_client = providers.Singleton(
        _create_repository_client,
        base_url=config.repository_base_url,
        timeout=config.timeout,
        min_interval=config.min_interval,
        max_retries=config.max_retries,
    )

    identity_resolver = providers.Singleton(
        _create_identity_resolver,
        base_url=config.identity_base_url,
        timeout=config.timeout,
        min_interval=config.min_interval,
    )

    identity_cache = providers.Singleton(
        _create_identity_cache,
        max_size=config.cache_size,
        ttl=config.cache_ttl,
    )

    selection_store = providers.Singleton(_create_selection_store)

    search_aggregator = providers.Singleton(
        _create_search_aggregator,
        repository=repository_client,
        resolver=identity_resolver,
        identity_cache=identity_cache,
        detail_batch_size=config.detail_batch_size,
    )

    enrichment_coordinator = providers.Singleton(
        _create_enrichment_coordinator,
        resolver=identity_resolver,
        store=selection_store,
        identity_cache=identity_cache,
    )


__all__ = ["ApplicationContainer"]
