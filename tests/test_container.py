"""Tests for DI container and configuration loading."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch

import pytest
from dependency_injector import providers

from refmat_search.application.search import SearchAggregator
from refmat_search.application.selection import EnrichmentCoordinator, SelectionStore
from refmat_search.config import LOG_FORMAT, configure_logging, load_settings
from refmat_search.container import ApplicationContainer
from refmat_search.infrastructure.cache import IdentityCache
from refmat_search.infrastructure.identity import PUBCHEM_BASE_URL, IdentityResolver
from refmat_search.infrastructure.repository import NRC_BASE_URL, RepositorySearchClient
from refmat_search.shared.exceptions import ConfigurationError


@pytest.fixture
def container():
    c = ApplicationContainer()
    c.config.from_dict(load_settings({}))
    return c


# ============================================================================
# Settings
# ============================================================================


class TestLoadSettings:
    def test_defaults(self) -> None:
        settings = load_settings({})
        assert settings["repository_base_url"] == NRC_BASE_URL
        assert settings["identity_base_url"] == PUBCHEM_BASE_URL
        assert settings["timeout"] == 30.0
        assert settings["min_interval"] == 0.2
        assert settings["max_retries"] == 3
        assert settings["detail_batch_size"] == 10
        assert settings["cache_size"] == 1000
        assert settings["cache_ttl"] == 3600.0
        assert settings["log_level"] == "INFO"

    def test_env_overrides(self) -> None:
        settings = load_settings(
            {
                "REFMAT_REPOSITORY_URL": "http://localhost:8000/",
                "REFMAT_TIMEOUT": "5",
                "REFMAT_MAX_RETRIES": "0",
                "REFMAT_LOG_LEVEL": "debug",
            }
        )
        assert settings["repository_base_url"] == "http://localhost:8000"
        assert settings["timeout"] == 5.0
        assert settings["max_retries"] == 0
        assert settings["log_level"] == "DEBUG"

    def test_blank_value_uses_default(self) -> None:
        assert load_settings({"REFMAT_TIMEOUT": "  "})["timeout"] == 30.0

    def test_reads_os_environ_by_default(self) -> None:
        with patch.dict("os.environ", {"REFMAT_CACHE_SIZE": "42"}):
            assert load_settings()["cache_size"] == 42

    @pytest.mark.parametrize(
        "env",
        [
            {"REFMAT_TIMEOUT": "soon"},
            {"REFMAT_MAX_RETRIES": "2.5"},
            {"REFMAT_DETAIL_BATCH_SIZE": "0"},
            {"REFMAT_MIN_INTERVAL": "-1"},
            {"REFMAT_LOG_LEVEL": "LOUD"},
        ],
    )
    def test_invalid_values_raise(self, env) -> None:
        with pytest.raises(ConfigurationError):
            load_settings(env)


class TestConfigureLogging:
    def test_installs_format(self) -> None:
        with patch("refmat_search.config.logging.basicConfig") as basic:
            configure_logging("debug")
        basic.assert_called_once_with(level=logging.DEBUG, format=LOG_FORMAT)


# ============================================================================
# DI Container Tests
# ============================================================================


class TestApplicationContainer:
    """Test the DI container manages services correctly."""

    def test_config_values(self, container) -> None:
        assert container.config.repository_base_url() == NRC_BASE_URL
        assert container.config.detail_batch_size() == 10

    def test_client_types(self, container) -> None:
        assert isinstance(container.repository_client(), RepositorySearchClient)
        assert isinstance(container.identity_resolver(), IdentityResolver)
        assert isinstance(container.identity_cache(), IdentityCache)
        assert isinstance(container.selection_store(), SelectionStore)

    def test_singletons(self, container) -> None:
        assert container.repository_client() is container.repository_client()
        assert container.selection_store() is container.selection_store()
        assert container.search_aggregator() is container.search_aggregator()

    def test_services_share_cache_and_resolver(self, container) -> None:
        aggregator = container.search_aggregator()
        coordinator = container.enrichment_coordinator()
        assert isinstance(aggregator, SearchAggregator)
        assert isinstance(coordinator, EnrichmentCoordinator)
        assert aggregator._identity_cache is coordinator._identity_cache
        assert aggregator._resolver is coordinator._resolver
        assert coordinator._store is container.selection_store()

    def test_override_provider(self, container) -> None:
        """Container supports provider overriding for tests."""
        mock_resolver = MagicMock()
        container.identity_resolver.override(providers.Object(mock_resolver))
        try:
            assert container.search_aggregator()._resolver is mock_resolver
        finally:
            container.identity_resolver.reset_override()
