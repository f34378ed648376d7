"""
Runtime configuration from environment variables.

    REFMAT_REPOSITORY_URL      Repository base URL
    REFMAT_IDENTITY_URL        Identity service (PubChem PUG REST) base URL
    REFMAT_TIMEOUT             HTTP timeout in seconds (default: 30)
    REFMAT_MIN_INTERVAL        Minimum seconds between requests per client (default: 0.2)
    REFMAT_MAX_RETRIES         Repository retries on transient failure (default: 3)
    REFMAT_DETAIL_BATCH_SIZE   Concurrent detail fetches per batch (default: 10)
    REFMAT_CACHE_SIZE          Identity cache entries (default: 1000)
    REFMAT_CACHE_TTL           Identity cache TTL in seconds (default: 3600)
    REFMAT_LOG_LEVEL           Root log level (default: INFO)

``load_settings()`` returns a plain dict for
``ApplicationContainer.config.from_dict``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from typing import Any

from refmat_search.infrastructure.identity import PUBCHEM_BASE_URL
from refmat_search.infrastructure.repository import NRC_BASE_URL
from refmat_search.shared.exceptions import ConfigurationError, ErrorContext

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# key -> (env var, default, parser)
_SETTINGS: dict[str, tuple[str, Any, Callable[[str], Any]]] = {
    "repository_base_url": ("REFMAT_REPOSITORY_URL", NRC_BASE_URL, str),
    "identity_base_url": ("REFMAT_IDENTITY_URL", PUBCHEM_BASE_URL, str),
    "timeout": ("REFMAT_TIMEOUT", 30.0, float),
    "min_interval": ("REFMAT_MIN_INTERVAL", 0.2, float),
    "max_retries": ("REFMAT_MAX_RETRIES", 3, int),
    "detail_batch_size": ("REFMAT_DETAIL_BATCH_SIZE", 10, int),
    "cache_size": ("REFMAT_CACHE_SIZE", 1000, int),
    "cache_ttl": ("REFMAT_CACHE_TTL", 3600.0, float),
    "log_level": ("REFMAT_LOG_LEVEL", "INFO", str),
}

_POSITIVE = ("timeout", "detail_batch_size", "cache_size", "cache_ttl")
_NON_NEGATIVE = ("min_interval", "max_retries")


def load_settings(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """
    Read settings from the environment, applying defaults.

    Raises:
        ConfigurationError: A value is not a valid number or is out of range
    """
    environ = os.environ if environ is None else environ
    settings: dict[str, Any] = {}

    for key, (env_var, default, parser) in _SETTINGS.items():
        raw = environ.get(env_var, "").strip()
        if not raw:
            settings[key] = default
            continue
        try:
            settings[key] = parser(raw)
        except ValueError as e:
            raise ConfigurationError(
                f"{env_var}={raw!r} is not a valid {parser.__name__}",
                context=ErrorContext(operation="load_settings", input_value=raw),
            ) from e

    for key in _POSITIVE:
        if settings[key] <= 0:
            raise ConfigurationError(f"{_SETTINGS[key][0]} must be positive, got {settings[key]}")
    for key in _NON_NEGATIVE:
        if settings[key] < 0:
            raise ConfigurationError(f"{_SETTINGS[key][0]} must not be negative, got {settings[key]}")

    settings["repository_base_url"] = settings["repository_base_url"].rstrip("/")
    settings["identity_base_url"] = settings["identity_base_url"].rstrip("/")
    settings["log_level"] = settings["log_level"].upper()
    if not isinstance(logging.getLevelName(settings["log_level"]), int):
        raise ConfigurationError(f"REFMAT_LOG_LEVEL={settings['log_level']!r} is not a logging level")

    return settings


def configure_logging(level: str = "INFO") -> None:
    """Install the root log handler."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
