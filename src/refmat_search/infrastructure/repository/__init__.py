"""Reference-material repository (NRC Digital Repository)."""

from .client import NRC_BASE_URL, RepositorySearchClient

__all__ = ["NRC_BASE_URL", "RepositorySearchClient"]
