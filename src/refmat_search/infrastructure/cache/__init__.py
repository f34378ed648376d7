"""In-memory caches (process lifetime only)."""

from .identity_cache import CacheStats, IdentityCache

__all__ = ["CacheStats", "IdentityCache"]
