"""HTTP infrastructure shared by the upstream clients."""

from .base_client import BaseAPIClient

__all__ = ["BaseAPIClient"]
