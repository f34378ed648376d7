"""Chemical identity service (PubChem)."""

from .client import PUBCHEM_BASE_URL, IdentityResolver
from .normalize import normalize_identifier

__all__ = ["PUBCHEM_BASE_URL", "IdentityResolver", "normalize_identifier"]
