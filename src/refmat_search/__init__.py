"""
refmat-search: certified reference material search with chemical identity expansion.

Resolves a free-text name against PubChem, searches the NRC Digital
Repository under every known alias, and keeps an enriched selection of
analytes for property comparison.
"""

__version__ = "0.1.0"
