"""
Lookup-term normalization for the identity service.

Analyte names in certificates use typographic forms ("Δ9-THC",
"Benzo[a]pyrene (BaP)", "²³⁸U") that the name lookup endpoint does not
match. This module turns them into the plain, hyphenated lower-case form
the endpoint expects.
"""

from __future__ import annotations

import re

GREEK_LETTERS: dict[str, str] = {
    "α": "alpha",
    "β": "beta",
    "γ": "gamma",
    "δ": "delta",
    "Δ": "delta",
    "ε": "epsilon",
    "κ": "kappa",
    "λ": "lambda",
    "μ": "mu",
    "ω": "omega",
    "Ω": "omega",
    "σ": "sigma",
    "Σ": "sigma",
    "π": "pi",
}

SUPERSCRIPT_DIGITS: dict[str, str] = {
    "⁰": "0",
    "¹": "1",
    "²": "2",
    "³": "3",
    "⁴": "4",
    "⁵": "5",
    "⁶": "6",
    "⁷": "7",
    "⁸": "8",
    "⁹": "9",
}

_SYMBOLS = re.compile("[" + "".join(GREEK_LETTERS) + "".join(SUPERSCRIPT_DIGITS) + "]")
_TRAILING_QUALIFIER = re.compile(r"\s*\([^)]*\)$")
_WHITESPACE = re.compile(r"\s+")


def _substitute(match: re.Match[str]) -> str:
    symbol = match.group(0)
    return GREEK_LETTERS.get(symbol) or SUPERSCRIPT_DIGITS.get(symbol, "")


def normalize_identifier(term: str) -> str:
    """
    Normalize a free-text compound name for name lookup.

    Example:
        >>> normalize_identifier("Δ9-Tetrahydrocannabinol (THC)")
        'delta9-tetrahydrocannabinol'
        >>> normalize_identifier("Uranium ²³⁸")
        'uranium-238'
    """
    text = _SYMBOLS.sub(_substitute, term.strip())
    text = _TRAILING_QUALIFIER.sub("", text).strip()
    return _WHITESPACE.sub("-", text).lower()
