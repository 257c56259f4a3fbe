"""
Preprocessor - Input normalization before matching
==================================================

Every string compared against a keyword or a decomposition pattern
goes through the same accent stripping, so that accented script data
("mère", "cœur") matches unaccented or accented input alike.
"""

import re
import unicodedata

_LIGATURES = str.maketrans({"œ": "oe", "Œ": "OE", "æ": "ae", "Æ": "AE"})
_TRAILING_PUNCTUATION = re.compile(r"[.!,;\s]+$")
_WHITESPACE = re.compile(r"\s+")


def strip_accents(text: str) -> str:
    """Expand œ/æ ligatures and remove combining diacritical marks."""
    decomposed = unicodedata.normalize("NFD", text.translate(_LIGATURES))
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize(text: str) -> str:
    """
    Normalize raw user input.

    Trims, strips trailing ``. ! , ;`` runs, collapses whitespace,
    lowercases and strips accents. Idempotent.

    Args:
        text: Raw input line

    Returns:
        Normalized text, possibly empty
    """
    # Case-fold and strip marks first: removing a combining mark can
    # expose trailing punctuation or leave two spaces side by side.
    result = strip_accents(text.lower())
    result = _TRAILING_PUNCTUATION.sub("", result)
    return _WHITESPACE.sub(" ", result).strip()


def normalize_keyword(keyword: str) -> str:
    """Bring a rule keyword into the same form as normalized input."""
    return _WHITESPACE.sub(" ", strip_accents(keyword.lower())).strip()
