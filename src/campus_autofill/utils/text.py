"""Text normalization shared by every matching decision."""

import unicodedata
from typing import Any, List

# Apostrophes and quote variants are dropped rather than spaced so that
# "father's" and "fathers" normalize to the same token.
_QUOTE_CHARS = "'\"`´‘’‚‛“”„‟′″"
_QUOTE_TABLE = str.maketrans("", "", _QUOTE_CHARS)


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize(text: Any) -> str:
    """
    Normalize free text for comparison.

    Lower-cases, folds accents, removes quote characters, turns any other
    punctuation into whitespace and collapses runs of whitespace.
    ``normalize(normalize(x)) == normalize(x)`` for every input, and ``None``
    or empty input yields ``""``.

    Example:
        >>> normalize("  E-Mail   Address!! ")
        'e mail address'
    """
    if text is None:
        return ""
    text = str(text)
    if not text:
        return ""

    folded = _fold(_fold(text).lower()).translate(_QUOTE_TABLE)
    spaced = "".join(ch if ch.isalnum() else " " for ch in folded)
    return " ".join(spaced.split())


def tokens(text: Any) -> List[str]:
    """Split text into normalized tokens."""
    return normalize(text).split()


def contains_phrase(haystack: str, needle: str) -> bool:
    """Word-level containment of two already normalized strings."""
    if not haystack or not needle:
        return False
    return f" {needle} " in f" {haystack} "
