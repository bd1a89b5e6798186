"""Text normalization utilities for city name matching."""
import re
from typing import Mapping, Optional

from cityzip.core.rules import DEFAULT_FOLDING_TABLE


_DISALLOWED = re.compile(r"[^a-z0-9\s\-]")
_WHITESPACE = re.compile(r"\s+")


def fold_characters(text: str, folding_table: Optional[Mapping[str, str]] = None) -> str:
    """
    Replace language-specific characters with their ASCII spelling.

    Multi-character keys are applied before single characters.

    Args:
        text: Lowercased input text
        folding_table: Mapping of character(s) to replacement

    Returns:
        Folded text
    """
    table = DEFAULT_FOLDING_TABLE if folding_table is None else folding_table
    for source in sorted(table, key=len, reverse=True):
        text = text.replace(source, table[source])
    return text


def normalize_city(text: Optional[str], folding_table: Optional[Mapping[str, str]] = None) -> str:
    """
    Normalize a city name into a comparable lookup key.

    Lowercases, folds Danish letters (æ -> ae, ø -> o, å -> aa), drops anything
    outside [a-z0-9 -], collapses whitespace and trims. Idempotent.

    Args:
        text: Raw city name
        folding_table: Optional folding table (defaults to the Danish table)

    Returns:
        Normalized city name, possibly empty
    """
    if not text:
        return ""

    text = fold_characters(str(text).lower(), folding_table)

    # Remove punctuation and unfolded letters
    text = _DISALLOWED.sub("", text)

    # Collapse whitespace
    text = _WHITESPACE.sub(" ", text)

    return text.strip()
