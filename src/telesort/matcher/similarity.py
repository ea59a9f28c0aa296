"""Edit-distance scoring between episode names and probe text.

The whole engine compares strings with plain Levenshtein distance. rapidfuzz
does the dynamic programming; this module only fixes the normalization rules
so every caller compares text the same way.
"""

from __future__ import annotations

from rapidfuzz.distance import Levenshtein


def normalize_case(value: str) -> str:
    """Lowercase ``value`` with Python's locale-independent case mapping."""
    return value.lower()


def distance(a: str, b: str, case_insensitive: bool = False) -> int:
    """Return the Levenshtein distance between ``a`` and ``b``.

    Args:
        a: First string
        b: Second string
        case_insensitive: Lowercase both strings before comparing. Characters
            are still compared by exact code point after normalization.

    Returns:
        Minimum number of single-character insertions, deletions or
        substitutions turning ``a`` into ``b``. Empty input yields the length
        of the other string.
    """
    if case_insensitive:
        a = normalize_case(a)
        b = normalize_case(b)
    return int(Levenshtein.distance(a, b))
