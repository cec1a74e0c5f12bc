"""String similarity primitives."""

from typing import Optional

from rapidfuzz.distance import Levenshtein

from .text import extract_keywords

# Strings whose lengths differ by more than this fraction are never similar.
MAX_LENGTH_DIFFERENCE_RATIO = 0.5


def levenshtein_similarity(s1: Optional[str], s2: Optional[str]) -> float:
    """
    Edit-distance similarity normalized by the longer string (0-1).

    Pairs with very different lengths short-circuit to 0 before the
    distance is computed.
    """
    if not s1 or not s2:
        return 0.0
    if s1 == s2:
        return 1.0

    max_len = max(len(s1), len(s2))
    if abs(len(s1) - len(s2)) / max_len > MAX_LENGTH_DIFFERENCE_RATIO:
        return 0.0

    return 1.0 - Levenshtein.distance(s1, s2) / max_len


def keyword_overlap_similarity(str1: Optional[str], str2: Optional[str]) -> float:
    """
    Keyword-based similarity between two strings (0-1).

    1.0 for equal strings, 0.8 when one contains the other, otherwise the
    fraction of the smaller keyword list with a substring match (either
    direction) in the other list.
    """
    if not str1 or not str2:
        return 0.0
    s1 = str1.lower()
    s2 = str2.lower()
    if s1 == s2:
        return 1.0
    if s1 in s2 or s2 in s1:
        return 0.8

    words1 = extract_keywords(s1)
    words2 = extract_keywords(s2)
    if not words1 or not words2:
        return 0.0

    smaller, larger = (words1, words2) if len(words1) <= len(words2) else (words2, words1)
    matches = [
        w1 for w1 in smaller
        if any(w1 in w2 or w2 in w1 for w2 in larger)
    ]
    return len(matches) / len(smaller)
