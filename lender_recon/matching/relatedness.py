"""Checks that several bank lines are fragments of one real payment."""

import re
from typing import List, Optional, Sequence

from ..models import BankEntry

RELATED_OVERLAP_RATIO = 0.5

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


def _significant_words(description: str) -> List[str]:
    return [w for w in _NON_ALNUM.sub(" ", description.lower()).split() if len(w) >= 3]


def descriptions_are_related(desc1: Optional[str], desc2: Optional[str]) -> bool:
    """
    Check if two descriptions look like parts of the same transaction
    (e.g. "TOBIE HOLBROOK LOAN PART1" and "TOBIE HOLBROOK LOAN PART2").
    """
    if not desc1 or not desc2:
        return False

    words1 = _significant_words(desc1)
    words2 = _significant_words(desc2)
    if not words1 or not words2:
        return False

    matches = [w for w in words1 if w in words2]
    overlap = len(matches) / min(len(words1), len(words2))
    return overlap >= RELATED_OVERLAP_RATIO


def group_has_related_descriptions(entries: Sequence[BankEntry]) -> bool:
    """Check every entry's description is related to the first entry's."""
    if len(entries) < 2:
        return True
    first = entries[0].description
    return all(descriptions_are_related(first, e.description) for e in entries[1:])
