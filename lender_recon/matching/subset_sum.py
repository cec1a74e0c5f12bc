"""
Grouped-payment search.

A bank entry that matches nothing on its own may, together with a few sibling
entries from the same import, add up to a known amount (a disbursement sent
in several transfers, a deposit split across lines). The search is
exhaustive over combinations but hard-capped at MAX_GROUP_SIZE entries, so
its cost is bounded by C(n, 5) for n siblings.
"""

from itertools import combinations
from typing import Callable, List, Optional, Sequence, TypeVar

import structlog

from ..config import MAX_GROUP_SIZE, Settings, get_settings
from ..models import BankEntry
from .tolerance import amounts_match

logger = structlog.get_logger()

T = TypeVar("T")


def find_combination(
    items: Sequence[T],
    target_cents: int,
    size: int,
    amount_of: Callable[[T], int],
    tolerance_percent: float,
) -> Optional[List[T]]:
    """
    Find the first combination of exactly ``size`` items whose absolute
    amounts sum to the target within tolerance. Items are tried in the
    order given.
    """
    if size < 1 or size > len(items):
        return None
    for combo in combinations(items, size):
        total = sum(abs(amount_of(item)) for item in combo)
        if amounts_match(total, target_cents, tolerance_percent):
            return list(combo)
    return None


def find_subset_sum(
    entries: Sequence[BankEntry],
    target_cents: int,
    anchor_id: str,
    max_size: int = MAX_GROUP_SIZE,
    settings: Optional[Settings] = None,
) -> Optional[List[BankEntry]]:
    """
    Find a group of entries, including the anchor, that sums to the target.

    Returns None when the anchor is missing, when the anchor alone already
    matches the target (that is a single match, not a group), or when no
    group of up to ``max_size`` other entries works. Smaller groups win;
    among groups of one size, the one whose entry ids sort first wins.

    Args:
        entries: Candidate sibling entries (the anchor among them)
        target_cents: Amount the group must add up to
        anchor_id: Id of the entry that must be in the group
        max_size: Maximum number of siblings joined to the anchor (1-5)

    Returns:
        The anchor followed by the matching siblings, or None
    """
    if max_size < 1 or max_size > MAX_GROUP_SIZE:
        raise ValueError(f"max_size must be between 1 and {MAX_GROUP_SIZE}, got {max_size}")

    settings = settings or get_settings()
    tolerance = settings.group_amount_tolerance_percent

    anchor = next((e for e in entries if e.id == anchor_id), None)
    if anchor is None:
        return None

    anchor_cents = anchor.abs_cents
    if amounts_match(anchor_cents, target_cents, tolerance):
        return None

    others = sorted((e for e in entries if e.id != anchor_id), key=lambda e: e.id)

    for size in range(1, min(len(others), max_size) + 1):
        for combo in combinations(others, size):
            total = anchor_cents + sum(e.abs_cents for e in combo)
            if amounts_match(total, target_cents, tolerance):
                logger.debug(
                    "Grouped payment found",
                    anchor_id=anchor_id,
                    group_size=size + 1,
                    target_cents=target_cents,
                )
                return [anchor, *combo]

    return None
