"""
Amount and date tolerance scoring.

Both scorers accept raw values (numbers, Decimals, strings, dates, ISO
strings). Invalid input yields the neutral result instead of raising.
"""

from typing import Any, Optional

from ..utils.conversions import parse_date, to_number

# (max days apart, score), checked in order; anything further scores FAR_DATE_SCORE.
DATE_PROXIMITY_BUCKETS = (
    (0, 1.0),
    (1, 0.95),
    (3, 0.85),
    (7, 0.70),
    (14, 0.50),
    (30, 0.30),
)
FAR_DATE_SCORE = 0.1


def amounts_match(amount1: Any, amount2: Any, tolerance_percent: float = 1.0) -> bool:
    """
    Check if two amounts agree within a percentage of the larger one.

    Signs are ignored. Two zeros match; zero never matches a non-zero amount.
    """
    if tolerance_percent < 0:
        raise ValueError(f"tolerance_percent must be non-negative, got {tolerance_percent}")

    a1 = abs(to_number(amount1))
    a2 = abs(to_number(amount2))
    if a1 == 0 and a2 == 0:
        return True
    if a1 == 0 or a2 == 0:
        return False
    return abs(a1 - a2) <= max(a1, a2) * (tolerance_percent / 100)


def days_between(date1: Any, date2: Any) -> Optional[int]:
    """Absolute whole days between two dates, or None if either is invalid."""
    d1 = parse_date(date1)
    d2 = parse_date(date2)
    if d1 is None or d2 is None:
        return None
    return abs((d1 - d2).days)


def dates_within_days(date1: Any, date2: Any, days: int) -> bool:
    """Check two dates are at most ``days`` apart. Invalid dates never are."""
    diff = days_between(date1, date2)
    return diff is not None and diff <= days


def date_proximity_score(date1: Any, date2: Any) -> float:
    """Bucketed date proximity score (0-1). Missing or invalid dates score 0."""
    diff = days_between(date1, date2)
    if diff is None:
        return 0.0
    for max_days, score in DATE_PROXIMITY_BUCKETS:
        if diff <= max_days:
            return score
    return FAR_DATE_SCORE
