"""
Match score engine.

Scores a (bank entry, candidate record) pair from amount and date evidence
with a fixed priority ladder rather than a weighted sum: rows are evaluated
top to bottom and the first row whose amount tier and day gap both hold wins.
The maximum is 0.95; an automatic match is never fully certain.
"""

from typing import Any, Optional

from ..config import Settings, get_settings
from ..models import AmountTier, BankEntry, ExplanationItem, MatchExplanation
from .tolerance import amounts_match, days_between


# (amount tier, max days apart or None for any gap, score)
MATCH_SCORE_LADDER = (
    (AmountTier.EXACT, 0, 0.95),
    (AmountTier.EXACT, 3, 0.85),
    (AmountTier.EXACT, 7, 0.75),
    (AmountTier.CLOSE, 0, 0.70),
    (AmountTier.CLOSE, 3, 0.60),
    (AmountTier.EXACT, 14, 0.50),
    (AmountTier.CLOSE, 7, 0.45),
    (AmountTier.EXACT, 30, 0.30),
    (AmountTier.CLOSE, 14, 0.25),
    (AmountTier.CLOSE, None, 0.10),
)
NO_AMOUNT_MATCH_SCORE = 0.0


def amount_tier(
    entry_cents: Any,
    candidate_cents: Any,
    settings: Optional[Settings] = None,
) -> Optional[AmountTier]:
    """Classify amount agreement as EXACT, CLOSE or None."""
    settings = settings or get_settings()
    if amounts_match(entry_cents, candidate_cents, settings.exact_amount_tolerance_percent):
        return AmountTier.EXACT
    if amounts_match(entry_cents, candidate_cents, settings.close_amount_tolerance_percent):
        return AmountTier.CLOSE
    return None


def ladder_score(tier: Optional[AmountTier], days_apart: Optional[int]) -> float:
    """
    Look up the ladder score for an amount tier and day gap.

    An EXACT amount also satisfies CLOSE rows. A missing gap only satisfies
    rows that accept any gap.
    """
    if tier is None:
        return NO_AMOUNT_MATCH_SCORE

    for row_tier, max_days, score in MATCH_SCORE_LADDER:
        if row_tier == AmountTier.EXACT and tier != AmountTier.EXACT:
            continue
        if max_days is None or (days_apart is not None and days_apart <= max_days):
            return score

    return NO_AMOUNT_MATCH_SCORE


def calculate_match_score(
    entry: BankEntry,
    candidate: Any,
    settings: Optional[Settings] = None,
) -> float:
    """
    Score how well a candidate record matches a bank entry (0.0-0.95).

    The candidate must expose ``match_amount_cents`` and ``match_date``.
    """
    tier = amount_tier(entry.amount_cents, candidate.match_amount_cents, settings)
    days_apart = days_between(entry.statement_date, candidate.match_date)
    return ladder_score(tier, days_apart)


def get_match_explanation(
    entry: BankEntry,
    candidate: Any,
    settings: Optional[Settings] = None,
) -> MatchExplanation:
    """Explain the amount and date evidence behind a match score for display."""
    settings = settings or get_settings()
    entry_cents = entry.abs_cents
    candidate_cents = abs(candidate.match_amount_cents or 0)
    difference = settings.format_cents(entry_cents - candidate_cents)

    tier = amount_tier(entry_cents, candidate_cents, settings)
    if tier == AmountTier.EXACT:
        amount = ExplanationItem("Exact match", "check", "good")
    elif tier == AmountTier.CLOSE:
        amount = ExplanationItem(
            f"Within {settings.close_amount_tolerance_percent:g}% ({difference} difference)",
            "approx",
            "fair",
        )
    else:
        amount = ExplanationItem(f"{difference} difference", "x", "poor")

    days_diff = days_between(entry.statement_date, candidate.match_date)
    if days_diff is None:
        date_item = ExplanationItem("Date unknown", "x", "neutral")
    elif days_diff == 0:
        date_item = ExplanationItem("Same day", "check", "good")
    elif days_diff <= 3:
        plural = "s" if days_diff > 1 else ""
        date_item = ExplanationItem(f"{days_diff} day{plural} apart", "check", "good")
    elif days_diff <= 7:
        date_item = ExplanationItem(f"{days_diff} days apart", "approx", "fair")
    elif days_diff <= 14:
        date_item = ExplanationItem(f"{days_diff} days apart (moderate gap)", "warning", "fair")
    else:
        date_item = ExplanationItem(f"{days_diff} days apart (large gap)", "x", "poor")

    return MatchExplanation(amount=amount, date=date_item, days_diff=days_diff)
