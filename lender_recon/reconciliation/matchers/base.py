"""
Matcher base class.

Each matcher handles one family of records. It decides whether it can handle
an entry at all (``can_match``), proposes single-record candidates
(``generate_matches``) and grouped candidates (``generate_group_matches``),
and scores each proposal (``calculate_confidence``, 0.0-1.0). The resolver
runs matchers in priority order and keeps the best-scoring proposal.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Union

import structlog

from ...config import Settings, get_settings
from ...matching.names import description_contains_name
from ...matching.relatedness import group_has_related_descriptions
from ...matching.scoring import calculate_match_score
from ...matching.subset_sum import find_subset_sum
from ...matching.tolerance import amounts_match, dates_within_days, days_between
from ...models import (
    BankEntry,
    Borrower,
    GroupMatch,
    Intent,
    Investor,
    Loan,
    SingleMatch,
)
from ..context import MatchContext

logger = structlog.get_logger()

# Grouped-entries scores: (all entries same day, all within 3 days of the record)
GROUPED_ENTRIES_SCORES = {
    (True, True): 0.92,
    (True, False): 0.75,
    (False, True): 0.80,
    (False, False): 0.60,
}
NEAR_RECORD_DAYS = 3
# An anchor entry may exceed the record amount by at most this ratio.
ANCHOR_OVERSHOOT_RATIO = 1.01
GROUP_NAME_THRESHOLD = 0.5


class GroupKind(str, Enum):
    """How the records or entries in a grouped candidate were gathered."""
    BORROWER = "borrower"        # One borrower's records
    EMAIL = "email"              # Borrowers sharing an e-mail address
    DATE = "date"                # Any records on nearby dates
    INSTALLMENTS = "installments"  # One borrower's installments due together
    INVESTOR = "investor"        # One investor's records
    CROSS_TABLE = "cross_table"  # Capital and interest of one investor
    ENTRIES = "entries"          # Several bank entries paying one record


@dataclass
class CandidateMatch:
    """
    A proposal from a matcher, before scoring.

    ``score_cents`` overrides the amount the entry is scored against for
    single matches (e.g. only the interest part of an installment).
    """
    intent: Intent
    suggestion: Union[SingleMatch, GroupMatch]
    reason: str
    group_kind: Optional[GroupKind] = None
    max_date_diff: int = 0
    all_same_day: bool = False
    all_near_record: bool = False
    score_cents: Optional[int] = None
    keyword_score: float = 0.0
    pattern_confidence: float = 0.5
    usage_count: int = 1
    fixed_score: Optional[float] = None


@dataclass(frozen=True)
class _ScoredAmount:
    """Adapter exposing an alternative amount for the score ladder."""
    match_amount_cents: int
    match_date: Any


class BaseMatcher:
    """Abstract base for reconciliation matchers."""

    name = "base"
    default_priority = 50

    def __init__(
        self,
        priority: Optional[int] = None,
        enabled: bool = True,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.priority = self.default_priority if priority is None else priority
        self.enabled = enabled

    def can_match(self, entry: BankEntry, context: MatchContext) -> bool:
        return False

    def generate_matches(self, entry: BankEntry, context: MatchContext) -> List[CandidateMatch]:
        return []

    def generate_group_matches(self, entry: BankEntry, context: MatchContext) -> List[CandidateMatch]:
        return []

    def calculate_confidence(self, match: CandidateMatch, entry: BankEntry) -> float:
        """Score a proposal (0.0-1.0). Subclasses extend this for their own cases."""
        if match.fixed_score is not None:
            return match.fixed_score

        if match.group_kind == GroupKind.ENTRIES:
            score = GROUPED_ENTRIES_SCORES[(match.all_same_day, match.all_near_record)]
            return self.boost_group(score, self.entity_name_score(entry, match))

        suggestion = match.suggestion
        if isinstance(suggestion, SingleMatch) and suggestion.candidate is not None:
            candidate = suggestion.candidate
            if match.score_cents is not None:
                candidate = _ScoredAmount(match.score_cents, candidate.match_date)
            score = calculate_match_score(entry, candidate, self.settings)
            return self.boost_single(score, self.entity_name_score(entry, match))

        return 0.0

    def describe(self) -> str:
        return f"{self.name} (priority: {self.priority})"

    # Scoring helpers

    def boost_single(self, score: float, name_score: float) -> float:
        if name_score > 0:
            return min(score + name_score * self.settings.single_name_boost, self.settings.single_score_cap)
        return score

    def boost_group(self, score: float, name_score: float) -> float:
        if name_score > 0:
            return min(score + name_score * self.settings.group_name_boost, self.settings.group_score_cap)
        return score

    @staticmethod
    def entity_name_score(entry: BankEntry, match: CandidateMatch) -> float:
        """How strongly the entry names the borrower or investor behind a proposal."""
        suggestion = match.suggestion
        borrower: Optional[Borrower] = suggestion.borrower
        investor: Optional[Investor] = suggestion.investor
        loan: Optional[Loan] = suggestion.loan

        if borrower is not None:
            return description_contains_name(entry.description, borrower.full_name, borrower.business_name)
        if investor is not None:
            return description_contains_name(entry.description, investor.name, investor.business_name)
        if loan is not None and loan.borrower_name:
            return description_contains_name(entry.description, loan.borrower_name)
        return 0.0

    # Shared search

    def sibling_entries(self, entry: BankEntry, context: MatchContext) -> List[BankEntry]:
        """Unreconciled entries in the same direction near the entry (the entry included)."""
        siblings = []
        for other in context.bank_entries:
            if other.id == entry.id:
                continue
            if other.is_credit != entry.is_credit or other.amount_cents == 0:
                continue
            if other.is_reconciled or other.id in context.claimed_ids:
                continue
            if dates_within_days(entry.statement_date, other.statement_date, self.settings.group_window_days):
                siblings.append(other)
        return [entry, *siblings]

    def grouped_entries_match(
        self,
        entry: BankEntry,
        siblings: Sequence[BankEntry],
        record: Any,
        intent: Intent,
        build: Callable[[List[BankEntry]], GroupMatch],
        entity_name: Optional[str],
        label: str,
    ) -> Optional[CandidateMatch]:
        """
        Propose several bank entries (this one first) that together pay one record.

        The group must sum to the record amount, sit within the configured
        window of the record date, and either have related descriptions or
        name the borrower/investor.
        """
        record_cents = abs(record.match_amount_cents)
        entry_cents = entry.abs_cents
        settings = self.settings

        if amounts_match(entry_cents, record_cents, settings.group_amount_tolerance_percent):
            return None
        if entry_cents > record_cents * ANCHOR_OVERSHOOT_RATIO:
            return None

        group = find_subset_sum(
            siblings,
            record_cents,
            entry.id,
            max_size=settings.max_group_size,
            settings=settings,
        )
        if not group or len(group) < 2:
            return None

        record_date = record.match_date
        if not all(
            dates_within_days(e.statement_date, record_date, settings.group_max_days_from_candidate)
            for e in group
        ):
            logger.debug("Grouped entries too far from record", entry_id=entry.id, record_id=record.id)
            return None

        related = group_has_related_descriptions(group)
        names_entity = bool(entity_name) and any(
            description_contains_name(e.description, entity_name) > GROUP_NAME_THRESHOLD
            for e in group
        )
        if not related and not names_entity:
            logger.debug("Grouped entries not corroborated", entry_id=entry.id, record_id=record.id)
            return None

        all_same_day = all(dates_within_days(e.statement_date, entry.statement_date, 0) for e in group)
        all_near_record = all(
            dates_within_days(e.statement_date, record_date, NEAR_RECORD_DAYS) for e in group
        )

        return CandidateMatch(
            intent=intent,
            suggestion=build(group),
            reason=f"Split payment: {len(group)} entries -> {label} ({settings.format_cents(record_cents)})",
            group_kind=GroupKind.ENTRIES,
            all_same_day=all_same_day,
            all_near_record=all_near_record,
        )

    @staticmethod
    def max_days_from(entry: BankEntry, records: Sequence[Any]) -> int:
        """Largest day gap between the entry and any of the records."""
        gaps = [days_between(entry.statement_date, r.match_date) for r in records]
        return max((g for g in gaps if g is not None), default=0)
