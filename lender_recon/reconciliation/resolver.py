"""
Intent resolver.

Classifies one bank entry:
1. Restrict intents by direction (credits and debits have disjoint meanings).
2. Single pass: every enabled matcher proposes single-record matches; the
   best score wins, earlier proposals winning ties.
3. Grouped pass, only when the best single score is below the grouped-search
   threshold: grouped proposals replace the single match if they score higher.
4. Below the minimum confidence the entry stays unknown.
5. Loan payments get a principal/interest/fees split.
"""

from typing import Callable, FrozenSet, Iterable, List, Optional, Sequence, Tuple

import structlog

from ..config import Settings, get_settings
from ..matching.scoring import get_match_explanation
from ..models import (
    CREDIT_INTENTS,
    DEBIT_INTENTS,
    BankEntry,
    Classification,
    GroupMatch,
    Intent,
    MatchMode,
    ScheduleInstallment,
    SingleMatch,
    Split,
    SuggestedMatch,
)
from .context import MatchContext
from .matchers import BaseMatcher, CandidateMatch, default_matchers
from .split import (
    calculate_split,
    combine_installments,
    nearest_open_installment,
    share_group_split,
)

logger = structlog.get_logger()


def allowed_intents(entry: BankEntry) -> FrozenSet[Intent]:
    """Intents a bank entry may take given its direction."""
    if entry.is_credit:
        return CREDIT_INTENTS
    if entry.is_debit:
        return DEBIT_INTENTS
    return frozenset({Intent.UNKNOWN})


class IntentResolver:
    """
    Runs matchers against bank entries and turns the best proposal into a
    Classification.

    Resolvers hold no per-entry state, so one instance can classify entries
    from several threads at once.
    """

    def __init__(
        self,
        matchers: Optional[Sequence[BaseMatcher]] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        if matchers is None:
            matchers = default_matchers(self.settings)
        # Stable sort: equal priorities keep their given order.
        self.matchers: List[BaseMatcher] = sorted(matchers, key=lambda m: -m.priority)

    def classify(self, entry: BankEntry, context: MatchContext) -> Classification:
        """Classify one bank entry against a context snapshot."""
        if entry.amount_cents == 0:
            return Classification.unknown()

        allowed = allowed_intents(entry)
        active = [m for m in self.matchers if m.enabled and m.can_match(entry, context)]

        best, best_score, best_matcher = self._best_proposal(
            active, entry, allowed, lambda m: m.generate_matches(entry, context)
        )

        if best_score < self.settings.grouped_search_threshold:
            group, group_score, group_matcher = self._best_proposal(
                active, entry, allowed, lambda m: m.generate_group_matches(entry, context)
            )
            if group is not None and group_score > best_score:
                best, best_score, best_matcher = group, group_score, group_matcher

        if best is None or best_score < self.settings.min_confidence:
            logger.debug("Entry left unclassified", entry_id=entry.id, best_score=round(best_score, 4))
            return Classification.unknown()

        confidence = max(0, min(100, int(round(best_score * 100))))
        split = (
            self._split(entry, best.intent, best.suggestion, context)
            if best.intent.is_loan_payment else None
        )

        logger.debug(
            "Entry classified",
            entry_id=entry.id,
            intent=best.intent.value,
            confidence=confidence,
            matcher=best_matcher,
            grouped=isinstance(best.suggestion, GroupMatch),
        )

        return Classification(
            intent=best.intent,
            confidence=confidence,
            suggested_match=best.suggestion,
            explanation=self._explain(entry, best),
            matcher=best_matcher,
            split=split,
        )

    def _best_proposal(
        self,
        matchers: Iterable[BaseMatcher],
        entry: BankEntry,
        allowed: FrozenSet[Intent],
        propose: Callable[[BaseMatcher], List[CandidateMatch]],
    ) -> Tuple[Optional[CandidateMatch], float, Optional[str]]:
        best: Optional[CandidateMatch] = None
        best_score = 0.0
        best_matcher: Optional[str] = None

        for matcher in matchers:
            for proposal in propose(matcher):
                if proposal.intent not in allowed:
                    continue
                score = matcher.calculate_confidence(proposal, entry)
                if score > best_score:
                    best, best_score, best_matcher = proposal, score, matcher.name

        return best, best_score, best_matcher

    def _explain(self, entry: BankEntry, proposal: CandidateMatch) -> str:
        suggestion = proposal.suggestion
        if (
            isinstance(suggestion, SingleMatch)
            and suggestion.candidate is not None
            and proposal.score_cents is None
        ):
            detail = get_match_explanation(entry, suggestion.candidate, self.settings)
            return f"{proposal.reason} ({detail.amount.text}; {detail.date.text})"
        return proposal.reason

    def _installments_for(
        self,
        entry: BankEntry,
        suggestion: SuggestedMatch,
        context: MatchContext,
    ) -> List[ScheduleInstallment]:
        """Installments a loan payment settles, for splitting it."""

        if isinstance(suggestion, SingleMatch):
            if suggestion.installment is not None:
                return [suggestion.installment]
            if suggestion.loan is not None:
                nearest = nearest_open_installment(context.schedules_for(suggestion.loan.id), entry.statement_date)
                return [nearest] if nearest else []
            return []

        installments = [c for c in suggestion.candidates if isinstance(c, ScheduleInstallment)]
        if installments:
            return installments

        loan_ids = sorted({c.loan_id for c in suggestion.candidates if getattr(c, "loan_id", None)})
        nearest = (
            nearest_open_installment(context.schedules_for(loan_id), entry.statement_date)
            for loan_id in loan_ids
        )
        return [i for i in nearest if i is not None]

    def split_for(
        self,
        entry: BankEntry,
        classification: Classification,
        context: MatchContext,
    ) -> Optional[Split]:
        """
        Split of a loan payment for one entry of a classification.

        Used for the other entries of a grouped-entries suggestion, which
        share the classification of the entry that found the group.
        """
        if not classification.intent.is_loan_payment or not classification.is_match:
            return None
        return self._split(entry, classification.intent, classification.suggested_match, context)

    def _split(
        self,
        entry: BankEntry,
        intent: Intent,
        suggestion: SuggestedMatch,
        context: MatchContext,
    ) -> Split:
        installment = combine_installments(self._installments_for(entry, suggestion, context))

        if isinstance(suggestion, GroupMatch) and suggestion.mode == MatchMode.GROUPED_ENTRIES:
            # The group pays the installment once; each entry carries its share.
            whole = calculate_split(suggestion.total_cents, installment, intent, self.settings)
            return share_group_split(whole, suggestion.entries, entry.id)

        return calculate_split(entry.abs_cents, installment, intent, self.settings)
