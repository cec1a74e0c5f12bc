"""
Pattern-based create suggestions.

The lowest-priority matcher. When nothing recorded matches, it suggests
creating a new record from:
- patterns learned from earlier reconciliations
- expense keywords in the description (debits only)
- a live loan's borrower named in the description
- an investor named in the description
"""

from typing import List, Optional

import structlog

from ...matching.names import description_contains_name
from ...matching.similarity import keyword_overlap_similarity, levenshtein_similarity
from ...matching.text import extract_vendor_keywords
from ...models import (
    BankEntry,
    Intent,
    MatchMode,
    ReconciliationPattern,
    SingleMatch,
)
from ..context import MatchContext
from .base import BaseMatcher, CandidateMatch

logger = structlog.get_logger()

EXPENSE_KEYWORDS = (
    "expense", "expenses", "bill", "bills", "fee", "fees", "charge", "charges",
    "utilities", "rent", "insurance", "subscription", "office", "supplies", "maintenance",
    "professional", "legal", "accounting", "tax", "vat", "hmrc", "council", "electric",
    "gas", "water", "phone", "internet", "broadband", "software", "license", "licence",
)
# Descriptions with these words are never attributed to a borrower or investor by name.
NAME_BLOCKING_KEYWORDS = ("expense", "expenses", "bill", "bills", "fee", "fees")
GENERIC_INVESTOR_WORDS = frozenset({
    "loan", "fund", "funding", "capital", "investment", "finance", "scheme", "limited", "ltd",
})

EXACT_KEYWORD_SCORE = 1.0
CONTAINED_KEYWORD_SCORE = 0.7
SIMILAR_KEYWORD_SCORE = 0.5
SIMILAR_KEYWORD_THRESHOLD = 0.75

PATTERN_CONFIDENCE_WEIGHT = 0.6
KEYWORD_SCORE_WEIGHT = 0.25
USAGE_BOOST_DIVISOR = 20
MAX_USAGE_BOOST = 0.15
DEFAULT_CONFIDENCE = 0.35


def pattern_keyword_score(description: Optional[str], pattern: str) -> float:
    """
    Fuzzy keyword agreement between a description and a stored pattern.

    Every (description keyword, pattern keyword) pair contributes 1.0 when
    equal, 0.7 when one contains the other and 0.5 when their edit-distance
    similarity is at least 0.75; the sum is divided by the number of pattern
    keywords.
    """
    pattern_keywords = extract_vendor_keywords(pattern)
    if not pattern_keywords:
        return 0.0

    total = 0.0
    for entry_kw in extract_vendor_keywords(description):
        for pattern_kw in pattern_keywords:
            if entry_kw == pattern_kw:
                total += EXACT_KEYWORD_SCORE
            elif entry_kw in pattern_kw or pattern_kw in entry_kw:
                total += CONTAINED_KEYWORD_SCORE
            elif levenshtein_similarity(entry_kw, pattern_kw) >= SIMILAR_KEYWORD_THRESHOLD:
                total += SIMILAR_KEYWORD_SCORE
    return total / len(pattern_keywords)


def _contains_any(description: str, keywords) -> bool:
    lowered = (description or "").lower()
    return any(kw in lowered for kw in keywords)


class PatternMatcher(BaseMatcher):
    name = "pattern"
    default_priority = 30

    def can_match(self, entry: BankEntry, context: MatchContext) -> bool:
        return entry.amount_cents != 0

    def generate_matches(self, entry: BankEntry, context: MatchContext) -> List[CandidateMatch]:
        matches = self._pattern_matches(entry, context)

        if entry.is_debit:
            expense_match = self._expense_keyword_match(entry)
            if expense_match:
                matches.append(expense_match)

        if not _contains_any(entry.description, NAME_BLOCKING_KEYWORDS):
            borrower_match = self._borrower_name_match(entry, context)
            if borrower_match:
                matches.append(borrower_match)
            investor_match = self._investor_name_match(entry, context)
            if investor_match:
                matches.append(investor_match)

        return matches

    def _pattern_applies(self, entry: BankEntry, pattern: ReconciliationPattern) -> bool:
        amount = entry.abs_cents
        if pattern.amount_min_cents and amount < pattern.amount_min_cents:
            return False
        if pattern.amount_max_cents and amount > pattern.amount_max_cents:
            return False
        if pattern.direction:
            return pattern.direction == ("CRDT" if entry.is_credit else "DBIT")
        return True

    def _pattern_matches(self, entry: BankEntry, context: MatchContext) -> List[CandidateMatch]:
        matches = []
        for pattern in context.patterns:
            keyword_score = pattern_keyword_score(entry.description, pattern.description_pattern)
            if keyword_score < self.settings.pattern_keyword_threshold:
                continue
            if not self._pattern_applies(entry, pattern):
                continue
            matches.append(CandidateMatch(
                intent=pattern.match_type,
                suggestion=SingleMatch(
                    mode=MatchMode.CREATE,
                    loan=context.loan(pattern.loan_id),
                    investor=context.investor(pattern.investor_id),
                    expense_type=context.expense_type(pattern.expense_type_id),
                    pattern_id=pattern.id,
                ),
                reason=f'Pattern: "{pattern.description_pattern}" (used {pattern.match_count or 1}x)',
                keyword_score=keyword_score,
                pattern_confidence=pattern.confidence_score or 0.5,
                usage_count=pattern.match_count or 1,
            ))
        return matches

    def _expense_keyword_match(self, entry: BankEntry) -> Optional[CandidateMatch]:
        if not _contains_any(entry.description, EXPENSE_KEYWORDS):
            return None
        return CandidateMatch(
            intent=Intent.OPERATING_EXPENSE,
            suggestion=SingleMatch(mode=MatchMode.CREATE),
            reason="Description contains expense keyword",
            fixed_score=self.settings.expense_keyword_confidence,
        )

    def _borrower_name_match(self, entry: BankEntry, context: MatchContext) -> Optional[CandidateMatch]:
        best: Optional[CandidateMatch] = None
        best_score = 0.0

        for loan in sorted(context.loans, key=lambda l: l.id):
            if not loan.status.is_open:
                continue
            borrower = context.borrower_for_loan(loan)
            name = (borrower.business_name or borrower.full_name) if borrower else loan.borrower_name
            if not name:
                continue

            similarity = keyword_overlap_similarity(entry.description, name)
            if similarity > self.settings.borrower_name_threshold and similarity > best_score:
                best_score = similarity
                best = CandidateMatch(
                    intent=Intent.LOAN_REPAYMENT if entry.is_credit else Intent.LOAN_DISBURSEMENT,
                    suggestion=SingleMatch(mode=MatchMode.CREATE, loan=loan, borrower=borrower),
                    reason=f"Name match: {name} ({loan.loan_number or 'Unknown'})",
                    fixed_score=similarity,
                )
        return best

    def _investor_name_match(self, entry: BankEntry, context: MatchContext) -> Optional[CandidateMatch]:
        best: Optional[CandidateMatch] = None
        best_score = 0.0

        for investor in sorted(context.investors, key=lambda i: i.id):
            name = investor.business_name or investor.name
            if not name:
                continue

            significant = [w for w in name.lower().split() if len(w) > 2]
            if significant and all(w in GENERIC_INVESTOR_WORDS for w in significant):
                logger.debug("Skipping generic investor name", investor_id=investor.id)
                continue

            name_score = description_contains_name(entry.description, investor.name, investor.business_name)
            if name_score > self.settings.investor_name_threshold and name_score > best_score:
                best_score = name_score
                best = CandidateMatch(
                    intent=Intent.INVESTOR_FUNDING if entry.is_credit else Intent.INVESTOR_WITHDRAWAL,
                    suggestion=SingleMatch(mode=MatchMode.CREATE, investor=investor),
                    reason=f"Investor name match: {name}",
                    fixed_score=name_score,
                )
        return best

    def calculate_confidence(self, match: CandidateMatch, entry: BankEntry) -> float:
        if match.suggestion.pattern_id:
            usage_boost = min(match.usage_count / USAGE_BOOST_DIVISOR, MAX_USAGE_BOOST)
            score = (
                match.pattern_confidence * PATTERN_CONFIDENCE_WEIGHT
                + match.keyword_score * KEYWORD_SCORE_WEIGHT
                + usage_boost
            )
            return min(score, self.settings.single_score_cap)
        if match.fixed_score is not None:
            return min(match.fixed_score, self.settings.single_score_cap)
        return DEFAULT_CONFIDENCE
