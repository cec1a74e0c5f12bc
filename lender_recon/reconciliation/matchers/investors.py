"""
Investor matchers.

InvestorCreditMatcher handles credits (capital paid in); InvestorWithdrawalMatcher
handles debits (capital paid out and interest paid to investors). Both also
propose same-investor groups and split payments spread over several entries.
"""

from collections import defaultdict
from typing import Dict, List

import structlog

from ...matching.tolerance import amounts_match, date_proximity_score, dates_within_days
from ...models import (
    BankEntry,
    GroupMatch,
    Intent,
    InterestDirection,
    Investor,
    InvestorTransaction,
    InvestorTransactionType,
    MatchMode,
    SingleMatch,
)
from ..context import MatchContext
from .base import BaseMatcher, CandidateMatch, GroupKind

logger = structlog.get_logger()

# Records must score at least this on date proximity (about 3 days) to join a group.
GROUP_DATE_PROXIMITY = 0.85
SAME_DAY_GROUP_SCORE = 0.92
NEARBY_GROUP_SCORE = 0.90
CROSS_TABLE_GROUP_SCORE = 0.92


def _investor_label(investor) -> str:
    return investor.display_name if investor is not None else "Unknown"


class _InvestorMatcher(BaseMatcher):
    """Shared investor matching: singles, same-investor groups and split entries."""

    capital_type = InvestorTransactionType.CAPITAL_IN
    intent = Intent.INVESTOR_FUNDING
    label = "Investor credit"

    def _capital(self, context: MatchContext) -> List[InvestorTransaction]:
        return sorted(
            (
                tx for tx in context.investor_transactions
                if tx.type == self.capital_type and context.is_available(tx.id)
            ),
            key=lambda tx: tx.id,
        )

    def _single(self, context: MatchContext, record, intent: Intent, label: str):
        investor = context.investor(record.investor_id)
        return CandidateMatch(
            intent=intent,
            suggestion=SingleMatch(candidate=record, investor=investor),
            reason=f"{label}: {_investor_label(investor)} - {self.settings.format_cents(record.amount_cents)}",
        )

    def generate_matches(self, entry: BankEntry, context: MatchContext) -> List[CandidateMatch]:
        window = self.settings.single_match_window_days
        return [
            self._single(context, tx, self.intent, self.label)
            for tx in self._capital(context)
            if dates_within_days(entry.statement_date, tx.date, window)
        ]

    def _same_investor_groups(
        self,
        entry: BankEntry,
        context: MatchContext,
        records: List,
        intent: Intent,
        label: str,
    ) -> List[CandidateMatch]:
        by_investor: Dict[str, List] = defaultdict(list)
        for record in records:
            if date_proximity_score(entry.statement_date, record.date) < GROUP_DATE_PROXIMITY:
                continue
            by_investor[record.investor_id].append(record)

        matches = []
        for investor_id, group in by_investor.items():
            if len(group) < 2:
                continue
            total = sum(r.match_amount_cents for r in group)
            if not amounts_match(entry.abs_cents, total, self.settings.group_amount_tolerance_percent):
                continue
            investor = context.investor(investor_id)
            max_diff = self.max_days_from(entry, group)
            matches.append(CandidateMatch(
                intent=intent,
                suggestion=GroupMatch(
                    entries=(entry,),
                    candidates=tuple(group),
                    total_cents=total,
                    mode=MatchMode.MATCH_GROUP,
                    investor=investor,
                ),
                reason=f"{label}: {_investor_label(investor)} - {len(group)} records "
                       f"= {self.settings.format_cents(total)}",
                group_kind=GroupKind.INVESTOR,
                max_date_diff=max_diff,
                all_same_day=max_diff <= 1,
            ))
        return matches

    def _split_entries(self, entry: BankEntry, context: MatchContext) -> List[CandidateMatch]:
        siblings = self.sibling_entries(entry, context)
        if len(siblings) < 2:
            return []

        matches = []
        for tx in self._capital(context):
            investor = context.investor(tx.investor_id)

            def build(group, tx=tx, investor=investor):
                return GroupMatch(
                    entries=tuple(group),
                    candidates=(tx,),
                    total_cents=sum(e.abs_cents for e in group),
                    mode=MatchMode.GROUPED_ENTRIES,
                    investor=investor,
                )

            match = self.grouped_entries_match(
                entry, siblings, tx, self.intent, build,
                entity_name=investor.display_name if investor else None,
                label=_investor_label(investor),
            )
            if match:
                matches.append(match)
        return matches

    def calculate_confidence(self, match: CandidateMatch, entry: BankEntry) -> float:
        if match.suggestion.mode != MatchMode.MATCH_GROUP:
            return super().calculate_confidence(match, entry)

        if match.group_kind == GroupKind.CROSS_TABLE:
            score = CROSS_TABLE_GROUP_SCORE
        else:
            score = SAME_DAY_GROUP_SCORE if match.all_same_day else NEARBY_GROUP_SCORE
        return self.boost_group(score, self.entity_name_score(entry, match))


class InvestorCreditMatcher(_InvestorMatcher):
    """Matches credits to investor capital deposits."""

    name = "investor_credit"
    default_priority = 80

    capital_type = InvestorTransactionType.CAPITAL_IN
    intent = Intent.INVESTOR_FUNDING
    label = "Investor credit"

    def can_match(self, entry: BankEntry, context: MatchContext) -> bool:
        return entry.is_credit

    def generate_group_matches(self, entry: BankEntry, context: MatchContext) -> List[CandidateMatch]:
        matches = self._same_investor_groups(
            entry, context, self._capital(context), Intent.INVESTOR_FUNDING, "Grouped investor"
        )
        matches.extend(self._split_entries(entry, context))
        return matches


class InvestorWithdrawalMatcher(_InvestorMatcher):
    """Matches debits to investor capital withdrawals and interest payouts."""

    name = "investor_withdrawal"
    default_priority = 75

    capital_type = InvestorTransactionType.CAPITAL_OUT
    intent = Intent.INVESTOR_WITHDRAWAL
    label = "Investor withdrawal"

    def can_match(self, entry: BankEntry, context: MatchContext) -> bool:
        return entry.is_debit

    def _interest_paid(self, context: MatchContext):
        return sorted(
            (
                i for i in context.investor_interest
                if i.type == InterestDirection.DEBIT and context.is_available(i.id)
            ),
            key=lambda i: i.id,
        )

    def generate_matches(self, entry: BankEntry, context: MatchContext) -> List[CandidateMatch]:
        matches = super().generate_matches(entry, context)
        window = self.settings.single_match_window_days
        matches.extend(
            self._single(context, interest, Intent.INVESTOR_INTEREST, "Interest withdrawal")
            for interest in self._interest_paid(context)
            if dates_within_days(entry.statement_date, interest.date, window)
        )
        return matches

    def generate_group_matches(self, entry: BankEntry, context: MatchContext) -> List[CandidateMatch]:
        capital = self._capital(context)
        interest = self._interest_paid(context)

        matches = self._same_investor_groups(
            entry, context, capital, Intent.INVESTOR_WITHDRAWAL, "Grouped capital"
        )
        matches.extend(self._same_investor_groups(
            entry, context, interest, Intent.INVESTOR_INTEREST, "Grouped interest"
        ))
        matches.extend(self._cross_table_groups(entry, context, capital, interest))
        matches.extend(self._split_entries(entry, context))
        return matches

    def _cross_table_groups(self, entry: BankEntry, context: MatchContext, capital, interest) -> List[CandidateMatch]:
        """Capital and interest paid to one investor in a single transfer."""
        combined: Dict[str, Dict[str, list]] = defaultdict(lambda: {"capital": [], "interest": []})
        for tx in capital:
            if date_proximity_score(entry.statement_date, tx.date) >= GROUP_DATE_PROXIMITY:
                combined[tx.investor_id]["capital"].append(tx)
        for record in interest:
            if date_proximity_score(entry.statement_date, record.date) >= GROUP_DATE_PROXIMITY:
                combined[record.investor_id]["interest"].append(record)

        matches = []
        for investor_id, parts in combined.items():
            if not parts["capital"] or not parts["interest"]:
                continue
            records = parts["capital"] + parts["interest"]
            total = sum(r.match_amount_cents for r in records)
            if not amounts_match(entry.abs_cents, total, self.settings.group_amount_tolerance_percent):
                continue
            investor: Investor = context.investor(investor_id)
            logger.debug("Capital and interest combined", entry_id=entry.id, investor_id=investor_id, records=len(records))
            matches.append(CandidateMatch(
                intent=Intent.INVESTOR_WITHDRAWAL,
                suggestion=GroupMatch(
                    entries=(entry,),
                    candidates=tuple(records),
                    total_cents=total,
                    mode=MatchMode.MATCH_GROUP,
                    investor=investor,
                ),
                reason=f"Combined: {_investor_label(investor)} - {len(parts['capital'])} capital "
                       f"+ {len(parts['interest'])} interest = {self.settings.format_cents(total)}",
                group_kind=GroupKind.CROSS_TABLE,
                max_date_diff=self.max_days_from(entry, records),
            ))
        return matches
