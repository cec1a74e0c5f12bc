"""Matches bank debits one-to-one against recorded expenses."""

from typing import List

from ...matching.scoring import calculate_match_score
from ...matching.tolerance import dates_within_days
from ...models import BankEntry, Intent, SingleMatch
from ..context import MatchContext
from .base import BaseMatcher, CandidateMatch


class ExpenseMatcher(BaseMatcher):
    name = "expense"
    default_priority = 50

    def can_match(self, entry: BankEntry, context: MatchContext) -> bool:
        return entry.is_debit

    def generate_matches(self, entry: BankEntry, context: MatchContext) -> List[CandidateMatch]:
        window = self.settings.single_match_window_days
        matches = []
        for expense in sorted(context.expenses, key=lambda e: e.id):
            if not context.is_available(expense.id):
                continue
            if not dates_within_days(entry.statement_date, expense.date, window):
                continue
            expense_type = context.expense_type(expense.type_id)
            label = expense.type_name or (expense_type.name if expense_type else None) or "Expense"
            matches.append(CandidateMatch(
                intent=Intent.OPERATING_EXPENSE,
                suggestion=SingleMatch(
                    candidate=expense,
                    loan=context.loan(expense.loan_id),
                    expense_type=expense_type,
                ),
                reason=f"Expense: {label} - {self.settings.format_cents(expense.amount_cents)}",
            ))
        return matches

    def calculate_confidence(self, match: CandidateMatch, entry: BankEntry) -> float:
        # Expenses carry no counterparty name, so no name boost.
        return calculate_match_score(entry, match.suggestion.candidate, self.settings)
