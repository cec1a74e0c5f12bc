"""
Read-only snapshot of everything a bank entry can be matched against.

The context is built once per batch and shared (never mutated) by every
matcher and worker thread. ``claimed_ids`` holds records already suggested
for an earlier entry in the same batch; ``reconciled_ids`` holds records
already linked to a bank entry.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..models import (
    BankEntry,
    Borrower,
    Expense,
    ExpenseType,
    Investor,
    InvestorInterest,
    InvestorTransaction,
    Loan,
    LoanTransaction,
    ReconciliationPattern,
    ScheduleInstallment,
)


@dataclass(frozen=True)
class MatchContext:
    """Candidate records, sibling bank entries and reconciliation state."""
    loans: Tuple[Loan, ...] = ()
    borrowers: Tuple[Borrower, ...] = ()
    schedules: Tuple[ScheduleInstallment, ...] = ()
    loan_transactions: Tuple[LoanTransaction, ...] = ()
    investors: Tuple[Investor, ...] = ()
    investor_transactions: Tuple[InvestorTransaction, ...] = ()
    investor_interest: Tuple[InvestorInterest, ...] = ()
    expenses: Tuple[Expense, ...] = ()
    expense_types: Tuple[ExpenseType, ...] = ()
    patterns: Tuple[ReconciliationPattern, ...] = ()
    bank_entries: Tuple[BankEntry, ...] = ()
    reconciled_ids: FrozenSet[str] = frozenset()
    claimed_ids: FrozenSet[str] = frozenset()

    _loans_by_id: Dict[str, Loan] = field(init=False, repr=False, compare=False)
    _borrowers_by_id: Dict[str, Borrower] = field(init=False, repr=False, compare=False)
    _investors_by_id: Dict[str, Investor] = field(init=False, repr=False, compare=False)
    _expense_types_by_id: Dict[str, ExpenseType] = field(init=False, repr=False, compare=False)
    _schedules_by_loan: Dict[str, List[ScheduleInstallment]] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self):
        # Accept any iterable from callers, store tuples.
        for name in (
            "loans", "borrowers", "schedules", "loan_transactions", "investors",
            "investor_transactions", "investor_interest", "expenses",
            "expense_types", "patterns", "bank_entries",
        ):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        object.__setattr__(self, "reconciled_ids", frozenset(self.reconciled_ids))
        object.__setattr__(self, "claimed_ids", frozenset(self.claimed_ids))

        object.__setattr__(self, "_loans_by_id", {l.id: l for l in self.loans})
        object.__setattr__(self, "_borrowers_by_id", {b.id: b for b in self.borrowers})
        object.__setattr__(self, "_investors_by_id", {i.id: i for i in self.investors})
        object.__setattr__(
            self, "_expense_types_by_id", {t.id: t for t in self.expense_types}
        )

        by_loan: Dict[str, List[ScheduleInstallment]] = {}
        for installment in self.schedules:
            by_loan.setdefault(installment.loan_id, []).append(installment)
        object.__setattr__(self, "_schedules_by_loan", by_loan)

    # Lookups

    def loan(self, loan_id: Optional[str]) -> Optional[Loan]:
        return self._loans_by_id.get(loan_id) if loan_id else None

    def borrower(self, borrower_id: Optional[str]) -> Optional[Borrower]:
        return self._borrowers_by_id.get(borrower_id) if borrower_id else None

    def investor(self, investor_id: Optional[str]) -> Optional[Investor]:
        return self._investors_by_id.get(investor_id) if investor_id else None

    def expense_type(self, type_id: Optional[str]) -> Optional[ExpenseType]:
        return self._expense_types_by_id.get(type_id) if type_id else None

    def schedules_for(self, loan_id: Optional[str]) -> List[ScheduleInstallment]:
        return list(self._schedules_by_loan.get(loan_id, ())) if loan_id else []

    def borrower_for_loan(self, loan: Optional[Loan]) -> Optional[Borrower]:
        return self.borrower(loan.borrower_id) if loan else None

    def borrower_id_for(self, tx: LoanTransaction) -> Optional[str]:
        """Borrower behind a loan transaction (via its loan when known)."""
        loan = self.loan(tx.loan_id)
        return (loan.borrower_id if loan else None) or tx.borrower_id

    # Reconciliation state

    def is_available(self, record_id: str) -> bool:
        """A record can still be suggested: not reconciled and not claimed."""
        return record_id not in self.reconciled_ids and record_id not in self.claimed_ids

    def with_claims(self, record_ids: Iterable[str]) -> "MatchContext":
        """Copy of this context with extra records marked as claimed."""
        return replace(self, claimed_ids=self.claimed_ids | frozenset(record_ids))

    def with_bank_entries(self, entries: Iterable[BankEntry]) -> "MatchContext":
        """Copy of this context with a different sibling entry set."""
        return replace(self, bank_entries=tuple(entries))
