"""
System-side records the engine can match bank entries against.

Every matchable record exposes ``match_amount_cents`` and ``match_date`` so the
scorers can treat loans' transactions, schedule installments, investor
movements and expenses uniformly. All monetary amounts are in CENTS.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from .enums import (
    Intent,
    InterestDirection,
    InvestorStatus,
    InvestorTransactionType,
    LoanStatus,
    LoanTransactionType,
    ScheduleStatus,
)


@dataclass(frozen=True)
class Borrower:
    """A borrower (person and/or business)."""
    id: str
    full_name: Optional[str] = None
    business_name: Optional[str] = None
    email: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.business_name or self.full_name or "Unknown"


@dataclass(frozen=True)
class Loan:
    """A loan facility."""
    id: str
    borrower_id: Optional[str] = None
    loan_number: Optional[str] = None
    borrower_name: Optional[str] = None
    status: LoanStatus = LoanStatus.LIVE
    outstanding_balance_cents: int = 0
    accrued_interest_cents: Optional[int] = None


@dataclass(frozen=True)
class ScheduleInstallment:
    """A scheduled repayment of a loan."""
    id: str
    loan_id: str
    due_date: Optional[date] = None
    principal_cents: int = 0
    interest_cents: int = 0
    status: ScheduleStatus = ScheduleStatus.PENDING

    @property
    def expected_cents(self) -> int:
        return self.principal_cents + self.interest_cents

    @property
    def match_amount_cents(self) -> int:
        return self.expected_cents

    @property
    def match_date(self) -> Optional[date]:
        return self.due_date


@dataclass(frozen=True)
class LoanTransaction:
    """A repayment or disbursement already recorded against a loan."""
    id: str
    loan_id: Optional[str] = None
    borrower_id: Optional[str] = None
    type: LoanTransactionType = LoanTransactionType.REPAYMENT
    amount_cents: int = 0
    date: Optional[date] = None
    is_deleted: bool = False

    @property
    def match_amount_cents(self) -> int:
        return abs(self.amount_cents)

    @property
    def match_date(self) -> Optional[date]:
        return self.date


@dataclass(frozen=True)
class Investor:
    """An investor account."""
    id: str
    name: Optional[str] = None
    business_name: Optional[str] = None
    account_number: Optional[str] = None
    status: InvestorStatus = InvestorStatus.ACTIVE
    capital_balance_cents: int = 0

    @property
    def display_name(self) -> str:
        return self.business_name or self.name or "Unknown"


@dataclass(frozen=True)
class InvestorTransaction:
    """A recorded investor capital movement."""
    id: str
    investor_id: Optional[str] = None
    type: InvestorTransactionType = InvestorTransactionType.CAPITAL_IN
    amount_cents: int = 0
    date: Optional[date] = None

    @property
    def match_amount_cents(self) -> int:
        return abs(self.amount_cents)

    @property
    def match_date(self) -> Optional[date]:
        return self.date


@dataclass(frozen=True)
class InvestorInterest:
    """An investor interest ledger entry."""
    id: str
    investor_id: Optional[str] = None
    type: InterestDirection = InterestDirection.DEBIT
    amount_cents: int = 0
    date: Optional[date] = None

    @property
    def match_amount_cents(self) -> int:
        return abs(self.amount_cents)

    @property
    def match_date(self) -> Optional[date]:
        return self.date


@dataclass(frozen=True)
class ExpenseType:
    id: str
    name: str = ""


@dataclass(frozen=True)
class Expense:
    """A recorded operating expense."""
    id: str
    type_id: Optional[str] = None
    type_name: Optional[str] = None
    amount_cents: int = 0
    date: Optional[date] = None
    loan_id: Optional[str] = None

    @property
    def match_amount_cents(self) -> int:
        return abs(self.amount_cents)

    @property
    def match_date(self) -> Optional[date]:
        return self.date


@dataclass(frozen=True)
class ReconciliationPattern:
    """
    A description pattern learned from earlier human reconciliations.

    ``direction`` is "CRDT" or "DBIT" when the pattern only applies to
    credits or debits.
    """
    id: str
    description_pattern: str
    match_type: Intent
    loan_id: Optional[str] = None
    investor_id: Optional[str] = None
    expense_type_id: Optional[str] = None
    amount_min_cents: Optional[int] = None
    amount_max_cents: Optional[int] = None
    direction: Optional[str] = None
    confidence_score: float = 0.5
    match_count: int = 1
