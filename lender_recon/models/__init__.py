"""Data models for the bank reconciliation engine."""

from .enums import (
    Intent,
    CREDIT_INTENTS,
    DEBIT_INTENTS,
    MatchMode,
    ConfidenceLevel,
    AmountTier,
    LoanStatus,
    ScheduleStatus,
    LoanTransactionType,
    InvestorTransactionType,
    InterestDirection,
    InvestorStatus,
    PaymentType,
)
from .entry import BankEntry
from .records import (
    Borrower,
    Loan,
    ScheduleInstallment,
    LoanTransaction,
    Investor,
    InvestorTransaction,
    InvestorInterest,
    Expense,
    ExpenseType,
    ReconciliationPattern,
)
from .classification import (
    SingleMatch,
    GroupMatch,
    NoMatch,
    NO_MATCH,
    SuggestedMatch,
    Split,
    ExplanationItem,
    MatchExplanation,
    Classification,
    confidence_level,
)

__all__ = [
    # Enums
    "Intent",
    "CREDIT_INTENTS",
    "DEBIT_INTENTS",
    "MatchMode",
    "ConfidenceLevel",
    "AmountTier",
    "LoanStatus",
    "ScheduleStatus",
    "LoanTransactionType",
    "InvestorTransactionType",
    "InterestDirection",
    "InvestorStatus",
    "PaymentType",
    # Entries and records
    "BankEntry",
    "Borrower",
    "Loan",
    "ScheduleInstallment",
    "LoanTransaction",
    "Investor",
    "InvestorTransaction",
    "InvestorInterest",
    "Expense",
    "ExpenseType",
    "ReconciliationPattern",
    # Results
    "SingleMatch",
    "GroupMatch",
    "NoMatch",
    "NO_MATCH",
    "SuggestedMatch",
    "Split",
    "ExplanationItem",
    "MatchExplanation",
    "Classification",
    "confidence_level",
]
