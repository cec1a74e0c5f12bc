"""Enumerations for the bank reconciliation engine."""

from enum import Enum


class Intent(str, Enum):
    """
    Real-world meaning of a bank statement line.

    Credits (money in) can only be repayments, interest-only payments or
    investor funding; debits (money out) can only be disbursements, investor
    withdrawals/interest, expenses or platform fees. TRANSFER and UNKNOWN
    are valid in both directions.
    """
    LOAN_REPAYMENT = "loan_repayment"
    LOAN_DISBURSEMENT = "loan_disbursement"
    INTEREST_ONLY_PAYMENT = "interest_only_payment"
    INVESTOR_FUNDING = "investor_funding"
    INVESTOR_WITHDRAWAL = "investor_withdrawal"
    INVESTOR_INTEREST = "investor_interest"
    OPERATING_EXPENSE = "operating_expense"
    PLATFORM_FEE = "platform_fee"
    TRANSFER = "transfer"
    UNKNOWN = "unknown"

    @property
    def is_loan_payment(self) -> bool:
        """Intents that carry a principal/interest split."""
        return self in (Intent.LOAN_REPAYMENT, Intent.INTEREST_ONLY_PAYMENT)


CREDIT_INTENTS = frozenset({
    Intent.LOAN_REPAYMENT,
    Intent.INTEREST_ONLY_PAYMENT,
    Intent.INVESTOR_FUNDING,
    Intent.TRANSFER,
    Intent.UNKNOWN,
})

DEBIT_INTENTS = frozenset({
    Intent.LOAN_DISBURSEMENT,
    Intent.INVESTOR_WITHDRAWAL,
    Intent.INVESTOR_INTEREST,
    Intent.OPERATING_EXPENSE,
    Intent.PLATFORM_FEE,
    Intent.TRANSFER,
    Intent.UNKNOWN,
})


class MatchMode(str, Enum):
    """How a suggestion would be reconciled."""
    MATCH = "match"                    # One bank entry to one existing record
    CREATE = "create"                  # Create a new record for the entry
    MATCH_GROUP = "match_group"        # One bank entry to several records
    GROUPED_ENTRIES = "grouped_entries"  # Several bank entries to one record


class ConfidenceLevel(str, Enum):
    """Bucketed confidence for display."""
    HIGH = "high"      # >= 90
    MEDIUM = "medium"  # >= 70
    LOW = "low"


class AmountTier(str, Enum):
    """Amount agreement tiers used by the match score ladder."""
    EXACT = "exact"    # within 0.1%
    CLOSE = "close"    # within 5%


class LoanStatus(str, Enum):
    """Lifecycle status of a loan."""
    PENDING = "Pending"
    LIVE = "Live"
    ACTIVE = "Active"
    SETTLED = "Settled"
    CLOSED = "Closed"
    WRITTEN_OFF = "Written Off"

    @property
    def is_open(self) -> bool:
        return self in (LoanStatus.LIVE, LoanStatus.ACTIVE)


class ScheduleStatus(str, Enum):
    """Status of a repayment schedule installment."""
    PENDING = "Pending"
    OVERDUE = "Overdue"
    PAID = "Paid"
    PARTIAL = "Partial"

    @property
    def is_open(self) -> bool:
        return self in (ScheduleStatus.PENDING, ScheduleStatus.OVERDUE)


class LoanTransactionType(str, Enum):
    """Type of a recorded loan transaction."""
    REPAYMENT = "Repayment"
    DISBURSEMENT = "Disbursement"


class InvestorTransactionType(str, Enum):
    """Type of a recorded investor capital movement."""
    CAPITAL_IN = "capital_in"
    CAPITAL_OUT = "capital_out"


class InterestDirection(str, Enum):
    """Direction of an investor interest ledger entry."""
    CREDIT = "credit"  # Interest accrued to the investor
    DEBIT = "debit"    # Interest paid out to the investor


class InvestorStatus(str, Enum):
    """Status of an investor account."""
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class PaymentType(str, Enum):
    """How a payment relates to its schedule installment."""
    EXACT = "exact"
    INTEREST_ONLY = "interest_only"
    OVERPAYMENT = "overpayment"
    PARTIAL = "partial"
    CLOSE = "close"
    UNKNOWN = "unknown"
