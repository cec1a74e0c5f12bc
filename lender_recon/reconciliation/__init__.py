"""Bank entry classification: matchers, intent resolution, splits and batches."""

from .context import MatchContext
from .matchers import (
    BaseMatcher,
    CandidateMatch,
    ExpenseMatcher,
    InvestorCreditMatcher,
    InvestorWithdrawalMatcher,
    LoanDisbursementMatcher,
    LoanRepaymentMatcher,
    PatternMatcher,
    create_matcher_set,
    default_matchers,
)
from .split import (
    SplitValidation,
    ScheduleCandidate,
    calculate_split,
    detect_payment_type,
    find_matching_schedules,
    share_group_split,
    validate_split,
)
from .resolver import IntentResolver, allowed_intents
from .orchestrator import BatchResult, ClassificationOrchestrator, ClassificationSummary

__all__ = [
    "MatchContext",
    "BaseMatcher",
    "CandidateMatch",
    "ExpenseMatcher",
    "InvestorCreditMatcher",
    "InvestorWithdrawalMatcher",
    "LoanDisbursementMatcher",
    "LoanRepaymentMatcher",
    "PatternMatcher",
    "create_matcher_set",
    "default_matchers",
    "SplitValidation",
    "ScheduleCandidate",
    "calculate_split",
    "detect_payment_type",
    "find_matching_schedules",
    "share_group_split",
    "validate_split",
    "IntentResolver",
    "allowed_intents",
    "BatchResult",
    "ClassificationOrchestrator",
    "ClassificationSummary",
]
