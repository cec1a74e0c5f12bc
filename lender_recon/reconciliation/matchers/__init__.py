"""
Matcher registry.

Higher-priority matchers run first; the resolver keeps the best-scoring
proposal across all of them.
"""

from typing import List, Optional

from ...config import Settings
from .base import BaseMatcher, CandidateMatch, GroupKind
from .loans import LoanRepaymentMatcher, LoanDisbursementMatcher
from .investors import InvestorCreditMatcher, InvestorWithdrawalMatcher
from .expenses import ExpenseMatcher
from .patterns import PatternMatcher


def create_matcher_set(
    loan_repayments: bool = True,
    loan_disbursements: bool = True,
    investor_credits: bool = True,
    investor_withdrawals: bool = True,
    expenses: bool = True,
    patterns: bool = True,
    settings: Optional[Settings] = None,
) -> List[BaseMatcher]:
    """Build the standard matchers, leaving out any that are switched off."""
    enabled = (
        (loan_repayments, LoanRepaymentMatcher),
        (loan_disbursements, LoanDisbursementMatcher),
        (investor_credits, InvestorCreditMatcher),
        (investor_withdrawals, InvestorWithdrawalMatcher),
        (expenses, ExpenseMatcher),
        (patterns, PatternMatcher),
    )
    return [matcher_cls(settings=settings) for on, matcher_cls in enabled if on]


def default_matchers(settings: Optional[Settings] = None) -> List[BaseMatcher]:
    """All matchers at their default priorities."""
    return create_matcher_set(settings=settings)


__all__ = [
    "BaseMatcher",
    "CandidateMatch",
    "GroupKind",
    "LoanRepaymentMatcher",
    "LoanDisbursementMatcher",
    "InvestorCreditMatcher",
    "InvestorWithdrawalMatcher",
    "ExpenseMatcher",
    "PatternMatcher",
    "create_matcher_set",
    "default_matchers",
]
