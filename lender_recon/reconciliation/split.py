"""
Payment split and schedule helpers.

A loan payment is allocated to interest first, and whatever is left goes to
principal. When the payment is within tolerance of the installment total
this mirrors the installment; overpayments land on principal and
underpayments satisfy interest before any principal.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Sequence

import structlog

from ..config import Settings, get_settings
from ..models import (
    BankEntry,
    Intent,
    Loan,
    LoanStatus,
    PaymentType,
    ScheduleInstallment,
    ScheduleStatus,
    Split,
)
from ..matching.tolerance import days_between

logger = structlog.get_logger()

EXACT_PAYMENT_RATIO = 0.01
INTEREST_ONLY_TOLERANCE_RATIO = 0.05
INTEREST_WARNING_RATIO = 1.1

# find_matching_schedules point scale (0-100)
NAME_SCORE_WEIGHT = 0.5
MIN_NAME_SIMILARITY = 50
SCHEDULE_AMOUNT_POINTS = ((0.01, 30), (0.05, 25), (0.10, 15), (0.20, 5))
SCHEDULE_DATE_POINTS = ((3, 20), (7, 15), (14, 10), (30, 5))
OVERDUE_POINTS = 10
MIN_SCHEDULE_SCORE = 20


def combine_installments(installments: Sequence[ScheduleInstallment]) -> Optional[ScheduleInstallment]:
    """Merge several installments paid together into one for split purposes."""
    if not installments:
        return None
    if len(installments) == 1:
        return installments[0]
    first = installments[0]
    return ScheduleInstallment(
        id="+".join(i.id for i in installments),
        loan_id=first.loan_id,
        due_date=first.due_date,
        principal_cents=sum(i.principal_cents for i in installments),
        interest_cents=sum(i.interest_cents for i in installments),
        status=first.status,
    )


def calculate_split(
    payment_cents: int,
    installment: Optional[ScheduleInstallment],
    intent: Intent = Intent.LOAN_REPAYMENT,
    settings: Optional[Settings] = None,
) -> Split:
    """
    Split a loan payment into principal, interest and fees.

    Without an installment the split is estimated: all principal for
    repayments, all interest for interest-only payments. The result always
    sums to the absolute payment amount.
    """
    settings = settings or get_settings()
    payment = abs(payment_cents)

    if installment is None:
        if intent == Intent.INTEREST_ONLY_PAYMENT:
            return Split(interest_cents=payment, is_estimated=True)
        return Split(principal_cents=payment, is_estimated=True)

    expected_principal = installment.principal_cents
    expected_interest = installment.interest_cents
    expected_total = expected_principal + expected_interest

    interest = min(payment, expected_interest)
    principal = payment - interest

    tolerance = expected_total * settings.split_tolerance_percent / 100
    if abs(payment - expected_total) <= tolerance:
        note = None
        if payment != expected_total:
            note = f"Difference of {settings.format_cents(payment - expected_total)} applied to principal"
    elif payment > expected_total:
        note = f"Extra {settings.format_cents(payment - expected_total)} applied to principal"
    elif payment <= expected_interest:
        note = "Interest payment only (shortfall on principal)"
    else:
        note = "Full interest paid, partial principal"

    return Split(
        principal_cents=principal,
        interest_cents=interest,
        fees_cents=0,
        is_estimated=False,
        note=note,
    )


def share_group_split(split: Split, entries: Sequence[BankEntry], entry_id: str) -> Split:
    """
    One entry's share of a payment made up of several bank entries.

    Interest is allocated to the entries in statement order (date, then id)
    until the payment's interest is used up; the rest of each entry is
    principal. The shares of all entries add up to ``split``.
    """
    ordered = sorted(entries, key=lambda e: (e.statement_date or date.max, e.id))
    note = f"Part of a {len(ordered)}-entry payment"

    interest_left = split.interest_cents
    for entry in ordered:
        interest = min(entry.abs_cents, interest_left)
        interest_left -= interest
        if entry.id == entry_id:
            return Split(
                principal_cents=entry.abs_cents - interest,
                interest_cents=interest,
                fees_cents=0,
                is_estimated=split.is_estimated,
                note=note,
            )

    raise ValueError(f"Entry {entry_id} is not part of the payment")


def detect_payment_type(payment_cents: int, installment: Optional[ScheduleInstallment]) -> PaymentType:
    """Describe how a payment relates to its installment."""
    if installment is None:
        return PaymentType.UNKNOWN

    payment = abs(payment_cents)
    expected_total = installment.expected_cents
    interest_only = installment.interest_cents
    diff = payment - expected_total
    pct = diff / expected_total if expected_total > 0 else 0

    if abs(pct) < EXACT_PAYMENT_RATIO:
        return PaymentType.EXACT
    if abs(payment - interest_only) < interest_only * INTEREST_ONLY_TOLERANCE_RATIO:
        return PaymentType.INTEREST_ONLY
    if pct > INTEREST_ONLY_TOLERANCE_RATIO:
        return PaymentType.OVERPAYMENT
    if pct < -INTEREST_ONLY_TOLERANCE_RATIO:
        return PaymentType.PARTIAL
    return PaymentType.CLOSE


@dataclass
class SplitValidation:
    """Problems found when checking a split against its loan."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate_split(
    split: Split,
    loan: Optional[Loan],
    settings: Optional[Settings] = None,
) -> SplitValidation:
    """Check a split against the loan's balance, accrued interest and status."""
    settings = settings or get_settings()
    result = SplitValidation()

    if loan is None:
        result.errors.append("No loan selected")
        return result

    if split.principal_cents > loan.outstanding_balance_cents:
        result.errors.append(
            f"Principal ({settings.format_cents(split.principal_cents)}) exceeds "
            f"outstanding balance ({settings.format_cents(loan.outstanding_balance_cents)})"
        )

    if (
        loan.accrued_interest_cents is not None
        and split.interest_cents > loan.accrued_interest_cents * INTEREST_WARNING_RATIO
    ):
        result.warnings.append("Interest payment exceeds accrued interest by more than 10%")

    if loan.status in (LoanStatus.CLOSED, LoanStatus.WRITTEN_OFF):
        result.errors.append(f"Loan is {loan.status.value.lower()}")

    return result


def nearest_open_installment(
    installments: Iterable[ScheduleInstallment],
    on: Optional[date],
) -> Optional[ScheduleInstallment]:
    """Open installment due closest to a date (earliest due date on ties)."""
    open_installments = [i for i in installments if i.status.is_open]
    if not open_installments:
        return None

    def distance(installment: ScheduleInstallment):
        gap = days_between(on, installment.due_date)
        return (gap if gap is not None else float("inf"), installment.due_date or date.max, installment.id)

    return min(open_installments, key=distance)


@dataclass
class ScheduleCandidate:
    """A live loan with the installment a payment most likely settles."""
    loan: Loan
    installment: Optional[ScheduleInstallment]
    score: int


def _word_overlap(text1: Optional[str], text2: Optional[str]) -> int:
    """Jaccard overlap of whitespace words, 0-100."""
    if not text1 or not text2:
        return 0
    s1 = text1.lower().strip()
    s2 = text2.lower().strip()
    if s1 == s2:
        return 100
    words1 = set(s1.split())
    words2 = set(s2.split())
    return round(len(words1 & words2) / len(words1 | words2) * 100)


def _installment_points(entry: BankEntry, installment: ScheduleInstallment) -> int:
    points = 0
    expected = installment.expected_cents
    if expected > 0:
        diff_ratio = abs(entry.abs_cents - expected) / expected
        for max_ratio, amount_points in SCHEDULE_AMOUNT_POINTS:
            if diff_ratio < max_ratio:
                points += amount_points
                break

    gap = days_between(entry.statement_date, installment.due_date)
    if gap is not None:
        for max_days, date_points in SCHEDULE_DATE_POINTS:
            if gap <= max_days:
                points += date_points
                break

    if installment.status == ScheduleStatus.OVERDUE:
        points += OVERDUE_POINTS
    return points


def find_matching_schedules(
    entry: BankEntry,
    loans: Iterable[Loan],
    schedules: Iterable[ScheduleInstallment],
) -> List[ScheduleCandidate]:
    """
    Rank live loans by how likely the entry pays one of their installments.

    Scores are 0-100 from borrower-name overlap (up to 50 points), installment
    amount (up to 30), due-date gap (up to 20) and an overdue bonus (10).
    Loans scoring under 20 are dropped; results are sorted best first.
    """
    schedules = list(schedules)
    candidates = []

    for loan in loans:
        if not loan.status.is_open:
            continue

        score = 0.0
        name_similarity = _word_overlap(entry.description, loan.borrower_name)
        if name_similarity > MIN_NAME_SIMILARITY:
            score += name_similarity * NAME_SCORE_WEIGHT

        best_installment = None
        best_points = 0
        for installment in schedules:
            if installment.loan_id != loan.id or not installment.status.is_open:
                continue
            points = _installment_points(entry, installment)
            if points > best_points:
                best_points = points
                best_installment = installment

        score += best_points
        if score >= MIN_SCHEDULE_SCORE:
            candidates.append(ScheduleCandidate(loan, best_installment, min(100, round(score))))

    candidates.sort(key=lambda c: (-c.score, c.loan.id))
    logger.debug("Schedule candidates ranked", entry_id=entry.id, count=len(candidates))
    return candidates
