"""
Loan matchers.

LoanRepaymentMatcher handles credits: recorded repayments, open schedule
installments (including interest-only payments), repayments grouped by
borrower, shared e-mail or date, installments due together, and sibling
entries that together pay one installment.

LoanDisbursementMatcher handles debits: recorded disbursements, and sibling
entries that together make up one disbursement.
"""

from collections import defaultdict
from typing import Dict, List, Optional

import structlog

from ...matching.subset_sum import find_combination
from ...matching.tolerance import amounts_match, dates_within_days
from ...models import (
    BankEntry,
    GroupMatch,
    Intent,
    LoanTransaction,
    LoanTransactionType,
    MatchMode,
    ScheduleInstallment,
    SingleMatch,
)
from ..context import MatchContext
from .base import BaseMatcher, CandidateMatch, GroupKind

logger = structlog.get_logger()

# (max days between entry and the furthest record, base score)
GROUP_DATE_SCORES = ((1, 0.92), (3, 0.85), (7, 0.75))
FAR_GROUP_SCORE = 0.65
EMAIL_GROUP_PENALTY = 0.03
DATE_GROUP_PENALTY = 0.05
DATE_GROUP_WINDOWS = (1, 3, 7)
DATE_GROUP_SIZES = (2, 3)


def _borrower_label(loan, borrower) -> str:
    if borrower is not None:
        return borrower.display_name
    if loan is not None and loan.borrower_name:
        return loan.borrower_name
    return "Unknown"


class LoanRepaymentMatcher(BaseMatcher):
    """Matches credits to loan repayments and schedule installments."""

    name = "loan_repayment"
    default_priority = 90

    def can_match(self, entry: BankEntry, context: MatchContext) -> bool:
        return entry.is_credit

    def _repayments(self, context: MatchContext) -> List[LoanTransaction]:
        return [
            tx for tx in context.loan_transactions
            if tx.type == LoanTransactionType.REPAYMENT
            and not tx.is_deleted
            and context.is_available(tx.id)
        ]

    def _open_installments(self, context: MatchContext) -> List[ScheduleInstallment]:
        installments = []
        for installment in context.schedules:
            if not installment.status.is_open or not context.is_available(installment.id):
                continue
            loan = context.loan(installment.loan_id)
            if loan is None or not loan.status.is_open:
                continue
            installments.append(installment)
        return installments

    def generate_matches(self, entry: BankEntry, context: MatchContext) -> List[CandidateMatch]:
        window = self.settings.single_match_window_days
        fmt = self.settings.format_cents
        matches = []

        for tx in self._repayments(context):
            if not dates_within_days(entry.statement_date, tx.date, window):
                continue
            loan = context.loan(tx.loan_id)
            borrower = context.borrower(context.borrower_id_for(tx))
            matches.append(CandidateMatch(
                intent=Intent.LOAN_REPAYMENT,
                suggestion=SingleMatch(candidate=tx, loan=loan, borrower=borrower),
                reason=f"Repayment: {_borrower_label(loan, borrower)} - {fmt(tx.amount_cents)}",
            ))

        for installment in self._open_installments(context):
            if not dates_within_days(entry.statement_date, installment.due_date, window):
                continue
            loan = context.loan(installment.loan_id)
            borrower = context.borrower_for_loan(loan)
            label = _borrower_label(loan, borrower)
            suggestion = SingleMatch(
                candidate=installment,
                mode=MatchMode.CREATE,
                loan=loan,
                borrower=borrower,
                installment=installment,
            )
            matches.append(CandidateMatch(
                intent=Intent.LOAN_REPAYMENT,
                suggestion=suggestion,
                reason=f"Installment due: {label} ({loan.loan_number or 'Unknown'}) - {fmt(installment.expected_cents)}",
            ))

            # Interest-only payment of an amortising installment
            if installment.interest_cents > 0 and installment.principal_cents > 0 and amounts_match(
                entry.abs_cents, installment.interest_cents, self.settings.close_amount_tolerance_percent
            ):
                matches.append(CandidateMatch(
                    intent=Intent.INTEREST_ONLY_PAYMENT,
                    suggestion=suggestion,
                    reason=f"Interest only: {label} ({loan.loan_number or 'Unknown'}) - {fmt(installment.interest_cents)}",
                    score_cents=installment.interest_cents,
                ))

        return matches

    def generate_group_matches(self, entry: BankEntry, context: MatchContext) -> List[CandidateMatch]:
        matches = []
        matches.extend(self._borrower_groups(entry, context))
        matches.extend(self._email_groups(entry, context))
        matches.extend(self._date_groups(entry, context))
        matches.extend(self._installment_groups(entry, context))
        matches.extend(self._grouped_entries(entry, context))
        return matches

    def _group_candidate(
        self,
        entry: BankEntry,
        records: List,
        kind: GroupKind,
        reason: str,
        borrower=None,
        loan=None,
    ) -> CandidateMatch:
        max_diff = self.max_days_from(entry, records)
        return CandidateMatch(
            intent=Intent.LOAN_REPAYMENT,
            suggestion=GroupMatch(
                entries=(entry,),
                candidates=tuple(records),
                total_cents=sum(r.match_amount_cents for r in records),
                mode=MatchMode.MATCH_GROUP,
                loan=loan,
                borrower=borrower,
            ),
            reason=reason,
            group_kind=kind,
            max_date_diff=max_diff,
            all_same_day=max_diff <= 1,
        )

    def _nearby_repayments(self, entry: BankEntry, context: MatchContext, days: int) -> List[LoanTransaction]:
        return sorted(
            (tx for tx in self._repayments(context) if dates_within_days(entry.statement_date, tx.date, days)),
            key=lambda tx: tx.id,
        )

    def _sums_to_entry(self, entry: BankEntry, records: List) -> bool:
        total = sum(r.match_amount_cents for r in records)
        return amounts_match(entry.abs_cents, total, self.settings.group_amount_tolerance_percent)

    @staticmethod
    def _loan_number(context: MatchContext, tx: LoanTransaction) -> str:
        loan = context.loan(tx.loan_id)
        return (loan.loan_number if loan else None) or "?"

    def _borrower_groups(self, entry: BankEntry, context: MatchContext) -> List[CandidateMatch]:
        by_borrower: Dict[str, List[LoanTransaction]] = defaultdict(list)
        for tx in self._nearby_repayments(entry, context, self.settings.group_window_days):
            borrower_id = context.borrower_id_for(tx)
            if borrower_id:
                by_borrower[borrower_id].append(tx)

        matches = []
        for borrower_id, group in by_borrower.items():
            if len(group) < 2 or not self._sums_to_entry(entry, group):
                continue
            borrower = context.borrower(borrower_id)
            loan_numbers = sorted({self._loan_number(context, tx) for tx in group})
            matches.append(self._group_candidate(
                entry, group, GroupKind.BORROWER,
                f"Grouped repayments: {borrower.display_name if borrower else 'Unknown'} - "
                f"{len(group)} payments ({', '.join(loan_numbers)})",
                borrower=borrower,
            ))
        return matches

    def _email_groups(self, entry: BankEntry, context: MatchContext) -> List[CandidateMatch]:
        borrowers_by_email: Dict[str, set] = defaultdict(set)
        for borrower in context.borrowers:
            email = (borrower.email or "").strip().lower()
            if email:
                borrowers_by_email[email].add(borrower.id)

        nearby = self._nearby_repayments(entry, context, self.settings.group_window_days)
        matches = []
        for email in sorted(borrowers_by_email):
            borrower_ids = borrowers_by_email[email]
            if len(borrower_ids) < 2:
                continue
            group = [tx for tx in nearby if context.borrower_id_for(tx) in borrower_ids]
            if len(group) < 2 or not self._sums_to_entry(entry, group):
                continue
            matches.append(self._group_candidate(
                entry, group, GroupKind.EMAIL,
                f"Email-grouped repayments: {email} - {len(group)} payments",
            ))
        return matches

    def _date_groups(self, entry: BankEntry, context: MatchContext) -> List[CandidateMatch]:
        """Repayments from any borrowers on nearby dates; the tightest window wins."""
        for days in DATE_GROUP_WINDOWS:
            nearby = self._nearby_repayments(entry, context, days)
            if len(nearby) < 2:
                continue

            if self._sums_to_entry(entry, nearby):
                group = nearby
            else:
                group = None
                for size in DATE_GROUP_SIZES:
                    group = find_combination(
                        nearby, entry.abs_cents, size,
                        lambda tx: tx.match_amount_cents,
                        self.settings.group_amount_tolerance_percent,
                    )
                    if group:
                        break
            if group:
                logger.debug("Date-grouped repayments found", entry_id=entry.id, window_days=days, size=len(group))
                return [self._group_candidate(
                    entry, group, GroupKind.DATE,
                    f"Date-grouped repayments: {len(group)} payments within {days} day(s)",
                )]
        return []

    def _installment_groups(self, entry: BankEntry, context: MatchContext) -> List[CandidateMatch]:
        by_borrower: Dict[str, List[ScheduleInstallment]] = defaultdict(list)
        for installment in sorted(self._open_installments(context), key=lambda i: i.id):
            if not dates_within_days(entry.statement_date, installment.due_date, self.settings.group_window_days):
                continue
            loan = context.loan(installment.loan_id)
            if loan.borrower_id:
                by_borrower[loan.borrower_id].append(installment)

        matches = []
        for borrower_id, group in by_borrower.items():
            if len(group) < 2 or not self._sums_to_entry(entry, group):
                continue
            borrower = context.borrower(borrower_id)
            loan_ids = {i.loan_id for i in group}
            loan = context.loan(group[0].loan_id) if len(loan_ids) == 1 else None
            matches.append(self._group_candidate(
                entry, group, GroupKind.INSTALLMENTS,
                f"Installments due together: {borrower.display_name if borrower else 'Unknown'} - "
                f"{len(group)} installments",
                borrower=borrower,
                loan=loan,
            ))
        return matches

    def _grouped_entries(self, entry: BankEntry, context: MatchContext) -> List[CandidateMatch]:
        siblings = self.sibling_entries(entry, context)
        if len(siblings) < 2:
            return []

        matches = []
        for installment in sorted(self._open_installments(context), key=lambda i: i.id):
            loan = context.loan(installment.loan_id)
            borrower = context.borrower_for_loan(loan)

            def build(group, installment=installment, loan=loan, borrower=borrower):
                return GroupMatch(
                    entries=tuple(group),
                    candidates=(installment,),
                    total_cents=sum(e.abs_cents for e in group),
                    mode=MatchMode.GROUPED_ENTRIES,
                    loan=loan,
                    borrower=borrower,
                )

            match = self.grouped_entries_match(
                entry, siblings, installment, Intent.LOAN_REPAYMENT, build,
                entity_name=loan.borrower_name or (borrower.full_name if borrower else None),
                label=loan.loan_number or "Unknown",
            )
            if match:
                matches.append(match)
        return matches

    def calculate_confidence(self, match: CandidateMatch, entry: BankEntry) -> float:
        if match.suggestion.mode != MatchMode.MATCH_GROUP:
            return super().calculate_confidence(match, entry)

        score = FAR_GROUP_SCORE
        for max_days, group_score in GROUP_DATE_SCORES:
            if match.max_date_diff <= max_days:
                score = group_score
                break

        if match.group_kind == GroupKind.EMAIL:
            score -= EMAIL_GROUP_PENALTY
        elif match.group_kind == GroupKind.DATE:
            score -= DATE_GROUP_PENALTY

        return self.boost_group(score, self.entity_name_score(entry, match))


class LoanDisbursementMatcher(BaseMatcher):
    """Matches debits to loan disbursements."""

    name = "loan_disbursement"
    default_priority = 85

    def can_match(self, entry: BankEntry, context: MatchContext) -> bool:
        return entry.is_debit

    def _disbursements(self, context: MatchContext) -> List[LoanTransaction]:
        return sorted(
            (
                tx for tx in context.loan_transactions
                if tx.type == LoanTransactionType.DISBURSEMENT
                and not tx.is_deleted
                and context.is_available(tx.id)
            ),
            key=lambda tx: tx.id,
        )

    def generate_matches(self, entry: BankEntry, context: MatchContext) -> List[CandidateMatch]:
        window = self.settings.single_match_window_days
        matches = []
        for tx in self._disbursements(context):
            if not dates_within_days(entry.statement_date, tx.date, window):
                continue
            loan = context.loan(tx.loan_id)
            borrower = context.borrower(context.borrower_id_for(tx))
            matches.append(CandidateMatch(
                intent=Intent.LOAN_DISBURSEMENT,
                suggestion=SingleMatch(candidate=tx, loan=loan, borrower=borrower),
                reason=f"Disbursement: {_borrower_label(loan, borrower)} - "
                       f"{self.settings.format_cents(tx.amount_cents)}",
            ))
        return matches

    def generate_group_matches(self, entry: BankEntry, context: MatchContext) -> List[CandidateMatch]:
        siblings = self.sibling_entries(entry, context)
        if len(siblings) < 2:
            return []

        matches = []
        for tx in self._disbursements(context):
            loan = context.loan(tx.loan_id)
            borrower = context.borrower_for_loan(loan)

            def build(group, tx=tx, loan=loan, borrower=borrower):
                return GroupMatch(
                    entries=tuple(group),
                    candidates=(tx,),
                    total_cents=sum(e.abs_cents for e in group),
                    mode=MatchMode.GROUPED_ENTRIES,
                    loan=loan,
                    borrower=borrower,
                )

            entity_name: Optional[str] = None
            if loan is not None and loan.borrower_name:
                entity_name = loan.borrower_name
            elif borrower is not None:
                entity_name = borrower.full_name

            match = self.grouped_entries_match(
                entry, siblings, tx, Intent.LOAN_DISBURSEMENT, build,
                entity_name=entity_name,
                label=(loan.loan_number if loan else None) or "Unknown",
            )
            if match:
                matches.append(match)
        return matches
