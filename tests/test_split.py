"""
Tests for payment splits, payment types and schedule ranking.
"""

import pytest
from datetime import date

from lender_recon.config import Settings
from lender_recon.models import (
    BankEntry,
    Intent,
    Loan,
    LoanStatus,
    PaymentType,
    ScheduleInstallment,
    ScheduleStatus,
    Split,
)
from lender_recon.reconciliation.split import (
    calculate_split,
    combine_installments,
    detect_payment_type,
    find_matching_schedules,
    nearest_open_installment,
    share_group_split,
    validate_split,
)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def installment():
    """Installment of £800 principal and £200 interest."""
    return ScheduleInstallment(
        id="s1",
        loan_id="l1",
        due_date=date(2025, 3, 14),
        principal_cents=80000,
        interest_cents=20000,
    )


class TestCalculateSplit:
    """Test suite for principal/interest allocation."""

    def test_exact_payment_mirrors_installment(self, installment, settings):
        split = calculate_split(100000, installment, settings=settings)
        assert split == Split(principal_cents=80000, interest_cents=20000, fees_cents=0)
        assert split.note is None
        assert not split.is_estimated

    def test_overpayment_goes_to_principal(self, installment, settings):
        split = calculate_split(120000, installment, settings=settings)
        assert (split.principal_cents, split.interest_cents) == (100000, 20000)
        assert split.note == "Extra £200.00 applied to principal"

    def test_small_difference_within_tolerance(self, installment, settings):
        split = calculate_split(98000, installment, settings=settings)
        assert (split.principal_cents, split.interest_cents) == (78000, 20000)
        assert split.note == "Difference of £20.00 applied to principal"

    def test_partial_payment_pays_interest_first(self, installment, settings):
        split = calculate_split(50000, installment, settings=settings)
        assert (split.principal_cents, split.interest_cents) == (30000, 20000)
        assert split.note == "Full interest paid, partial principal"

    def test_payment_below_interest(self, installment, settings):
        split = calculate_split(15000, installment, settings=settings)
        assert (split.principal_cents, split.interest_cents) == (0, 15000)
        assert split.note == "Interest payment only (shortfall on principal)"

    def test_debit_amount_uses_absolute_value(self, installment, settings):
        split = calculate_split(-100000, installment, settings=settings)
        assert split.total_cents == 100000

    @pytest.mark.parametrize("payment", [1, 15000, 20000, 50000, 98000, 100000, 104999, 250000])
    def test_split_always_sums_to_payment(self, installment, settings, payment):
        split = calculate_split(payment, installment, settings=settings)
        assert split.total_cents == payment
        assert split.principal_cents >= 0
        assert split.interest_cents >= 0

    def test_estimated_without_installment(self, settings):
        split = calculate_split(50000, None, settings=settings)
        assert split == Split(principal_cents=50000, is_estimated=True)

    def test_estimated_interest_only(self, settings):
        split = calculate_split(20000, None, Intent.INTEREST_ONLY_PAYMENT, settings)
        assert split == Split(interest_cents=20000, is_estimated=True)

    def test_to_dict(self, installment, settings):
        data = calculate_split(100000, installment, settings=settings).to_dict()
        assert data["principal"] == 800.0
        assert data["interest"] == 200.0
        assert data["fees"] == 0.0


class TestCombineInstallments:
    """Test suite for merging installments paid together."""

    def test_empty_and_single(self, installment):
        assert combine_installments([]) is None
        assert combine_installments([installment]) is installment

    def test_sums_parts(self, installment):
        second = ScheduleInstallment(id="s2", loan_id="l1", principal_cents=5000, interest_cents=1000)
        combined = combine_installments([installment, second])
        assert combined.id == "s1+s2"
        assert combined.principal_cents == 85000
        assert combined.interest_cents == 21000
        assert combined.due_date == installment.due_date


class TestShareGroupSplit:
    """Test suite for sharing one payment across several bank entries."""

    @pytest.fixture
    def parts(self):
        return [
            BankEntry(id="b", statement_date=date(2025, 3, 15), amount_cents=15000),
            BankEntry(id="a", statement_date=date(2025, 3, 15), amount_cents=15000),
            BankEntry(id="c", statement_date=date(2025, 3, 13), amount_cents=70000),
        ]

    def test_interest_follows_statement_order(self, parts, installment, settings):
        whole = calculate_split(100000, installment, settings=settings)

        shares = {e.id: share_group_split(whole, parts, e.id) for e in parts}

        assert shares["c"] == Split(principal_cents=50000, interest_cents=20000, note="Part of a 3-entry payment")
        assert shares["a"].interest_cents == 0
        assert shares["b"].interest_cents == 0
        assert sum(s.interest_cents for s in shares.values()) == whole.interest_cents
        assert sum(s.principal_cents for s in shares.values()) == whole.principal_cents

    def test_interest_spread_over_small_entries(self, parts):
        whole = Split(principal_cents=20000, interest_cents=80000)

        shares = [share_group_split(whole, parts, entry_id) for entry_id in ("c", "a", "b")]

        assert [s.interest_cents for s in shares] == [70000, 10000, 0]
        assert [s.principal_cents for s in shares] == [0, 5000, 15000]

    def test_estimated_split_stays_estimated(self, parts):
        whole = Split(principal_cents=100000, is_estimated=True)
        assert share_group_split(whole, parts, "a").is_estimated

    def test_unknown_entry(self, parts):
        with pytest.raises(ValueError):
            share_group_split(Split(principal_cents=100000), parts, "zz")


class TestDetectPaymentType:
    """Test suite for payment type detection."""

    @pytest.mark.parametrize("payment,expected", [
        (100000, PaymentType.EXACT),
        (100500, PaymentType.EXACT),
        (20000, PaymentType.INTEREST_ONLY),
        (110000, PaymentType.OVERPAYMENT),
        (50000, PaymentType.PARTIAL),
        (103000, PaymentType.CLOSE),
        (97000, PaymentType.CLOSE),
    ])
    def test_payment_types(self, installment, payment, expected):
        assert detect_payment_type(payment, installment) == expected

    def test_no_installment(self):
        assert detect_payment_type(100000, None) == PaymentType.UNKNOWN


class TestValidateSplit:
    """Test suite for split validation against the loan."""

    def test_valid_split(self, settings):
        loan = Loan(id="l1", outstanding_balance_cents=500000, accrued_interest_cents=30000)
        result = validate_split(Split(principal_cents=80000, interest_cents=20000), loan, settings)
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_no_loan(self, settings):
        result = validate_split(Split(principal_cents=100), None, settings)
        assert not result.is_valid
        assert result.errors == ["No loan selected"]

    def test_principal_exceeds_balance(self, settings):
        loan = Loan(id="l1", outstanding_balance_cents=50000, accrued_interest_cents=10000)
        result = validate_split(Split(principal_cents=80000, interest_cents=20000), loan, settings)
        assert result.errors == ["Principal (£800.00) exceeds outstanding balance (£500.00)"]
        assert result.warnings == ["Interest payment exceeds accrued interest by more than 10%"]

    def test_interest_within_ten_percent_is_fine(self, settings):
        loan = Loan(id="l1", outstanding_balance_cents=500000, accrued_interest_cents=20000)
        result = validate_split(Split(interest_cents=21000), loan, settings)
        assert result.warnings == []

    @pytest.mark.parametrize("status,message", [
        (LoanStatus.CLOSED, "Loan is closed"),
        (LoanStatus.WRITTEN_OFF, "Loan is written off"),
    ])
    def test_closed_loans(self, settings, status, message):
        loan = Loan(id="l1", status=status, outstanding_balance_cents=500000)
        result = validate_split(Split(principal_cents=100), loan, settings)
        assert result.errors == [message]


class TestScheduleLookup:
    """Test suite for installment lookup and schedule ranking."""

    def test_nearest_open_installment(self):
        installments = [
            ScheduleInstallment(id="a", loan_id="l1", due_date=date(2025, 2, 14), status=ScheduleStatus.PAID),
            ScheduleInstallment(id="b", loan_id="l1", due_date=date(2025, 3, 14)),
            ScheduleInstallment(id="c", loan_id="l1", due_date=date(2025, 4, 14)),
        ]
        assert nearest_open_installment(installments, date(2025, 2, 15)).id == "b"
        assert nearest_open_installment(installments, date(2025, 4, 10)).id == "c"
        assert nearest_open_installment(installments[:1], date(2025, 2, 14)) is None

    def test_find_matching_schedules(self, installment):
        entry = BankEntry(id="e1", statement_date=date(2025, 3, 15), amount_cents=100000, description="John Smith")
        loans = [
            Loan(id="l1", borrower_name="John Smith"),
            Loan(id="l2", borrower_name="Jane Doe"),
            Loan(id="l3", borrower_name="John Smith", status=LoanStatus.SETTLED),
            Loan(id="l4", borrower_name="Other Person"),
        ]
        schedules = [
            installment,
            ScheduleInstallment(id="s2", loan_id="l2", due_date=date(2025, 6, 1), principal_cents=500000),
            ScheduleInstallment(id="s3", loan_id="l3", due_date=date(2025, 3, 15), principal_cents=100000),
            ScheduleInstallment(
                id="s4", loan_id="l4", due_date=date(2025, 3, 10),
                principal_cents=100000, status=ScheduleStatus.OVERDUE,
            ),
        ]

        candidates = find_matching_schedules(entry, loans, schedules)

        assert [(c.loan.id, c.score) for c in candidates] == [("l1", 100), ("l4", 55)]
        assert candidates[0].installment.id == "s1"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
