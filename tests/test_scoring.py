"""
Tests for amount/date tolerances and the match score ladder.
"""

import pytest
from datetime import date, timedelta

from lender_recon.config import Settings
from lender_recon.matching.scoring import calculate_match_score, get_match_explanation
from lender_recon.matching.tolerance import (
    amounts_match,
    date_proximity_score,
    dates_within_days,
    days_between,
)
from lender_recon.models import BankEntry, LoanTransaction

ENTRY_DATE = date(2025, 3, 15)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def entry():
    return BankEntry(id="e1", statement_date=ENTRY_DATE, amount_cents=100000, description="PAYMENT")


def candidate(amount_cents, days_apart=0, on=ENTRY_DATE):
    return LoanTransaction(
        id="t1",
        amount_cents=amount_cents,
        date=on - timedelta(days=days_apart) if on else None,
    )


class TestAmountAndDateScorers:
    """Test suite for tolerance helpers."""

    def test_amounts_match_within_tolerance(self):
        assert amounts_match(100, 100.05, 0.1)
        assert not amounts_match(100, 101, 0.1)
        assert amounts_match(100, 104, 5)

    def test_amounts_match_ignores_sign(self):
        assert amounts_match(-100, 100, 0.1)

    def test_amounts_match_zero(self):
        assert amounts_match(0, 0)
        assert not amounts_match(0, 5)
        assert not amounts_match("abc", 100)

    def test_amounts_match_rejects_negative_tolerance(self):
        with pytest.raises(ValueError):
            amounts_match(100, 100, -1)

    def test_days_between(self):
        assert days_between(ENTRY_DATE, "2025-03-14") == 1
        assert days_between("2025-03-14", ENTRY_DATE) == 1
        assert days_between(ENTRY_DATE, "not a date") is None
        assert days_between(None, ENTRY_DATE) is None

    def test_dates_within_days(self):
        assert dates_within_days(ENTRY_DATE, date(2025, 3, 18), 3)
        assert not dates_within_days(ENTRY_DATE, date(2025, 3, 19), 3)
        assert not dates_within_days(ENTRY_DATE, None, 30)

    @pytest.mark.parametrize("days,expected", [
        (0, 1.0),
        (1, 0.95),
        (2, 0.85),
        (3, 0.85),
        (4, 0.70),
        (5, 0.70),
        (10, 0.50),
        (20, 0.30),
        (60, 0.1),
    ])
    def test_date_proximity_buckets(self, days, expected):
        assert date_proximity_score(ENTRY_DATE, ENTRY_DATE - timedelta(days=days)) == expected

    def test_date_proximity_invalid(self):
        assert date_proximity_score(ENTRY_DATE, "garbage") == 0.0


class TestMatchScoreLadder:
    """Test suite for the fixed-priority match score ladder."""

    @pytest.mark.parametrize("amount_cents,days,expected", [
        (100000, 0, 0.95),
        (100000, 1, 0.85),
        (100000, 3, 0.85),
        (100000, 5, 0.75),
        (102000, 0, 0.70),
        (102000, 2, 0.60),
        (100000, 10, 0.50),
        (102000, 6, 0.45),
        (100000, 20, 0.30),
        (102000, 12, 0.25),
        (102000, 40, 0.10),
        (100000, 40, 0.10),
    ])
    def test_ladder_rows(self, entry, settings, amount_cents, days, expected):
        score = calculate_match_score(entry, candidate(amount_cents, days), settings)
        assert score == expected

    def test_no_amount_agreement_scores_zero(self, entry, settings):
        assert calculate_match_score(entry, candidate(110000, 0), settings) == 0.0

    def test_missing_date_only_matches_open_row(self, entry, settings):
        assert calculate_match_score(entry, candidate(100000, on=None), settings) == 0.10

    def test_debit_scored_on_absolute_amount(self, settings):
        debit = BankEntry(id="d1", statement_date=ENTRY_DATE, amount_cents=-100000)
        assert calculate_match_score(debit, candidate(100000, 0), settings) == 0.95

    def test_score_never_increases_with_gap(self, entry, settings):
        for amount in (100000, 102000):
            scores = [calculate_match_score(entry, candidate(amount, d), settings) for d in range(0, 45)]
            assert all(a >= b for a, b in zip(scores, scores[1:]))

    def test_exact_amount_never_worse_than_close(self, entry, settings):
        for days in range(0, 45):
            exact = calculate_match_score(entry, candidate(100000, days), settings)
            close = calculate_match_score(entry, candidate(102000, days), settings)
            assert exact >= close

    def test_maximum_is_below_certainty(self, entry, settings):
        assert calculate_match_score(entry, candidate(100000, 0), settings) < 1.0


class TestMatchExplanation:
    """Test suite for match explanations."""

    def test_exact_same_day(self, entry, settings):
        explanation = get_match_explanation(entry, candidate(100000, 0), settings)
        assert explanation.amount.text == "Exact match"
        assert explanation.amount.tone == "good"
        assert explanation.date.text == "Same day"
        assert explanation.days_diff == 0

    def test_close_amount(self, entry, settings):
        explanation = get_match_explanation(entry, candidate(98000, 1), settings)
        assert explanation.amount.text == "Within 5% (£20.00 difference)"
        assert explanation.date.text == "1 day apart"

    def test_large_gap(self, entry, settings):
        explanation = get_match_explanation(entry, candidate(150000, 20), settings)
        assert explanation.amount.tone == "poor"
        assert explanation.date.text == "20 days apart (large gap)"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
