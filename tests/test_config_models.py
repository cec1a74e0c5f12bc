"""
Tests for settings, value conversions and the data models.
"""

import pytest
from datetime import date, datetime

from pydantic import ValidationError

from lender_recon.config import MAX_GROUP_SIZE, Settings, get_settings
from lender_recon.models import (
    BankEntry,
    Classification,
    ConfidenceLevel,
    Intent,
    Loan,
    LoanStatus,
    ScheduleInstallment,
    ScheduleStatus,
    confidence_level,
)
from lender_recon.reconciliation import MatchContext
from lender_recon.utils.conversions import parse_date, to_cents, to_number


class TestSettings:
    """Test suite for Settings."""

    def test_defaults(self):
        settings = Settings()
        assert settings.min_confidence == 0.35
        assert settings.grouped_search_threshold == 0.9
        assert settings.group_window_days == 3
        assert settings.max_group_size == MAX_GROUP_SIZE == 5

    def test_group_size_cannot_exceed_cap(self):
        with pytest.raises(ValidationError):
            Settings(max_group_size=6)

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("RECON_MIN_CONFIDENCE", "0.5")
        assert Settings().min_confidence == 0.5

    def test_cached(self):
        assert get_settings() is get_settings()

    def test_format_cents(self):
        settings = Settings()
        assert settings.format_cents(123456) == "£1,234.56"
        assert settings.format_cents(-500) == "£5.00"


class TestConversions:
    """Test suite for lenient value conversion."""

    @pytest.mark.parametrize("value,expected", [
        ("1,250.00", 125000),
        ("-£10.50", -1050),
        ("$7", 700),
        (10.005, 1001),
        (12, 1200),
        ("abc", 0),
        ("NaN", 0),
        (None, 0),
        (True, 0),
    ])
    def test_to_cents(self, value, expected):
        assert to_cents(value) == expected

    def test_to_number(self):
        assert to_number("2.5") == 2.5
        assert to_number("x") == 0.0
        assert to_number(float("inf")) == 0.0

    def test_parse_date(self):
        assert parse_date("2025-03-15") == date(2025, 3, 15)
        assert parse_date("2025-03-15T10:30:00") == date(2025, 3, 15)
        assert parse_date(datetime(2025, 3, 15, 10, 30)) == date(2025, 3, 15)
        assert parse_date("") is None
        assert parse_date("15/03/2025") is None
        assert parse_date(20250315) is None


class TestModels:
    """Test suite for entries, classifications and enums."""

    def test_bank_entry_from_dict(self):
        entry = BankEntry.from_dict({
            "id": 7,
            "date": "2025-03-15",
            "amount": "-1,250.00",
            "description": None,
        })
        assert entry.id == "7"
        assert entry.statement_date == date(2025, 3, 15)
        assert entry.amount_cents == -125000
        assert entry.description == ""
        assert entry.is_debit
        assert entry.abs_cents == 125000
        assert entry.to_dict()["amount"] == -1250.0

    def test_unknown_classification(self):
        data = Classification.unknown().to_dict()
        assert data["intent"] == "unknown"
        assert data["confidence"] == 0
        assert data["confidence_level"] == "low"
        assert data["suggested_match"] is None
        assert data["split"] is None
        assert not Classification.unknown().is_match

    @pytest.mark.parametrize("confidence,level", [
        (100, ConfidenceLevel.HIGH),
        (90, ConfidenceLevel.HIGH),
        (89, ConfidenceLevel.MEDIUM),
        (70, ConfidenceLevel.MEDIUM),
        (69, ConfidenceLevel.LOW),
        (0, ConfidenceLevel.LOW),
    ])
    def test_confidence_levels(self, confidence, level):
        assert confidence_level(confidence) == level

    def test_status_helpers(self):
        assert LoanStatus.LIVE.is_open
        assert not LoanStatus.SETTLED.is_open
        assert ScheduleStatus.OVERDUE.is_open
        assert not ScheduleStatus.PAID.is_open
        assert Intent.INTEREST_ONLY_PAYMENT.is_loan_payment
        assert not Intent.INVESTOR_FUNDING.is_loan_payment


class TestMatchContext:
    """Test suite for the read-only match context."""

    def test_claims_do_not_mutate(self):
        context = MatchContext(reconciled_ids={"r1"})
        claimed = context.with_claims(["c1"])

        assert context.is_available("c1")
        assert not claimed.is_available("c1")
        assert not claimed.is_available("r1")
        assert claimed.claimed_ids == frozenset({"c1"})

    def test_lookups(self):
        loan = Loan(id="l1")
        context = MatchContext(
            loans=[loan],
            schedules=[ScheduleInstallment(id="s1", loan_id="l1")],
        )
        assert context.loan("l1") is loan
        assert context.loan(None) is None
        assert [s.id for s in context.schedules_for("l1")] == ["s1"]
        assert context.schedules_for("l2") == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
