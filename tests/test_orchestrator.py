"""
Tests for batch classification.
"""

import pytest
from datetime import date

from lender_recon.config import Settings
from lender_recon.models import (
    BankEntry,
    Borrower,
    ConfidenceLevel,
    Intent,
    Loan,
    MatchMode,
    ScheduleInstallment,
    Split,
)
from lender_recon.reconciliation import BaseMatcher, ClassificationOrchestrator, MatchContext
from lender_recon.reconciliation.orchestrator import claimed_record_ids


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def context():
    borrower = Borrower(id="b1", full_name="John Smith")
    loan = Loan(id="l1", borrower_id="b1", loan_number="LN-001", borrower_name="John Smith")
    installment = ScheduleInstallment(
        id="s1",
        loan_id="l1",
        due_date=date(2025, 3, 14),
        principal_cents=80000,
        interest_cents=20000,
    )
    return MatchContext(loans=[loan], borrowers=[borrower], schedules=[installment])


def repayment(entry_id, on):
    return BankEntry(
        id=entry_id,
        statement_date=on,
        amount_cents=100000,
        description="FPI J SMITH LOAN REPAY",
    )


class BrokenMatcher(BaseMatcher):
    name = "broken"

    def can_match(self, entry, context):
        return True

    def generate_matches(self, entry, context):
        raise RuntimeError("boom")


class TestClassificationOrchestrator:
    """Test suite for ClassificationOrchestrator."""

    def test_sequential_run_claims_records(self, settings, context):
        """The installment goes to the oldest entry; the duplicate finds nothing left."""
        entries = [repayment("e2", date(2025, 3, 16)), repayment("e1", date(2025, 3, 15))]

        result = ClassificationOrchestrator(settings=settings).classify_all(entries, context)

        assert [e.id for e in result.entries] == ["e1", "e2"]
        assert result.get("e1").intent == Intent.LOAN_REPAYMENT
        assert result.get("e2").intent == Intent.UNKNOWN
        assert len(result.suggestions()) == 1

    def test_grouped_entries_share_one_suggestion(self, settings, context):
        """The second part joins the first part's group instead of matching again."""
        entries = [
            BankEntry(id="a", statement_date=date(2025, 3, 15), amount_cents=60000, description="J SMITH LOAN PART1"),
            BankEntry(id="b", statement_date=date(2025, 3, 15), amount_cents=40000, description="J SMITH LOAN PART2"),
        ]

        result = ClassificationOrchestrator(settings=settings).classify_all(entries, context)

        first, second = result.get("a"), result.get("b")
        assert first.suggested_match.mode == MatchMode.GROUPED_ENTRIES
        assert first.suggested_match.entry_ids == ("a", "b")
        assert second.suggested_match is first.suggested_match
        assert second.intent == Intent.LOAN_REPAYMENT
        assert first.split == Split(principal_cents=40000, interest_cents=20000, note="Part of a 2-entry payment")
        assert second.split == Split(principal_cents=40000, interest_cents=0, note="Part of a 2-entry payment")
        assert result.summary.grouped == 2

    def test_grouped_entries_claim_other_parts(self, settings, context):
        entries = [
            BankEntry(id="a", statement_date=date(2025, 3, 15), amount_cents=60000, description="J SMITH LOAN PART1"),
            BankEntry(id="b", statement_date=date(2025, 3, 15), amount_cents=40000, description="J SMITH LOAN PART2"),
        ]
        resolver = ClassificationOrchestrator(settings=settings).resolver

        classification = resolver.classify(entries[0], context.with_bank_entries(entries))

        assert claimed_record_ids(classification) == ["s1", "b"]

    def test_parallel_run_does_not_claim(self, settings, context):
        entries = [repayment("e1", date(2025, 3, 15)), repayment("e2", date(2025, 3, 16))]

        result = ClassificationOrchestrator(settings=settings).classify_all(entries, context, max_workers=4)

        assert result.get("e1").intent == Intent.LOAN_REPAYMENT
        assert result.get("e2").intent == Intent.LOAN_REPAYMENT
        assert result.errors == []

    def test_reconciled_entries_skipped(self, settings, context):
        done = BankEntry(id="e0", statement_date=date(2025, 3, 15), amount_cents=100000, is_reconciled=True)

        result = ClassificationOrchestrator(settings=settings).classify_all(
            [done, repayment("e1", date(2025, 3, 15))], context
        )

        assert [e.id for e in result.entries] == ["e1"]
        assert "e0" not in result.classifications
        assert result.get("e0").intent == Intent.UNKNOWN

    def test_undated_entries_last(self, settings):
        entries = [
            BankEntry(id="a", amount_cents=100),
            BankEntry(id="c", statement_date=date(2025, 3, 2), amount_cents=100),
            BankEntry(id="b", statement_date=date(2025, 3, 1), amount_cents=100),
        ]

        result = ClassificationOrchestrator(settings=settings).classify_all(entries, MatchContext())

        assert [e.id for e in result.entries] == ["b", "c", "a"]

    def test_progress_callback(self, settings, context):
        updates = []
        entries = [repayment("e1", date(2025, 3, 15)), repayment("e2", date(2025, 3, 16))]

        ClassificationOrchestrator(settings=settings).classify_all(
            entries, context, progress_callback=lambda pct, msg: updates.append((pct, msg))
        )

        assert updates[0] == (0, "Classifying 2 entries")
        assert updates[-1] == (100, "Classified 2/2")

    def test_matcher_failure_is_recorded(self, settings, context):
        orchestrator = ClassificationOrchestrator(matchers=[BrokenMatcher(settings=settings)], settings=settings)

        result = orchestrator.classify_all([repayment("e1", date(2025, 3, 15))], context)

        assert result.errors == ["e1: boom"]
        assert result.get("e1").intent == Intent.UNKNOWN
        assert result.summary.unknown == 1

    def test_summary(self, settings, context):
        entries = [
            repayment("e1", date(2025, 3, 15)),
            BankEntry(id="e2", statement_date=date(2025, 3, 15), amount_cents=-4200, description="UNKNOWN PAYEE"),
        ]

        summary = ClassificationOrchestrator(settings=settings).classify_all(entries, context).summary

        assert summary.total_entries == 2
        assert summary.classified == 1
        assert summary.unknown == 1
        assert summary.by_intent == {"loan_repayment": 1}
        assert summary.high_confidence == 1
        assert summary.classified_amount_cents == 100000
        assert summary.unknown_amount_cents == 4200
        assert summary.classified_rate == 0.5
        assert summary.processing_time_seconds >= 0

    def test_empty_batch(self, settings, context):
        result = ClassificationOrchestrator(settings=settings).classify_all([], context)

        assert result.entries == []
        assert result.summary.total_entries == 0
        assert result.summary.classified_rate == 0.0

    def test_classification_to_dict(self, settings, context):
        result = ClassificationOrchestrator(settings=settings).classify_all(
            [repayment("e1", date(2025, 3, 15))], context
        )
        data = result.get("e1").to_dict()

        assert data["intent"] == "loan_repayment"
        assert data["confidence_level"] == ConfidenceLevel.HIGH.value
        assert data["suggested_match"]["kind"] == "single"
        assert data["suggested_match"]["mode"] == "create"
        assert data["suggested_match"]["loan_id"] == "l1"
        assert data["split"]["principal"] == 800.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
