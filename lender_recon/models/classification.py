"""Engine output models: classification, suggested matches and payment splits."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from .entry import BankEntry
from .enums import ConfidenceLevel, Intent, MatchMode
from .records import Borrower, ExpenseType, Investor, Loan, ScheduleInstallment


@dataclass(frozen=True)
class SingleMatch:
    """
    The entry corresponds to one system record.

    ``candidate`` is the existing record for MATCH suggestions and None for
    CREATE suggestions, where the related loan/investor/expense type says what
    the new record should be attached to.
    """
    candidate: Any = None
    mode: MatchMode = MatchMode.MATCH
    loan: Optional[Loan] = None
    borrower: Optional[Borrower] = None
    investor: Optional[Investor] = None
    expense_type: Optional[ExpenseType] = None
    installment: Optional[ScheduleInstallment] = None
    pattern_id: Optional[str] = None


@dataclass(frozen=True)
class GroupMatch:
    """
    Several amounts add up to one payment.

    MATCH_GROUP: one bank entry pays several ``candidates``.
    GROUPED_ENTRIES: several bank ``entries`` (anchor first) pay one candidate.
    ``total_cents`` is the computed group total.
    """
    entries: Tuple[BankEntry, ...] = ()
    candidates: Tuple[Any, ...] = ()
    total_cents: int = 0
    mode: MatchMode = MatchMode.MATCH_GROUP
    loan: Optional[Loan] = None
    borrower: Optional[Borrower] = None
    investor: Optional[Investor] = None

    @property
    def entry_ids(self) -> Tuple[str, ...]:
        return tuple(e.id for e in self.entries)

    @property
    def candidate_ids(self) -> Tuple[str, ...]:
        return tuple(c.id for c in self.candidates)


@dataclass(frozen=True)
class NoMatch:
    """Nothing plausible was found."""


NO_MATCH = NoMatch()

SuggestedMatch = Union[SingleMatch, GroupMatch, NoMatch]


@dataclass(frozen=True)
class Split:
    """Allocation of a loan payment (in CENTS) across principal, interest and fees."""
    principal_cents: int = 0
    interest_cents: int = 0
    fees_cents: int = 0
    is_estimated: bool = False
    note: Optional[str] = None

    @property
    def total_cents(self) -> int:
        return self.principal_cents + self.interest_cents + self.fees_cents

    def to_dict(self) -> Dict[str, Any]:
        return {
            "principal": self.principal_cents / 100.0,
            "interest": self.interest_cents / 100.0,
            "fees": self.fees_cents / 100.0,
            "is_estimated": self.is_estimated,
            "note": self.note,
        }


@dataclass(frozen=True)
class ExplanationItem:
    """One line of a match explanation."""
    text: str
    icon: str   # "check", "approx", "warning" or "x"
    tone: str   # "good", "fair", "poor" or "neutral"


@dataclass(frozen=True)
class MatchExplanation:
    """Human-readable amount/date justification for a scored pair."""
    amount: ExplanationItem
    date: ExplanationItem
    days_diff: Optional[int] = None


@dataclass(frozen=True)
class Classification:
    """
    Result of classifying one bank entry.

    ``confidence`` is 0-100. ``explanation`` is advisory text for reviewers.
    """
    intent: Intent = Intent.UNKNOWN
    confidence: int = 0
    suggested_match: SuggestedMatch = field(default=NO_MATCH)
    explanation: Optional[str] = None
    matcher: Optional[str] = None
    split: Optional[Split] = None

    @classmethod
    def unknown(cls) -> "Classification":
        return cls()

    @property
    def is_match(self) -> bool:
        return not isinstance(self.suggested_match, NoMatch)

    @property
    def is_grouped(self) -> bool:
        return isinstance(self.suggested_match, GroupMatch)

    @property
    def confidence_level(self) -> ConfidenceLevel:
        return confidence_level(self.confidence)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        match = self.suggested_match
        data: Dict[str, Any] = {
            "intent": self.intent.value,
            "confidence": self.confidence,
            "confidence_level": self.confidence_level.value,
            "explanation": self.explanation,
            "matcher": self.matcher,
            "split": self.split.to_dict() if self.split else None,
            "suggested_match": None,
        }
        if isinstance(match, SingleMatch):
            data["suggested_match"] = {
                "kind": "single",
                "mode": match.mode.value,
                "candidate_id": getattr(match.candidate, "id", None),
                "loan_id": match.loan.id if match.loan else None,
                "investor_id": match.investor.id if match.investor else None,
                "expense_type_id": match.expense_type.id if match.expense_type else None,
            }
        elif isinstance(match, GroupMatch):
            data["suggested_match"] = {
                "kind": "group",
                "mode": match.mode.value,
                "entry_ids": list(match.entry_ids),
                "candidate_ids": list(match.candidate_ids),
                "total_cents": match.total_cents,
            }
        return data


def confidence_level(confidence: int) -> ConfidenceLevel:
    """Bucket a 0-100 confidence."""
    if confidence >= 90:
        return ConfidenceLevel.HIGH
    if confidence >= 70:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW
