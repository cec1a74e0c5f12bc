"""Bank statement entry model."""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Dict, Any
from uuid import uuid4

from ..utils.conversions import parse_date, to_cents


@dataclass(frozen=True)
class BankEntry:
    """
    One imported bank statement line.
    Amounts are stored in CENTS (integer); positive = credit, negative = debit.
    The engine only reads entries, it never mutates them.
    """
    id: str = field(default_factory=lambda: str(uuid4()))
    statement_date: Optional[date] = None
    amount_cents: int = 0
    description: str = ""
    reference: Optional[str] = None
    is_reconciled: bool = False

    @property
    def amount(self) -> float:
        """Return signed amount in standard units."""
        return self.amount_cents / 100.0

    @property
    def abs_cents(self) -> int:
        return abs(self.amount_cents)

    @property
    def is_credit(self) -> bool:
        return self.amount_cents > 0

    @property
    def is_debit(self) -> bool:
        return self.amount_cents < 0

    @property
    def match_amount_cents(self) -> int:
        return self.abs_cents

    @property
    def match_date(self) -> Optional[date]:
        return self.statement_date

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BankEntry":
        """
        Build an entry from raw import data.

        Amounts are in standard units (e.g. "1,250.00"); unparseable dates
        become None and non-numeric amounts become 0.
        """
        kwargs: Dict[str, Any] = {
            "statement_date": parse_date(data.get("statement_date", data.get("date"))),
            "amount_cents": to_cents(data.get("amount")),
            "description": data.get("description") or "",
            "reference": data.get("reference"),
            "is_reconciled": bool(data.get("is_reconciled", False)),
        }
        if data.get("id") is not None:
            kwargs["id"] = str(data["id"])
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "statement_date": self.statement_date.isoformat() if self.statement_date else None,
            "amount_cents": self.amount_cents,
            "amount": self.amount,
            "description": self.description,
            "reference": self.reference,
            "is_reconciled": self.is_reconciled,
        }
