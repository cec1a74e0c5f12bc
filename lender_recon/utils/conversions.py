"""
Lenient conversion of raw statement values.

Bank exports and candidate snapshots arrive with strings, floats, Decimals
and dates mixed together. These helpers never raise: anything unparseable
becomes None (dates) or zero (amounts), which the scorers treat as the
lowest-confidence value.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional


def parse_date(value: Any) -> Optional[date]:
    """Parse a date, datetime or ISO-8601 string into a date."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            pass
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None
    return None


def to_cents(value: Any) -> int:
    """
    Convert an amount in standard units (pounds) to integer cents.

    Strings may carry currency symbols and thousands separators.
    Non-numeric input returns 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        for symbol in "£$€":
            value = value.replace(symbol, "")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return 0
    if not amount.is_finite():
        return 0
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_number(value: Any) -> float:
    """Coerce to float, returning 0.0 for anything non-numeric."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number or number in (float("inf"), float("-inf")):
        return 0.0
    return number
