"""Utility modules."""

from .conversions import parse_date, to_cents, to_number

__all__ = ["parse_date", "to_cents", "to_number"]
