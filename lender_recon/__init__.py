"""Bank statement matching and classification engine for a lending book."""

from .config import Settings, get_settings
from .models import BankEntry, Classification, Intent
from .reconciliation import ClassificationOrchestrator, IntentResolver, MatchContext

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "get_settings",
    "BankEntry",
    "Classification",
    "Intent",
    "ClassificationOrchestrator",
    "IntentResolver",
    "MatchContext",
]
