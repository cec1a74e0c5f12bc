"""
Classification Orchestrator - batch coordinator.

Classifies every unreconciled bank entry of an import, oldest first:
1. Filter out reconciled entries and order the rest by date
2. Share the batch as the sibling set for grouped searches
3. Classify each entry (sequentially with claiming, or across a thread pool)
4. Aggregate summary statistics
"""

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Sequence

import structlog

from ..config import Settings, get_settings
from ..models import (
    BankEntry,
    Classification,
    ConfidenceLevel,
    GroupMatch,
    Intent,
    MatchMode,
    SingleMatch,
)
from .context import MatchContext
from .matchers import BaseMatcher
from .resolver import IntentResolver

logger = structlog.get_logger()


@dataclass
class ClassificationSummary:
    """Summary statistics of a classification batch."""
    # Counts
    total_entries: int = 0
    classified: int = 0
    unknown: int = 0
    grouped: int = 0
    high_confidence: int = 0
    medium_confidence: int = 0
    low_confidence: int = 0
    by_intent: Dict[str, int] = field(default_factory=dict)

    # Amounts (in cents)
    classified_amount_cents: int = 0
    unknown_amount_cents: int = 0

    processing_time_seconds: float = 0.0

    @property
    def classified_rate(self) -> float:
        return self.classified / self.total_entries if self.total_entries else 0.0


@dataclass
class BatchResult:
    """Per-entry classifications of a batch, in processing order."""
    entries: List[BankEntry] = field(default_factory=list)
    classifications: Dict[str, Classification] = field(default_factory=dict)
    summary: ClassificationSummary = field(default_factory=ClassificationSummary)
    errors: List[str] = field(default_factory=list)

    def get(self, entry_id: str) -> Classification:
        return self.classifications.get(entry_id, Classification.unknown())

    def suggestions(self) -> List[Classification]:
        """Classifications that carry a suggestion, in processing order."""
        return [
            self.classifications[e.id] for e in self.entries
            if self.classifications[e.id].is_match
        ]


def claimed_record_ids(classification: Classification) -> List[str]:
    """
    Ids a suggestion uses up so later entries do not suggest them again.

    Grouped-entries suggestions also claim the other bank entries of the group.
    """
    match = classification.suggested_match
    if isinstance(match, SingleMatch):
        return [match.candidate.id] if match.candidate is not None else []
    if isinstance(match, GroupMatch):
        claimed = list(match.candidate_ids)
        if match.mode == MatchMode.GROUPED_ENTRIES:
            claimed.extend(match.entry_ids[1:])
        return claimed
    return []


class ClassificationOrchestrator:
    """
    Batch classifier for bank statement imports.

    Sequential runs claim matched records as they go, so two entries never
    receive the same record. Parallel runs (``max_workers`` > 1) classify
    entries independently against the same snapshot.
    """

    def __init__(
        self,
        matchers: Optional[Sequence[BaseMatcher]] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.resolver = IntentResolver(matchers=matchers, settings=self.settings)

    def classify_all(
        self,
        entries: Iterable[BankEntry],
        context: MatchContext,
        max_workers: Optional[int] = None,
        progress_callback: Optional[Callable[[float, str], None]] = None,
    ) -> BatchResult:
        """
        Classify all unreconciled entries.

        Args:
            entries: Bank entries of the import (reconciled ones are skipped)
            context: Candidate records snapshot
            max_workers: Thread count for parallel classification; None or 1
                runs sequentially with claiming
            progress_callback: Optional callback for progress updates

        Returns:
            BatchResult with one classification per unreconciled entry
        """
        start_time = time.time()
        result = BatchResult()

        def update_progress(percent: float, message: str):
            if progress_callback:
                progress_callback(percent, message)

        pending = sorted(
            (e for e in entries if not e.is_reconciled),
            key=lambda e: (e.statement_date or date.max, e.id),
        )
        result.entries = pending
        batch_context = context.with_bank_entries(pending)

        logger.info(
            "Starting classification batch",
            entries=len(pending),
            max_workers=max_workers or 1,
        )
        update_progress(0, f"Classifying {len(pending)} entries")

        if max_workers and max_workers > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                classified = pool.map(
                    lambda entry: self._classify_safely(entry, batch_context, result),
                    pending,
                )
                for i, (entry, classification) in enumerate(zip(pending, classified)):
                    result.classifications[entry.id] = classification
                    update_progress(100 * (i + 1) / len(pending), f"Classified {i + 1}/{len(pending)}")
        else:
            # Later entries already placed in a grouped-entries suggestion
            group_members: Dict[str, Classification] = {}
            for i, entry in enumerate(pending):
                if entry.id in group_members:
                    classification = self._join_group(entry, group_members.pop(entry.id), batch_context)
                else:
                    classification = self._classify_safely(entry, batch_context, result)
                    match = classification.suggested_match
                    if isinstance(match, GroupMatch) and match.mode == MatchMode.GROUPED_ENTRIES:
                        group_members.update((entry_id, classification) for entry_id in match.entry_ids[1:])
                result.classifications[entry.id] = classification
                claimed = claimed_record_ids(classification)
                if claimed:
                    batch_context = batch_context.with_claims(claimed)
                update_progress(100 * (i + 1) / len(pending), f"Classified {i + 1}/{len(pending)}")

        result.summary = self._compute_summary(result, time.time() - start_time)

        logger.info(
            "Classification batch complete",
            entries=result.summary.total_entries,
            classified=result.summary.classified,
            unknown=result.summary.unknown,
            errors=len(result.errors),
            seconds=round(result.summary.processing_time_seconds, 3),
        )
        return result

    def _join_group(
        self,
        entry: BankEntry,
        group_classification: Classification,
        context: MatchContext,
    ) -> Classification:
        """Classification of an entry that belongs to an earlier entry's group."""
        logger.debug("Entry joins grouped payment", entry_id=entry.id)
        return replace(
            group_classification,
            split=self.resolver.split_for(entry, group_classification, context),
        )

    def _classify_safely(
        self,
        entry: BankEntry,
        context: MatchContext,
        result: BatchResult,
    ) -> Classification:
        try:
            return self.resolver.classify(entry, context)
        except Exception as e:
            logger.exception("Classification failed", entry_id=entry.id, error=str(e))
            result.errors.append(f"{entry.id}: {e}")
            return Classification.unknown()

    def _compute_summary(self, result: BatchResult, processing_time: float) -> ClassificationSummary:
        """Compute summary statistics."""
        summary = ClassificationSummary(
            total_entries=len(result.entries),
            processing_time_seconds=processing_time,
        )

        for entry in result.entries:
            classification = result.classifications[entry.id]
            if classification.intent == Intent.UNKNOWN:
                summary.unknown += 1
                summary.unknown_amount_cents += entry.abs_cents
                continue

            summary.classified += 1
            summary.classified_amount_cents += entry.abs_cents
            intent = classification.intent.value
            summary.by_intent[intent] = summary.by_intent.get(intent, 0) + 1

            if classification.is_grouped:
                summary.grouped += 1

            level = classification.confidence_level
            if level == ConfidenceLevel.HIGH:
                summary.high_confidence += 1
            elif level == ConfidenceLevel.MEDIUM:
                summary.medium_confidence += 1
            else:
                summary.low_confidence += 1

        return summary
