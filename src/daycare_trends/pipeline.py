"""Incremental orchestration: select dates, extract each, then aggregate everything."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from daycare_trends.aggregation import AggregateOutputs, NoDataError, aggregate
from daycare_trends.extraction import DailyExtractor, ExtractionStatus
from daycare_trends.knowledge_base import KnowledgeBase
from daycare_trends.storage import (
    AggregateWriter,
    DailyAnalysisStore,
    MalformedDocumentError,
    RecordStore,
    SkippedDocument,
)

logger = logging.getLogger(__name__)


class SelectionMode(str, Enum):
    """Which dates an orchestration run extracts."""

    NEW = "new"
    ALL = "all"
    DATE = "date"


@dataclass(slots=True)
class FailedDate:
    date: str
    reason: str


@dataclass(slots=True)
class AggregationSummary:
    outputs: AggregateOutputs
    written: list[Path] = field(default_factory=list)
    skipped_documents: list[SkippedDocument] = field(default_factory=list)


@dataclass(slots=True)
class RunSummary:
    """Counts and details reported after every orchestration run."""

    mode: SelectionMode
    selected: int = 0
    extracted: int = 0
    skipped: int = 0
    failed: list[FailedDate] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    classifier_calls: int = 0
    aggregation: AggregationSummary | None = None

    @property
    def failed_count(self) -> int:
        return len(self.failed)


class AnalysisOrchestrator:
    """Sequential extraction with per-date failure isolation, followed by aggregation."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        record_store: RecordStore,
        analysis_store: DailyAnalysisStore,
        extractor: DailyExtractor,
        aggregate_writer: AggregateWriter,
        knowledge_base: KnowledgeBase,
        subject_name: str = "Pepper",
        delay_seconds: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.record_store = record_store
        self.analysis_store = analysis_store
        self.extractor = extractor
        self.aggregate_writer = aggregate_writer
        self.knowledge_base = knowledge_base
        self.subject_name = subject_name
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def select_dates(self, mode: SelectionMode, date: str | None = None) -> list[str]:
        """Candidate dates for ``mode``; ``date`` is required for ``SelectionMode.DATE``."""

        if mode is SelectionMode.DATE:
            if not date:
                raise ValueError("A date is required when selecting a specific date.")
            return [date]
        available = self.record_store.list_dates()
        if mode is SelectionMode.ALL:
            return available
        analyzed = set(self.analysis_store.list_dates())
        return [candidate for candidate in available if candidate not in analyzed]

    def run(self, mode: SelectionMode = SelectionMode.NEW, date: str | None = None) -> RunSummary:
        """Extract the selected dates, then aggregate the full corpus.

        Raises ``NoDataError`` when no daily analysis exists after extraction.
        """

        dates = self.select_dates(mode, date)
        summary = RunSummary(mode=mode, selected=len(dates))
        force = mode is not SelectionMode.NEW
        logger.info("Selected %d date(s) for extraction (mode=%s)", len(dates), mode.value)

        for index, current in enumerate(dates, start=1):
            logger.info("[%d/%d] %s", index, len(dates), current)
            calls = self._extract_one(current, force=force, summary=summary)
            if calls and index < len(dates) and self.delay_seconds > 0:
                self._sleep(self.delay_seconds)

        logger.info(
            "Extraction finished: %d extracted, %d skipped, %d failed",
            summary.extracted,
            summary.skipped,
            summary.failed_count,
        )
        summary.aggregation = self.aggregate()
        return summary

    def aggregate(self) -> AggregationSummary:
        """Aggregate the persisted corpus and write every output document."""

        corpus = self.analysis_store.load_all()
        if not corpus.analyses:
            raise NoDataError(
                "No daily analyses found. Add report cards and run extraction first.",
            )
        outputs = aggregate(
            corpus.analyses,
            subject_name=self.subject_name,
            activity_items=self.knowledge_base.activity_items_by_category(),
            training_items=self.knowledge_base.training_items_by_category(),
        )
        written = self.aggregate_writer.write(outputs)
        logger.info("Wrote %d aggregate files", len(written))
        return AggregationSummary(
            outputs=outputs,
            written=written,
            skipped_documents=list(corpus.skipped),
        )

    def _extract_one(self, date: str, *, force: bool, summary: RunSummary) -> int:
        try:
            record = self.record_store.read(date)
        except MalformedDocumentError as error:
            logger.warning("%s: unreadable source record: %s", date, error.reason)
            summary.failed.append(FailedDate(date=date, reason=f"malformed source: {error.reason}"))
            return 0
        if record is None:
            logger.warning("%s: no source record, skipping", date)
            summary.failed.append(FailedDate(date=date, reason="source record not found"))
            return 0

        try:
            outcome = self.extractor.run(date, record, force=force)
        except Exception as error:
            logger.exception("%s: extraction failed", date)
            summary.failed.append(FailedDate(date=date, reason=str(error) or type(error).__name__))
            return 0

        summary.classifier_calls += outcome.classifier_calls
        summary.warnings.extend(outcome.warnings)
        if outcome.status is ExtractionStatus.SKIPPED:
            summary.skipped += 1
        else:
            summary.extracted += 1
        return outcome.classifier_calls
