"""Per-date extraction of one source record into a persisted daily analysis."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

from daycare_trends.classifier import CategorizationResult, Classifier, FriendExtractionResult
from daycare_trends.knowledge_base import KnowledgeBase
from daycare_trends.models import (
    ACTIVITY_CATEGORIES,
    TRAINING_CATEGORIES,
    CategoryAssignment,
    DailyAnalysis,
    SourceRecord,
    grade_to_number,
)
from daycare_trends.storage.analyses import DailyAnalysisStore

logger = logging.getLogger(__name__)


class ExtractionStatus(str, Enum):
    """Result of one extractor run for a date."""

    EXTRACTED = "extracted"
    SKIPPED = "skipped"
    DRY_RUN = "dry_run"


@dataclass(slots=True)
class ExtractionReport:
    """Analysis produced for one record plus the degradations encountered."""

    analysis: DailyAnalysis
    warnings: list[str] = field(default_factory=list)
    classifier_calls: int = 0


@dataclass(slots=True)
class ExtractionOutcome:
    """What ``DailyExtractor.run`` did for one date."""

    status: ExtractionStatus
    date: str
    analysis: DailyAnalysis | None = None
    path: Path | None = None
    classifier_calls: int = 0
    warnings: list[str] = field(default_factory=list)


class DailyExtractor:
    """Resolve categories through the knowledge base and ask the classifier for the rest."""

    def __init__(
        self,
        *,
        knowledge_base: KnowledgeBase,
        classifier: Classifier,
        store: DailyAnalysisStore,
        subject_name: str,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.knowledge_base = knowledge_base
        self.classifier = classifier
        self.store = store
        self.subject_name = subject_name
        self._clock = clock or (lambda: datetime.now(tz=UTC))

    def run(
        self,
        date: str,
        record: SourceRecord,
        *,
        force: bool = False,
        dry_run: bool = False,
    ) -> ExtractionOutcome:
        """Extract and persist one date; an existing analysis is left alone unless forced.

        A dry run calls the classifier but writes neither the analysis nor new
        knowledge base entries.
        """

        if not force and self.store.exists(date):
            logger.debug("Daily analysis for %s already exists, skipping", date)
            return ExtractionOutcome(status=ExtractionStatus.SKIPPED, date=date)

        report = self.extract(record, learn=not dry_run)
        if dry_run:
            return ExtractionOutcome(
                status=ExtractionStatus.DRY_RUN,
                date=date,
                analysis=report.analysis,
                classifier_calls=report.classifier_calls,
                warnings=report.warnings,
            )

        path = self.store.save(report.analysis)
        logger.info(
            "Saved daily analysis %s (%d friends, %d activity and %d training categories)",
            date,
            len(report.analysis.friends),
            len(report.analysis.activity_categories),
            len(report.analysis.training_categories),
        )
        return ExtractionOutcome(
            status=ExtractionStatus.EXTRACTED,
            date=date,
            analysis=report.analysis,
            path=path,
            classifier_calls=report.classifier_calls,
            warnings=report.warnings,
        )

    def extract(self, record: SourceRecord, *, learn: bool = True) -> ExtractionReport:
        """Build the analysis for ``record`` without touching the analysis store.

        Classifier failures, raised or reported, leave the affected fields to the
        knowledge base alone and are listed in ``warnings``.
        """

        report = ExtractionReport(analysis=self._structural_fields(record))
        report.analysis.friends = self._extract_friends(record, report)

        suggested_activities: dict[str, list[str]] = {}
        suggested_training: dict[str, str] = {}
        unmapped_activities = _unique(
            label
            for label in record.activities
            if self.knowledge_base.lookup_activity(label) is None
        )
        unmapped_training = _unique(
            label
            for label in record.training_skills
            if self.knowledge_base.lookup_training(label) is None
        )

        if unmapped_activities or unmapped_training:
            logger.debug(
                "%s: categorizing %d unmapped activities and %d unmapped training skills",
                record.date,
                len(unmapped_activities),
                len(unmapped_training),
            )
            report.classifier_calls += 1
            try:
                result = self.classifier.categorize(unmapped_activities, unmapped_training)
            except Exception as error:
                result = CategorizationResult.failed(_describe(error))
            if result.is_failure:
                _degrade(report, f"{record.date}: categorization failed: {result.error}")
            else:
                suggested_activities = _closed_activity_suggestions(
                    result.activities,
                    requested=unmapped_activities,
                )
                suggested_training = _closed_training_suggestions(
                    result.training,
                    requested=unmapped_training,
                )
                if learn:
                    self._learn(suggested_activities, suggested_training)
                missing = [
                    *(label for label in unmapped_activities if label not in suggested_activities),
                    *(label for label in unmapped_training if label not in suggested_training),
                ]
                if missing:
                    logger.info("%s: left uncategorized: %s", record.date, ", ".join(missing))

        report.analysis.activity_categories = self._activity_assignments(
            record.activities,
            suggested_activities,
        )
        report.analysis.training_categories = self._training_assignments(
            record.training_skills,
            suggested_training,
        )
        report.analysis.analyzed_at = self._clock().isoformat()
        return report

    def _structural_fields(self, record: SourceRecord) -> DailyAnalysis:
        return DailyAnalysis(
            date=record.date,
            grade=record.grade,
            grade_numeric=grade_to_number(record.grade),
            friends=[],
            comment=record.comment,
            raw_activities=list(record.activities),
            raw_training_skills=list(record.training_skills),
            activity_categories=[],
            training_categories=[],
            positive_behaviors=list(record.positive_behaviors),
            negative_behaviors=list(record.negative_behaviors),
            analyzed_at="",
        )

    def _extract_friends(self, record: SourceRecord, report: ExtractionReport) -> list[str]:
        if not record.comment.strip():
            return []

        report.classifier_calls += 1
        try:
            result = self.classifier.extract_friends(record.comment)
        except Exception as error:
            result = FriendExtractionResult.failed(_describe(error))
        if result.is_failure:
            _degrade(report, f"{record.date}: friend extraction failed: {result.error}")
            return []

        subject = self.subject_name.strip().casefold()
        friends: list[str] = []
        seen: set[str] = set()
        for candidate in result.names:
            name = candidate.strip()
            key = name.casefold()
            if not name or key == subject or key in seen:
                continue
            seen.add(key)
            friends.append(name)
        return friends

    def _activity_assignments(
        self,
        labels: list[str],
        suggested: dict[str, list[str]],
    ) -> list[CategoryAssignment]:
        assignments: list[CategoryAssignment] = []
        for label in labels:
            categories = self.knowledge_base.lookup_activity(label) or suggested.get(label, [])
            assignments.extend(
                CategoryAssignment(item=label, category=category) for category in categories
            )
        return assignments

    def _training_assignments(
        self,
        labels: list[str],
        suggested: dict[str, str],
    ) -> list[CategoryAssignment]:
        assignments: list[CategoryAssignment] = []
        for label in labels:
            category = self.knowledge_base.lookup_training(label) or suggested.get(label)
            if category:
                assignments.append(CategoryAssignment(item=label, category=category))
        return assignments

    def _learn(self, activities: dict[str, list[str]], training: dict[str, str]) -> None:
        for label, categories in activities.items():
            if self.knowledge_base.record_activity(label, categories):
                logger.info("Learned activity mapping %r -> %s", label, ", ".join(categories))
        for label, category in training.items():
            if self.knowledge_base.record_training(label, category):
                logger.info("Learned training mapping %r -> %s", label, category)


def _closed_activity_suggestions(
    suggestions: Iterable[tuple[str, list[str]]],
    *,
    requested: list[str],
) -> dict[str, list[str]]:
    """Keep requested labels only, with categories from the activity vocabulary."""

    closed: dict[str, list[str]] = {}
    for label, categories in suggestions:
        if label not in requested or label in closed:
            continue
        valid = _unique(category for category in categories if category in ACTIVITY_CATEGORIES)
        if valid:
            closed[label] = valid
    return closed


def _closed_training_suggestions(
    suggestions: Iterable[tuple[str, str]],
    *,
    requested: list[str],
) -> dict[str, str]:
    closed: dict[str, str] = {}
    for label, category in suggestions:
        if label in requested and label not in closed and category in TRAINING_CATEGORIES:
            closed[label] = category
    return closed


def _describe(error: Exception) -> str:
    return f"{type(error).__name__}: {error}"


def _degrade(report: ExtractionReport, message: str) -> None:
    logger.warning("%s", message)
    report.warnings.append(message)


def _unique(labels: Iterable[str]) -> list[str]:
    ordered: list[str] = []
    for label in labels:
        if label not in ordered:
            ordered.append(label)
    return ordered
