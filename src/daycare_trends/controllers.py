"""Controllers for analysis CLI commands."""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from daycare_trends.classifier import Classifier, build_classifier
from daycare_trends.config import Settings
from daycare_trends.extraction import DailyExtractor, ExtractionStatus
from daycare_trends.knowledge_base import KnowledgeBase
from daycare_trends.models import TRAINING_CATEGORIES
from daycare_trends.pipeline import (
    AggregationSummary,
    AnalysisOrchestrator,
    RunSummary,
    SelectionMode,
)
from daycare_trends.storage import AggregateWriter, DailyAnalysisStore, RecordStore
from daycare_trends.storage.json_files import is_iso_date


@dataclass(slots=True)
class AnalyzeCommand:
    """CLI input for a full incremental run."""

    data_dir: Path | None
    force: bool = False
    date: str | None = None


@dataclass(slots=True)
class ExtractCommand:
    """CLI input for single-date extraction."""

    data_dir: Path | None
    date: str
    force: bool = False
    dry_run: bool = False


@dataclass(slots=True)
class AggregateCommand:
    data_dir: Path | None


@dataclass(slots=True)
class MappingsCommand:
    """CLI input for knowledge base inspection and edits."""

    data_dir: Path | None
    axis: str = "activity"
    label: str = ""
    categories: tuple[str, ...] = field(default_factory=tuple)


@dataclass(slots=True)
class _Components:
    settings: Settings
    knowledge_base: KnowledgeBase
    records: RecordStore
    analyses: DailyAnalysisStore
    extractor: DailyExtractor
    orchestrator: AnalysisOrchestrator


class AnalysisCliController:
    """Wires settings, stores and classifier together for each CLI command."""

    def __init__(
        self,
        classifier_factory: Callable[[Settings], Classifier] = build_classifier,
    ) -> None:
        self._classifier_factory = classifier_factory

    def analyze(self, command: AnalyzeCommand) -> list[str]:
        if command.force and command.date:
            raise ValueError("--force and --date are mutually exclusive.")
        if command.date is not None:
            _require_date(command.date)
            mode = SelectionMode.DATE
        elif command.force:
            mode = SelectionMode.ALL
        else:
            mode = SelectionMode.NEW

        components = self._components(command.data_dir)
        summary = components.orchestrator.run(mode, command.date)
        return _render_run_summary(summary)

    def extract(self, command: ExtractCommand) -> list[str]:
        _require_date(command.date)
        components = self._components(command.data_dir)
        record = components.records.read(command.date)
        if record is None:
            raise ValueError(
                f"No report card for {command.date} at {components.records.path_for(command.date)}",
            )

        outcome = components.extractor.run(
            command.date,
            record,
            force=command.force,
            dry_run=command.dry_run,
        )
        lines = [f"Warning: {warning}" for warning in outcome.warnings]
        if outcome.status is ExtractionStatus.SKIPPED:
            lines.append(
                f"Daily analysis for {command.date} already exists; use --force to re-extract.",
            )
        elif outcome.status is ExtractionStatus.DRY_RUN and outcome.analysis is not None:
            lines.append(
                json.dumps(outcome.analysis.to_payload(), ensure_ascii=False, indent=2),
            )
            lines.append(f"Dry run: classifier_calls={outcome.classifier_calls}, nothing written.")
        else:
            lines.append(
                f"Extracted {command.date}: classifier_calls={outcome.classifier_calls} "
                f"path={outcome.path}",
            )
        return lines

    def aggregate(self, command: AggregateCommand) -> list[str]:
        components = self._components(command.data_dir)
        return _render_aggregation(components.orchestrator.aggregate())

    def show_mappings(self, command: MappingsCommand) -> list[str]:
        knowledge_base = self._knowledge_base(command.data_dir)
        activities = knowledge_base.activities
        training = knowledge_base.training
        lines = [f"Activity mappings ({len(activities)}):"]
        for label, categories in sorted(activities.items()):
            lines.append(f"  {label}: {', '.join(categories)}")
        lines.append(f"Training mappings ({len(training)}):")
        lines.extend(f"  {label}: {category}" for label, category in sorted(training.items()))
        return lines

    def seed_mappings(self, command: MappingsCommand) -> list[str]:
        knowledge_base = self._knowledge_base(command.data_dir)
        added = knowledge_base.seed_defaults()
        return [f"Seeded {added} new mapping(s) from the report-card form labels."]

    def override_mapping(self, command: MappingsCommand) -> list[str]:
        knowledge_base = self._knowledge_base(command.data_dir)
        if command.axis == "activity":
            knowledge_base.override_activity(command.label, command.categories)
        else:
            if len(command.categories) != 1:
                vocabulary = ", ".join(TRAINING_CATEGORIES)
                raise ValueError(f"A training skill takes exactly one category: {vocabulary}")
            knowledge_base.override_training(command.label, command.categories[0])
        categories = ", ".join(command.categories)
        return [f"{command.axis.capitalize()} mapping set: {command.label!r} -> {categories}"]

    def forget_mapping(self, command: MappingsCommand) -> list[str]:
        knowledge_base = self._knowledge_base(command.data_dir)
        if command.axis == "activity":
            removed = knowledge_base.forget_activity(command.label)
        else:
            removed = knowledge_base.forget_training(command.label)
        if not removed:
            return [f"No {command.axis} mapping for {command.label!r}."]
        return [
            f"Forgot {command.axis} mapping {command.label!r}; "
            "the next extraction will categorize it again.",
        ]

    def _knowledge_base(self, data_dir: Path | None) -> KnowledgeBase:
        settings = Settings.from_env(data_dir=data_dir)
        settings.validate()
        return KnowledgeBase.load(
            activity_path=settings.layout.activity_mappings_path,
            training_path=settings.layout.training_mappings_path,
        )

    def _components(self, data_dir: Path | None) -> _Components:
        settings = Settings.from_env(data_dir=data_dir)
        settings.validate()
        layout = settings.layout
        knowledge_base = KnowledgeBase.load(
            activity_path=layout.activity_mappings_path,
            training_path=layout.training_mappings_path,
        )
        records = RecordStore(layout.reports_dir)
        analyses = DailyAnalysisStore(layout.daily_dir)
        extractor = DailyExtractor(
            knowledge_base=knowledge_base,
            classifier=self._classifier_factory(settings),
            store=analyses,
            subject_name=settings.subject_name,
        )
        orchestrator = AnalysisOrchestrator(
            record_store=records,
            analysis_store=analyses,
            extractor=extractor,
            aggregate_writer=AggregateWriter(layout.aggregates_dir, layout.viz_dir),
            knowledge_base=knowledge_base,
            subject_name=settings.subject_name,
            delay_seconds=settings.pipeline.request_delay_seconds,
        )
        return _Components(
            settings=settings,
            knowledge_base=knowledge_base,
            records=records,
            analyses=analyses,
            extractor=extractor,
            orchestrator=orchestrator,
        )


def _require_date(value: str) -> None:
    if not is_iso_date(value):
        raise ValueError(f"Invalid date {value!r}; expected YYYY-MM-DD.")


def _render_run_summary(summary: RunSummary) -> list[str]:
    lines = [
        "Extraction summary: "
        f"mode={summary.mode.value} selected={summary.selected} "
        f"extracted={summary.extracted} skipped={summary.skipped} "
        f"failed={summary.failed_count} classifier_calls={summary.classifier_calls}",
    ]
    lines.extend(f"Failed: {failure.date}: {failure.reason}" for failure in summary.failed)
    lines.extend(f"Warning: {warning}" for warning in summary.warnings)
    if summary.aggregation is not None:
        lines.extend(_render_aggregation(summary.aggregation))
    return lines


def _render_aggregation(aggregation: AggregationSummary) -> list[str]:
    outputs = aggregation.outputs
    trends = outputs.grade_trends
    distribution = " ".join(
        f"{grade}={count}" for grade, count in trends.overall_grade_distribution.items()
    )
    lines = [
        "Aggregation summary: "
        f"reports={trends.total_reports} range={trends.start_date}..{trends.end_date} "
        f"average_grade={trends.overall_average_grade:.2f} {distribution}",
        f"Friends: unique={len(outputs.friends.friends)}",
    ]
    for index, friend in enumerate(outputs.friends.friends[:5], start=1):
        lines.append(
            f"  {index}. {friend.name} mentions={friend.mentions} "
            f"({friend.percentage:.1f}%) trend={friend.trend.value}",
        )
    lines.append(
        f"Categories: activity_instances={outputs.activities.total_activity_instances} "
        f"training_instances={outputs.activities.total_training_instances}",
    )
    lines.extend(
        f"Skipped malformed analysis: {skipped.path.name}: {skipped.reason}"
        for skipped in aggregation.skipped_documents
    )
    lines.append(f"Wrote {len(aggregation.written)} files.")
    return lines

