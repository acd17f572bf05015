"""Activity and training category roll-ups and raw label frequencies."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from daycare_trends.aggregation.percent import frequency_table, percentage
from daycare_trends.models import ACTIVITY_CATEGORIES, TRAINING_CATEGORIES, DailyAnalysis


@dataclass(slots=True)
class ActivityBreakdown:
    """Category totals from assignments and raw label frequencies, per axis.

    Category percentages use the axis' total assignment count; raw label
    percentages use the axis' total raw label count, so uncategorized labels
    are counted too.
    """

    total_reports: int
    start_date: str
    end_date: str
    activity_category_counts: dict[str, int]
    training_category_counts: dict[str, int]
    activity_frequencies: list[dict[str, Any]]
    training_frequencies: list[dict[str, Any]]

    @property
    def total_activity_instances(self) -> int:
        return sum(self.activity_category_counts.values())

    @property
    def total_training_instances(self) -> int:
        return sum(self.training_category_counts.values())

    def to_payload(self) -> dict[str, Any]:
        return {
            "summary": {
                "totalReports": self.total_reports,
                "dateRange": {"start": self.start_date, "end": self.end_date},
                "totalActivityInstances": self.total_activity_instances,
                "totalTrainingInstances": self.total_training_instances,
                "totalActivityLabels": sum(item["count"] for item in self.activity_frequencies),
                "totalTrainingLabels": sum(item["count"] for item in self.training_frequencies),
            },
            "categoryCounts": {
                "activities": dict(self.activity_category_counts),
                "training": dict(self.training_category_counts),
            },
            "categoryPercentages": {
                "activities": _with_percentages(
                    self.activity_category_counts,
                    self.total_activity_instances,
                ),
                "training": _with_percentages(
                    self.training_category_counts,
                    self.total_training_instances,
                ),
            },
            "detailedFrequencies": {
                "activities": [dict(item) for item in self.activity_frequencies],
                "training": [dict(item) for item in self.training_frequencies],
            },
        }


def category_counts(
    analyses: Sequence[DailyAnalysis],
) -> tuple[dict[str, int], dict[str, int]]:
    """Assignment occurrences per category, every vocabulary entry present."""

    activity_counts = dict.fromkeys(ACTIVITY_CATEGORIES, 0)
    training_counts = dict.fromkeys(TRAINING_CATEGORIES, 0)
    for analysis in analyses:
        for assignment in analysis.activity_categories:
            if assignment.category in activity_counts:
                activity_counts[assignment.category] += 1
        for assignment in analysis.training_categories:
            if assignment.category in training_counts:
                training_counts[assignment.category] += 1
    return activity_counts, training_counts


def analyze_activities(analyses: Sequence[DailyAnalysis]) -> ActivityBreakdown:
    activity_counts, training_counts = category_counts(analyses)
    return ActivityBreakdown(
        total_reports=len(analyses),
        start_date=analyses[0].date,
        end_date=analyses[-1].date,
        activity_category_counts=activity_counts,
        training_category_counts=training_counts,
        activity_frequencies=frequency_table(
            label for analysis in analyses for label in analysis.raw_activities
        ),
        training_frequencies=frequency_table(
            label for analysis in analyses for label in analysis.raw_training_skills
        ),
    )


def _with_percentages(counts: dict[str, int], total: int) -> dict[str, dict[str, float]]:
    return {
        category: {"count": count, "percentage": percentage(count, total)}
        for category, count in counts.items()
    }
