"""Caught Being Good / Ooops behavior totals and timeline."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from daycare_trends.aggregation.percent import frequency_table, percentage
from daycare_trends.models import DailyAnalysis


@dataclass(slots=True)
class BehaviorDay:
    date: str
    positive_count: int
    negative_count: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "positiveCount": self.positive_count,
            "negativeCount": self.negative_count,
        }


@dataclass(slots=True)
class BehaviorTrends:
    total_reports: int
    start_date: str
    end_date: str
    timeline: list[BehaviorDay] = field(default_factory=list)
    positive_behaviors: list[dict[str, Any]] = field(default_factory=list)
    negative_behaviors: list[dict[str, Any]] = field(default_factory=list)

    @property
    def total_positive(self) -> int:
        return sum(day.positive_count for day in self.timeline)

    @property
    def total_negative(self) -> int:
        return sum(day.negative_count for day in self.timeline)

    @property
    def days_with_positive(self) -> int:
        return sum(1 for day in self.timeline if day.positive_count > 0)

    @property
    def days_with_negative(self) -> int:
        return sum(1 for day in self.timeline if day.negative_count > 0)

    def to_payload(self) -> dict[str, Any]:
        return {
            "summary": {
                "totalReports": self.total_reports,
                "dateRange": {"start": self.start_date, "end": self.end_date},
                "totalPositive": self.total_positive,
                "totalNegative": self.total_negative,
                "daysWithPositive": self.days_with_positive,
                "daysWithNegative": self.days_with_negative,
                "positivePercentage": percentage(self.days_with_positive, self.total_reports),
                "negativePercentage": percentage(self.days_with_negative, self.total_reports),
            },
            "timeline": [day.to_payload() for day in self.timeline],
            "positiveBehaviors": [dict(item) for item in self.positive_behaviors],
            "negativeBehaviors": [dict(item) for item in self.negative_behaviors],
        }


def analyze_behavior(analyses: Sequence[DailyAnalysis]) -> BehaviorTrends:
    """Timeline follows the order of ``analyses``."""

    return BehaviorTrends(
        total_reports=len(analyses),
        start_date=analyses[0].date,
        end_date=analyses[-1].date,
        timeline=[
            BehaviorDay(
                date=analysis.date,
                positive_count=len(analysis.positive_behaviors),
                negative_count=len(analysis.negative_behaviors),
            )
            for analysis in analyses
        ],
        positive_behaviors=frequency_table(
            label for analysis in analyses for label in analysis.positive_behaviors
        ),
        negative_behaviors=frequency_table(
            label for analysis in analyses for label in analysis.negative_behaviors
        ),
    )
