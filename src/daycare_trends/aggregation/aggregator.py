"""Pure aggregation over the daily analysis corpus."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from daycare_trends.aggregation import charts
from daycare_trends.aggregation.activities import ActivityBreakdown, analyze_activities
from daycare_trends.aggregation.behavior import BehaviorTrends, analyze_behavior
from daycare_trends.aggregation.friends import FriendTable, analyze_friends
from daycare_trends.aggregation.grades import GradeTrends, analyze_grade_trends
from daycare_trends.models import DailyAnalysis

logger = logging.getLogger(__name__)


class NoDataError(RuntimeError):
    """Aggregation was requested over an empty corpus."""

    def __init__(self, message: str = "No daily analyses to aggregate.") -> None:
        super().__init__(message)


@dataclass(slots=True)
class AggregateOutputs:
    """Every derived dataset for one corpus snapshot."""

    grade_trends: GradeTrends
    friends: FriendTable
    activities: ActivityBreakdown
    behavior: BehaviorTrends
    grade_timeline: list[dict[str, Any]]
    subject_name: str = "Pepper"
    activity_items: dict[str, list[str]] = field(default_factory=dict)
    training_items: dict[str, list[str]] = field(default_factory=dict)

    def aggregate_documents(self) -> dict[str, dict[str, Any]]:
        """Documents for ``analysis/aggregates``, keyed by file stem."""

        documents = {
            "grade-trends": self.grade_trends.to_payload(),
            "top-friends": self.friends.to_payload(),
            "activity-breakdown": self.activities.to_payload(),
            "behavior-trends": self.behavior.to_payload(),
        }
        latest_week = self.grade_trends.latest_week
        if latest_week is not None:
            documents["weekly-summary"] = latest_week.to_payload()
        return documents

    def viz_documents(self) -> dict[str, Any]:
        """Chart payloads for ``viz``, keyed by file stem."""

        return {
            "grade-timeline": self.grade_timeline,
            "friend-network": charts.friend_network(self.friends, subject_name=self.subject_name),
            "activity-categories": charts.category_chart(
                self.activities.activity_category_counts,
            ),
            "training-categories": charts.category_chart(
                self.activities.training_category_counts,
            ),
            "activity-frequency": charts.activity_frequency(self.activities),
            "training-frequency": charts.training_frequency(self.activities),
            "behavior-timeline": charts.behavior_timeline(self.behavior),
            "behavior-frequency": charts.behavior_frequency(self.behavior),
            "category-items": charts.category_items(self.activity_items, self.training_items),
        }


def aggregate(
    analyses: Sequence[DailyAnalysis],
    *,
    subject_name: str = "Pepper",
    activity_items: dict[str, list[str]] | None = None,
    training_items: dict[str, list[str]] | None = None,
) -> AggregateOutputs:
    """Compute every aggregate; raises ``NoDataError`` when ``analyses`` is empty.

    ``activity_items`` and ``training_items`` are the knowledge base's
    category -> labels views, passed through to the chart data.
    """

    if not analyses:
        raise NoDataError()

    ordered = sorted(analyses, key=lambda analysis: analysis.date)
    outputs = AggregateOutputs(
        grade_trends=analyze_grade_trends(ordered),
        friends=analyze_friends(ordered),
        activities=analyze_activities(ordered),
        behavior=analyze_behavior(ordered),
        grade_timeline=charts.grade_timeline(ordered),
        subject_name=subject_name,
        activity_items=dict(activity_items or {}),
        training_items=dict(training_items or {}),
    )
    logger.info(
        "Aggregated %d reports (%s to %s): average grade %.2f, %d friends",
        len(ordered),
        ordered[0].date,
        ordered[-1].date,
        outputs.grade_trends.overall_average_grade,
        len(outputs.friends.friends),
    )
    return outputs
