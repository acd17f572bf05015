"""Grade averages and distributions, overall and per week or month."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from daycare_trends.aggregation.dates import iso_week_key, month_key, week_bounds
from daycare_trends.models import GRADE_VALUES, DailyAnalysis


@dataclass(slots=True)
class WeeklyGradeSummary:
    week: str
    start_date: str
    end_date: str
    days_attended: int
    average_grade: float
    grade_distribution: dict[str, int]

    def to_payload(self) -> dict[str, Any]:
        return {
            "week": self.week,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "daysAttended": self.days_attended,
            "averageGrade": self.average_grade,
            "gradeDistribution": dict(self.grade_distribution),
        }


@dataclass(slots=True)
class MonthlyGradeSummary:
    month: str
    days_attended: int
    average_grade: float
    grade_distribution: dict[str, int]
    weeks: list[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "month": self.month,
            "daysAttended": self.days_attended,
            "averageGrade": self.average_grade,
            "gradeDistribution": dict(self.grade_distribution),
            "weeks": list(self.weeks),
        }


@dataclass(slots=True)
class GradeTrends:
    """Overall grade statistics with weekly and monthly breakdowns."""

    total_reports: int
    start_date: str
    end_date: str
    overall_average_grade: float
    overall_grade_distribution: dict[str, int]
    weekly: list[WeeklyGradeSummary]
    monthly: list[MonthlyGradeSummary]

    @property
    def latest_week(self) -> WeeklyGradeSummary | None:
        return self.weekly[-1] if self.weekly else None

    def to_payload(self) -> dict[str, Any]:
        return {
            "summary": {
                "totalReports": self.total_reports,
                "dateRange": {"start": self.start_date, "end": self.end_date},
                "overallAverageGrade": self.overall_average_grade,
                "overallGradeDistribution": dict(self.overall_grade_distribution),
            },
            "weekly": [week.to_payload() for week in self.weekly],
            "monthly": [month.to_payload() for month in self.monthly],
        }


def average_grade(analyses: Sequence[DailyAnalysis]) -> float:
    """Arithmetic mean of numeric grades; 0.0 for no records."""

    if not analyses:
        return 0.0
    return sum(analysis.grade_numeric for analysis in analyses) / len(analyses)


def grade_distribution(analyses: Sequence[DailyAnalysis]) -> dict[str, int]:
    """Count per defined letter grade, zero counts included."""

    distribution = dict.fromkeys(GRADE_VALUES, 0)
    for analysis in analyses:
        grade = analysis.grade.strip().upper()
        if grade in distribution:
            distribution[grade] += 1
    return distribution


def analyze_grade_trends(analyses: Sequence[DailyAnalysis]) -> GradeTrends:
    """Compute grade trends; ``analyses`` must be non-empty and sorted by date."""

    by_week: dict[str, list[DailyAnalysis]] = defaultdict(list)
    by_month: dict[str, list[DailyAnalysis]] = defaultdict(list)
    for analysis in analyses:
        by_week[iso_week_key(analysis.date)].append(analysis)
        by_month[month_key(analysis.date)].append(analysis)

    weekly: list[WeeklyGradeSummary] = []
    for week in sorted(by_week):
        start_date, end_date = week_bounds(week)
        bucket = by_week[week]
        weekly.append(
            WeeklyGradeSummary(
                week=week,
                start_date=start_date,
                end_date=end_date,
                days_attended=len(bucket),
                average_grade=average_grade(bucket),
                grade_distribution=grade_distribution(bucket),
            ),
        )

    monthly: list[MonthlyGradeSummary] = []
    for month in sorted(by_month):
        bucket = by_month[month]
        monthly.append(
            MonthlyGradeSummary(
                month=month,
                days_attended=len(bucket),
                average_grade=average_grade(bucket),
                grade_distribution=grade_distribution(bucket),
                weeks=sorted({iso_week_key(analysis.date) for analysis in bucket}),
            ),
        )

    return GradeTrends(
        total_reports=len(analyses),
        start_date=analyses[0].date,
        end_date=analyses[-1].date,
        overall_average_grade=average_grade(analyses),
        overall_grade_distribution=grade_distribution(analyses),
        weekly=weekly,
        monthly=monthly,
    )
