"""Chart.js-shaped payloads read by the dashboard."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from daycare_trends.aggregation.activities import ActivityBreakdown
from daycare_trends.aggregation.behavior import BehaviorTrends
from daycare_trends.aggregation.friends import FriendTable
from daycare_trends.models import DailyAnalysis, format_category_label

TOP_N = 10

POSITIVE_COLOR = "#5BADBF"
NEGATIVE_COLOR = "#BF6E45"

CATEGORY_COLORS: dict[str, str] = {
    "playtime": "#FF6B9D",
    "socialization": "#4ECDC4",
    "rest": "#95E1D3",
    "outdoor": "#A8E6CF",
    "enrichment": "#FFD93D",
    "training": "#C7CEEA",
    "special_event": "#FF9FF3",
    "obedience_commands": "#6C5CE7",
    "impulse_control_and_focus": "#0984E3",
    "physical_skills": "#00B894",
    "handling_and_manners": "#FDCB6E",
    "advanced_training": "#E17055",
    "fun_skills": "#FD79A8",
}


def grade_timeline(analyses: Sequence[DailyAnalysis]) -> list[dict[str, Any]]:
    return [
        {"date": analysis.date, "grade": analysis.grade, "gradeValue": analysis.grade_numeric}
        for analysis in analyses
    ]


def friend_network(table: FriendTable, *, subject_name: str) -> dict[str, Any]:
    top = table.friends[:TOP_N]
    return {
        "type": "bar",
        "data": {
            "labels": [friend.name for friend in top],
            "datasets": [
                {
                    "label": "Mentions",
                    "data": [friend.mentions for friend in top],
                    "backgroundColor": "rgba(147, 51, 234, 0.8)",
                    "borderColor": "rgba(147, 51, 234, 1)",
                    "borderWidth": 1,
                },
            ],
        },
        "options": {
            "responsive": True,
            "plugins": {
                "title": {"display": True, "text": f"{subject_name}'s Top Friends"},
                "legend": {"display": False},
            },
            "scales": {
                "y": {
                    "beginAtZero": True,
                    "ticks": {"stepSize": 1},
                    "title": {"display": True, "text": "Number of Mentions"},
                },
            },
        },
    }


def category_chart(counts: dict[str, int]) -> dict[str, Any]:
    """Horizontal bar of non-zero categories, largest first."""

    ranked = sorted(
        ((category, count) for category, count in counts.items() if count > 0),
        key=lambda item: item[1],
        reverse=True,
    )
    return {
        "type": "bar",
        "data": {
            "labels": [format_category_label(category) for category, _ in ranked],
            "categories": [category for category, _ in ranked],
            "datasets": [
                {
                    "label": "Count",
                    "data": [count for _, count in ranked],
                    "backgroundColor": [CATEGORY_COLORS.get(category) for category, _ in ranked],
                    "borderWidth": 0,
                },
            ],
        },
        "options": _horizontal_options(step_size=10),
    }


def frequency_chart(frequencies: list[dict[str, Any]], *, color: str) -> dict[str, Any]:
    top = frequencies[:TOP_N]
    return {
        "type": "bar",
        "data": {
            "labels": [item["name"] for item in top],
            "datasets": [
                {
                    "label": "Frequency",
                    "data": [item["count"] for item in top],
                    "backgroundColor": f"rgba({color}, 0.8)",
                    "borderColor": f"rgba({color}, 1)",
                    "borderWidth": 1,
                },
            ],
        },
        "options": _horizontal_options(step_size=1, axis_title="Number of Days"),
    }


def activity_frequency(breakdown: ActivityBreakdown) -> dict[str, Any]:
    return frequency_chart(breakdown.activity_frequencies, color="59, 130, 246")


def training_frequency(breakdown: ActivityBreakdown) -> dict[str, Any]:
    return frequency_chart(breakdown.training_frequencies, color="16, 185, 129")


def behavior_timeline(trends: BehaviorTrends) -> dict[str, Any]:
    return {
        "type": "line",
        "data": {
            "labels": [day.date for day in trends.timeline],
            "datasets": [
                {
                    "label": "Caught Being Good",
                    "data": [day.positive_count for day in trends.timeline],
                    "borderColor": POSITIVE_COLOR,
                },
                {
                    "label": "Ooops",
                    "data": [day.negative_count for day in trends.timeline],
                    "borderColor": NEGATIVE_COLOR,
                },
            ],
        },
        "options": {"responsive": True, "scales": {"y": {"beginAtZero": True}}},
    }


def behavior_frequency(trends: BehaviorTrends) -> dict[str, Any]:
    """Top behaviors of both kinds in one bar chart, colored by kind."""

    combined = [(item, POSITIVE_COLOR) for item in trends.positive_behaviors] + [
        (item, NEGATIVE_COLOR) for item in trends.negative_behaviors
    ]
    combined.sort(key=lambda entry: entry[0]["count"], reverse=True)
    top = combined[:TOP_N]
    return {
        "type": "bar",
        "data": {
            "labels": [item["name"] for item, _ in top],
            "datasets": [
                {
                    "label": "Count",
                    "data": [item["count"] for item, _ in top],
                    "backgroundColor": [color for _, color in top],
                    "borderWidth": 0,
                },
            ],
        },
        "options": _horizontal_options(step_size=1),
    }


def category_items(
    activity_items: dict[str, list[str]],
    training_items: dict[str, list[str]],
) -> dict[str, Any]:
    """Known labels per category, keyed by display label."""

    return {
        "activities": {
            format_category_label(category): sorted(items)
            for category, items in activity_items.items()
        },
        "training": {
            format_category_label(category): sorted(items)
            for category, items in training_items.items()
        },
    }


def _horizontal_options(*, step_size: int, axis_title: str | None = None) -> dict[str, Any]:
    x_axis: dict[str, Any] = {"beginAtZero": True, "ticks": {"stepSize": step_size}}
    if axis_title:
        x_axis["title"] = {"display": True, "text": axis_title}
    return {
        "indexAxis": "y",
        "responsive": True,
        "plugins": {"title": {"display": False}, "legend": {"display": False}},
        "scales": {"x": x_axis, "y": {"ticks": {"autoSkip": False}}},
    }
