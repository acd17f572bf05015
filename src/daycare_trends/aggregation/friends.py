"""Friend mention frequency with a coarse trend classification."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from daycare_trends.aggregation.percent import percentage
from daycare_trends.models import DailyAnalysis

TREND_MIN_MENTIONS = 3
TREND_RATIO = 1.5


class FriendTrend(str, Enum):
    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


@dataclass(slots=True)
class FriendStats:
    name: str
    mentions: int
    percentage: float
    first_seen: str
    last_seen: str
    trend: FriendTrend

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "mentions": self.mentions,
            "percentage": self.percentage,
            "firstSeen": self.first_seen,
            "lastSeen": self.last_seen,
            "trend": self.trend.value,
        }


@dataclass(slots=True)
class FriendTable:
    """Friends sorted by mentions, most recent first on ties."""

    total_report_cards: int
    start_date: str
    end_date: str
    friends: list[FriendStats]

    def to_payload(self) -> dict[str, Any]:
        return {
            "summary": {
                "totalReportCards": self.total_report_cards,
                "uniqueFriends": len(self.friends),
                "dateRange": {"start": self.start_date, "end": self.end_date},
            },
            "friends": [friend.to_payload() for friend in self.friends],
        }


def classify_trend(mention_dates: Sequence[str]) -> FriendTrend:
    """Compare mentions in the earlier and later half of a friend's sorted dates.

    Fewer than three mentions is always stable.
    """

    if len(mention_dates) < TREND_MIN_MENTIONS:
        return FriendTrend.STABLE
    ordered = sorted(mention_dates)
    midpoint = len(ordered) // 2
    first_half = len(ordered[:midpoint])
    second_half = len(ordered[midpoint:])
    if second_half > first_half * TREND_RATIO:
        return FriendTrend.INCREASING
    if first_half > second_half * TREND_RATIO:
        return FriendTrend.DECREASING
    return FriendTrend.STABLE


def analyze_friends(analyses: Sequence[DailyAnalysis]) -> FriendTable:
    """Build the friend table; ``analyses`` must be non-empty and sorted by date."""

    mention_dates: dict[str, list[str]] = defaultdict(list)
    for analysis in analyses:
        for friend in analysis.friends:
            mention_dates[friend].append(analysis.date)

    total = len(analyses)
    friends: list[FriendStats] = []
    for name, dates in mention_dates.items():
        ordered = sorted(dates)
        friends.append(
            FriendStats(
                name=name,
                mentions=len(ordered),
                percentage=percentage(len(ordered), total),
                first_seen=ordered[0],
                last_seen=ordered[-1],
                trend=classify_trend(ordered),
            ),
        )
    # two stable passes: most recent first, then by mentions
    friends.sort(key=lambda friend: friend.last_seen, reverse=True)
    friends.sort(key=lambda friend: friend.mentions, reverse=True)

    return FriendTable(
        total_report_cards=total,
        start_date=analyses[0].date,
        end_date=analyses[-1].date,
        friends=friends,
    )
