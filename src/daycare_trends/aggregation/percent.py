"""Shared counting helpers."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from typing import Any


def percentage(count: int, total: int) -> float:
    """``count`` as a percentage of ``total``; 0.0 when ``total`` is zero."""

    if total <= 0:
        return 0.0
    return count / total * 100


def frequency_table(labels: Iterable[str]) -> list[dict[str, Any]]:
    """Per-label counts with their share of all instances, most frequent first.

    Ties keep first-seen order.
    """

    counts = Counter(labels)
    total = sum(counts.values())
    return [
        {"name": name, "count": count, "percentage": percentage(count, total)}
        for name, count in sorted(counts.items(), key=lambda item: item[1], reverse=True)
    ]
