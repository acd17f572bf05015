"""Normalization of raw classifier payloads into closed-vocabulary results."""

from __future__ import annotations

import json
import re
from collections.abc import Sequence

from daycare_trends.models import ACTIVITY_CATEGORIES, TRAINING_CATEGORIES

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)


def recover_json_payload(text: str) -> dict[str, object] | None:
    """Best-effort recovery of a JSON object from free-form agent output."""

    stripped = text.strip()
    if not stripped:
        return None

    direct = _try_load_dict(stripped)
    if direct is not None:
        return direct

    fenced = _FENCED_JSON.search(stripped)
    if fenced is not None:
        payload = _try_load_dict(fenced.group(1))
        if payload is not None:
            return payload

    start = stripped.find("{")
    end = stripped.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    return _try_load_dict(stripped[start : end + 1])


def parse_friend_payload(payload: dict[str, object]) -> list[str] | None:
    """Return cleaned names, or None when the payload has no ``friends`` list."""

    raw = payload.get("friends")
    if not isinstance(raw, list):
        return None
    return [name.strip() for name in raw if isinstance(name, str) and name.strip()]


def parse_categorization_payload(
    payload: dict[str, object],
    *,
    activities: Sequence[str],
    training: Sequence[str],
) -> tuple[list[tuple[str, list[str]]], list[tuple[str, str]]] | None:
    """Keep only requested labels and categories from the closed vocabularies.

    Returns None when neither ``activities`` nor ``training`` is a list.
    """

    raw_activities = payload.get("activities")
    raw_training = payload.get("training")
    if not isinstance(raw_activities, list) and not isinstance(raw_training, list):
        return None

    requested_activities = set(activities)
    resolved_activities: list[tuple[str, list[str]]] = []
    seen_activities: set[str] = set()
    for entry in raw_activities if isinstance(raw_activities, list) else []:
        if not isinstance(entry, dict):
            continue
        item = entry.get("item")
        if not isinstance(item, str) or item not in requested_activities:
            continue
        if item in seen_activities:
            continue
        categories = _closed_categories(entry.get("categories"), ACTIVITY_CATEGORIES)
        if not categories:
            continue
        seen_activities.add(item)
        resolved_activities.append((item, categories))

    requested_training = set(training)
    resolved_training: list[tuple[str, str]] = []
    seen_training: set[str] = set()
    for entry in raw_training if isinstance(raw_training, list) else []:
        if not isinstance(entry, dict):
            continue
        item = entry.get("item")
        category = entry.get("category")
        if not isinstance(item, str) or item not in requested_training:
            continue
        if item in seen_training:
            continue
        if not isinstance(category, str) or category not in TRAINING_CATEGORIES:
            continue
        seen_training.add(item)
        resolved_training.append((item, category))

    return resolved_activities, resolved_training


def _closed_categories(value: object, vocabulary: Sequence[str]) -> list[str]:
    if not isinstance(value, list):
        return []
    categories: list[str] = []
    for category in value:
        if isinstance(category, str) and category in vocabulary and category not in categories:
            categories.append(category)
    return categories


def _try_load_dict(raw: str) -> dict[str, object] | None:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed
