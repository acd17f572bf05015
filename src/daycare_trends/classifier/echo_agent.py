"""Local deterministic agent for CLI classifier integration tests and offline runs."""

from __future__ import annotations

import argparse
import json
import re
import sys
import time
from pathlib import Path

from daycare_trends.classifier.contracts import ClassifierTaskInput, TaskManifest
from daycare_trends.classifier.prompts import CATEGORIZATION_TASK, FRIEND_EXTRACTION_TASK
from daycare_trends.storage.json_files import write_json

_CAPITALIZED_WORD = re.compile(r"\b[A-Z][a-z]+\b")

_NON_NAMES = frozenset(
    {
        "A",
        "After",
        "All",
        "An",
        "And",
        "But",
        "Great",
        "He",
        "Her",
        "His",
        "It",
        "Today",
        "She",
        "The",
        "They",
        "This",
        "We",
        "What",
        "When",
    },
)

_ACTIVITY_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("birthday", "special_event"),
    ("party", "special_event"),
    ("pool", "outdoor"),
    ("outside", "outdoor"),
    ("yard", "outdoor"),
    ("puzzle", "enrichment"),
    ("brain", "enrichment"),
    ("nose work", "enrichment"),
    ("trainer", "training"),
    ("agility", "training"),
    ("nap", "rest"),
    ("rest", "rest"),
    ("buddies", "socialization"),
    ("friend", "socialization"),
    ("play", "playtime"),
    ("toy", "playtime"),
)

_TRAINING_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("distraction", "advanced_training"),
    ("sequence", "advanced_training"),
    ("hands-free", "advanced_training"),
    ("impulse", "impulse_control_and_focus"),
    ("focus", "impulse_control_and_focus"),
    ("settle", "impulse_control_and_focus"),
    ("balanc", "physical_skills"),
    ("agility", "physical_skills"),
    ("coordination", "physical_skills"),
    ("confidence", "physical_skills"),
    ("leash", "handling_and_manners"),
    ("collar", "handling_and_manners"),
    ("handling", "handling_and_manners"),
    ("place", "handling_and_manners"),
    ("crate", "handling_and_manners"),
    ("boundar", "handling_and_manners"),
    ("trick", "fun_skills"),
    ("target", "fun_skills"),
    ("spin", "fun_skills"),
)


def extract_names(comment: str) -> list[str]:
    names: list[str] = []
    for word in _CAPITALIZED_WORD.findall(comment):
        if word in _NON_NAMES or word in names:
            continue
        names.append(word)
    return names


def categorize_activity(label: str) -> list[str]:
    lowered = label.lower()
    categories: list[str] = []
    for keyword, category in _ACTIVITY_KEYWORDS:
        if keyword in lowered and category not in categories:
            categories.append(category)
    return categories or ["playtime"]


def categorize_training(label: str) -> str:
    lowered = label.lower()
    for keyword, category in _TRAINING_KEYWORDS:
        if keyword in lowered:
            return category
    return "obedience_commands"


def build_result(task_type: str, payload: dict[str, object]) -> dict[str, object]:
    if task_type == FRIEND_EXTRACTION_TASK:
        return {"friends": extract_names(str(payload.get("comment", "")))}
    if task_type == CATEGORIZATION_TASK:
        activities = payload.get("activities") or []
        training = payload.get("training") or []
        return {
            "activities": [
                {"item": label, "categories": categorize_activity(label)} for label in activities
            ],
            "training": [
                {"item": label, "category": categorize_training(label)} for label in training
            ],
        }
    raise ValueError(f"Unsupported task type: {task_type}")


def main(argv: list[str] | None = None) -> int:
    """Answer one classifier task deterministically."""

    parser = argparse.ArgumentParser()
    parser.add_argument("--task-manifest", required=True)
    parser.add_argument("--fail", default=None, help="Write MESSAGE to stderr and exit 1.")
    parser.add_argument("--stdout-only", action="store_true")
    parser.add_argument("--sleep", type=float, default=0.0)
    args = parser.parse_args(argv)

    if args.sleep:
        time.sleep(args.sleep)
    if args.fail:
        sys.stderr.write(f"{args.fail}\n")
        return 1

    manifest = TaskManifest.load(Path(args.task_manifest))
    task_input = ClassifierTaskInput.load(Path(manifest.task_input_path))
    result = build_result(task_input.task_type, task_input.payload)

    if args.stdout_only:
        sys.stdout.write(f"Here is the result:\n```json\n{json.dumps(result)}\n```\n")
        return 0
    write_json(Path(manifest.output_result_path), result)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
