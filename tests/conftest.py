"""Shared test fixtures."""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import pytest

from daycare_trends.classifier import CategorizationResult, FriendExtractionResult
from daycare_trends.knowledge_base import KnowledgeBase

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
ECHO_AGENT_COMMAND_TEMPLATE = (
    f"{sys.executable} -m daycare_trends.classifier.echo_agent --task-manifest {{task_manifest}}"
)


class RecordingClassifier:
    """Deterministic in-memory classifier that records every call."""

    def __init__(
        self,
        *,
        friends: dict[str, list[str]] | None = None,
        activity_answers: dict[str, list[str]] | None = None,
        training_answers: dict[str, str] | None = None,
        fail_friends: bool = False,
        fail_categorize: bool = False,
    ) -> None:
        self.friends = friends or {}
        self.activity_answers = activity_answers or {}
        self.training_answers = training_answers or {}
        self.fail_friends = fail_friends
        self.fail_categorize = fail_categorize
        self.friend_calls: list[str] = []
        self.categorize_calls: list[tuple[list[str], list[str]]] = []

    @property
    def total_calls(self) -> int:
        return len(self.friend_calls) + len(self.categorize_calls)

    def extract_friends(self, comment: str) -> FriendExtractionResult:
        self.friend_calls.append(comment)
        if self.fail_friends:
            return FriendExtractionResult.failed("network down")
        return FriendExtractionResult.found(list(self.friends.get(comment, [])))

    def categorize(self, activities: list[str], training: list[str]) -> CategorizationResult:
        self.categorize_calls.append((list(activities), list(training)))
        if self.fail_categorize:
            return CategorizationResult.failed("model overloaded")
        return CategorizationResult.resolved(
            activities=[
                (label, self.activity_answers[label])
                for label in activities
                if label in self.activity_answers
            ],
            training=[
                (label, self.training_answers[label])
                for label in training
                if label in self.training_answers
            ],
        )


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("DAYCARE_TRENDS_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def data_dir(tmp_path: Path) -> Path:
    root = tmp_path / "data"
    root.mkdir()
    return root


@pytest.fixture()
def write_report(data_dir: Path):
    """Write a scraped report card in the on-disk layout the record store reads."""

    def _write(date: str, **fields) -> Path:
        payload = {"date": date, **fields}
        path = data_dir / "reports" / date[:4] / f"{date}.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), "utf-8")
        return path

    return _write


@pytest.fixture()
def knowledge_base(data_dir: Path) -> KnowledgeBase:
    return KnowledgeBase.load(
        activity_path=data_dir / "mappings" / "learned-activity-mappings.json",
        training_path=data_dir / "mappings" / "learned-training-mappings.json",
    )


@pytest.fixture()
def make_classifier():
    return RecordingClassifier


@pytest.fixture()
def echo_agent(monkeypatch):
    """Route the default claude agent to the local echo agent."""

    search_path = [part for part in [str(SRC_DIR), *sys.path] if part]
    monkeypatch.setenv("PYTHONPATH", os.pathsep.join(dict.fromkeys(search_path)))
    monkeypatch.setenv("DAYCARE_TRENDS_CLAUDE_COMMAND_TEMPLATE", ECHO_AGENT_COMMAND_TEMPLATE)
    monkeypatch.setenv("DAYCARE_TRENDS_REQUEST_DELAY_SECONDS", "0")
    return ECHO_AGENT_COMMAND_TEMPLATE
