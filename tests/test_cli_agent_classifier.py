from __future__ import annotations

import json
import sys
from pathlib import Path

import allure
import pytest

from daycare_trends.classifier import CliAgentClassifier, ResultStatus, build_classifier
from daycare_trends.classifier.anthropic_api import AnthropicClassifier
from daycare_trends.classifier.contracts import ClassifierTaskInput, TaskManifest
from daycare_trends.config import ClassifierSettings, Settings

pytestmark = [
    allure.epic("Classifier"),
    allure.feature("CLI Agent Backend"),
    pytest.mark.usefixtures("echo_agent"),
]

ECHO = f"{sys.executable} -m daycare_trends.classifier.echo_agent --task-manifest {{task_manifest}}"


def _classifier(tmp_path: Path, template: str = ECHO, **kwargs) -> CliAgentClassifier:
    return CliAgentClassifier(
        agent="claude",
        model="test-model",
        command_template=template,
        workdir_root=tmp_path / "work",
        **kwargs,
    )


def test_extract_friends_through_result_file(tmp_path: Path) -> None:
    classifier = _classifier(tmp_path)

    result = classifier.extract_friends("Pepper chased Max and Luna around the yard.")

    assert result.status is ResultStatus.OK
    assert result.names == ["Pepper", "Max", "Luna"]
    assert list((tmp_path / "work").iterdir()) == []


def test_categorize_through_result_file(tmp_path: Path) -> None:
    classifier = _classifier(tmp_path)

    result = classifier.categorize(["played with my favorite toy"], ["trick training"])

    assert result.status is ResultStatus.OK
    assert result.activities == [("played with my favorite toy", ["playtime"])]
    assert result.training == [("trick training", "fun_skills")]


def test_result_recovered_from_stdout(tmp_path: Path) -> None:
    classifier = _classifier(tmp_path, f"{ECHO} --stdout-only")

    result = classifier.extract_friends("Max says hi.")

    assert result.names == ["Max"]


def test_agent_failure_is_classified(tmp_path: Path) -> None:
    classifier = _classifier(tmp_path, f"{ECHO} --fail 'quota exceeded'")

    result = classifier.extract_friends("Max says hi.")

    assert result.status is ResultStatus.FAILED
    assert "billing_or_quota" in result.error
    assert "quota exceeded" in result.error


def test_agent_timeout_fails_the_call(tmp_path: Path) -> None:
    classifier = _classifier(tmp_path, f"{ECHO} --sleep 5", timeout_seconds=1)

    result = classifier.categorize(["caught bubbles"], [])

    assert result.status is ResultStatus.FAILED
    assert "timed out" in result.error


def test_missing_command_is_reported(tmp_path: Path) -> None:
    classifier = _classifier(tmp_path, "definitely-not-an-agent-binary {prompt_file}")

    result = classifier.extract_friends("Max says hi.")

    assert result.status is ResultStatus.FAILED
    assert "command not found" in result.error


def test_template_without_task_placeholder_fails(tmp_path: Path) -> None:
    classifier = _classifier(tmp_path, f"{sys.executable} --version")

    result = classifier.extract_friends("Max says hi.")

    assert result.status is ResultStatus.FAILED
    assert "must include" in result.error


def test_unwritable_workdir_fails_the_call(tmp_path: Path) -> None:
    (tmp_path / "work").write_text("not a directory", "utf-8")
    classifier = _classifier(tmp_path)

    result = classifier.extract_friends("Max says hi.")

    assert result.status is ResultStatus.FAILED
    assert "Could not prepare agent workdir" in result.error


def test_empty_inputs_skip_the_agent(tmp_path: Path) -> None:
    classifier = _classifier(tmp_path, "definitely-not-an-agent-binary {prompt}")

    assert classifier.extract_friends("  ").status is ResultStatus.EMPTY
    assert classifier.categorize([], []).status is ResultStatus.EMPTY
    assert not (tmp_path / "work").exists()


def test_keep_workdirs_leaves_task_contract(tmp_path: Path) -> None:
    classifier = _classifier(tmp_path, keep_workdirs=True, task_id_factory=lambda: "task-1")

    classifier.categorize([], ["spin"])

    base_dir = tmp_path / "work" / "task-1"
    manifest = TaskManifest.load(base_dir / "meta" / "task_manifest.json")
    task_input = ClassifierTaskInput.load(Path(manifest.task_input_path))
    assert task_input.payload == {"activities": [], "training": ["spin"]}
    assert task_input.metadata == {"agent": "claude", "model": "test-model"}
    assert json.loads((base_dir / "output" / "agent_result.json").read_text("utf-8")) == {
        "activities": [],
        "training": [{"category": "fun_skills", "item": "spin"}],
    }
    assert "task_manifest.json" in (base_dir / "input" / "task_prompt.txt").read_text("utf-8")


def test_build_classifier_selects_backend(tmp_path: Path) -> None:
    cli = build_classifier(Settings(data_dir=tmp_path))
    api = build_classifier(
        Settings(data_dir=tmp_path, classifier=ClassifierSettings(backend="anthropic")),
    )

    assert isinstance(cli, CliAgentClassifier)
    assert cli.model == "claude-haiku-4-5"
    assert isinstance(api, AnthropicClassifier)
