"""Subprocess-based classifier that delegates to a CLI agent through task files."""

from __future__ import annotations

import json
import logging
import os
import shlex
import subprocess
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any

from daycare_trends.classifier.base import (
    CategorizationResult,
    ClassifierRunError,
    FriendExtractionResult,
)
from daycare_trends.classifier.contracts import ClassifierTaskInput
from daycare_trends.classifier.failure_classifier import FailureClass, classify_agent_failure
from daycare_trends.classifier.parsing import (
    parse_categorization_payload,
    parse_friend_payload,
    recover_json_payload,
)
from daycare_trends.classifier.prompts import (
    CATEGORIZATION_PROMPT,
    CATEGORIZATION_TASK,
    FRIEND_EXTRACTION_PROMPT,
    FRIEND_EXTRACTION_TASK,
    SCHEMAS_BY_TASK_TYPE,
)
from daycare_trends.classifier.workdir import PreparedTask, TaskWorkspace
from daycare_trends.config import TASK_PLACEHOLDERS
from daycare_trends.storage.json_files import MalformedDocumentError, load_json

logger = logging.getLogger(__name__)

_GRACE_SECONDS = 2


@dataclass(slots=True)
class AgentRunResult:
    exit_code: int
    timed_out: bool


class CliAgentClassifier:
    """Run each classifier call as a file-contract task for an external CLI agent."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        agent: str,
        model: str,
        command_template: str,
        workdir_root: Path,
        timeout_seconds: int = 300,
        keep_workdirs: bool = False,
        task_id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.agent = agent
        self.model = model
        self.command_template = command_template
        self.timeout_seconds = timeout_seconds
        self.keep_workdirs = keep_workdirs
        self._workspace = TaskWorkspace(workdir_root)
        self._task_id_factory = task_id_factory or (lambda: uuid.uuid4().hex)

    def extract_friends(self, comment: str) -> FriendExtractionResult:
        if not comment.strip():
            return FriendExtractionResult.found([])
        try:
            payload = self._run_task(
                task_type=FRIEND_EXTRACTION_TASK,
                prompt=FRIEND_EXTRACTION_PROMPT.format(comment=comment),
                payload={"comment": comment},
            )
        except ClassifierRunError as error:
            logger.warning("Friend extraction via %s failed: %s", self.agent, error)
            return FriendExtractionResult.failed(str(error))

        names = parse_friend_payload(payload)
        if names is None:
            return FriendExtractionResult.failed("agent result has no 'friends' list")
        return FriendExtractionResult.found(names)

    def categorize(self, activities: list[str], training: list[str]) -> CategorizationResult:
        if not activities and not training:
            return CategorizationResult.resolved(activities=[], training=[])
        try:
            payload = self._run_task(
                task_type=CATEGORIZATION_TASK,
                prompt=CATEGORIZATION_PROMPT.format(
                    activities=json.dumps(activities),
                    training=json.dumps(training),
                ),
                payload={"activities": list(activities), "training": list(training)},
            )
        except ClassifierRunError as error:
            logger.warning("Categorization via %s failed: %s", self.agent, error)
            return CategorizationResult.failed(str(error))

        parsed = parse_categorization_payload(payload, activities=activities, training=training)
        if parsed is None:
            return CategorizationResult.failed(
                "agent result has neither 'activities' nor 'training' list",
            )
        resolved_activities, resolved_training = parsed
        return CategorizationResult.resolved(
            activities=resolved_activities,
            training=resolved_training,
        )

    def _run_task(
        self,
        *,
        task_type: str,
        prompt: str,
        payload: dict[str, Any],
    ) -> dict[str, object]:
        try:
            task = self._workspace.prepare(
                self._task_id_factory(),
                ClassifierTaskInput(
                    task_type=task_type,
                    prompt=prompt,
                    payload=payload,
                    metadata={"agent": self.agent, "model": self.model},
                ),
                schema_hint=SCHEMAS_BY_TASK_TYPE.get(task_type),
            )
            agent_prompt = _agent_prompt(prompt, task)
            task.prompt_path.write_text(agent_prompt, "utf-8")
        except OSError as error:
            raise ClassifierRunError(
                f"Could not prepare agent workdir: {error}",
                transient=False,
                reason_code=f"{self.agent}_workdir_failed",
            ) from error
        try:
            outcome = self._execute(task, agent_prompt)
            return self._read_result(task, outcome)
        finally:
            if not self.keep_workdirs:
                self._workspace.cleanup(task)

    def _execute(self, task: PreparedTask, agent_prompt: str) -> AgentRunResult:
        argv = _render_command(
            self.command_template,
            model=self.model,
            prompt=agent_prompt,
            prompt_file=task.prompt_path,
            manifest_path=task.manifest_path,
        )
        env = {
            **os.environ,
            "DAYCARE_TRENDS_CLASSIFIER_AGENT": self.agent,
            "DAYCARE_TRENDS_CLASSIFIER_MODEL": self.model,
        }

        logger.debug("Starting %s for task %s: %s", self.agent, task.manifest.task_id, argv[0])
        try:
            with (
                task.stdout_path.open("w", encoding="utf-8") as stdout,
                task.stderr_path.open("w", encoding="utf-8") as stderr,
            ):
                return _wait_for_agent(argv, env, stdout, stderr, self.timeout_seconds)
        except FileNotFoundError as error:
            raise ClassifierRunError(
                f"CLI agent command not found: {argv[0]}",
                transient=False,
                reason_code=f"{self.agent}_command_not_found",
            ) from error
        except OSError as error:
            raise ClassifierRunError(
                f"CLI agent failed to start: {error}",
                transient=True,
                reason_code=f"{self.agent}_start_failed",
            ) from error

    def _read_result(self, task: PreparedTask, outcome: AgentRunResult) -> dict[str, object]:
        stdout_text = _read_text(task.stdout_path)
        if outcome.timed_out:
            raise ClassifierRunError(
                f"CLI agent timed out after {self.timeout_seconds}s",
                transient=True,
                reason_code=f"{self.agent}_{FailureClass.TIMEOUT.value}",
            )
        if outcome.exit_code != 0:
            stderr_text = _read_text(task.stderr_path)
            classification = classify_agent_failure(
                agent=self.agent,
                exit_code=outcome.exit_code,
                stdout=stdout_text,
                stderr=stderr_text,
            )
            detail = stderr_text.strip().splitlines()[-1] if stderr_text.strip() else ""
            raise ClassifierRunError(
                f"CLI agent exited with code {outcome.exit_code} "
                f"({classification.failure_class.value}){': ' + detail if detail else ''}",
                transient=classification.transient,
                reason_code=classification.reason_code,
            )

        if task.result_path.exists():
            try:
                return load_json(task.result_path)
            except MalformedDocumentError as error:
                raise ClassifierRunError(
                    f"CLI agent wrote an invalid result file: {error.reason}",
                    transient=False,
                    reason_code=f"{self.agent}_{FailureClass.OUTPUT_INVALID.value}",
                ) from error

        recovered = recover_json_payload(stdout_text)
        if recovered is None:
            raise ClassifierRunError(
                "CLI agent produced no result file and no JSON on stdout",
                transient=False,
                reason_code=f"{self.agent}_{FailureClass.OUTPUT_INVALID.value}",
            )
        logger.debug("Recovered %s result from stdout", task.manifest.task_type)
        return recovered


def _agent_prompt(prompt: str, task: PreparedTask) -> str:
    """Append file locations and the expected result shape to a classifier prompt."""

    schema = task.manifest.output_schema_hint or "{}"
    return (
        f"{prompt}\n\n"
        f"The task manifest for this request is {task.manifest_path}.\n"
        "Open it to find task_input_path (the data to classify) and "
        "output_result_path (where your answer goes).\n"
        f"Write your answer to output_result_path as JSON matching:\n{schema}\n\n"
        "Use no web access and create no other files.\n"
    )


def _render_command(
    template: str,
    *,
    model: str,
    prompt: str,
    prompt_file: Path,
    manifest_path: Path,
) -> list[str]:
    template = template.strip()
    if not template:
        raise ClassifierRunError("CLI agent command template is empty.", transient=False)
    if not any(f"{{{name}}}" in template for name in TASK_PLACEHOLDERS):
        raise ClassifierRunError(
            "CLI agent command template must include {prompt}, {prompt_file} or {task_manifest}.",
            transient=False,
        )
    values = {
        "model": model,
        "prompt": prompt,
        "prompt_file": str(prompt_file),
        "task_manifest": str(manifest_path),
    }
    try:
        argv = shlex.split(
            template.format(**{key: shlex.quote(value) for key, value in values.items()}),
        )
    except KeyError as error:
        raise ClassifierRunError(
            f"Unsupported command template placeholder: {error}",
            transient=False,
        ) from error
    if not argv:
        raise ClassifierRunError("CLI agent command rendered to nothing.", transient=False)
    return argv


def _wait_for_agent(
    argv: list[str],
    env: dict[str, str],
    stdout: IO[str],
    stderr: IO[str],
    timeout_seconds: int,
) -> AgentRunResult:
    with subprocess.Popen(  # noqa: S603
        argv,
        env=env,
        stdout=stdout,
        stderr=stderr,
        text=True,
    ) as process:
        try:
            return AgentRunResult(exit_code=process.wait(timeout=timeout_seconds), timed_out=False)
        except subprocess.TimeoutExpired:
            process.terminate()
            try:
                process.wait(timeout=_GRACE_SECONDS)
            except subprocess.TimeoutExpired:
                process.kill()
            return AgentRunResult(exit_code=124, timed_out=True)


def _read_text(path: Path) -> str:
    return path.read_text("utf-8", errors="replace") if path.exists() else ""
