"""Per-call scratch directories for CLI agent tasks."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

from daycare_trends.classifier.contracts import ClassifierTaskInput, TaskManifest


@dataclass(slots=True)
class PreparedTask:
    """A task whose input and manifest are on disk, ready for the agent."""

    manifest_path: Path
    manifest: TaskManifest

    @property
    def base_dir(self) -> Path:
        return Path(self.manifest.workdir)

    @property
    def prompt_path(self) -> Path:
        return self.base_dir / "input" / "task_prompt.txt"

    @property
    def result_path(self) -> Path:
        return Path(self.manifest.output_result_path)

    @property
    def stdout_path(self) -> Path:
        return Path(self.manifest.output_stdout_path)

    @property
    def stderr_path(self) -> Path:
        return Path(self.manifest.output_stderr_path)


class TaskWorkspace:
    """Lays out ``<root>/<task_id>/{input,output,meta}`` for each classifier call."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def prepare(
        self,
        task_id: str,
        task_input: ClassifierTaskInput,
        *,
        schema_hint: str | None = None,
    ) -> PreparedTask:
        task_dir = self.root / task_id
        for name in ("input", "output", "meta"):
            (task_dir / name).mkdir(parents=True, exist_ok=True)

        input_path = task_dir / "input" / "task_input.json"
        task_input.save(input_path)
        outputs = task_dir / "output"
        manifest = TaskManifest(
            task_id=task_id,
            task_type=task_input.task_type,
            workdir=str(task_dir),
            task_input_path=str(input_path),
            output_result_path=str(outputs / "agent_result.json"),
            output_stdout_path=str(outputs / "agent_stdout.log"),
            output_stderr_path=str(outputs / "agent_stderr.log"),
            output_schema_hint=schema_hint,
        )
        manifest_path = task_dir / "meta" / "task_manifest.json"
        manifest.save(manifest_path)
        return PreparedTask(manifest_path=manifest_path, manifest=manifest)

    def cleanup(self, task: PreparedTask) -> None:
        shutil.rmtree(task.base_dir, ignore_errors=True)
