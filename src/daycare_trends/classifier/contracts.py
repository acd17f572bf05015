"""JSON files exchanged with an external CLI agent for one classifier call."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from daycare_trends.storage.json_files import load_json, write_json

CONTRACT_VERSION = 1

_MANIFEST_TEXT_FIELDS = (
    "task_id",
    "task_type",
    "workdir",
    "task_input_path",
    "output_result_path",
    "output_stdout_path",
    "output_stderr_path",
)


@dataclass(slots=True)
class ClassifierTaskInput:
    """The prompt plus the comment or labels it is about."""

    task_type: str
    prompt: str
    payload: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    def save(self, path: Path) -> None:
        write_json(path, asdict(self))

    @classmethod
    def load(cls, path: Path) -> ClassifierTaskInput:
        raw = load_json(path)
        task_type = raw.get("task_type")
        prompt = raw.get("prompt")
        payload = raw.get("payload") or {}
        metadata = raw.get("metadata") or {}
        if not isinstance(task_type, str) or not task_type.strip():
            raise ValueError(f"{path.name}: task_type must be a non-empty string")
        if not isinstance(prompt, str):
            raise ValueError(f"{path.name}: prompt must be a string")
        if not isinstance(payload, dict) or not isinstance(metadata, dict):
            raise ValueError(f"{path.name}: payload and metadata must be JSON objects")
        return cls(task_type=task_type, prompt=prompt, payload=payload, metadata=metadata)


@dataclass(slots=True)
class TaskManifest:
    """Where the agent finds its input and where it must leave its output."""

    task_id: str
    task_type: str
    workdir: str
    task_input_path: str
    output_result_path: str
    output_stdout_path: str
    output_stderr_path: str
    output_schema_hint: str | None = None
    contract_version: int = CONTRACT_VERSION

    def save(self, path: Path) -> None:
        write_json(path, asdict(self))

    @classmethod
    def load(cls, path: Path) -> TaskManifest:
        raw = load_json(path)
        absent = [name for name in _MANIFEST_TEXT_FIELDS if not isinstance(raw.get(name), str)]
        if absent:
            raise ValueError(f"{path.name} lacks {', '.join(absent)}")
        version = raw.get("contract_version", CONTRACT_VERSION)
        if version != CONTRACT_VERSION:
            raise ValueError(f"{path.name}: unsupported contract_version {version!r}")
        hint = raw.get("output_schema_hint")
        return cls(
            **{name: raw[name] for name in _MANIFEST_TEXT_FIELDS},
            output_schema_hint=hint if isinstance(hint, str) else None,
            contract_version=version,
        )
