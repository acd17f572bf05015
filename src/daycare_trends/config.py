"""Runtime configuration for the report-card analysis pipeline."""

from __future__ import annotations

import os
import string
from dataclasses import dataclass, field
from pathlib import Path

SUPPORTED_BACKENDS = ("cli", "anthropic")
SUPPORTED_AGENTS = ("claude", "codex", "gemini")
COMMAND_TEMPLATE_PLACEHOLDERS = frozenset({"model", "prompt", "prompt_file", "task_manifest"})
TASK_PLACEHOLDERS = frozenset({"prompt", "prompt_file", "task_manifest"})

_DEFAULT_CLAUDE_COMMAND_TEMPLATE = (
    'claude -p --model {model} --permission-mode dontAsk --allowed-tools "Read,Write" -- {prompt}'
)
_DEFAULT_CODEX_COMMAND_TEMPLATE = "codex exec --sandbox workspace-write --model {model} {prompt}"
_DEFAULT_GEMINI_COMMAND_TEMPLATE = (
    "gemini --model {model} --approval-mode auto_edit --prompt {prompt}"
)


@dataclass(slots=True)
class ClassifierSettings:
    """Friend extraction and categorization backend settings."""

    backend: str = "cli"
    agent: str = "claude"
    claude_command_template: str = _DEFAULT_CLAUDE_COMMAND_TEMPLATE
    codex_command_template: str = _DEFAULT_CODEX_COMMAND_TEMPLATE
    gemini_command_template: str = _DEFAULT_GEMINI_COMMAND_TEMPLATE
    claude_model: str = "claude-haiku-4-5"
    codex_model: str = "gpt-5-mini"
    gemini_model: str = "gemini-2.5-flash"
    timeout_seconds: int = 300
    workdir: Path | None = None
    keep_workdirs: bool = False
    anthropic_model: str = "claude-haiku-4-5"
    anthropic_max_tokens: int = 500

    def command_template_for(self, agent: str) -> str:
        return {
            "claude": self.claude_command_template,
            "codex": self.codex_command_template,
            "gemini": self.gemini_command_template,
        }[agent]

    def model_for(self, agent: str) -> str:
        return {
            "claude": self.claude_model,
            "codex": self.codex_model,
            "gemini": self.gemini_model,
        }[agent]


@dataclass(slots=True)
class PipelineSettings:
    """Orchestration pacing settings."""

    request_delay_seconds: float = 0.1


@dataclass(slots=True, frozen=True)
class DataLayout:
    """Every on-disk location derived from the data root."""

    data_dir: Path

    @property
    def reports_dir(self) -> Path:
        return self.data_dir / "reports"

    @property
    def daily_dir(self) -> Path:
        return self.data_dir / "analysis" / "daily"

    @property
    def aggregates_dir(self) -> Path:
        return self.data_dir / "analysis" / "aggregates"

    @property
    def viz_dir(self) -> Path:
        return self.data_dir / "viz"

    @property
    def mappings_dir(self) -> Path:
        return self.data_dir / "mappings"

    @property
    def activity_mappings_path(self) -> Path:
        return self.mappings_dir / "learned-activity-mappings.json"

    @property
    def training_mappings_path(self) -> Path:
        return self.mappings_dir / "learned-training-mappings.json"

    @property
    def classifier_workdir(self) -> Path:
        return self.data_dir / ".classifier"


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    data_dir: Path = Path("data")
    subject_name: str = "Pepper"
    classifier: ClassifierSettings = field(default_factory=ClassifierSettings)
    pipeline: PipelineSettings = field(default_factory=PipelineSettings)

    @property
    def layout(self) -> DataLayout:
        return DataLayout(self.data_dir)

    @property
    def classifier_workdir(self) -> Path:
        return self.classifier.workdir or self.layout.classifier_workdir

    @classmethod
    def from_env(cls, data_dir: Path | None = None) -> Settings:
        """Load settings from environment with defaults for local runs."""

        workdir_raw = os.getenv("DAYCARE_TRENDS_CLASSIFIER_WORKDIR", "").strip()
        return cls(
            data_dir=data_dir or Path(os.getenv("DAYCARE_TRENDS_DATA_DIR", "data")),
            subject_name=os.getenv("DAYCARE_TRENDS_SUBJECT_NAME", "Pepper"),
            classifier=ClassifierSettings(
                backend=os.getenv("DAYCARE_TRENDS_CLASSIFIER_BACKEND", "cli").strip().lower(),
                agent=os.getenv("DAYCARE_TRENDS_CLASSIFIER_AGENT", "claude").strip().lower(),
                claude_command_template=os.getenv(
                    "DAYCARE_TRENDS_CLAUDE_COMMAND_TEMPLATE",
                    _DEFAULT_CLAUDE_COMMAND_TEMPLATE,
                ),
                codex_command_template=os.getenv(
                    "DAYCARE_TRENDS_CODEX_COMMAND_TEMPLATE",
                    _DEFAULT_CODEX_COMMAND_TEMPLATE,
                ),
                gemini_command_template=os.getenv(
                    "DAYCARE_TRENDS_GEMINI_COMMAND_TEMPLATE",
                    _DEFAULT_GEMINI_COMMAND_TEMPLATE,
                ),
                claude_model=os.getenv("DAYCARE_TRENDS_CLAUDE_MODEL", "claude-haiku-4-5"),
                codex_model=os.getenv("DAYCARE_TRENDS_CODEX_MODEL", "gpt-5-mini"),
                gemini_model=os.getenv("DAYCARE_TRENDS_GEMINI_MODEL", "gemini-2.5-flash"),
                timeout_seconds=_env_int("DAYCARE_TRENDS_CLASSIFIER_TIMEOUT_SECONDS", 300),
                workdir=Path(workdir_raw) if workdir_raw else None,
                keep_workdirs=_env_bool("DAYCARE_TRENDS_CLASSIFIER_KEEP_WORKDIRS", default=False),
                anthropic_model=os.getenv("DAYCARE_TRENDS_ANTHROPIC_MODEL", "claude-haiku-4-5"),
                anthropic_max_tokens=_env_int("DAYCARE_TRENDS_ANTHROPIC_MAX_TOKENS", 500),
            ),
            pipeline=PipelineSettings(
                request_delay_seconds=_env_float("DAYCARE_TRENDS_REQUEST_DELAY_SECONDS", 0.1),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error for values the pipeline cannot run with."""

        if not self.subject_name.strip():
            raise ValueError("DAYCARE_TRENDS_SUBJECT_NAME must be a non-empty string.")
        if self.pipeline.request_delay_seconds < 0:
            raise ValueError("DAYCARE_TRENDS_REQUEST_DELAY_SECONDS must be >= 0.")
        classifier = self.classifier
        if classifier.backend not in SUPPORTED_BACKENDS:
            raise ValueError(
                f"Unsupported classifier backend {classifier.backend!r}; "
                f"expected one of: {', '.join(SUPPORTED_BACKENDS)}",
            )
        if classifier.agent not in SUPPORTED_AGENTS:
            raise ValueError(
                f"Unsupported classifier agent {classifier.agent!r}; "
                f"expected one of: {', '.join(SUPPORTED_AGENTS)}",
            )
        if classifier.timeout_seconds <= 0:
            raise ValueError("DAYCARE_TRENDS_CLASSIFIER_TIMEOUT_SECONDS must be > 0.")
        if classifier.anthropic_max_tokens <= 0:
            raise ValueError("DAYCARE_TRENDS_ANTHROPIC_MAX_TOKENS must be > 0.")
        if classifier.backend == "cli":
            _validate_command_template(
                classifier.agent,
                classifier.command_template_for(classifier.agent),
            )
            if not classifier.model_for(classifier.agent).strip():
                raise ValueError(f"Empty model id for agent={classifier.agent!r}")


def _validate_command_template(agent: str, template: str) -> None:
    try:
        fields = {
            field_name
            for _, field_name, _, _ in string.Formatter().parse(template)
            if field_name is not None
        }
    except ValueError as error:
        raise ValueError(f"Invalid command template for agent={agent!r}: {error}") from error
    unsupported = sorted(fields - COMMAND_TEMPLATE_PLACEHOLDERS)
    if unsupported:
        raise ValueError(
            f"Command template for agent={agent!r} uses unsupported placeholder "
            f"{{{unsupported[0]}}}",
        )
    if not fields & TASK_PLACEHOLDERS:
        raise ValueError(
            f"Command template for agent={agent!r} must include one of "
            "{prompt}, {prompt_file} or {task_manifest}",
        )


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {value!r}") from error


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as error:
        raise ValueError(f"Invalid number value for {name}: {value!r}") from error


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
