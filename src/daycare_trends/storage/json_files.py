"""Deterministic JSON document persistence."""

from __future__ import annotations

import json
import os
import re
from datetime import date
from pathlib import Path
from typing import Any

ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class MalformedDocumentError(ValueError):
    """Persisted document exists but cannot be parsed into the expected shape."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Malformed JSON document {path}: {reason}")
        self.path = path
        self.reason = reason


def write_json(path: Path, payload: dict[str, Any] | list[Any]) -> None:
    """Persist JSON payload using deterministic formatting.

    The document is written to a sibling temp file and moved into place, so
    a reader never observes a half-written file.
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n"
    tmp_path = path.with_name(f".{path.name}.tmp")
    tmp_path.write_text(text, "utf-8")
    os.replace(tmp_path, path)


def load_json(path: Path) -> dict[str, Any]:
    """Load JSON document and validate top-level object type."""

    try:
        payload = json.loads(path.read_text("utf-8"))
    except json.JSONDecodeError as error:
        raise MalformedDocumentError(path, f"invalid JSON ({error.msg})") from error
    except UnicodeDecodeError as error:
        raise MalformedDocumentError(path, "not UTF-8 text") from error
    if not isinstance(payload, dict):
        raise MalformedDocumentError(path, "expected a JSON object")
    return payload


def is_iso_date(value: str) -> bool:
    """Return True for ``YYYY-MM-DD`` strings naming a real calendar date."""

    if not ISO_DATE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True
