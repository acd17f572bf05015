"""Persistence of aggregate and chart documents."""

from __future__ import annotations

from pathlib import Path

from daycare_trends.aggregation import AggregateOutputs
from daycare_trends.storage.json_files import write_json


class AggregateWriter:
    """Writes every aggregate output, replacing the previous run's files."""

    def __init__(self, aggregates_dir: Path, viz_dir: Path) -> None:
        self.aggregates_dir = aggregates_dir
        self.viz_dir = viz_dir

    def write(self, outputs: AggregateOutputs) -> list[Path]:
        written: list[Path] = []
        for stem, payload in outputs.aggregate_documents().items():
            path = self.aggregates_dir / f"{stem}.json"
            write_json(path, payload)
            written.append(path)
        for stem, payload in outputs.viz_documents().items():
            path = self.viz_dir / f"{stem}.json"
            write_json(path, payload)
            written.append(path)
        return written
