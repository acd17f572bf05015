"""Write-once store of daily analysis documents keyed by date."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from daycare_trends.models import DailyAnalysis
from daycare_trends.storage.json_files import (
    MalformedDocumentError,
    is_iso_date,
    load_json,
    write_json,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SkippedDocument:
    """Corpus file excluded from aggregation."""

    path: Path
    reason: str


@dataclass(slots=True)
class CorpusLoadResult:
    """Daily analyses sorted by date plus the files that could not be read."""

    analyses: list[DailyAnalysis] = field(default_factory=list)
    skipped: list[SkippedDocument] = field(default_factory=list)


class DailyAnalysisStore:
    """Daily analyses stored as ``<root>/<YYYY-MM-DD>.json``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def path_for(self, date: str) -> Path:
        return self.root / f"{date}.json"

    def exists(self, date: str) -> bool:
        return self.path_for(date).is_file()

    def list_dates(self) -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(path.stem for path in self.root.glob("*.json") if is_iso_date(path.stem))

    def save(self, analysis: DailyAnalysis) -> Path:
        path = self.path_for(analysis.date)
        write_json(path, analysis.to_payload())
        return path

    def load(self, date: str) -> DailyAnalysis | None:
        path = self.path_for(date)
        if not path.is_file():
            return None
        return _parse(path)

    def load_all(self) -> CorpusLoadResult:
        """Read the whole corpus; malformed files are reported and excluded."""

        result = CorpusLoadResult()
        for date in self.list_dates():
            path = self.path_for(date)
            try:
                result.analyses.append(_parse(path))
            except MalformedDocumentError as error:
                logger.warning("Skipping daily analysis %s: %s", path.name, error.reason)
                result.skipped.append(SkippedDocument(path=path, reason=error.reason))
        result.analyses.sort(key=lambda analysis: analysis.date)
        return result


def _parse(path: Path) -> DailyAnalysis:
    raw = load_json(path)
    try:
        analysis = DailyAnalysis.from_payload(raw)
    except ValueError as error:
        raise MalformedDocumentError(path, str(error)) from error
    if not is_iso_date(analysis.date):
        raise MalformedDocumentError(path, f"invalid date {analysis.date!r}")
    return analysis
