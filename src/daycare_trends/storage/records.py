"""Read-only access to scraped report cards, one JSON document per date."""

from __future__ import annotations

import logging
from pathlib import Path

from daycare_trends.models import SourceRecord
from daycare_trends.storage.json_files import is_iso_date, load_json

logger = logging.getLogger(__name__)


class RecordStore:
    """Source records laid out as ``<root>/<YYYY>/<YYYY-MM-DD>.json``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def path_for(self, date: str) -> Path:
        return self.root / date[:4] / f"{date}.json"

    def list_dates(self) -> list[str]:
        """Dates with a stored report card, ascending."""

        if not self.root.is_dir():
            return []
        dates = {
            path.stem
            for path in self.root.glob("*/*.json")
            if is_iso_date(path.stem) and path.parent.name == path.stem[:4]
        }
        return sorted(dates)

    def exists(self, date: str) -> bool:
        return self.path_for(date).is_file()

    def read(self, date: str) -> SourceRecord | None:
        """Load one record; None when absent, ``MalformedDocumentError`` when corrupt."""

        path = self.path_for(date)
        if not path.is_file():
            return None
        record = SourceRecord.from_payload(load_json(path), fallback_date=date)
        if record.date != date:
            logger.warning("%s declares date %r; using the file date", path.name, record.date)
            record.date = date
        return record
