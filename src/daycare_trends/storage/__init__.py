"""File-backed stores for source records, daily analyses and aggregate outputs."""

from daycare_trends.storage.aggregates import AggregateWriter
from daycare_trends.storage.analyses import CorpusLoadResult, DailyAnalysisStore, SkippedDocument
from daycare_trends.storage.json_files import MalformedDocumentError, load_json, write_json
from daycare_trends.storage.records import RecordStore

__all__ = [
    "AggregateWriter",
    "CorpusLoadResult",
    "DailyAnalysisStore",
    "MalformedDocumentError",
    "RecordStore",
    "SkippedDocument",
    "load_json",
    "write_json",
]
