"""
Ingestion subsystem exports.
"""

from .catalog import READINGS, find_duplicate_ids, load_catalog, select_entries
from .config import ConfigurationError, IndexerConfig, build_publisher
from .engine import (
    DoclingExtractionEngine,
    ExtractionEngine,
    ExtractionError,
    PyMuPdfExtractionEngine,
    PypdfExtractionEngine,
    build_engine,
)
from .indexing import WhooshContentIndex
from .models import (
    EntryOutcome,
    EntryResult,
    ExtractionResult,
    IndexRunSummary,
    ReadingEntry,
    UpsertRecord,
)
from .publisher import (
    ContentPublisher,
    InMemoryContentPublisher,
    PublishError,
    SqlAlchemyContentPublisher,
    SupabaseContentPublisher,
)
from .worker import IndexingWorker, format_summary

__all__ = [
    "READINGS",
    "ConfigurationError",
    "ContentPublisher",
    "DoclingExtractionEngine",
    "EntryOutcome",
    "EntryResult",
    "ExtractionEngine",
    "ExtractionError",
    "ExtractionResult",
    "InMemoryContentPublisher",
    "IndexRunSummary",
    "IndexerConfig",
    "IndexingWorker",
    "PublishError",
    "PyMuPdfExtractionEngine",
    "PypdfExtractionEngine",
    "ReadingEntry",
    "SqlAlchemyContentPublisher",
    "SupabaseContentPublisher",
    "UpsertRecord",
    "WhooshContentIndex",
    "build_engine",
    "build_publisher",
    "find_duplicate_ids",
    "format_summary",
    "load_catalog",
    "select_entries",
]
