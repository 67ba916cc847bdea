from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Optional

from .engine import ExtractionEngine, ExtractionError
from .models import EntryOutcome, EntryResult, IndexRunSummary, ReadingEntry, UpsertRecord
from .publisher import ContentPublisher, PublishError

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IndexingWorker:
    """
    Drives catalog entries through locate -> extract -> upsert, one at a time.
    A failing entry is logged and counted, never fatal to the run.
    """

    def __init__(
        self,
        engine: ExtractionEngine,
        publisher: ContentPublisher,
        readings_dir: Path,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.engine = engine
        self.publisher = publisher
        self.readings_dir = Path(readings_dir)
        self.clock = clock or _utcnow

    def run(self, entries: Iterable[ReadingEntry]) -> IndexRunSummary:
        logger.info("Starting PDF indexing from %s", self.readings_dir)
        summary = IndexRunSummary()
        success_count = 0
        error_count = 0

        for entry in entries:
            result = self.process_entry(entry)
            summary.results.append(result)
            if result.ok:
                success_count += 1
            else:
                error_count += 1

        summary.success_count = success_count
        summary.error_count = error_count
        return summary

    def process_entry(self, entry: ReadingEntry) -> EntryResult:
        pdf_path = self.readings_dir / entry.file
        if not pdf_path.is_file():
            logger.warning("File not found: %s", entry.file)
            return EntryResult(entry=entry, outcome=EntryOutcome.MISSING_FILE, error_message=f"file not found: {entry.file}")

        logger.info("Processing: %s...", entry.title)
        try:
            extracted = self.engine.extract(pdf_path)
        except ExtractionError as exc:
            return EntryResult(entry=entry, outcome=EntryOutcome.EXTRACTION_FAILED, error_message=str(exc))

        record = UpsertRecord.from_extraction(entry, extracted, updated_at=self.clock())
        try:
            self.publisher.upsert(record)
        except PublishError as exc:
            logger.error("Error uploading %s: %s", entry.id, exc)
            return EntryResult(
                entry=entry,
                outcome=EntryOutcome.UPSERT_FAILED,
                page_count=extracted.page_count,
                char_count=len(record.content),
                error_message=str(exc),
            )

        logger.info("Indexed %s (%d pages, %d chars)", entry.id, extracted.page_count, len(record.content))
        return EntryResult(
            entry=entry,
            outcome=EntryOutcome.INDEXED,
            page_count=extracted.page_count,
            char_count=len(record.content),
        )


def format_summary(summary: IndexRunSummary) -> str:
    rule = "=" * 40
    lines = [
        rule,
        "Indexing complete!",
        f"  Success: {summary.success_count}",
        f"  Errors: {summary.error_count}",
    ]
    for failure in summary.failures():
        lines.append(f"    - {failure.entry.id} [{failure.outcome.value}] {failure.error_message or ''}".rstrip())
    lines.append(rule)
    return "\n".join(lines)
