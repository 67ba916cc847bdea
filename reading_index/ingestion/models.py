from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def _clean_text(text: str) -> str:
    # Postgres text columns reject NUL bytes; lone surrogates from broken
    # ToUnicode maps cannot be encoded as UTF-8.
    return text.replace("\x00", "").encode("utf-8", "replace").decode("utf-8")


class EntryOutcome(str, Enum):
    INDEXED = "indexed"
    MISSING_FILE = "missing_file"
    EXTRACTION_FAILED = "extraction_failed"
    UPSERT_FAILED = "upsert_failed"


@dataclass(frozen=True)
class ReadingEntry:
    id: str
    week: int
    title: str
    file: str


@dataclass
class ExtractionResult:
    text: str
    page_count: int


@dataclass
class UpsertRecord:
    id: str
    reading_id: str
    week: int
    title: str
    content: str
    page_count: int
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_extraction(
        cls,
        entry: ReadingEntry,
        extracted: ExtractionResult,
        updated_at: Optional[datetime] = None,
    ) -> "UpsertRecord":
        return cls(
            id=entry.id,
            reading_id=entry.id,
            week=entry.week,
            title=entry.title,
            content=_clean_text(extracted.text),
            page_count=extracted.page_count,
            updated_at=updated_at or datetime.now(timezone.utc),
        )

    def to_row(self) -> Dict[str, Any]:
        """
        Column layout of the `reading_content` table.
        """
        return {
            "id": self.id,
            "reading_id": self.reading_id,
            "week_num": self.week,
            "title": self.title,
            "content": self.content,
            "page_count": self.page_count,
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass
class EntryResult:
    entry: ReadingEntry
    outcome: EntryOutcome
    page_count: Optional[int] = None
    char_count: Optional[int] = None
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == EntryOutcome.INDEXED


@dataclass
class IndexRunSummary:
    success_count: int = 0
    error_count: int = 0
    results: List[EntryResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    def failures(self) -> List[EntryResult]:
        return [r for r in self.results if not r.ok]
