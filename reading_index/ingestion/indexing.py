from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from whoosh import index
from whoosh.fields import ID, NUMERIC, STORED, TEXT, Schema
from whoosh.qparser import MultifieldParser

from .models import UpsertRecord
from .publisher import ContentPublisher, PublishError


class WhooshContentIndex(ContentPublisher):
    """
    File-system backed Whoosh index of reading content. Documents are keyed by
    the unique reading id, so `upsert` replaces any earlier copy of a reading.
    """

    def __init__(self, index_dir: Path):
        self.index_dir = Path(index_dir)
        self.index_dir.mkdir(parents=True, exist_ok=True)
        self.schema = Schema(
            id=ID(stored=True, unique=True),
            week=NUMERIC(stored=True, sortable=True),
            title=TEXT(stored=True),
            content=TEXT(stored=True),
            page_count=NUMERIC(stored=True),
            updated_at=STORED(),
        )
        if index.exists_in(self.index_dir):
            self.ix = index.open_dir(self.index_dir)
        else:
            self.ix = index.create_in(self.index_dir, self.schema)

    def upsert(self, record: UpsertRecord) -> None:
        try:
            writer = self.ix.writer()
            writer.update_document(
                id=record.id,
                week=record.week,
                title=record.title,
                content=record.content,
                page_count=record.page_count,
                updated_at=record.updated_at.isoformat(),
            )
            writer.commit()
        except Exception as exc:  # noqa: BLE001
            raise PublishError(f"whoosh index write failed: {exc}") from exc

    def delete(self, record_id: str) -> None:
        writer = self.ix.writer()
        writer.delete_by_term("id", record_id)
        writer.commit()

    def count(self) -> int:
        with self.ix.searcher() as searcher:
            return searcher.doc_count()

    def search(self, query_str: str, limit: int = 10) -> List[Dict]:
        """
        Return a list of plain dicts so callers are safe after the searcher closes.
        """
        qp = MultifieldParser(["title", "content"], schema=self.ix.schema)
        q = qp.parse(query_str)
        with self.ix.searcher() as searcher:
            results = searcher.search(q, limit=limit)
            hits = []
            for hit in results:
                fields = hit.fields()
                hits.append(
                    {
                        "id": fields.get("id"),
                        "week": fields.get("week"),
                        "title": fields.get("title"),
                        "page_count": fields.get("page_count"),
                        "highlight": hit.highlights("content"),
                    }
                )
            return hits
