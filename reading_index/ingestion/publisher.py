from __future__ import annotations

from copy import deepcopy
from datetime import timezone
from pathlib import Path
from typing import Dict, List, Optional

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, select
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from supabase import Client, create_client

from .models import UpsertRecord


Base = declarative_base()

DEFAULT_TABLE = "reading_content"


class PublishError(RuntimeError):
    """
    Raised when the content store rejects an upsert or cannot be reached.
    """


class ReadingContentModel(Base):
    __tablename__ = DEFAULT_TABLE
    id = Column(String, primary_key=True)
    reading_id = Column(String, index=True)
    week_num = Column(Integer, index=True)
    title = Column(String)
    content = Column(Text)
    page_count = Column(Integer)
    updated_at = Column(DateTime(timezone=True))


class ContentPublisher:
    """
    Abstract content store boundary. `upsert` inserts or replaces one record
    keyed by `id`, so publishing the same reading twice never duplicates it.
    """

    def upsert(self, record: UpsertRecord) -> None:
        raise NotImplementedError


class InMemoryContentPublisher(ContentPublisher):
    """
    Dict-backed store for dry runs and tests. Keeps copies of the records to
    avoid cross-mutation between calls.
    """

    def __init__(self):
        self.records: Dict[str, UpsertRecord] = {}
        self.upsert_calls = 0

    def upsert(self, record: UpsertRecord) -> None:
        self.upsert_calls += 1
        self.records[record.id] = deepcopy(record)

    def get(self, record_id: str) -> Optional[UpsertRecord]:
        record = self.records.get(record_id)
        return deepcopy(record) if record else None


class SupabaseContentPublisher(ContentPublisher):
    """
    Upserts rows into a Supabase (PostgREST) table, resolving conflicts on `id`.

    Needs the service-role key; the anon key cannot write past row level security.
    """

    def __init__(self, url: str, service_key: str, table: str = DEFAULT_TABLE, client: Optional[Client] = None):
        self.table = table
        self.client = client if client is not None else create_client(url, service_key)

    def upsert(self, record: UpsertRecord) -> None:
        try:
            self.client.table(self.table).upsert(record.to_row(), on_conflict="id").execute()
        except Exception as exc:  # noqa: BLE001
            message = getattr(exc, "message", None) or str(exc)
            raise PublishError(message) from exc


class SqlAlchemyContentPublisher(ContentPublisher):
    """
    Local SQL mirror of the `reading_content` table. Works with SQLite/Postgres URLs.
    """

    def __init__(self, database_url: str):
        url = make_url(database_url)
        if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        self.engine = create_engine(database_url, future=True)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False, future=True)

    def _session(self) -> Session:
        return self.SessionLocal()

    def upsert(self, record: UpsertRecord) -> None:
        try:
            with self._session() as session:
                model = ReadingContentModel(
                    id=record.id,
                    reading_id=record.reading_id,
                    week_num=record.week,
                    title=record.title,
                    content=record.content,
                    page_count=record.page_count,
                    updated_at=record.updated_at,
                )
                session.merge(model)
                session.commit()
        except Exception as exc:  # noqa: BLE001
            raise PublishError(str(exc)) from exc

    def get(self, record_id: str) -> Optional[UpsertRecord]:
        with self._session() as session:
            model = session.get(ReadingContentModel, record_id)
            return self._to_record(model) if model else None

    def list_records(self) -> List[UpsertRecord]:
        with self._session() as session:
            stmt = select(ReadingContentModel).order_by(ReadingContentModel.week_num, ReadingContentModel.id)
            return [self._to_record(m) for m in session.execute(stmt).scalars().all()]

    def _to_record(self, model: ReadingContentModel) -> UpsertRecord:
        updated_at = model.updated_at
        # SQLite drops tzinfo on the way back.
        if updated_at is not None and updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)
        return UpsertRecord(
            id=model.id,
            reading_id=model.reading_id,
            week=model.week_num,
            title=model.title,
            content=model.content,
            page_count=model.page_count,
            updated_at=updated_at,
        )
