from datetime import datetime, timezone

import pytest

from reading_index.ingestion import (
    EntryOutcome,
    ExtractionEngine,
    ExtractionError,
    ExtractionResult,
    InMemoryContentPublisher,
    IndexingWorker,
    PublishError,
    PypdfExtractionEngine,
    ReadingEntry,
    SqlAlchemyContentPublisher,
    SupabaseContentPublisher,
    UpsertRecord,
    WhooshContentIndex,
    format_summary,
)

FIXED_NOW = datetime(2026, 1, 12, 9, 30, tzinfo=timezone.utc)


class StubEngine(ExtractionEngine):
    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls = []

    def extract(self, pdf_path):
        self.calls.append(pdf_path.name)
        if pdf_path.name in self.failing:
            raise ExtractionError(f"cannot decode {pdf_path}")
        return ExtractionResult(text=f"text of {pdf_path.stem}", page_count=3)


class FlakyPublisher(InMemoryContentPublisher):
    def __init__(self, failing_ids=()):
        super().__init__()
        self.failing_ids = set(failing_ids)

    def upsert(self, record):
        if record.id in self.failing_ids:
            self.upsert_calls += 1
            raise PublishError('new row violates row-level security policy for table "reading_content"')
        super().upsert(record)


def _entries(n):
    return [ReadingEntry(f"w01_r{i}", 1, f"Reading {i}", f"Week 1/r{i}.pdf") for i in range(1, n + 1)]


def _touch_all(readings_dir, entries):
    for entry in entries:
        path = readings_dir / entry.file
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"%PDF-stub")


def test_all_entries_indexed(tmp_path):
    entries = _entries(3)
    _touch_all(tmp_path, entries)
    publisher = InMemoryContentPublisher()
    worker = IndexingWorker(StubEngine(), publisher, tmp_path, clock=lambda: FIXED_NOW)

    summary = worker.run(entries)

    assert summary.success_count == 3 and summary.error_count == 0
    assert summary.success_count + summary.error_count == len(entries) == summary.total
    stored = publisher.get("w01_r2")
    assert stored and stored.content == "text of r2" and stored.page_count == 3
    assert stored.reading_id == "w01_r2" and stored.updated_at == FIXED_NOW


def test_missing_file_skips_extraction_and_upsert(tmp_path):
    entries = _entries(3)
    _touch_all(tmp_path, [entries[0], entries[2]])
    engine = StubEngine()
    publisher = InMemoryContentPublisher()
    worker = IndexingWorker(engine, publisher, tmp_path)

    summary = worker.run(entries)

    assert summary.success_count == 2
    assert summary.error_count == 1
    assert publisher.upsert_calls == 2
    assert set(publisher.records) == {"w01_r1", "w01_r3"}
    assert engine.calls == ["r1.pdf", "r3.pdf"]
    assert summary.results[1].outcome == EntryOutcome.MISSING_FILE


def test_extraction_failure_skips_upsert(tmp_path):
    entries = _entries(2)
    _touch_all(tmp_path, entries)
    publisher = InMemoryContentPublisher()
    worker = IndexingWorker(StubEngine(failing={"r1.pdf"}), publisher, tmp_path)

    summary = worker.run(entries)

    assert summary.success_count == 1 and summary.error_count == 1
    assert publisher.upsert_calls == 1
    assert "w01_r1" not in publisher.records
    assert summary.results[0].outcome == EntryOutcome.EXTRACTION_FAILED


def test_upsert_failure_is_counted_and_run_continues(tmp_path, caplog):
    entries = _entries(3)
    _touch_all(tmp_path, entries)
    publisher = FlakyPublisher(failing_ids={"w01_r2"})
    worker = IndexingWorker(StubEngine(), publisher, tmp_path)

    summary = worker.run(entries)

    assert summary.success_count == 2 and summary.error_count == 1
    assert publisher.upsert_calls == 3
    failed = summary.failures()
    assert len(failed) == 1 and failed[0].outcome == EntryOutcome.UPSERT_FAILED
    assert "row-level security" in failed[0].error_message
    assert "row-level security" in caplog.text


def test_rerun_does_not_duplicate_records(tmp_path):
    entries = _entries(3)
    _touch_all(tmp_path, entries)
    publisher = InMemoryContentPublisher()
    worker = IndexingWorker(StubEngine(), publisher, tmp_path)

    worker.run(entries)
    worker.run(entries)

    assert publisher.upsert_calls == 6
    assert len(publisher.records) == 3


def test_real_pdfs_through_sqlalchemy_store(tmp_path, make_pdf):
    readings = tmp_path / "readings"
    entries = [
        ReadingEntry("w04_nagarjuna", 4, "Nāgārjuna, Mūlamadhyamakakārikā", "Week 4_Nagarjuna/Week 4_Nagarjuna.pdf"),
        ReadingEntry("w04_garfield", 4, "Garfield, Commentary", "Week 4_Nagarjuna/Week 4_Garfield (Commentary).pdf"),
    ]
    make_pdf(readings / entries[0].file, ["Homage to the Buddha", "Dependent arising"])
    make_pdf(readings / entries[1].file, ["Emptiness of emptiness"])
    publisher = SqlAlchemyContentPublisher(f"sqlite+pysqlite:///{tmp_path / 'db' / 'index.db'}")
    worker = IndexingWorker(PypdfExtractionEngine(), publisher, readings, clock=lambda: FIXED_NOW)

    first = worker.run(entries)
    second = worker.run(entries)

    assert first.success_count == 2 and second.success_count == 2
    records = publisher.list_records()
    assert [r.id for r in records] == ["w04_garfield", "w04_nagarjuna"]
    nagarjuna = publisher.get("w04_nagarjuna")
    assert nagarjuna.page_count == 2
    assert "Dependent arising" in nagarjuna.content
    assert nagarjuna.title == "Nāgārjuna, Mūlamadhyamakakārikā"
    assert nagarjuna.updated_at == FIXED_NOW


def test_upsert_record_row_layout():
    entry = ReadingEntry("w16_borges", 16, 'Borges, "The Garden of Forking Paths"', "Week 16_Foster/Week 16_Borges.pdf")
    record = UpsertRecord.from_extraction(entry, ExtractionResult(text="Ts'ui\x00 Pên", page_count=12), updated_at=FIXED_NOW)

    assert record.to_row() == {
        "id": "w16_borges",
        "reading_id": "w16_borges",
        "week_num": 16,
        "title": 'Borges, "The Garden of Forking Paths"',
        "content": "Ts'ui Pên",
        "page_count": 12,
        "updated_at": "2026-01-12T09:30:00+00:00",
    }


class FakeSupabaseQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table

    def upsert(self, row, on_conflict=None):
        self.client.calls.append((self.table, row, on_conflict))
        return self

    def execute(self):
        if self.client.error:
            raise self.client.error
        return type("Response", (), {"data": [self.client.calls[-1][1]]})()


class FakeSupabaseClient:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def table(self, name):
        return FakeSupabaseQuery(self, name)


def test_supabase_publisher_upserts_on_id():
    client = FakeSupabaseClient()
    publisher = SupabaseContentPublisher("https://example.supabase.co", "service-key", client=client)
    record = UpsertRecord("w08_husserl", "w08_husserl", 8, "Husserl", "geometry", 30, FIXED_NOW)

    publisher.upsert(record)

    table, row, on_conflict = client.calls[0]
    assert table == "reading_content"
    assert on_conflict == "id"
    assert row["week_num"] == 8 and row["content"] == "geometry"


def test_supabase_publisher_wraps_store_errors():
    client = FakeSupabaseClient(error=ConnectionError("connection refused"))
    publisher = SupabaseContentPublisher("https://example.supabase.co", "service-key", client=client)
    record = UpsertRecord("w08_husserl", "w08_husserl", 8, "Husserl", "geometry", 30, FIXED_NOW)

    with pytest.raises(PublishError, match="connection refused"):
        publisher.upsert(record)


def test_whoosh_index_upsert_and_search(tmp_path):
    content_index = WhooshContentIndex(tmp_path / "whoosh")
    content_index.upsert(UpsertRecord("w12_white", "w12_white", 12, "Whitehead", "process and reality of events", 20, FIXED_NOW))
    content_index.upsert(UpsertRecord("w06_kant", "w06_kant", 6, "Kant", "postulates of empirical thought", 15, FIXED_NOW))
    content_index.upsert(UpsertRecord("w12_white", "w12_white", 12, "Whitehead", "process philosophy revised", 21, FIXED_NOW))

    assert content_index.count() == 2
    results = content_index.search("process")
    assert len(results) == 1
    assert results[0]["id"] == "w12_white"
    assert results[0]["page_count"] == 21
    assert content_index.search("events") == []


def test_format_summary_lists_failures(tmp_path):
    entries = _entries(2)
    _touch_all(tmp_path, entries[:1])
    summary = IndexingWorker(StubEngine(), InMemoryContentPublisher(), tmp_path).run(entries)

    text = format_summary(summary)

    assert "Success: 1" in text
    assert "Errors: 1" in text
    assert "w01_r2 [missing_file]" in text


class TextEngine(ExtractionEngine):
    def __init__(self, texts):
        self.texts = texts

    def extract(self, pdf_path):
        return ExtractionResult(text=self.texts[pdf_path.name], page_count=1)


def test_lone_surrogates_do_not_abort_sqlalchemy_run(tmp_path):
    entries = _entries(2)
    _touch_all(tmp_path / "readings", entries)
    engine = TextEngine({"r1.pdf": "lone \ud835 surrogate", "r2.pdf": "plain text"})
    publisher = SqlAlchemyContentPublisher(f"sqlite+pysqlite:///{tmp_path / 'index.db'}")
    worker = IndexingWorker(engine, publisher, tmp_path / "readings")

    summary = worker.run(entries)

    assert summary.success_count == 2 and summary.error_count == 0
    assert publisher.get("w01_r1").content == "lone ? surrogate"
    assert publisher.get("w01_r2").content == "plain text"


def test_sqlalchemy_publisher_wraps_driver_errors(tmp_path):
    publisher = SqlAlchemyContentPublisher(f"sqlite+pysqlite:///{tmp_path / 'index.db'}")
    broken = UpsertRecord("w09_heid", "w09_heid", 9, "Heidegger", "Dasein \udc80", 40, FIXED_NOW)

    with pytest.raises(PublishError):
        publisher.upsert(broken)

    publisher.upsert(UpsertRecord("w09_arendt", "w09_arendt", 9, "Arendt", "natality", 30, FIXED_NOW))
    assert publisher.get("w09_heid") is None
    assert publisher.get("w09_arendt").content == "natality"


def test_whoosh_index_delete(tmp_path):
    content_index = WhooshContentIndex(tmp_path / "whoosh")
    content_index.upsert(UpsertRecord("w14_plotinus", "w14_plotinus", 14, "Plotinus", "the one emanates", 18, FIXED_NOW))
    content_index.upsert(UpsertRecord("w14_conway", "w14_conway", 14, "Conway", "monads and vital spirits", 25, FIXED_NOW))

    content_index.delete("w14_plotinus")

    assert content_index.count() == 1
    assert content_index.search("emanates") == []
    assert [hit["id"] for hit in content_index.search("monads")] == ["w14_conway"]
