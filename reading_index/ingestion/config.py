from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from .indexing import WhooshContentIndex
from .publisher import (
    DEFAULT_TABLE,
    ContentPublisher,
    InMemoryContentPublisher,
    SqlAlchemyContentPublisher,
    SupabaseContentPublisher,
)

BACKENDS = ("supabase", "sqlite", "whoosh", "memory")

# Values shipped in old setup docs; never valid credentials.
PLACEHOLDER_VALUES = {"https://your-project.supabase.co", "your-service-key"}


class ConfigurationError(ValueError):
    pass


@dataclass
class IndexerConfig:
    readings_dir: Path = Path("./readings")
    backend: str = "supabase"
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    supabase_table: str = DEFAULT_TABLE
    database_url: str = "sqlite+pysqlite:///./data/reading_index.db"
    whoosh_dir: Path = Path("./data/whoosh")
    engine: str = "pypdf"

    @classmethod
    def from_env(cls) -> "IndexerConfig":
        return cls(
            readings_dir=Path(os.getenv("READINGS_DIR", "./readings")),
            backend=os.getenv("INDEX_BACKEND", "supabase"),
            supabase_url=os.getenv("SUPABASE_URL") or None,
            supabase_service_key=os.getenv("SUPABASE_SERVICE_KEY") or None,
            supabase_table=os.getenv("SUPABASE_TABLE", DEFAULT_TABLE),
            database_url=os.getenv("DATABASE_URL", "sqlite+pysqlite:///./data/reading_index.db"),
            whoosh_dir=Path(os.getenv("WHOOSH_DIR", "./data/whoosh")),
            engine=os.getenv("EXTRACTION_ENGINE", "pypdf"),
        )

    def validate(self) -> None:
        if self.backend not in BACKENDS:
            raise ConfigurationError(f"Unknown backend {self.backend!r}; expected one of {', '.join(BACKENDS)}")
        if self.backend != "supabase":
            return
        missing = []
        if not self.supabase_url or self.supabase_url in PLACEHOLDER_VALUES:
            missing.append("SUPABASE_URL")
        if not self.supabase_service_key or self.supabase_service_key in PLACEHOLDER_VALUES:
            missing.append("SUPABASE_SERVICE_KEY")
        if missing:
            raise ConfigurationError(f"{' and '.join(missing)} must be set to real values for the supabase backend")
        parsed = urlparse(self.supabase_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(f"SUPABASE_URL must be an http(s) URL, got {self.supabase_url!r}")


def build_publisher(config: IndexerConfig) -> ContentPublisher:
    config.validate()
    if config.backend == "supabase":
        try:
            return SupabaseContentPublisher(config.supabase_url, config.supabase_service_key, table=config.supabase_table)
        except Exception as exc:  # noqa: BLE001
            raise ConfigurationError(f"cannot create Supabase client: {exc}") from exc
    if config.backend == "sqlite":
        return SqlAlchemyContentPublisher(config.database_url)
    if config.backend == "whoosh":
        return WhooshContentIndex(config.whoosh_dir)
    return InMemoryContentPublisher()
