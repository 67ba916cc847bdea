"""
Command line entry point for the reading indexer.

Usage:
    index-readings run --readings-dir ./readings
    index-readings run --dry-run --week 4
    index-readings list
    index-readings search "emptiness" --whoosh-dir ./data/whoosh

`run` is the default command, so `index-readings --dry-run` works too.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from reading_index.ingestion import (
    READINGS,
    ConfigurationError,
    IndexerConfig,
    IndexingWorker,
    InMemoryContentPublisher,
    WhooshContentIndex,
    build_engine,
    build_publisher,
    find_duplicate_ids,
    format_summary,
    load_catalog,
    select_entries,
)
from reading_index.ingestion.config import BACKENDS
from reading_index.ingestion.engine import ENGINES

logger = logging.getLogger(__name__)

COMMANDS = ("run", "list", "search")


def setup_logging(level: int = logging.INFO, log_file: Optional[Path] = None) -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file")
    common.add_argument("--verbose", action="store_true", help="Enable debug logging")

    parser = argparse.ArgumentParser(prog="index-readings", description="Index course reading PDFs for full-text search")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", parents=[common], help="Extract every reading and upsert it into the content store")
    run.add_argument("--readings-dir", type=Path, default=None, help="Root directory of the reading PDFs")
    run.add_argument("--backend", choices=BACKENDS, default=None, help="Content store to publish into")
    run.add_argument("--engine", choices=sorted(ENGINES), default=None, help="PDF text extraction engine")
    run.add_argument("--catalog", type=Path, default=None, help="JSON catalog to use instead of the built-in one")
    run.add_argument("--week", type=int, action="append", default=None, help="Only index this week (repeatable)")
    run.add_argument("--id", dest="ids", action="append", default=None, help="Only index this reading id (repeatable)")
    run.add_argument("--dry-run", action="store_true", help="Extract only; keep records in memory")
    run.add_argument("--strict", action="store_true", help="Exit with status 1 when any reading failed")

    list_cmd = sub.add_parser("list", parents=[common], help="Show the catalog and which files are present")
    list_cmd.add_argument("--readings-dir", type=Path, default=None, help="Root directory of the reading PDFs")
    list_cmd.add_argument("--catalog", type=Path, default=None, help="JSON catalog to use instead of the built-in one")

    search = sub.add_parser("search", parents=[common], help="Query the local Whoosh index")
    search.add_argument("query", help="Whoosh query string")
    search.add_argument("--whoosh-dir", type=Path, default=None, help="Whoosh index directory")
    search.add_argument("--limit", type=int, default=10, help="Maximum hits to show")
    return parser


def _apply_overrides(config: IndexerConfig, args: argparse.Namespace) -> IndexerConfig:
    if getattr(args, "readings_dir", None) is not None:
        config.readings_dir = args.readings_dir
    if getattr(args, "backend", None) is not None:
        config.backend = args.backend
    if getattr(args, "engine", None) is not None:
        config.engine = args.engine
    if getattr(args, "whoosh_dir", None) is not None:
        config.whoosh_dir = args.whoosh_dir
    return config


def _load_entries(args: argparse.Namespace):
    return load_catalog(args.catalog) if args.catalog else READINGS


def cmd_run(args: argparse.Namespace, config: IndexerConfig) -> int:
    entries = select_entries(_load_entries(args), weeks=args.week, ids=args.ids)
    if args.dry_run:
        publisher = InMemoryContentPublisher()
    else:
        try:
            publisher = build_publisher(config)
        except ConfigurationError as exc:
            logger.error("Configuration error: %s", exc)
            return 2
    engine = build_engine(config.engine)

    worker = IndexingWorker(engine=engine, publisher=publisher, readings_dir=config.readings_dir)
    summary = worker.run(entries)
    print()
    print(format_summary(summary))
    if args.strict and summary.error_count:
        return 1
    return 0


def cmd_list(args: argparse.Namespace, config: IndexerConfig) -> int:
    entries = _load_entries(args)
    for entry in entries:
        present = (config.readings_dir / entry.file).is_file()
        marker = "ok     " if present else "MISSING"
        print(f"[{marker}] week {entry.week:>2}  {entry.id:<16} {entry.file}")
    duplicates = find_duplicate_ids(entries)
    if duplicates:
        print(f"Duplicate ids: {', '.join(duplicates)}")
    return 0


def cmd_search(args: argparse.Namespace, config: IndexerConfig) -> int:
    if not config.whoosh_dir.exists():
        logger.error("No Whoosh index at %s; run with --backend whoosh first", config.whoosh_dir)
        return 2
    content_index = WhooshContentIndex(config.whoosh_dir)
    hits = content_index.search(args.query, limit=args.limit)
    if not hits:
        print("No matches.")
    for hit in hits:
        print(f"week {hit['week']:>2}  {hit['id']:<16} {hit['title']}")
        if hit["highlight"]:
            print(f"    {hit['highlight']}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    # `run` is implied when no subcommand is given.
    if not argv or argv[0] not in COMMANDS + ("-h", "--help"):
        argv.insert(0, "run")

    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    config = _apply_overrides(IndexerConfig.from_env(), args)
    handlers = {"run": cmd_run, "list": cmd_list, "search": cmd_search}
    try:
        return handlers[args.command](args, config)
    except Exception:  # noqa: BLE001
        logger.exception("Indexing aborted")
        return 1


if __name__ == "__main__":
    sys.exit(main())
