#!/usr/bin/env python3
"""Copy ISMS register rows from the legacy SQLite database into Postgres."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT))
from apps.api.app.core.config import get_settings
from apps.api.app.core.ops import configure_logging
from isms_app.migration_validation import mask_database_url
from isms_app.sqlite_to_postgres import (
    MIGRATION_TABLES,
    migrate_sqlite_to_postgres,
    sqlite_url_for_path,
)

logger = logging.getLogger("isms.migrate")


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Migrate ISMS data from SQLite to Postgres")
    parser.add_argument(
        "--sqlite-path",
        default=str(settings.sqlite_source_path),
        help="SQLite source database file",
    )
    parser.add_argument(
        "--postgres-url",
        default=settings.database_url,
        help="Postgres destination URL (defaults to DATABASE_URL)",
    )
    parser.add_argument(
        "--table",
        action="append",
        dest="tables",
        choices=MIGRATION_TABLES,
        help="Limit the migration to these tables (repeatable, dependency order is kept)",
    )
    args = parser.parse_args(argv)
    configure_logging(settings.log_level)

    sqlite_path = Path(args.sqlite_path)
    if not sqlite_path.exists():
        logger.error("SQLite database not found at: %s", sqlite_path)
        return 1

    tables = MIGRATION_TABLES
    if args.tables:
        tables = tuple(name for name in MIGRATION_TABLES if name in set(args.tables))

    logger.info("Starting SQLite to PostgreSQL migration...")
    report = migrate_sqlite_to_postgres(
        sqlite_url=sqlite_url_for_path(sqlite_path),
        postgres_url=args.postgres_url,
        tables=tables,
    )
    for entry in report.tables:
        logger.info("%s: %d rows, %d errors", entry.table, entry.migrated_rows, entry.errors)
    logger.info(
        "Total: %d rows migrated, %d errors", report.total_rows, report.total_errors
    )

    summary = report.as_dict()
    summary["destination_url"] = mask_database_url(args.postgres_url)
    print(json.dumps(summary, indent=2, sort_keys=True))
    return 1 if report.total_errors else 0


if __name__ == "__main__":
    raise SystemExit(main())
