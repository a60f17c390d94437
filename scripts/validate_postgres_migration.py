#!/usr/bin/env python3
"""Compare per-table row counts between the SQLite source and Postgres."""

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
from isms_app.migration_validation import mask_database_url, validate_migration
from isms_app.sqlite_to_postgres import sqlite_url_for_path

logger = logging.getLogger("isms.validate")


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Validate a SQLite to Postgres migration")
    parser.add_argument("--sqlite-path", default=str(settings.sqlite_source_path))
    parser.add_argument("--postgres-url", default=settings.database_url)
    args = parser.parse_args(argv)
    configure_logging(settings.log_level)

    sqlite_path = Path(args.sqlite_path)
    if not sqlite_path.exists():
        logger.error("SQLite database not found at: %s", sqlite_path)
        logger.error("Set SQLITE_DB_PATH to point to your SQLite database file")
        return 1
    if not args.postgres_url:
        logger.error("DATABASE_URL environment variable is required")
        return 1

    logger.info("Validating migration...")
    logger.info("SQLite source: %s", sqlite_path)
    logger.info("PostgreSQL target: %s", mask_database_url(args.postgres_url))

    report = validate_migration(
        sqlite_url=sqlite_url_for_path(sqlite_path),
        postgres_url=args.postgres_url,
    )
    for entry in report.counts:
        logger.info(
            "%s: SQLite=%d, PostgreSQL=%d %s",
            entry.table,
            entry.sqlite_count,
            entry.postgres_count,
            "ok" if entry.match else "MISMATCH",
        )

    print(
        json.dumps(
            {
                "all_match": report.all_match,
                "tables": [
                    {
                        "table": entry.table,
                        "sqlite_count": entry.sqlite_count,
                        "postgres_count": entry.postgres_count,
                        "difference": entry.difference,
                    }
                    for entry in report.counts
                ],
            },
            indent=2,
            sort_keys=True,
        )
    )
    if report.all_match:
        logger.info("All row counts match. Migration validated successfully.")
        return 0
    for entry in report.mismatches:
        logger.error(
            "%s: SQLite=%d, PostgreSQL=%d (difference: %d)",
            entry.table,
            entry.sqlite_count,
            entry.postgres_count,
            entry.difference,
        )
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
