"""Row-count comparison between the SQLite source and the migrated Postgres database."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import create_engine, func, inspect, select, table
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import SQLAlchemyError

from isms_app.sqlite_to_postgres import MIGRATION_TABLES

logger = logging.getLogger(__name__)

# Users are re-provisioned on first sign-in, so their count is not compared.
VALIDATION_TABLES: tuple[str, ...] = tuple(name for name in MIGRATION_TABLES if name != "User")


@dataclass(frozen=True)
class TableCount:
    table: str
    sqlite_count: int
    postgres_count: int

    @property
    def match(self) -> bool:
        return self.sqlite_count == self.postgres_count

    @property
    def difference(self) -> int:
        return self.postgres_count - self.sqlite_count


@dataclass(frozen=True)
class ValidationReport:
    counts: list[TableCount]

    @property
    def all_match(self) -> bool:
        return all(entry.match for entry in self.counts)

    @property
    def mismatches(self) -> list[TableCount]:
        return [entry for entry in self.counts if not entry.match]


def mask_database_url(url: str) -> str:
    """Return the URL with its password hidden."""
    return make_url(url).render_as_string(hide_password=True)


def count_rows(engine: Engine, table_name: str) -> int:
    """Count rows in a table; -1 when the table is missing or unreadable."""
    try:
        if table_name not in inspect(engine).get_table_names():
            logger.error("Table %s not found in %s", table_name, engine.url.database)
            return -1
        statement = select(func.count()).select_from(table(table_name))
        with engine.connect() as conn:
            return int(conn.execute(statement).scalar_one())
    except SQLAlchemyError as exc:
        logger.error("Error counting rows in %s: %s", table_name, exc)
        return -1


def validate_migration(
    *,
    sqlite_url: str,
    postgres_url: str,
    tables: tuple[str, ...] = VALIDATION_TABLES,
) -> ValidationReport:
    sqlite_engine = create_engine(sqlite_url)
    postgres_engine = create_engine(postgres_url)
    try:
        counts = [
            TableCount(
                table=table_name,
                sqlite_count=count_rows(sqlite_engine, table_name),
                postgres_count=count_rows(postgres_engine, table_name),
            )
            for table_name in tables
        ]
    finally:
        sqlite_engine.dispose()
        postgres_engine.dispose()
    return ValidationReport(counts=counts)
