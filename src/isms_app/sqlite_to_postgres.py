"""SQLite -> Postgres migration for the ISMS register tables.

Rows are copied table by table in foreign-key dependency order. Each row is
normalized (SQLite stores booleans as 0/1 and dates as epoch milliseconds or
ISO strings) and then upserted by primary key in its own transaction, so one
bad row is counted and logged without aborting the rest of the table.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from email.utils import parsedate_to_datetime
from pathlib import Path

from sqlalchemy import MetaData, Table, and_, create_engine, inspect, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

# Users first: documents and risks reference them. Join tables last.
MIGRATION_TABLES: tuple[str, ...] = (
    "User",
    "AssetCategory",
    "Classification",
    "InterestedParty",
    "Legislation",
    "Control",
    "Asset",
    "Risk",
    "Document",
    "RiskControl",
    "DocumentRisk",
    "DocumentControl",
    "LegislationRisk",
)

BOOLEAN_FIELDS: frozenset[str] = frozenset(
    {
        "requiresAcknowledgement",
        "cdeImpacting",
        "archived",
        "mitigationImplemented",
        "selectedForRiskAssessment",
        "selectedForContractualObligation",
        "selectedForLegalRequirement",
        "selectedForBusinessRequirement",
        "isStandardControl",
        "implemented",
        "addressedThroughISMS",
    }
)

_DATE_FIELD_NAMES = frozenset({"dateAdded", "expiryDate", "date"})
_DATE_SUFFIX = re.compile(r"(date|at)$", re.IGNORECASE)
_EPOCH_MILLIS = re.compile(r"^\d{13,}$")
_ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")


@dataclass(frozen=True)
class TableMigrationReport:
    table: str
    source_count: int
    destination_count: int
    source_hash: str
    destination_hash: str
    inserted_rows: int
    updated_rows: int
    unchanged_rows: int
    errors: int
    skipped_reason: str | None = None

    @property
    def migrated_rows(self) -> int:
        return self.inserted_rows + self.updated_rows + self.unchanged_rows


@dataclass(frozen=True)
class MigrationReport:
    source_url: str
    destination_url: str
    tables: list[TableMigrationReport] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return sum(entry.migrated_rows for entry in self.tables)

    @property
    def total_errors(self) -> int:
        return sum(entry.errors for entry in self.tables)

    def as_dict(self) -> dict[str, object]:
        return {
            "source_url": self.source_url,
            "destination_url": self.destination_url,
            "total_rows": self.total_rows,
            "total_errors": self.total_errors,
            "tables": [
                {
                    "table": entry.table,
                    "source_count": entry.source_count,
                    "destination_count": entry.destination_count,
                    "source_hash": entry.source_hash,
                    "destination_hash": entry.destination_hash,
                    "inserted_rows": entry.inserted_rows,
                    "updated_rows": entry.updated_rows,
                    "unchanged_rows": entry.unchanged_rows,
                    "errors": entry.errors,
                    "skipped_reason": entry.skipped_reason,
                }
                for entry in self.tables
            ],
        }


def sqlite_url_for_path(path: Path | str, *, read_only: bool = True) -> str:
    """Build a SQLAlchemy URL for a SQLite file, read-only by default."""
    if read_only:
        return f"sqlite:///file:{Path(path).as_posix()}?mode=ro&uri=true"
    return f"sqlite:///{Path(path).as_posix()}"


def coerce_boolean(value: object) -> bool:
    return value is True or value == 1 or value in ("1", "true")


def is_date_field(column: str) -> bool:
    return bool(_DATE_SUFFIX.search(column)) or column in _DATE_FIELD_NAMES


def _from_epoch_millis(millis: float) -> datetime:
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).replace(tzinfo=None)


def _epoch_millis_or_unchanged(millis: float, original: object) -> object:
    # Out-of-range or NaN epochs stay as-is for the destination to reject.
    try:
        return _from_epoch_millis(millis)
    except (OverflowError, OSError, ValueError):
        return original


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def coerce_date(value: object) -> object:
    """Convert SQLite date encodings to naive UTC datetimes.

    Values that cannot be interpreted as a date are returned unchanged.
    """
    if isinstance(value, datetime):
        return _as_naive_utc(value)
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return _epoch_millis_or_unchanged(value, value)
    if not isinstance(value, str):
        return value

    candidate = value.strip()
    if _EPOCH_MILLIS.match(candidate):
        return _epoch_millis_or_unchanged(int(candidate), value)
    if _ISO_DATE_PREFIX.match(candidate):
        try:
            return _as_naive_utc(datetime.fromisoformat(candidate))
        except ValueError:
            pass
    try:
        return _as_naive_utc(parsedate_to_datetime(candidate))
    except (TypeError, ValueError):
        return value


def normalize_row(row: dict[str, object]) -> dict[str, object]:
    normalized: dict[str, object] = {}
    for column, value in row.items():
        if value is None:
            normalized[column] = value
        elif column in BOOLEAN_FIELDS:
            normalized[column] = coerce_boolean(value)
        elif is_date_field(column):
            normalized[column] = coerce_date(value)
        else:
            normalized[column] = value
    return normalized


def _normalize_scalar(value: object) -> object:
    if isinstance(value, datetime):
        return value.isoformat(timespec="microseconds")
    if isinstance(value, Decimal):
        return str(value)
    return value


def _comparable_row(row: dict[str, object]) -> dict[str, object]:
    return {column: _normalize_scalar(value) for column, value in row.items()}


def _row_hash(rows: list[dict[str, object]]) -> str:
    payload = json.dumps(
        [_comparable_row(row) for row in rows],
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _primary_key_columns(engine: Engine, table_name: str) -> list[str]:
    constraint = inspect(engine).get_pk_constraint(table_name)
    return list(constraint.get("constrained_columns") or ["id"])


def _load_source_rows(engine: Engine, table_name: str) -> list[dict[str, object]]:
    """Read raw driver values so SQLite date encodings reach the normalizer untouched."""
    pk_columns = _primary_key_columns(engine, table_name)
    with engine.connect() as conn:
        quote = conn.dialect.identifier_preparer.quote
        order_by = ", ".join(quote(column) for column in pk_columns)
        statement = f"SELECT * FROM {quote(table_name)} ORDER BY {order_by}"
        rows = conn.exec_driver_sql(statement).mappings().all()
    return [dict(row) for row in rows]


def _reflect_table(engine: Engine, table_name: str) -> Table:
    metadata = MetaData()
    metadata.reflect(bind=engine, only=[table_name])
    return metadata.tables[table_name]


def _load_destination_rows(
    engine: Engine, table: Table, pk_columns: list[str]
) -> list[dict[str, object]]:
    order_by = [table.c[column] for column in pk_columns if column in table.c]
    with engine.connect() as conn:
        rows = conn.execute(select(table).order_by(*order_by)).mappings().all()
    return [dict(row) for row in rows]


def _upsert_row(
    conn: Connection, table: Table, payload: dict[str, object], pk_columns: list[str]
) -> str:
    where_clause = and_(*[table.c[column] == payload[column] for column in pk_columns])
    existing = conn.execute(select(table).where(where_clause)).mappings().first()
    if existing is None:
        conn.execute(table.insert().values(**payload))
        return "inserted"

    existing_payload = _comparable_row({key: existing[key] for key in payload})
    if existing_payload == _comparable_row(payload):
        return "unchanged"

    updates = {key: value for key, value in payload.items() if key not in pk_columns}
    conn.execute(table.update().where(where_clause).values(**updates))
    return "updated"


def _skipped_report(table_name: str, reason: str) -> TableMigrationReport:
    logger.warning("Skipping %s: %s", table_name, reason)
    return TableMigrationReport(
        table=table_name,
        source_count=0,
        destination_count=0,
        source_hash="",
        destination_hash="",
        inserted_rows=0,
        updated_rows=0,
        unchanged_rows=0,
        errors=0,
        skipped_reason=reason,
    )


def migrate_table(
    *, source_engine: Engine, destination_engine: Engine, table_name: str
) -> TableMigrationReport:
    try:
        source_rows = _load_source_rows(source_engine, table_name)
    except SQLAlchemyError as exc:
        logger.error("Error reading %s: %s", table_name, exc)
        return TableMigrationReport(
            table=table_name,
            source_count=0,
            destination_count=0,
            source_hash="",
            destination_hash="",
            inserted_rows=0,
            updated_rows=0,
            unchanged_rows=0,
            errors=1,
            skipped_reason="source read failed",
        )

    dest_table = _reflect_table(destination_engine, table_name)
    pk_columns = _primary_key_columns(destination_engine, table_name)
    destination_columns = {column.name for column in dest_table.columns}

    counts = {"inserted": 0, "updated": 0, "unchanged": 0}
    errors = 0
    migrated_payloads: list[dict[str, object]] = []

    with destination_engine.connect() as conn:
        for source_row in source_rows:
            normalized = normalize_row(source_row)
            payload = {
                key: value for key, value in normalized.items() if key in destination_columns
            }
            row_key = {column: payload.get(column) for column in pk_columns}
            if any(value is None for value in row_key.values()):
                logger.error("Error migrating row in %s: missing key %s", table_name, row_key)
                errors += 1
                continue
            try:
                with conn.begin():
                    outcome = _upsert_row(conn, dest_table, payload, pk_columns)
            except SQLAlchemyError as exc:
                logger.error("Error migrating row %s in %s: %s", row_key, table_name, exc)
                errors += 1
                continue
            counts[outcome] += 1
            migrated_payloads.append(payload)

    destination_rows = _load_destination_rows(destination_engine, dest_table, pk_columns)
    compared_columns = sorted({key for payload in migrated_payloads for key in payload})
    projected_destination = [
        {column: row.get(column) for column in compared_columns} for row in destination_rows
    ]
    projected_source = [
        {column: payload.get(column) for column in compared_columns}
        for payload in migrated_payloads
    ]

    return TableMigrationReport(
        table=table_name,
        source_count=len(source_rows),
        destination_count=len(destination_rows),
        source_hash=_row_hash(projected_source),
        destination_hash=_row_hash(projected_destination),
        inserted_rows=counts["inserted"],
        updated_rows=counts["updated"],
        unchanged_rows=counts["unchanged"],
        errors=errors,
    )


def migrate_sqlite_to_postgres(
    *,
    sqlite_url: str,
    postgres_url: str,
    tables: tuple[str, ...] = MIGRATION_TABLES,
) -> MigrationReport:
    source_engine = create_engine(sqlite_url)
    destination_engine = create_engine(postgres_url)

    try:
        source_tables = set(inspect(source_engine).get_table_names())
        destination_tables = set(inspect(destination_engine).get_table_names())

        reports: list[TableMigrationReport] = []
        for table_name in tables:
            if table_name not in source_tables:
                reports.append(_skipped_report(table_name, "missing in source"))
                continue
            if table_name not in destination_tables:
                reports.append(_skipped_report(table_name, "missing in destination"))
                continue

            logger.info("Migrating %s...", table_name)
            report = migrate_table(
                source_engine=source_engine,
                destination_engine=destination_engine,
                table_name=table_name,
            )
            logger.info(
                "%s: %d rows migrated, %d errors",
                table_name,
                report.migrated_rows,
                report.errors,
            )
            reports.append(report)
    finally:
        source_engine.dispose()
        destination_engine.dispose()

    return MigrationReport(
        source_url=sqlite_url,
        destination_url=postgres_url,
        tables=reports,
    )
