from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path

from sqlalchemy import create_engine, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from alembic import command
from alembic.config import Config
from apps.api.app.db.models import Control, Document, InterestedParty, Risk, RiskControl, User
from isms_app import sqlite_to_postgres
from isms_app.sqlite_to_postgres import MIGRATION_TABLES, migrate_sqlite_to_postgres

# 2024-01-15T10:30:00.123Z as Prisma stores it in SQLite.
CREATED_AT_MS = 1705314600123

SOURCE_SCHEMA = """
CREATE TABLE "User" (
    "id" TEXT NOT NULL PRIMARY KEY,
    "displayName" TEXT NOT NULL,
    "email" TEXT NOT NULL,
    "entraObjectId" TEXT NOT NULL,
    "role" TEXT NOT NULL DEFAULT 'STAFF',
    "department" TEXT,
    "createdAt" DATETIME NOT NULL,
    "updatedAt" DATETIME NOT NULL
);
CREATE TABLE "InterestedParty" (
    "id" TEXT NOT NULL PRIMARY KEY,
    "name" TEXT NOT NULL,
    "group" TEXT,
    "dateAdded" DATETIME,
    "addressedThroughISMS" BOOLEAN,
    "createdAt" DATETIME NOT NULL,
    "updatedAt" DATETIME NOT NULL
);
CREATE TABLE "Control" (
    "id" TEXT NOT NULL PRIMARY KEY,
    "code" TEXT NOT NULL,
    "title" TEXT NOT NULL,
    "selectedForRiskAssessment" BOOLEAN NOT NULL DEFAULT false,
    "isStandardControl" BOOLEAN NOT NULL DEFAULT false,
    "implemented" BOOLEAN NOT NULL DEFAULT false,
    "createdAt" DATETIME NOT NULL,
    "updatedAt" DATETIME NOT NULL
);
CREATE TABLE "Risk" (
    "id" TEXT NOT NULL PRIMARY KEY,
    "title" TEXT NOT NULL,
    "externalId" TEXT,
    "dateAdded" DATETIME NOT NULL,
    "interestedPartyId" TEXT NOT NULL,
    "status" TEXT NOT NULL DEFAULT 'DRAFT',
    "archived" BOOLEAN NOT NULL DEFAULT false,
    "confidentialityScore" INTEGER NOT NULL,
    "integrityScore" INTEGER NOT NULL,
    "availabilityScore" INTEGER NOT NULL,
    "likelihood" INTEGER NOT NULL,
    "calculatedScore" INTEGER NOT NULL,
    "mitigationImplemented" BOOLEAN NOT NULL DEFAULT false,
    "createdAt" DATETIME NOT NULL,
    "updatedAt" DATETIME NOT NULL
);
CREATE TABLE "Document" (
    "id" TEXT NOT NULL PRIMARY KEY,
    "title" TEXT,
    "type" TEXT NOT NULL,
    "storageLocation" TEXT NOT NULL,
    "version" TEXT NOT NULL,
    "status" TEXT NOT NULL,
    "ownerUserId" TEXT NOT NULL,
    "requiresAcknowledgement" BOOLEAN NOT NULL DEFAULT false,
    "nextReviewDate" DATETIME,
    "createdAt" DATETIME NOT NULL,
    "updatedAt" DATETIME NOT NULL
);
CREATE TABLE "RiskControl" (
    "riskId" TEXT NOT NULL,
    "controlId" TEXT NOT NULL,
    PRIMARY KEY ("riskId", "controlId")
);
"""


def _upgrade_to_head(url: str) -> None:
    config = Config("alembic.ini")
    config.set_main_option("sqlalchemy.url", url)
    command.upgrade(config, "head")


def _build_source(path: Path) -> None:
    connection = sqlite3.connect(path)
    try:
        connection.executescript(SOURCE_SCHEMA)
        connection.execute(
            'INSERT INTO "User" VALUES (?, ?, ?, ?, ?, ?, ?, ?)',
            ("user-1", "Ada Admin", "ada@paythru.com", "oid-1", "ADMIN", None,
             CREATED_AT_MS, "2024-01-15T10:30:00.123Z"),
        )
        connection.execute(
            'INSERT INTO "InterestedParty" VALUES (?, ?, ?, ?, ?, ?, ?)',
            ("party-1", "Regulator", "External", "2023-06-01", 1, CREATED_AT_MS, CREATED_AT_MS),
        )
        connection.execute(
            'INSERT INTO "Control" VALUES (?, ?, ?, ?, ?, ?, ?, ?)',
            ("control-1", "A.5.1", "Policies", 1, 0, "true", CREATED_AT_MS, CREATED_AT_MS),
        )
        connection.execute(
            'INSERT INTO "Risk" VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)',
            ("risk-1", "Phishing", "EXT-1", str(CREATED_AT_MS), "party-1", "ACTIVE", 0,
             3, 3, 3, 2, 18, 1, CREATED_AT_MS, CREATED_AT_MS),
        )
        connection.execute(
            'INSERT INTO "Document" VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)',
            ("doc-1", "Information Security Policy", "POLICY", "SHAREPOINT", "1.0",
             "APPROVED", "user-1", 1, "2025-01-15 00:00:00", CREATED_AT_MS, CREATED_AT_MS),
        )
        connection.execute('INSERT INTO "RiskControl" VALUES (?, ?)', ("risk-1", "control-1"))
        connection.commit()
    finally:
        connection.close()


def _prepare(tmp_path: Path) -> tuple[Path, str, str]:
    source_path = tmp_path / "dev.db"
    _build_source(source_path)
    destination_url = f"sqlite:///{tmp_path / 'destination.sqlite'}"
    _upgrade_to_head(destination_url)
    return source_path, f"sqlite:///{source_path}", destination_url


def test_migration_normalizes_booleans_and_dates(tmp_path: Path) -> None:
    _, source_url, destination_url = _prepare(tmp_path)

    report = migrate_sqlite_to_postgres(sqlite_url=source_url, postgres_url=destination_url)

    assert report.total_errors == 0
    engine = create_engine(destination_url)
    with Session(engine) as session:
        user = session.get(User, "user-1")
        party = session.get(InterestedParty, "party-1")
        control = session.get(Control, "control-1")
        risk = session.get(Risk, "risk-1")
        document = session.get(Document, "doc-1")
        links = session.scalars(select(RiskControl)).all()

    expected_created = datetime(2024, 1, 15, 10, 30, 0, 123000)
    assert user.created_at == expected_created
    assert user.updated_at == expected_created
    assert party.date_added == datetime(2023, 6, 1)
    assert party.addressed_through_isms is True
    assert control.selected_for_risk_assessment is True
    assert control.is_standard_control is False
    assert control.implemented is True
    assert risk.date_added == expected_created
    assert risk.archived is False
    assert risk.mitigation_implemented is True
    assert document.requires_acknowledgement is True
    assert document.next_review_date == datetime(2025, 1, 15)
    assert [(link.risk_id, link.control_id) for link in links] == [("risk-1", "control-1")]


def test_migration_is_idempotent(tmp_path: Path) -> None:
    _, source_url, destination_url = _prepare(tmp_path)

    first = migrate_sqlite_to_postgres(sqlite_url=source_url, postgres_url=destination_url)
    second = migrate_sqlite_to_postgres(sqlite_url=source_url, postgres_url=destination_url)

    first_by_table = {entry.table: entry for entry in first.tables}
    second_by_table = {entry.table: entry for entry in second.tables}

    for table_name in ("User", "InterestedParty", "Control", "Risk", "Document", "RiskControl"):
        assert first_by_table[table_name].inserted_rows == 1
        assert first_by_table[table_name].source_count == 1

    for table_name, first_report in first_by_table.items():
        second_report = second_by_table[table_name]
        assert second_report.inserted_rows == 0
        assert second_report.updated_rows == 0
        assert second_report.errors == 0
        assert first_report.source_hash == second_report.source_hash
        assert second_report.source_hash == second_report.destination_hash


def test_changed_source_row_is_updated(tmp_path: Path) -> None:
    source_path, source_url, destination_url = _prepare(tmp_path)
    migrate_sqlite_to_postgres(sqlite_url=source_url, postgres_url=destination_url)

    connection = sqlite3.connect(source_path)
    connection.execute('UPDATE "Document" SET "version" = ? WHERE "id" = ?', ("1.1", "doc-1"))
    connection.commit()
    connection.close()

    report = migrate_sqlite_to_postgres(sqlite_url=source_url, postgres_url=destination_url)
    by_table = {entry.table: entry for entry in report.tables}

    assert by_table["Document"].updated_rows == 1
    assert by_table["Document"].unchanged_rows == 0
    assert by_table["User"].unchanged_rows == 1
    engine = create_engine(destination_url)
    with Session(engine) as session:
        assert session.get(Document, "doc-1").version == "1.1"


def test_row_failures_are_counted_without_aborting_table(tmp_path: Path) -> None:
    source_path, source_url, destination_url = _prepare(tmp_path)
    connection = sqlite3.connect(source_path)
    connection.execute(
        'INSERT INTO "Document" VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)',
        ("doc-0", None, "POLICY", "SHAREPOINT", "1.0", "DRAFT", "user-1", 0, None,
         CREATED_AT_MS, CREATED_AT_MS),
    )
    connection.commit()
    connection.close()

    report = migrate_sqlite_to_postgres(sqlite_url=source_url, postgres_url=destination_url)
    documents = {entry.table: entry for entry in report.tables}["Document"]

    assert documents.source_count == 2
    assert documents.errors == 1
    assert documents.inserted_rows == 1
    assert documents.destination_count == 1
    assert report.total_errors == 1



def test_out_of_range_date_is_a_row_error(tmp_path: Path) -> None:
    source_path, source_url, destination_url = _prepare(tmp_path)
    connection = sqlite3.connect(source_path)
    connection.execute(
        'INSERT INTO "Document" VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)',
        ("doc-2", "Backup Policy", "POLICY", "SHAREPOINT", "1.0", "DRAFT", "user-1", 0,
         "99999999999999999999", CREATED_AT_MS, CREATED_AT_MS),
    )
    connection.commit()
    connection.close()

    report = migrate_sqlite_to_postgres(sqlite_url=source_url, postgres_url=destination_url)
    by_table = {entry.table: entry for entry in report.tables}

    assert by_table["Document"].errors == 1
    assert by_table["Document"].inserted_rows == 1
    assert by_table["RiskControl"].inserted_rows == 1
    assert report.total_errors == 1
    engine = create_engine(destination_url)
    with Session(engine) as session:
        assert session.get(Document, "doc-2") is None
        assert session.get(Document, "doc-1") is not None


def test_join_row_with_null_key_is_a_row_error(tmp_path: Path) -> None:
    source_path, source_url, destination_url = _prepare(tmp_path)
    connection = sqlite3.connect(source_path)
    connection.executescript(
        '''
        DROP TABLE "RiskControl";
        CREATE TABLE "RiskControl" (
            "riskId" TEXT,
            "controlId" TEXT,
            PRIMARY KEY ("riskId", "controlId")
        );
        INSERT INTO "RiskControl" VALUES ('risk-1', 'control-1');
        INSERT INTO "RiskControl" VALUES ('risk-1', NULL);
        '''
    )
    connection.commit()
    connection.close()

    report = migrate_sqlite_to_postgres(sqlite_url=source_url, postgres_url=destination_url)
    links = {entry.table: entry for entry in report.tables}["RiskControl"]

    assert links.source_count == 2
    assert links.errors == 1
    assert links.inserted_rows == 1
    assert links.skipped_reason is None


def test_unreadable_source_table_counts_one_error(tmp_path: Path, monkeypatch) -> None:
    _, source_url, destination_url = _prepare(tmp_path)
    load_source_rows = sqlite_to_postgres._load_source_rows

    def failing_load(engine, table_name):
        if table_name == "Control":
            raise OperationalError("SELECT * FROM Control", {}, Exception("disk I/O error"))
        return load_source_rows(engine, table_name)

    monkeypatch.setattr(sqlite_to_postgres, "_load_source_rows", failing_load)

    report = migrate_sqlite_to_postgres(sqlite_url=source_url, postgres_url=destination_url)
    by_table = {entry.table: entry for entry in report.tables}

    assert by_table["Control"].errors == 1
    assert by_table["Control"].skipped_reason == "source read failed"
    assert by_table["Control"].migrated_rows == 0
    assert by_table["Risk"].inserted_rows == 1
    assert report.total_errors == 1

def test_tables_missing_in_source_are_skipped(tmp_path: Path) -> None:
    _, source_url, destination_url = _prepare(tmp_path)

    report = migrate_sqlite_to_postgres(sqlite_url=source_url, postgres_url=destination_url)
    by_table = {entry.table: entry for entry in report.tables}

    assert [entry.table for entry in report.tables] == list(MIGRATION_TABLES)
    for table_name in ("AssetCategory", "Classification", "Legislation", "Asset"):
        assert by_table[table_name].skipped_reason == "missing in source"
        assert by_table[table_name].migrated_rows == 0
    assert report.total_rows == 6


def test_tables_missing_in_destination_are_skipped(tmp_path: Path) -> None:
    _, source_url, _ = _prepare(tmp_path)
    empty_destination = f"sqlite:///{tmp_path / 'empty.sqlite'}"

    report = migrate_sqlite_to_postgres(
        sqlite_url=source_url, postgres_url=empty_destination, tables=("User",)
    )

    assert report.tables[0].skipped_reason == "missing in destination"
    assert report.as_dict()["tables"][0]["skipped_reason"] == "missing in destination"
