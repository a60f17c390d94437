from __future__ import annotations

import json
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from alembic import command
from alembic.config import Config
from apps.api.app.db.models import InterestedParty
from scripts import migrate_sqlite_to_postgres as migrate_cli
from scripts import validate_postgres_migration as validate_cli


def _upgraded_sqlite(path: Path) -> str:
    url = f"sqlite:///{path}"
    config = Config("alembic.ini")
    config.set_main_option("sqlalchemy.url", url)
    command.upgrade(config, "head")
    return url


@pytest.fixture
def databases(tmp_path: Path) -> tuple[Path, str]:
    source_path = tmp_path / "dev.db"
    source_url = _upgraded_sqlite(source_path)
    destination_url = _upgraded_sqlite(tmp_path / "destination.sqlite")
    with Session(create_engine(source_url)) as session:
        session.add(InterestedParty(id="party-1", name="Regulator", group_name="External"))
        session.commit()
    return source_path, destination_url


def test_validate_reports_mismatch_before_migration(
    databases: tuple[Path, str], capsys: pytest.CaptureFixture[str]
) -> None:
    source_path, destination_url = databases

    exit_code = validate_cli.main(
        ["--sqlite-path", str(source_path), "--postgres-url", destination_url]
    )

    assert exit_code == 1
    summary = json.loads(capsys.readouterr().out)
    assert summary["all_match"] is False
    parties = next(item for item in summary["tables"] if item["table"] == "InterestedParty")
    assert parties["sqlite_count"] == 1
    assert parties["postgres_count"] == 0
    assert parties["difference"] == -1


def test_migrate_then_validate(
    databases: tuple[Path, str], capsys: pytest.CaptureFixture[str]
) -> None:
    source_path, destination_url = databases

    exit_code = migrate_cli.main(
        [
            "--sqlite-path",
            str(source_path),
            "--postgres-url",
            destination_url,
            "--table",
            "InterestedParty",
        ]
    )

    assert exit_code == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["total_rows"] == 1
    assert [entry["table"] for entry in summary["tables"]] == ["InterestedParty"]

    assert (
        validate_cli.main(["--sqlite-path", str(source_path), "--postgres-url", destination_url])
        == 0
    )
    assert json.loads(capsys.readouterr().out)["all_match"] is True


def test_scripts_fail_without_sqlite_file(tmp_path: Path) -> None:
    missing = str(tmp_path / "missing.db")

    assert migrate_cli.main(["--sqlite-path", missing, "--postgres-url", "sqlite://"]) == 1
    assert validate_cli.main(["--sqlite-path", missing, "--postgres-url", "sqlite://"]) == 1


def test_validate_requires_destination_url(databases: tuple[Path, str]) -> None:
    source_path, _ = databases

    assert validate_cli.main(["--sqlite-path", str(source_path), "--postgres-url", ""]) == 1
