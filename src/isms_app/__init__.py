"""ISMS App operational tooling: data migration and headless rendering support."""

from isms_app.headless_display import start_virtual_display
from isms_app.migration_validation import validate_migration
from isms_app.sqlite_to_postgres import migrate_sqlite_to_postgres

__all__ = [
    "migrate_sqlite_to_postgres",
    "start_virtual_display",
    "validate_migration",
]
