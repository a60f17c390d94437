from __future__ import annotations

import os

import pytest

# Test suite runs against SQLite fixtures with unsigned mock tokens; keep runtime mode explicit.
os.environ.setdefault("ISMS_APP_RUNTIME_ENVIRONMENT", "test")
os.environ.setdefault("ISMS_APP_ALLOW_SQLITE_TRANSITIONAL", "true")
os.environ.setdefault("ISMS_APP_AUTH_ACCEPT_UNSIGNED_TOKENS", "true")
os.environ.setdefault("ISMS_APP_DATABASE_URL", "sqlite:///./.pytest-isms.sqlite")

from apps.api.app.core.config import get_settings  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
