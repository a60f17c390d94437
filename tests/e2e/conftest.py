"""Live-server fixtures for the browser tests.

Set ``ISMS_APP_E2E=1`` to run them. The server uses ``TEST_DATABASE_URL`` or
``DATABASE_URL`` when set, else a throwaway SQLite file.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Iterator

import pytest
import uvicorn

from alembic import command
from alembic.config import Config
from e2e_helpers import close_session, seed_test_users

logger = logging.getLogger(__name__)

E2E_ENABLED = os.environ.get("ISMS_APP_E2E") == "1"
E2E_HOST = "127.0.0.1"
E2E_PORT = int(os.environ.get("ISMS_APP_E2E_PORT", "8765"))
SERVER_START_TIMEOUT_SECONDS = 15.0


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if E2E_ENABLED:
        return
    skip_e2e = pytest.mark.skip(reason="set ISMS_APP_E2E=1 to run browser tests")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


@pytest.fixture(scope="session")
def e2e_database_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    url = os.environ.get("TEST_DATABASE_URL") or os.environ.get("DATABASE_URL")
    if not url:
        url = f"sqlite:///{tmp_path_factory.mktemp('e2e') / 'e2e.sqlite'}"
        os.environ["TEST_DATABASE_URL"] = url
    config = Config("alembic.ini")
    config.set_main_option("sqlalchemy.url", url)
    config.attributes["configure_logger"] = False
    command.upgrade(config, "head")
    return url


@pytest.fixture(scope="session")
def base_url(e2e_database_url: str) -> Iterator[str]:
    external = os.environ.get("ISMS_APP_E2E_BASE_URL")
    if external:
        yield external.rstrip("/")
        return

    os.environ["ISMS_APP_DATABASE_URL"] = e2e_database_url
    os.environ["ISMS_APP_AUTH_ACCEPT_UNSIGNED_TOKENS"] = "true"
    os.environ["ISMS_APP_REQUEST_RATE_LIMIT_ENABLED"] = "false"

    from apps.api.app.core.config import get_settings
    from apps.api.app.main import create_app

    get_settings.cache_clear()
    server = uvicorn.Server(
        uvicorn.Config(create_app(), host=E2E_HOST, port=E2E_PORT, log_level="warning")
    )
    thread = threading.Thread(target=server.run, name="e2e-uvicorn", daemon=True)
    thread.start()

    deadline = time.monotonic() + SERVER_START_TIMEOUT_SECONDS
    while not server.started:
        if not thread.is_alive() or time.monotonic() > deadline:
            raise RuntimeError(f"E2E server did not start on {E2E_HOST}:{E2E_PORT}")
        time.sleep(0.05)

    yield f"http://{E2E_HOST}:{E2E_PORT}"

    server.should_exit = True
    thread.join(timeout=5)


@pytest.fixture(scope="session", autouse=True)
def e2e_test_users(base_url: str) -> Iterator[None]:
    logger.info("Setting up E2E test environment...")
    seed_test_users()
    logger.info("Test users seeded successfully")
    yield
    logger.info("Tearing down E2E test environment...")
    try:
        close_session()
    except Exception:
        logger.exception("Error during E2E teardown")
