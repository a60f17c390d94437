from e2e_helpers.auth import (
    AUTH_COOKIE_NAME,
    TEST_USERS,
    TestUser,
    create_mock_token,
    is_authenticated,
    login_as,
    logout,
    mock_authenticate,
)
from e2e_helpers.db import (
    cleanup_test_data,
    close_session,
    create_test_document,
    create_test_risk,
    get_session,
    seed_test_users,
)

__all__ = [
    "AUTH_COOKIE_NAME",
    "TEST_USERS",
    "TestUser",
    "cleanup_test_data",
    "close_session",
    "create_mock_token",
    "create_test_document",
    "create_test_risk",
    "get_session",
    "is_authenticated",
    "login_as",
    "logout",
    "mock_authenticate",
    "seed_test_users",
]
