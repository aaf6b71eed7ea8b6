"""Shared fixtures for all tests."""

from collections.abc import Generator

import pytest


@pytest.fixture
def mock_env_clear(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Clear all B2-related environment variables for testing.

    This ensures tests don't accidentally use real credentials from the environment.
    """
    env_vars_to_clear = [
        "B2_APPLICATION_KEY_ID",
        "B2_ACCOUNT_ID",
        "B2_APPLICATION_KEY",
        "B2_AUTHORIZE_URL",
        "B2_TIMEOUT",
        "B2_RETRY_LIMIT",
        "B2_RETRY_WAIT",
        "B2_LARGE_FILE_THRESHOLD",
    ]
    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture
def mock_account_id() -> str:
    """Mock B2 application key id for testing."""
    return "test_key_id_123456789"


@pytest.fixture
def mock_application_key() -> str:
    """Mock B2 application key for testing."""
    return "K000test_application_key"
