"""Shared pytest fixtures."""

import pytest

from ecofarm.config import get_settings
from ecofarm.db.supabase_client import reset_supabase_client
from ecofarm.middleware.rate_limit import get_limiter


@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Provide required settings and keep cached singletons out of other tests."""
    get_settings.cache_clear()
    reset_supabase_client()

    monkeypatch.setenv("GEMINI_API_KEY", "test-gemini-api-key")
    monkeypatch.setenv("SUPABASE_URL", "https://test.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "test-supabase-key")
    monkeypatch.setenv("PERSIST_RESULTS", "false")
    for name in (
        "SUPABASE_SERVICE_ROLE_KEY",
        "OPENWEATHER_API_KEY",
        "REMOTE_API_BASE",
        "REMOTE_TIMEOUT_SECONDS",
        "TRUSTED_PROXIES",
        "ORACLE_MODEL_NAME",
        "ORACLE_TOP_K",
        "LOW_CONFIDENCE_THRESHOLD",
        "MAX_IMAGE_SIZE_MB",
    ):
        monkeypatch.delenv(name, raising=False)

    yield

    get_settings.cache_clear()
    reset_supabase_client()


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> None:
    """Reset the rate limiter before each test to avoid rate limit interference."""
    get_limiter().reset()
