"""Tests for rate limiting."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import Request
from fastapi.testclient import TestClient

from ecofarm.main import app
from ecofarm.middleware.rate_limit import (
    DEFAULT_LIMIT,
    RATE_LIMITS,
    get_client_ip,
    get_limiter,
    rate_limit_exceeded_handler,
)
from ecofarm.models.farm import CropResult


@pytest.fixture
def client() -> TestClient:
    """Create FastAPI test client."""
    return TestClient(app)


def _request_from(host: str, headers=None) -> MagicMock:
    mock_request = MagicMock(spec=Request)
    mock_request.headers = headers or {}
    mock_request.client.host = host
    return mock_request


# Client IP Detection Tests


def test_get_client_ip_direct() -> None:
    with patch("ecofarm.middleware.rate_limit.get_remote_address") as mock_get_remote:
        mock_get_remote.return_value = "192.168.1.100"
        assert get_client_ip(_request_from("192.168.1.100")) == "192.168.1.100"


def test_forwarded_for_ignored_without_trusted_proxies() -> None:
    request = _request_from("198.51.100.7", {"X-Forwarded-For": "10.0.0.1"})

    with patch("ecofarm.middleware.rate_limit.get_remote_address", return_value="198.51.100.7"):
        assert get_client_ip(request) == "198.51.100.7"


def test_forwarded_for_used_from_trusted_proxy(monkeypatch) -> None:
    monkeypatch.setenv("TRUSTED_PROXIES", "10.0.0.5, 10.0.0.6")
    request = _request_from("10.0.0.5", {"X-Forwarded-For": "  203.0.113.50 , 10.0.0.5"})

    with patch("ecofarm.middleware.rate_limit.get_remote_address", return_value="10.0.0.5"):
        assert get_client_ip(request) == "203.0.113.50"


def test_forwarded_for_ignored_from_untrusted_peer(monkeypatch) -> None:
    monkeypatch.setenv("TRUSTED_PROXIES", "10.0.0.5")
    request = _request_from("198.51.100.7", {"X-Forwarded-For": "203.0.113.50"})

    with patch("ecofarm.middleware.rate_limit.get_remote_address", return_value="198.51.100.7"):
        assert get_client_ip(request) == "198.51.100.7"


# Rate Limit Configuration Tests


def test_rate_limits_configuration() -> None:
    assert RATE_LIMITS["classify"] == "10/minute"
    assert RATE_LIMITS["calculator"] == "60/minute"
    assert RATE_LIMITS["crop"] == "30/minute"
    assert RATE_LIMITS["results"] == "100/minute"
    assert DEFAULT_LIMIT == "200/minute"


def test_limiter_is_shared() -> None:
    assert get_limiter() is app.state.limiter


# 429 Handler Tests


def test_rate_limit_exceeded_handler() -> None:
    mock_exc = MagicMock()
    mock_exc.retry_after = 45
    mock_exc.detail = "10 per 1 minute"

    response = rate_limit_exceeded_handler(MagicMock(spec=Request), mock_exc)

    assert response.status_code == 429
    assert response.media_type == "application/json"
    assert response.headers["Retry-After"] == "45"
    assert response.headers["X-RateLimit-Remaining"] == "0"
    assert response.headers["X-RateLimit-Limit"] == "10 per 1 minute"

    body = json.loads(response.body.decode())
    assert body["detail"] == "Rate limit exceeded"
    assert body["retry_after"] == 45
    assert "45 seconds" in body["message"]


def test_rate_limit_exceeded_handler_default_retry() -> None:
    mock_exc = MagicMock(spec=[])  # no retry_after attribute
    mock_exc.detail = "10 per 1 minute"

    response = rate_limit_exceeded_handler(MagicMock(spec=Request), mock_exc)

    assert response.headers["Retry-After"] == "60"


# Enforcement


def test_crop_rate_limit_enforced(client: TestClient) -> None:
    """The 31st crop recommendation within a minute is rejected."""
    result = CropResult(
        temperature=25.0,
        rainfall=0.0,
        humidity=50.0,
        weather_icon="01d",
        weather_desc="clear sky",
        recommended_crops=["Wheat"],
        explanation=["a", "b", "c"],
    )
    payload = {"location": "Nashik", "soil": "clay", "season": "rabi"}

    with patch(
        "ecofarm.routers.farm_tools.build_crop_recommendation",
        new_callable=AsyncMock,
        return_value=result,
    ):
        statuses = [
            client.post("/api/crop-recommend", json=payload).status_code
            for _ in range(31)
        ]

    assert statuses[:30] == [201] * 30
    assert statuses[30] == 429


def test_health_endpoint_not_route_limited(client: TestClient) -> None:
    with patch("ecofarm.main.get_gemini_client"), patch("ecofarm.main.get_supabase_client"):
        for _ in range(15):
            assert client.get("/health").status_code == 200
