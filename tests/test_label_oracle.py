"""Tests for the image-labeling oracle and its memoized provider."""

import asyncio
import json
from unittest.mock import MagicMock, patch

import pytest

from ecofarm.errors import OracleUnavailableError
from ecofarm.models.waste import LabelGuess
from ecofarm.services.label_oracle import (
    GeminiLabelOracle,
    OracleProvider,
    load_gemini_oracle,
)


class FakeOracle:
    async def classify(self, image, mime_type, top_k):
        return [LabelGuess(label="banana", probability=0.9)]


def counting_factory(failures: int = 0, delay: float = 0.0):
    """Factory that fails `failures` times before succeeding."""
    state = {"calls": 0}

    async def factory():
        state["calls"] += 1
        await asyncio.sleep(delay)
        if state["calls"] <= failures:
            raise RuntimeError("model download failed")
        return FakeOracle()

    return factory, state


# ---------------------------------------------------------------------------
# OracleProvider
# ---------------------------------------------------------------------------

class TestOracleProvider:

    @pytest.mark.asyncio
    async def test_initializes_once(self):
        factory, state = counting_factory()
        provider = OracleProvider(factory)

        first = await provider.acquire()
        second = await provider.acquire()

        assert first is second
        assert state["calls"] == 1
        assert provider.ready is True

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_initialization(self):
        factory, state = counting_factory(delay=0.01)
        provider = OracleProvider(factory)

        oracles = await asyncio.gather(*(provider.acquire() for _ in range(5)))

        assert state["calls"] == 1
        assert all(o is oracles[0] for o in oracles)

    @pytest.mark.asyncio
    async def test_failure_is_retryable(self):
        factory, state = counting_factory(failures=1)
        provider = OracleProvider(factory)

        with pytest.raises(OracleUnavailableError) as exc_info:
            await provider.acquire()

        assert "model download failed" in str(exc_info.value)
        assert isinstance(exc_info.value.original_exception, RuntimeError)
        assert provider.ready is False

        oracle = await provider.acquire()
        assert isinstance(oracle, FakeOracle)
        assert state["calls"] == 2

    @pytest.mark.asyncio
    async def test_concurrent_waiters_all_see_the_failure(self):
        factory, state = counting_factory(failures=1, delay=0.01)
        provider = OracleProvider(factory)

        results = await asyncio.gather(
            *(provider.acquire() for _ in range(3)), return_exceptions=True
        )

        assert state["calls"] == 1
        assert all(isinstance(r, OracleUnavailableError) for r in results)

        await provider.acquire()
        assert state["calls"] == 2

    @pytest.mark.asyncio
    async def test_invalidate_forces_reload(self):
        factory, state = counting_factory()
        provider = OracleProvider(factory)

        await provider.acquire()
        provider.invalidate()
        assert provider.ready is False

        await provider.acquire()
        assert state["calls"] == 2


# ---------------------------------------------------------------------------
# GeminiLabelOracle
# ---------------------------------------------------------------------------

def _gemini_client(payload):
    client = MagicMock()
    response = MagicMock()
    response.text = payload if payload is None or isinstance(payload, str) else json.dumps(payload)
    client.models.generate_content.return_value = response
    return client


class TestGeminiLabelOracle:

    @pytest.mark.asyncio
    async def test_returns_ranked_top_k(self):
        client = _gemini_client({
            "guesses": [
                {"label": "plate", "probability": 0.05},
                {"label": "banana", "probability": 0.7},
                {"label": "lemon", "probability": 0.1},
                {"label": "table", "probability": 0.08},
            ]
        })
        oracle = GeminiLabelOracle(client, "gemini-test")

        result = await oracle.classify(b"\xff\xd8\xff", "image/jpeg", top_k=3)

        assert [g.label for g in result] == ["banana", "lemon", "table"]
        call_kwargs = client.models.generate_content.call_args.kwargs
        assert call_kwargs["model"] == "gemini-test"
        assert call_kwargs["config"].response_mime_type == "application/json"

    @pytest.mark.asyncio
    async def test_empty_guess_list_is_returned_as_is(self):
        oracle = GeminiLabelOracle(_gemini_client({"guesses": []}), "gemini-test")
        assert await oracle.classify(b"img", "image/png", top_k=5) == []

    @pytest.mark.asyncio
    async def test_empty_response_raises(self):
        oracle = GeminiLabelOracle(_gemini_client(None), "gemini-test")

        with pytest.raises(OracleUnavailableError, match="empty response"):
            await oracle.classify(b"img", "image/png", top_k=5)

    @pytest.mark.asyncio
    async def test_malformed_json_raises(self):
        oracle = GeminiLabelOracle(_gemini_client("not json"), "gemini-test")

        with pytest.raises(OracleUnavailableError):
            await oracle.classify(b"img", "image/png", top_k=5)

    @pytest.mark.asyncio
    async def test_api_error_is_wrapped(self):
        client = MagicMock()
        client.models.generate_content.side_effect = RuntimeError("503 UNAVAILABLE")
        oracle = GeminiLabelOracle(client, "gemini-test")

        with pytest.raises(OracleUnavailableError) as exc_info:
            await oracle.classify(b"img", "image/png", top_k=5)

        assert isinstance(exc_info.value.original_exception, RuntimeError)


class TestLoadGeminiOracle:

    @pytest.mark.asyncio
    async def test_checks_model_and_returns_oracle(self):
        with patch("ecofarm.services.label_oracle.get_gemini_client") as mock_get_client:
            mock_client = MagicMock()
            mock_get_client.return_value = mock_client

            oracle = await load_gemini_oracle()

        mock_client.models.get.assert_called_once_with(model="gemini-2.5-flash")
        assert isinstance(oracle, GeminiLabelOracle)
        assert oracle.model == "gemini-2.5-flash"

    @pytest.mark.asyncio
    async def test_unknown_model_fails_provider_initialization(self):
        with patch("ecofarm.services.label_oracle.get_gemini_client") as mock_get_client:
            mock_get_client.return_value.models.get.side_effect = RuntimeError("404 model not found")
            provider = OracleProvider(load_gemini_oracle)

            with pytest.raises(OracleUnavailableError, match="model not found"):
                await provider.acquire()
