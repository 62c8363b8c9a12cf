"""Image-labeling oracle and its memoized acquisition.

The oracle turns an image into ranked (label, probability) guesses. The
production oracle asks Gemini for structured JSON; tests and the CLI can
inject any object with the same ``classify`` coroutine.

``OracleProvider`` owns the one-time initialization: concurrent callers
share a single in-flight load, and a failed load is forgotten so the next
call starts a fresh one.
"""

import asyncio
import json
import logging
from typing import Awaitable, Callable, List, Optional, Protocol

from google import genai
from google.genai import types
from pydantic import BaseModel, Field

from ecofarm.config import Settings, get_settings
from ecofarm.errors import OracleUnavailableError
from ecofarm.models.waste import LabelGuess
from ecofarm.services.gemini_client import get_gemini_client

logger = logging.getLogger(__name__)


class LabelOracle(Protocol):
    """Anything that can label an image."""

    async def classify(self, image: bytes, mime_type: str, top_k: int) -> List[LabelGuess]:
        """Return up to top_k guesses, highest probability first."""
        ...


class _LabelGuessList(BaseModel):
    """Response schema requested from Gemini."""

    guesses: List[LabelGuess] = Field(default_factory=list)


_LABEL_PROMPT = """You are an image labeling model similar to an ImageNet classifier.
Look at the photo and list the {top_k} most likely object labels for what it shows.

RULES:
- Use short, lowercase, concrete object names (e.g. "banana", "plastic bottle", "battery")
- Give each label a probability between 0 and 1
- Probabilities must sum to at most 1
- Order labels from most to least likely
"""


class GeminiLabelOracle:
    """Label images with a Gemini multimodal model."""

    def __init__(self, client: genai.Client, model: str):
        self._client = client
        self.model = model

    async def classify(self, image: bytes, mime_type: str, top_k: int = 5) -> List[LabelGuess]:
        """Label an image and return the ranked top_k guesses.

        Raises:
            OracleUnavailableError: If the Gemini call fails or its reply
                cannot be parsed.
        """
        contents = [
            types.Part.from_bytes(data=image, mime_type=mime_type),
            _LABEL_PROMPT.format(top_k=top_k),
        ]
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=_LabelGuessList,
            temperature=0.0,
        )

        try:
            response = await asyncio.to_thread(
                self._client.models.generate_content,
                model=self.model,
                contents=contents,
                config=config,
            )
            response_text = response.text
            if response_text is None:
                raise ValueError("Gemini API returned empty response")
            parsed = _LabelGuessList.model_validate(json.loads(response_text))
        except Exception as e:
            logger.error(f"Image labeling failed ({self.model}): {type(e).__name__}: {e}")
            raise OracleUnavailableError(f"Image labeling failed: {e}", e) from e

        ranked = sorted(parsed.guesses, key=lambda g: g.probability, reverse=True)
        return ranked[:top_k]


async def load_gemini_oracle(settings: Optional[Settings] = None) -> GeminiLabelOracle:
    """Create the Gemini client and check that the labeling model is reachable."""
    settings = settings or get_settings()
    client = get_gemini_client()
    await asyncio.to_thread(client.models.get, model=settings.oracle_model_name)
    logger.info(f"Image-labeling oracle ready: {settings.oracle_model_name}")
    return GeminiLabelOracle(client, settings.oracle_model_name)


OracleFactory = Callable[[], Awaitable[LabelOracle]]


class OracleProvider:
    """Initialize-once, retry-on-failure handle to a LabelOracle.

    Example:
        >>> provider = OracleProvider(load_gemini_oracle)
        >>> oracle = await provider.acquire()
    """

    def __init__(self, factory: OracleFactory):
        self._factory = factory
        self._oracle: Optional[LabelOracle] = None
        self._pending: Optional[asyncio.Future[LabelOracle]] = None

    @property
    def ready(self) -> bool:
        return self._oracle is not None

    async def acquire(self) -> LabelOracle:
        """Return the oracle, initializing it on first use.

        Raises:
            OracleUnavailableError: If initialization fails. Every caller
                waiting on that attempt receives the same error.
        """
        if self._oracle is not None:
            return self._oracle

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._initialize())

        # shield: one cancelled caller must not cancel the shared load
        return await asyncio.shield(self._pending)

    async def _initialize(self) -> LabelOracle:
        try:
            oracle = await self._factory()
        except Exception as e:
            logger.error(f"Oracle initialization failed: {type(e).__name__}: {e}")
            raise OracleUnavailableError(
                f"Image-labeling oracle unavailable: {e}", e
            ) from e
        else:
            self._oracle = oracle
            return oracle
        finally:
            self._pending = None

    def invalidate(self) -> None:
        """Forget the current oracle so the next acquire() loads a new one."""
        if self._oracle is not None:
            logger.warning("Invalidating image-labeling oracle")
        self._oracle = None
