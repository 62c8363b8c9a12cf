"""Client for a remote waste classification service.

The remote service accepts a multipart image upload at
``/api/classify-waste`` and answers with a WastePrediction JSON body; this
service exposes the same contract, so one instance can delegate to another.
"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from ecofarm.errors import NetworkError
from ecofarm.models.waste import WastePrediction

logger = logging.getLogger(__name__)

CLASSIFY_PATH = "/api/classify-waste"


class RemoteWasteClient:
    """Upload images to a remote classifier and parse its reports.

    Any failure (transport error, non-2xx status, non-JSON body, or a body
    that does not match WastePrediction) raises NetworkError with a generic
    message. Nothing is retried.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def classify(
        self,
        image: bytes,
        filename: str = "upload.jpg",
        mime_type: str = "image/jpeg",
    ) -> WastePrediction:
        url = f"{self.base_url}{CLASSIFY_PATH}"
        files = {"file": (filename, image, mime_type)}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(url, files=files)
                response.raise_for_status()
                payload = response.json()
            return WastePrediction.model_validate(payload)
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.error(f"Remote classification failed ({url}): {type(e).__name__}: {e}")
            raise NetworkError() from e
