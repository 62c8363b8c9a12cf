"""
Waste classification API endpoint.

Accepts an image upload, labels it with the image-labeling oracle, runs the
keyword decision engine and returns the classification report.
"""

import logging
from typing import Dict

from fastapi import APIRouter, File, Request, Response, UploadFile, status

from ecofarm.config import get_settings
from ecofarm.db.results import persist_if_enabled, save_waste_classification
from ecofarm.errors import PersistenceError
from ecofarm.middleware.rate_limit import RATE_LIMITS, get_limiter
from ecofarm.models.waste import WastePrediction
from ecofarm.services.image_validator import validate_image
from ecofarm.services.label_oracle import OracleProvider
from ecofarm.services.waste_analysis import analyze_waste_image

router = APIRouter(prefix="/api", tags=["waste"])
limiter = get_limiter()
logger = logging.getLogger(__name__)


def get_oracle_provider(request: Request) -> OracleProvider:
    """Return the oracle provider owned by the application."""
    provider: OracleProvider = request.app.state.oracle_provider
    return provider


@router.post(
    "/classify-waste",
    status_code=status.HTTP_201_CREATED,
    response_model=WastePrediction,
)
@limiter.limit(RATE_LIMITS["classify"])  # type: ignore[untyped-decorator]
async def classify_waste(
    request: Request,
    file: UploadFile = File(..., description="Photo of the waste item"),
) -> Response:
    """
    Classify a waste photo as organic, recyclable or hazardous.

    Returns:
        201: Classification report (X-Record-ID header when saved)
        400: Not an accepted image type, or empty file
        413: Image too large
        422: The oracle returned no labels
        503: Image-labeling oracle unavailable
    """
    settings = get_settings()
    image = await validate_image(file, settings.max_image_size_mb)

    prediction = await analyze_waste_image(
        get_oracle_provider(request),
        image.content,
        image.mime_type,
        top_k=settings.oracle_top_k,
        low_confidence_threshold=settings.low_confidence_threshold,
    )

    headers: Dict[str, str] = {
        "X-Waste-Type": prediction.predicted_waste_type.value,
        "X-Confidence": str(prediction.confidence),
    }

    try:
        record_id = await persist_if_enabled(
            save_waste_classification,
            prediction,
            {
                "file_name": image.filename,
                "file_hash": image.sha256,
                "file_size_bytes": len(image.content),
            },
        )
    except PersistenceError:
        logger.error(
            f"Unsaved classification for {image.sha256[:12]}: "
            f"{prediction.predicted_waste_type.value} at {prediction.confidence}%"
        )
        raise
    if record_id:
        headers["X-Record-ID"] = record_id

    return Response(
        content=prediction.model_dump_json(),
        media_type="application/json",
        status_code=status.HTTP_201_CREATED,
        headers=headers,
    )
