"""End-to-end waste image analysis: oracle, decision engine, report."""

import logging

from ecofarm.errors import OracleUnavailableError
from ecofarm.models.waste import WastePrediction
from ecofarm.services.label_oracle import OracleProvider
from ecofarm.services.waste_classifier import decide
from ecofarm.services.waste_report import build_prediction

logger = logging.getLogger(__name__)


async def analyze_waste_image(
    provider: OracleProvider,
    image: bytes,
    mime_type: str,
    top_k: int = 5,
    low_confidence_threshold: float = 60.0,
) -> WastePrediction:
    """Label an image and classify it into a waste category.

    Args:
        provider: Handle to the image-labeling oracle
        image: Raw image bytes
        mime_type: MIME type of the image
        top_k: Number of guesses to request from the oracle
        low_confidence_threshold: Percentage below which the result is flagged

    Returns:
        WastePrediction report

    Raises:
        OracleUnavailableError: If the oracle cannot be loaded or fails to
            label the image. A labeling failure invalidates the provider.
        EmptyInputError: If the oracle returned no guesses.
    """
    oracle = await provider.acquire()

    try:
        guesses = await oracle.classify(image, mime_type, top_k)
    except OracleUnavailableError:
        provider.invalidate()
        raise
    except Exception as e:
        provider.invalidate()
        raise OracleUnavailableError(f"Image labeling failed: {e}", e) from e

    decision = decide(guesses)
    logger.info(
        f"Classified image as {decision.category.value} "
        f"(confidence={decision.confidence:.3f}, guesses={len(guesses)})"
    )
    return build_prediction(decision, guesses, low_confidence_threshold)
