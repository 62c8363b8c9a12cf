"""Turns an engine Decision into the client-facing WastePrediction report."""

from typing import Literal, Sequence

from ecofarm.models.waste import Category, Decision, LabelGuess, WastePrediction
from ecofarm.services.waste_classifier import to_percent

HIGH_CONFIDENCE_PERCENT = 80.0
MEDIUM_CONFIDENCE_PERCENT = 60.0

_STATUS = {
    Category.ORGANIC: "compostable",
    Category.RECYCLABLE: "recyclable",
    Category.HAZARDOUS: "hazardous",
}


def confidence_level(percent: float) -> Literal["High", "Medium", "Low"]:
    if percent >= HIGH_CONFIDENCE_PERCENT:
        return "High"
    if percent >= MEDIUM_CONFIDENCE_PERCENT:
        return "Medium"
    return "Low"


def disposal_message(decision: Decision) -> str:
    """One-line disposal instruction for the chosen category."""
    if decision.category is Category.ORGANIC:
        minerals = ", ".join(decision.minerals or [])
        return f"ORGANIC waste detected. Minerals after composting: {minerals}."
    if decision.category is Category.HAZARDOUS:
        return "HAZARDOUS waste detected. Do not compost; dispose safely."
    return "RECYCLABLE waste detected. Segregate and send to recycling."


def build_prediction(
    decision: Decision,
    guesses: Sequence[LabelGuess],
    low_confidence_threshold: float = MEDIUM_CONFIDENCE_PERCENT,
) -> WastePrediction:
    """Assemble the report for a decision.

    Args:
        decision: Engine output
        guesses: The guesses the decision was made from
        low_confidence_threshold: Percentage below which the result is flagged

    Returns:
        WastePrediction ready to serialize
    """
    percent = to_percent(decision.confidence)
    is_organic = decision.category is Category.ORGANIC

    return WastePrediction(
        predicted_waste_type=decision.category,
        confidence=percent,
        confidence_level=confidence_level(percent),
        low_confidence=percent < low_confidence_threshold,
        explanation=list(decision.rationale),
        status=_STATUS[decision.category],
        message=disposal_message(decision),
        minerals=decision.minerals if is_organic else None,
        manure_guidance=[decision.guidance] if is_organic and decision.guidance else None,
        top_guesses=list(guesses),
    )
