"""Keyword-scored waste category decision engine.

Maps the ranked label guesses of an image-labeling oracle to exactly one of
three categories (organic, recyclable, hazardous), a display confidence and a
short rationale:

1. Hazardous keyword score (checked first; safety wins ties)
2. Organic keyword score
3. Recyclable fallback (no keyword evidence required)

The engine is a pure function of its input and the keyword tables. It does
not sort the guesses; callers must pass them highest probability first.
"""

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

from ecofarm.errors import EmptyInputError
from ecofarm.models.waste import Category, Decision, LabelGuess, ManureGuidance


# ---------------------------------------------------------------------------
# Keyword tables
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class KeywordSet:
    """Lowercase substrings that count as evidence for a category."""

    organic_keywords: Tuple[str, ...]
    hazardous_keywords: Tuple[str, ...]


DEFAULT_KEYWORDS = KeywordSet(
    organic_keywords=(
        "banana",
        "apple",
        "orange",
        "lemon",
        "potato",
        "carrot",
        "tomato",
        "vegetable",
        "fruit",
        "leaf",
        "plant",
        "food",
        "peel",
        "bread",
        "rice",
    ),
    hazardous_keywords=(
        "battery",
        "chemical",
        "medicine",
        "pill",
        "syringe",
        "needle",
        "paint",
        "pesticide",
        "herbicide",
        "solvent",
    ),
)


# ---------------------------------------------------------------------------
# Organic side data (static lookup, attached to organic decisions only)
# ---------------------------------------------------------------------------

ORGANIC_MINERALS: Tuple[str, ...] = (
    "N (Nitrogen)",
    "P (Phosphorus)",
    "K (Potassium)",
    "Ca (Calcium)",
    "Mg (Magnesium)",
    "S (Sulfur)",
    "Fe (Iron)",
    "Zn (Zinc)",
    "Mn (Manganese)",
    "Cu (Copper)",
)

ORGANIC_GUIDANCE = ManureGuidance(
    waste_name="Kitchen/Garden Organic Waste",
    compost_method="Aerated pile or vermicomposting",
    preparation_time="45–60 days",
    nutrients="NPK + secondary and micronutrients (varies by waste).",
    suitable_crops="Tomato, Chili, Brinjal, Onion, Leafy greens",
)


# ---------------------------------------------------------------------------
# Scoring constants
# ---------------------------------------------------------------------------

MIN_LABEL_PROBABILITY = 0.08  # guesses below this never count as evidence
MIN_CATEGORY_SCORE = 0.12

SCORE_WEIGHT = 0.6
TOP_WEIGHT = 0.4

FALLBACK_TOP_WEIGHT = 0.7
FALLBACK_PRIOR_WEIGHT = 0.3
FALLBACK_PRIOR = 0.5

HAZARDOUS_REASON = "Matched hazardous keywords in top predictions."
ORGANIC_REASON = "Matched organic keywords in top predictions."
FALLBACK_REASON = "No organic/hazardous signal, classified as recyclable."

TOP_GUESSES_SHOWN = 3
GUESS_SEPARATOR = " | "


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def to_percent(confidence: float) -> float:
    """Express a 0..1 confidence as a percentage with one decimal place."""
    return _round_half_up(confidence * 1000) / 10


def contains_keyword(label: str, keywords: Sequence[str]) -> bool:
    """Case-insensitive substring match of any keyword inside label."""
    lower = label.lower()
    return any(kw in lower for kw in keywords)


def keyword_score(guesses: Sequence[LabelGuess], keywords: Sequence[str]) -> float:
    """Sum the probabilities of confident guesses whose label matches a keyword."""
    return sum(
        g.probability
        for g in guesses
        if g.probability >= MIN_LABEL_PROBABILITY and contains_keyword(g.label, keywords)
    )


def format_top_guesses(guesses: Sequence[LabelGuess]) -> str:
    """Render the first three guesses as 'label (NN%) | ...'."""
    return GUESS_SEPARATOR.join(
        f"{g.label} ({_round_half_up(g.probability * 100)}%)"
        for g in guesses[:TOP_GUESSES_SHOWN]
    )


# ---------------------------------------------------------------------------
# Decision rule
# ---------------------------------------------------------------------------

def decide(
    guesses: Sequence[LabelGuess],
    keywords: KeywordSet = DEFAULT_KEYWORDS,
) -> Decision:
    """Choose a waste category for a ranked list of label guesses.

    Args:
        guesses: Oracle guesses, highest probability first.
        keywords: Keyword tables used for evidence scoring.

    Returns:
        Decision with category, confidence (0..1) and rationale lines. Organic
        decisions also carry the minerals list and composting guidance.

    Raises:
        EmptyInputError: If guesses is empty.
    """
    if not guesses:
        raise EmptyInputError()

    top = guesses[0]
    organic_score = keyword_score(guesses, keywords.organic_keywords)
    hazardous_score = keyword_score(guesses, keywords.hazardous_keywords)

    if hazardous_score >= MIN_CATEGORY_SCORE:
        category = Category.HAZARDOUS
        confidence = min(1.0, SCORE_WEIGHT * hazardous_score + TOP_WEIGHT * top.probability)
        reason = HAZARDOUS_REASON
    elif organic_score >= MIN_CATEGORY_SCORE:
        category = Category.ORGANIC
        confidence = min(1.0, SCORE_WEIGHT * organic_score + TOP_WEIGHT * top.probability)
        reason = ORGANIC_REASON
    else:
        category = Category.RECYCLABLE
        confidence = min(
            1.0,
            FALLBACK_TOP_WEIGHT * top.probability + FALLBACK_PRIOR_WEIGHT * FALLBACK_PRIOR,
        )
        reason = FALLBACK_REASON

    rationale = [
        f"Waste type: {category.value} ({to_percent(confidence)}%)",
        f"Decision: {reason}",
        f"Top-3 model guesses: {format_top_guesses(guesses)}",
    ]

    if category is Category.ORGANIC:
        return Decision(
            category=category,
            confidence=confidence,
            rationale=rationale,
            minerals=list(ORGANIC_MINERALS),
            guidance=ORGANIC_GUIDANCE.model_copy(),
        )

    return Decision(category=category, confidence=confidence, rationale=rationale)
