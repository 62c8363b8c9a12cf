"""Pydantic models for waste image classification.

Covers the oracle's ranked label guesses, the decision engine's output and
the report returned to clients by POST /api/classify-waste.
"""

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class Category(str, Enum):
    """Mutually exclusive waste categories."""

    ORGANIC = "organic"
    RECYCLABLE = "recyclable"
    HAZARDOUS = "hazardous"


class LabelGuess(BaseModel):
    """One candidate label produced by the image-labeling oracle."""

    label: str = Field(description="Free-text label, e.g. 'banana' or 'plastic bottle'")
    probability: float = Field(description="Oracle probability for this label (0.0 to 1.0)")


class ManureGuidance(BaseModel):
    """Composting guidance attached to organic waste results."""

    waste_name: str
    compost_method: str
    preparation_time: str
    nutrients: str
    suitable_crops: str


class Decision(BaseModel):
    """Output of the waste-category decision engine."""

    category: Category = Field(description="Chosen waste category")
    confidence: float = Field(
        description="Derived display score (0.0 to 1.0), not a calibrated probability"
    )
    rationale: List[str] = Field(
        default_factory=list,
        description="Human-readable explanation lines, in display order"
    )
    minerals: Optional[List[str]] = Field(
        default=None,
        description="Minerals/nutrients after composting (organic only)"
    )
    guidance: Optional[ManureGuidance] = Field(
        default=None,
        description="Composting guidance (organic only)"
    )


class WastePrediction(BaseModel):
    """Waste classification report returned to clients.

    The remote classification client parses responses into this model too,
    so every field a compatible server may omit has a default.
    """

    predicted_waste_type: Category
    confidence: float = Field(description="Confidence as a percentage with one decimal")
    confidence_level: Literal["High", "Medium", "Low"] = "Low"
    low_confidence: bool = False
    explanation: List[str] = Field(default_factory=list)
    status: str
    message: str
    minerals: Optional[List[str]] = None
    manure_guidance: Optional[List[ManureGuidance]] = None
    top_guesses: List[LabelGuess] = Field(default_factory=list)
