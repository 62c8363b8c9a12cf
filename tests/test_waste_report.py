"""Tests for building the client-facing waste report."""

import pytest

from ecofarm.models.waste import Category, Decision, LabelGuess
from ecofarm.services.waste_classifier import ORGANIC_MINERALS, decide
from ecofarm.services.waste_report import build_prediction, confidence_level, disposal_message


def _guesses(*pairs):
    return [LabelGuess(label=label, probability=p) for label, p in pairs]


@pytest.mark.parametrize("percent,level", [
    (100.0, "High"),
    (80.0, "High"),
    (79.9, "Medium"),
    (60.0, "Medium"),
    (59.9, "Low"),
    (0.0, "Low"),
])
def test_confidence_level(percent, level):
    assert confidence_level(percent) == level


def test_organic_report():
    guesses = _guesses(("banana", 0.9), ("plate", 0.05))
    prediction = build_prediction(decide(guesses), guesses)

    assert prediction.predicted_waste_type is Category.ORGANIC
    assert prediction.confidence == 90.0
    assert prediction.confidence_level == "High"
    assert prediction.low_confidence is False
    assert prediction.status == "compostable"
    assert prediction.message.startswith("ORGANIC waste detected. Minerals after composting: N (Nitrogen), ")
    assert prediction.minerals == list(ORGANIC_MINERALS)
    assert prediction.manure_guidance is not None
    assert len(prediction.manure_guidance) == 1
    assert prediction.manure_guidance[0].waste_name == "Kitchen/Garden Organic Waste"
    assert prediction.top_guesses == guesses
    assert len(prediction.explanation) == 3


def test_hazardous_report():
    guesses = _guesses(("battery", 0.5), ("banana peel", 0.4))
    prediction = build_prediction(decide(guesses), guesses)

    assert prediction.status == "hazardous"
    assert prediction.message == "HAZARDOUS waste detected. Do not compost; dispose safely."
    assert prediction.confidence == 50.0
    assert prediction.confidence_level == "Low"
    assert prediction.low_confidence is True
    assert prediction.minerals is None
    assert prediction.manure_guidance is None


def test_recyclable_report():
    guesses = _guesses(("plastic bottle", 0.95))
    prediction = build_prediction(decide(guesses), guesses)

    assert prediction.status == "recyclable"
    assert prediction.message == "RECYCLABLE waste detected. Segregate and send to recycling."
    assert prediction.confidence == 81.5
    assert prediction.confidence_level == "High"


def test_low_confidence_threshold_is_configurable():
    guesses = _guesses(("plastic bottle", 0.95))
    prediction = build_prediction(decide(guesses), guesses, low_confidence_threshold=90.0)

    assert prediction.low_confidence is True


def test_disposal_message_for_organic_without_minerals():
    decision = Decision(category=Category.ORGANIC, confidence=0.7, rationale=[])
    assert disposal_message(decision) == "ORGANIC waste detected. Minerals after composting: ."
