"""Soil, season and weather based crop recommendation.

Candidates come from a static soil x season table; current weather then
re-ranks them (heat first, then wet conditions). Ordering is otherwise
stable so identical inputs always give identical lists.
"""

from typing import Dict, List, Optional, Tuple

from ecofarm.config import Settings
from ecofarm.models.farm import CropRequest, CropResult, WeatherSnapshot
from ecofarm.services.weather_client import get_current_weather

CROP_TABLE: Dict[str, Dict[str, Tuple[str, ...]]] = {
    "loamy": {
        "kharif": ("Rice", "Maize", "Cotton", "Soybean", "Pigeon Pea"),
        "rabi": ("Wheat", "Mustard", "Chickpea", "Potato", "Pea"),
        "summer": ("Watermelon", "Cucumber", "Moong", "Maize", "Okra"),
    },
    "sandy": {
        "kharif": ("Groundnut", "Pearl Millet", "Moong", "Sesame", "Cluster Bean"),
        "rabi": ("Barley", "Mustard", "Chickpea", "Cumin"),
        "summer": ("Watermelon", "Muskmelon", "Groundnut", "Pearl Millet"),
    },
    "clay": {
        "kharif": ("Rice", "Sugarcane", "Jute", "Soybean"),
        "rabi": ("Wheat", "Lentil", "Linseed", "Chickpea"),
        "summer": ("Sugarcane", "Rice", "Sunflower", "Okra"),
    },
}

SOIL_NOTES = {
    "loamy": "Loamy soil holds moisture and nutrients well and suits most crops.",
    "sandy": "Sandy soil drains quickly, favouring drought-hardy crops like groundnut and millets.",
    "clay": "Clay soil retains water, which suits rice, sugarcane and other water-loving crops.",
}

SEASON_NOTES = {
    "kharif": "Kharif (Jun-Oct) crops are sown with the monsoon rains.",
    "rabi": "Rabi (Nov-Apr) crops grow through the cool, dry winter.",
    "summer": "Summer (Mar-May) crops need heat tolerance or assured irrigation.",
}

HEAT_TOLERANT = frozenset({
    "Pearl Millet", "Sorghum", "Cotton", "Groundnut", "Sesame", "Cluster Bean",
    "Watermelon", "Muskmelon", "Okra", "Sunflower", "Moong",
})
WATER_LOVING = frozenset({"Rice", "Sugarcane", "Jute", "Taro"})

HOT_TEMPERATURE_C = 35.0
WET_RAINFALL_MM = 5.0
HUMID_PERCENT = 80.0


def _prioritize(crops: List[str], preferred: frozenset) -> List[str]:
    return [c for c in crops if c in preferred] + [c for c in crops if c not in preferred]


def recommend_crops(
    soil: str, season: str, weather: WeatherSnapshot
) -> Tuple[List[str], List[str]]:
    """Rank candidate crops for a soil, season and current weather.

    Returns:
        (recommended_crops, explanation)
    """
    crops = list(CROP_TABLE[soil][season])
    explanation = [
        SOIL_NOTES[soil],
        SEASON_NOTES[season],
        (
            f"Current weather: {weather.temperature}°C, {weather.humidity:g}% humidity, "
            f"{weather.rainfall:g}mm rain ({weather.weather_desc or 'n/a'})."
        ),
    ]

    if weather.temperature >= HOT_TEMPERATURE_C:
        crops = _prioritize(crops, HEAT_TOLERANT)
        explanation.append("High temperature: heat-tolerant crops are ranked first.")
    elif weather.rainfall > WET_RAINFALL_MM or weather.humidity >= HUMID_PERCENT:
        crops = _prioritize(crops, WATER_LOVING)
        explanation.append("Wet, humid conditions: water-loving crops are ranked first.")

    return crops, explanation


async def build_crop_recommendation(
    request: CropRequest, settings: Optional[Settings] = None
) -> CropResult:
    """Look up current weather for the location and recommend crops.

    Raises:
        WeatherLookupError: If the weather lookup fails.
    """
    weather = await get_current_weather(request.location, settings)
    crops, explanation = recommend_crops(request.soil, request.season, weather)

    return CropResult(
        temperature=weather.temperature,
        rainfall=weather.rainfall,
        humidity=weather.humidity,
        weather_icon=weather.weather_icon,
        weather_desc=weather.weather_desc,
        recommended_crops=crops,
        explanation=explanation,
    )
