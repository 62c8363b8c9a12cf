"""Tests for soil/season/weather crop recommendation."""

from unittest.mock import AsyncMock, patch

import pytest
from pydantic import ValidationError

from ecofarm.errors import WeatherLookupError
from ecofarm.models.farm import CropRequest, WeatherSnapshot
from ecofarm.services.crop_recommender import (
    CROP_TABLE,
    build_crop_recommendation,
    recommend_crops,
)


def weather(temperature=25.0, humidity=60.0, rainfall=0.0, desc="clear sky"):
    return WeatherSnapshot(
        temperature=temperature,
        humidity=humidity,
        rainfall=rainfall,
        weather_icon="01d",
        weather_desc=desc,
    )


class TestRecommendCrops:

    def test_mild_weather_keeps_table_order(self):
        crops, explanation = recommend_crops("loamy", "kharif", weather())

        assert crops == ["Rice", "Maize", "Cotton", "Soybean", "Pigeon Pea"]
        assert len(explanation) == 3
        assert explanation[0].startswith("Loamy soil")
        assert explanation[1].startswith("Kharif")
        assert explanation[2] == "Current weather: 25.0°C, 60% humidity, 0mm rain (clear sky)."

    def test_heat_ranks_heat_tolerant_first(self):
        crops, explanation = recommend_crops("clay", "summer", weather(temperature=38))

        assert crops == ["Sunflower", "Okra", "Sugarcane", "Rice"]
        assert explanation[-1] == "High temperature: heat-tolerant crops are ranked first."

    def test_wet_weather_ranks_water_loving_first(self):
        crops, explanation = recommend_crops("loamy", "kharif", weather(rainfall=12.0))

        assert crops[0] == "Rice"
        assert explanation[-1] == "Wet, humid conditions: water-loving crops are ranked first."

    def test_heat_takes_precedence_over_humidity(self):
        _, explanation = recommend_crops("clay", "kharif", weather(temperature=36, humidity=90))

        assert len(explanation) == 4
        assert explanation[-1].startswith("High temperature")

    def test_every_soil_and_season_has_candidates(self):
        for soil, seasons in CROP_TABLE.items():
            for season in ("kharif", "rabi", "summer"):
                crops, _ = recommend_crops(soil, season, weather())
                assert crops
                assert len(crops) == len(set(crops))
                assert set(crops) == set(seasons[season])

    def test_deterministic(self):
        snapshot = weather(temperature=36)
        assert recommend_crops("sandy", "summer", snapshot) == recommend_crops("sandy", "summer", snapshot)


class TestCropRequest:

    def test_choices_are_normalized(self):
        request = CropRequest(location="  Nashik ", soil="Loamy", season=" RABI")

        assert request.location == "Nashik"
        assert request.soil == "loamy"
        assert request.season == "rabi"

    def test_blank_location_rejected(self):
        with pytest.raises(ValidationError):
            CropRequest(location="   ", soil="loamy", season="rabi")

    def test_unknown_soil_rejected(self):
        with pytest.raises(ValidationError):
            CropRequest(location="Nashik", soil="peat", season="rabi")


class TestBuildCropRecommendation:

    @pytest.mark.asyncio
    async def test_combines_weather_and_crops(self):
        request = CropRequest(location="Nashik", soil="sandy", season="kharif")

        with patch(
            "ecofarm.services.crop_recommender.get_current_weather",
            new_callable=AsyncMock,
            return_value=weather(temperature=30.2, humidity=55, rainfall=0.4, desc="haze"),
        ) as mock_weather:
            result = await build_crop_recommendation(request)

        mock_weather.assert_awaited_once_with("Nashik", None)
        assert result.temperature == 30.2
        assert result.humidity == 55
        assert result.rainfall == 0.4
        assert result.weather_desc == "haze"
        assert result.recommended_crops == list(CROP_TABLE["sandy"]["kharif"])
        assert len(result.explanation) == 3

    @pytest.mark.asyncio
    async def test_weather_errors_propagate(self):
        request = CropRequest(location="Atlantis", soil="clay", season="rabi")

        with patch(
            "ecofarm.services.crop_recommender.get_current_weather",
            new_callable=AsyncMock,
            side_effect=WeatherLookupError("Location not found: Atlantis", status_code=404),
        ):
            with pytest.raises(WeatherLookupError):
                await build_crop_recommendation(request)
