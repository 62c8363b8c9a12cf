"""Current weather lookup via the OpenWeatherMap API."""

import logging
from typing import Any, Dict, Optional

import httpx

from ecofarm.config import Settings, get_settings
from ecofarm.errors import WeatherLookupError
from ecofarm.models.farm import WeatherSnapshot
from ecofarm.utils.retry import retry_with_backoff

logger = logging.getLogger(__name__)

# httpx logs each request URL at INFO, and the URL carries the appid key
logging.getLogger("httpx").setLevel(logging.WARNING)


@retry_with_backoff(retryable_exceptions=(httpx.TransportError,))
async def _fetch_current_weather(
    base_url: str, api_key: str, location: str, timeout_seconds: float
) -> Dict[str, Any]:
    async with httpx.AsyncClient(timeout=timeout_seconds) as client:
        response = await client.get(
            f"{base_url}/weather",
            params={"q": location, "appid": api_key, "units": "metric"},
        )
        response.raise_for_status()
        data: Dict[str, Any] = response.json()
        return data


def parse_weather(data: Dict[str, Any]) -> WeatherSnapshot:
    """Map an OpenWeatherMap current-weather payload to a WeatherSnapshot."""
    main = data.get("main") or {}
    weather = (data.get("weather") or [{}])[0]
    rain = data.get("rain") or {}

    return WeatherSnapshot(
        temperature=round(float(main["temp"]), 1),
        humidity=float(main.get("humidity", 0)),
        rainfall=float(rain.get("1h", 0.0)),
        weather_icon=str(weather.get("icon", "")),
        weather_desc=str(weather.get("description", "")),
    )


async def get_current_weather(
    location: str, settings: Optional[Settings] = None
) -> WeatherSnapshot:
    """Fetch current weather for a city.

    Raises:
        WeatherLookupError: 503 when no API key is configured, 404 for an
            unknown location, 502 for any other upstream failure.
    """
    settings = settings or get_settings()
    if not settings.openweather_api_key:
        raise WeatherLookupError("Weather service is not configured", status_code=503)

    try:
        data = await _fetch_current_weather(
            settings.openweather_base_url,
            settings.openweather_api_key,
            location,
            settings.weather_timeout_seconds,
        )
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            raise WeatherLookupError(f"Location not found: {location}", status_code=404) from e
        logger.error(f"Weather lookup failed for {location!r}: HTTP {e.response.status_code}")
        raise WeatherLookupError("Weather service returned an error") from e
    except httpx.HTTPError as e:
        logger.error(f"Weather lookup failed for {location!r}: {type(e).__name__}")
        raise WeatherLookupError("Weather service is unreachable") from e

    try:
        snapshot = parse_weather(data)
    except (KeyError, TypeError, ValueError) as e:
        raise WeatherLookupError("Weather service returned an unexpected response") from e

    logger.info(
        f"Weather for {location!r}: {snapshot.temperature}C, "
        f"humidity={snapshot.humidity}%, rain={snapshot.rainfall}mm"
    )
    return snapshot
