"""Configuration management for the EcoFarm assistant service.

Settings are loaded from environment variables (or a .env file) with
Pydantic Settings and validated at startup, so a missing API key or a
malformed database URL fails fast instead of on the first request.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All sensitive values (API keys, database credentials) must be
    provided via environment variables or .env file.
    """

    # Gemini (image-labeling oracle)
    gemini_api_key: str = Field(
        ...,
        description="Google Gemini API key used by the image-labeling oracle"
    )
    oracle_model_name: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model that labels waste images"
    )
    oracle_top_k: int = Field(
        default=5,
        ge=1,
        le=10,
        description="Number of ranked label guesses requested per image"
    )

    # Supabase
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anonymous key"
    )
    supabase_service_role_key: Optional[str] = Field(
        default=None,
        description="Service role key (bypasses RLS); preferred over supabase_key when set"
    )
    persist_results: bool = Field(
        default=True,
        description="Save every tool result to Supabase"
    )

    # Waste classification
    low_confidence_threshold: float = Field(
        default=60.0,
        ge=0.0,
        le=100.0,
        description="Confidence percentage below which a prediction is flagged as low confidence"
    )
    max_image_size_mb: int = Field(
        default=10,
        ge=1,
        description="Maximum accepted image upload size in megabytes"
    )

    # Weather (crop recommendation)
    openweather_api_key: Optional[str] = Field(
        default=None,
        description="OpenWeatherMap API key for crop recommendations"
    )
    openweather_base_url: str = Field(
        default="https://api.openweathermap.org/data/2.5",
        description="OpenWeatherMap API base URL"
    )
    weather_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Timeout for weather lookups"
    )

    # Remote classification service
    remote_api_base: Optional[str] = Field(
        default=None,
        description="Base URL of a remote service exposing /api/classify-waste"
    )
    remote_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for remote classification requests"
    )

    # Rate limiting
    trusted_proxies: str = Field(
        default="",
        description="Comma-separated proxy IPs allowed to set X-Forwarded-For"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("gemini_api_key")
    @classmethod
    def validate_gemini_api_key(cls, v: str) -> str:
        """Validate that GEMINI_API_KEY is present and non-empty."""
        if not v or not v.strip():
            raise ValueError(
                "GEMINI_API_KEY must be set in environment variables. "
                "Get your API key from https://ai.google.dev/"
            )
        return v.strip()

    @field_validator("supabase_url")
    @classmethod
    def validate_supabase_url(cls, v: str) -> str:
        """Validate that Supabase URL is present and properly formatted."""
        if not v or not v.strip():
            raise ValueError("SUPABASE_URL must be set in environment variables")

        url = v.strip()
        if not url.startswith("https://"):
            raise ValueError(
                "SUPABASE_URL must start with https:// "
                f"(got: {url[:20]}...)"
            )

        return url

    @field_validator("supabase_key")
    @classmethod
    def validate_supabase_key(cls, v: str) -> str:
        """Validate that Supabase key is present and non-empty."""
        if not v or not v.strip():
            raise ValueError("SUPABASE_KEY must be set in environment variables")
        return v.strip()

    @field_validator("remote_api_base", "openweather_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v.rstrip("/") or None


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings instance.

    Returns:
        Settings: Validated application settings

    Raises:
        ValueError: If required environment variables are missing or invalid
    """
    return Settings()
