"""Pydantic models for the carbon, profit and crop recommendation tools."""

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# =============================================================================
# CARBON FOOTPRINT
# =============================================================================

class CarbonRequest(BaseModel):
    """Monthly farm inputs used to estimate emissions."""

    fertilizer: float = Field(default=0.0, ge=0, description="Fertilizer used (kg)")
    diesel: float = Field(default=0.0, ge=0, description="Diesel burned (litres)")
    electricity: float = Field(default=0.0, ge=0, description="Electricity used (kWh)")

    @model_validator(mode="after")
    def require_any_value(self) -> "CarbonRequest":
        if self.fertilizer == 0 and self.diesel == 0 and self.electricity == 0:
            raise ValueError("Please enter at least one value")
        return self


class CarbonResult(BaseModel):
    """Estimated emissions in kg CO2e."""

    total_co2: float
    status: Literal["Low", "Medium", "High"]
    suggestions: List[str] = Field(default_factory=list)
    fertilizer_co2: float = 0.0
    diesel_co2: float = 0.0
    electricity_co2: float = 0.0


# =============================================================================
# PROFIT ESTIMATION
# =============================================================================

class ProfitRequest(BaseModel):
    """Season costs and expected income.

    Accepts the camelCase names sent by the web client as well as snake_case.
    """

    model_config = ConfigDict(populate_by_name=True)

    seed_cost: float = Field(default=0.0, ge=0, alias="seedCost")
    fertilizer_cost: float = Field(default=0.0, ge=0, alias="fertilizerCost")
    labor_cost: float = Field(default=0.0, ge=0, alias="laborCost")
    water_cost: float = Field(default=0.0, ge=0, alias="waterCost")
    expected_income: float = Field(default=0.0, ge=0, alias="expectedIncome")

    @model_validator(mode="after")
    def require_any_value(self) -> "ProfitRequest":
        values = (
            self.seed_cost,
            self.fertilizer_cost,
            self.labor_cost,
            self.water_cost,
            self.expected_income,
        )
        if not any(values):
            raise ValueError("Please enter some values")
        return self


class ProfitResult(BaseModel):
    total_cost: float
    total_income: float
    profit: float
    profit_margin: float = Field(description="Profit as a percentage of income")
    status: Literal["Profitable", "Break-even", "Loss"]


# =============================================================================
# CROP RECOMMENDATION
# =============================================================================

SoilType = Literal["loamy", "sandy", "clay"]
Season = Literal["kharif", "rabi", "summer"]


class CropRequest(BaseModel):
    location: str = Field(min_length=1, max_length=120, description="City or town name")
    soil: SoilType
    season: Season

    @field_validator("location")
    @classmethod
    def validate_location(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("location must not be blank")
        return v

    @field_validator("soil", "season", mode="before")
    @classmethod
    def lowercase_choice(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower()
        return v


class WeatherSnapshot(BaseModel):
    """Current weather for a location."""

    temperature: float = Field(description="Temperature in degrees Celsius")
    humidity: float = Field(description="Relative humidity (%)")
    rainfall: float = Field(default=0.0, description="Rain in the last hour (mm)")
    weather_icon: str = ""
    weather_desc: str = ""


class CropResult(BaseModel):
    temperature: float
    rainfall: float
    humidity: float
    weather_icon: str
    weather_desc: str
    recommended_crops: List[str]
    explanation: List[str]
