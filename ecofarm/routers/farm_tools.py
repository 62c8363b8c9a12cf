"""
Farm calculator API endpoints.

- POST /api/carbon-footprint
- POST /api/profit
- POST /api/crop-recommend
"""

from typing import Dict, Optional

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel

from ecofarm.config import get_settings
from ecofarm.db.results import (
    persist_if_enabled,
    save_carbon_footprint,
    save_crop_recommendation,
    save_profit_estimate,
)
from ecofarm.middleware.rate_limit import RATE_LIMITS, get_limiter
from ecofarm.models.farm import (
    CarbonRequest,
    CarbonResult,
    CropRequest,
    CropResult,
    ProfitRequest,
    ProfitResult,
)
from ecofarm.services.carbon_calculator import estimate_carbon_footprint
from ecofarm.services.crop_recommender import build_crop_recommendation
from ecofarm.services.profit_calculator import estimate_profit

router = APIRouter(prefix="/api", tags=["farm-tools"])
limiter = get_limiter()


def _created(result: BaseModel, record_id: Optional[str]) -> Response:
    headers: Dict[str, str] = {}
    if record_id:
        headers["X-Record-ID"] = record_id
    return Response(
        content=result.model_dump_json(),
        media_type="application/json",
        status_code=status.HTTP_201_CREATED,
        headers=headers,
    )


@router.post("/carbon-footprint", status_code=status.HTTP_201_CREATED, response_model=CarbonResult)
@limiter.limit(RATE_LIMITS["calculator"])  # type: ignore[untyped-decorator]
async def carbon_footprint(request: Request, payload: CarbonRequest) -> Response:
    """Estimate CO2e emissions from fertilizer (kg), diesel (L) and electricity (kWh)."""
    result = estimate_carbon_footprint(payload)
    record_id = await persist_if_enabled(save_carbon_footprint, payload, result)
    return _created(result, record_id)


@router.post("/profit", status_code=status.HTTP_201_CREATED, response_model=ProfitResult)
@limiter.limit(RATE_LIMITS["calculator"])  # type: ignore[untyped-decorator]
async def profit(request: Request, payload: ProfitRequest) -> Response:
    """Estimate season cost, income and profit."""
    result = estimate_profit(payload)
    record_id = await persist_if_enabled(save_profit_estimate, payload, result)
    return _created(result, record_id)


@router.post("/crop-recommend", status_code=status.HTTP_201_CREATED, response_model=CropResult)
@limiter.limit(RATE_LIMITS["crop"])  # type: ignore[untyped-decorator]
async def crop_recommend(request: Request, payload: CropRequest) -> Response:
    """
    Recommend crops for a location, soil type and season.

    Returns:
        201: Weather snapshot, ranked crops and explanation
        404: Location not found by the weather service
        502: Weather service error
        503: Weather service not configured
    """
    result = await build_crop_recommendation(payload, get_settings())
    record_id = await persist_if_enabled(save_crop_recommendation, payload, result)
    return _created(result, record_id)
