"""Database functions for storing tool results in Supabase.

One table per tool:
- waste_classifications
- carbon_footprints
- profit_estimates
- crop_recommendations
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from supabase import Client

from ecofarm.config import get_settings
from ecofarm.db.supabase_client import get_supabase_client
from ecofarm.errors import PersistenceError
from ecofarm.models.farm import (
    CarbonRequest,
    CarbonResult,
    CropRequest,
    CropResult,
    ProfitRequest,
    ProfitResult,
)
from ecofarm.models.waste import WastePrediction

logger = logging.getLogger(__name__)

WASTE_TABLE = "waste_classifications"
CARBON_TABLE = "carbon_footprints"
PROFIT_TABLE = "profit_estimates"
CROP_TABLE = "crop_recommendations"


async def _insert(client: Client, table: str, record: Dict[str, Any]) -> str:
    """Insert one row and return its id.

    Raises:
        PersistenceError: If the insert fails or returns no row
    """
    try:
        response = await asyncio.to_thread(
            lambda: client.table(table).insert(record).execute()
        )
    except Exception as e:
        logger.error(f"Insert into {table} failed: {type(e).__name__}: {e}")
        raise PersistenceError(f"Failed to save result to {table}: {str(e)}") from e

    if not response.data or len(response.data) == 0:
        raise PersistenceError(f"Insert into {table} returned no data")
    return str(response.data[0]["id"])


async def save_waste_classification(
    client: Client,
    prediction: WastePrediction,
    file_info: Dict[str, Any],
) -> str:
    """Store a waste classification report.

    Args:
        client: Supabase client instance
        prediction: Report returned to the user
        file_info: Upload metadata with keys file_name, file_hash and
            file_size_bytes

    Returns:
        str: UUID of the created record

    Raises:
        ValueError: If required file_info fields are missing
        PersistenceError: If the insert fails
    """
    required_fields = ["file_name", "file_hash", "file_size_bytes"]
    missing = [f for f in required_fields if f not in file_info]
    if missing:
        raise ValueError(f"Missing required file_info fields: {', '.join(missing)}")

    record = {
        "file_name": file_info["file_name"],
        "file_hash": file_info["file_hash"],
        "file_size_bytes": file_info["file_size_bytes"],
        "waste_type": prediction.predicted_waste_type.value,
        "confidence": prediction.confidence,
        "status": prediction.status,
        "message": prediction.message,
        "explanation": prediction.explanation,
        "top_guesses": [g.model_dump() for g in prediction.top_guesses],
        "minerals": prediction.minerals,
        "manure_guidance": (
            [g.model_dump() for g in prediction.manure_guidance]
            if prediction.manure_guidance
            else None
        ),
    }
    return await _insert(client, WASTE_TABLE, record)


async def save_carbon_footprint(
    client: Client, request: CarbonRequest, result: CarbonResult
) -> str:
    record = {**request.model_dump(), **result.model_dump()}
    return await _insert(client, CARBON_TABLE, record)


async def save_profit_estimate(
    client: Client, request: ProfitRequest, result: ProfitResult
) -> str:
    record = {**request.model_dump(by_alias=False), **result.model_dump()}
    return await _insert(client, PROFIT_TABLE, record)


async def save_crop_recommendation(
    client: Client, request: CropRequest, result: CropResult
) -> str:
    record = {**request.model_dump(), **result.model_dump()}
    return await _insert(client, CROP_TABLE, record)


async def get_result(client: Client, table: str, record_id: str) -> Optional[Dict[str, Any]]:
    """Fetch a stored result by id, or None if it does not exist."""
    try:
        response = await asyncio.to_thread(
            lambda: client.table(table).select("*").eq("id", record_id).limit(1).execute()
        )
    except Exception as e:
        raise PersistenceError(f"Failed to read {table}/{record_id}: {str(e)}") from e

    if not response.data:
        return None
    return dict(response.data[0])


async def persist_if_enabled(save: Callable[..., Awaitable[str]], *args: Any) -> Optional[str]:
    """Run a save_* function when PERSIST_RESULTS is on.

    Returns:
        The new record id, or None when persistence is disabled

    Raises:
        PersistenceError: If the client cannot be created or the insert fails
    """
    if not get_settings().persist_results:
        return None

    try:
        client = get_supabase_client()
    except ValueError as e:
        raise PersistenceError(str(e)) from e
    return await save(client, *args)
