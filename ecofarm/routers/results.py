"""
Stored result retrieval.

GET /api/results/{tool}/{record_id} returns a previously saved tool result.
"""

from typing import Any, Dict
from uuid import UUID

from fastapi import APIRouter, HTTPException, Request, status

from ecofarm.db.results import (
    CARBON_TABLE,
    CROP_TABLE,
    PROFIT_TABLE,
    WASTE_TABLE,
    get_result,
)
from ecofarm.db.supabase_client import get_supabase_client
from ecofarm.errors import PersistenceError
from ecofarm.middleware.rate_limit import RATE_LIMITS, get_limiter

router = APIRouter(prefix="/api/results", tags=["results"])
limiter = get_limiter()

TOOL_TABLES = {
    "waste": WASTE_TABLE,
    "carbon": CARBON_TABLE,
    "profit": PROFIT_TABLE,
    "crop": CROP_TABLE,
}


@router.get("/{tool}/{record_id}")
@limiter.limit(RATE_LIMITS["results"])  # type: ignore[untyped-decorator]
async def read_result(request: Request, tool: str, record_id: UUID) -> Dict[str, Any]:
    """
    Fetch a saved result.

    Returns:
        200: Stored record
        404: Unknown tool or record not found
    """
    table = TOOL_TABLES.get(tool)
    if table is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown tool '{tool}'. Must be one of: {', '.join(TOOL_TABLES)}",
        )

    try:
        client = get_supabase_client()
    except ValueError as e:
        raise PersistenceError(str(e)) from e

    record = await get_result(client, table, str(record_id))
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No {tool} result with id {record_id}",
        )
    return record
