"""FastAPI application for the EcoFarm assistant service."""

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Union

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded  # type: ignore[import-not-found]

from ecofarm.config import get_settings
from ecofarm.db.results import WASTE_TABLE
from ecofarm.db.supabase_client import get_supabase_client
from ecofarm.errors import (
    EmptyInputError,
    NetworkError,
    OracleUnavailableError,
    PersistenceError,
    WeatherLookupError,
)
from ecofarm.middleware.logging import RequestLoggingMiddleware, get_request_id
from ecofarm.middleware.rate_limit import get_limiter, rate_limit_exceeded_handler
from ecofarm.routers import farm_tools, results, waste
from ecofarm.services.gemini_client import get_gemini_client
from ecofarm.services.label_oracle import OracleProvider, load_gemini_oracle

VERSION = "1.0.0"
COMMIT_HASH = "development"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Validate configuration on startup; the oracle itself loads lazily."""
    try:
        settings = get_settings()
        logger.info(f"Starting EcoFarm API v{VERSION}")
        logger.info(f"Oracle model: {settings.oracle_model_name} (top_k={settings.oracle_top_k})")
        logger.info(f"Persist results: {settings.persist_results}")
        logger.info("Environment validation: OK")
    except Exception as e:
        logger.error(f"Startup validation failed: {e}")
        raise

    yield

    logger.info("Shutting down EcoFarm API")


app = FastAPI(
    title="EcoFarm Assistant API",
    description="Waste classification, carbon footprint, profit and crop recommendation tools for farmers",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Owned by the app, not a module global, so tests can swap it
app.state.oracle_provider = OracleProvider(load_gemini_oracle)

limiter = get_limiter()
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this to the web client's origin
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Error mapping
# =============================================================================

@app.exception_handler(EmptyInputError)
async def empty_input_handler(request: Request, exc: EmptyInputError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"detail": "Image analysis failed: no labels returned", "error": str(exc)},
    )


@app.exception_handler(OracleUnavailableError)
async def oracle_unavailable_handler(request: Request, exc: OracleUnavailableError) -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content={"detail": "Image analysis failed: labeling service unavailable", "error": str(exc)},
    )


@app.exception_handler(NetworkError)
async def network_error_handler(request: Request, exc: NetworkError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(WeatherLookupError)
async def weather_error_handler(request: Request, exc: WeatherLookupError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error(f"Persistence failure on {request.url.path} (request_id={get_request_id(request)}): {exc}")
    action = "read" if request.method == "GET" else "save"
    return JSONResponse(status_code=500, content={"detail": f"Failed to {action} result"})


# =============================================================================
# Service endpoints
# =============================================================================

@app.get("/health", response_model=None)
async def health_check(request: Request) -> Union[Dict[str, Any], Response]:
    """
    Health check endpoint that verifies required services are operational.

    Status Codes:
        200: All services healthy
        503: One or more services unavailable
    """
    timestamp = datetime.now(timezone.utc).isoformat()
    services: Dict[str, str] = {}
    overall_healthy = True

    try:
        client = get_gemini_client()
        if client:
            services["gemini_api"] = "healthy"
        else:
            services["gemini_api"] = "unhealthy: client is None"
            overall_healthy = False
    except Exception as e:
        services["gemini_api"] = f"unhealthy: {str(e)}"
        overall_healthy = False

    # Informational only: the oracle loads on first classification
    provider: OracleProvider = request.app.state.oracle_provider
    services["label_oracle"] = "loaded" if provider.ready else "not loaded"

    try:
        supabase_client = get_supabase_client()
        response = supabase_client.table(WASTE_TABLE).select("id").limit(1).execute()
        if response is not None:
            services["supabase"] = "healthy"
        else:
            services["supabase"] = "unhealthy: no response"
            overall_healthy = False
    except Exception as e:
        services["supabase"] = f"unhealthy: {str(e)}"
        overall_healthy = False

    response_data: Dict[str, Any] = {
        "status": "healthy" if overall_healthy else "unhealthy",
        "timestamp": timestamp,
        "services": services,
    }

    if not overall_healthy:
        return Response(
            content=json.dumps(response_data),
            status_code=503,
            media_type="application/json",
        )

    return response_data


@app.get("/version")
async def version_info() -> Dict[str, str]:
    """Get version information for the API."""
    return {
        "version": VERSION,
        "commit_hash": COMMIT_HASH,
    }


app.include_router(waste.router)
app.include_router(farm_tools.router)
app.include_router(results.router)
