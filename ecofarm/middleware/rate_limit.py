"""Rate limiting with slowapi, keyed by client IP."""

import json
from typing import Any

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from ecofarm.config import get_settings

DEFAULT_LIMIT = "200/minute"

RATE_LIMITS = {
    "classify": "10/minute",     # POST /api/classify-waste - oracle call per request
    "calculator": "60/minute",   # POST /api/carbon-footprint, /api/profit
    "crop": "30/minute",         # POST /api/crop-recommend - weather API call
    "results": "100/minute",     # GET /api/results/* - read operations
}


def get_client_ip(request: Request) -> str:
    """
    Get the client IP address from the request.

    X-Forwarded-For is honoured only when the direct peer is one of the
    configured TRUSTED_PROXIES.
    """
    direct_ip: str = get_remote_address(request)

    settings = get_settings()
    if not settings.trusted_proxies:
        return direct_ip

    trusted_proxy_list = [
        ip.strip() for ip in settings.trusted_proxies.split(",")
        if ip.strip()
    ]

    if direct_ip in trusted_proxy_list:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

    return direct_ip


limiter = Limiter(key_func=get_client_ip, default_limits=[DEFAULT_LIMIT])


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """
    Return 429 Too Many Requests as JSON.

    Headers:
    - Retry-After: Seconds until the client may retry
    - X-RateLimit-Limit: The limit that was exceeded
    - X-RateLimit-Remaining: Always 0
    """
    retry_after = getattr(exc, "retry_after", 60)

    error_body = {
        "detail": "Rate limit exceeded",
        "message": f"Too many requests. Please retry after {retry_after} seconds.",
        "retry_after": retry_after,
    }

    response = Response(
        content=json.dumps(error_body),
        status_code=429,
        media_type="application/json",
    )
    response.headers["Retry-After"] = str(retry_after)
    response.headers["X-RateLimit-Remaining"] = "0"
    if getattr(exc, "detail", None):
        response.headers["X-RateLimit-Limit"] = exc.detail

    return response


def get_limiter() -> Any:
    """Return the module-level limiter used by route decorators."""
    return limiter
