"""Request rate limits: a default limit for every route and a stricter one for credential endpoints."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from config import get_settings
from errors import RateLimitedError

logger = logging.getLogger(__name__)

settings = get_settings()

AUTH_LIMIT = settings.auth_rate_limit
AUTH_LIMIT_MESSAGE = "Too many login attempts, please try again after 15 minutes"

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.api_rate_limit],
    storage_uri=settings.rate_limit_storage_uri,
    enabled=settings.rate_limit_enabled,
)


# Must stay sync, SlowAPIMiddleware does not await it
def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    error = RateLimitedError(exc.limit.error_message)
    # Length of the window that was exhausted
    retry_after = exc.limit.limit.get_expiry()
    logger.warning("Rate limit %s hit by %s on %s", exc.limit.limit, get_remote_address(request), request.url.path)
    return JSONResponse(
        status_code=error.status_code,
        content={"message": error.message, "retryAfter": retry_after},
        headers={"Retry-After": str(retry_after)},
    )
