"""Rate limiting for the password endpoints.

Only the admin login and the site unlock are limited: they are the two
places a password can be guessed. Limits are counted per client IP in
memory, which is enough for a single-process deployment.
"""

import logging
from typing import Callable

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from starlette.responses import JSONResponse, Response

from photoblog.core.config import settings

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 60


def get_ip_address(request: Request) -> str:
    """Client IP for rate limiting.

    Proxy headers are trusted when present; X-Forwarded-For can be spoofed
    by clients, so only deploy behind a proxy that overwrites it.
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        # X-Forwarded-For: client, proxy1, proxy2
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"


limiter = Limiter(
    key_func=get_ip_address,
    storage_uri="memory://",
)


def password_attempt_limit(func: Callable) -> Callable:
    """Apply ``LOGIN_RATE_LIMIT`` to an endpoint unless rate limiting is off.

    The endpoint must take a ``request: Request`` parameter.
    """
    if not settings.RATE_LIMIT_ENABLED:
        return func
    return limiter.limit(settings.LOGIN_RATE_LIMIT)(func)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Render a 429 in the same shape as other API errors."""
    logger.warning(f"Rate limit exceeded: {get_ip_address(request)} on {request.url.path}")

    return JSONResponse(
        status_code=429,
        content={
            "error": "Too many attempts, try again later",
            "details": {"limit": str(exc.detail)},
            "request_id": getattr(request.state, "request_id", "unknown"),
        },
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )
