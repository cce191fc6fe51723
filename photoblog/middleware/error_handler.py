"""Turns exceptions into JSON error bodies tagged with a request id."""

import logging
import uuid
from typing import Awaitable, Callable, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from photoblog.core.exceptions import AppException
from photoblog.middleware.rate_limit import rate_limit_exceeded_handler

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _error_response(
    request_id: str,
    status_code: int,
    error: str,
    details: Optional[dict] = None,
) -> JSONResponse:
    body = {"error": error, "request_id": request_id}
    if details is not None:
        body["details"] = details
    return JSONResponse(
        status_code=status_code,
        content=body,
        headers={REQUEST_ID_HEADER: request_id},
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Assigns every request an id and catches what the routes let escape.

    Errors raised inside a route are normally rendered by the handlers
    from :func:`setup_exception_handlers`; this is the last line for
    anything raised outside them. Unknown errors never leak their text to
    the client.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = uuid.uuid4().hex
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except AppException as exc:
            logger.warning(f"{request.method} {request.url.path} failed: {exc.message} [{request_id}]")
            return _error_response(request_id, exc.status_code, exc.message, exc.details)
        except Exception:
            logger.exception(f"Unhandled error on {request.method} {request.url.path} [{request_id}]")
            return _error_response(request_id, 500, "Internal server error")

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


async def _handle_app_exception(request: Request, exc: AppException) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "unknown")
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    logger.log(level, f"{type(exc).__name__} on {request.url.path}: {exc.message} [{request_id}]")
    return _error_response(request_id, exc.status_code, exc.message, exc.details)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the JSON renderers for application and rate-limit errors."""
    app.add_exception_handler(AppException, _handle_app_exception)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
